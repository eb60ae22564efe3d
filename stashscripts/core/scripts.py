from pathlib import Path
from typing import List, Tuple

from stashscripts.core.models import Project, ProjectResult

NEW_LINE = "\n"
CLONE_SUFFIX = "_git_clone_script.bat"
PULL_SUFFIX = "_git_pull_script.bat"


def render_clone_script(project: Project, local_dir: str) -> str:
    # каталоги клонов создаются в нижнем регистре
    key = project.key.lower()
    out = []
    for name, repo in project.sorted_repos():
        out.append(f"rem {key}\\{name}")
        out.append(f"mkdir {local_dir}{key}")
        out.append(f"cd {local_dir}{key}")
        out.append(f"git clone {repo.ssh_link}")
        out.append("")
        out.append("")
    return "".join(line + NEW_LINE for line in out)


def render_pull_script(project: Project, local_dir: str) -> str:
    key = project.key
    out = []
    for name, repo in project.sorted_repos():
        out.append(f"rem {key}\\{name}")
        out.append(f"cd {local_dir}{key}\\{name}")
        out.append(f"git checkout {repo.default_branch}")
        out.append('git fetch --prune --tags --progress "origin"')
        out.append('git pull --progress "origin"')
        out.append("")
        out.append("")
    return "".join(line + NEW_LINE for line in out)


def render_scripts(results: List[ProjectResult], local_dir: str) -> Tuple[str, str]:
    """Clone and pull script text for the successfully enumerated projects, in result order."""
    clone, pull = [], []
    for r in results:
        if not r.ok:
            continue
        clone.append(render_clone_script(r.project, local_dir))
        pull.append(render_pull_script(r.project, local_dir))
    return "".join(clone), "".join(pull)


def script_file_names(project_filter: str) -> Tuple[str, str]:
    return f"{project_filter}{CLONE_SUFFIX}", f"{project_filter}{PULL_SUFFIX}"


def write_scripts(project_filter: str, clone_script: str, pull_script: str, out_dir: str = ".") -> Tuple[Path, Path]:
    base = Path(out_dir)
    base.mkdir(parents=True, exist_ok=True)
    clone_name, pull_name = script_file_names(project_filter)
    clone_path, pull_path = base / clone_name, base / pull_name
    # "\n" пишется как есть на любой ОС
    with open(clone_path, "w", encoding="utf-8", newline="") as f:
        f.write(clone_script)
    with open(pull_path, "w", encoding="utf-8", newline="") as f:
        f.write(pull_script)
    return clone_path, pull_path
