import time
from typing import List
from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)

from stashscripts.core.models import DEFAULT_BRANCH, Project, ProjectResult, Repo
from stashscripts.core.utils import match_any

console = Console()


def list_projects(
    client,
    project_filter: str = "",
    include_patterns: List[str] | None = None,
    exclude_patterns: List[str] | None = None,
) -> List[str]:
    """
    Ключи проектов для обработки.
    Если задан project_filter, сервер не опрашивается.
    Ошибки не перехватываются: без списка проектов продолжать нечего.
    """
    if project_filter:
        keys = [project_filter]
    else:
        keys = sorted(client.list_project_keys())
        if include_patterns:
            keys = [k for k in keys if match_any(include_patterns, k)]
        if exclude_patterns:
            keys = [k for k in keys if not match_any(exclude_patterns, k)]
    console.print(f"Total accessible projects: {len(keys)}")
    return keys


def enumerate_project(client, project_key: str, fetch_default_branch: bool = True) -> Project:
    project = Project(project_key)
    for r in client.list_repositories(project_key):
        name = r["name"]
        branch = None
        if fetch_default_branch:
            branch = client.get_default_branch(project_key, r.get("slug") or name)
        # без ssh-ссылки клонируем по http
        link = r.get("clone_ssh") or r.get("clone_http")
        if not link:
            raise ValueError(f"No clone link for repository {name}")
        project.repos[name] = Repo(link, branch or DEFAULT_BRANCH)
    return project


def enumerate_projects(client, project_keys: List[str], fetch_default_branch: bool = True) -> List[ProjectResult]:
    results: List[ProjectResult] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        overall = progress.add_task("[bold]Проекты[/bold]", total=len(project_keys))

        for key in project_keys:
            started = time.perf_counter()
            progress.update(overall, description=f"[bold]Проект {key}[/bold]")
            try:
                project = enumerate_project(client, key, fetch_default_branch)
                progress.console.print(f"Repos count for {key} is: {len(project.repos)}")
                results.append(ProjectResult(key, project=project,
                                             duration_s=round(time.perf_counter() - started, 2)))
            except Exception as e:
                progress.console.print(f"[red]Unable to fetch repos of project: {key}[/red]")
                progress.console.print_exception()
                results.append(ProjectResult(key, error=str(e) or type(e).__name__,
                                             duration_s=round(time.perf_counter() - started, 2)))
            finally:
                progress.advance(overall)

    return results
