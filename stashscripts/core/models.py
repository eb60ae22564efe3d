from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_BRANCH = "master"


@dataclass
class Repo:
    ssh_link: Optional[str]
    default_branch: str = DEFAULT_BRANCH


@dataclass
class Project:
    key: str
    repos: Dict[str, Repo] = field(default_factory=dict)

    def sorted_repos(self):
        return sorted(self.repos.items())


@dataclass
class ProjectResult:
    key: str
    project: Optional[Project] = None
    error: Optional[str] = None
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Settings:
    """Effective run configuration, passed explicitly through the pipeline."""
    server: str
    username: str = ""
    password: str = ""
    project: str = ""
    local_dir: str = ""
    output_dir: str = "."
    verify_tls: bool = False
    ca_cert: Optional[str] = None
    fetch_default_branch: bool = True
    page_size: int = 5000
    retries: int = 1
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)


@dataclass
class GenerationResult:
    results: List[ProjectResult]
    clone_script: str
    pull_script: str
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def ok(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.total - self.ok

    @property
    def repos(self) -> int:
        return sum(len(r.project.repos) for r in self.results if r.ok)
