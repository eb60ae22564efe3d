"""Shared fixtures: an in-memory stand-in for BitbucketServerClient."""

import pytest


def repo(name, ssh=None, slug=None):
    """Repository entry in the shape returned by BitbucketServerClient.list_repositories."""
    slug = slug or name.lower()
    return {
        "name": name,
        "slug": slug,
        "clone_ssh": ssh or f"ssh://git@stash.example.com:7999/{slug}.git",
        "clone_http": f"https://stash.example.com/scm/{slug}.git",
    }


class FakeStashClient:
    def __init__(self, projects=None, repos=None, branches=None, failing=()):
        self.projects = list(projects or [])
        self.repos = repos or {}
        self.branches = branches or {}
        self.failing = set(failing)
        self.calls = []

    def list_project_keys(self):
        self.calls.append(("projects",))
        return list(self.projects)

    def list_repositories(self, project_key):
        self.calls.append(("repos", project_key))
        if project_key in self.failing:
            raise RuntimeError(f"repos of {project_key} unavailable")
        return [dict(r) for r in self.repos.get(project_key, [])]

    def get_default_branch(self, project_key, repo_slug):
        self.calls.append(("branch", project_key, repo_slug))
        return self.branches.get((project_key, repo_slug))


@pytest.fixture
def fake_client():
    return FakeStashClient(
        projects=["WEB", "CORE", "API"],
        repos={
            "API": [repo("gateway")],
            "CORE": [repo("utils"), repo("common")],
            "WEB": [repo("site"), repo("admin"), repo("assets")],
        },
        branches={
            ("CORE", "common"): "develop",
            ("WEB", "site"): "main",
        },
    )
