import time

from stashscripts.core.enumerator import list_projects, enumerate_projects
from stashscripts.core.models import GenerationResult, Settings
from stashscripts.core.scripts import render_scripts


def generate_scripts(client, settings: Settings) -> GenerationResult:
    """
    Полный проход: список проектов → репозитории → текст скриптов.
    Ошибка получения списка проектов пробрасывается наружу,
    ошибки отдельных проектов попадают в results.
    """
    timings = {}

    started = time.perf_counter()
    keys = list_projects(
        client,
        settings.project,
        include_patterns=settings.include_patterns,
        exclude_patterns=settings.exclude_patterns,
    )
    timings["list_projects"] = round(time.perf_counter() - started, 2)

    started = time.perf_counter()
    results = enumerate_projects(client, keys, fetch_default_branch=settings.fetch_default_branch)
    timings["enumerate_repos"] = round(time.perf_counter() - started, 2)

    started = time.perf_counter()
    clone_script, pull_script = render_scripts(results, settings.local_dir)
    timings["render"] = round(time.perf_counter() - started, 2)

    return GenerationResult(
        results=results,
        clone_script=clone_script,
        pull_script=pull_script,
        timings=timings,
    )
