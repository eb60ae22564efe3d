import os
import getpass
import typer
from dotenv import load_dotenv
from rich import box
from rich.table import Table
from rich.console import Console
from rich.panel import Panel

from stashscripts.clients.bitbucket_server import BitbucketServerClient, PAGE_SIZE, api_root
from stashscripts.core.generator import generate_scripts
from stashscripts.core.models import Settings
from stashscripts.core.scripts import write_scripts
from stashscripts.core.utils import load_yaml, coalesce, as_bool

app = typer.Typer(
    help="Bitbucket Server (Stash) → git clone/pull scripts",
    no_args_is_help=False,
    add_completion=False,
    rich_markup_mode=None,
)
console = Console()

CONFIG_PATH = "config.yml"


@app.callback(invoke_without_command=True)
def root(ctx: typer.Context):
    if ctx.invoked_subcommand is None:
        typer.echo("Укажите подкоманду. Например: stash-scripts generate")
        raise typer.Exit(2)


def resolve_settings(
    env,
    cfg: dict,
    server: str | None = None,
    username: str | None = None,
    project: str | None = None,
    local_dir: str | None = None,
    output_dir: str | None = None,
    fetch_default_branch: bool | None = None,
    verify_tls: bool | None = None,
    interactive: bool = True,
) -> Settings:
    """
    Собирает настройки запуска.
    Приоритет для каждого значения:
      1) опция CLI
      2) переменная окружения (.env подхватывается заранее)
      3) config.yml
      4) интерактивный ввод (если не --yes)
      5) значение по умолчанию
    """
    def ask(text: str, hide_input: bool = False, default: str = "") -> str:
        if not interactive:
            return default
        return typer.prompt(text, default=default, show_default=bool(default), hide_input=hide_input).strip()

    username = coalesce(username, env.get("STASH_USERNAME"), cfg.get("username"))
    if username is None:
        username = ask("Username", default=getpass.getuser())

    password = env.get("STASH_PASSWORD")
    if not password:
        password = ask("Password", hide_input=True)

    server = coalesce(server, env.get("STASH_SERVER"), cfg.get("stash_server"))
    if server is None:
        server = ask("Bitbucket url")
    if not server:
        typer.echo("Не задан адрес Bitbucket: --server, STASH_SERVER или stash_server в config.yml", err=True)
        raise typer.Exit(2)

    project = coalesce(project, env.get("STASH_PROJECT"), cfg.get("project"))
    if project is None:
        project = ask("Bitbucket project (all projects if no value)")

    local_dir = coalesce(local_dir, env.get("LOCAL_DIR"), cfg.get("local_dir"))
    if local_dir is None:
        local_dir = ask("Local directory")

    filters = cfg.get("filters", {}) or {}

    return Settings(
        server=server.strip(),
        username=username,
        password=password or "",
        project=str(project).strip(),
        local_dir=local_dir,
        output_dir=coalesce(output_dir, env.get("OUTPUT_DIR"), cfg.get("output_dir")) or ".",
        verify_tls=as_bool(coalesce(verify_tls, env.get("STASH_VERIFY_TLS"), cfg.get("verify_tls")), False),
        ca_cert=coalesce(env.get("STASH_CA_CERT"), cfg.get("ca_cert")),
        fetch_default_branch=as_bool(
            coalesce(fetch_default_branch, env.get("FETCH_DEFAULT_BRANCH"), cfg.get("fetch_default_branch")), True
        ),
        page_size=int(coalesce(env.get("PAGE_SIZE"), cfg.get("page_size")) or PAGE_SIZE),
        retries=int(coalesce(env.get("STASH_RETRIES"), cfg.get("retries")) or 1),
        include_patterns=list(filters.get("include_patterns") or []),
        exclude_patterns=list(filters.get("exclude_patterns") or []),
    )


def print_settings(settings: Settings):
    info_tbl = Table(show_header=False, box=None)
    info_tbl.add_row("Username", settings.username)
    info_tbl.add_row("Password", "***" if settings.password else "")
    info_tbl.add_row("Bitbucket URL", api_root(settings.server))
    info_tbl.add_row("Project", settings.project or "<все проекты>")
    info_tbl.add_row("Local directory", settings.local_dir)
    info_tbl.add_row("Output directory", settings.output_dir)
    info_tbl.add_row("Default branch lookup", str(settings.fetch_default_branch))
    info_tbl.add_row("Verify TLS", str(bool(settings.ca_cert) or settings.verify_tls))
    console.print(info_tbl)


@app.command()
def generate(
    server: str = typer.Option(None, "--server", "-s", help="URL Bitbucket Server (можно с /rest/api/1.0)"),
    username: str = typer.Option(None, "--username", "-U", help="Имя пользователя (по умолчанию пользователь ОС)"),
    project: str = typer.Option(None, "--project", "-p", help="Ключ проекта; пусто = все проекты"),
    local_dir: str = typer.Option(None, "--local-dir", "-d", help="Локальный каталог для клонов (префикс путей в скриптах)"),
    output_dir: str = typer.Option(None, "--output-dir", "-o", help="Куда записать .bat файлы"),
    default_branch: bool = typer.Option(
        None, "--default-branch/--no-default-branch", help="Запрашивать ветку по умолчанию для каждого репозитория"
    ),
    verify_tls: bool = typer.Option(None, "--verify-tls/--no-verify-tls", help="Проверять TLS сертификат сервера"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Не задавать вопросов, пустые значения остаются пустыми"),
):
    load_dotenv()

    env = os.environ
    cfg = load_yaml(CONFIG_PATH) if os.path.exists(CONFIG_PATH) else {}

    settings = resolve_settings(
        env,
        cfg,
        server=server,
        username=username,
        project=project,
        local_dir=local_dir,
        output_dir=output_dir,
        fetch_default_branch=default_branch,
        verify_tls=verify_tls,
        interactive=not yes,
    )

    console.rule("[bold]Bitbucket → git скрипты[/bold]")
    print_settings(settings)

    client = BitbucketServerClient(
        base_url=settings.server,
        username=settings.username,
        password=settings.password,
        verify=settings.verify_tls,
        ca_cert=settings.ca_cert,
        page_size=settings.page_size,
        retries=settings.retries,
    )

    try:
        result = generate_scripts(client, settings)
    except Exception as e:
        console.print(f"[red]Не удалось получить список проектов[/red]: {e}")
        raise typer.Exit(1)

    clone_path, pull_path = write_scripts(
        settings.project, result.clone_script, result.pull_script, out_dir=settings.output_dir
    )

    console.rule("[bold]Итоги по проектам[/bold]")

    proj_tbl = Table(box=box.SIMPLE_HEAVY)
    proj_tbl.add_column("Проект", style="bold")
    proj_tbl.add_column("Репозиториев")
    proj_tbl.add_column("Статус")
    proj_tbl.add_column("Время, c")
    for r in result.results:
        proj_tbl.add_row(
            r.key,
            str(len(r.project.repos)) if r.ok else "",
            "[green]OK[/green]" if r.ok else f"[red]{r.error}[/red]",
            str(r.duration_s),
        )
    console.print(proj_tbl)

    time_tbl = Table(box=box.SIMPLE)
    time_tbl.add_column("Этап")
    time_tbl.add_column("Время, c")
    for stage, seconds in result.timings.items():
        time_tbl.add_row(stage, str(seconds))
    time_tbl.add_row("[bold]total[/bold]", str(round(sum(result.timings.values()), 2)))
    console.print(time_tbl)

    summary = (
        f"[bold]Проектов:[/bold] {result.total}    "
        f"[green]Успешно:[/green] {result.ok}    "
        f"[red]Ошибок:[/red] {result.failed}    "
        f"[cyan]Репозиториев:[/cyan] {result.repos}\n"
        f"{clone_path}\n{pull_path}"
    )
    console.print(Panel(summary, title="Сводка", border_style="blue"))


@app.command("help")
def help_cmd():
    """Краткая справка по командам."""
    typer.echo(
        "Использование:\n"
        "  stash-scripts generate [ОПЦИИ]\n\n"
        "Опции generate:\n"
        "  -s, --server TEXT        URL Bitbucket Server\n"
        "  -U, --username TEXT      Имя пользователя\n"
        "  -p, --project TEXT       Ключ проекта (пусто = все проекты)\n"
        "  -d, --local-dir TEXT     Префикс локальных путей в скриптах\n"
        "  -o, --output-dir TEXT    Каталог для .bat файлов\n"
        "  --default-branch / --no-default-branch\n"
        "  --verify-tls / --no-verify-tls\n"
        "  -y, --yes                Без интерактивных вопросов\n\n"
        "Примеры:\n"
        "  stash-scripts generate -s https://stash.example.com -p CORE -d C:\\work\\\n"
        "  stash-scripts generate -y   (всё берётся из .env / config.yml)\n"
    )


if __name__ == "__main__":
    app()
