"""Tests for the command line interface."""

from unittest.mock import patch

import pytest
import typer
from typer.testing import CliRunner

from conftest import FakeStashClient
from stashscripts import main
from stashscripts.main import app, resolve_settings

runner = CliRunner()

ENV_VARS = [
    "STASH_SERVER", "STASH_USERNAME", "STASH_PASSWORD", "STASH_PROJECT", "LOCAL_DIR",
    "OUTPUT_DIR", "STASH_VERIFY_TLS", "STASH_CA_CERT", "FETCH_DEFAULT_BRANCH",
    "PAGE_SIZE", "STASH_RETRIES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("getpass.getuser", lambda: "tester")
    monkeypatch.setattr(main, "load_dotenv", lambda: None)


@pytest.fixture
def client_factory(fake_client):
    with patch.object(main, "BitbucketServerClient", return_value=fake_client) as factory:
        yield factory


class TestResolveSettings:
    def test_cli_beats_env_beats_config(self):
        env = {"STASH_SERVER": "https://env", "STASH_PROJECT": "ENV", "STASH_PASSWORD": "pw"}
        cfg = {"stash_server": "https://cfg", "project": "CFG", "local_dir": "C:\\cfg\\"}

        s = resolve_settings(env, cfg, server="https://cli", interactive=False)

        assert s.server == "https://cli"
        assert s.project == "ENV"
        assert s.local_dir == "C:\\cfg\\"
        assert s.password == "pw"
        assert s.username == "tester"

    def test_defaults(self):
        s = resolve_settings({}, {}, server="https://stash", interactive=False)

        assert s.project == ""
        assert s.verify_tls is False
        assert s.fetch_default_branch is True
        assert s.page_size == 5000
        assert s.retries == 1
        assert s.output_dir == "."

    def test_env_flags_and_filters(self):
        env = {"STASH_VERIFY_TLS": "TRUE", "FETCH_DEFAULT_BRANCH": "false", "PAGE_SIZE": "100"}
        cfg = {"filters": {"include_patterns": ["^A"], "exclude_patterns": ["TMP"]}}

        s = resolve_settings(env, cfg, server="https://stash", interactive=False)

        assert s.verify_tls is True
        assert s.fetch_default_branch is False
        assert s.page_size == 100
        assert s.include_patterns == ["^A"]
        assert s.exclude_patterns == ["TMP"]

    def test_numeric_project_key_from_config(self):
        s = resolve_settings({}, {"project": 123}, server="https://stash", interactive=False)

        assert s.project == "123"

    def test_cli_flag_false_is_kept(self):
        s = resolve_settings(
            {"FETCH_DEFAULT_BRANCH": "true"}, {}, server="https://stash",
            fetch_default_branch=False, interactive=False,
        )

        assert s.fetch_default_branch is False

    def test_missing_server_without_prompts(self):
        with pytest.raises(typer.Exit):
            resolve_settings({}, {}, interactive=False)


class TestGenerateCommand:
    def test_writes_both_scripts(self, client_factory, tmp_path):
        result = runner.invoke(app, ["generate", "-y", "-s", "https://stash", "-d", "C:\\work\\"])

        assert result.exit_code == 0, result.output
        clone = (tmp_path / "_git_clone_script.bat").read_text(encoding="utf-8")
        pull = (tmp_path / "_git_pull_script.bat").read_text(encoding="utf-8")
        assert clone.count("git clone ") == 6
        assert "cd C:\\work\\WEB\\site\ngit checkout main\n" in pull
        client_factory.assert_called_once()
        assert client_factory.call_args.kwargs["base_url"] == "https://stash"

    def test_prompts_for_missing_values(self, client_factory, tmp_path):
        user_input = "\n".join(["jdoe", "secret", "https://stash", "CORE", "C:\\work\\"]) + "\n"

        result = runner.invoke(app, ["generate"], input=user_input)

        assert result.exit_code == 0, result.output
        kwargs = client_factory.call_args.kwargs
        assert (kwargs["username"], kwargs["password"]) == ("jdoe", "secret")
        assert (tmp_path / "CORE_git_clone_script.bat").exists()
        assert "secret" not in result.output

    def test_config_file_is_read(self, client_factory, tmp_path):
        (tmp_path / "config.yml").write_text(
            "stash_server: https://stash\nlocal_dir: 'E:\\repos\\'\nproject: API\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["generate", "-y", "-o", "scripts"])

        assert result.exit_code == 0, result.output
        pull = (tmp_path / "scripts" / "API_git_pull_script.bat").read_text(encoding="utf-8")
        assert pull.startswith("rem API\\gateway\ncd E:\\repos\\API\\gateway\n")

    def test_failed_project_does_not_fail_run(self, client_factory, fake_client, tmp_path):
        fake_client.failing = {"CORE"}

        result = runner.invoke(app, ["generate", "-y", "-s", "https://stash"])

        assert result.exit_code == 0, result.output
        assert "Unable to fetch repos of project: CORE" in result.output
        assert "CORE" not in (tmp_path / "_git_pull_script.bat").read_text(encoding="utf-8")

    def test_project_listing_failure_exits_1(self, tmp_path):
        class Broken(FakeStashClient):
            def list_project_keys(self):
                raise RuntimeError("401 Unauthorized")

        with patch.object(main, "BitbucketServerClient", return_value=Broken()):
            result = runner.invoke(app, ["generate", "-y", "-s", "https://stash"])

        assert result.exit_code == 1
        assert "401 Unauthorized" in result.output
        assert not (tmp_path / "_git_clone_script.bat").exists()

    def test_missing_server_exits_2(self, client_factory):
        result = runner.invoke(app, ["generate", "-y"])

        assert result.exit_code == 2
        client_factory.assert_not_called()


def test_no_subcommand_exits_2():
    result = runner.invoke(app, [])

    assert result.exit_code == 2


def test_help_command():
    result = runner.invoke(app, ["help"])

    assert result.exit_code == 0
    assert "stash-scripts generate" in result.output
