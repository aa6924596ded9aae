"""End-to-end tests for the trackerapi CLI against the fake tracker."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import diskcache
import pytest

from conftest import ACCOUNT, BASE_URL, success
from trackerapi import app as app_module
from trackerapi.app import app
from trackerapi.client import TrackerClient
from trackerapi.config import get_data_dir, get_store_dir, load_global_config, profile_exists
from trackerapi.exceptions import APIError
from trackerapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CACHE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


@pytest.fixture
def cli(isolated_config: Path, tracker, monkeypatch: pytest.MonkeyPatch, cli_runner):
    """Invoke the CLI with clients wired to the fake tracker."""
    monkeypatch.setenv("TRACKER_PASSWORD", "hunter2")

    def make_client(profile):
        return TrackerClient.from_profile(profile, get_store_dir(profile), tracker.http_client())

    monkeypatch.setattr("trackerapi.commands.session._make_client", make_client)

    def invoke(*args: str, input: str | None = None):
        return cli_runner.invoke(app, ["--no-color", *args], input=input)

    return invoke


@pytest.fixture
def profile(cli) -> str:
    result = cli(
        "config", "add", "home",
        "--base-url", BASE_URL,
        "--username", "alice",
        "--password-source", "env:TRACKER_PASSWORD",
    )
    assert result.exit_code == 0, result.output
    return "home"


def _login_posts(tracker) -> int:
    return len([r for r in tracker.calls("/login.php") if r.method == "POST"])


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        from trackerapi import __version__

        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "login" in result.output


class TestConfigCommands:
    def test_first_profile_becomes_default(self, cli, profile) -> None:
        assert profile_exists("home")
        assert load_global_config().default_profile == "home"

    def test_add_refuses_to_overwrite(self, cli, profile) -> None:
        result = cli("config", "add", "home", "--base-url", BASE_URL)
        assert result.exit_code == 2
        assert "already exists" in result.output

    def test_add_rejects_unsafe_name(self, cli) -> None:
        result = cli("config", "add", "../home", "--base-url", BASE_URL)
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Invalid profile name" in result.output

    def test_add_force_overwrites(self, cli, profile) -> None:
        result = cli("config", "add", "home", "--base-url", "https://mirror.example/", "--force")
        assert result.exit_code == 0
        shown = cli("--json", "config", "show", "home")
        assert json.loads(shown.stdout)["base_url"] == "https://mirror.example/"

    def test_show_active_profile(self, cli, profile) -> None:
        result = cli("--json", "config", "show")
        data = json.loads(result.stdout)
        assert data["name"] == "home"
        assert data["password_source"] == "env:TRACKER_PASSWORD"
        assert data["cache"] == {"enabled": True, "ttl_seconds": 300}

    def test_list(self, cli, profile) -> None:
        cli("config", "add", "away", "--base-url", "https://away.example/")
        result = cli("--plain", "config", "list")
        lines = result.stdout.splitlines()
        assert lines[0] == "name\tbase_url\tusername\tdefault"
        assert "away\thttps://away.example/\t\t" in lines
        assert f"home\t{BASE_URL}\talice\t*" in lines

    def test_list_empty(self, cli) -> None:
        result = cli("config", "list")
        assert result.exit_code == 0
        assert "No profiles" in result.output

    def test_use(self, cli, profile) -> None:
        cli("config", "add", "away", "--base-url", "https://away.example/")
        result = cli("config", "use", "away")
        assert result.exit_code == 0
        assert load_global_config().default_profile == "away"

    def test_use_unknown_profile(self, cli) -> None:
        result = cli("config", "use", "nope")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "not found" in result.output

    def test_remove(self, cli, profile) -> None:
        result = cli("config", "remove", "home", "--yes")
        assert result.exit_code == 0
        assert not profile_exists("home")
        assert load_global_config().default_profile is None

    def test_remove_can_be_cancelled(self, cli, profile) -> None:
        result = cli("config", "remove", "home", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert profile_exists("home")


class TestSessionCommands:
    def test_login(self, cli, profile, tracker) -> None:
        result = cli("login")
        assert result.exit_code == 0, result.output
        assert "Logged in" in result.output
        assert _login_posts(tracker) == 1

    def test_later_commands_resume_the_session(self, cli, profile, tracker) -> None:
        cli("login")
        result = cli("--json", "account")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["authkey"] == ACCOUNT["authkey"]
        assert _login_posts(tracker) == 1

    def test_commands_log_in_on_demand(self, cli, profile, tracker) -> None:
        result = cli("--json", "account")
        assert result.exit_code == 0, result.output
        assert _login_posts(tracker) == 1

    def test_wrong_password(self, cli, profile, monkeypatch) -> None:
        monkeypatch.setenv("TRACKER_PASSWORD", "wrong")
        result = cli("login")
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "login failed" in result.output

    def test_missing_password_source(self, cli, profile, monkeypatch) -> None:
        monkeypatch.delenv("TRACKER_PASSWORD")
        result = cli("login")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "TRACKER_PASSWORD" in result.output

    def test_no_profile(self, cli) -> None:
        result = cli("login")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "No profile configured" in result.output

    def test_request(self, cli, profile, tracker) -> None:
        tracker.routes["browse"] = lambda r: success({"query": r.url.query.decode()})
        result = cli("--json", "request", "browse", "-P", "searchstr=wire", "-P", "page=2")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "query": "action=browse&page=2&searchstr=wire"
        }

    def test_request_repeated_param(self, cli, profile, tracker) -> None:
        tracker.routes["browse"] = lambda r: success({"query": r.url.query.decode()})
        result = cli("--json", "request", "browse", "-P", "tag=a", "-P", "tag=b")
        assert json.loads(result.stdout)["query"] == "action=browse&tag=a&tag=b"

    def test_request_bad_param(self, cli, profile, tracker) -> None:
        result = cli("request", "browse", "--param", "oops")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "KEY=VALUE" in result.output
        assert tracker.requests == []

    def test_request_api_failure(self, cli, profile, tracker) -> None:
        tracker.routes["artist"] = {"status": "failure", "error": "bad id parameter"}
        result = cli("request", "artist", "-P", "id=0")
        assert result.exit_code == EXIT_API_ERROR
        assert "bad id parameter" in result.output

    def test_download_url(self, cli, profile) -> None:
        result = cli("download-url", "31337")
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == (
            f"{BASE_URL}torrents.php?action=download&authkey={ACCOUNT['authkey']}"
            f"&id=31337&torrent_pass={ACCOUNT['passkey']}"
        )

    def test_logout(self, cli, profile, tracker) -> None:
        cli("login")
        result = cli("logout")
        assert result.exit_code == 0, result.output
        assert "Logged out." in result.output
        assert len(tracker.calls("/logout.php")) == 1

        # the saved session is gone, so the next command must post credentials
        cli("account")
        assert _login_posts(tracker) == 2

    def test_logout_without_session(self, cli, profile, tracker) -> None:
        result = cli("logout")
        assert result.exit_code == 0
        assert "No active session" in result.output
        assert tracker.calls("/logout.php") == []

    def test_logout_unconfirmed(self, cli, profile, tracker) -> None:
        cli("login")
        tracker.logout_status = 500
        result = cli("logout")
        assert result.exit_code == 0
        assert "did not confirm" in result.output


class TestCacheCommands:
    def test_stats_and_clear(self, cli, profile, tracker) -> None:
        tracker.routes["announcements"] = success([])
        cli("request", "announcements")

        stats = json.loads(cli("--json", "cache", "stats").stdout)
        assert stats["enabled"] is True
        assert stats["size"] == 1

        result = cli("cache", "clear", "--yes")
        assert result.exit_code == 0
        assert json.loads(cli("--json", "cache", "stats").stdout)["size"] == 0

    def test_store_failure_exits_with_cache_error(self, cli, profile, monkeypatch) -> None:
        """A broken store is reported with the cache exit code, not a crash."""

        def boom(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(diskcache.Cache, "clear", boom)
        result = cli("cache", "clear", "--yes")
        assert result.exit_code == EXIT_CACHE_ERROR
        assert "Cache clear failed" in result.output

    def test_cached_request_stays_off_the_network(self, cli, profile, tracker) -> None:
        tracker.routes["announcements"] = success([])
        cli("request", "announcements")
        cli("request", "announcements")
        assert len(tracker.calls("/ajax.php", "announcements")) == 1


class TestMain:
    @pytest.fixture(autouse=True)
    def _keep_sigint(self, monkeypatch) -> None:
        monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)

    def test_tracker_error_exits_with_its_code(self, monkeypatch, capsys) -> None:
        def boom() -> None:
            raise APIError("bad id parameter")

        monkeypatch.setattr(app_module, "app", boom)
        with pytest.raises(SystemExit) as excinfo:
            app_module.main()
        assert excinfo.value.code == EXIT_API_ERROR
        assert "bad id parameter" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, isolated_config, monkeypatch, capsys) -> None:
        def boom() -> None:
            raise RuntimeError("kaboom")

        monkeypatch.setattr(app_module, "app", boom)
        with pytest.raises(SystemExit) as excinfo:
            app_module.main()
        assert excinfo.value.code == EXIT_GENERIC_FAILURE

        logs = list((get_data_dir() / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: kaboom" in logs[0].read_text()
        assert "Debug log" in capsys.readouterr().err
