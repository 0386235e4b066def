"""Tests for the CLI entry point."""

import subprocess
from unittest.mock import MagicMock

from click.testing import CliRunner

from relnotify_cli.auth import resolve_gh_cli_token
from relnotify_cli.cli import main
from relnotify_cli.options import EXIT_MISSING_REPOSITORY
from relnotify_core.delivery import DeliveryOutcome
from relnotify_core.models import ReportWindow
from relnotify_core.render import Action, Block, FlatDocument, StructuredDocument

WINDOW = ReportWindow(
    since="2024-05-10T12:00:00+00:00",
    compare_url="https://github.com/acme/widgets/compare/v1.2.0...ddddddd",
    has_baseline=True,
    marker="v1.2.0",
)


def _make_config(repository="acme/widgets", webhook_url="https://hook.example/x", github_token="tok"):
    return {
        "repository": repository,
        "webhook_url": webhook_url,
        "github_token": github_token,
        "deployment_ref": "d" * 40,
        "title": "Release Notes",
        "display_limit": 5,
        "description_limit": 200,
        "lookback_days": 7,
        "page_size": 50,
        "request_timeout": 30,
        "rejection_signals": ["required", "invalid", "error"],
    }


def _patch_common(mocker, config=None, token="tok"):
    """Patch load_config and resolve_gh_cli_token for most tests."""
    cfg = config or _make_config()
    load = mocker.patch("relnotify_cli.options.load_config", return_value=cfg)
    mocker.patch("relnotify_cli.auth.resolve_gh_cli_token", return_value=token)
    return load


def _result(outcome=None):
    result = MagicMock()
    result.window = WINDOW
    result.structured = StructuredDocument(
        blocks=(Block("heading", "Release Notes"), Block("meta", "Repository: acme/widgets")),
        actions=(Action("View full comparison", WINDOW.compare_url),),
    )
    result.flat = FlatDocument("Release Notes\nRepository: acme/widgets")
    result.outcome = outcome
    return result


class TestMissingRepository:
    def test_exits_with_code_two(self, mocker):
        _patch_common(mocker, config=_make_config(repository=None))
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline")

        result = CliRunner().invoke(main, ["notify"])

        assert result.exit_code == EXIT_MISSING_REPOSITORY
        run.assert_not_called()

    def test_malformed_repository_exits_with_code_two(self, mocker):
        _patch_common(mocker, config=_make_config(repository="not-a-repo"))
        mocker.patch("relnotify_cli.commands.notify.run_pipeline")

        result = CliRunner().invoke(main, ["notify"])

        assert result.exit_code == EXIT_MISSING_REPOSITORY

    def test_preview_also_requires_repository(self, mocker):
        _patch_common(mocker, config=_make_config(repository=""))
        prepare = mocker.patch("relnotify_cli.commands.preview.prepare")

        result = CliRunner().invoke(main, ["preview"])

        assert result.exit_code == EXIT_MISSING_REPOSITORY
        prepare.assert_not_called()


class TestInvalidConfig:
    def test_bad_numeric_setting_is_usage_error(self, mocker):
        cfg = _make_config()
        cfg["display_limit"] = "lots"
        _patch_common(mocker, config=cfg)

        result = CliRunner().invoke(main, ["notify"])

        assert result.exit_code == 1
        assert "Invalid numeric setting" in result.output


class TestNotify:
    def test_completes_with_zero_on_success(self, mocker):
        _patch_common(mocker)
        run = mocker.patch(
            "relnotify_cli.commands.notify.run_pipeline",
            return_value=_result(DeliveryOutcome(attempts=1, final_status=200, delivered=True)),
        )

        result = CliRunner().invoke(main, ["notify"])

        assert result.exit_code == 0
        assert "relnotify completed." in result.output
        assert run.call_args.kwargs["send"] is True

    def test_delivery_failure_still_exits_zero(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "relnotify_cli.commands.notify.run_pipeline",
            return_value=_result(DeliveryOutcome(attempts=2, final_status=500, delivered=False, used_fallback=True)),
        )

        result = CliRunner().invoke(main, ["notify"])

        assert result.exit_code == 0
        assert "not delivered" in result.output
        assert "relnotify completed." in result.output

    def test_dry_run_flag_passed_through(self, mocker):
        _patch_common(mocker)
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        result = CliRunner().invoke(main, ["notify", "--dry-run"])

        assert result.exit_code == 0
        assert run.call_args.kwargs["send"] is False

    def test_cli_options_become_overrides(self, mocker):
        load = _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(
            main, ["notify", "--repo", "octo/cat", "--webhook", "https://hook.example/y", "--sha", "abc1234"]
        )

        overrides = load.call_args.kwargs["cli_overrides"]
        assert overrides["repository"] == "octo/cat"
        assert overrides["webhook_url"] == "https://hook.example/y"
        assert overrides["deployment_ref"] == "abc1234"

    def test_config_built_from_merged_settings(self, mocker):
        _patch_common(mocker)
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(main, ["notify"])

        config = run.call_args.args[0]
        assert config.repository == "acme/widgets"
        assert config.api_token == "tok"
        assert config.rejection_signals == ("required", "invalid", "error")

    def test_token_resolved_when_config_has_none(self, mocker):
        _patch_common(mocker, config=_make_config(github_token=None), token="gh-session-token")
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(main, ["notify"])

        assert run.call_args.args[0].api_token == "gh-session-token"

    def test_config_path_option_used(self, mocker):
        load = _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(main, ["--config", "ci/relnotify.yml", "notify"])

        assert load.call_args.args[0] == "ci/relnotify.yml"


class TestPreview:
    def test_text_format(self, mocker):
        _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.preview.prepare", return_value=_result())

        result = CliRunner().invoke(main, ["preview"])

        assert result.exit_code == 0
        assert "Repository: acme/widgets" in result.output

    def test_card_format_prints_payload(self, mocker):
        _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.preview.prepare", return_value=_result())

        result = CliRunner().invoke(main, ["preview", "--format", "card"])

        assert result.exit_code == 0
        assert "AdaptiveCard" in result.output
        assert "Action.OpenUrl" in result.output

    def test_preview_never_delivers(self, mocker):
        _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.preview.prepare", return_value=_result())
        deliver = mocker.patch("relnotify_core.pipeline.deliver")

        CliRunner().invoke(main, ["preview"])

        deliver.assert_not_called()


class TestWindow:
    def test_prints_window_table(self, mocker):
        _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.window.GitHistory")
        mocker.patch("relnotify_cli.commands.window.resolve_window", return_value=WINDOW)

        result = CliRunner().invoke(main, ["window"])

        assert result.exit_code == 0
        assert "2024-05-10T12:00:00+00:00" in result.output
        assert "v1.2.0" in result.output

    def test_lookback_shown_without_tag(self, mocker):
        _patch_common(mocker)
        mocker.patch("relnotify_cli.commands.window.GitHistory")
        lookback = ReportWindow(
            since="2024-05-13T12:30:45Z",
            compare_url="https://github.com/acme/widgets/commits/HEAD",
            has_baseline=False,
        )
        mocker.patch("relnotify_cli.commands.window.resolve_window", return_value=lookback)

        result = CliRunner().invoke(main, ["window"])

        assert "last 7 days" in result.output

    def test_uses_configured_sha_as_head(self, mocker):
        _patch_common(mocker)
        history = mocker.patch("relnotify_cli.commands.window.GitHistory").return_value
        resolve = mocker.patch("relnotify_cli.commands.window.resolve_window", return_value=WINDOW)

        CliRunner().invoke(main, ["window"])

        assert resolve.call_args.kwargs["head_ref"] == "d" * 40
        history.head_sha.assert_not_called()


class TestVersion:
    def test_version_option(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "relnotify" in result.output


class TestResolveGhCliToken:
    def test_returns_session_token(self, mocker):
        run = mocker.patch(
            "relnotify_cli.auth.subprocess.run",
            return_value=MagicMock(returncode=0, stdout="gho_session\n"),
        )
        assert resolve_gh_cli_token() == "gho_session"
        assert run.call_args.args[0] == ["gh", "auth", "token"]

    def test_gh_not_installed(self, mocker):
        mocker.patch("relnotify_cli.auth.subprocess.run", side_effect=FileNotFoundError)
        assert resolve_gh_cli_token() is None

    def test_gh_timeout(self, mocker):
        mocker.patch("relnotify_cli.auth.subprocess.run", side_effect=subprocess.TimeoutExpired("gh", 5))
        assert resolve_gh_cli_token() is None

    def test_gh_not_logged_in(self, mocker):
        mocker.patch("relnotify_cli.auth.subprocess.run", return_value=MagicMock(returncode=1, stdout=""))
        assert resolve_gh_cli_token() is None

    def test_blank_output(self, mocker):
        mocker.patch("relnotify_cli.auth.subprocess.run", return_value=MagicMock(returncode=0, stdout="  \n"))
        assert resolve_gh_cli_token() is None


class TestTokenPrecedence:
    def test_environment_token_skips_gh_cli(self, mocker, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        gh = mocker.patch("relnotify_cli.auth.subprocess.run")
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(main, ["--config", str(tmp_path / "none.yml"), "notify"])

        assert run.call_args.args[0].api_token == "env-token"
        gh.assert_not_called()

    def test_gh_cli_used_without_environment_token(self, mocker, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        mocker.patch(
            "relnotify_cli.auth.subprocess.run",
            return_value=MagicMock(returncode=0, stdout="gho_session\n"),
        )
        run = mocker.patch("relnotify_cli.commands.notify.run_pipeline", return_value=_result())

        CliRunner().invoke(main, ["--config", str(tmp_path / "none.yml"), "notify"])

        assert run.call_args.args[0].api_token == "gho_session"
