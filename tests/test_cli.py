"""
Tests for CLI commands — lifecycle commands, search, cleanup, global options.
"""

import json

import pytest
from click.testing import CliRunner

from zcr.main import cli


@pytest.fixture
def invoke(settings, manager):
    """Run the CLI against the mock-backed manager from conftest."""
    runner = CliRunner()

    def _invoke(*args, input=None):
        obj = {"settings": settings, "manager": manager}
        return runner.invoke(cli, ["--no-color", *args], obj=obj, input=input)

    return _invoke


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Zenit Linux package manager" in result.output
        for command in ("install", "remove", "update-all", "upgrade", "find", "ui"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_missing_config_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["-c", str(tmp_path / "nope.yml"), "help"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_mock_mode_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZCR_REGISTRY_ROOT", str(tmp_path / "registry"))
        monkeypatch.setenv("ZCR_LOG_FILE", str(tmp_path / "zcr.log"))
        result = CliRunner().invoke(cli, ["--mock", "remove", "nothing"])
        assert result.exit_code == 0
        assert "nothing to remove" in result.output


class TestInstallCommand:
    def test_install_with_yes(self, invoke, settings):
        result = invoke("install", "foo", "--yes")

        assert result.exit_code == 0, result.output
        assert "➜ [1] Fetching repository list" in result.output
        assert "✔ Package foo installed" in result.output
        assert (settings.registry_root / "foo").is_dir()

    def test_install_confirmed_at_prompt(self, invoke, settings):
        result = invoke("install", "hello", input="y\n")

        assert result.exit_code == 0
        assert "Install hello?" in result.output
        assert "No unpack.sh found" in result.output

    def test_install_cancelled(self, invoke, settings, http):
        result = invoke("install", "foo", input="n\n")

        assert result.exit_code == 0
        assert "Installation of foo cancelled" in result.output
        assert not (settings.registry_root / "foo").exists()
        assert http.calls == []

    def test_unknown_package(self, invoke):
        result = invoke("install", "bar", "-y")
        assert result.exit_code == 1
        assert "✖ Package bar not found in manifest" in result.output

    def test_second_install_fails(self, invoke):
        invoke("install", "foo", "-y")
        result = invoke("install", "foo", "-y")
        assert result.exit_code == 1
        assert "remove it first" in result.output

    def test_log_file_written(self, invoke, settings):
        invoke("install", "foo", "-y")
        assert "Installing package: foo" in settings.log_file.read_text()


class TestUpdateCommands:
    def test_update_not_installed(self, invoke):
        result = invoke("update", "foo")
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_update_up_to_date(self, invoke):
        invoke("install", "foo", "-y")
        result = invoke("update", "foo")
        assert result.exit_code == 0
        assert "ℹ Package foo is already up to date" in result.output

    def test_update_all_summary(self, invoke, repo):
        invoke("install", "foo", "-y")
        invoke("install", "world", "-y")
        repo.push_commit("https://example.com/foo.git")

        result = invoke("update-all")

        assert result.exit_code == 0
        assert "2 attempted, 1 updated, 1 up to date, 0 failed" in result.output

    def test_upgrade_alias(self, invoke):
        invoke("install", "foo", "-y")
        result = invoke("upgrade")
        assert result.exit_code == 0
        assert "Upgrade finished: 1 attempted" in result.output

    def test_update_all_json(self, invoke, hooks, repo):
        invoke("install", "foo", "-y")
        repo.push_commit("https://example.com/foo.git")
        hooks.exit_codes["foo/unpack"] = 1

        result = invoke("update-all", "--json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["attempted"] == 1
        assert data["failures"][0]["kind"] == "HookError"

    def test_manifest_failure_fails_batch(self, invoke, http):
        invoke("install", "foo", "-y")
        http.go_offline()
        result = invoke("update-all")
        assert result.exit_code == 1
        assert "offline" in result.output


class TestRemoveCommand:
    def test_remove_installed(self, invoke, settings):
        invoke("install", "foo", "-y")
        result = invoke("remove", "foo")
        assert result.exit_code == 0
        assert "✔ Package foo removed" in result.output
        assert not (settings.registry_root / "foo").exists()

    def test_remove_absent(self, invoke):
        result = invoke("remove", "foo")
        assert result.exit_code == 0
        assert "ℹ Package foo is not installed, nothing to remove" in result.output


class TestManifestCommands:
    def test_find(self, invoke):
        result = invoke("find", "o")
        assert result.exit_code == 0
        assert "Found 3 package(s):" in result.output

    def test_find_nothing(self, invoke):
        result = invoke("find", "bar")
        assert result.exit_code == 0
        assert "No packages found matching 'bar'" in result.output

    def test_find_json(self, invoke):
        result = invoke("find", "hel", "--json")
        assert json.loads(result.stdout) == [
            {"name": "hello", "url": "https://example.com/hello.git"}
        ]

    def test_find_offline(self, invoke, http):
        http.go_offline()
        result = invoke("find", "foo")
        assert result.exit_code == 1

    def test_refresh_json(self, invoke, settings):
        result = invoke("refresh", "--json")
        data = json.loads(result.stdout)
        assert data == {
            "packages": 3,
            "source": settings.manifest_url,
            "saved": True,
        }
        assert settings.scratch_path.is_file()

    def test_autoremove(self, invoke, settings):
        invoke("refresh")
        result = invoke("autoremove")

        assert result.exit_code == 0
        assert f"✔ Removed {settings.scratch_path}" in result.output
        assert "✔ Cleanup completed" in result.output
        assert not settings.scratch_path.exists()

    def test_autoremove_nothing_to_do(self, invoke):
        result = invoke("autoremove")
        assert result.exit_code == 0
        assert "✔ Cleanup completed" in result.output

    def test_autoremove_reports_failures(self, invoke, settings):
        settings.scratch_path.mkdir(parents=True)  # a directory cannot be unlinked
        result = invoke("autoremove")

        assert result.exit_code == 1
        assert f"✖ Failed to remove {settings.scratch_path}" in result.output
        assert "Cleanup completed" not in result.output


class TestInformational:
    def test_help_command(self, invoke):
        result = invoke("help")
        assert result.exit_code == 0
        assert "zcr - Zenit Linux Package Manager" in result.output

    def test_how_to_add(self, invoke):
        result = invoke("how-to-add")
        assert result.exit_code == 0
        assert "Sample-repo-zcr" in result.output


class TestInteractive:
    def test_find_then_exit(self, invoke):
        result = invoke("ui", input="find\nfoo\nexit\n")
        assert result.exit_code == 0
        assert "ZCR - Zenit Community Repository" in result.output
        assert "Found 1 package(s):" in result.output

    def test_install_by_number(self, invoke, settings):
        result = invoke("ui", input="1\nfoo\ny\n10\n")
        assert result.exit_code == 0
        assert "✔ Package foo installed" in result.output
        assert (settings.registry_root / "foo").is_dir()

    def test_error_keeps_loop_running(self, invoke):
        result = invoke("ui", input="update\nfoo\nrefresh\nexit\n")
        assert result.exit_code == 0
        assert "✖ Package foo is not installed" in result.output
        assert "Package list refreshed: 3 packages" in result.output

    def test_unknown_choice_and_eof(self, invoke):
        result = invoke("ui", input="dance\n")
        assert result.exit_code == 0
        assert "Unknown choice: dance" in result.output

    def test_autoremove_failure_shown(self, invoke, settings):
        settings.scratch_path.mkdir(parents=True)
        result = invoke("ui", input="autoremove\nexit\n")

        assert result.exit_code == 0
        assert f"✖ Failed to remove {settings.scratch_path}" in result.output
        assert "temporary file(s)" not in result.output
