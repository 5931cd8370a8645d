"""
Tests for the command-line interface
"""

import pytest
from unittest.mock import patch

from sitepipe import cli
from sitepipe.services.deployment_store import JsonFileDeploymentStore


@pytest.fixture
def wired(orchestrator, tmp_path):
    orchestrator.deployment_store = JsonFileDeploymentStore(tmp_path / "deployments.json")
    with patch.object(cli, "build_orchestrator", return_value=orchestrator):
        yield orchestrator


class TestCli:

    def test_deploy_and_list(self, wired, tmp_path):
        page = tmp_path / "landing.html"
        page.write_text("<h1>Hi</h1>", encoding="utf-8")

        cli.main(["--user", "user-123", "deploy", str(page), "--service-name", "My Landing"])
        cli.main(["--user", "user-123", "list"])

        deployments = wired.deployment_store.list_for_owner("user-123")
        assert len(deployments) == 1
        assert deployments[0].service_name == "my-landing"

    def test_missing_content_file_exits(self, wired, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["deploy", str(tmp_path / "absent.html"), "--service-name", "site"])

        assert exc_info.value.code == 1

    def test_pipeline_error_exits_non_zero(self, wired, tmp_path):
        page = tmp_path / "landing.html"
        page.write_text("   ", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--user", "user-123", "deploy", str(page), "--service-name", "site"])

        assert exc_info.value.code == 1

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 0

    def test_build_orchestrator_uses_settings_tokens(self, settings, tmp_path):
        settings.github_token = "ghp_cli"
        settings.github_deploy_owner = "acme"
        settings.render_api_key = "rnd_cli"
        settings.deployment_store_path = str(tmp_path / "deployments.json")
        args = cli.argparse.Namespace(user="local")

        orchestrator = cli.build_orchestrator(args, settings)

        creds = orchestrator.credential_store.get("local")
        assert creds.missing_platforms() == []
        assert isinstance(orchestrator.deployment_store, JsonFileDeploymentStore)
