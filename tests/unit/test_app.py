"""
Unit tests for connector assembly and the command line.
"""

from types import SimpleNamespace

import pytest

from brickmesh import cli
from brickmesh.app import build_connector
from brickmesh.config import ConnectorSettings
from brickmesh.models import OperationType
from brickmesh.results import ExecutionResult, SyncResult
from tests.fixtures import WORKSPACE_HOST, FakeRegistryClient


@pytest.fixture
def sdk_client() -> SimpleNamespace:
    return SimpleNamespace(config=SimpleNamespace(host=WORKSPACE_HOST))


class TestBuildConnector:
    def test_all_disabled(self, sdk_client, state_store) -> None:
        connector = build_connector(
            ConnectorSettings(), workspace_client=sdk_client, registry_client=FakeRegistryClient(), state_store=state_store,
        )

        assert connector.synchronizer is None
        assert connector.sync_scheduler is None
        assert connector.orchestrator is None
        assert connector.listener is None

    def test_both_jobs_enabled(self, sdk_client, state_store) -> None:
        settings = ConnectorSettings.model_validate({
            "workspace": {"host": "dbc-1234.cloud.databricks.com"},
            "assets": {"enabled": True, "connector_id": "acme-assets", "include_catalog_assets": True},
            "access_management": {
                "enabled": True,
                "max_workers": 2,
                "mapping": {"data_product": {"custom_field": "databricksServicePrincipal"}},
            },
        })

        connector = build_connector(
            settings, workspace_client=sdk_client, registry_client=FakeRegistryClient(), state_store=state_store,
        )

        assert connector.workspace.get_workspace_host() == WORKSPACE_HOST
        assert connector.synchronizer.connector_id == "acme-assets"
        assert connector.synchronizer.include_catalog_assets is True
        assert connector.orchestrator.data_product_principal_field == "databricksServicePrincipal"
        assert connector.listener.connector_id == "databricks-access-management"
        assert connector.listener.max_workers == 2

    def test_account_groups(self, sdk_client, state_store) -> None:
        account_client = SimpleNamespace(groups=object())
        connector = build_connector(
            ConnectorSettings(),
            workspace_client=sdk_client,
            account_client=account_client,
            registry_client=FakeRegistryClient(),
            state_store=state_store,
        )

        assert connector.workspace.account_client is account_client

    def test_close_releases_registry(self, sdk_client, state_store) -> None:
        registry = FakeRegistryClient()
        connector = build_connector(
            ConnectorSettings(), workspace_client=sdk_client, registry_client=registry, state_store=state_store,
        )

        connector.start()
        connector.stop()
        assert registry.closed is False

        connector.close()
        assert registry.close_count == 1


class TestCli:
    @pytest.fixture
    def fake_connector(self, monkeypatch):
        registry = FakeRegistryClient()
        connector = SimpleNamespace(
            registry=registry,
            close=registry.close,
            synchronizer=SimpleNamespace(run=lambda: SyncResult(watermark_before=0, watermark_after=100)),
            orchestrator=SimpleNamespace(
                activate=lambda access_id: ExecutionResult(True, OperationType.GRANT, "Access", access_id, "ok"),
                deactivate=lambda access_id: ExecutionResult(True, OperationType.REVOKE, "Access", access_id, "ok"),
            ),
        )
        built = []

        def fake_build(settings):
            built.append(settings)
            return connector

        monkeypatch.setattr(cli, "build_connector", fake_build)
        connector.built = built
        return connector

    def test_missing_config(self, tmp_path, capsys) -> None:
        assert cli.main(["--config", str(tmp_path / "missing.yaml"), "sync"]) == 2
        assert "Configuration file not found" in capsys.readouterr().err

    def test_sync_prints_summary(self, fake_connector, capsys) -> None:
        assert cli.main(["sync"]) == 0

        assert "Watermark: 0 -> 100" in capsys.readouterr().out
        assert fake_connector.built[0].assets.enabled is True
        assert fake_connector.registry.closed is True

    def test_activate(self, fake_connector, capsys) -> None:
        assert cli.main(["activate", "g1"]) == 0

        assert "[OK] GRANT Access g1" in capsys.readouterr().out
        assert fake_connector.built[0].access_management.enabled is True

    def test_deactivate(self, fake_connector, capsys) -> None:
        assert cli.main(["deactivate", "g1"]) == 0
        assert "[OK] REVOKE Access g1" in capsys.readouterr().out

    def test_unresolved_authentication(self, monkeypatch, capsys) -> None:
        def failing_build(settings):
            raise ValueError("default auth: cannot configure default credentials")

        monkeypatch.setattr(cli, "build_connector", failing_build)

        assert cli.main(["sync"]) == 2
        assert "Error: default auth: cannot configure default credentials" in capsys.readouterr().err

    def test_run_closes_registry_once(self, monkeypatch, sdk_client, state_store) -> None:
        """Interrupting a long-running command stops the jobs and closes the registry a single time."""
        registry = FakeRegistryClient()
        connector = build_connector(
            ConnectorSettings(), workspace_client=sdk_client, registry_client=registry, state_store=state_store,
        )

        class InterruptedEvent:
            def wait(self, timeout=None):
                raise KeyboardInterrupt

        monkeypatch.setattr(cli, "build_connector", lambda settings: connector)
        monkeypatch.setattr(cli, "threading", SimpleNamespace(Event=InterruptedEvent))

        assert cli.main(["run"]) == 0
        assert registry.close_count == 1
