# ABOUTME: Unit tests for the Laravel Cloud MCP server module
# ABOUTME: Tests tool results, error reporting, audit calls and the entry point

"""Unit tests for server.py covering the MCP tools and lifecycle helpers."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from laravel_cloud_mcp import server
from laravel_cloud_mcp.config import ServerSettings
from laravel_cloud_mcp.resources import Command, Domain, build_collection
from laravel_cloud_mcp.utils.client import AuthenticationError, NotFoundError
from laravel_cloud_mcp.utils.logging import AuditLogger

TOOL_NAMES = {
    "list_applications",
    "get_application",
    "create_application",
    "list_environments",
    "get_environment",
    "start_environment",
    "stop_environment",
    "add_environment_variables",
    "list_deployments",
    "get_deployment",
    "create_deployment",
    "run_command",
    "get_command",
    "list_commands",
    "list_instances",
    "get_instance",
    "list_background_processes",
    "list_domains",
    "create_domain",
    "verify_domain",
    "list_database_clusters",
    "list_databases",
    "list_caches",
    "list_buckets",
    "list_regions",
    "list_ip_addresses",
}


@pytest.fixture
def server_with_mocks(
    mock_cloud_client: AsyncMock,
    mock_server_settings: ServerSettings,
    mock_context: MagicMock,
):
    """Setup server module with mocks for testing tools."""
    original_client = server._client
    original_settings = server._settings
    original_logger = server._audit_logger

    server._client = mock_cloud_client
    server._settings = mock_server_settings
    server._audit_logger = MagicMock(spec=AuditLogger)

    yield {
        "client": mock_cloud_client,
        "logger": server._audit_logger,
        "ctx": mock_context,
    }

    server._client = original_client
    server._settings = original_settings
    server._audit_logger = original_logger


@pytest.mark.unit
class TestHelpers:
    """Tests for the global state accessors."""

    def test_get_client_raises_if_not_initialized(self):
        with patch.object(server, "_client", None):
            with pytest.raises(RuntimeError, match="Server not initialized"):
                server.get_client()

    def test_get_settings_raises_if_not_initialized(self):
        with patch.object(server, "_settings", None):
            with pytest.raises(RuntimeError, match="Server not initialized"):
                server.get_settings()

    def test_get_audit_logger_raises_if_not_initialized(self):
        with patch.object(server, "_audit_logger", None):
            with pytest.raises(RuntimeError, match="Server not initialized"):
                server.get_audit_logger()

    def test_accessors_return_state(self, server_with_mocks: dict[str, Any]):
        assert server.get_client() is server_with_mocks["client"]
        assert server.get_audit_logger() is server_with_mocks["logger"]


@pytest.mark.unit
class TestToolRegistry:
    """Tests against the FastMCP registry itself."""

    async def test_catalog(self):
        tools = await server.mcp.list_tools()

        assert {tool.name for tool in tools} == TOOL_NAMES

    async def test_unknown_tool(self):
        with pytest.raises(ToolError, match="Unknown tool"):
            await server.mcp.call_tool("delete_everything", {})

    def test_region_schema_is_closed(self):
        schema = server.CreateApplicationParams.model_json_schema()

        assert schema["properties"]["region"]["enum"] == [
            "us-east-2",
            "us-east-1",
            "eu-central-1",
            "eu-west-1",
            "eu-west-2",
            "ap-southeast-1",
            "ap-southeast-2",
            "ca-central-1",
            "me-central-1",
        ]

    def test_unknown_region_rejected(self):
        with pytest.raises(PydanticValidationError):
            server.CreateApplicationParams(name="shop", repository="acme/shop", region="mars-1")

    def test_variable_method_defaults_to_set(self):
        params = server.AddEnvironmentVariablesParams(
            environment_id="env-1", variables=[{"key": "A", "value": "1"}]
        )
        assert params.method == "set"

    def test_variable_method_is_closed(self):
        with pytest.raises(PydanticValidationError):
            server.AddEnvironmentVariablesParams(
                environment_id="env-1", variables=[], method="prepend"
            )


@pytest.mark.unit
class TestApplicationTools:
    async def test_list_applications(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(await server.list_applications(mocks["ctx"]))

        assert result == [
            {
                "id": "app-1",
                "type": "applications",
                "name": "Shop",
                "slug": "shop",
                "region": "us-east-1",
                "created_at": "2025-01-10T09:00:00Z",
            }
        ]
        mocks["logger"].log_read.assert_called_once_with("list_applications", "all")

    async def test_get_application(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(
            await server.get_application(
                server.ApplicationIdParams(application_id="app-1"), mocks["ctx"]
            )
        )

        assert result["id"] == "app-1"
        assert result["name"] == "Shop"
        mocks["client"].get_application.assert_awaited_once_with("app-1")

    async def test_get_application_not_found(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].get_application.side_effect = NotFoundError(status_code=404)

        result = await server.get_application(
            server.ApplicationIdParams(application_id="nope"), mocks["ctx"]
        )

        assert result == "Laravel Cloud API error (404): Resource not found"
        mocks["logger"].log_error.assert_called_once_with(
            "get_application", "nope", result, 404
        )

    async def test_list_applications_unauthenticated(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].list_applications.side_effect = AuthenticationError("Unauthenticated")

        result = await server.list_applications(mocks["ctx"])

        assert "Unauthenticated" in result
        assert "(401)" in result

    async def test_create_application(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].create_application.return_value = mocks["client"].get_application.return_value
        params = server.CreateApplicationParams(
            name="shop", repository="acme/shop", region="eu-west-1"
        )

        await server.create_application(params, mocks["ctx"])

        mocks["client"].create_application.assert_awaited_once_with(
            {"name": "shop", "repository": "acme/shop", "region": "eu-west-1"}
        )
        mocks["logger"].log_write.assert_called_once()


@pytest.mark.unit
class TestEnvironmentTools:
    async def test_start_environment_reports_progress(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(
            await server.start_environment(
                server.EnvironmentIdParams(environment_id="env-1"), mocks["ctx"]
            )
        )

        assert result["status"] == "running"
        assert mocks["ctx"].report_progress.await_count == 2
        mocks["logger"].log_write.assert_called_once_with("start_environment", "env-1", "initiated")

    async def test_add_environment_variables(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].add_environment_variables.return_value = (
            mocks["client"].get_environment.return_value
        )
        params = server.AddEnvironmentVariablesParams(
            environment_id="env-1",
            variables=[{"key": "STRIPE_SECRET", "value": "sk_live_123"}],
            method="append",
        )

        await server.add_environment_variables(params, mocks["ctx"])

        mocks["client"].add_environment_variables.assert_awaited_once_with(
            "env-1", [{"key": "STRIPE_SECRET", "value": "sk_live_123"}], method="append"
        )
        audited = mocks["logger"].log_write.call_args[0][3]
        assert audited == {"method": "append", "keys": ["STRIPE_SECRET"]}
        assert "sk_live_123" not in json.dumps(audited)


@pytest.mark.unit
class TestDeploymentAndCommandTools:
    async def test_create_deployment(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(
            await server.create_deployment(
                server.EnvironmentIdParams(environment_id="env-1"), mocks["ctx"]
            )
        )

        assert result["id"] == "dep-1"
        mocks["logger"].log_write.assert_called_once_with(
            "create_deployment", "env-1", "initiated", {"deployment_id": "dep-1"}
        )

    async def test_list_deployments(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(
            await server.list_deployments(
                server.EnvironmentIdParams(environment_id="env-1"), mocks["ctx"]
            )
        )

        assert [d["status"] for d in result] == ["deployment.succeeded"]

    async def test_run_command(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].run_command.return_value = Command(
            {"id": "cmd-1", "type": "commands", "attributes": {"status": "pending"}}
        )
        params = server.RunCommandParams(environment_id="env-1", command="php artisan migrate")

        result = json.loads(await server.run_command(params, mocks["ctx"]))

        assert result == {"id": "cmd-1", "type": "commands", "status": "pending"}
        mocks["client"].run_command.assert_awaited_once_with("env-1", "php artisan migrate")


@pytest.mark.unit
class TestOtherTools:
    async def test_create_domain(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].create_domain.return_value = Domain(
            {"id": "dom-1", "type": "domains", "attributes": {"domain": "shop.example.com"}}
        )
        params = server.CreateDomainParams(environment_id="env-1", domain="shop.example.com")

        result = json.loads(await server.create_domain(params, mocks["ctx"]))

        assert result["domain"] == "shop.example.com"
        mocks["client"].create_domain.assert_awaited_once_with(
            "env-1", {"domain": "shop.example.com"}
        )

    async def test_list_background_processes_projects_wire_type(
        self, server_with_mocks: dict[str, Any]
    ):
        mocks = server_with_mocks
        mocks["client"].list_background_processes.return_value = build_collection(
            {"data": [{"id": "bp-1", "type": "background_processes", "attributes": {"type": "worker"}}]}
        )

        result = json.loads(
            await server.list_background_processes(
                server.InstanceIdParams(instance_id="inst-1"), mocks["ctx"]
            )
        )

        # The projection carries the envelope type, as the merged attribute map does.
        assert result == [{"id": "bp-1", "type": "background_processes"}]

    async def test_list_regions_returns_raw_document(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks

        result = json.loads(await server.list_regions(mocks["ctx"]))

        assert result == {"data": [{"id": "us-east-1", "name": "US East"}]}

    async def test_empty_list(self, server_with_mocks: dict[str, Any]):
        mocks = server_with_mocks
        mocks["client"].list_caches.return_value = []

        assert json.loads(await server.list_caches(mocks["ctx"])) == []


@pytest.mark.unit
class TestConnectionResource:
    async def test_token_never_shown(self, server_with_mocks: dict[str, Any]):
        result = await server.get_connection_resource()

        assert "Token configured: True" in result
        assert "test-token" not in result
        assert "https://cloud.example.com/api" in result
        assert "Server name: laravel-cloud" in result


@pytest.mark.unit
class TestMain:
    def test_exits_without_token(self):
        with (
            patch.object(server, "configure_logging"),
            patch.object(server, "load_settings", return_value=ServerSettings(api_token=None)),
            patch.object(server.mcp, "run") as mock_run,
        ):
            with pytest.raises(SystemExit) as exc_info:
                server.main()

        assert exc_info.value.code == 1
        mock_run.assert_not_called()

    def test_runs_with_token(self):
        settings = ServerSettings(api_token=SecretStr("t"))
        with (
            patch.object(server, "configure_logging"),
            patch.object(server, "load_settings", return_value=settings),
            patch.object(server.mcp, "run") as mock_run,
        ):
            server.main()

        mock_run.assert_called_once()

    def test_keyboard_interrupt_exits_cleanly(self):
        settings = ServerSettings(api_token=SecretStr("t"))
        with (
            patch.object(server, "configure_logging"),
            patch.object(server, "load_settings", return_value=settings),
            patch.object(server.mcp, "run", side_effect=KeyboardInterrupt),
        ):
            with pytest.raises(SystemExit) as exc_info:
                server.main()

        assert exc_info.value.code == 0
