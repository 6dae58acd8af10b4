# ABOUTME: Pytest fixtures and configuration for Laravel Cloud MCP tests
# ABOUTME: Provides sample JSON:API documents, connections and mocked clients

import os
from typing import Any, AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from laravel_cloud_mcp.config import CloudConnection, ServerSettings
from laravel_cloud_mcp.resources import Application, Deployment, Environment, build_resource
from laravel_cloud_mcp.utils.client import CloudClient

BASE_URL = "https://cloud.example.com/api"


@pytest.fixture
def connection() -> CloudConnection:
    """Connection with retries enabled but no delay between attempts."""
    return CloudConnection(
        api_url=BASE_URL,
        api_token=SecretStr("test-token"),
        timeout=5,
        retry_times=3,
        retry_sleep=0,
    )


@pytest.fixture
def mock_server_settings() -> ServerSettings:
    """Create mock server settings."""
    return ServerSettings(
        api_token=SecretStr("test-token"),
        api_url=BASE_URL,
        retry_sleep=0,
    )


@pytest.fixture
def application_document() -> dict[str, Any]:
    """An application with its environments and repository sideloaded."""
    return {
        "data": {
            "id": "app-1",
            "type": "applications",
            "attributes": {
                "name": "Shop",
                "slug": "shop",
                "region": "us-east-1",
                "created_at": "2025-01-10T09:00:00Z",
            },
            "relationships": {
                "repository": {"data": {"type": "repositories", "id": "repo-1"}},
                "environments": {
                    "data": [
                        {"type": "environments", "id": "env-1"},
                        {"type": "environments", "id": "env-2"},
                    ]
                },
            },
        },
        "included": [
            {
                "id": "env-1",
                "type": "environments",
                "attributes": {"name": "production", "status": "running"},
                "relationships": {
                    "application": {"data": {"type": "applications", "id": "app-1"}},
                    "instances": {"data": [{"type": "instances", "id": "inst-1"}]},
                },
            },
            {
                "id": "env-2",
                "type": "environments",
                "attributes": {"name": "staging", "status": "stopped"},
            },
            {
                "id": "repo-1",
                "type": "repositories",
                "attributes": {"full_name": "acme/shop", "default_branch": "main"},
            },
            {
                "id": "inst-1",
                "type": "instances",
                "attributes": {
                    "name": "web",
                    "type": "app",
                    "size": "flex.c-1vcpu-512mb",
                    "scaling_type": "auto",
                },
                "relationships": {
                    "environment": {"data": {"type": "environments", "id": "env-1"}},
                },
            },
        ],
    }


@pytest.fixture
def sample_application(application_document: dict[str, Any]) -> Application:
    return build_resource(application_document, Application)


@pytest.fixture
def sample_environment() -> Environment:
    return build_resource(
        {
            "data": {
                "id": "env-1",
                "type": "environments",
                "attributes": {"name": "production", "status": "running", "branch": "main"},
            }
        },
        Environment,
    )


@pytest.fixture
def sample_deployment() -> Deployment:
    return build_resource(
        {
            "data": {
                "id": "dep-1",
                "type": "deployments",
                "attributes": {"status": "deployment.succeeded", "branch_name": "main"},
            }
        },
        Deployment,
    )


@pytest.fixture
def mock_cloud_client(
    sample_application: Application,
    sample_environment: Environment,
    sample_deployment: Deployment,
) -> AsyncMock:
    """Create a mock Laravel Cloud client."""
    client = AsyncMock(spec=CloudClient)

    # Configure default responses
    client.list_applications.return_value = [sample_application]
    client.get_application.return_value = sample_application
    client.get_environment.return_value = sample_environment
    client.start_environment.return_value = sample_environment
    client.list_deployments.return_value = [sample_deployment]
    client.create_deployment.return_value = sample_deployment
    client.list_regions.return_value = {"data": [{"id": "us-east-1", "name": "US East"}]}

    return client


@pytest.fixture
def mock_context() -> MagicMock:
    """Create a mock MCP context."""
    ctx = MagicMock()
    ctx.request_id = "test-request-123"
    ctx.report_progress = AsyncMock()
    return ctx


# Integration test fixtures


@pytest.fixture
def cloud_token() -> str | None:
    """Get Laravel Cloud API token from environment."""
    return os.environ.get("LARAVEL_CLOUD_API_TOKEN")


@pytest.fixture
async def live_cloud_client(cloud_token: str | None) -> AsyncIterator[CloudClient | None]:
    """Create a live Laravel Cloud client for integration tests."""
    if not cloud_token:
        yield None
        return

    connection = CloudConnection(
        api_url=os.environ.get("LARAVEL_CLOUD_API_URL", "https://cloud.laravel.com/api"),
        api_token=SecretStr(cloud_token),
    )

    async with CloudClient(connection) as client:
        yield client
