# ABOUTME: FastMCP server initialization and main entry point
# ABOUTME: Exposes Laravel Cloud operations as MCP tools backed by one CloudClient

"""Laravel Cloud MCP Server - manage Laravel Cloud from an AI agent."""

from __future__ import annotations

import json
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Literal

import structlog
from mcp.server.fastmcp import Context, FastMCP
from pydantic import BaseModel, Field, ValidationError

from laravel_cloud_mcp.config import ServerSettings, load_settings
from laravel_cloud_mcp.utils.client import CloudClient, CloudError
from laravel_cloud_mcp.utils.logging import AuditLogger, configure_logging, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from laravel_cloud_mcp.resources import Resource

MCPContext = Context[Any, Any]
logger = structlog.get_logger(__name__)

# Global state (initialized in lifespan)
_settings: ServerSettings | None = None
_client: CloudClient | None = None
_audit_logger: AuditLogger | None = None

Region = Literal[
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


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage server lifecycle: load config, open the API client, close it on shutdown."""
    global _settings, _client, _audit_logger

    _settings = load_settings()
    configure_logging(level=_settings.log_level, json_output=_settings.json_logs)
    _audit_logger = AuditLogger(_settings.audit_log)

    logger.info("Starting Laravel Cloud MCP Server", server=server.name)

    _client = CloudClient(_settings.connection)
    await _client.__aenter__()
    logger.info("Connected to Laravel Cloud API", url=_settings.api_url)

    try:
        yield {"settings": _settings, "client": _client}
    finally:
        await _client.__aexit__(None, None, None)
        _client = None
        logger.info("Laravel Cloud MCP Server stopped")


mcp = FastMCP("laravel-cloud", lifespan=lifespan)


def get_client() -> CloudClient:
    """Get the Laravel Cloud API client."""
    if not _client:
        raise RuntimeError("Server not initialized")
    return _client


def get_settings() -> ServerSettings:
    """Get server settings."""
    if not _settings:
        raise RuntimeError("Server not initialized")
    return _settings


def get_audit_logger() -> AuditLogger:
    """Get audit logger for recording operations."""
    if not _audit_logger:
        raise RuntimeError("Server not initialized")
    return _audit_logger


# =============================================================================
# RESULT FORMATTING
# =============================================================================
#
# Tools answer with indented JSON. A resource is projected to
# {"id": ..., "type": ..., **attributes}; relationships and the included
# set are not part of the projection.


def format_resource(resource: Resource) -> str:
    return json.dumps(resource.to_dict(), indent=2)


def format_resources(resources: Sequence[Resource]) -> str:
    return json.dumps([resource.to_dict() for resource in resources], indent=2)


def format_document(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2)


# =============================================================================
# SHARED PARAMETERS
# =============================================================================


class ApplicationIdParams(BaseModel):
    """Parameters for tools addressing one application."""

    application_id: str = Field(description="The application ID")


class EnvironmentIdParams(BaseModel):
    """Parameters for tools addressing one environment."""

    environment_id: str = Field(description="The environment ID")


# =============================================================================
# APPLICATIONS
# =============================================================================


@mcp.tool()
async def list_applications(ctx: MCPContext) -> str:
    """List all Laravel Cloud applications in your organization."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        apps = await get_client().list_applications()
        get_audit_logger().log_read("list_applications", "all")
        return format_resources(apps)

    except CloudError as e:
        get_audit_logger().log_error("list_applications", "all", str(e), e.status_code)
        return str(e)


@mcp.tool()
async def get_application(params: ApplicationIdParams, ctx: MCPContext) -> str:
    """Get details of a specific Laravel Cloud application."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        app = await get_client().get_application(params.application_id)
        get_audit_logger().log_read("get_application", params.application_id)
        return format_resource(app)

    except CloudError as e:
        get_audit_logger().log_error(
            "get_application", params.application_id, str(e), e.status_code
        )
        return str(e)


class CreateApplicationParams(BaseModel):
    """Parameters for create_application tool."""

    name: str = Field(description="Application name (3-40 characters)")
    repository: str = Field(description="GitHub repository (e.g., 'owner/repo')")
    region: Region = Field(description="Cloud region (e.g., 'us-east-1', 'eu-west-1')")


@mcp.tool()
async def create_application(params: CreateApplicationParams, ctx: MCPContext) -> str:
    """
    Create a new Laravel Cloud application.

    The application is created from a GitHub repository in the given region.
    Its default environment is provisioned by Laravel Cloud.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        app = await get_client().create_application(params.model_dump())
        get_audit_logger().log_write(
            "create_application",
            params.name,
            "success",
            {"repository": params.repository, "region": params.region},
        )
        return format_resource(app)

    except CloudError as e:
        get_audit_logger().log_error("create_application", params.name, str(e), e.status_code)
        return str(e)


# =============================================================================
# ENVIRONMENTS
# =============================================================================


@mcp.tool()
async def list_environments(params: ApplicationIdParams, ctx: MCPContext) -> str:
    """List all environments for an application."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        envs = await get_client().list_environments(params.application_id)
        get_audit_logger().log_read("list_environments", f"application={params.application_id}")
        return format_resources(envs)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_environments", f"application={params.application_id}", str(e), e.status_code
        )
        return str(e)


@mcp.tool()
async def get_environment(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """Get details of a specific environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        env = await get_client().get_environment(params.environment_id)
        get_audit_logger().log_read("get_environment", params.environment_id)
        return format_resource(env)

    except CloudError as e:
        get_audit_logger().log_error(
            "get_environment", params.environment_id, str(e), e.status_code
        )
        return str(e)


@mcp.tool()
async def start_environment(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """Start a stopped environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        await ctx.report_progress(0, 1, f"Starting environment {params.environment_id}")
        env = await get_client().start_environment(params.environment_id)
        await ctx.report_progress(1, 1, "Start requested")

        get_audit_logger().log_write("start_environment", params.environment_id, "initiated")
        return format_resource(env)

    except CloudError as e:
        get_audit_logger().log_error(
            "start_environment", params.environment_id, str(e), e.status_code
        )
        return str(e)


@mcp.tool()
async def stop_environment(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """Stop a running environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        await ctx.report_progress(0, 1, f"Stopping environment {params.environment_id}")
        env = await get_client().stop_environment(params.environment_id)
        await ctx.report_progress(1, 1, "Stop requested")

        get_audit_logger().log_write("stop_environment", params.environment_id, "initiated")
        return format_resource(env)

    except CloudError as e:
        get_audit_logger().log_error(
            "stop_environment", params.environment_id, str(e), e.status_code
        )
        return str(e)


class EnvironmentVariable(BaseModel):
    key: str = Field(description="Variable name")
    value: str = Field(description="Variable value")


class AddEnvironmentVariablesParams(BaseModel):
    """Parameters for add_environment_variables tool."""

    environment_id: str = Field(description="The environment ID")
    variables: list[EnvironmentVariable] = Field(description="Array of variables to add")
    method: Literal["set", "append"] = Field(
        default="set",
        description="Insert method: 'set' (update existing) or 'append' (add without checking)",
    )


@mcp.tool()
async def add_environment_variables(
    params: AddEnvironmentVariablesParams, ctx: MCPContext
) -> str:
    """
    Add or update environment variables.

    With method='set', keys that already exist are updated in place.
    With method='append', variables are added without checking for
    existing keys.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        env = await get_client().add_environment_variables(
            params.environment_id,
            [variable.model_dump() for variable in params.variables],
            method=params.method,
        )
        # Only key names are audited; values may be secrets.
        get_audit_logger().log_write(
            "add_environment_variables",
            params.environment_id,
            "success",
            {"method": params.method, "keys": [v.key for v in params.variables]},
        )
        return format_resource(env)

    except CloudError as e:
        get_audit_logger().log_error(
            "add_environment_variables", params.environment_id, str(e), e.status_code
        )
        return str(e)


# =============================================================================
# DEPLOYMENTS
# =============================================================================


@mcp.tool()
async def list_deployments(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """List deployments for an environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        deployments = await get_client().list_deployments(params.environment_id)
        get_audit_logger().log_read("list_deployments", f"environment={params.environment_id}")
        return format_resources(deployments)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_deployments", f"environment={params.environment_id}", str(e), e.status_code
        )
        return str(e)


class DeploymentIdParams(BaseModel):
    """Parameters for get_deployment tool."""

    deployment_id: str = Field(description="The deployment ID")


@mcp.tool()
async def get_deployment(params: DeploymentIdParams, ctx: MCPContext) -> str:
    """Get details of a specific deployment, including its status."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        deployment = await get_client().get_deployment(params.deployment_id)
        get_audit_logger().log_read("get_deployment", params.deployment_id)
        return format_resource(deployment)

    except CloudError as e:
        get_audit_logger().log_error("get_deployment", params.deployment_id, str(e), e.status_code)
        return str(e)


@mcp.tool()
async def create_deployment(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """
    Trigger a new deployment for an environment.

    Deployments run asynchronously. Poll get_deployment with the returned
    ID to follow the build and deploy phases.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        await ctx.report_progress(0, 1, f"Triggering deployment of {params.environment_id}")
        deployment = await get_client().create_deployment(params.environment_id)
        await ctx.report_progress(1, 1, "Deployment triggered")

        get_audit_logger().log_write(
            "create_deployment",
            params.environment_id,
            "initiated",
            {"deployment_id": deployment.id},
        )
        return format_resource(deployment)

    except CloudError as e:
        get_audit_logger().log_error(
            "create_deployment", params.environment_id, str(e), e.status_code
        )
        return str(e)


# =============================================================================
# COMMANDS
# =============================================================================


class RunCommandParams(BaseModel):
    """Parameters for run_command tool."""

    environment_id: str = Field(description="The environment ID")
    command: str = Field(description="The command to run (e.g., 'php artisan migrate')")


@mcp.tool()
async def run_command(params: RunCommandParams, ctx: MCPContext) -> str:
    """
    Run an artisan or shell command on an environment.

    The command runs asynchronously. Use get_command with the returned ID
    to read its output and exit code once it finishes.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        command = await get_client().run_command(params.environment_id, params.command)
        get_audit_logger().log_write(
            "run_command",
            params.environment_id,
            "initiated",
            {"command": params.command},
        )
        return format_resource(command)

    except CloudError as e:
        get_audit_logger().log_error("run_command", params.environment_id, str(e), e.status_code)
        return str(e)


class CommandIdParams(BaseModel):
    """Parameters for get_command tool."""

    command_id: str = Field(description="The command ID")


@mcp.tool()
async def get_command(params: CommandIdParams, ctx: MCPContext) -> str:
    """Get the status and output of a command."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        command = await get_client().get_command(params.command_id)
        get_audit_logger().log_read("get_command", params.command_id)
        return format_resource(command)

    except CloudError as e:
        get_audit_logger().log_error("get_command", params.command_id, str(e), e.status_code)
        return str(e)


@mcp.tool()
async def list_commands(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """List recent commands for an environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        commands = await get_client().list_commands(params.environment_id)
        get_audit_logger().log_read("list_commands", f"environment={params.environment_id}")
        return format_resources(commands)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_commands", f"environment={params.environment_id}", str(e), e.status_code
        )
        return str(e)


# =============================================================================
# INSTANCES AND BACKGROUND PROCESSES
# =============================================================================


@mcp.tool()
async def list_instances(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """List compute instances for an environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        instances = await get_client().list_instances(params.environment_id)
        get_audit_logger().log_read("list_instances", f"environment={params.environment_id}")
        return format_resources(instances)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_instances", f"environment={params.environment_id}", str(e), e.status_code
        )
        return str(e)


class InstanceIdParams(BaseModel):
    """Parameters for tools addressing one instance."""

    instance_id: str = Field(description="The instance ID")


@mcp.tool()
async def get_instance(params: InstanceIdParams, ctx: MCPContext) -> str:
    """Get size and scaling details of a compute instance."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        instance = await get_client().get_instance(params.instance_id)
        get_audit_logger().log_read("get_instance", params.instance_id)
        return format_resource(instance)

    except CloudError as e:
        get_audit_logger().log_error("get_instance", params.instance_id, str(e), e.status_code)
        return str(e)


@mcp.tool()
async def list_background_processes(params: InstanceIdParams, ctx: MCPContext) -> str:
    """List queue workers and daemons running on an instance."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        processes = await get_client().list_background_processes(params.instance_id)
        get_audit_logger().log_read(
            "list_background_processes", f"instance={params.instance_id}"
        )
        return format_resources(processes)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_background_processes", f"instance={params.instance_id}", str(e), e.status_code
        )
        return str(e)


# =============================================================================
# DOMAINS
# =============================================================================


@mcp.tool()
async def list_domains(params: EnvironmentIdParams, ctx: MCPContext) -> str:
    """List domains for an environment."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        domains = await get_client().list_domains(params.environment_id)
        get_audit_logger().log_read("list_domains", f"environment={params.environment_id}")
        return format_resources(domains)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_domains", f"environment={params.environment_id}", str(e), e.status_code
        )
        return str(e)


class CreateDomainParams(BaseModel):
    """Parameters for create_domain tool."""

    environment_id: str = Field(description="The environment ID")
    domain: str = Field(description="The domain name (e.g., 'app.example.com')")


@mcp.tool()
async def create_domain(params: CreateDomainParams, ctx: MCPContext) -> str:
    """
    Add a custom domain to an environment.

    The response lists the DNS records to create. Run verify_domain once
    they are in place.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        domain = await get_client().create_domain(params.environment_id, {"domain": params.domain})
        get_audit_logger().log_write(
            "create_domain", params.environment_id, "success", {"domain": params.domain}
        )
        return format_resource(domain)

    except CloudError as e:
        get_audit_logger().log_error("create_domain", params.environment_id, str(e), e.status_code)
        return str(e)


class DomainIdParams(BaseModel):
    """Parameters for verify_domain tool."""

    domain_id: str = Field(description="The domain ID")


@mcp.tool()
async def verify_domain(params: DomainIdParams, ctx: MCPContext) -> str:
    """Verify DNS configuration for a domain."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        domain = await get_client().verify_domain(params.domain_id)
        get_audit_logger().log_write("verify_domain", params.domain_id, "success")
        return format_resource(domain)

    except CloudError as e:
        get_audit_logger().log_error("verify_domain", params.domain_id, str(e), e.status_code)
        return str(e)


# =============================================================================
# DATA SERVICES
# =============================================================================


@mcp.tool()
async def list_database_clusters(ctx: MCPContext) -> str:
    """List all database clusters."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        clusters = await get_client().list_database_clusters()
        get_audit_logger().log_read("list_database_clusters", "all")
        return format_resources(clusters)

    except CloudError as e:
        get_audit_logger().log_error("list_database_clusters", "all", str(e), e.status_code)
        return str(e)


class DatabaseClusterIdParams(BaseModel):
    """Parameters for list_databases tool."""

    cluster_id: str = Field(description="The database cluster ID")


@mcp.tool()
async def list_databases(params: DatabaseClusterIdParams, ctx: MCPContext) -> str:
    """List the databases (schemas) inside a database cluster."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        databases = await get_client().list_databases(params.cluster_id)
        get_audit_logger().log_read("list_databases", f"cluster={params.cluster_id}")
        return format_resources(databases)

    except CloudError as e:
        get_audit_logger().log_error(
            "list_databases", f"cluster={params.cluster_id}", str(e), e.status_code
        )
        return str(e)


@mcp.tool()
async def list_caches(ctx: MCPContext) -> str:
    """List all cache instances (Redis)."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        caches = await get_client().list_caches()
        get_audit_logger().log_read("list_caches", "all")
        return format_resources(caches)

    except CloudError as e:
        get_audit_logger().log_error("list_caches", "all", str(e), e.status_code)
        return str(e)


@mcp.tool()
async def list_buckets(ctx: MCPContext) -> str:
    """List all object storage buckets."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        buckets = await get_client().list_buckets()
        get_audit_logger().log_read("list_buckets", "all")
        return format_resources(buckets)

    except CloudError as e:
        get_audit_logger().log_error("list_buckets", "all", str(e), e.status_code)
        return str(e)


# =============================================================================
# META
# =============================================================================


@mcp.tool()
async def list_regions(ctx: MCPContext) -> str:
    """List available Laravel Cloud regions."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        regions = await get_client().list_regions()
        get_audit_logger().log_read("list_regions", "all")
        return format_document(regions)

    except CloudError as e:
        get_audit_logger().log_error("list_regions", "all", str(e), e.status_code)
        return str(e)


@mcp.tool()
async def list_ip_addresses(ctx: MCPContext) -> str:
    """Get IP addresses to whitelist for database access."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        ips = await get_client().list_ip_addresses()
        get_audit_logger().log_read("list_ip_addresses", "all")
        return format_document(ips)

    except CloudError as e:
        get_audit_logger().log_error("list_ip_addresses", "all", str(e), e.status_code)
        return str(e)


# =============================================================================
# MCP RESOURCES
# =============================================================================


@mcp.resource("laravel-cloud://connection")
async def get_connection_resource() -> str:
    """Get the API connection settings. The token itself is never shown."""
    settings = get_settings()

    return (
        "Laravel Cloud Connection:\n"
        f"  Server name: {mcp.name}\n"
        f"  API URL: {settings.api_url}\n"
        f"  Token configured: {settings.has_token}\n"
        f"  Timeout: {settings.timeout}s\n"
        f"  Retries: {settings.retry_times} attempts, {settings.retry_sleep}ms apart"
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main() -> None:
    """Run the Laravel Cloud MCP server."""
    configure_logging(level="INFO")

    try:
        settings = load_settings()
    except ValidationError as e:
        logger.error("Invalid configuration", error=str(e))
        sys.exit(1)

    if not settings.has_token:
        logger.error("LARAVEL_CLOUD_API_TOKEN environment variable is required")
        sys.exit(1)

    logger.info("Laravel Cloud MCP Server starting")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
