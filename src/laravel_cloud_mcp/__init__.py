# ABOUTME: Laravel Cloud client and MCP server package initialization
# ABOUTME: Exposes version information and the SDK entry points

"""
Laravel Cloud - async SDK and Model Context Protocol server.

=============================================================================
WHAT IS LARAVEL CLOUD?
=============================================================================

Laravel Cloud is a managed hosting platform for Laravel applications. Its
REST API manages:

- APPLICATIONS built from a Git repository, in one region
- ENVIRONMENTS per application (production, staging, ...), each with
  compute INSTANCES, BACKGROUND PROCESSES, DOMAINS and variables
- DEPLOYMENTS and one-off COMMANDS (artisan or shell) on an environment
- DATA SERVICES: database clusters, caches, object storage buckets

Responses are JSON:API documents, parsed into typed resources that can
walk their relationships without further requests.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

laravel_cloud_mcp/
├── __init__.py          <- Package entry point
├── config.py            <- Connection and server settings (env vars)
├── server.py            <- MCP server with all tools defined
├── resources/
│   ├── base.py          <- Resource, build_resource, build_collection
│   ├── compute.py       <- Applications, environments, deployments, ...
│   └── storage.py       <- Databases, caches, buckets
└── utils/
    ├── client.py        <- Async HTTP client for the Laravel Cloud API
    └── logging.py       <- Structured logging with audit trails

Example:
    >>> from laravel_cloud_mcp import CloudClient, CloudConnection
    >>> async with CloudClient(CloudConnection(api_token="...")) as client:
    ...     apps = await client.list_applications()
"""

from laravel_cloud_mcp.config import CloudConnection
from laravel_cloud_mcp.utils.client import (
    AuthenticationError,
    CloudClient,
    CloudError,
    NotFoundError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "CloudClient",
    "CloudConnection",
    "CloudError",
    "NotFoundError",
    "ValidationError",
    "__version__",
]
