# ABOUTME: Laravel Cloud API client wrapper with retry logic and error handling
# ABOUTME: Provides async methods per endpoint returning typed JSON:API resources

"""
Laravel Cloud API client with retry logic and structured error handling.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the HTTP client for the Laravel Cloud REST API. It:

1. HTTP COMMUNICATION: one async method per endpoint
2. AUTHENTICATION: attaches the Bearer token when one is configured
3. ERROR HANDLING: maps failure statuses to a small exception hierarchy
4. RETRY LOGIC: retries transient failures with a fixed delay
5. PARSING: turns JSON:API documents into typed Resource views

=============================================================================
LARAVEL CLOUD API OVERVIEW
=============================================================================

    GET    /applications                        - List applications
    GET    /applications/{id}/environments      - List an application's environments
    POST   /environments/{id}/start             - Start an environment
    POST   /environments/{id}/commands          - Run a command
    POST   /domains/{id}/verify                 - Verify a domain's DNS
    ...

Requests carry:
    Accept: application/vnd.api+json
    Authorization: Bearer <token>

Successful responses are JSON:API documents ({"data": ..., "included": [...]}).
Errors look like:
    {"message": "The given data was invalid.", "errors": {"name": ["required"]}}

=============================================================================
ERROR TAXONOMY
=============================================================================

    CloudError                  any failure status (carries status, message, body)
    ├── AuthenticationError     401
    ├── NotFoundError           404
    └── ValidationError         422 (per-field messages in .errors)

Once retries are exhausted, errors always propagate to the caller.

=============================================================================
USAGE
=============================================================================

    async with CloudClient(connection) as client:
        app = await client.get_application("app-1", {"include": "environments"})
        for env in app.environments():
            print(env.name, env.is_running())
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import httpx
import structlog
from pydantic import SecretStr
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from laravel_cloud_mcp.resources import (
    Application,
    BackgroundProcess,
    Bucket,
    BucketKey,
    Cache,
    Command,
    Database,
    DatabaseCluster,
    Deployment,
    Domain,
    Environment,
    Instance,
    build_collection,
    build_resource,
)

if TYPE_CHECKING:
    from laravel_cloud_mcp.config import CloudConnection

logger = structlog.get_logger(__name__)

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"


# =============================================================================
# ERRORS
# =============================================================================


class CloudError(Exception):
    """
    Structured Laravel Cloud API error.

    Attributes:
        message: Message from the response body, or a fallback string
        status_code: HTTP status of the failed response
        errors: Per-field validation messages, when the body had them
        body: The decoded (or raw text) response body, for diagnostics
    """

    default_message: ClassVar[str] = "An error occurred with the Laravel Cloud API"
    default_status: ClassVar[int] = 0

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        errors: dict[str, list[str]] | None = None,
        body: Any = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = self.default_status if status_code is None else status_code
        self.errors = errors
        self.body = body
        super().__init__(self.message)

    def __str__(self) -> str:
        """
        Format error for agent consumption.

        Example:
            "Laravel Cloud API error (404): Resource not found"
        """
        return f"Laravel Cloud API error ({self.status_code}): {self.message}"


class AuthenticationError(CloudError):
    """Missing or invalid API token (401)."""

    default_message = "Invalid or missing API token"
    default_status = 401


class NotFoundError(CloudError):
    """The requested resource does not exist (404)."""

    default_message = "Resource not found"
    default_status = 404


class ValidationError(CloudError):
    """The API rejected the payload (422); see .errors for per-field messages."""

    default_message = "Validation failed"
    default_status = 422

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        fields = "; ".join(f"{field}: {', '.join(map(str, msgs))}" for field, msgs in self.errors.items())
        return f"{base} ({fields})"


_STATUS_ERRORS: dict[int, type[CloudError]] = {
    401: AuthenticationError,
    404: NotFoundError,
    422: ValidationError,
}


def error_from_response(response: httpx.Response) -> CloudError:
    """Build the CloudError subclass matching a failed response's status."""
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text or None

    message = None
    errors = None
    if isinstance(body, dict):
        message = body.get("message")
        errors = body.get("errors") if isinstance(body.get("errors"), dict) else None

    error_cls = _STATUS_ERRORS.get(response.status_code, CloudError)
    return error_cls(
        message=message,
        status_code=response.status_code,
        errors=errors,
        body=body,
    )


def _is_transient(exc: BaseException) -> bool:
    # Network failures and timeouts, or the server failing on its side.
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, CloudError) and exc.status_code >= 500


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying Laravel Cloud API request",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


# =============================================================================
# CLIENT
# =============================================================================


class CloudClient:
    """
    Async Laravel Cloud API client.

    LIFECYCLE:
    ----------
    1. Create client: client = CloudClient(connection)
    2. Enter context: async with client: ...
    3. Use client: await client.list_applications()
    4. Exit context: HTTP connections cleaned up

    RETRY LOGIC:
    ------------
    Every request, whatever its HTTP method, gets connection.retry_times
    attempts with connection.retry_sleep milliseconds between them. Only
    transport failures (timeouts, refused connections) and 5xx responses are
    retried; 4xx responses fail on the first attempt.
    """

    def __init__(self, connection: CloudConnection) -> None:
        self._connection = connection
        self._client: httpx.AsyncClient | None = None

    @property
    def connection(self) -> CloudConnection:
        return self._connection

    def _build_transport(self, connection: CloudConnection) -> httpx.AsyncClient:
        headers = {
            "Accept": JSONAPI_MEDIA_TYPE,
            "Content-Type": "application/json",
        }
        if connection.api_token is not None and connection.api_token.get_secret_value():
            headers["Authorization"] = f"Bearer {connection.api_token.get_secret_value()}"

        return httpx.AsyncClient(
            base_url=connection.api_url,
            headers=headers,
            timeout=connection.timeout,
        )

    async def __aenter__(self) -> CloudClient:
        self._client = self._build_transport(self._connection)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def set_api_token(self, token: str) -> CloudClient:
        """
        Replace the API token.

        The whole transport is rebuilt and swapped in with one assignment,
        so no request can go out with a mix of old and new headers. The old
        transport is closed after the swap.
        """
        connection = self._connection.model_copy(update={"api_token": SecretStr(token)})
        previous = self._client

        self._connection = connection
        if previous is not None:
            self._client = self._build_transport(connection)
            await previous.aclose()

        logger.info("Laravel Cloud API token replaced")
        return self

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an HTTP request and return the decoded body.

        Returns an empty dict for empty bodies (e.g. 204 on delete).

        Raises:
            CloudError: On a failure status (after retries, for 5xx), or a
                success response whose body is not JSON
            httpx.TransportError: On network failure after retries
            RuntimeError: If the client is not initialized (forgot async with)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(method=method, path=path)

        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self._connection.retry_times),
            wait=wait_fixed(self._connection.retry_sleep_seconds),
            before_sleep=_log_retry,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                log.debug(
                    "Making Laravel Cloud API request",
                    attempt=attempt.retry_state.attempt_number,
                )
                response = await self._client.request(
                    method,
                    path,
                    params=params or None,
                    json=json_data,
                )
                if response.is_error:
                    error = error_from_response(response)
                    log.warning(
                        "Laravel Cloud API error",
                        status=response.status_code,
                        message=error.message,
                    )
                    raise error

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            # Proxies and maintenance pages answer 2xx with HTML.
            log.warning(
                "Laravel Cloud API returned a non-JSON body",
                status=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            raise CloudError(
                message="Response body is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def _get_document(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        body = await self._request("GET", path, params=query)
        return body if isinstance(body, dict) else {}

    async def _send_document(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        body = await self._request(method, path, json_data=data)
        return body if isinstance(body, dict) else {}

    # =========================================================================
    # APPLICATIONS
    # =========================================================================

    async def list_applications(self, query: dict[str, Any] | None = None) -> list[Application]:
        """
        List applications in the organization.

        Args:
            query: Query parameters passed through verbatim
                   (e.g. {"include": "environments", "page[number]": 2})
        """
        return build_collection(await self._get_document("/applications", query), Application)

    async def get_application(
        self,
        application_id: str,
        query: dict[str, Any] | None = None,
    ) -> Application:
        return build_resource(
            await self._get_document(f"/applications/{application_id}", query), Application
        )

    async def create_application(self, data: dict[str, Any]) -> Application:
        """
        Create an application.

        Args:
            data: e.g. {"name": "shop", "repository": "owner/repo", "region": "us-east-1"}
        """
        return build_resource(await self._send_document("POST", "/applications", data), Application)

    async def update_application(self, application_id: str, data: dict[str, Any]) -> Application:
        return build_resource(
            await self._send_document("PATCH", f"/applications/{application_id}", data),
            Application,
        )

    # =========================================================================
    # ENVIRONMENTS
    # =========================================================================

    async def list_environments(
        self,
        application_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Environment]:
        return build_collection(
            await self._get_document(f"/applications/{application_id}/environments", query),
            Environment,
        )

    async def get_environment(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> Environment:
        return build_resource(
            await self._get_document(f"/environments/{environment_id}", query), Environment
        )

    async def create_environment(self, application_id: str, data: dict[str, Any]) -> Environment:
        return build_resource(
            await self._send_document("POST", f"/applications/{application_id}/environments", data),
            Environment,
        )

    async def update_environment(self, environment_id: str, data: dict[str, Any]) -> Environment:
        return build_resource(
            await self._send_document("PATCH", f"/environments/{environment_id}", data),
            Environment,
        )

    async def delete_environment(self, environment_id: str) -> None:
        await self._request("DELETE", f"/environments/{environment_id}")

    async def start_environment(self, environment_id: str) -> Environment:
        return build_resource(
            await self._send_document("POST", f"/environments/{environment_id}/start"),
            Environment,
        )

    async def stop_environment(self, environment_id: str) -> Environment:
        return build_resource(
            await self._send_document("POST", f"/environments/{environment_id}/stop"),
            Environment,
        )

    async def add_environment_variables(
        self,
        environment_id: str,
        variables: list[dict[str, str]],
        method: str = "set",
    ) -> Environment:
        """
        Add environment variables.

        Args:
            environment_id: Target environment
            variables: [{"key": "APP_DEBUG", "value": "false"}, ...]
            method: "set" updates existing keys, "append" adds without checking
        """
        body = {"method": method, "variables": variables}
        return build_resource(
            await self._send_document("POST", f"/environments/{environment_id}/variables", body),
            Environment,
        )

    async def replace_environment_variables(
        self,
        environment_id: str,
        variables: list[dict[str, str]],
    ) -> Environment:
        """Replace the environment's whole variable set."""
        body = {"variables": variables}
        return build_resource(
            await self._send_document("PUT", f"/environments/{environment_id}/variables", body),
            Environment,
        )

    async def get_environment_logs(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._get_document(f"/environments/{environment_id}/logs", query)

    # =========================================================================
    # DEPLOYMENTS
    # =========================================================================

    async def list_deployments(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Deployment]:
        return build_collection(
            await self._get_document(f"/environments/{environment_id}/deployments", query),
            Deployment,
        )

    async def get_deployment(
        self,
        deployment_id: str,
        query: dict[str, Any] | None = None,
    ) -> Deployment:
        return build_resource(
            await self._get_document(f"/deployments/{deployment_id}", query), Deployment
        )

    async def create_deployment(
        self,
        environment_id: str,
        data: dict[str, Any] | None = None,
    ) -> Deployment:
        """Trigger a deployment of the environment's current branch."""
        return build_resource(
            await self._send_document(
                "POST", f"/environments/{environment_id}/deployments", data or None
            ),
            Deployment,
        )

    # =========================================================================
    # INSTANCES
    # =========================================================================

    async def list_instances(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Instance]:
        return build_collection(
            await self._get_document(f"/environments/{environment_id}/instances", query),
            Instance,
        )

    async def get_instance(self, instance_id: str, query: dict[str, Any] | None = None) -> Instance:
        return build_resource(await self._get_document(f"/instances/{instance_id}", query), Instance)

    async def create_instance(self, environment_id: str, data: dict[str, Any]) -> Instance:
        return build_resource(
            await self._send_document("POST", f"/environments/{environment_id}/instances", data),
            Instance,
        )

    async def update_instance(self, instance_id: str, data: dict[str, Any]) -> Instance:
        return build_resource(
            await self._send_document("PATCH", f"/instances/{instance_id}", data), Instance
        )

    async def delete_instance(self, instance_id: str) -> None:
        await self._request("DELETE", f"/instances/{instance_id}")

    async def list_instance_sizes(self, category: str | None = None) -> dict[str, Any]:
        query = {"category": category} if category else None
        return await self._get_document("/instance-sizes", query)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def run_command(self, environment_id: str, command: str) -> Command:
        """
        Run a shell or artisan command on an environment.

        The command runs asynchronously; poll get_command() until
        is_complete() to read its output and exit code.
        """
        return build_resource(
            await self._send_document(
                "POST", f"/environments/{environment_id}/commands", {"command": command}
            ),
            Command,
        )

    async def list_commands(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Command]:
        return build_collection(
            await self._get_document(f"/environments/{environment_id}/commands", query),
            Command,
        )

    async def get_command(self, command_id: str, query: dict[str, Any] | None = None) -> Command:
        return build_resource(await self._get_document(f"/commands/{command_id}", query), Command)

    # =========================================================================
    # DOMAINS
    # =========================================================================

    async def list_domains(
        self,
        environment_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Domain]:
        return build_collection(
            await self._get_document(f"/environments/{environment_id}/domains", query),
            Domain,
        )

    async def create_domain(self, environment_id: str, data: dict[str, Any]) -> Domain:
        return build_resource(
            await self._send_document("POST", f"/environments/{environment_id}/domains", data),
            Domain,
        )

    async def get_domain(self, domain_id: str, query: dict[str, Any] | None = None) -> Domain:
        return build_resource(await self._get_document(f"/domains/{domain_id}", query), Domain)

    async def update_domain(self, domain_id: str, data: dict[str, Any]) -> Domain:
        return build_resource(
            await self._send_document("PATCH", f"/domains/{domain_id}", data), Domain
        )

    async def delete_domain(self, domain_id: str) -> None:
        await self._request("DELETE", f"/domains/{domain_id}")

    async def verify_domain(self, domain_id: str) -> Domain:
        return build_resource(
            await self._send_document("POST", f"/domains/{domain_id}/verify"), Domain
        )

    # =========================================================================
    # BACKGROUND PROCESSES
    # =========================================================================

    async def list_background_processes(
        self,
        instance_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[BackgroundProcess]:
        return build_collection(
            await self._get_document(f"/instances/{instance_id}/background-processes", query),
            BackgroundProcess,
        )

    async def create_background_process(
        self,
        instance_id: str,
        data: dict[str, Any],
    ) -> BackgroundProcess:
        return build_resource(
            await self._send_document(
                "POST", f"/instances/{instance_id}/background-processes", data
            ),
            BackgroundProcess,
        )

    async def get_background_process(
        self,
        process_id: str,
        query: dict[str, Any] | None = None,
    ) -> BackgroundProcess:
        return build_resource(
            await self._get_document(f"/background-processes/{process_id}", query),
            BackgroundProcess,
        )

    async def update_background_process(
        self,
        process_id: str,
        data: dict[str, Any],
    ) -> BackgroundProcess:
        return build_resource(
            await self._send_document("PATCH", f"/background-processes/{process_id}", data),
            BackgroundProcess,
        )

    async def delete_background_process(self, process_id: str) -> None:
        await self._request("DELETE", f"/background-processes/{process_id}")

    # =========================================================================
    # DATABASE CLUSTERS AND DATABASES
    # =========================================================================

    async def list_database_clusters(
        self,
        query: dict[str, Any] | None = None,
    ) -> list[DatabaseCluster]:
        return build_collection(
            await self._get_document("/database-clusters", query), DatabaseCluster
        )

    async def create_database_cluster(self, data: dict[str, Any]) -> DatabaseCluster:
        return build_resource(
            await self._send_document("POST", "/database-clusters", data), DatabaseCluster
        )

    async def get_database_cluster(
        self,
        cluster_id: str,
        query: dict[str, Any] | None = None,
    ) -> DatabaseCluster:
        return build_resource(
            await self._get_document(f"/database-clusters/{cluster_id}", query), DatabaseCluster
        )

    async def update_database_cluster(
        self,
        cluster_id: str,
        data: dict[str, Any],
    ) -> DatabaseCluster:
        return build_resource(
            await self._send_document("PATCH", f"/database-clusters/{cluster_id}", data),
            DatabaseCluster,
        )

    async def delete_database_cluster(self, cluster_id: str) -> None:
        await self._request("DELETE", f"/database-clusters/{cluster_id}")

    async def list_databases(
        self,
        cluster_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[Database]:
        return build_collection(
            await self._get_document(f"/database-clusters/{cluster_id}/databases", query),
            Database,
        )

    async def create_database(self, cluster_id: str, data: dict[str, Any]) -> Database:
        return build_resource(
            await self._send_document("POST", f"/database-clusters/{cluster_id}/databases", data),
            Database,
        )

    async def get_database(self, database_id: str, query: dict[str, Any] | None = None) -> Database:
        return build_resource(await self._get_document(f"/databases/{database_id}", query), Database)

    async def delete_database(self, database_id: str) -> None:
        await self._request("DELETE", f"/databases/{database_id}")

    # =========================================================================
    # CACHES
    # =========================================================================

    async def list_caches(self, query: dict[str, Any] | None = None) -> list[Cache]:
        return build_collection(await self._get_document("/caches", query), Cache)

    async def create_cache(self, data: dict[str, Any]) -> Cache:
        return build_resource(await self._send_document("POST", "/caches", data), Cache)

    async def get_cache(self, cache_id: str, query: dict[str, Any] | None = None) -> Cache:
        return build_resource(await self._get_document(f"/caches/{cache_id}", query), Cache)

    async def update_cache(self, cache_id: str, data: dict[str, Any]) -> Cache:
        return build_resource(await self._send_document("PATCH", f"/caches/{cache_id}", data), Cache)

    async def delete_cache(self, cache_id: str) -> None:
        await self._request("DELETE", f"/caches/{cache_id}")

    async def list_cache_types(self) -> dict[str, Any]:
        return await self._get_document("/cache-types")

    # =========================================================================
    # OBJECT STORAGE
    # =========================================================================

    async def list_buckets(self, query: dict[str, Any] | None = None) -> list[Bucket]:
        return build_collection(await self._get_document("/buckets", query), Bucket)

    async def create_bucket(self, data: dict[str, Any]) -> Bucket:
        return build_resource(await self._send_document("POST", "/buckets", data), Bucket)

    async def get_bucket(self, bucket_id: str, query: dict[str, Any] | None = None) -> Bucket:
        return build_resource(await self._get_document(f"/buckets/{bucket_id}", query), Bucket)

    async def update_bucket(self, bucket_id: str, data: dict[str, Any]) -> Bucket:
        return build_resource(
            await self._send_document("PATCH", f"/buckets/{bucket_id}", data), Bucket
        )

    async def delete_bucket(self, bucket_id: str) -> None:
        await self._request("DELETE", f"/buckets/{bucket_id}")

    async def list_bucket_keys(
        self,
        bucket_id: str,
        query: dict[str, Any] | None = None,
    ) -> list[BucketKey]:
        return build_collection(
            await self._get_document(f"/buckets/{bucket_id}/keys", query), BucketKey
        )

    async def create_bucket_key(self, bucket_id: str, data: dict[str, Any]) -> BucketKey:
        """Create an access key. The secret is only returned by this call."""
        return build_resource(
            await self._send_document("POST", f"/buckets/{bucket_id}/keys", data), BucketKey
        )

    async def get_bucket_key(self, key_id: str, query: dict[str, Any] | None = None) -> BucketKey:
        return build_resource(await self._get_document(f"/bucket-keys/{key_id}", query), BucketKey)

    async def delete_bucket_key(self, key_id: str) -> None:
        await self._request("DELETE", f"/bucket-keys/{key_id}")

    # =========================================================================
    # META
    # =========================================================================

    async def list_regions(self) -> dict[str, Any]:
        return await self._get_document("/regions")

    async def list_ip_addresses(self) -> dict[str, Any]:
        """IP addresses to allow-list for database access."""
        return await self._get_document("/ips")

    async def get_organization(self, query: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_document("/organization", query)

    async def list_database_types(self) -> dict[str, Any]:
        return await self._get_document("/database-types")
