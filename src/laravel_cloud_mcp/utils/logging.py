# ABOUTME: Structured logging with correlation IDs for the Laravel Cloud MCP server
# ABOUTME: Configures structlog on stderr and records tool calls in an audit trail

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

1. STRUCTURED LOGGING: key/value log events rendered as JSON or console text.

2. CORRELATION IDs: every log line emitted while handling one MCP tool call
   carries the same short identifier, so one call's API requests, retries and
   audit entry can be pulled out of an interleaved stream:

       {"correlation_id": "a1b2c3d4", "event": "Making Laravel Cloud API request", ...}
       {"correlation_id": "a1b2c3d4", "event": "Retrying Laravel Cloud API request", ...}
       {"correlation_id": "a1b2c3d4", "event": "audit", "action": "start_environment", ...}

3. AUDIT LOGGING: one entry per tool call with its outcome.

=============================================================================
WHY STDERR?
=============================================================================

The MCP stdio transport speaks JSON-RPC over stdout. Anything else written
there corrupts the protocol stream, so every log line goes to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

# Each async task sees its own value.
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate a new one.

    Code running outside a tool call (startup, shutdown) still gets an ID,
    so its logs remain correlatable.

    Returns:
        8-character correlation ID string.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    Args:
        cid: MCP request ID, or "" to have one generated on first use.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor adding the correlation ID to every event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# Event keys whose values never reach a log line.
SENSITIVE_KEYS = frozenset(
    {
        "api_token",
        "authorization",
        "token",
        "secret_access_key",
        "value",
    }
)

MASK = "***MASKED***"


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: MASK if str(k).lower() in SENSITIVE_KEYS else _mask(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_mask(item) for item in value]
    return value


def mask_secrets(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """
    structlog processor replacing sensitive values with a mask.

    Walks nested dicts and lists, so a logged request payload like
    {"variables": [{"key": "STRIPE_SECRET", "value": "sk_live_..."}]} keeps
    its keys but loses its values.
    """
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = MASK
        else:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging. Call once at startup.

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: values bound via structlog.contextvars
    2. add_log_level: "level" field
    3. TimeStamper: ISO 8601 timestamp
    4. add_correlation_id: request correlation ID
    5. mask_secrets: tokens, secret keys and variable values masked
    6. Renderer: JSON lines or console text

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
        json_output: JSON lines for log aggregators instead of console text

    Example:
        configure_logging(level="DEBUG")
        configure_logging(level="INFO", json_output=True)
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
        mask_secrets,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        # No colors: stderr is usually captured by the MCP host, not a terminal.
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit logger recording every MCP tool call.

    Each entry holds:
    - timestamp: UTC ISO 8601
    - correlation_id: request identifier
    - action: tool name ("list_applications", "start_environment")
    - target: what it acted on ("app-1", "environment=env-1", "all")
    - result: "success", "initiated" or "error"
    - details: optional context (error text, parameters)

    Entries are appended as JSON lines to log_path when one is given,
    otherwise they go through structlog as "audit" events.

    Example:
        {"timestamp": "2025-03-01T10:30:00+00:00", "correlation_id": "abc12345",
         "action": "run_command", "target": "env-1", "result": "initiated",
         "details": {"command": "php artisan migrate --force"}}
    """

    def __init__(self, log_path: Path | None = None) -> None:
        """
        Args:
            log_path: Audit file (appended to, never truncated), or None to
                      log through structlog.
        """
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log an auditable action."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }
        if details:
            entry["details"] = _mask(details)

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_read(self, action: str, target: str) -> None:
        self.log(action, target, "success")

    def log_write(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log a state-changing call.

        result is usually "success", or "initiated" for calls that start
        asynchronous work on the platform (deployments, commands).
        """
        self.log(action, target, result, details)

    def log_error(
        self,
        action: str,
        target: str,
        error: str,
        status_code: int | None = None,
    ) -> None:
        """
        Log a failed call.

        status_code is the HTTP status of the failed API response, if any.

        Example:
            audit_logger.log_error(
                "get_deployment",
                "dep-9",
                "Laravel Cloud API error (404): Resource not found",
                404,
            )
        """
        details: dict[str, Any] = {"error": error}
        if status_code is not None:
            details["status_code"] = status_code
        self.log(action, target, "error", details)
