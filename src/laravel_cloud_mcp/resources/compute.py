# ABOUTME: Typed views for applications, environments, deployments and compute resources
# ABOUTME: Adds named accessors, status classification and relationship traversal

"""Application, environment, deployment, instance, process, command and domain views."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from laravel_cloud_mcp.resources.base import Resource


class Application(Resource):
    resource_type = "applications"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def slug(self) -> str | None:
        return self.attribute("slug")

    @property
    def region(self) -> str | None:
        return self.attribute("region")

    @property
    def avatar_url(self) -> str | None:
        return self.attribute("avatar_url")

    def repository(self) -> dict[str, Any] | None:
        return self.related_raw("repository", "repositories")

    def organization(self) -> dict[str, Any] | None:
        return self.related_raw("organization", "organizations")

    def environments(self) -> list[Environment]:
        return self.related_list("environments", Environment)


class Environment(Resource):
    resource_type = "environments"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def branch(self) -> str | None:
        return self.attribute("branch")

    @property
    def url(self) -> str | None:
        return self.attribute("url")

    @property
    def php_version(self) -> str | None:
        return self.attribute("php_version")

    @property
    def node_version(self) -> str | None:
        return self.attribute("node_version")

    @property
    def updated_at(self) -> str | None:
        return self.attribute("updated_at")

    def is_running(self) -> bool:
        return self.status == "running"

    def is_stopped(self) -> bool:
        return self.status == "stopped"

    def application(self) -> Application | None:
        return self.related("application", Application)

    def instances(self) -> list[Instance]:
        return self.related_list("instances", Instance)

    def domains(self) -> list[Domain]:
        return self.related_list("domains", Domain)


# =============================================================================
# DEPLOYMENTS
# =============================================================================


class DeploymentStatus(StrEnum):
    """
    Deployment lifecycle.

        pending -> build.pending -> build.running -> build.succeeded | build.failed
                -> deployment.pending -> deployment.running
                -> deployment.succeeded | deployment.failed | cancelled | failed

    Adding a status here means adding it to exactly one of the sets below.
    """

    PENDING = "pending"
    BUILD_PENDING = "build.pending"
    BUILD_RUNNING = "build.running"
    BUILD_SUCCEEDED = "build.succeeded"
    BUILD_FAILED = "build.failed"
    DEPLOYMENT_PENDING = "deployment.pending"
    DEPLOYMENT_RUNNING = "deployment.running"
    DEPLOYMENT_SUCCEEDED = "deployment.succeeded"
    DEPLOYMENT_FAILED = "deployment.failed"
    CANCELLED = "cancelled"
    FAILED = "failed"


DEPLOYMENT_PENDING_STATUSES = frozenset(
    {
        DeploymentStatus.PENDING,
        DeploymentStatus.BUILD_PENDING,
        DeploymentStatus.DEPLOYMENT_PENDING,
    }
)
# build.succeeded is mid-pipeline: the deploy phase has not started yet.
DEPLOYMENT_RUNNING_STATUSES = frozenset(
    {
        DeploymentStatus.BUILD_RUNNING,
        DeploymentStatus.BUILD_SUCCEEDED,
        DeploymentStatus.DEPLOYMENT_RUNNING,
    }
)
DEPLOYMENT_SUCCESSFUL_STATUSES = frozenset({DeploymentStatus.DEPLOYMENT_SUCCEEDED})
DEPLOYMENT_FAILED_STATUSES = frozenset(
    {
        DeploymentStatus.BUILD_FAILED,
        DeploymentStatus.DEPLOYMENT_FAILED,
        DeploymentStatus.FAILED,
    }
)
DEPLOYMENT_CANCELLED_STATUSES = frozenset({DeploymentStatus.CANCELLED})


class Deployment(Resource):
    resource_type = "deployments"

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def branch_name(self) -> str | None:
        return self.attribute("branch_name")

    @property
    def commit_hash(self) -> str | None:
        return self.attribute("commit_hash")

    @property
    def commit_message(self) -> str | None:
        return self.attribute("commit_message")

    @property
    def php_version(self) -> str | None:
        return self.attribute("php_version")

    @property
    def node_version(self) -> str | None:
        return self.attribute("node_version")

    @property
    def build_command(self) -> str | None:
        return self.attribute("build_command")

    @property
    def uses_octane(self) -> bool:
        return bool(self.attribute("uses_octane", False))

    @property
    def supports_hibernation(self) -> bool:
        return bool(self.attribute("supports_hibernation", False))

    @property
    def started_at(self) -> str | None:
        return self.attribute("started_at")

    @property
    def finished_at(self) -> str | None:
        return self.attribute("finished_at")

    def is_pending(self) -> bool:
        return self.status in DEPLOYMENT_PENDING_STATUSES

    def is_running(self) -> bool:
        return self.status in DEPLOYMENT_RUNNING_STATUSES

    def is_successful(self) -> bool:
        return self.status in DEPLOYMENT_SUCCESSFUL_STATUSES

    def is_failed(self) -> bool:
        return self.status in DEPLOYMENT_FAILED_STATUSES

    def is_cancelled(self) -> bool:
        return self.status in DEPLOYMENT_CANCELLED_STATUSES

    def is_complete(self) -> bool:
        """Succeeded or failed. A cancelled deployment is not complete."""
        return self.is_successful() or self.is_failed()

    def environment(self) -> Environment | None:
        return self.related("environment", Environment)

    def initiator(self) -> dict[str, Any] | None:
        return self.related_raw("initiator", "users")


# =============================================================================
# INSTANCES AND BACKGROUND PROCESSES
# =============================================================================


class ScalingType(StrEnum):
    NONE = "none"
    CUSTOM = "custom"
    AUTO = "auto"


class Instance(Resource):
    resource_type = "instances"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def instance_type(self) -> str | None:
        # The wire "type" attribute is shadowed by the envelope type.
        return self.wire_attribute("type")

    @property
    def size(self) -> str | None:
        return self.attribute("size")

    @property
    def scaling_type(self) -> str | None:
        return self.attribute("scaling_type")

    @property
    def min_replicas(self) -> int | None:
        return self.attribute("min_replicas")

    @property
    def max_replicas(self) -> int | None:
        return self.attribute("max_replicas")

    @property
    def scaling_cpu_threshold(self) -> int | None:
        return self.attribute("scaling_cpu_threshold_percentage")

    @property
    def scaling_memory_threshold(self) -> int | None:
        return self.attribute("scaling_memory_threshold_percentage")

    @property
    def uses_scheduler(self) -> bool:
        return bool(self.attribute("uses_scheduler", False))

    def has_auto_scaling(self) -> bool:
        return self.scaling_type == ScalingType.AUTO

    def has_custom_scaling(self) -> bool:
        return self.scaling_type == ScalingType.CUSTOM

    def environment(self) -> Environment | None:
        return self.related("environment", Environment)

    def background_processes(self) -> list[BackgroundProcess]:
        return self.related_list("background_processes", BackgroundProcess)


class ProcessType(StrEnum):
    WORKER = "worker"
    DAEMON = "daemon"


class BackgroundProcess(Resource):
    resource_type = "background_processes"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def process_type(self) -> str | None:
        return self.wire_attribute("type")

    @property
    def command(self) -> str | None:
        return self.attribute("command")

    @property
    def process_count(self) -> int | None:
        return self.attribute("process_count")

    @property
    def queue(self) -> str | None:
        return self.attribute("queue")

    @property
    def connection(self) -> str | None:
        return self.attribute("connection")

    def is_worker(self) -> bool:
        return self.process_type == ProcessType.WORKER

    def is_daemon(self) -> bool:
        return self.process_type == ProcessType.DAEMON

    def instance(self) -> Instance | None:
        return self.related("instance", Instance)


# =============================================================================
# COMMANDS
# =============================================================================


class CommandStatus(StrEnum):
    PENDING = "pending"
    CREATED = "command.created"
    RUNNING = "command.running"
    SUCCESS = "command.success"
    FAILURE = "command.failure"


COMMAND_PENDING_STATUSES = frozenset({CommandStatus.PENDING, CommandStatus.CREATED})
COMMAND_RUNNING_STATUSES = frozenset({CommandStatus.RUNNING})
COMMAND_SUCCESSFUL_STATUSES = frozenset({CommandStatus.SUCCESS})
COMMAND_FAILED_STATUSES = frozenset({CommandStatus.FAILURE})


class Command(Resource):
    resource_type = "commands"

    @property
    def command(self) -> str | None:
        return self.attribute("command")

    @property
    def output(self) -> str | None:
        return self.attribute("output")

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def exit_code(self) -> int | None:
        return self.attribute("exit_code")

    @property
    def failure_reason(self) -> str | None:
        return self.attribute("failure_reason")

    @property
    def started_at(self) -> str | None:
        return self.attribute("started_at")

    @property
    def finished_at(self) -> str | None:
        return self.attribute("finished_at")

    def is_pending(self) -> bool:
        return self.status in COMMAND_PENDING_STATUSES

    def is_running(self) -> bool:
        return self.status in COMMAND_RUNNING_STATUSES

    def is_successful(self) -> bool:
        return self.status in COMMAND_SUCCESSFUL_STATUSES

    def is_failed(self) -> bool:
        return self.status in COMMAND_FAILED_STATUSES

    def is_complete(self) -> bool:
        return self.is_successful() or self.is_failed()


# =============================================================================
# DOMAINS
# =============================================================================


class Domain(Resource):
    resource_type = "domains"

    @property
    def domain(self) -> str | None:
        return self.attribute("domain")

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def verified(self) -> bool:
        return bool(self.attribute("verified", False))

    @property
    def dns_records(self) -> list[dict[str, Any]] | None:
        return self.attribute("dns_records")

    @property
    def updated_at(self) -> str | None:
        return self.attribute("updated_at")

    def environment(self) -> Environment | None:
        return self.related("environment", Environment)
