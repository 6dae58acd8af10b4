# ABOUTME: Resources package initialization for the Laravel Cloud client
# ABOUTME: Re-exports the JSON:API resource core and every typed domain view

"""
Laravel Cloud JSON:API resources.

    base.py:    Resource, build_resource, build_collection
    compute.py: Application, Environment, Deployment, Instance,
                BackgroundProcess, Command, Domain
    storage.py: DatabaseCluster, Database, Cache, Bucket, BucketKey
"""

from laravel_cloud_mcp.resources.base import Resource, build_collection, build_resource
from laravel_cloud_mcp.resources.compute import (
    Application,
    BackgroundProcess,
    Command,
    CommandStatus,
    Deployment,
    DeploymentStatus,
    Domain,
    Environment,
    Instance,
    ProcessType,
    ScalingType,
)
from laravel_cloud_mcp.resources.storage import (
    Bucket,
    BucketKey,
    Cache,
    Database,
    DatabaseCluster,
)

__all__ = [
    "Application",
    "BackgroundProcess",
    "Bucket",
    "BucketKey",
    "Cache",
    "Command",
    "CommandStatus",
    "Database",
    "DatabaseCluster",
    "Deployment",
    "DeploymentStatus",
    "Domain",
    "Environment",
    "Instance",
    "ProcessType",
    "Resource",
    "ScalingType",
    "build_collection",
    "build_resource",
]
