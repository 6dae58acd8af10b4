# ABOUTME: Typed views for database clusters, databases, caches and object storage
# ABOUTME: Adds named accessors and relationship traversal for data services

"""Database, cache and bucket views."""

from __future__ import annotations

from typing import Any

from laravel_cloud_mcp.resources.base import Resource


class DatabaseCluster(Resource):
    resource_type = "database_clusters"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def engine(self) -> str | None:
        return self.attribute("engine")

    @property
    def engine_version(self) -> str | None:
        return self.attribute("engine_version")

    @property
    def size(self) -> str | None:
        return self.attribute("size")

    @property
    def region(self) -> str | None:
        return self.attribute("region")

    @property
    def host(self) -> str | None:
        return self.attribute("host")

    @property
    def port(self) -> int | None:
        return self.attribute("port")

    def is_running(self) -> bool:
        return self.status == "running"

    def databases(self) -> list[Database]:
        return self.related_list("databases", Database)


class Database(Resource):
    resource_type = "databases"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def username(self) -> str | None:
        return self.attribute("username")

    def cluster(self) -> DatabaseCluster | None:
        return self.related("cluster", DatabaseCluster)


class Cache(Resource):
    resource_type = "caches"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def status(self) -> str | None:
        return self.attribute("status")

    @property
    def size(self) -> str | None:
        return self.attribute("size")

    @property
    def region(self) -> str | None:
        return self.attribute("region")

    @property
    def host(self) -> str | None:
        return self.attribute("host")

    @property
    def port(self) -> int | None:
        return self.attribute("port")

    def is_running(self) -> bool:
        return self.status == "running"


class Bucket(Resource):
    resource_type = "buckets"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def region(self) -> str | None:
        return self.attribute("region")

    def bucket_keys(self) -> list[BucketKey]:
        return self.related_list("keys", BucketKey)


class BucketKey(Resource):
    resource_type = "bucket_keys"

    @property
    def name(self) -> str | None:
        return self.attribute("name")

    @property
    def access_key_id(self) -> str | None:
        return self.attribute("access_key_id")

    @property
    def secret_access_key(self) -> str | None:
        return self.attribute("secret_access_key")

    @property
    def permissions(self) -> list[Any] | None:
        return self.attribute("permissions")

    def bucket(self) -> Bucket | None:
        return self.related("bucket", Bucket)
