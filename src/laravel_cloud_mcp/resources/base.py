# ABOUTME: JSON:API resource objects and the builders that turn responses into them
# ABOUTME: Resolves relationships against the response's included sideload set

"""
JSON:API resource graph.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Laravel Cloud answers with JSON:API "compound documents":

    {
        "data": {"id": "env-1", "type": "environments",
                 "attributes": {"name": "production", "status": "running"},
                 "relationships": {
                     "application": {"data": {"type": "applications", "id": "app-1"}},
                     "instances": {"data": [{"type": "instances", "id": "inst-1"}]}
                 }},
        "included": [
            {"id": "app-1", "type": "applications", "attributes": {...}},
            {"id": "inst-1", "type": "instances", "attributes": {...}}
        ]
    }

The server already embedded the related objects it was asked for
(?include=application,instances). This module turns such a document into
Resource objects that can walk those relationships WITHOUT another request:

    env = build_resource(body, Environment)
    env.application().name          # looked up in "included"
    env.instances()[0].environment()  # and back again

=============================================================================
OWNERSHIP OF THE INCLUDED SET
=============================================================================

The included list is created once per response. Every Resource built from
that response, and every related Resource resolved from those, holds the SAME
list object. Nothing copies the list and nothing mutates it. Attribute maps
and raw objects handed out to callers are deep copies, so editing them never
reaches the shared set.

=============================================================================
ABSENCE IS NOT AN ERROR
=============================================================================

Servers omit sideloads nobody asked for. A relationship whose target is not
in "included" resolves to None (to-one) or is left out of the list
(to-many). Nothing raises. To-many relationships can therefore come back
SHORTER than their "data" array: partial results are returned silently.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, ClassVar, TypeVar

R = TypeVar("R", bound="Resource")

# Keys the envelope contributes to the merged attribute map.
ENVELOPE_KEYS = ("id", "type")


class Resource:
    """
    Read-only view over one JSON:API resource object.

    The attribute map is FLATTENED: "id" and "type" from the envelope are
    merged into it, overwriting any attributes of the same name. The
    overwritten wire values are still available through wire_attribute().

    Domain views (Application, Deployment, ...) subclass this without
    defining their own constructor; they only add accessors.
    """

    # JSON:API type the view represents; used when a relationship
    # identifier omits its "type".
    resource_type: ClassVar[str | None] = None

    __slots__ = ("_attributes", "_included", "_relationships", "_wire_attributes")

    def __init__(
        self,
        data: Mapping[str, Any] | None,
        included: list[dict[str, Any]] | None = None,
    ) -> None:
        """
        Build a resource from a raw JSON:API resource object.

        Args:
            data: Raw object with "id", "type", "attributes", "relationships".
            included: The response's sideload list. Held by reference.
        """
        data = data or {}
        wire_attributes = copy.deepcopy(dict(data.get("attributes") or {}))

        attributes = dict(wire_attributes)
        attributes["id"] = data.get("id")
        attributes["type"] = data.get("type")

        self._wire_attributes = wire_attributes
        self._attributes = attributes
        self._relationships: dict[str, Any] = copy.deepcopy(dict(data.get("relationships") or {}))
        self._included: list[dict[str, Any]] = included if included is not None else []

    # -------------------------------------------------------------------------
    # IDENTITY
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str | None:
        return self._attributes.get("id")

    @property
    def type(self) -> str | None:
        return self._attributes.get("type")

    @property
    def included(self) -> list[dict[str, Any]]:
        """The shared sideload list of the response this resource came from."""
        return self._included

    @property
    def relationships(self) -> dict[str, Any]:
        return copy.deepcopy(self._relationships)

    # -------------------------------------------------------------------------
    # ATTRIBUTES
    # -------------------------------------------------------------------------

    def attribute(self, key: str, default: Any = None) -> Any:
        """
        Get an attribute from the merged map.

        Returns default when the key is missing OR its value is null, so
        optional fields never need a None check before a default applies.
        """
        value = self._attributes.get(key)
        return default if value is None else value

    def wire_attribute(self, key: str, default: Any = None) -> Any:
        """
        Get an attribute as the server sent it, before the id/type merge.

        Only differs from attribute() for wire attributes literally named
        "id" or "type", e.g. an instance's or background process's "type".
        """
        value = self._wire_attributes.get(key)
        return default if value is None else value

    def to_dict(self) -> dict[str, Any]:
        """Merged attribute map, including the synthesized id and type."""
        return copy.deepcopy(self._attributes)

    def serialize(self) -> dict[str, Any]:
        """
        Canonical JSON:API projection for transport or logging.

        id and type move back out to top-level members; attributes the merge
        shadowed are restored from the wire copy.
        """
        attributes = {k: v for k, v in self._attributes.items() if k not in ENVELOPE_KEYS}
        for key in ENVELOPE_KEYS:
            if key in self._wire_attributes:
                attributes[key] = self._wire_attributes[key]
        attributes = copy.deepcopy(attributes)
        return {
            "id": self.id,
            "type": self.type,
            "attributes": attributes,
            "relationships": self.relationships,
        }

    def __getitem__(self, key: str) -> Any:
        return self.attribute(key)

    def __setitem__(self, key: str, value: Any) -> None:
        # Local patch only; nothing is sent to the API.
        self._attributes[key] = value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._attributes.get(key) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __hash__(self) -> int:
        # Equal resources always share (type, id).
        return hash((self.type, self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, type={self.type!r})"

    # -------------------------------------------------------------------------
    # RELATIONSHIPS
    # -------------------------------------------------------------------------

    def relationship(self, name: str) -> dict[str, Any] | None:
        """Copy of the raw relationship descriptor, or None if the name is unknown."""
        return copy.deepcopy(self._relationships.get(name))

    def find_included(self, type_: str, id_: str | None) -> dict[str, Any] | None:
        """
        Copy of the first raw object in the included set matching (type, id).

        Linear scan: included sets are scoped to a single response and small.
        """
        for item in self._included:
            if item.get("type") == type_ and item.get("id") == id_:
                return copy.deepcopy(item)
        return None

    def _linkage(self, name: str) -> Any:
        relationship = self.relationship(name)
        if not relationship:
            return None
        return relationship.get("data")

    def _lookup(self, identifier: Any, fallback_type: str | None) -> dict[str, Any] | None:
        if not isinstance(identifier, Mapping):
            return None
        type_ = identifier.get("type") or fallback_type
        if type_ is None:
            return None
        return self.find_included(type_, identifier.get("id"))

    def related_raw(self, name: str, type_: str) -> dict[str, Any] | None:
        """
        Resolve a to-one relationship to its raw included object.

        For targets that have no typed view (repositories, organizations,
        users).
        """
        return self._lookup(self._linkage(name), type_)

    def related(self, name: str, resource_cls: type[R]) -> R | None:
        """
        Resolve a to-one relationship into a resource of resource_cls.

        Returns None if the relationship is missing, has no data, or its
        target was not sideloaded. The result shares this resource's
        included set, so traversal can continue from it.
        """
        raw = self._lookup(self._linkage(name), resource_cls.resource_type)
        if raw is None:
            return None
        return resource_cls(raw, self._included)

    def related_list(self, name: str, resource_cls: type[R]) -> list[R]:
        """
        Resolve a to-many relationship into resources of resource_cls.

        Entries whose target is not in the included set are DROPPED without
        any signal; the result may be shorter than the relationship's data.
        """
        linkage = self._linkage(name)
        if linkage is None:
            return []
        if isinstance(linkage, Mapping):
            linkage = [linkage]

        resolved: list[R] = []
        for identifier in linkage:
            raw = self._lookup(identifier, resource_cls.resource_type)
            if raw is not None:
                resolved.append(resource_cls(raw, self._included))
        return resolved

    # -------------------------------------------------------------------------
    # COMMON ATTRIBUTES
    # -------------------------------------------------------------------------

    @property
    def created_at(self) -> str | None:
        return self.attribute("created_at")


# =============================================================================
# DOCUMENT BUILDERS
# =============================================================================


def _included_of(document: Mapping[str, Any]) -> list[dict[str, Any]]:
    included = document.get("included")
    return included if isinstance(included, list) else []


def build_resource(document: Mapping[str, Any], resource_cls: type[R] = Resource) -> R:  # type: ignore[assignment]
    """
    Build a single resource from a response document.

    The caller picks resource_cls from the endpoint it called; the wire
    "type" is not used to choose it.
    """
    data = document.get("data")
    return resource_cls(data if isinstance(data, Mapping) else None, _included_of(document))


def build_collection(
    document: Mapping[str, Any],
    resource_cls: type[R] = Resource,  # type: ignore[assignment]
) -> list[R]:
    """
    Build an ordered list of resources from a response document.

    All items share one included list object. A missing or null "data"
    yields an empty list.
    """
    data = document.get("data")
    if data is None:
        return []
    if isinstance(data, Mapping):
        data = [data]

    included = _included_of(document)
    return [resource_cls(item, included) for item in data]
