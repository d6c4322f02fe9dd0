"""Data models for the OmniFocus bridge."""

from dataclasses import dataclass, field
from typing import Any, Literal

from omnifocus_bridge.errors import ValidationError

EntityKind = Literal["task", "project", "tag"]
SortOrder = Literal["asc", "desc"]

ENTITY_KINDS: tuple[str, ...] = ("task", "project", "tag")
ENTITY_PLURALS: dict[str, str] = {"tasks": "task", "projects": "project", "tags": "tag"}

# Relocation (and creation container) discriminants per entity kind, in resolution order.
RELOCATION_KEYS: dict[str, tuple[str, ...]] = {
    "task": ("projectId", "projectName", "parentTaskId", "parentTaskName"),
    "tag": ("parentTagId", "parentTagName", "root"),
    "project": ("folderId", "folderName"),
}


def check_item_type(item_type: str) -> str:
    """Validate a singular entity kind."""
    if item_type not in ENTITY_KINDS:
        raise ValidationError(f"Unknown item type: {item_type!r} (expected one of {', '.join(ENTITY_KINDS)})")
    return item_type


@dataclass
class EntityRef:
    """Reference to an existing entity by id or name.

    The id wins when both are supplied since names are not unique.
    """

    id: str | None = None
    name: str | None = None

    def validate(self) -> "EntityRef":
        if not self.id and not self.name:
            raise ValidationError("Either id or name must be provided")
        return self

    @property
    def by_id(self) -> bool:
        return bool(self.id)

    def describe(self) -> str:
        return f"id {self.id}" if self.by_id else f"name {self.name!r}"


@dataclass
class RelocationTarget:
    """Destination for a move: a single discriminant and its value.

    ``key`` is one of :data:`RELOCATION_KEYS`; ``value`` is empty for ``root``.
    """

    key: str
    value: str = ""

    @classmethod
    def from_candidates(cls, item_type: str, candidates: dict[str, Any]) -> "RelocationTarget | None":
        """Build a target from optional caller fields.

        Returns None when no discriminant is set. More than one set discriminant,
        or a discriminant the entity kind does not support, is a ValidationError.
        """
        allowed = RELOCATION_KEYS.get(item_type, ())
        present = [key for key, value in candidates.items() if value]
        unsupported = [key for key in present if key not in allowed]
        if unsupported:
            raise ValidationError(f"Cannot relocate a {item_type} using {', '.join(unsupported)}")
        if len(present) > 1:
            raise ValidationError(f"Only one relocation target may be given, got: {', '.join(present)}")
        if not present:
            return None
        key = present[0]
        value = candidates[key]
        return cls(key=key, value="" if value is True else str(value))

    @property
    def destination(self) -> str:
        """Destination kind: project, task, tag, folder or root."""
        if self.key == "root":
            return "root"
        if self.key.startswith("project"):
            return "project"
        if self.key.startswith("folder"):
            return "folder"
        if self.key.startswith("parentTask"):
            return "task"
        return "tag"

    @property
    def by_id(self) -> bool:
        return self.key.endswith("Id")


@dataclass
class QuerySpec:
    """Declarative query over one entity collection."""

    entity: str
    filters: dict[str, Any] = field(default_factory=dict)
    fields: list[str] | None = None
    sort_by: str | None = None
    sort_order: SortOrder = "asc"
    limit: int | None = None
    summary: bool = False
    include_inactive: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "QuerySpec":
        """Build a query from the camelCase input mapping."""
        return cls(
            entity=raw.get("entity", ""),
            filters=dict(raw.get("filters") or {}),
            fields=list(raw["fields"]) if raw.get("fields") else None,
            sort_by=raw.get("sortBy"),
            sort_order=raw.get("sortOrder") or "asc",
            limit=raw.get("limit"),
            summary=bool(raw.get("summary", False)),
            include_inactive=bool(raw.get("includeInactive", False)),
        )

    @property
    def kind(self) -> str:
        return ENTITY_PLURALS[self.entity]


@dataclass
class MutationResult:
    """Outcome of a create, edit or remove operation."""

    success: bool
    id: str | None = None
    name: str | None = None
    changed_properties: list[str] | None = None
    container_name: str | None = None
    error: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        for key, value in (
            ("id", self.id),
            ("name", self.name),
            ("changedProperties", self.changed_properties),
            ("containerName", self.container_name),
            ("error", self.error),
            ("errorKind", self.error_kind),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass
class QueryResult:
    """Outcome of a query. ``items`` stays None in summary mode."""

    success: bool
    count: int = 0
    items: list[dict[str, Any]] | None = None
    error: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error, "errorKind": self.error_kind}
        data: dict[str, Any] = {"success": True, "count": self.count}
        if self.items is not None:
            data["items"] = self.items
        return data
