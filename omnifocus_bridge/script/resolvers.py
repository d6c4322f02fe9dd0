"""Ordered lookup strategies for targets and relocation destinations.

Each strategy finds one entity by one attribute. A lookup runs the first
strategy that applies; adding a destination kind means adding a row, not a
branch.
"""

from dataclasses import dataclass

from omnifocus_bridge.errors import ValidationError
from omnifocus_bridge.models import EntityRef, RelocationTarget
from omnifocus_bridge.script.builder import (
    AnyOf,
    Call,
    Expr,
    FirstWhose,
    If,
    Lit,
    Op,
    Ref,
    Set,
    Statement,
    Try,
)
from omnifocus_bridge.script.helpers import MISSING, fail

LABELS = {
    "task": "Task",
    "project": "Project",
    "tag": "Tag",
    "folder": "Folder",
}


@dataclass(frozen=True)
class Resolver:
    """Finds an entity of ``kind`` whose ``attribute`` equals a given value."""

    kind: str
    attribute: str

    def lookup(self, var: str, value: str) -> list[Statement]:
        # A failed whose-lookup raises; keep it inside the script's not-found branch.
        return [
            Set(var, MISSING),
            Try([Set(var, FirstWhose(f"flattened {self.kind}", self.attribute, Lit(value)))]),
        ]

    def describe(self, value: str) -> str:
        return f"{self.attribute} {value}" if self.attribute == "id" else f"{self.attribute} '{value}'"


@dataclass(frozen=True)
class Destination:
    """A relocation discriminant bound to the resolver that finds it."""

    key: str
    resolver: Resolver
    label: str
    collection: str


TARGET_RESOLVERS: tuple[Resolver, ...] = (Resolver("", "id"), Resolver("", "name"))

DESTINATIONS: dict[str, tuple[Destination, ...]] = {
    "task": (
        Destination("projectId", Resolver("project", "id"), "Project", "tasks"),
        Destination("projectName", Resolver("project", "name"), "Project", "tasks"),
        Destination("parentTaskId", Resolver("task", "id"), "Parent task", "tasks"),
        Destination("parentTaskName", Resolver("task", "name"), "Parent task", "tasks"),
    ),
    "tag": (
        Destination("parentTagId", Resolver("tag", "id"), "Parent tag", "tags"),
        Destination("parentTagName", Resolver("tag", "name"), "Parent tag", "tags"),
    ),
    "project": (
        Destination("folderId", Resolver("folder", "id"), "Folder", "projects"),
        Destination("folderName", Resolver("folder", "name"), "Folder", "projects"),
    ),
}


def resolve_target(kind: str, ref: EntityRef, var: str = "theItem") -> list[Statement]:
    """Find the entity ``ref`` points at, or return a not-found failure.

    Only the first applicable strategy runs, so an id lookup never falls back
    to a coincidentally matching name.
    """
    for strategy in TARGET_RESOLVERS:
        value = getattr(ref, strategy.attribute)
        if value:
            resolver = Resolver(kind, strategy.attribute)
            return [
                *resolver.lookup(var, value),
                If(
                    Op(Ref(var), "is", MISSING),
                    [fail(Lit(f"{LABELS[kind]} not found: {resolver.describe(value)}"))],
                ),
            ]
    raise ValidationError("Either id or name must be provided")


def destination_for(item_type: str, target: RelocationTarget) -> Destination | None:
    """The destination row for ``target``; None for a move to the root."""
    for destination in DESTINATIONS.get(item_type, ()):
        if destination.key == target.key:
            return destination
    return None


def resolve_destination(item_type: str, target: RelocationTarget, var: str = "destination") -> list[Statement]:
    """Find the relocation destination, or return a not-found failure."""
    destination = destination_for(item_type, target)
    if destination is None:
        return [Set(var, MISSING)]
    resolver = destination.resolver
    return [
        *resolver.lookup(var, target.value),
        If(
            Op(Ref(var), "is", MISSING),
            [fail(Lit(f"{destination.label} not found: {resolver.describe(target.value)}"))],
        ),
    ]


def move_location(item_type: str, target: RelocationTarget, var: str = "destination") -> str:
    """Insertion location for ``move``/``make`` relative to the destination."""
    destination = destination_for(item_type, target)
    if destination is None:
        return f"end of {item_type}s"
    return f"end of {destination.collection} of {var}"


def placed_condition(item_type: str, target: RelocationTarget, item: str = "theItem", var: str = "destination") -> Expr:
    """True when ``item`` already sits directly in the destination."""
    destination = destination_for(item_type, target)
    if destination is None:
        return Op(Call("parentTagOf", Ref(item)), "is", MISSING)
    dest_id = Ref(f"id of {var}")
    if destination.resolver.kind == "project":
        return Op(
            Op(Call("idOf", Call("projectOf", Ref(item))), "is", dest_id),
            "and",
            Op(Call("parentTaskOf", Ref(item)), "is", MISSING),
        )
    parent_handler = {"task": "parentTaskOf", "tag": "parentTagOf", "folder": "folderOf"}[destination.resolver.kind]
    return Op(Call("idOf", Call(parent_handler, Ref(item))), "is", dest_id)


def cycle_condition(item_type: str, target: RelocationTarget, item: str = "theItem", var: str = "destination") -> Expr | None:
    """True when the destination is the item itself or one of its descendants."""
    destination = destination_for(item_type, target)
    if destination is None or destination.resolver.kind != item_type:
        return None
    ancestor_handler = {"task": "taskHasAncestor", "tag": "tagHasAncestor"}[item_type]
    return AnyOf(
        [
            Op(Ref(f"id of {var}"), "is", Ref(f"id of {item}")),
            Call(ancestor_handler, Ref(var), Ref(f"id of {item}")),
        ]
    )
