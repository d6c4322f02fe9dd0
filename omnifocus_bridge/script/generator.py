"""Script generation for create, edit and remove commands.

Callers describe a state change as a command object; :class:`ScriptGenerator`
turns it into a complete AppleScript that answers with a JSON envelope.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from omnifocus_bridge.models import EntityRef, RelocationTarget
from omnifocus_bridge.script.builder import (
    AppendTo,
    Call,
    Command,
    Considering,
    Expr,
    If,
    Lit,
    Make,
    Not,
    Op,
    Ref,
    Return,
    Set,
    Statement,
    render,
)
from omnifocus_bridge.script.helpers import MISSING, fail, json_object, success, wrap
from omnifocus_bridge.script.resolvers import (
    Resolver,
    cycle_condition,
    move_location,
    placed_condition,
    resolve_destination,
    resolve_target,
)

logger = structlog.get_logger()

# Reported property name -> AppleScript property.
APPLESCRIPT_PROPERTIES = {
    "name": "name",
    "note": "note",
    "flagged": "flagged",
    "dueDate": "due date",
    "deferDate": "defer date",
    "estimatedMinutes": "estimated minutes",
    "sequential": "sequential",
    "allowsNextAction": "allows next action",
}

TASK_STATUS_ACTIONS = {
    "completed": ("(not (completed of theItem))", "mark complete theItem"),
    "dropped": ("(not (dropped of theItem))", "mark dropped theItem"),
    "incomplete": ("((completed of theItem) or (dropped of theItem))", "mark incomplete theItem"),
}

PROJECT_STATUS_CONSTANTS = {
    "active": "active status",
    "onHold": "on hold status",
    "done": "done status",
    "dropped": "dropped status",
}


@dataclass
class PropertyChange:
    """A property to write: ``name`` is what gets reported as changed.

    ``value`` is None to clear an optional property (dates, estimates).
    """

    name: str
    value: Any


@dataclass
class CreateCommand:
    kind: str
    name: str
    properties: list[PropertyChange] = field(default_factory=list)
    container: RelocationTarget | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class EditCommand:
    kind: str
    ref: EntityRef
    changes: list[PropertyChange] = field(default_factory=list)
    relocation: RelocationTarget | None = None
    add_tags: list[str] = field(default_factory=list)
    remove_tags: list[str] = field(default_factory=list)


@dataclass
class RemoveCommand:
    kind: str
    ref: EntityRef


BridgeCommand = CreateCommand | EditCommand | RemoveCommand


def value_expr(value: Any) -> Expr:
    if isinstance(value, datetime):
        seconds = value.hour * 3600 + value.minute * 60 + value.second
        return Call("makeDate", Lit(value.year), Lit(value.month), Lit(value.day), Lit(seconds))
    return Lit(value)


def record_change(name: str) -> Statement:
    return AppendTo("changedProps", Lit(name))


def _lookup_tags(names: list[str], prefix: str) -> list[Statement]:
    resolver = Resolver("tag", "name")
    statements: list[Statement] = []
    for index, name in enumerate(names):
        var = f"{prefix}{index}"
        statements.extend(resolver.lookup(var, name))
        statements.append(If(Op(Ref(var), "is", MISSING), [fail(Lit(f"Tag not found: {resolver.describe(name)}"))]))
    return statements


class ScriptGenerator:
    """Builds AppleScript for one command against one application."""

    def __init__(self, app_name: str = "OmniFocus") -> None:
        self.app_name = app_name

    def generate(self, command: BridgeCommand) -> str:
        if isinstance(command, CreateCommand):
            body = self._create(command)
        elif isinstance(command, EditCommand):
            body = self._edit(command)
        elif isinstance(command, RemoveCommand):
            body = self._remove(command)
        else:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        script = render(wrap(self.app_name, body))
        logger.debug("Generated script", command=type(command).__name__, kind=command.kind, length=len(script))
        return script

    def _create(self, command: CreateCommand) -> list[Statement]:
        body: list[Statement] = []
        if command.container is not None:
            body.extend(resolve_destination(command.kind, command.container))
        body.extend(_lookup_tags(command.tags, "newTag"))

        properties: dict[str, Expr] = {"name": Lit(command.name)}
        for change in command.properties:
            properties[APPLESCRIPT_PROPERTIES[change.name]] = value_expr(change.value)

        location = move_location(command.kind, command.container) if command.container else None
        if command.kind == "task" and location is None:
            body.append(Make("newItem", "inbox task", properties))
        else:
            body.append(Make("newItem", command.kind, properties, at=location))
        for index in range(len(command.tags)):
            body.append(Command(f"add newTag{index} to tags of newItem"))

        item_id = Ref("id of newItem")
        item_name = Ref("name of newItem")
        if command.kind == "tag":
            parent_name = Call("textOf", Call("nameOf", Call("parentTagOf", Ref("newItem"))))
            body.append(Return(success(("tagId", item_id, "text"), ("name", item_name, "text"), ("parentName", parent_name, "text"))))
        elif command.kind == "task":
            container_name: Expr = Ref("name of destination") if command.container else Lit("Inbox")
            body.append(
                Return(success(("taskId", item_id, "text"), ("name", item_name, "text"), ("containerName", container_name, "text")))
            )
        else:
            folder_name = Call("nameOf", Call("folderOf", Ref("newItem")))
            body.append(
                Return(success(("projectId", item_id, "text"), ("name", item_name, "text"), ("folderName", folder_name, "text")))
            )
        return body

    def _edit(self, command: EditCommand) -> list[Statement]:
        body = resolve_target(command.kind, command.ref)
        relocation = command.relocation
        if relocation is not None:
            # Everything that can fail a lookup runs before the first write.
            body.extend(resolve_destination(command.kind, relocation))
            cycle = cycle_condition(command.kind, relocation)
            if cycle is not None:
                body.append(If(cycle, [fail(Lit(f"Cannot move a {command.kind} under itself or one of its descendants"))]))
        body.extend(_lookup_tags(command.add_tags, "addTag"))
        body.extend(_lookup_tags(command.remove_tags, "removeTag"))
        body.append(Set("changedProps", Ref("{}")))

        updates: list[Statement] = [self._property_update(command.kind, change) for change in command.changes]
        updates.extend(self._tag_updates(command))
        if updates:
            body.append(Considering("case", updates))

        if relocation is not None:
            placed = placed_condition(command.kind, relocation)
            not_moved = json_object(
                [
                    ("error", Lit(f"Move of {command.kind} did not take effect"), "text"),
                    ("changedProperties", Ref("changedProps"), "list"),
                ],
                prefix='"success":false',
            )
            body.append(
                If(
                    Not(placed),
                    [
                        Command(f"move theItem to {move_location(command.kind, relocation)}"),
                        # Trust the container read back, not the move command.
                        If(placed, [record_change("moved")], [Return(not_moved)]),
                    ],
                )
            )

        body.append(
            Return(
                success(
                    ("id", Ref("id of theItem"), "text"),
                    ("name", Ref("name of theItem"), "text"),
                    ("changedProperties", Ref("changedProps"), "list"),
                )
            )
        )
        return body

    def _property_update(self, kind: str, change: PropertyChange) -> Statement:
        if change.name == "status":
            if kind == "task":
                condition, action = TASK_STATUS_ACTIONS[change.value]
                return If(Ref(condition), [Command(action), record_change("status")])
            return If(
                Op(Call("projectStatus", Ref("theItem")), "is not", Lit(change.value)),
                [Set("status of theItem", Ref(PROJECT_STATUS_CONSTANTS[change.value])), record_change("status")],
            )
        prop = f"{APPLESCRIPT_PROPERTIES[change.name]} of theItem"
        value = value_expr(change.value)
        return If(Op(Ref(f"({prop})"), "is not", value), [Set(prop, value), record_change(change.name)])

    def _tag_updates(self, command: EditCommand) -> list[Statement]:
        if not command.add_tags and not command.remove_tags:
            return []
        current = Ref("(id of every tag of theItem)")
        statements: list[Statement] = [Set("tagsChanged", Lit(False))]
        for index in range(len(command.add_tags)):
            var = f"addTag{index}"
            statements.append(
                If(
                    Not(Op(current, "contains", Ref(f"id of {var}"))),
                    [Command(f"add {var} to tags of theItem"), Set("tagsChanged", Lit(True))],
                )
            )
        for index in range(len(command.remove_tags)):
            var = f"removeTag{index}"
            statements.append(
                If(
                    Op(current, "contains", Ref(f"id of {var}")),
                    [Command(f"remove {var} from tags of theItem"), Set("tagsChanged", Lit(True))],
                )
            )
        statements.append(If(Ref("tagsChanged"), [record_change("tags")]))
        return statements

    def _remove(self, command: RemoveCommand) -> list[Statement]:
        body = resolve_target(command.kind, command.ref)
        # Identity must be captured while the entity still exists.
        body.extend(
            [
                Set("itemId", Ref("id of theItem")),
                Set("itemName", Ref("name of theItem")),
                Command("delete theItem"),
                Return(success(("id", Ref("itemId"), "text"), ("name", Ref("itemName"), "text"))),
            ]
        )
        return body
