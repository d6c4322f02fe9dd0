"""Field catalogue: what each entity kind exposes to queries."""

from dataclasses import dataclass

PROJECT_STATUSES = ("active", "onHold", "done", "dropped")


@dataclass(frozen=True)
class FieldSpec:
    """One queryable field.

    ``expression`` is the AppleScript computing the value for the entity bound
    to ``anItem``; ``kind`` selects its JSON encoding and filter semantics.
    """

    name: str
    kind: str
    expression: str

    @property
    def filter_mode(self) -> str | None:
        if self.kind == "list":
            return "any"
        if self.kind == "date":
            return None
        if self.kind == "text" and (self.name in ("name", "note") or self.name.endswith("Name")):
            return "contains"
        return "equals"


@dataclass(frozen=True)
class EntityCatalogue:
    kind: str
    collection: str
    fields: tuple[FieldSpec, ...]
    active_condition: str

    @property
    def default_fields(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def get(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


def _prop(name: str, kind: str, applescript_property: str) -> FieldSpec:
    return FieldSpec(name, kind, f"{applescript_property} of anItem")


TAGS = EntityCatalogue(
    kind="tag",
    collection="flattened tags",
    fields=(
        _prop("id", "text", "id"),
        _prop("name", "text", "name"),
        FieldSpec("active", "bool", "(not (effectively hidden of anItem))"),
        _prop("allowsNextAction", "bool", "allows next action"),
        FieldSpec("parentTagId", "text", "my idOf(my parentTagOf(anItem))"),
        FieldSpec("parentTagName", "text", "my nameOf(my parentTagOf(anItem))"),
        _prop("availableTaskCount", "number", "available task count"),
        _prop("remainingTaskCount", "number", "remaining task count"),
    ),
    active_condition="(not (effectively hidden of anItem))",
)

TASKS = EntityCatalogue(
    kind="task",
    collection="flattened tasks",
    fields=(
        _prop("id", "text", "id"),
        _prop("name", "text", "name"),
        _prop("note", "text", "note"),
        _prop("flagged", "bool", "flagged"),
        _prop("completed", "bool", "completed"),
        _prop("dropped", "bool", "dropped"),
        _prop("inInbox", "bool", "in inbox"),
        _prop("dueDate", "date", "due date"),
        _prop("deferDate", "date", "defer date"),
        _prop("estimatedMinutes", "number", "estimated minutes"),
        FieldSpec("projectId", "text", "my idOf(my projectOf(anItem))"),
        FieldSpec("projectName", "text", "my nameOf(my projectOf(anItem))"),
        FieldSpec("parentTaskId", "text", "my idOf(my parentTaskOf(anItem))"),
        FieldSpec("parentTaskName", "text", "my nameOf(my parentTaskOf(anItem))"),
        FieldSpec("tagNames", "list", "my tagNamesOf(anItem)"),
    ),
    active_condition="(not ((completed of anItem) or (dropped of anItem)))",
)

PROJECTS = EntityCatalogue(
    kind="project",
    collection="flattened projects",
    fields=(
        _prop("id", "text", "id"),
        _prop("name", "text", "name"),
        _prop("note", "text", "note"),
        FieldSpec("status", "text", "my projectStatus(anItem)"),
        _prop("flagged", "bool", "flagged"),
        _prop("sequential", "bool", "sequential"),
        _prop("dueDate", "date", "due date"),
        _prop("deferDate", "date", "defer date"),
        FieldSpec("folderId", "text", "my idOf(my folderOf(anItem))"),
        FieldSpec("folderName", "text", "my nameOf(my folderOf(anItem))"),
        FieldSpec("taskCount", "number", "(count of flattened tasks of anItem)"),
    ),
    active_condition='((my projectStatus(anItem) is not "done") and (my projectStatus(anItem) is not "dropped"))',
)

CATALOGUES: dict[str, EntityCatalogue] = {"tag": TAGS, "task": TASKS, "project": PROJECTS}
