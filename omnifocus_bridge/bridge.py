"""Public operations of the OmniFocus bridge."""

import functools
from datetime import datetime
from typing import Any, Callable, TypeVar

import structlog

from omnifocus_bridge.config import Config
from omnifocus_bridge.decoder import decode_envelope
from omnifocus_bridge.errors import BridgeError, BusinessFailure, ValidationError
from omnifocus_bridge.fields import PROJECT_STATUSES
from omnifocus_bridge.models import EntityRef, MutationResult, QueryResult, QuerySpec, RelocationTarget, check_item_type
from omnifocus_bridge.query import QueryEngine
from omnifocus_bridge.runner import ScriptRunner
from omnifocus_bridge.script.generator import (
    TASK_STATUS_ACTIONS,
    BridgeCommand,
    CreateCommand,
    EditCommand,
    PropertyChange,
    RemoveCommand,
    ScriptGenerator,
)

logger = structlog.get_logger()

Result = TypeVar("Result", MutationResult, QueryResult)

EDITABLE_PROPERTIES: dict[str, tuple[str, ...]] = {
    "task": ("name", "note", "flagged", "dueDate", "deferDate", "estimatedMinutes", "status"),
    "project": ("name", "note", "flagged", "dueDate", "deferDate", "sequential", "status"),
    "tag": ("name", "allowsNextAction"),
}

STATUS_VALUES: dict[str, tuple[str, ...]] = {
    "task": tuple(TASK_STATUS_ACTIONS),
    "project": PROJECT_STATUSES,
}


def parse_date(value: str | None, field_name: str) -> datetime | None:
    """Parse an ISO-8601 date or datetime into local naive time."""
    if value is None or value == "":
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be an ISO-8601 date, got {value!r}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def reports_failures(result_type: type[Result]) -> Callable[[Callable[..., Result]], Callable[..., Result]]:
    """Turn BridgeErrors raised by an operation into a failure result."""

    def decorator(operation: Callable[..., Result]) -> Callable[..., Result]:
        @functools.wraps(operation)
        def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return operation(*args, **kwargs)
            except BridgeError as e:
                logger.warning("Operation failed", operation=operation.__name__, kind=e.kind, error=e.message)
                result = result_type(success=False, error=e.message, error_kind=e.kind)
                if isinstance(e, BusinessFailure) and isinstance(result, MutationResult):
                    changed = e.payload.get("changedProperties")
                    if isinstance(changed, list):
                        result.changed_properties = changed
                return result

        return wrapper

    return decorator


class OmniFocusBridge:
    """Queries and changes OmniFocus tasks, projects and tags through AppleScript."""

    def __init__(self, runner: ScriptRunner | None = None, app_name: str = "OmniFocus") -> None:
        """Initialize the bridge.

        Args:
            runner: Script runner (defaults to plain ``osascript``)
            app_name: Name of the application to automate
        """
        self.runner = runner or ScriptRunner()
        self.app_name = app_name
        self.generator = ScriptGenerator(app_name)
        self.queries = QueryEngine(self.runner, app_name)
        logger.debug("OmniFocus bridge initialized", app_name=app_name)

    @classmethod
    def from_config(cls, config: Config) -> "OmniFocusBridge":
        runner = ScriptRunner(osascript_path=config.osascript_path, timeout=config.timeout)
        return cls(runner=runner, app_name=config.app_name)

    def _execute(self, command: BridgeCommand) -> dict[str, Any]:
        script = self.generator.generate(command)
        output = self.runner.run(script)
        return decode_envelope(output.stdout)

    @reports_failures(QueryResult)
    def query(self, spec: QuerySpec | dict[str, Any]) -> QueryResult:
        """Query tasks, projects or tags."""
        if isinstance(spec, dict):
            spec = QuerySpec.from_dict(spec)
        return self.queries.run(spec)

    @reports_failures(MutationResult)
    def add_tag(self, name: str, parent_tag_id: str | None = None, parent_tag_name: str | None = None) -> MutationResult:
        """Create a tag at the root or under a parent tag."""
        logger.info("Adding tag", name=name, parent_tag_id=parent_tag_id, parent_tag_name=parent_tag_name)
        if not name:
            raise ValidationError("Tag name must not be empty")
        parent = RelocationTarget.from_candidates("tag", {"parentTagId": parent_tag_id, "parentTagName": parent_tag_name})

        payload = self._execute(CreateCommand(kind="tag", name=name, container=parent))
        result = MutationResult(
            success=True,
            id=payload.get("tagId"),
            name=payload.get("name"),
            container_name=payload.get("parentName") or None,
        )
        logger.info("Tag added", tag_id=result.id, parent_name=result.container_name)
        return result

    @reports_failures(MutationResult)
    def add_task(
        self,
        name: str,
        note: str | None = None,
        flagged: bool | None = None,
        due_date: str | None = None,
        defer_date: str | None = None,
        estimated_minutes: int | None = None,
        tags: list[str] | None = None,
        project_id: str | None = None,
        project_name: str | None = None,
        parent_task_id: str | None = None,
        parent_task_name: str | None = None,
    ) -> MutationResult:
        """Create a task in the inbox, a project, or under another task."""
        logger.info("Adding task", name=name, project_id=project_id, project_name=project_name, parent_task_id=parent_task_id)
        if not name:
            raise ValidationError("Task name must not be empty")
        container = RelocationTarget.from_candidates(
            "task",
            {
                "projectId": project_id,
                "projectName": project_name,
                "parentTaskId": parent_task_id,
                "parentTaskName": parent_task_name,
            },
        )
        properties = self._creation_properties(
            note=note,
            flagged=flagged,
            dueDate=parse_date(due_date, "dueDate"),
            deferDate=parse_date(defer_date, "deferDate"),
            estimatedMinutes=estimated_minutes,
        )
        command = CreateCommand(kind="task", name=name, properties=properties, container=container, tags=list(tags or []))

        payload = self._execute(command)
        result = MutationResult(
            success=True,
            id=payload.get("taskId"),
            name=payload.get("name"),
            container_name=payload.get("containerName"),
        )
        logger.info("Task added", task_id=result.id, container_name=result.container_name)
        return result

    @reports_failures(MutationResult)
    def add_project(
        self,
        name: str,
        note: str | None = None,
        flagged: bool | None = None,
        sequential: bool | None = None,
        due_date: str | None = None,
        defer_date: str | None = None,
        folder_id: str | None = None,
        folder_name: str | None = None,
    ) -> MutationResult:
        """Create a project at the top level or inside a folder."""
        logger.info("Adding project", name=name, folder_id=folder_id, folder_name=folder_name)
        if not name:
            raise ValidationError("Project name must not be empty")
        folder = RelocationTarget.from_candidates("project", {"folderId": folder_id, "folderName": folder_name})
        properties = self._creation_properties(
            note=note,
            flagged=flagged,
            sequential=sequential,
            dueDate=parse_date(due_date, "dueDate"),
            deferDate=parse_date(defer_date, "deferDate"),
        )

        payload = self._execute(CreateCommand(kind="project", name=name, properties=properties, container=folder))
        result = MutationResult(
            success=True,
            id=payload.get("projectId"),
            name=payload.get("name"),
            container_name=payload.get("folderName"),
        )
        logger.info("Project added", project_id=result.id, folder_name=result.container_name)
        return result

    @staticmethod
    def _creation_properties(**values: Any) -> list[PropertyChange]:
        return [PropertyChange(name, value) for name, value in values.items() if value is not None]

    @reports_failures(MutationResult)
    def edit_item(
        self,
        item_type: str,
        id: str | None = None,
        name: str | None = None,
        new_name: str | None = None,
        new_note: str | None = None,
        new_flagged: bool | None = None,
        new_due_date: str | None = None,
        new_defer_date: str | None = None,
        new_estimated_minutes: int | None = None,
        new_status: str | None = None,
        new_sequential: bool | None = None,
        new_allows_next_action: bool | None = None,
        add_tags: list[str] | None = None,
        remove_tags: list[str] | None = None,
        new_project_id: str | None = None,
        new_project_name: str | None = None,
        new_parent_task_id: str | None = None,
        new_parent_task_name: str | None = None,
        new_parent_tag_id: str | None = None,
        new_parent_tag_name: str | None = None,
        new_folder_id: str | None = None,
        new_folder_name: str | None = None,
        move_to_root: bool = False,
    ) -> MutationResult:
        """Change properties of a task, project or tag and optionally move it.

        An empty string for ``new_due_date``/``new_defer_date`` clears the date.
        The result lists exactly the properties that changed, plus ``moved``
        when the entity ended up in a new container.
        """
        check_item_type(item_type)
        ref = EntityRef(id=id, name=name).validate()
        logger.info("Editing item", item_type=item_type, ref=ref.describe())

        if new_name == "":
            raise ValidationError("New name must not be empty")
        proposed: dict[str, Any] = {
            "name": new_name,
            "note": new_note,
            "flagged": new_flagged,
            "dueDate": new_due_date,
            "deferDate": new_defer_date,
            "estimatedMinutes": new_estimated_minutes,
            "status": new_status,
            "sequential": new_sequential,
            "allowsNextAction": new_allows_next_action,
        }
        proposed = {key: value for key, value in proposed.items() if value is not None}
        unsupported = [key for key in proposed if key not in EDITABLE_PROPERTIES[item_type]]
        if item_type != "task" and (add_tags or remove_tags):
            unsupported.append("tags")
        if unsupported:
            raise ValidationError(f"Cannot change {', '.join(unsupported)} of a {item_type}")

        changes = []
        for key, value in proposed.items():
            if key in ("dueDate", "deferDate"):
                value = parse_date(value, key)
            elif key == "status" and value not in STATUS_VALUES[item_type]:
                raise ValidationError(
                    f"Unknown {item_type} status: {value!r} (expected one of {', '.join(STATUS_VALUES[item_type])})"
                )
            changes.append(PropertyChange(key, value))

        relocation = RelocationTarget.from_candidates(
            item_type,
            {
                "projectId": new_project_id,
                "projectName": new_project_name,
                "parentTaskId": new_parent_task_id,
                "parentTaskName": new_parent_task_name,
                "parentTagId": new_parent_tag_id,
                "parentTagName": new_parent_tag_name,
                "folderId": new_folder_id,
                "folderName": new_folder_name,
                "root": move_to_root,
            },
        )
        command = EditCommand(
            kind=item_type,
            ref=ref,
            changes=changes,
            relocation=relocation,
            add_tags=list(add_tags or []),
            remove_tags=list(remove_tags or []),
        )

        payload = self._execute(command)
        result = MutationResult(
            success=True,
            id=payload.get("id"),
            name=payload.get("name"),
            changed_properties=list(payload.get("changedProperties") or []),
        )
        logger.info("Item edited", item_type=item_type, item_id=result.id, changed=result.changed_properties)
        return result

    @reports_failures(MutationResult)
    def remove_item(self, item_type: str, id: str | None = None, name: str | None = None) -> MutationResult:
        """Delete a task, project or tag; reports the deleted id and name."""
        check_item_type(item_type)
        ref = EntityRef(id=id, name=name).validate()
        logger.info("Removing item", item_type=item_type, ref=ref.describe())

        payload = self._execute(RemoveCommand(kind=item_type, ref=ref))
        result = MutationResult(success=True, id=payload.get("id"), name=payload.get("name"))
        logger.info("Item removed", item_type=item_type, item_id=result.id, name=result.name)
        return result
