"""Command line access to the OmniFocus bridge.

Every command prints the operation result as JSON.
"""

import json
from typing import Annotated, Any, Literal

import structlog
from cyclopts import App, Parameter

from omnifocus_bridge.bridge import OmniFocusBridge
from omnifocus_bridge.config import get_config
from omnifocus_bridge.config_commands import config_app
from omnifocus_bridge.fields import CATALOGUES
from omnifocus_bridge.models import ENTITY_PLURALS, MutationResult, QueryResult

app = App(
    help="OmniFocus Bridge - query and change OmniFocus tasks, projects and tags",
)

app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_bridge() -> OmniFocusBridge:
    """Get a bridge set up from the effective configuration."""
    return OmniFocusBridge.from_config(get_config())


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_filter_value(value: str, kind: str) -> Any:
    """Convert a filter value according to the kind of field it filters."""
    if kind == "bool" and value.lower() in ("true", "false"):
        return value.lower() == "true"
    if kind == "number" and value.lstrip("-").isdigit():
        return int(value)
    if kind == "list":
        return [name for name in value.split("|") if name]
    return value


def parse_filters(filter: str | None, entity: str) -> dict[str, Any]:
    """Parse ``key=value,key=value`` for ``entity``; list fields take ``|``-separated names.

    Unknown keys are passed through as text for the query engine to reject.
    """
    catalogue = CATALOGUES.get(ENTITY_PLURALS.get(entity, ""))
    filters: dict[str, Any] = {}
    for item in _split(filter):
        if "=" not in item:
            continue
        key, value = item.split("=", 1)
        key, value = key.strip(), value.strip()
        spec = catalogue.get(key) if catalogue else None
        filters[key] = parse_filter_value(value, spec.kind if spec else "text")
    return filters


def _emit(result: MutationResult | QueryResult) -> None:
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    if not result.success:
        raise SystemExit(1)


@app.command
def query(
    entity: Literal["tasks", "projects", "tags"],
    filter: str | None = None,
    fields: str | None = None,
    sort_by: str | None = None,
    sort_order: Literal["asc", "desc"] = "asc",
    limit: int | None = None,
    summary: bool = False,
    include_inactive: bool = False,
) -> None:
    """Query tasks, projects or tags."""
    bridge = get_bridge()
    result = bridge.query(
        {
            "entity": entity,
            "filters": parse_filters(filter, entity),
            "fields": _split(fields) or None,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "limit": limit,
            "summary": summary,
            "includeInactive": include_inactive,
        }
    )
    _emit(result)


@app.command
def add_tag(name: str, parent_tag_id: str | None = None, parent_tag_name: str | None = None) -> None:
    """Create a tag."""
    _emit(get_bridge().add_tag(name, parent_tag_id=parent_tag_id, parent_tag_name=parent_tag_name))


@app.command
def add_task(
    name: str,
    note: str | None = None,
    flagged: bool | None = None,
    due_date: str | None = None,
    defer_date: str | None = None,
    estimated_minutes: int | None = None,
    tags: str | None = None,
    project_id: str | None = None,
    project_name: str | None = None,
    parent_task_id: str | None = None,
    parent_task_name: str | None = None,
) -> None:
    """Create a task in the inbox, a project, or under another task."""
    result = get_bridge().add_task(
        name,
        note=note,
        flagged=flagged,
        due_date=due_date,
        defer_date=defer_date,
        estimated_minutes=estimated_minutes,
        tags=_split(tags),
        project_id=project_id,
        project_name=project_name,
        parent_task_id=parent_task_id,
        parent_task_name=parent_task_name,
    )
    _emit(result)


@app.command
def add_project(
    name: str,
    note: str | None = None,
    flagged: bool | None = None,
    sequential: bool | None = None,
    due_date: str | None = None,
    defer_date: str | None = None,
    folder_id: str | None = None,
    folder_name: str | None = None,
) -> None:
    """Create a project."""
    result = get_bridge().add_project(
        name,
        note=note,
        flagged=flagged,
        sequential=sequential,
        due_date=due_date,
        defer_date=defer_date,
        folder_id=folder_id,
        folder_name=folder_name,
    )
    _emit(result)


@app.command
def edit(
    item_type: Literal["task", "project", "tag"],
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
    add_tags: str | None = None,
    remove_tags: str | None = None,
    new_project_id: str | None = None,
    new_project_name: str | None = None,
    new_parent_task_id: str | None = None,
    new_parent_task_name: str | None = None,
    new_parent_tag_id: str | None = None,
    new_parent_tag_name: str | None = None,
    new_folder_id: str | None = None,
    new_folder_name: str | None = None,
    move_to_root: bool = False,
) -> None:
    """Edit and optionally move a task, project or tag."""
    result = get_bridge().edit_item(
        item_type,
        id=id,
        name=name,
        new_name=new_name,
        new_note=new_note,
        new_flagged=new_flagged,
        new_due_date=new_due_date,
        new_defer_date=new_defer_date,
        new_estimated_minutes=new_estimated_minutes,
        new_status=new_status,
        new_sequential=new_sequential,
        new_allows_next_action=new_allows_next_action,
        add_tags=_split(add_tags),
        remove_tags=_split(remove_tags),
        new_project_id=new_project_id,
        new_project_name=new_project_name,
        new_parent_task_id=new_parent_task_id,
        new_parent_task_name=new_parent_task_name,
        new_parent_tag_id=new_parent_tag_id,
        new_parent_tag_name=new_parent_tag_name,
        new_folder_id=new_folder_id,
        new_folder_name=new_folder_name,
        move_to_root=move_to_root,
    )
    _emit(result)


@app.command
def remove(item_type: Literal["task", "project", "tag"], id: str | None = None, name: str | None = None) -> None:
    """Delete a task, project or tag."""
    _emit(get_bridge().remove_item(item_type, id=id, name=name))


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


if __name__ == "__main__":
    app.meta()
