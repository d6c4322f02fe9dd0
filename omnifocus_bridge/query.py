"""Query engine: validation, script execution and post-processing."""

from typing import Any

import structlog

from omnifocus_bridge.decoder import decode_envelope
from omnifocus_bridge.errors import DecodeError, ValidationError
from omnifocus_bridge.fields import CATALOGUES, PROJECT_STATUSES, EntityCatalogue, FieldSpec
from omnifocus_bridge.models import ENTITY_PLURALS, QueryResult, QuerySpec
from omnifocus_bridge.runner import ScriptRunner
from omnifocus_bridge.script.query import QueryPlan, build_query_script

logger = structlog.get_logger()


def _check_filter_value(spec: FieldSpec, value: Any) -> Any:
    if spec.kind == "list":
        names = [value] if isinstance(value, str) else value
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise ValidationError(f"Filter {spec.name} expects a name or a list of names")
        return names
    if spec.kind == "bool" and not isinstance(value, bool):
        raise ValidationError(f"Filter {spec.name} expects true or false")
    if spec.kind == "number" and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValidationError(f"Filter {spec.name} expects an integer")
    if spec.kind == "text":
        if not isinstance(value, str):
            raise ValidationError(f"Filter {spec.name} expects text")
        if spec.name == "status" and value not in PROJECT_STATUSES:
            raise ValidationError(f"Unknown project status: {value!r} (expected one of {', '.join(PROJECT_STATUSES)})")
    return value


def _check_filters(catalogue: EntityCatalogue, filters: dict[str, Any]) -> dict[str, Any]:
    checked: dict[str, Any] = {}
    for name, value in filters.items():
        if value is None:
            continue
        spec = catalogue.get(name)
        if spec is None or spec.filter_mode is None:
            raise ValidationError(f"Cannot filter {catalogue.kind}s by {name!r}")
        checked[name] = _check_filter_value(spec, value)
    return checked


def _check_fields(catalogue: EntityCatalogue, fields: list[str] | None) -> list[str]:
    if not fields:
        return catalogue.default_fields
    unknown = [name for name in fields if catalogue.get(name) is None]
    if unknown:
        raise ValidationError(f"Unknown {catalogue.kind} field(s): {', '.join(unknown)}")
    return list(dict.fromkeys(fields))


def _sort_value(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(str(element) for element in value)
    return value


def sort_items(items: list[dict[str, Any]], key: str, order: str = "asc") -> list[dict[str, Any]]:
    """Stable sort by ``key``; text compares by code point, nulls go last."""
    present = [item for item in items if item.get(key) is not None]
    missing = [item for item in items if item.get(key) is None]
    present.sort(key=lambda item: _sort_value(item[key]), reverse=order == "desc")
    return present + missing


class QueryEngine:
    """Runs declarative queries against one application."""

    def __init__(self, runner: ScriptRunner, app_name: str = "OmniFocus") -> None:
        self.runner = runner
        self.app_name = app_name

    def plan(self, spec: QuerySpec) -> tuple[QueryPlan, list[str]]:
        """Validate a query and return the script plan plus the output fields."""
        if spec.entity not in ENTITY_PLURALS:
            raise ValidationError(f"Unknown entity: {spec.entity!r} (expected one of {', '.join(ENTITY_PLURALS)})")
        catalogue = CATALOGUES[spec.kind]
        if spec.sort_order not in ("asc", "desc"):
            raise ValidationError(f"sortOrder must be 'asc' or 'desc', got {spec.sort_order!r}")
        if spec.limit is not None and (isinstance(spec.limit, bool) or not isinstance(spec.limit, int) or spec.limit < 0):
            raise ValidationError(f"limit must be a non-negative integer, got {spec.limit!r}")
        if spec.sort_by is not None and catalogue.get(spec.sort_by) is None:
            raise ValidationError(f"Cannot sort {catalogue.kind}s by {spec.sort_by!r}")

        filters = _check_filters(catalogue, spec.filters)
        output_fields = _check_fields(catalogue, spec.fields)

        if spec.summary:
            return QueryPlan(catalogue, filters=filters, include_inactive=spec.include_inactive, summary=True), []

        emit_fields = list(output_fields)
        if spec.sort_by and spec.sort_by not in emit_fields:
            emit_fields.append(spec.sort_by)
        plan = QueryPlan(
            catalogue,
            filters=filters,
            emit_fields=emit_fields,
            include_inactive=spec.include_inactive,
            stop_after=None if spec.sort_by else (spec.limit or None),
        )
        return plan, output_fields

    def run(self, spec: QuerySpec) -> QueryResult:
        """Execute a query. Raises BridgeError subclasses on failure."""
        logger.info(
            "Querying OmniFocus",
            entity=spec.entity,
            filters=spec.filters,
            sort_by=spec.sort_by,
            limit=spec.limit,
            summary=spec.summary,
        )
        plan, output_fields = self.plan(spec)
        output = self.runner.run(build_query_script(self.app_name, plan))
        payload = decode_envelope(output.stdout)

        if spec.summary:
            count = payload.get("count")
            if isinstance(count, bool) or not isinstance(count, int):
                raise DecodeError(f"Summary result has no integer count: {output.stdout.strip()}", output.stdout)
            logger.info("Query summary completed", entity=spec.entity, count=count)
            return QueryResult(success=True, count=count)

        items = payload.get("items")
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise DecodeError(f"Query result has no item list: {output.stdout.strip()}", output.stdout)

        if spec.sort_by:
            items = sort_items(items, spec.sort_by, spec.sort_order)
        if spec.limit:
            items = items[: spec.limit]
        if len(plan.emit_fields) != len(output_fields):
            items = [{name: item.get(name) for name in output_fields} for item in items]

        logger.info("Query completed", entity=spec.entity, count=len(items))
        return QueryResult(success=True, count=len(items), items=items)
