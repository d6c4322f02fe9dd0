"""Query script generation.

The script walks one collection inside the application, applies the activity
check and filters there, and emits only the fields the caller will see.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from omnifocus_bridge.fields import EntityCatalogue, FieldSpec
from omnifocus_bridge.script.builder import (
    AllOf,
    AnyOf,
    AppendTo,
    Call,
    Cat,
    Expr,
    ExitRepeat,
    If,
    ListOf,
    Lit,
    Op,
    Ref,
    Repeat,
    Return,
    Set,
    Statement,
    render,
)
from omnifocus_bridge.script.helpers import json_object, success, wrap

logger = structlog.get_logger()


@dataclass
class QueryPlan:
    """Validated instructions for one query script.

    ``emit_fields`` is empty in summary mode. ``stop_after`` ends the walk once
    that many matches were found; it is only set when no sort follows.
    """

    catalogue: EntityCatalogue
    filters: dict[str, Any] = field(default_factory=dict)
    emit_fields: list[str] = field(default_factory=list)
    include_inactive: bool = False
    summary: bool = False
    stop_after: int | None = None


def _var(spec: FieldSpec) -> str:
    return f"v_{spec.name}"


def filter_condition(spec: FieldSpec, value: Any) -> Expr:
    var = Ref(_var(spec))
    mode = spec.filter_mode
    if mode == "any":
        return AnyOf([Op(var, "contains", ListOf([Lit(name)])) for name in value])
    if spec.kind == "text":
        return Op(Call("textOf", var), "contains" if mode == "contains" else "is", Lit(value))
    return Op(var, "is", Lit(value))


def build_query_script(app_name: str, plan: QueryPlan) -> str:
    catalogue = plan.catalogue
    if plan.summary:
        computed = [spec for spec in catalogue.fields if spec.name in plan.filters]
    else:
        computed = list(catalogue.fields)

    on_match: list[Statement] = [Set("matchCount", Op(Ref("matchCount"), "+", Lit(1)))]
    if not plan.summary:
        record = json_object([(name, Ref(_var(catalogue.get(name))), catalogue.get(name).kind) for name in plan.emit_fields])
        on_match.append(AppendTo("matched", record))
    if plan.stop_after:
        on_match.append(If(Op(Ref("matchCount"), ">=", Lit(plan.stop_after)), [ExitRepeat()]))

    conditions = [filter_condition(catalogue.get(name), value) for name, value in plan.filters.items()]
    per_item: list[Statement] = [Set(_var(spec), Ref(spec.expression)) for spec in computed]
    per_item.append(If(AllOf(conditions), on_match))
    if not plan.include_inactive:
        per_item = [If(Ref(catalogue.active_condition), per_item)]

    body: list[Statement] = [
        Set("matched", Ref("{}")),
        Set("matchCount", Lit(0)),
        Set("allItems", Ref(catalogue.collection)),
        Repeat("anItem", Ref("allItems"), per_item),
    ]
    count = ("count", Ref("matchCount"), "number")
    if plan.summary:
        body.append(Return(success(count)))
    else:
        items = Cat(Lit("["), Call("joinText", Ref("matched"), Lit(",")), Lit("]"))
        body.append(Return(success(count, ("items", items, "raw"))))

    script = render(wrap(app_name, body))
    logger.debug(
        "Generated query script",
        entity=catalogue.kind,
        filters=sorted(plan.filters),
        summary=plan.summary,
        length=len(script),
    )
    return script
