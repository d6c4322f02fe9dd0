"""Tests for query script generation."""

from omnifocus_bridge.fields import PROJECTS, TAGS, TASKS
from omnifocus_bridge.script.query import QueryPlan, build_query_script


def test_walks_collection_and_excludes_inactive_by_default() -> None:
    """Inactive tags are skipped inside the script."""
    script = build_query_script("OmniFocus", QueryPlan(TAGS, emit_fields=TAGS.default_fields))
    assert "set allItems to flattened tags" in script
    assert "repeat with anItem in allItems" in script
    assert "if (not (effectively hidden of anItem)) then" in script


def test_include_inactive_drops_activity_check() -> None:
    """includeInactive removes the activity condition."""
    plan = QueryPlan(TAGS, emit_fields=["id"], include_inactive=True)
    script = build_query_script("OmniFocus", plan)
    assert "if (not (effectively hidden of anItem)) then" not in script


def test_computes_full_field_set() -> None:
    """All default fields are computed even when fewer are emitted."""
    script = build_query_script("OmniFocus", QueryPlan(TASKS, emit_fields=["name"]))
    for spec in TASKS.fields:
        assert f"set v_{spec.name} to {spec.expression}" in script


def test_emits_requested_fields_in_order() -> None:
    """Records carry only the emitted fields, in the given order."""
    script = build_query_script("OmniFocus", QueryPlan(TAGS, emit_fields=["name", "id"]))
    assert '"{\\"name\\":" & my jsonString(v_name) & ",\\"id\\":" & my jsonString(v_id) & "}"' in script
    assert "jsonString(v_parentTagName)" not in script


def test_filter_conditions() -> None:
    """Name filters use contains, relationship ids equality, flags equality."""
    plan = QueryPlan(TASKS, filters={"name": "Report", "projectId": "p1", "flagged": True}, emit_fields=["id"])
    script = build_query_script("OmniFocus", plan)
    assert (
        'if ((my textOf(v_name) contains "Report") and (my textOf(v_projectId) is "p1") and (v_flagged is true)) then'
        in script
    )


def test_tag_names_filter_matches_any() -> None:
    """A task matches when it carries one of the given tags."""
    plan = QueryPlan(TASKS, filters={"tagNames": ["work", "home"]}, emit_fields=["id"])
    script = build_query_script("OmniFocus", plan)
    assert '((v_tagNames contains {"work"}) or (v_tagNames contains {"home"}))' in script


def test_filter_values_are_escaped() -> None:
    """Filter values are literals like any other caller input."""
    plan = QueryPlan(TAGS, filters={"name": 'a"b'}, emit_fields=["id"])
    script = build_query_script("OmniFocus", plan)
    assert '(my textOf(v_name) contains "a\\"b")' in script


def test_stop_after_limit() -> None:
    """Without sorting the walk stops once enough items matched."""
    script = build_query_script("OmniFocus", QueryPlan(TAGS, emit_fields=["id"], stop_after=3))
    assert "if (matchCount >= 3) then" in script
    assert "exit repeat" in script


def test_summary_counts_without_records() -> None:
    """Summary scripts compute only filter fields and emit no items."""
    plan = QueryPlan(PROJECTS, filters={"status": "active"}, summary=True)
    script = build_query_script("OmniFocus", plan)
    assert "set v_status to my projectStatus(anItem)" in script
    assert "set v_name to" not in script
    assert "set end of matched" not in script
    assert '\\"items\\"' not in script
    assert '\\"count\\"' in script


def test_items_are_joined_into_array() -> None:
    """Non-summary scripts return the joined records."""
    script = build_query_script("OmniFocus", QueryPlan(TAGS, emit_fields=["id"]))
    assert '",\\"items\\":" & "[" & my joinText(matched, ",") & "]" & "}"' in script
