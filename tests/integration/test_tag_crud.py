"""Tag create, edit, move and remove against a running OmniFocus."""

import pytest

from omnifocus_bridge.bridge import OmniFocusBridge

pytestmark = pytest.mark.integration


def _add(bridge: OmniFocusBridge, created: list[str], name: str, **kwargs) -> str:
    result = bridge.add_tag(name, **kwargs)
    assert result.success, result.error
    created.append(result.id)
    return result.id


def test_add_and_query(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """A new tag is found by name."""
    tag_id = _add(bridge, created_tags, f"{prefix} Alpha")

    result = bridge.query({"entity": "tags", "filters": {"name": prefix}, "fields": ["id", "name", "parentTagName"]})
    assert result.success, result.error
    assert result.items == [{"id": tag_id, "name": f"{prefix} Alpha", "parentTagName": None}]


def test_add_under_parent(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """Children can be created by parent name and by parent id."""
    parent_id = _add(bridge, created_tags, f"{prefix} Parent")

    by_name = bridge.add_tag(f"{prefix} Child", parent_tag_name=f"{prefix} Parent")
    assert by_name.success, by_name.error
    created_tags.append(by_name.id)
    assert by_name.container_name == f"{prefix} Parent"

    by_id = bridge.add_tag(f"{prefix} Other Child", parent_tag_id=parent_id)
    assert by_id.success, by_id.error
    created_tags.append(by_id.id)

    children = bridge.query({"entity": "tags", "filters": {"parentTagId": parent_id}, "sortBy": "name"})
    assert [item["name"] for item in children.items] == [f"{prefix} Child", f"{prefix} Other Child"]


def test_quotes_in_names(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """Names with quotes and backslashes round-trip unchanged."""
    name = f'{prefix} "quoted" \\ back'
    tag_id = _add(bridge, created_tags, name)

    result = bridge.query({"entity": "tags", "filters": {"name": prefix}, "fields": ["id", "name"]})
    assert result.items == [{"id": tag_id, "name": name}]


def test_rename_and_noop(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """Renames report the change; repeating them reports nothing."""
    tag_id = _add(bridge, created_tags, f"{prefix} Alpha")

    renamed = bridge.edit_item("tag", id=tag_id, new_name=f"{prefix} Renamed")
    assert renamed.changed_properties == ["name"]

    again = bridge.edit_item("tag", name=f"{prefix} Renamed", new_name=f"{prefix} Renamed")
    assert again.success, again.error
    assert again.changed_properties == []


def test_move_and_cycle(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """Tags move between parents; moving under a descendant is refused."""
    parent_id = _add(bridge, created_tags, f"{prefix} Parent")
    child_id = _add(bridge, created_tags, f"{prefix} Child")

    moved = bridge.edit_item("tag", id=child_id, new_parent_tag_id=parent_id)
    assert moved.changed_properties == ["moved"]

    cycle = bridge.edit_item("tag", id=parent_id, new_parent_tag_id=child_id)
    assert not cycle.success
    assert cycle.error_kind == "business"

    back = bridge.edit_item("tag", id=child_id, move_to_root=True)
    assert back.changed_properties == ["moved"]


def test_remove_twice(bridge: OmniFocusBridge, created_tags: list[str], prefix: str) -> None:
    """A removed tag is gone."""
    tag_id = bridge.add_tag(f"{prefix} Doomed").id

    removed = bridge.remove_item("tag", id=tag_id)
    assert removed.success, removed.error
    assert removed.name == f"{prefix} Doomed"

    missing = bridge.remove_item("tag", id=tag_id)
    assert not missing.success
    assert missing.error == f"Tag not found: id {tag_id}"
