"""Tests for the bridge operations."""

from datetime import datetime, timedelta, timezone

import pytest

from omnifocus_bridge.bridge import OmniFocusBridge, parse_date
from omnifocus_bridge.config import Config
from omnifocus_bridge.errors import ProcessError, ValidationError


def test_add_tag_then_query(fake_runner) -> None:
    """A created tag is visible to a following query."""
    runner = fake_runner(
        {"success": True, "tagId": "t1", "name": "Errands", "parentName": ""},
        {"success": True, "count": 1, "items": [{"id": "t1", "name": "Errands"}]},
    )
    bridge = OmniFocusBridge(runner=runner)

    created = bridge.add_tag("Errands")
    assert created.success
    assert created.id == "t1"
    assert created.container_name is None

    found = bridge.query({"entity": "tags", "filters": {"name": "Errands"}, "fields": ["id", "name"]})
    assert found.to_dict() == {"success": True, "count": 1, "items": [{"id": "t1", "name": "Errands"}]}
    assert '(my textOf(v_name) contains "Errands")' in runner.scripts[1]


def test_add_tag_keeps_control_characters(fake_runner) -> None:
    """Names with control characters reach the script unchanged."""
    runner = fake_runner({"success": True, "tagId": "t3", "name": "a\x0bb", "parentName": ""})
    result = OmniFocusBridge(runner=runner).add_tag("a\x0bb")
    assert result.name == "a\x0bb"
    assert '{name:("a" & (character id 11) & "b")}' in runner.scripts[0]


def test_add_tag_under_parent(fake_runner) -> None:
    """The parent name comes back as the container."""
    runner = fake_runner({"success": True, "tagId": "t2", "name": "Phone", "parentName": "Errands"})
    result = OmniFocusBridge(runner=runner).add_tag("Phone", parent_tag_name="Errands")
    assert result.container_name == "Errands"
    assert 'first flattened tag whose name is "Errands"' in runner.scripts[0]


def test_add_tag_with_both_parent_discriminants(fake_runner) -> None:
    """Two parent discriminants are rejected before any script runs."""
    runner = fake_runner()
    result = OmniFocusBridge(runner=runner).add_tag("Phone", parent_tag_id="t1", parent_tag_name="Errands")
    assert not result.success
    assert result.error_kind == "validation"
    assert runner.scripts == []


def test_add_task_to_project(fake_runner) -> None:
    """Task creation reports the containing project."""
    runner = fake_runner({"success": True, "taskId": "k1", "name": "Draft", "containerName": "Report"})
    result = OmniFocusBridge(runner=runner).add_task(
        "Draft", project_name="Report", due_date="2024-03-15T09:30:00", tags=["work"]
    )
    assert result.to_dict() == {"success": True, "id": "k1", "name": "Draft", "containerName": "Report"}
    assert "my makeDate(2024, 3, 15, 34200)" in runner.scripts[0]


def test_add_task_parent_not_found(fake_runner) -> None:
    """A missing parent task is a business failure and nothing is created."""
    runner = fake_runner({"success": False, "error": "Parent task not found: id nope"})
    result = OmniFocusBridge(runner=runner).add_task("Sub", parent_task_id="nope")
    assert not result.success
    assert result.error == "Parent task not found: id nope"
    assert result.error_kind == "business"


def test_add_task_rejects_bad_date(fake_runner) -> None:
    """Malformed dates are validation errors."""
    runner = fake_runner()
    result = OmniFocusBridge(runner=runner).add_task("Draft", due_date="next tuesday")
    assert result.error_kind == "validation"
    assert "dueDate" in result.error
    assert runner.scripts == []


def test_add_project_in_folder(fake_runner) -> None:
    """Projects can be created inside a folder."""
    runner = fake_runner({"success": True, "projectId": "p1", "name": "Move", "folderName": "Home"})
    result = OmniFocusBridge(runner=runner).add_project("Move", folder_name="Home", sequential=True)
    assert result.id == "p1"
    assert result.container_name == "Home"
    assert "sequential:true" in runner.scripts[0]


def test_empty_name_is_rejected(fake_runner) -> None:
    """Entities need a name."""
    bridge = OmniFocusBridge(runner=fake_runner())
    assert bridge.add_tag("").error_kind == "validation"
    assert bridge.add_task("").error_kind == "validation"
    assert bridge.add_project("").error_kind == "validation"


def test_noop_edit_reports_no_changes(fake_runner) -> None:
    """Setting a property to its current value changes nothing."""
    runner = fake_runner({"success": True, "id": "t1", "name": "Errands", "changedProperties": []})
    result = OmniFocusBridge(runner=runner).edit_item("tag", id="t1", new_name="Errands")
    assert result.success
    assert result.changed_properties == []
    assert result.to_dict()["changedProperties"] == []


def test_edit_reports_changed_properties(fake_runner) -> None:
    """The script's change list is passed through."""
    runner = fake_runner({"success": True, "id": "k1", "name": "Draft", "changedProperties": ["flagged", "moved"]})
    result = OmniFocusBridge(runner=runner).edit_item(
        "task", name="Draft", new_flagged=True, new_project_id="p2"
    )
    assert result.changed_properties == ["flagged", "moved"]


def test_edit_clears_date_with_empty_string(fake_runner) -> None:
    """An empty date clears it."""
    runner = fake_runner({"success": True, "id": "k1", "name": "Draft", "changedProperties": ["dueDate"]})
    OmniFocusBridge(runner=runner).edit_item("task", id="k1", new_due_date="")
    assert "set due date of theItem to missing value" in runner.scripts[0]


def test_failed_move_keeps_applied_changes(fake_runner) -> None:
    """Property changes made before a failed move are still reported."""
    runner = fake_runner(
        {"success": False, "error": "Move did not take effect", "changedProperties": ["name"]}
    )
    result = OmniFocusBridge(runner=runner).edit_item("task", id="k1", new_name="New", new_parent_task_id="k2")
    assert not result.success
    assert result.error_kind == "business"
    assert result.changed_properties == ["name"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"item_type": "folder", "id": "x"},
        {"item_type": "task"},
        {"item_type": "task", "id": "k1", "new_project_id": "p1", "new_parent_task_id": "k2"},
        {"item_type": "tag", "id": "t1", "new_flagged": True},
        {"item_type": "tag", "id": "t1", "new_project_id": "p1"},
        {"item_type": "project", "id": "p1", "add_tags": ["work"]},
        {"item_type": "task", "id": "k1", "new_status": "paused"},
        {"item_type": "project", "id": "p1", "new_status": "completed"},
        {"item_type": "task", "id": "k1", "new_name": ""},
        {"item_type": "tag", "id": "t1", "new_parent_tag_id": "t2", "move_to_root": True},
    ],
)
def test_edit_validation(fake_runner, kwargs) -> None:
    """Invalid edits never reach the runner."""
    runner = fake_runner()
    result = OmniFocusBridge(runner=runner).edit_item(**kwargs)
    assert not result.success
    assert result.error_kind == "validation"
    assert runner.scripts == []


def test_remove_twice(fake_runner) -> None:
    """The second removal reports the entity as not found."""
    runner = fake_runner(
        {"success": True, "id": "t1", "name": "Errands"},
        {"success": False, "error": "Tag not found: id t1"},
    )
    bridge = OmniFocusBridge(runner=runner)

    first = bridge.remove_item("tag", id="t1")
    assert first.to_dict() == {"success": True, "id": "t1", "name": "Errands"}

    second = bridge.remove_item("tag", id="t1")
    assert not second.success
    assert second.error == "Tag not found: id t1"


def test_process_error_kind(fake_runner) -> None:
    """Interpreter failures surface as process errors."""
    runner = fake_runner(ProcessError("execution error: Not authorized (-1743)", returncode=1))
    result = OmniFocusBridge(runner=runner).remove_item("task", name="Draft")
    assert result.to_dict() == {
        "success": False,
        "error": "execution error: Not authorized (-1743)",
        "errorKind": "process",
    }


def test_decode_error_kind(fake_runner) -> None:
    """Unparseable output surfaces as a decode error."""
    result = OmniFocusBridge(runner=fake_runner("garbage")).add_tag("Errands")
    assert result.error_kind == "decode"


def test_query_failures_are_results(fake_runner) -> None:
    """Query errors are reported, not raised."""
    bridge = OmniFocusBridge(runner=fake_runner("[]"))
    assert bridge.query({"entity": "folders"}).to_dict()["errorKind"] == "validation"
    assert bridge.query({"entity": "tags"}).error_kind == "decode"


def test_parse_date() -> None:
    """Dates parse to naive local time."""
    assert parse_date("2024-03-15", "dueDate") == datetime(2024, 3, 15)
    assert parse_date("", "dueDate") is None
    assert parse_date(None, "dueDate") is None
    aware = datetime(2024, 3, 15, 12, tzinfo=timezone(timedelta(hours=2)))
    assert parse_date(aware.isoformat(), "dueDate") == aware.astimezone().replace(tzinfo=None)
    with pytest.raises(ValidationError):
        parse_date("15/03/2024", "dueDate")


def test_from_config(tmp_path, monkeypatch) -> None:
    """Runner settings come from configuration."""
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
    config = Config(config_dir=tmp_path / "local")
    config.set("osascript.path", "/opt/bin/osascript")
    config.set("runner.timeout", 30)
    config.set("app.name", "OmniFocus 4")

    bridge = OmniFocusBridge.from_config(config)

    assert bridge.runner.osascript_path == "/opt/bin/osascript"
    assert bridge.runner.timeout == 30.0
    assert bridge.app_name == "OmniFocus 4"


def test_default_runner() -> None:
    """Without a runner the bridge uses plain osascript."""
    bridge = OmniFocusBridge()
    assert bridge.runner.osascript_path == "osascript"
    assert bridge.runner.timeout is None


def test_bridge_errors_are_not_swallowed(fake_runner) -> None:
    """Only bridge errors are converted into results."""
    runner = fake_runner(RuntimeError("unexpected"))
    with pytest.raises(RuntimeError):
        OmniFocusBridge(runner=runner).remove_item("task", id="k1")


def test_from_config_with_bad_timeout(tmp_path, monkeypatch) -> None:
    """A timeout the runner cannot use leaves the runner without one."""
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
    local = tmp_path / "local"
    local.mkdir()
    (local / "config.yaml").write_text("runner.timeout: soon\n")

    bridge = OmniFocusBridge.from_config(Config(config_dir=local))

    assert bridge.runner.timeout is None
    assert bridge.runner.osascript_path == "osascript"
