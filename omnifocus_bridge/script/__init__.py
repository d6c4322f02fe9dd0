"""AppleScript generation."""

from omnifocus_bridge.script.generator import (
    CreateCommand,
    EditCommand,
    PropertyChange,
    RemoveCommand,
    ScriptGenerator,
)
from omnifocus_bridge.script.query import QueryPlan, build_query_script

__all__ = [
    "CreateCommand",
    "EditCommand",
    "PropertyChange",
    "QueryPlan",
    "RemoveCommand",
    "ScriptGenerator",
    "build_query_script",
]
