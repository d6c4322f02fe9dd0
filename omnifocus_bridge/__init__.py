"""OmniFocus bridge: query and change OmniFocus through generated AppleScript."""

from omnifocus_bridge.bridge import OmniFocusBridge
from omnifocus_bridge.errors import BridgeError, BusinessFailure, DecodeError, ProcessError, ValidationError
from omnifocus_bridge.models import EntityRef, MutationResult, QueryResult, QuerySpec, RelocationTarget

__all__ = [
    "BridgeError",
    "BusinessFailure",
    "DecodeError",
    "EntityRef",
    "MutationResult",
    "OmniFocusBridge",
    "ProcessError",
    "QueryResult",
    "QuerySpec",
    "RelocationTarget",
    "ValidationError",
]
