"""Error taxonomy for the OmniFocus bridge."""


class BridgeError(Exception):
    """Base class for every failure the bridge reports to its caller."""

    kind = "bridge"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BridgeError):
    """Caller arguments were rejected before any script was generated."""

    kind = "validation"


class ProcessError(BridgeError):
    """The automation host could not run the script or exited abnormally."""

    kind = "process"

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class DecodeError(BridgeError):
    """Script output was not a single well-formed result envelope."""

    kind = "decode"

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class BusinessFailure(BridgeError):
    """The script ran and reported ``success: false``."""

    kind = "business"

    def __init__(self, message: str, payload: dict | None = None) -> None:
        super().__init__(message)
        self.payload = payload or {}
