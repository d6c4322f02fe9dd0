"""Decoding of the JSON result envelope printed by generated scripts."""

import json
from typing import Any

import structlog

from omnifocus_bridge.errors import BusinessFailure, DecodeError

logger = structlog.get_logger()


def decode_envelope(stdout: str) -> dict[str, Any]:
    """Parse script output into the envelope payload.

    Returns the payload without the ``success`` flag. Raises DecodeError when
    the output is not exactly one JSON object with a boolean ``success`` field,
    and BusinessFailure when the script reported ``success: false``.
    """
    raw = stdout.strip()
    try:
        # Scripts may pass control characters straight through inside strings.
        envelope = json.loads(raw, strict=False)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse script output", stdout=raw, error=str(e))
        raise DecodeError(f"Failed to parse result: {raw}", raw) from e

    if not isinstance(envelope, dict):
        raise DecodeError(f"Expected a JSON object, got: {raw}", raw)
    if not isinstance(envelope.get("success"), bool):
        raise DecodeError(f"Result has no boolean 'success' field: {raw}", raw)

    payload = {key: value for key, value in envelope.items() if key != "success"}
    if not envelope["success"]:
        error = payload.get("error")
        message = error if isinstance(error, str) and error else "Script reported failure without a message"
        logger.info("Script reported failure", error=message)
        raise BusinessFailure(message, payload)

    logger.debug("Decoded script result", keys=sorted(payload))
    return payload
