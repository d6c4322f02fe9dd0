"""Tests for result envelope decoding."""

import pytest

from omnifocus_bridge.decoder import decode_envelope
from omnifocus_bridge.errors import BusinessFailure, DecodeError


def test_success_payload() -> None:
    """The payload is returned without the success flag."""
    payload = decode_envelope('{"success":true,"tagId":"t1","name":"Work"}\n')
    assert payload == {"tagId": "t1", "name": "Work"}


def test_escaped_characters_survive() -> None:
    """Quotes and backslashes escaped by the script decode back."""
    payload = decode_envelope('{"success":true,"name":"a \\"b\\" \\\\ c"}')
    assert payload["name"] == 'a "b" \\ c'


def test_raw_control_characters_are_tolerated() -> None:
    """Control characters inside strings do not break decoding."""
    payload = decode_envelope('{"success":true,"note":"line\x0bbreak"}')
    assert payload["note"] == "line\x0bbreak"


def test_failure_raises_business_failure() -> None:
    """success false becomes a business failure with its payload."""
    with pytest.raises(BusinessFailure) as excinfo:
        decode_envelope('{"success":false,"error":"Tag not found: id x","changedProperties":["name"]}')
    assert excinfo.value.message == "Tag not found: id x"
    assert excinfo.value.payload["changedProperties"] == ["name"]


def test_failure_without_message() -> None:
    """A failure without an error text still reports something."""
    with pytest.raises(BusinessFailure, match="without a message"):
        decode_envelope('{"success":false}')


@pytest.mark.parametrize(
    "stdout",
    [
        "",
        "not json",
        '{"success":true}{"success":true}',
        '[{"success":true}]',
        '{"count":1}',
        '{"success":"yes"}',
    ],
)
def test_malformed_output_raises_decode_error(stdout: str) -> None:
    """Anything but one object with a boolean success flag is rejected."""
    with pytest.raises(DecodeError) as excinfo:
        decode_envelope(stdout)
    assert excinfo.value.kind == "decode"
    assert excinfo.value.raw == stdout.strip()
