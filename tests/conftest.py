"""Shared fixtures."""

import json
from typing import Any, Callable

import pytest

from omnifocus_bridge.runner import ProcessOutput, ScriptRunner


class FakeRunner(ScriptRunner):
    """Runner that records scripts and answers with queued outputs."""

    def __init__(self, *outputs: str | dict[str, Any] | Exception) -> None:
        super().__init__()
        self.outputs = list(outputs)
        self.scripts: list[str] = []

    def run(self, script: str) -> ProcessOutput:
        self.scripts.append(script)
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        if isinstance(output, dict):
            output = json.dumps(output)
        return ProcessOutput(stdout=output + "\n", stderr="")


@pytest.fixture
def fake_runner() -> Callable[..., FakeRunner]:
    """Factory for runners answering with the given envelopes in order."""
    return FakeRunner
