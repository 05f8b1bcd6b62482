import os

import pytest

from pdive.core.results import ResultStore


class RecordingDisplay:
    """Output sink that remembers what it was asked to print."""

    def __init__(self):
        self.lines = []

    def log(self, message, level="INFO"):
        self.lines.append((level, message))

    def messages(self, level=None):
        return [m for lvl, m in self.lines if level is None or lvl == level]


class FakeTool:
    """Stands in for ExternalTool with canned stdout."""

    def __init__(self, output="", available=True, error=None):
        self.output = output
        self._available = available
        self.error = error
        self.calls = []
        self.input_files = []

    def available(self):
        return self._available

    def run(self, args, timeout):
        args = list(args)
        self.calls.append((args, timeout))
        if "-iL" in args:
            path = args[args.index("-iL") + 1]
            with open(path) as f:
                self.input_files.append((path, os.path.exists(path), f.read().splitlines()))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def store():
    return ResultStore(["10.0.0.0/30"], mode="active")
