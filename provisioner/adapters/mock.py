"""
Mock adapters — test doubles for the command runner and HTTP fetcher.

Used by the test-suite to run whole provisioning pipelines without
touching a host.  Both record every call and can be told to fail or
answer specific requests.
"""

from __future__ import annotations

import json
import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from provisioner.adapters.base import CommandResult, CommandRunner
from provisioner.adapters.http import FetchResult


@dataclass
class RecordedCommand:
    """One call received by ``MockRunner.run``."""

    cmd: list[str]
    input: str | None = None
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)

    @property
    def line(self) -> str:
        return shlex.join(self.cmd)


class MockRunner(CommandRunner):
    """Universal mock runner.

    By default every command succeeds with empty output.  Responses are
    matched by substring against the joined command line; the first
    registered match wins.
    """

    def __init__(self, available: Iterable[str] | None = None):
        self._available = set(available) if available is not None else None
        self._responses: list[tuple[str, CommandResult]] = []
        self._calls: list[RecordedCommand] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def calls(self) -> list[RecordedCommand]:
        return self._calls

    @property
    def lines(self) -> list[str]:
        """Every command received, as shell-joined strings."""
        return [c.line for c in self._calls]

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def is_available(self, program: str) -> bool:
        return self._available is None or program in self._available

    def set_output(self, match: str, stdout: str = "", returncode: int = 0) -> None:
        """Answer commands containing ``match`` with the given output."""
        self._responses.append(
            (match, CommandResult(command=match, returncode=returncode, stdout=stdout))
        )

    def set_failure(self, match: str, returncode: int = 1, stderr: str = "Mock failure") -> None:
        """Make commands containing ``match`` fail."""
        self._responses.append(
            (match, CommandResult(command=match, returncode=returncode, stderr=stderr))
        )

    def ran(self, fragment: str) -> bool:
        """Whether any recorded command line contains ``fragment``."""
        return any(fragment in line for line in self.lines)

    def find(self, fragment: str) -> list[RecordedCommand]:
        return [c for c in self._calls if fragment in c.line]

    def run(
        self,
        cmd: list[str],
        *,
        input: str | None = None,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: int | None = None,
        secrets: Iterable[str] = (),
    ) -> CommandResult:
        recorded = RecordedCommand(cmd=list(cmd), input=input, cwd=cwd, env=dict(env or {}))
        self._calls.append(recorded)

        for match, response in self._responses:
            if match in recorded.line:
                return response.model_copy(update={"command": recorded.line})

        return CommandResult(command=recorded.line)



class MockFetcher:
    """In-memory HTTP fetcher keyed by exact URL."""

    def __init__(self) -> None:
        self._responses: dict[str, FetchResult] = {}
        self.requested: list[str] = []

    def add(self, url: str, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._responses[url] = FetchResult(url=url, data=data, status=200)

    def add_json(self, url: str, payload: Any) -> None:
        self.add(url, json.dumps(payload))

    def add_error(self, url: str, status: int = 404) -> None:
        self._responses[url] = FetchResult(url=url, ok=False, status=status, error=f"HTTP {status}")

    def fetch(self, url: str, *, headers: dict[str, str] | None = None) -> FetchResult:
        self.requested.append(url)
        if url in self._responses:
            return self._responses[url]
        return FetchResult(url=url, ok=False, status=404, error="HTTP 404: Not Found")

    def fetch_json(self, url: str) -> FetchResult:
        return self.fetch(url)
