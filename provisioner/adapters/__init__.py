"""Adapters — tool bindings for the host: commands, files, HTTP, OS family.

Public re-exports for convenient access.
"""

from provisioner.adapters.base import CommandResult, CommandRunner
from provisioner.adapters.http import FetchResult, HttpFetcher
from provisioner.adapters.mock import MockFetcher, MockRunner
from provisioner.adapters.shell.command import ShellRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter

__all__ = [
    "CommandResult",
    "CommandRunner",
    "FetchResult",
    "FilesystemAdapter",
    "HttpFetcher",
    "MockFetcher",
    "MockRunner",
    "ShellRunner",
]
