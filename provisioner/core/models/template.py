"""
Generated file model — used by all generators.
"""

from __future__ import annotations

from pydantic import BaseModel


class GeneratedFile(BaseModel):
    """A configuration file produced by a generator.

    Attributes:
        path:    Absolute path on the provisioned host.
        content: Full file content.
        mode:    Permission bits applied after writing.
        reason:  Why this file was generated.
    """

    path: str
    content: str
    mode: int = 0o644
    reason: str = ""
