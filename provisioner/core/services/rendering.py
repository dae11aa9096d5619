"""
Template rendering — ``{{name}}`` substitution with a residual check.

Simple string replacement — no Jinja, no escaping.  Double braces are
used because the rendered files are full of ``$var`` (nginx) and
``%{VAR}`` (Apache) syntax that must pass through untouched.

Rendering is total: a template token without a value, or anything
still looking like a token after substitution, is a
``ConfigRenderError``.  A half-rendered config file never reaches disk.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from provisioner.core.errors import ConfigRenderError

_TOKEN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_RESIDUAL = re.compile(r"\{\{.*?\}\}")


def placeholders(template: str) -> set[str]:
    """Names of every token in ``template``."""
    return set(_TOKEN.findall(template))


def render(template: str, values: Mapping[str, object], *, name: str = "template") -> str:
    """Substitute ``{{key}}`` tokens with ``values``.

    Args:
        template: Template text.
        values: Token name → value.  Values are converted with ``str``.
        name: Used in error messages (usually the target path).

    Returns:
        Rendered text with no tokens left.

    Raises:
        ConfigRenderError: If a token has no value, a value spans lines,
            or a token-like marker survives substitution.
    """
    missing = sorted(placeholders(template) - set(values))
    if missing:
        raise ConfigRenderError(f"Unresolved placeholders in {name}: {', '.join(missing)}")

    for key in placeholders(template):
        if "\n" in str(values[key]):
            raise ConfigRenderError(f"Value for '{key}' in {name} spans multiple lines")

    rendered = _TOKEN.sub(lambda m: str(values[m.group(1)]), template)

    leftover = _RESIDUAL.findall(rendered)
    if leftover:
        raise ConfigRenderError(f"Residual placeholder in {name}: {leftover[0]}")
    return rendered


def env_value(value: object) -> str:
    """Format a value for a dotenv file, quoting when the parser needs it."""
    text = "" if value is None else str(value)
    if text == "" or re.fullmatch(r"[A-Za-z0-9_./:@+=-]+", text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
