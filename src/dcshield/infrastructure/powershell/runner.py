"""
Script Runner - Jinja2-rendered PowerShell with JSON results.

Every template extends ``_envelope.ps1.j2``, which prints exactly one JSON
document ``{"ok": bool, "data": ..., "error": str|null}`` on stdout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from dcshield.domain.errors import ScriptExecutionError
from dcshield.infrastructure.powershell.client import PowerShellClient

logger = logging.getLogger(__name__)

# Template directory relative to this file
TEMPLATE_DIR = Path(__file__).parent / "templates"


def ps_quote(value: Any) -> str:
    """Render a PowerShell single-quoted string literal."""
    text = str(value)
    # PowerShell also treats typographic single quotes as delimiters
    for quote in ("\u2018", "\u2019", "\u201a", "\u201b"):
        text = text.replace(quote, "'")
    return "'" + text.replace("'", "''") + "'"


def ps_value(value: Any) -> str:
    """Render a Python scalar as a PowerShell literal."""
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, int):
        return str(value)
    if value is None:
        return "$null"
    return ps_quote(value)


def split_registry_path(path: str) -> tuple[str, str]:
    """Split ``HKLM\\Key\\Sub\\ValueName`` into key and value name."""
    key, _, value_name = path.rpartition("\\")
    if not key or not value_name:
        raise ValueError(f"Not a registry value path: {path}")
    return key, value_name


class ScriptRunner:
    """
    Renders bundled templates and runs them through a PowerShellClient.

    Wraps the client with script-specific logic:
    - Renders ``<name>.ps1.j2`` with the given context
    - Parses the JSON envelope
    - Raises ScriptExecutionError for failures
    """

    def __init__(self, client: PowerShellClient, template_dir: Path | None = None) -> None:
        self.client = client
        self.template_dir = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(default=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["ps_quote"] = ps_quote
        self.env.filters["ps_value"] = ps_value

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template to script text."""
        template = self.env.get_template(f"{template_name}.ps1.j2")
        return template.render(**context)

    def run_json(self, template_name: str, **context: Any) -> Any:
        """
        Render and execute a template, returning the envelope's ``data``.

        Raises:
            ScriptExecutionError: Execution failed, no JSON was printed, or
                the script reported ``ok: false``
        """
        script = self.render(template_name, **context)
        logger.debug("Running script %s", template_name)
        result = self.client.run_ps(script)

        envelope = self._parse_envelope(result.stdout)
        if envelope is None:
            detail = result.error or result.stderr.strip() or "no JSON output"
            raise ScriptExecutionError(template_name, detail)

        if not envelope.get("ok", False):
            raise ScriptExecutionError(template_name, envelope.get("error") or "script reported failure")

        return envelope.get("data")

    @staticmethod
    def _parse_envelope(stdout: str) -> dict[str, Any] | None:
        """Find the JSON envelope in output (may have other text before it)."""
        output = (stdout or "").strip()
        json_start = output.find("{")
        json_end = output.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            return None
        try:
            data = json.loads(output[json_start:json_end])
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse JSON envelope: %s", e)
            return None
        return data if isinstance(data, dict) else None


def as_list(data: Any) -> list:
    """Normalize ConvertTo-Json output that may collapse arrays."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]
