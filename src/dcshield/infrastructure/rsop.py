"""
Resultant Set of Policy (RSOP) snapshot source.

Exports the computer-scope resultant policy with ``gpresult /x`` and parses
the password, lockout and security-option settings out of the XML report.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Iterator

from dcshield.domain.errors import CollectionError, ScriptExecutionError
from dcshield.infrastructure.powershell.runner import ScriptRunner

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "dcshield-rsop.xml"

# Account policy name -> snapshot field
ACCOUNT_NUMBER_SETTINGS = {
    "MinimumPasswordAge": "min_password_age",
    "LockoutBadCount": "lockout_threshold",
    "MinimumPasswordLength": "min_password_length",
    "PasswordHistorySize": "password_history_size",
}
ACCOUNT_BOOLEAN_SETTINGS = {
    "PasswordComplexity": "complexity_enabled",
}

NULL_SESSION_VALUE = r"System\CurrentControlSet\Services\LanManServer\Parameters\RestrictNullSessAccess"
ANONYMOUS_NAME_LOOKUP = "LSAAnonymousNameLookup"


def _local(tag: str) -> str:
    """Tag name without namespace."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> str | None:
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return None


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _elements(root: ET.Element, name: str) -> Iterator[ET.Element]:
    for element in root.iter():
        if _local(element.tag) == name:
            yield element


def _to_int(text: str | None) -> int | None:
    if text is None or text == "":
        return None
    try:
        return int(text)
    except ValueError:
        logger.warning("Unparsable numeric policy value: %r", text)
        return None


def _to_bool(text: str | None) -> bool | None:
    if text is None:
        return None
    lowered = text.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    logger.warning("Unparsable boolean policy value: %r", text)
    return None


def _precedence(element: ET.Element) -> int:
    value = _to_int(_child_text(element, "Precedence"))
    return value if value is not None else 1


def _winning(candidates: list[ET.Element]) -> ET.Element | None:
    """The entry with the lowest precedence number is the effective one."""
    if not candidates:
        return None
    return min(candidates, key=_precedence)


def _normalize_key(path: str) -> str:
    """Strip the MACHINE\\ / HKLM\\ hive prefix and compare case-insensitively."""
    lowered = path.strip().lower()
    for prefix in ("machine\\", "hklm\\", "hkey_local_machine\\"):
        if lowered.startswith(prefix):
            return lowered[len(prefix):]
    return lowered


class RsopSnapshotSource:
    """SnapshotSource backed by gpresult on the target host."""

    def __init__(self, runner: ScriptRunner) -> None:
        self.runner = runner

    def export(self) -> str:
        try:
            data = self.runner.run_json("rsop_export", file_name=EXPORT_FILE_NAME)
        except ScriptExecutionError as e:
            raise CollectionError(f"gpresult export failed: {e}") from e
        if not isinstance(data, dict) or not data.get("xml"):
            raise CollectionError("gpresult export returned no XML document")
        return data["xml"]

    def parse(self, document: str) -> dict[str, Any]:
        """
        Extract snapshot policy fields.

        Fields missing from the report are returned as None.

        Raises:
            CollectionError: The document is not well-formed XML
        """
        try:
            root = ET.fromstring(document.lstrip("\ufeff"))
        except ET.ParseError as e:
            raise CollectionError(f"RSOP document is not valid XML: {e}") from e

        fields: dict[str, Any] = {}
        accounts = list(_elements(root, "Account"))

        for setting_name, field_name in ACCOUNT_NUMBER_SETTINGS.items():
            entry = _winning([a for a in accounts if _child_text(a, "Name") == setting_name])
            fields[field_name] = _to_int(_child_text(entry, "SettingNumber")) if entry is not None else None

        for setting_name, field_name in ACCOUNT_BOOLEAN_SETTINGS.items():
            entry = _winning([a for a in accounts if _child_text(a, "Name") == setting_name])
            fields[field_name] = _to_bool(_child_text(entry, "SettingBoolean")) if entry is not None else None

        null_sessions = self._registry_number(root, NULL_SESSION_VALUE)
        fields["null_sessions_restricted"] = None if null_sessions is None else null_sessions == 1

        lookup = _winning([
            e for e in _elements(root, "SystemAccess")
            if _child_text(e, "Name") == ANONYMOUS_NAME_LOOKUP
        ])
        lookup_value = _to_int(_child_text(lookup, "SettingNumber")) if lookup is not None else None
        fields["anonymous_sid_translation_restricted"] = None if lookup_value is None else lookup_value == 0

        logger.debug("Parsed RSOP fields: %s", fields)
        return fields

    @staticmethod
    def _registry_number(root: ET.Element, value_path: str) -> int | None:
        """
        Effective number for a registry value.

        Looks at security options first, then registry-based policy settings.
        """
        wanted = _normalize_key(value_path)

        option = _winning([
            e for e in _elements(root, "SecurityOptions")
            if _normalize_key(_child_text(e, "KeyName") or "") == wanted
        ])
        if option is not None:
            return _to_int(_child_text(option, "SettingNumber"))

        wanted_key, _, wanted_name = wanted.rpartition("\\")
        matches = []
        for setting in _elements(root, "RegistrySetting"):
            if _normalize_key(_child_text(setting, "KeyPath") or "") != wanted_key:
                continue
            value = _child(setting, "Value")
            if value is not None and (_child_text(value, "Name") or "").lower() == wanted_name:
                matches.append((setting, value))
        if not matches:
            return None
        _, value = min(matches, key=lambda pair: _precedence(pair[0]))
        return _to_int(_child_text(value, "Number"))
