"""JSON document format for rule lists, including legacy format detection.

Current format::

    {"rules": [{"type": "HOST", "value": "example.com"}, ...]}

Older releases wrote ``ROOT_DOMAIN`` instead of ``HOST`` and identified apps
by their numeric uid instead of the package name. The parser maps the old
type tag directly; numeric app values are left for the caller to resolve,
since that needs an apps resolver.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from matchlist.rules.models import LEGACY_TYPE_ALIASES, Rule, RuleType

logger = logging.getLogger(__name__)


class MalformedDocumentError(ValueError):
    """The serialized list is not a ``{"rules": [...]}`` JSON document."""


@dataclass
class ParsedDocument:
    """Entries read from a document, in document order."""

    entries: list[tuple[RuleType, str]] = field(default_factory=list)
    migrated: bool = False


def serialize_rules(rules: Iterable[Rule], pretty: bool = False) -> str:
    data = {
        "rules": [{"type": rule.type.name, "value": rule.value} for rule in rules],
    }
    if pretty:
        return json.dumps(data, indent=2)
    return json.dumps(data, separators=(",", ":"))


def parse_document(text: str) -> ParsedDocument:
    """Parse a serialized list.

    Raises MalformedDocumentError if the text is not JSON or has no ``rules``
    array. Individual malformed entries are skipped.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedDocumentError(f"Invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedDocumentError("List document must be a JSON object")

    rules_data = data.get("rules")
    if not isinstance(rules_data, list):
        raise MalformedDocumentError("List document has no 'rules' array")

    doc = ParsedDocument()
    for entry in rules_data:
        if not isinstance(entry, dict):
            logger.debug("Skipping non-object rule entry: %r", entry)
            continue

        type_name = entry.get("type")
        value = entry.get("value")
        if isinstance(value, int) and not isinstance(value, bool):
            # uid-based app rules may have been written as numbers
            value = str(value)
        if not isinstance(type_name, str) or not isinstance(value, str):
            logger.debug("Skipping incomplete rule entry: %r", entry)
            continue

        rule_type = _parse_type(type_name)
        if rule_type is None:
            logger.warning("Skipping rule with unknown type %s", type_name)
            continue

        if type_name in LEGACY_TYPE_ALIASES:
            logger.info("%s %s migrated to %s", type_name, value, rule_type.name)
            doc.migrated = True

        doc.entries.append((rule_type, value))

    return doc


def _parse_type(type_name: str) -> RuleType | None:
    try:
        return RuleType[type_name]
    except KeyError:
        return LEGACY_TYPE_ALIASES.get(type_name)
