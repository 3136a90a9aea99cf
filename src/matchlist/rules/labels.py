"""Human-readable rule labels."""

from __future__ import annotations

from matchlist.apps import UID_NO_FILTER, AppsResolver
from matchlist.rules.domains import clean_domain
from matchlist.rules.models import RuleType

_PREFIXES = {
    RuleType.APP: "App",
    RuleType.IP: "IP",
    RuleType.HOST: "Host",
    RuleType.PROTOCOL: "Protocol",
    RuleType.COUNTRY: "Country",
}


def rule_label(rule_type: RuleType, value: str, resolver: AppsResolver | None = None) -> str:
    """Build the display label for a rule, e.g. ``"Host: example.com"``.

    APP rules show the app name when *resolver* knows the package.
    """
    shown = value
    if rule_type is RuleType.APP and resolver is not None:
        uid = resolver.get_uid(value)
        app = resolver.get(uid) if uid != UID_NO_FILTER else None
        if app is not None:
            shown = app.name
    elif rule_type is RuleType.HOST:
        shown = clean_domain(value)
    elif rule_type is RuleType.COUNTRY:
        shown = value.upper()

    return f"{_PREFIXES[rule_type]}: {shown}"
