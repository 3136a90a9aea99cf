"""Host name normalization helpers."""

from __future__ import annotations


def clean_domain(host: str) -> str:
    """Lower-case a host name and drop surrounding whitespace and trailing dots."""
    return host.strip().lower().rstrip(".")


def second_level_domain(host: str) -> str:
    """Return the last two labels of *host* (``sub.example.com`` -> ``example.com``).

    Hosts with a single label, an empty TLD or an empty second label are
    returned unchanged.
    """
    tld_pos = host.rfind(".")
    if tld_pos <= 0 or tld_pos >= len(host) - 1:
        return host

    root_pos = host.rfind(".", 0, tld_pos)
    if root_pos < 0:
        return host
    if root_pos == tld_pos - 1:
        # "a..com"
        return host
    return host[root_pos + 1 :]
