"""Domain pattern mini-language.

A domain pattern is one of:
  - a regex literal wrapped in slashes: ``/^news\\./``
  - a glob using ``*`` and ``?``: ``*.example.com``
  - a bare hostname, which also matches every subdomain: ``example.com``

All forms compile to case-insensitive matchers over hostnames. Patterns that
cannot be compiled never match; they are skipped rather than raised.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Metacharacters escaped for glob and hostname patterns. ``*`` and ``?``
# are escaped too and re-expanded afterwards for globs.
_REGEX_META = re.compile(r"[.+^${}()|\[\]\\*?]")
_HOST_META = re.compile(r"[.+^${}()|\[\]\\]")

# Leading dots and an optional star before the first label: ".*.example.com"
_GLOB_PREFIX = re.compile(r"^\.*\*?\.")


def _escape(value: str, meta: re.Pattern[str]) -> str:
    return meta.sub(lambda m: "\\" + m.group(0), value)


def glob_to_regex(glob: str) -> re.Pattern[str]:
    """Compile a glob into an anchored, case-insensitive regex."""
    body = _escape(glob, _REGEX_META).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{body}$", re.IGNORECASE)


def compile_domain_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a domain pattern, or return ``None`` if it can never match."""
    pattern = pattern.strip()
    if not pattern:
        return None

    # A lone "/" is an empty regex and matches every host.
    if pattern.startswith("/") and pattern.endswith("/"):
        try:
            return re.compile(pattern[1:-1], re.IGNORECASE)
        except re.error:
            return None

    if "*" in pattern or "?" in pattern:
        return glob_to_regex(_GLOB_PREFIX.sub("*.", pattern, count=1))

    return re.compile(rf"(^|\.){_escape(pattern, _HOST_META)}$", re.IGNORECASE)


def pattern_matches_host(pattern: str, host: str) -> bool:
    regex = compile_domain_pattern(pattern)
    return regex is not None and regex.search(host) is not None


def list_matches_host(patterns: Iterable[str], host: str) -> bool:
    """True if any pattern in the list matches ``host``."""
    return any(pattern_matches_host(pattern, host) for pattern in patterns)


def compiled_selectors(selectors: Iterable[str]) -> str:
    """Join non-empty selectors into a single selector group."""
    return ",".join(s for s in selectors if s)
