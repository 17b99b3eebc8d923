"""Interface name resolution: exact → wildcard → substring.

With no pattern the busiest interface (highest rx+tx total) is chosen.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from bwmon.errors import InterfaceNotFound, InvalidPattern
from bwmon.sources import InterfaceCounters

logger = logging.getLogger(__name__)

WILDCARDS = ("*", "?", "[")


def has_wildcards(pattern: str) -> bool:
    return any(c in pattern for c in WILDCARDS)


def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """Translate a shell-style wildcard into an anchored, case-insensitive regex.

    `*` matches any run of characters, `?` exactly one, `[seq]` / `[!seq]`
    a character class (a `]` right after `[` or `[!` is a literal member).
    Everything else is literal.
    """
    out = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "[":
            j = i
            if pattern[j:j + 1] == "!":
                j += 1
            if pattern[j:j + 1] == "]":
                j += 1
            end = pattern.find("]", j)
            if end == -1:
                raise InvalidPattern(pattern, "unterminated character class")
            body = pattern[i:end]
            negate = body.startswith("!")
            if negate:
                body = body[1:]
            if not body:
                raise InvalidPattern(pattern, "empty character class")
            body = body.replace("\\", "\\\\").replace("^", "\\^").replace("[", "\\[").replace("]", "\\]")
            out.append(("[^" if negate else "[") + body + "]")
            i = end + 1
        else:
            out.append(re.escape(c))
    try:
        return re.compile("".join(out), re.IGNORECASE)
    except re.error as e:
        raise InvalidPattern(pattern, str(e)) from e


def select_busiest(available: Sequence[InterfaceCounters]) -> str:
    """Pick the interface with the most traffic so far; first one wins ties."""
    if not available:
        raise InterfaceNotFound(None, [])
    return max(available, key=lambda iface: iface.total).name


def resolve(pattern: str | None, available: Sequence[InterfaceCounters]) -> str:
    """Map a user-supplied name or pattern onto one reported interface."""
    names = [iface.name for iface in available]
    if not pattern:
        name = select_busiest(available)
        logger.info("auto-selected busiest interface %s", name)
        return name

    if pattern in names:
        return pattern

    if has_wildcards(pattern):
        regex = compile_wildcard(pattern)
        for name in names:
            if regex.fullmatch(name):
                return name
        raise InterfaceNotFound(pattern, names)

    needle = pattern.lower()
    matches = [name for name in names if needle in name.lower()]
    if not matches:
        raise InterfaceNotFound(pattern, names)
    if len(matches) > 1:
        logger.info("pattern %r matched %s; using the shortest", pattern, matches)
    # min() keeps the first of equally short names
    return min(matches, key=len)
