"""
Production match results, computed by the host regex engine (Python's `re`).

The trace engine is only used to build a step trace for one match. Whether a
pattern matches, and where every match is, comes from here. For patterns the
trace engine supports, both are expected to agree on existence, start and
end. Offsets are reported in UTF-16 code units like trace positions.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from . import config
from .parser import _BRACES, split_literal
from .units import unit_offset

logger = logging.getLogger(__name__)

_FLAG_BITS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


@dataclass
class MatchOutcome:
    matches: bool
    groups: List[str] = field(default_factory=list)
    error: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass
class MatchItem:
    index: int
    start: int
    end: int
    match: str
    groups: List[str] = field(default_factory=list)


@dataclass
class MatchAllResult:
    matches: bool
    error: Optional[str] = None
    results: List[MatchItem] = field(default_factory=list)


def to_python_syntax(pattern: str, multiline: bool = False) -> str:
    """
    Rewrite the few pieces of pattern syntax `re` spells differently:
    '(?<name>' becomes '(?P<name>', and outside multiline mode an unescaped
    '$' becomes '\\Z' because `re` lets '$' match before a final newline.
    A '{' that does not open an {n}, {n,} or {n,m} quantifier is escaped,
    since `re` also reads '{,n}' as a quantifier.
    """
    out = []
    i = 0
    in_class = False
    while i < len(pattern):
        c = pattern[i]
        if c == "\\":
            out.append(pattern[i:i + 2])
            i += 2
            continue
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
        elif c == "$" and not multiline:
            out.append(r"\Z")
            i += 1
            continue
        elif c == "{" and not _BRACES.match(pattern, i):
            out.append(r"\{")
            i += 1
            continue
        elif pattern.startswith("(?<", i) and pattern[i + 3:i + 4] not in ("=", "!"):
            out.append("(?P<")
            i += 3
            continue
        out.append(c)
        i += 1
    return "".join(out)


def compile_native(pattern_text: str, flags: str = ""):
    pattern, literal_flags = split_literal(pattern_text)
    flags = literal_flags or flags
    bits = 0
    for flag in flags:
        bits |= _FLAG_BITS.get(flag, 0)
    return re.compile(to_python_syntax(pattern, "m" in flags), bits)


def _groups(m):
    return [g for g in m.groups() if g is not None]


def test_match(pattern_text: str, text: str, flags: str = "") -> MatchOutcome:
    if not pattern_text:
        return MatchOutcome(False, error=config.NO_PATTERN_ERROR)
    try:
        regex = compile_native(pattern_text, flags)
    except re.error as e:
        logger.debug("native engine rejected %r: %s", pattern_text, e)
        return MatchOutcome(False, error=str(e))
    m = regex.search(text)
    if m is None:
        return MatchOutcome(False)
    return MatchOutcome(
        True,
        groups=_groups(m),
        start=unit_offset(text, m.start()),
        end=unit_offset(text, m.end()),
    )


def test_match_all(pattern_text: str, text: str, flags: str = "") -> MatchAllResult:
    if not pattern_text:
        return MatchAllResult(False, error=config.NO_PATTERN_ERROR)
    try:
        regex = compile_native(pattern_text, flags)
    except re.error as e:
        logger.debug("native engine rejected %r: %s", pattern_text, e)
        return MatchAllResult(False, error=str(e))
    results = []
    for index, m in enumerate(regex.finditer(text)):
        results.append(MatchItem(
            index=index,
            start=unit_offset(text, m.start()),
            end=unit_offset(text, m.end()),
            match=m.group(0),
            groups=_groups(m),
        ))
    return MatchAllResult(bool(results), results=results)


# Not tests: keeps pytest from collecting them when a test module imports them.
test_match.__test__ = False
test_match_all.__test__ = False
