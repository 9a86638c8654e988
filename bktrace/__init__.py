"""
Backtracking regex engine that records the search path of the first match.
"""

from .engine import BacktrackLimitExceeded, EngineOptions, TraceEngine, build_trace
from .parser import RegexParser, RegexSyntaxError, parse_regex
from .trace import END, START, Step, Trace

__all__ = [
    "BacktrackLimitExceeded",
    "EngineOptions",
    "TraceEngine",
    "build_trace",
    "RegexParser",
    "RegexSyntaxError",
    "parse_regex",
    "START",
    "END",
    "Step",
    "Trace",
]
