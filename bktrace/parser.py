# --- PARSER: Converts a pattern string into the AST in nodes.py. ---
# A recursive descent parser. Grammar precedence is handled by the call order
# of the parse methods:
# Disjunction ('|') < Alternative ('abc') < Quantifiers (*,+,?,{m,n}) < Atom

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .nodes import (
    Alternative, Anchor, CharacterClass, ClassEscape, ClassRange,
    Disjunction, Dot, Group, Quantifier, Unsupported, Value,
)

logger = logging.getLogger(__name__)

_BRACES = re.compile(r"\{(\d+)(?:(,)(\d*))?\}")
_GROUP_NAME = re.compile(r"[A-Za-z_$][\w$]*")
_HEX = "0123456789abcdefABCDEF"

_CONTROL_ESCAPES = {"n": 0x0A, "r": 0x0D, "t": 0x09, "f": 0x0C, "v": 0x0B}

_GROUP_PREFIXES = (
    ("?:", "non-capturing"),
    ("?=", "lookahead"),
    ("?!", "negative-lookahead"),
    ("?<=", "lookbehind"),
    ("?<!", "negative-lookbehind"),
)


class RegexSyntaxError(ValueError):
    def __init__(self, message, index):
        super().__init__(f"{message} at position {index}")
        self.index = index


class RegexParser:
    def __init__(self, pattern):
        self.pattern = pattern
        self.pos = 0
        self.group_count = 0

    ##
    def parse(self):
        node = self.parse_disjunction()
        if self.pos < len(self.pattern):
            # parse_disjunction only stops early on a ')' it did not open.
            raise self.error("Unmatched ')'")
        return node

    ##
    def parse_disjunction(self):
        alternatives = [self.parse_alternative()]
        while self.peek() == "|":
            self.pos += 1
            alternatives.append(self.parse_alternative())
        if len(alternatives) == 1:
            return alternatives[0]
        return Disjunction(tuple(alternatives))

    ##
    def parse_alternative(self):
        nodes = []
        while self.pos < len(self.pattern) and self.pattern[self.pos] not in ")|":
            nodes.append(self.parse_term())
        return Alternative(tuple(nodes))

    ##
    def parse_term(self):
        # A term is an atom plus an optional quantifier.
        start = self.pos
        node = self.parse_atom()
        bounds = self.parse_quantifier_bounds()
        if bounds is None:
            return node
        if isinstance(node, Anchor):
            raise RegexSyntaxError("Nothing to repeat", start)
        qmin, qmax, symbol = bounds
        greedy = True
        if self.peek() == "?":
            self.pos += 1
            greedy = False
        return Quantifier(qmin, qmax, greedy, node, symbol)

    def parse_quantifier_bounds(self):
        c = self.peek()
        if c == "*":
            self.pos += 1
            return 0, None, "*"
        if c == "+":
            self.pos += 1
            return 1, None, "+"
        if c == "?":
            self.pos += 1
            return 0, 1, "?"
        if c == "{":
            m = _BRACES.match(self.pattern, self.pos)
            if m is None:
                # Not a quantifier; the '{' is read as a literal next time round.
                return None
            qmin = int(m.group(1))
            if m.group(2) is None:
                qmax = qmin
            else:
                qmax = int(m.group(3)) if m.group(3) else None
            if qmax is not None and qmax < qmin:
                raise self.error("numbers out of order in {} quantifier")
            self.pos = m.end()
            return qmin, qmax, None
        return None

    ##
    def parse_atom(self):
        if self.pos >= len(self.pattern):
            raise self.error("Unexpected end of pattern")
        c = self.pattern[self.pos]

        # GROUPS & LOOKAROUNDS
        if c == "(":
            return self.parse_group()

        # CHARACTER CLASS
        if c == "[":
            return self.parse_char_class()

        # WILDCARD DOT
        if c == ".":
            self.pos += 1
            return Dot()

        # ANCHORS
        if c == "^":
            self.pos += 1
            return Anchor("start")
        if c == "$":
            self.pos += 1
            return Anchor("end")

        # ESCAPE SEQUENCE
        if c == "\\":
            return self.parse_escape(in_class=False)

        # UNESCAPED QUANTIFIERS
        if c in "*+?" or (c == "{" and _BRACES.match(self.pattern, self.pos)):
            raise self.error("Nothing to repeat")

        # LITERAL
        self.pos += 1
        return Value(ord(c))

    ##
    def parse_group(self):
        open_pos = self.pos
        self.pos += 1  # consume '('
        behavior = "capturing"
        name = None
        for prefix, kind in _GROUP_PREFIXES:
            if self.pattern.startswith(prefix, self.pos):
                self.pos += len(prefix)
                behavior = kind
                break
        else:
            if self.pattern.startswith("?<", self.pos) or self.pattern.startswith("?P<", self.pos):
                self.pos += 2 if self.pattern[self.pos + 1] == "<" else 3
                name = self.parse_group_name()
            elif self.peek() == "?":
                raise self.error("Invalid group")

        number = None
        if behavior == "capturing":
            self.group_count += 1
            number = self.group_count

        node = self.parse_disjunction()
        if self.peek() != ")":
            raise RegexSyntaxError("Unterminated group", open_pos)
        self.pos += 1
        body = node.body if isinstance(node, Alternative) else (node,)
        return Group(behavior, tuple(body), name, number)

    def parse_group_name(self):
        m = _GROUP_NAME.match(self.pattern, self.pos)
        if m is None or not self.pattern.startswith(">", m.end()):
            raise self.error("Invalid capture group name")
        self.pos = m.end() + 1
        return m.group(0)

    ##
    def parse_escape(self, in_class):
        start = self.pos
        self.pos += 1  # consume '\'
        if self.pos >= len(self.pattern):
            raise RegexSyntaxError("\\ at end of pattern", start)
        c = self.pattern[self.pos]
        self.pos += 1

        if c in "dDwWsS":
            return ClassEscape(c)
        if c == "b":
            # Inside brackets '\b' is a backspace.
            return Value(0x08) if in_class else Anchor("boundary")
        if c == "B" and not in_class:
            return Anchor("not-boundary")
        if c in _CONTROL_ESCAPES:
            return Value(_CONTROL_ESCAPES[c])
        if c == "0" and not self.peek().isdigit():
            return Value(0)
        if c in "123456789" and not in_class:
            while self.peek().isdigit():
                self.pos += 1
            return Unsupported("reference", self.pattern[start:self.pos])
        if c == "k" and self.peek() == "<":
            self.pos += 1
            self.parse_group_name()
            return Unsupported("reference", self.pattern[start:self.pos])
        if c in "pP" and self.peek() == "{":
            close = self.pattern.find("}", self.pos)
            if close < 0:
                raise RegexSyntaxError("Invalid property name", start)
            self.pos = close + 1
            return Unsupported("unicodePropertyEscape", self.pattern[start:self.pos])
        if c == "x":
            digits = self.pattern[self.pos:self.pos + 2]
            if len(digits) == 2 and all(d in _HEX for d in digits):
                self.pos += 2
                return Value(int(digits, 16))
        if c == "u":
            return self.parse_unicode_escape()
        if c == "c" and self.peek().isalpha():
            letter = self.pattern[self.pos]
            self.pos += 1
            return Value(ord(letter) % 32)
        # Identity escape: '\.' is '.', '\(' is '(' and so on.
        return Value(ord(c))

    def parse_unicode_escape(self):
        if self.peek() == "{":
            close = self.pattern.find("}", self.pos)
            digits = self.pattern[self.pos + 1:close] if close > 0 else ""
            if digits and all(d in _HEX for d in digits) and int(digits, 16) <= 0x10FFFF:
                self.pos = close + 1
                return Value(int(digits, 16))
        digits = self.pattern[self.pos:self.pos + 4]
        if len(digits) == 4 and all(d in _HEX for d in digits):
            self.pos += 4
            return Value(int(digits, 16))
        return Value(ord("u"))

    ##
    def parse_char_class(self):
        open_pos = self.pos
        self.pos += 1  # consume '['
        negative = self.peek() == "^"
        if negative:
            self.pos += 1

        items = []
        while self.pos < len(self.pattern) and self.pattern[self.pos] != "]":
            item = self.parse_class_atom()
            if (self.peek() == "-" and self.pos + 1 < len(self.pattern)
                    and self.pattern[self.pos + 1] != "]"):
                self.pos += 1  # consume '-'
                upper = self.parse_class_atom()
                if isinstance(item, Value) and isinstance(upper, Value):
                    if item.code_point > upper.code_point:
                        raise self.error("Range out of order in character class")
                    items.append(ClassRange(item.code_point, upper.code_point))
                else:
                    # '[\d-z]': an escape cannot bound a range, so all three
                    # are plain items.
                    items.extend([item, Value(ord("-")), upper])
            else:
                items.append(item)

        if self.pos >= len(self.pattern):
            raise RegexSyntaxError("Unterminated character class", open_pos)
        self.pos += 1  # consume ']'
        return CharacterClass(negative, tuple(items))

    def parse_class_atom(self):
        if self.peek() == "\\":
            return self.parse_escape(in_class=True)
        c = self.pattern[self.pos]
        self.pos += 1
        return Value(ord(c))

    # --- helpers ---

    def peek(self):
        if self.pos < len(self.pattern):
            return self.pattern[self.pos]
        return ""

    def error(self, message):
        return RegexSyntaxError(message, self.pos)


@dataclass
class ParseResult:
    ast: Optional[object]
    error: Optional[str]
    flags: str = ""


def split_literal(text: str):
    """
    Split '/pattern/flags' into (pattern, flags). Anything else comes back
    unchanged with no flags. Surrounding whitespace is dropped.
    """
    cleaned = text.strip()
    if cleaned.startswith("/"):
        last_slash = cleaned.rfind("/")
        if last_slash > 0:
            return cleaned[1:last_slash], cleaned[last_slash + 1:]
    return cleaned, ""


def extract_flags(text: str) -> str:
    return split_literal(text)[1]


def parse_regex(text: str, flags: str = "") -> ParseResult:
    """
    Parse pattern text into an AST. Syntax errors are returned as a message,
    never raised, so callers can show them next to the input.
    """
    pattern, literal_flags = split_literal(text)
    flags = literal_flags or flags
    try:
        ast = RegexParser(pattern).parse()
    except RegexSyntaxError as e:
        logger.debug("pattern %r rejected: %s", pattern, e)
        return ParseResult(None, str(e), flags)
    return ParseResult(ast, None, flags)
