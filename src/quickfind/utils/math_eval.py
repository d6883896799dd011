"""Inline calculator for launcher queries such as ``(2 + 3) * 4``.

Grammar (recursive descent over floats)::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/" | "%") unary)*
    unary      := "-" unary | power
    power      := primary ("^" unary)?
    primary    := number | "(" expression ")"

``^`` is right-associative and binds tighter than unary minus, so
``-2^2`` is ``-4`` and ``2^3^2`` is ``512``.
"""

from __future__ import annotations

import math


OPERATOR_CHARS = frozenset("+-*/%^")
ALLOWED_CHARS = frozenset("0123456789.() \t") | OPERATOR_CHARS
INTEGER_DISPLAY_LIMIT = 1e15


class _ParseError(ValueError):
    pass


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> float:
        value = self.expression()
        self._skip_spaces()
        if self.pos != len(self.text):
            raise _ParseError(f"unexpected {self.text[self.pos]!r} at {self.pos}")
        return value

    def expression(self) -> float:
        value = self.term()
        while (op := self._peek()) in ("+", "-"):
            self.pos += 1
            right = self.term()
            value = value + right if op == "+" else value - right
        return value

    def term(self) -> float:
        value = self.unary()
        while (op := self._peek()) in ("*", "/", "%"):
            self.pos += 1
            right = self.unary()
            if op == "*":
                value *= right
            elif right == 0:
                raise _ParseError("division by zero")
            elif op == "/":
                value /= right
            else:
                value = math.fmod(value, right)
        return value

    def unary(self) -> float:
        if self._peek() == "-":
            self.pos += 1
            return -self.unary()
        return self.power()

    def power(self) -> float:
        base = self.primary()
        if self._peek() == "^":
            self.pos += 1
            return math.pow(base, self.unary())
        return base

    def primary(self) -> float:
        if self._peek() == "(":
            self.pos += 1
            value = self.expression()
            if self._peek() != ")":
                raise _ParseError("unbalanced parenthesis")
            self.pos += 1
            return value
        return self._number()

    def _number(self) -> float:
        start = self.pos
        seen_dot = False
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char.isdigit():
                self.pos += 1
            elif char == "." and not seen_dot:
                seen_dot = True
                self.pos += 1
            else:
                break
        literal = self.text[start : self.pos]
        if not literal or literal == ".":
            raise _ParseError(f"expected a number at {start}")
        return float(literal)

    def _peek(self) -> str:
        self._skip_spaces()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_spaces(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in " \t":
            self.pos += 1


def format_number(value: float) -> str:
    """Render a result the way the launcher shows it.

    Examples:
        >>> format_number(20.0)
        '20'
        >>> format_number(6.28)
        '6.28'
        >>> format_number(1 / 3)
        '0.333333'
    """
    if value.is_integer() and abs(value) < INTEGER_DISPLAY_LIMIT:
        return str(int(value))
    return f"{value:.6f}".rstrip("0").rstrip(".")


def looks_like_math(text: str) -> bool:
    """True when ``text`` has a digit and an operator and nothing but calculator characters."""
    return (
        any(char.isdigit() for char in text)
        and any(char in OPERATOR_CHARS for char in text)
        and all(char in ALLOWED_CHARS for char in text)
    )


def evaluate_math(text: str) -> str | None:
    """Evaluate ``text`` as arithmetic, or return ``None`` if it is not a valid expression.

    Never raises: malformed input, division or modulo by zero, and results
    that overflow or are not finite all yield ``None``.
    """
    expression = text.strip()
    if not looks_like_math(expression):
        return None
    try:
        value = _Parser(expression).parse()
    except (_ParseError, OverflowError, ValueError, RecursionError):
        return None
    if not math.isfinite(value):
        return None
    return format_number(value)
