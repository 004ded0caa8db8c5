"""Live JSON validation of the request body."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationError:
    line: int  # 1-based
    column: int  # 1-based
    message: str

    def __str__(self) -> str:
        return f"error at line {self.line}, col {self.column}: {self.message}"


class _NonStandardConstant(ValueError):
    """NaN, Infinity or -Infinity, which json.loads accepts by default."""

    def __init__(self, token: str) -> None:
        super().__init__(token)
        self.token = token


def _reject_constant(token: str) -> None:
    raise _NonStandardConstant(token)


def _keep_int(token: str) -> str:
    # int() refuses very long digit strings; validation only needs the token
    return token


def _position(text: str, index: int) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of *index* in *text*."""
    line = text.count("\n", 0, index) + 1
    column = index - (text.rfind("\n", 0, index) + 1) + 1
    return line, column


def _code_positions(text: str) -> Iterator[int]:
    """Yield the indices of *text* that lie outside string literals."""
    in_str = False
    escaped = False
    for i, ch in enumerate(text):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        else:
            yield i


def _find_token(text: str, token: str) -> int:
    for i in _code_positions(text):
        if text.startswith(token, i):
            return i
    return 0


def _deepest_bracket(text: str) -> int:
    """Index of the first bracket that reaches the maximum nesting depth."""
    depth = deepest = index = 0
    for i in _code_positions(text):
        ch = text[i]
        if ch in "{[":
            depth += 1
            if depth > deepest:
                deepest, index = depth, i
        elif ch in "}]" and depth:
            depth -= 1
    return index


def _open_context(text: str) -> str:
    """Describe what is still open at the end of *text*."""
    stack: list[str] = []
    in_str = False
    escaped = False
    for ch in text:
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]" and stack:
            stack.pop()
    if in_str:
        return "unterminated string"
    if stack and stack[-1] == "{":
        return "unterminated object"
    if stack:
        return "unterminated array"
    return "incomplete value"


def validate_json(text: str) -> ValidationError | None:
    """Parse *text* as JSON and return the first error, or None.

    Blank text is not validated and yields None, the same as valid JSON.
    When the parser runs out of input, the error points at the last
    non-blank character instead of one past the end. NaN and Infinity
    are rejected; integers of any length are accepted.
    """
    stripped_len = len(text.rstrip())
    if stripped_len == 0:
        return None
    try:
        json.loads(text, parse_int=_keep_int, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        if e.pos >= stripped_len:
            line, column = _position(text, stripped_len - 1)
            message = f"{_open_context(text)}: unexpected end of input"
            return ValidationError(line, column, message)
        return ValidationError(e.lineno, e.colno, e.msg)
    except _NonStandardConstant as e:
        line, column = _position(text, _find_token(text, e.token))
        return ValidationError(line, column, f"{e.token} is not a valid JSON value")
    except RecursionError:
        line, column = _position(text, _deepest_bracket(text))
        return ValidationError(line, column, "recursion limit exceeded")
    return None


def body_status(text: str, error: ValidationError | None) -> str:
    """Annotation shown next to the Body title."""
    if error is not None:
        return str(error)
    if not text.strip():
        return ""
    return "valid JSON"


def format_json(text: str) -> str | None:
    """Pretty-print *text* with indent=4, or None if it does not parse."""
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    return json.dumps(parsed, indent=4, ensure_ascii=False)
