"""Line-oriented JSON syntax highlighting."""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum, auto
from typing import NamedTuple


class Tag(Enum):
    KEY = auto()
    STRING = auto()
    NUMBER = auto()
    LITERAL = auto()  # true / false / null
    PUNCTUATION = auto()
    DEFAULT = auto()


class Fragment(NamedTuple):
    text: str
    tag: Tag


_BRACKET_PUNCT = frozenset("{}[]:,")
_DIGIT = frozenset("0123456789.-+")
_LITERAL_RE = re.compile(r"\b(?:true|false|null)\b")


def is_json_content_type(content_type: str | None) -> bool:
    return content_type is not None and "json" in content_type.lower()


def _line_tags(line: str) -> list[Tag]:
    """Compute a tag for every character in *line*."""
    n = len(line)
    tags = [Tag.DEFAULT] * n
    is_in_str = [False] * n

    # string regions: (start, end) inclusive of quotes
    spans: list[tuple[int, int]] = []
    in_str = False
    start = 0
    prev_ch = ""
    for i, ch in enumerate(line):
        if ch == '"' and prev_ch != "\\":
            if in_str:
                spans.append((start, i))
            else:
                start = i
            in_str = not in_str
            is_in_str[i] = True
        elif in_str:
            is_in_str[i] = True
        prev_ch = "" if prev_ch == "\\" and ch == "\\" else ch
    if in_str:
        spans.append((start, n - 1))

    for s, e in spans:
        rest = line[e + 1 :].lstrip()
        tag = Tag.KEY if rest.startswith(":") else Tag.STRING
        for i in range(s, e + 1):
            tags[i] = tag

    for i, ch in enumerate(line):
        if is_in_str[i]:
            continue
        if ch in _BRACKET_PUNCT:
            tags[i] = Tag.PUNCTUATION
        elif ch in _DIGIT:
            tags[i] = Tag.NUMBER
        elif ch in "eE" and i > 0 and line[i - 1].isdigit() and not is_in_str[i - 1]:
            # exponent marker
            tags[i] = Tag.NUMBER

    for m in _LITERAL_RE.finditer(line):
        if not is_in_str[m.start()]:
            for j in range(m.start(), m.end()):
                tags[j] = Tag.LITERAL
    return tags


def highlight_line(line: str) -> list[Fragment]:
    """Split one JSON line into fragments of equal tag."""
    if not line:
        return []
    tags = _line_tags(line)
    fragments: list[Fragment] = []
    col = 0
    while col < len(line):
        tag = tags[col]
        end = col + 1
        while end < len(line) and tags[end] == tag:
            end += 1
        fragments.append(Fragment(line[col:end], tag))
        col = end
    return fragments


def highlight(
    text: str, content_type: str | None = "application/json"
) -> Iterator[list[Fragment]]:
    """Yield the fragments of each line of *text*.

    Non-JSON content gets one DEFAULT fragment per non-empty line.
    """
    json_mode = is_json_content_type(content_type)
    for line in text.split("\n"):
        if json_mode:
            yield highlight_line(line)
        else:
            yield [Fragment(line, Tag.DEFAULT)] if line else []
