"""
Single-pass ``:::`` fence scanner.

Each line is classified once:

- outside a fence, a line starting with ``:::`` at column 0 opens a fence;
- inside a fence, a line whose trimmed form is exactly ``:::``, or which ends
  with ``:::`` without itself starting with ``:::``, closes it. A line that
  looks like another opener is ordinary body text (fences do not nest).

A fence that is still open at the end of the text is dropped: its lines stay
ordinary text. Classification into grid / table / other happens in the
scanner; this module only reports geometry.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from xmdedit.core.contracts.blocks import Span

FENCE_MARK = ":::"


@dataclass(frozen=True, slots=True)
class Line:
    """One physical line; ``end`` excludes the newline."""

    number: int
    start: int
    end: int
    text: str


@dataclass(frozen=True, slots=True)
class Fence:
    """Geometry of one terminated fence.

    Attributes
    ----------
    span : Span
        From the opener line start to the end of the closing line.
    header : str
        Opener text after ``:::``, trimmed.
    opener : Line
        The opening line.
    body : tuple[Line, ...]
        Lines strictly between opener and closer, plus the content preceding
        a trailing ``:::`` on the closing line when there is any.
    closer : Line
        The closing line.
    """

    span: Span
    header: str
    opener: Line
    closer: Line
    body: tuple[Line, ...] = field(default_factory=tuple)

    def contains(self, pos: int) -> bool:
        return self.span.start <= pos < self.span.end


def split_lines(text: str) -> list[Line]:
    """Split ``text`` on ``\\n`` keeping absolute offsets."""
    out: list[Line] = []
    pos = 0
    for number, chunk in enumerate(text.split("\n")):
        out.append(Line(number, pos, pos + len(chunk), chunk))
        pos += len(chunk) + 1
    return out


def is_opener(line: str) -> bool:
    return line.startswith(FENCE_MARK)


def is_closer(line: str) -> bool:
    """Return True if ``line`` closes an open fence."""
    trimmed = line.strip()
    if trimmed == FENCE_MARK:
        return True
    if trimmed.startswith(FENCE_MARK):
        return False
    return line.rstrip().endswith(FENCE_MARK)


def header_text(line: str) -> str:
    return line[len(FENCE_MARK) :].strip()


def _closing_tail(closer: Line) -> Line | None:
    """Return the part of a closing line before its trailing ``:::``."""
    stripped = closer.text.rstrip()
    content = stripped[: -len(FENCE_MARK)]
    if not content.strip():
        return None
    return Line(closer.number, closer.start, closer.start + len(content), content)


def iter_fences(lines: list[Line]) -> Iterator[Fence]:
    """Yield every terminated fence in document order."""
    opener: Line | None = None
    body: list[Line] = []
    for line in lines:
        if opener is None:
            if is_opener(line.text):
                opener = line
                body = []
            continue
        if is_closer(line.text):
            tail = _closing_tail(line)
            if tail is not None:
                body.append(tail)
            yield Fence(
                span=Span(start=opener.start, end=line.end),
                header=header_text(opener.text),
                opener=opener,
                closer=line,
                body=tuple(body),
            )
            opener = None
            continue
        body.append(line)


def find_fences(text: str) -> list[Fence]:
    """Return all terminated fences in ``text``."""
    return list(iter_fences(split_lines(text)))


__all__ = [
    "FENCE_MARK",
    "Fence",
    "Line",
    "find_fences",
    "header_text",
    "is_closer",
    "is_opener",
    "iter_fences",
    "split_lines",
]
