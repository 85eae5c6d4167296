"""
Attribute codec for ``key="value"`` lists.

The same list grammar appears in three places: inside a figure's ``{...}``
block, and after the ``:::`` of grid and table fence headers. Values are
either double-quoted (with ``\\"`` and ``\\\\`` escapes) or bare tokens such
as ``cols=2``. Bare words without ``=`` (for example ``#fig:intro``) are
kept as keys with an empty value.

Every operation works on the token stream, so text belonging to keys that
an operation does not name is preserved byte-for-byte.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s*)
    (?:
        (?P<key>[A-Za-z_][\w:.-]*)\s*=\s*
        (?: "(?P<quoted>(?:[^"\\]|\\.)*)" | (?P<bare>[^\s"]*) )
      | (?P<word>\S+)
    )
    """,
    re.VERBOSE | re.DOTALL,
)
_UNESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_NEWLINES_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class AttrToken:
    """One attribute token with its offsets in the source text.

    ``lead`` is where the whitespace preceding the token starts, so removing
    ``[lead, end)`` drops the token together with its separator.
    """

    key: str
    value: str
    quoted: bool
    lead: int
    start: int
    end: int


def tokenize(attrs_text: str) -> Iterator[AttrToken]:
    """Yield the attribute tokens of ``attrs_text`` in source order."""
    for m in _TOKEN_RE.finditer(attrs_text):
        lead = m.start()
        start = m.start() + len(m.group("ws"))
        if m.group("word") is not None:
            yield AttrToken(m.group("word"), "", False, lead, start, m.end())
        elif m.group("quoted") is not None:
            value = _UNESCAPE_RE.sub(r"\1", m.group("quoted"))
            yield AttrToken(m.group("key"), value, True, lead, start, m.end())
        else:
            yield AttrToken(m.group("key"), m.group("bare") or "", False, lead, start, m.end())


def escape(value: str) -> str:
    """Make ``value`` safe for a double-quoted attribute.

    Backslashes and quotes are escaped, newlines collapse to a space and the
    result is trimmed.
    """
    out = value.replace("\\", "\\\\").replace('"', '\\"')
    return _NEWLINES_RE.sub(" ", out).strip()


def parse_attr(attrs_text: str | None, key: str) -> str | None:
    """Return the (unescaped) value of ``key`` or None when absent.

    Key lookup is case-insensitive; the first occurrence wins.
    """
    if not attrs_text:
        return None
    wanted = key.lower()
    for token in tokenize(attrs_text):
        if token.key.lower() == wanted:
            return token.value
    return None


def parse_attrs(attrs_text: str | None) -> dict[str, str]:
    """Return all attributes as an insertion-ordered mapping.

    Keys keep their source spelling. Repeated keys keep their first value,
    matching :func:`parse_attr`.
    """
    out: dict[str, str] = {}
    if not attrs_text:
        return out
    seen: set[str] = set()
    for token in tokenize(attrs_text):
        lowered = token.key.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        out[token.key] = token.value
    return out


def strip(attrs_text: str, keys: Iterable[str]) -> str:
    """Remove every occurrence of ``keys`` from ``attrs_text``.

    Other tokens, and the whitespace between them, are left untouched; only
    the outer ends of the result are trimmed.
    """
    doomed = {k.lower() for k in keys}
    if not doomed or not attrs_text:
        return attrs_text.strip()
    pieces: list[str] = []
    cursor = 0
    for token in tokenize(attrs_text):
        if token.key.lower() in doomed:
            pieces.append(attrs_text[cursor : token.lead])
            cursor = token.end
    pieces.append(attrs_text[cursor:])
    return "".join(pieces).strip()


def upsert(attrs_text: str | None, key: str, value: str | None, *, quote: bool = True) -> str:
    """Set ``key`` to ``value`` by stripping it and appending it at the end.

    A ``None`` or empty (after escaping) value removes the key. ``quote=False``
    writes a bare value, which is only meant for numeric header fields such
    as ``cols`` and ``borderWidth``.
    """
    base = strip(attrs_text or "", [key])
    if value is None:
        return base
    rendered = escape(value)
    if not rendered:
        return base
    token = f'{key}="{rendered}"' if quote else f"{key}={rendered}"
    return f"{base} {token}" if base else token


def format_attrs(attrs: dict[str, str], *, bare: Iterable[str] = ()) -> str:
    """Render a mapping back into attribute text.

    Empty values are written as bare words (``#fig:intro``); keys listed in
    ``bare`` are written unquoted.
    """
    unquoted = {k.lower() for k in bare}
    parts: list[str] = []
    for key, value in attrs.items():
        if value == "":
            parts.append(key)
        elif key.lower() in unquoted:
            parts.append(f"{key}={escape(value)}")
        else:
            parts.append(f'{key}="{escape(value)}"')
    return " ".join(parts)


__all__ = [
    "AttrToken",
    "escape",
    "format_attrs",
    "parse_attr",
    "parse_attrs",
    "strip",
    "tokenize",
    "upsert",
]
