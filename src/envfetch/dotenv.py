"""Dotenv parsing — turn ``KEY=VALUE`` text into an ordered list of entries.

A dotenv file is the usual way projects ship a bundle of variables::

    # database
    DB_HOST=localhost
    DB_URL=postgres://$DB_HOST/app
    GREETING="hello\\tworld"
    RAW='kept $AS is'

Rules:
    - Blank lines and ``#`` comment lines are skipped; ``export KEY=...``
      is accepted for files that double as shell scripts.
    - **Unquoted** values are trimmed, stop at an inline `` #`` comment,
      and expand ``$NAME`` / ``${NAME}`` from keys defined earlier in
      the same file.
    - **Single-quoted** values are taken literally.
    - **Double-quoted** values interpret ``\\n``, ``\\t``, ``\\r``,
      ``\\\\``, ``\\"`` and ``\\$`` and may span several lines.

Parsing is pure and forgiving: a bad line becomes one warning and the
parser moves on, so a single typo never blocks the rest of the file.
Entries keep file order because later keys intentionally override
earlier ones.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from envfetch.errors import DotenvError

_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")
_SUBST_RE = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}|([A-Za-z_][A-Za-z0-9_]*))")
_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "$": "$",
}
_EXPORT_PREFIX = "export"


@dataclass(frozen=True)
class DotenvEntry:
    """One ``KEY=VALUE`` assignment and the line it started on."""

    key: str
    value: str
    line: int


@dataclass
class ParseResult:
    """Entries in file order plus one warning per skipped line."""

    entries: list[DotenvEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, str]:
        """Collapse the entries into a mapping (later keys win)."""
        return {entry.key: entry.value for entry in self.entries}


def parse(text: str, defaults: Mapping[str, str] | None = None) -> ParseResult:
    """Parse dotenv *text*.

    Args:
        text: The file contents.
        defaults: Fallback values for ``$NAME`` references that the file
            itself does not define (e.g. the current environment).

    Returns:
        The parsed entries and any warnings.

    """
    result = ParseResult()
    known: dict[str, str] = {}
    lines = text.splitlines()
    index = 0
    while index < len(lines):
        number = index + 1
        body = _strip_export(lines[index].strip())
        index += 1
        if not body or body.startswith("#"):
            continue

        if "=" not in body:
            result.warnings.append(f"line {number}: expected KEY=VALUE, got {body!r}")
            continue

        key, raw = body.split("=", 1)
        key = key.strip()
        if not _KEY_RE.fullmatch(key):
            result.warnings.append(f"line {number}: invalid variable name {key!r}")
            continue

        raw = raw.lstrip()
        if raw.startswith('"'):
            value, consumed, problem = _read_double_quoted(raw[1:], lines[index:])
            index += consumed
        elif raw.startswith("'"):
            value, problem = _read_single_quoted(raw[1:])
        else:
            value, problem = _expand(_strip_comment(raw), known, defaults), None

        if problem is not None:
            result.warnings.append(f"line {number}: {problem}")
            continue

        known[key] = value
        result.entries.append(DotenvEntry(key=key, value=value, line=number))
    return result


def parse_file(path: str | Path, defaults: Mapping[str, str] | None = None) -> ParseResult:
    """Read a UTF-8 dotenv file and parse it.

    Raises:
        DotenvError: If the file cannot be read or is not valid UTF-8.

    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        msg = f"can't read {path}: {err}"
        raise DotenvError(msg) from err
    return parse(text, defaults)


def _strip_export(line: str) -> str:
    """Drop a leading ``export`` keyword."""
    parts = line.split(maxsplit=1)
    if len(parts) == 2 and parts[0] == _EXPORT_PREFIX:  # noqa: PLR2004
        return parts[1]
    return line


def _strip_comment(raw: str) -> str:
    """Cut an inline comment from an unquoted value."""
    match = re.search(r"\s#", raw)
    if match:
        raw = raw[: match.start()]
    return raw.strip()


def _trailing_problem(rest: str) -> str | None:
    """Only whitespace or a comment may follow a closing quote."""
    rest = rest.strip()
    if rest and not rest.startswith("#"):
        return f"unexpected text after closing quote: {rest!r}"
    return None


def _read_single_quoted(raw: str) -> tuple[str, str | None]:
    end = raw.find("'")
    if end == -1:
        return "", "unterminated single-quoted value"
    return raw[:end], _trailing_problem(raw[end + 1 :])


def _read_double_quoted(raw: str, following: list[str]) -> tuple[str, int, str | None]:
    """Read a double-quoted value, pulling in continuation lines.

    Returns:
        ``(value, extra_lines_consumed, problem)``.  Nothing is consumed
        when the closing quote never appears.

    """
    buffer = raw
    consumed = 0
    while True:
        end = _find_closing_quote(buffer)
        if end is not None:
            return _unescape(buffer[:end]), consumed, _trailing_problem(buffer[end + 1 :])
        if consumed == len(following):
            return "", 0, "unterminated double-quoted value"
        buffer = f"{buffer}\n{following[consumed]}"
        consumed += 1


def _find_closing_quote(text: str) -> int | None:
    escaped = False
    for position, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return position
    return None


def _unescape(text: str) -> str:
    out: list[str] = []
    chars = iter(text)
    for char in chars:
        if char != "\\":
            out.append(char)
            continue
        nxt = next(chars, None)
        if nxt is None:
            out.append("\\")
        elif nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
        else:
            out.append("\\" + nxt)
    return "".join(out)


def _expand(value: str, known: Mapping[str, str], defaults: Mapping[str, str] | None) -> str:
    """Substitute ``$NAME`` and ``${NAME}`` references."""

    def lookup(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name in known:
            return known[name]
        if defaults is not None:
            return defaults.get(name, "")
        return ""

    return _SUBST_RE.sub(lookup, value)
