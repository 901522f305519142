"""Shell start-up file backend — a managed block of ``export`` lines.

Permanent variables on Unix-like systems are written into the user's
shell start-up file so every new shell picks them up.  We only ever
touch one region of that file::

    ... the user's own content, never modified ...

    # >>> envfetch >>>
    export API_URL="https://example.test"
    export GREETING="say \\"hi\\""
    # <<< envfetch <<<

    ... more of the user's content, never reordered ...

Rules for the block:
    - It is appended on the first write and updated in place afterwards.
    - Setting a key rewrites its existing line where it stands, or adds
      a line at the end of the block; a key never appears twice.
    - Deleting the last key leaves an empty block behind.
    - Lines inside the block that we did not write are passed through.

Every write replaces the whole file atomically (temp file + rename),
so a crash mid-write leaves either the old or the new file, never half
of one.  Two instances racing on the same file still end up
last-writer-wins.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from envfetch.errors import PersistenceError
from envfetch.logging import Logger
from envfetch.persistence.base import ShellDialect, ShellFileTarget

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_SOURCE = "persistence"
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")

# Characters that keep a special meaning inside double quotes.
_SPECIALS: dict[ShellDialect, str] = {
    ShellDialect.POSIX: '\\"$`',
    ShellDialect.FISH: '\\"$',
}
_PREFIX_RE: dict[ShellDialect, re.Pattern[str]] = {
    ShellDialect.POSIX: re.compile(r'\s*export\s+([A-Za-z_][A-Za-z0-9_]*)="'),
    ShellDialect.FISH: re.compile(r'\s*set\s+-gx\s+([A-Za-z_][A-Za-z0-9_]*)\s+"'),
}


def quote_value(value: str, dialect: ShellDialect = ShellDialect.POSIX) -> str:
    """Return *value* as a double-quoted shell word."""
    specials = _SPECIALS[dialect]
    escaped = "".join(f"\\{char}" if char in specials else char for char in value)
    return f'"{escaped}"'


def format_line(name: str, value: str, dialect: ShellDialect = ShellDialect.POSIX) -> str:
    """Return the block line that defines *name*."""
    if dialect is ShellDialect.FISH:
        return f"set -gx {name} {quote_value(value, dialect)}"
    return f"export {name}={quote_value(value, dialect)}"


def _unquote(body: str, dialect: ShellDialect) -> tuple[str, int] | None:
    """Decode a double-quoted word whose opening quote is already consumed.

    Returns:
        ``(value, index_after_closing_quote)`` or None if unterminated.

    """
    specials = _SPECIALS[dialect]
    out: list[str] = []
    position = 0
    while position < len(body):
        char = body[position]
        if char == "\\" and position + 1 < len(body) and body[position + 1] in specials:
            out.append(body[position + 1])
            position += 2
            continue
        if char == '"':
            return "".join(out), position + 1
        out.append(char)
        position += 1
    return None


@dataclass
class _BlockLine:
    """One logical line of the block; *name* is None for foreign lines."""

    text: str
    name: str | None = None
    value: str | None = None


def parse_block(body: list[str], dialect: ShellDialect = ShellDialect.POSIX) -> list[_BlockLine]:
    """Split the lines between the markers into logical lines.

    A quoted value may contain newlines, so one definition can span
    several physical lines.
    """
    prefix_re = _PREFIX_RE[dialect]
    parsed: list[_BlockLine] = []
    index = 0
    while index < len(body):
        start = index
        line = body[index]
        index += 1
        match = prefix_re.match(line)
        if match is None:
            parsed.append(_BlockLine(text=line))
            continue

        text = line
        decoded = _unquote(text[match.end() :], dialect)
        while decoded is None and index < len(body):
            text = f"{text}\n{body[index]}"
            index += 1
            decoded = _unquote(text[match.end() :], dialect)

        if decoded is None or text[match.end() + decoded[1] :].strip():
            # Not one of ours after all; keep the original lines verbatim.
            index = start + 1
            parsed.append(_BlockLine(text=line))
            continue
        parsed.append(_BlockLine(text=text, name=match.group(1), value=decoded[0]))
    return parsed


class ShellFileBackend:
    """Persist variables in a marker-delimited block of a shell file."""

    def __init__(self, target: ShellFileTarget, *, logger: Logger | None = None) -> None:
        """Create a backend for *target*.

        Args:
            target: The file, dialect, and markers to use.
            logger: Optional logger for write events.

        """
        self._target = target
        self._logger = logger

    @property
    def target(self) -> ShellFileTarget:
        """Return the managed file target."""
        return self._target

    # -- reading -------------------------------------------------------------

    def _read(self) -> tuple[list[str], list[str] | None, list[str]]:
        """Return ``(before, block_body, after)``.

        *before* and *after* keep their original line endings so they can
        be written back byte for byte; *block_body* lines are stripped
        and is None when the file has no managed block yet.
        """
        path = self._target.path
        try:
            if path.exists():
                with path.open(encoding="utf-8", newline="") as handle:
                    text = handle.read()
            else:
                text = ""
        except (OSError, UnicodeDecodeError) as err:
            msg = f"can't read {path}: {err}"
            raise PersistenceError(msg) from err

        lines = _LINE_RE.findall(text)
        stripped = [line.rstrip("\r\n") for line in lines]
        try:
            start = stripped.index(self._target.start_marker)
        except ValueError:
            return lines, None, []

        for end in range(start + 1, len(lines)):
            if stripped[end] == self._target.end_marker:
                return lines[:start], stripped[start + 1 : end], lines[end + 1 :]
        msg = f"managed block in {path} has no end marker {self._target.end_marker!r}"
        raise PersistenceError(msg)

    def _entries(self) -> list[_BlockLine]:
        _before, body, _after = self._read()
        return parse_block(body or [], self._target.dialect)

    def get(self, name: str) -> str | None:
        """Return the value stored for *name*, or None."""
        for line in reversed(self._entries()):
            if line.name == name:
                return line.value
        return None

    def items(self) -> list[tuple[str, str]]:
        """Return every (name, value) in block order."""
        return [
            (line.name, line.value)
            for line in self._entries()
            if line.name is not None and line.value is not None
        ]

    # -- writing -------------------------------------------------------------

    def set(self, name: str, value: str) -> None:
        """Write *name* into the block, replacing any existing definition.

        Raises:
            PersistenceError: If *name* is not a shell identifier or the
                file cannot be read or written.

        """
        if not _NAME_RE.fullmatch(name):
            msg = f"can't persist {name!r} in {self._target.path}: not a valid shell identifier"
            raise PersistenceError(msg)

        before, body, after = self._read()
        lines = parse_block(body or [], self._target.dialect)
        new_text = format_line(name, value, self._target.dialect)

        updated: list[_BlockLine] = []
        replaced = False
        for line in lines:
            if line.name != name:
                updated.append(line)
            elif not replaced:
                updated.append(_BlockLine(text=new_text, name=name, value=value))
                replaced = True
        if not replaced:
            updated.append(_BlockLine(text=new_text, name=name, value=value))

        self._write(before, [line.text for line in updated], after, created=body is None)
        if self._logger is not None:
            self._logger.info(f"persisted {name} in {self._target.path}", source=_SOURCE)

    def delete(self, name: str) -> bool:
        """Remove *name* from the block.

        Returns:
            False (and leaves the file untouched) if *name* was not there.

        """
        before, body, after = self._read()
        if body is None:
            return False
        lines = parse_block(body, self._target.dialect)
        kept = [line for line in lines if line.name != name]
        if len(kept) == len(lines):
            return False

        self._write(before, [line.text for line in kept], after, created=False)
        if self._logger is not None:
            self._logger.info(f"removed {name} from {self._target.path}", source=_SOURCE)
        return True

    def _write(
        self, before: list[str], body: list[str], after: list[str], *, created: bool
    ) -> None:
        head = list(before)
        if head and not head[-1].endswith(("\n", "\r")):
            head[-1] += "\n"
        if created and head and head[-1].strip():
            head.append("\n")
        block = [self._target.start_marker, *body, self._target.end_marker]
        text = "".join(head) + "".join(f"{line}\n" for line in block) + "".join(after)
        try:
            atomic_write_text(self._target.path, text)
        except (OSError, UnicodeError) as err:
            msg = f"can't write {self._target.path}: {err}"
            raise PersistenceError(msg) from err


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Replace *path* with *text* in one step.

    The data goes to a temporary file in the same directory, is flushed
    to disk, and is then renamed over the destination.  Symlinks are
    followed so a dotfile managed by a link keeps its link, and the
    original file mode is preserved.
    """
    destination = path.resolve()
    destination.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        newline="",
        delete=False,
        dir=destination.parent,
        prefix=f".{destination.name}.",
        suffix=".tmp",
    ) as handle:
        tmp_path = Path(handle.name)
        try:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        if destination.exists():
            shutil.copymode(destination, tmp_path)
        os.replace(tmp_path, destination)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
