# blocks.py
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Core idea
# ---------------------------------------------------------------------
# A dotfile may contain any number of managed blocks:
#
#   # >>> mac-dev-setup starship >>>
#   eval "$(starship init zsh)"
#   # <<< mac-dev-setup starship <<<
#
# The store only ever rewrites the lines between (and including) its own
# markers. Everything else in the file is kept byte-for-byte, line endings
# included. A symlinked dotfile is edited at its target and the link stays.
#
# Known limitation: there is no cross-process locking. Two processes
# upserting into the same file at the same time can lose one write.
# ---------------------------------------------------------------------

DEFAULT_NAMESPACE = "mac-dev-setup"
BACKUP_TIME_FORMAT = "%Y%m%d-%H%M%S"

# Undecodable bytes survive a read/write round trip unchanged.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


class MalformedBlockError(ValueError):
    """A BEGIN marker was found without its matching END marker."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _target(file_path: str | Path) -> Path:
    """The real file behind *file_path*; a symlinked dotfile is edited where it points."""
    return Path(file_path).expanduser().resolve()


def _umask() -> int:
    current = os.umask(0)
    os.umask(current)
    return current


def split_lines(text: str) -> List[str]:
    """Split on "\\n" only, keeping terminators (form feeds etc. stay inside lines)."""
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def atomic_write_text(path: Path, content: str) -> None:
    """
    Write *content* to *path* atomically.

    Writes to a temp file in the same directory, then os.replace() over the
    target so a crash mid-write never leaves a truncated file. Permission
    bits of an existing target are carried over; a new file gets the usual
    umask-derived mode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, 0o666 & ~_umask())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


class ConfigBlockStore:
    """Insert, update and remove named blocks inside text files."""

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        *,
        comment: str = "#",
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            namespace: Fixed prefix that makes markers unlikely to collide
                with user content.
            comment: Comment leader for the marker lines.
            clock: Returns the current UTC time (used for backup names).
        """
        self.namespace = namespace
        self.comment = comment
        self.clock = clock

    # ---- markers ----

    def markers(self, name: str) -> Tuple[str, str]:
        if not name or any(ch.isspace() for ch in name):
            raise ValueError(f"Block name must be a non-empty token without whitespace: {name!r}")
        begin = f"{self.comment} >>> {self.namespace} {name} >>>"
        end = f"{self.comment} <<< {self.namespace} {name} <<<"
        return begin, end

    def render(self, name: str, body_lines: Iterable[str]) -> List[str]:
        """Render a block as a list of newline-terminated lines."""
        begin, end = self.markers(name)
        body = list(body_lines)
        for line in body:
            if line in (begin, end):
                raise ValueError(f"Block body for {name!r} contains its own marker line")
        return [begin + "\n"] + [line + "\n" for line in body] + [end + "\n"]

    # ---- parsing ----

    def _spans(self, lines: List[str], name: str) -> List[Tuple[int, int]]:
        """Return (start, stop) index pairs of every block called *name*."""
        begin, end = self.markers(name)
        spans: List[Tuple[int, int]] = []
        i = 0
        while i < len(lines):
            if _strip_eol(lines[i]) == begin:
                j = i + 1
                while j < len(lines) and _strip_eol(lines[j]) != end:
                    j += 1
                if j == len(lines):
                    raise MalformedBlockError(f"Unterminated block {name!r} starting at line {i + 1}")
                spans.append((i, j + 1))
                i = j + 1
            else:
                i += 1
        return spans

    @staticmethod
    def _read_lines(path: Path) -> List[str]:
        return split_lines(path.read_bytes().decode(ENCODING, ENCODING_ERRORS))

    # ---- public API ----

    def upsert(self, file_path: str | Path, name: str, body_lines: Iterable[str]) -> Path:
        """
        Insert or replace the block *name* in *file_path*.

        An existing block is replaced where it stands; otherwise the block is
        appended. The file (and its parent directory) is created if absent.
        """
        path = _target(file_path)
        block = self.render(name, body_lines)

        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.touch()

        lines = self._read_lines(path)
        spans = self._spans(lines, name)

        if spans:
            first_start, first_stop = spans[0]
            out = lines[:first_start] + block
            cursor = first_stop
            for start, stop in spans[1:]:
                out.extend(lines[cursor:start])
                cursor = stop
            out.extend(lines[cursor:])
            action = "updated"
        else:
            out = list(lines)
            if out and not out[-1].endswith("\n"):
                out[-1] = out[-1] + "\n"
            out.extend(block)
            action = "added"

        new_text = "".join(out)
        if new_text != "".join(lines):
            atomic_write_text(path, new_text)
            logger.info("Block %s %s in %s", name, action, path)
        else:
            logger.debug("Block %s unchanged in %s", name, path)
        return path

    def remove(self, file_path: str | Path, name: str) -> bool:
        """Delete the block *name*; returns True if one was found."""
        path = _target(file_path)
        if not path.exists():
            return False

        lines = self._read_lines(path)
        spans = self._spans(lines, name)
        if not spans:
            return False

        out: List[str] = []
        cursor = 0
        for start, stop in spans:
            out.extend(lines[cursor:start])
            cursor = stop
        out.extend(lines[cursor:])
        atomic_write_text(path, "".join(out))
        logger.info("Block %s removed from %s", name, path)
        return True

    def read_block(self, file_path: str | Path, name: str) -> Optional[List[str]]:
        """Body lines of the block *name*, or None if absent."""
        path = _target(file_path)
        if not path.exists():
            return None
        lines = self._read_lines(path)
        spans = self._spans(lines, name)
        if not spans:
            return None
        start, stop = spans[0]
        return [_strip_eol(ln) for ln in lines[start + 1 : stop - 1]]

    def backup_if_exists(self, file_path: str | Path) -> Optional[Path]:
        """
        Copy *file_path* to ``<file>.bak.<YYYYMMDD-HHMMSS>`` (UTC).

        Returns:
            The backup path, or None when the file does not exist.
        """
        path = _target(file_path)
        if not path.is_file():
            return None

        stamp = self.clock().astimezone(timezone.utc).strftime(BACKUP_TIME_FORMAT)
        backup = path.with_name(f"{path.name}.bak.{stamp}")
        n = 0
        while backup.exists():
            n += 1
            backup = path.with_name(f"{path.name}.bak.{stamp}.{n}")

        shutil.copy2(path, backup)
        logger.info("Backed up %s -> %s", path, backup)
        return backup

    def rewrite(self, file_path: str | Path, text: str) -> Optional[Path]:
        """Fully regenerate a managed file, backing up the previous version first."""
        path = _target(file_path)
        backup = self.backup_if_exists(path)
        atomic_write_text(path, text)
        logger.info("Wrote %s", path)
        return backup
