"""Re-readable line source for two-pass validation.

Rules:
- A path is re-opened for every pass.
- A seekable binary stream is rewound to its starting offset for every pass.
- A non-seekable stream (stdin, pipes) is spooled once into a temporary file.
- Lines are yielded as raw bytes with their 1-based physical line number;
  `\r\n`, `\n` and a bare `\r` all end a line.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from collections.abc import Iterator
from itertools import islice
from pathlib import Path
from typing import BinaryIO

from cdm.utils.errors import SourceNotFoundError

SPOOL_MAX_MEMORY_BYTES = 8 * 1024 * 1024
SAMPLE_LINES = 100
READ_CHUNK_BYTES = 64 * 1024

_LINE_BREAK_RE = re.compile(rb"\r\n|\r|\n")


class ReplayableSource:
    """Line source that can be streamed more than once."""

    def __init__(self, source: str | os.PathLike[str] | BinaryIO) -> None:
        self._path: Path | None = None
        self._stream: BinaryIO | None = None
        self._start = 0
        self._spool: tempfile.SpooledTemporaryFile | None = None

        if isinstance(source, (str, os.PathLike)):
            self._path = Path(source)
        elif _is_seekable(source):
            self._stream = source
            self._start = source.tell()
        else:
            self._spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY_BYTES)
            shutil.copyfileobj(source, self._spool)
            self._stream = self._spool

    @property
    def name(self) -> str:
        if self._path is not None:
            return str(self._path)
        return "<stream>"

    def ensure_exists(self) -> None:
        if self._path is not None and not self._path.is_file():
            raise SourceNotFoundError(f"File not found: {self._path}", path=self._path)

    def size(self) -> int | None:
        """Byte size of the content, or None when it cannot be known."""

        if self._path is not None:
            try:
                return self._path.stat().st_size
            except OSError:
                return None
        assert self._stream is not None
        self._stream.seek(0, os.SEEK_END)
        end = self._stream.tell()
        self._stream.seek(self._start)
        return end - self._start

    def lines(self) -> Iterator[tuple[int, bytes]]:
        """Yield `(line_number, raw_line)` pairs from the beginning."""

        if self._path is not None:
            self.ensure_exists()
            with self._path.open("rb") as handle:
                yield from enumerate(_physical_lines(handle), start=1)
            return

        assert self._stream is not None
        self._stream.seek(self._start)
        yield from enumerate(_physical_lines(self._stream), start=1)

    def estimate_line_count(self) -> int:
        """Estimate the line count from the size of the first few lines.

        Returns 0 when the size is unknown or the source is empty.
        """

        size = self.size()
        if not size:
            return 0
        lines = self.lines()
        try:
            sample = [len(raw) for _, raw in islice(lines, SAMPLE_LINES)]
        finally:
            lines.close()
        if not sample:
            return 0
        average = sum(sample) / len(sample)
        return max(int(size / average), len(sample))

    def close(self) -> None:
        if self._spool is not None:
            self._spool.close()
            self._spool = None

    def __enter__(self) -> ReplayableSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _is_seekable(stream: BinaryIO) -> bool:
    try:
        return stream.seekable()
    except (AttributeError, ValueError):
        return False


def _physical_lines(handle: BinaryIO) -> Iterator[bytes]:
    pending = b""
    for chunk in iter(lambda: handle.read(READ_CHUNK_BYTES), b""):
        buffer = pending + chunk
        start = 0
        for match in _LINE_BREAK_RE.finditer(buffer):
            # A trailing \r may be the first half of a \r\n split across chunks.
            if match.group() == b"\r" and match.end() == len(buffer):
                break
            yield buffer[start : match.end()]
            start = match.end()
        pending = buffer[start:]
    if pending:
        yield pending
