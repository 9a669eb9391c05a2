"""Follow a session file that is still being written.

Polls the file size on a fixed interval instead of using filesystem
notifications, so behavior is the same on every platform.
"""

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from .classifier import build_message
from .decoder import MESSAGE_TYPES, decode_record
from .errors import RecordDecodeError
from .models import Message

logger = logging.getLogger("ccx")

DEFAULT_POLL_INTERVAL = 0.5  # seconds
MAX_CHUNK_SIZE = 1 << 20  # 1 MiB read per tick


class TailState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    CLOSED = "closed"


class TailReader:
    """Reads lines appended to a file since the last poll.

    Each poll reads at most ``max_chunk_size`` new bytes. Complete lines are
    returned in order; a trailing fragment without a newline is held back
    until the rest of it arrives. The offset always advances by exactly the
    bytes read, so nothing is re-read or skipped.
    """

    def __init__(
        self,
        path: Path | str,
        offset: Optional[int] = None,
        max_chunk_size: int = MAX_CHUNK_SIZE,
    ):
        self.path = Path(path)
        self.max_chunk_size = max_chunk_size
        self.state = TailState.IDLE
        self._partial = b""
        if offset is None:
            # Start at the current end: only stream what gets appended
            try:
                offset = self.path.stat().st_size
            except OSError:
                offset = 0
        self.offset = offset

    @property
    def closed(self) -> bool:
        return self.state == TailState.CLOSED

    @property
    def pending(self) -> bytes:
        """The carried-over partial line."""
        return self._partial

    def close(self) -> None:
        self.state = TailState.CLOSED
        self._partial = b""

    def poll(self) -> list[str]:
        """Run one tick and return the complete lines read.

        I/O errors are logged and the tick yields nothing; the next poll
        retries from the same offset.
        """
        if self.closed:
            return []

        try:
            size = os.stat(self.path).st_size
        except OSError as e:
            logger.debug("stat failed for %s: %s", self.path, e)
            return []

        if size <= self.offset:
            self.state = TailState.IDLE
            return []

        self.state = TailState.READING
        chunk_size = min(size - self.offset, self.max_chunk_size)
        try:
            with open(self.path, "rb") as f:
                f.seek(self.offset)
                data = f.read(chunk_size)
        except OSError as e:
            logger.debug("read failed for %s: %s", self.path, e)
            self.state = TailState.IDLE
            return []

        if self.closed:
            # Cancelled while reading
            return []

        self.state = TailState.IDLE
        if not data:
            return []
        self.offset += len(data)
        return self._split(data)

    def _split(self, data: bytes) -> list[str]:
        data = self._partial + data
        pieces = data.split(b"\n")
        # Last piece is empty if data ended with a newline, else partial
        self._partial = pieces.pop()

        lines = []
        for piece in pieces:
            line = piece.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)
        return lines

    def follow(
        self,
        stop_event: threading.Event,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> Iterator[str]:
        """Yield new lines until ``stop_event`` is set.

        Ticks run back to back on this thread, so they never overlap. The
        reader is closed when the loop ends.
        """
        try:
            while not stop_event.is_set():
                for line in self.poll():
                    if stop_event.is_set():
                        return
                    yield line
                stop_event.wait(interval)
        finally:
            self.close()


def watch_session(
    path: Path | str,
    stop_event: threading.Event,
    interval: float = DEFAULT_POLL_INTERVAL,
    offset: Optional[int] = None,
    max_chunk_size: int = MAX_CHUNK_SIZE,
) -> Iterator[Message]:
    """Yield Messages for user/assistant records appended to a session.

    Parent references are left unresolved; compaction boundaries written
    after the watch started only take effect on a full re-parse.
    """
    reader = TailReader(path, offset=offset, max_chunk_size=max_chunk_size)
    for line in reader.follow(stop_event, interval):
        try:
            raw = decode_record(line)
        except RecordDecodeError as e:
            logger.debug("Skipping malformed tailed record: %s", e)
            continue
        if raw.type in MESSAGE_TYPES:
            yield build_message(raw)
