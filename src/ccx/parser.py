"""Parse Claude Code JSONL session files."""

import logging
from pathlib import Path
from typing import Iterator

from .content import first_text
from .decoder import SessionAccumulator
from .errors import LineTooLongError, SessionParseError
from .models import Message, MessageKind, Session, SessionStats
from .stats import add_message, compute_stats, duration_between
from .tree import build_message_tree

logger = logging.getLogger("ccx")

MAX_LINE_SIZE = 10 * 1024 * 1024  # 10 MB
NO_SUMMARY = "(no summary)"


def iter_lines(file_path: Path, max_line_size: int = MAX_LINE_SIZE) -> Iterator[str]:
    """Yield each line of a file without loading the whole file.

    At most ``max_line_size + 1`` bytes are buffered per line; a longer line
    raises LineTooLongError. Invalid UTF-8 is replaced rather than raised,
    the JSON decoder then rejects the record on its own.
    """
    with open(file_path, "rb") as f:
        line_number = 0
        while True:
            raw = f.readline(max_line_size + 1)
            if not raw:
                return
            line_number += 1
            if len(raw) > max_line_size and not raw.endswith(b"\n"):
                raise LineTooLongError(file_path, line_number, max_line_size)
            yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


def extract_session_id(file_path: Path | str) -> str:
    """Session id is the file name without ``.jsonl``."""
    name = Path(file_path).name
    if name.endswith(".jsonl"):
        return name[: -len(".jsonl")]
    return name


def extract_summary(messages: list[Message]) -> str:
    """First line of the first real user prompt, or "(no summary)"."""
    for message in messages:
        if message.kind != MessageKind.USER_PROMPT:
            continue
        text = first_text(message.content).strip()
        if text:
            return text.split("\n", 1)[0]
    return NO_SUMMARY


def _read_into(accumulator: SessionAccumulator, file_path: Path, max_line_size: int) -> None:
    try:
        for line in iter_lines(file_path, max_line_size):
            accumulator.feed(line)
    except OSError as e:
        raise SessionParseError(file_path, e.strerror or str(e)) from e


def parse_session(
    file_path: Path | str,
    project_name: str = "",
    max_line_size: int = MAX_LINE_SIZE,
) -> Session:
    """Parse a JSONL session file into a Session with a message tree.

    Raises SessionParseError if the file can't be read or a line is longer
    than ``max_line_size``. Malformed records are skipped and counted in
    ``stats.parse_errors``.
    """
    file_path = Path(file_path)
    accumulator = SessionAccumulator()
    _read_into(accumulator, file_path, max_line_size)

    messages = accumulator.messages

    # Boundaries may appear anywhere in the file, so resolve after reading
    accumulator.resolver.resolve_all(messages)
    roots = build_message_tree(messages)
    stats = compute_stats(messages)

    stats.input_tokens = accumulator.input_tokens
    stats.output_tokens = accumulator.output_tokens
    stats.cache_read_tokens = accumulator.cache_read_tokens
    stats.cache_create_tokens = accumulator.cache_create_tokens
    stats.parse_errors = accumulator.parse_errors

    if accumulator.parse_errors:
        logger.info(
            "Skipped %d malformed records in %s", accumulator.parse_errors, file_path
        )

    start_time = messages[0].timestamp if messages else None
    end_time = messages[-1].timestamp if messages else None

    return Session(
        id=extract_session_id(file_path),
        file_path=str(file_path),
        project_name=project_name,
        summary=accumulator.summary or extract_summary(messages),
        start_time=start_time,
        end_time=end_time,
        root_messages=roots,
        stats=stats,
        slug=accumulator.slug,
        version=accumulator.version,
        git_branch=accumulator.git_branch,
        cwd=accumulator.cwd,
    )


class _QuickAccumulator(SessionAccumulator):
    """Accumulator that folds stats as it goes instead of keeping messages."""

    def __init__(self):
        super().__init__()
        self.stats = SessionStats()
        self.first: Message | None = None
        self.last: Message | None = None
        self.first_prompt = ""

    def add(self, raw):
        message = super().add(raw)
        if message is None:
            return None
        self.messages.clear()

        add_message(self.stats, message)
        if self.first is None:
            self.first = message
        self.last = message
        if not self.first_prompt and message.kind == MessageKind.USER_PROMPT:
            text = first_text(message.content).strip()
            if text:
                self.first_prompt = text.split("\n", 1)[0]
        return message


def quick_parse_session(file_path: Path | str, project_name: str = "") -> Session:
    """Read only summary, times, stats and metadata of a session.

    Used for listings: no tree is built and messages aren't kept. Unlike
    parse_session this never raises; an unreadable file yields a session
    summarized as "(no summary)".
    """
    file_path = Path(file_path)
    accumulator = _QuickAccumulator()
    try:
        _read_into(accumulator, file_path, MAX_LINE_SIZE)
    except SessionParseError as e:
        logger.warning("Could not read session %s: %s", file_path, e.reason)
        return Session(
            id=extract_session_id(file_path),
            file_path=str(file_path),
            project_name=project_name,
            summary=NO_SUMMARY,
        )

    stats = accumulator.stats
    stats.input_tokens = accumulator.input_tokens
    stats.output_tokens = accumulator.output_tokens
    stats.cache_read_tokens = accumulator.cache_read_tokens
    stats.cache_create_tokens = accumulator.cache_create_tokens
    stats.parse_errors = accumulator.parse_errors

    first, last = accumulator.first, accumulator.last
    if first is not None and last is not None:
        stats.duration_seconds = duration_between(first, last)

    return Session(
        id=extract_session_id(file_path),
        file_path=str(file_path),
        project_name=project_name,
        summary=accumulator.summary or accumulator.first_prompt or NO_SUMMARY,
        start_time=first.timestamp if first else None,
        end_time=last.timestamp if last else None,
        stats=stats,
        slug=accumulator.slug,
        version=accumulator.version,
        git_branch=accumulator.git_branch,
        cwd=accumulator.cwd,
    )
