"""Classify user/assistant records into MessageKinds."""

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .content import normalize_content
from .models import Message, MessageKind

if TYPE_CHECKING:
    from .decoder import RawRecord

COMMAND_PREFIX = "<command-"

# RFC3339 fraction with more digits than datetime can hold (nanoseconds)
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC3339 timestamp, returning None if it can't be parsed.

    Fractions beyond microseconds are truncated. Timestamps without an
    offset are taken to be UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = _LONG_FRACTION.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _extract_between(text: str, open_tag: str, close_tag: str) -> str:
    start = text.find(open_tag)
    if start == -1:
        return ""
    start += len(open_tag)
    end = text.find(close_tag, start)
    if end == -1:
        return ""
    return text[start:end].strip()


def extract_command_name(text: str) -> str:
    """Extract ``/foo`` from ``<command-name>/foo</command-name>``."""
    return _extract_between(text, "<command-name>", "</command-name>")


def extract_command_args(text: str) -> str:
    """Extract arguments from ``<command-args>...</command-args>``."""
    return _extract_between(text, "<command-args>", "</command-args>")


def _mark_command(message: Message, text: str) -> MessageKind:
    message.is_command = True
    message.command_name = extract_command_name(text)
    message.command_args = extract_command_args(text)
    return MessageKind.COMMAND


def classify_message(message: Message, raw: "RawRecord") -> MessageKind:
    """Determine the semantic kind of a message.

    First match wins: assistant, system, then for user records compact
    summary, meta, tool result, slash command and finally a real prompt.
    Only ``command_name``/``command_args``/``is_command`` are written to
    ``message``.
    """
    match message.type:
        case "assistant":
            return MessageKind.ASSISTANT
        case "system":
            return MessageKind.SYSTEM
        case "user":
            if raw.is_compact_summary:
                return MessageKind.COMPACT_SUMMARY
            if raw.is_meta:
                return MessageKind.META

            first = message.content[0] if message.content else None
            if first is not None and first.type == "tool_result":
                return MessageKind.TOOL_RESULT
            if (
                first is not None
                and first.type == "text"
                and first.text.startswith(COMMAND_PREFIX)
            ):
                return _mark_command(message, first.text)

            # String content that didn't normalize to a text block first
            if isinstance(raw.content, str) and raw.content.startswith(COMMAND_PREFIX):
                return _mark_command(message, raw.content)

            return MessageKind.USER_PROMPT

    return MessageKind.UNKNOWN


def build_message(raw: "RawRecord") -> Message:
    """Build a classified Message from a decoded record."""
    message = Message(
        uuid=raw.uuid,
        parent_uuid=raw.parent_uuid,
        type=raw.type,
        timestamp=parse_timestamp(raw.timestamp),
        content=normalize_content(raw.content),
        is_compacted=raw.is_compact_summary,
        is_sidechain=raw.is_sidechain,
        is_meta=raw.is_meta,
        agent_id=raw.agent_id,
        model=raw.model,
        subtype=raw.subtype,
    )
    message.kind = classify_message(message, raw)
    return message
