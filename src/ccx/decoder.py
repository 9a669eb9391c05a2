"""Decode JSONL log lines and accumulate session-level data."""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .classifier import build_message
from .errors import RecordDecodeError
from .models import Message
from .resolver import LogicalParentResolver

logger = logging.getLogger("ccx")

# Record types that can become messages
MESSAGE_TYPES = ("user", "assistant")


@dataclass
class Usage:
    """Token usage reported for one API response."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0


@dataclass
class RawRecord:
    """One decoded log line."""

    type: str = ""
    subtype: str = ""  # compact_boundary, local_command
    timestamp: str = ""
    uuid: str = ""
    parent_uuid: str = ""
    logical_parent_uuid: str = ""  # True parent for compact_boundary
    session_id: str = ""
    is_compact_summary: bool = False
    is_sidechain: bool = False
    is_meta: bool = False
    agent_id: str = ""
    role: str = ""
    content: Any = None  # message.content: string or list of blocks
    model: str = ""
    system_content: str = ""  # top-level content of system records
    summary: str = ""
    leaf_uuid: str = ""
    usage: Optional[Usage] = None

    # Session metadata
    slug: str = ""
    version: str = ""
    git_branch: str = ""
    cwd: str = ""


def _str(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _bool(data: dict, key: str) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else False


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        # json accepts NaN, Infinity and overflowing exponents like 1e400
        return 0
    return int(value)


def _decode_usage(data: Any) -> Optional[Usage]:
    if not isinstance(data, dict):
        return None
    return Usage(
        input_tokens=_int(data, "input_tokens"),
        output_tokens=_int(data, "output_tokens"),
        cache_read_input_tokens=_int(data, "cache_read_input_tokens"),
        cache_creation_input_tokens=_int(data, "cache_creation_input_tokens"),
    )


def decode_record(line: str) -> RawRecord:
    """Decode one JSONL line into a RawRecord.

    Raises RecordDecodeError if the line is not a JSON object. Fields that
    are missing or have the wrong type fall back to empty values.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordDecodeError(f"invalid JSON at column {e.colno}") from e
    except RecursionError as e:
        raise RecordDecodeError("JSON nested too deeply") from e
    if not isinstance(data, dict):
        raise RecordDecodeError(f"expected a JSON object, got {type(data).__name__}")

    payload = data.get("message")
    if not isinstance(payload, dict):
        payload = {}

    # Usage is normally attached to message, some writers put it top-level
    usage = _decode_usage(data.get("usage"))
    if usage is None:
        usage = _decode_usage(payload.get("usage"))

    return RawRecord(
        type=_str(data, "type"),
        subtype=_str(data, "subtype"),
        timestamp=_str(data, "timestamp"),
        uuid=_str(data, "uuid"),
        parent_uuid=_str(data, "parentUuid"),
        logical_parent_uuid=_str(data, "logicalParentUuid"),
        session_id=_str(data, "sessionId"),
        is_compact_summary=_bool(data, "isCompactSummary"),
        is_sidechain=_bool(data, "isSidechain"),
        is_meta=_bool(data, "isMeta"),
        agent_id=_str(data, "agentId"),
        role=_str(payload, "role"),
        content=payload.get("content"),
        model=_str(payload, "model"),
        system_content=_str(data, "content"),
        summary=_str(data, "summary"),
        leaf_uuid=_str(data, "leafUuid"),
        usage=usage,
        slug=_str(data, "slug"),
        version=_str(data, "version"),
        git_branch=_str(data, "gitBranch"),
        cwd=_str(data, "cwd"),
    )


@dataclass
class SessionAccumulator:
    """First pass over a session file.

    Feeds decoded records into running token totals, first-wins metadata,
    the session summary and the compaction boundary map, and collects the
    user/assistant messages in file order.
    """

    resolver: LogicalParentResolver = field(default_factory=LogicalParentResolver)
    messages: list[Message] = field(default_factory=list)
    summary: str = ""
    parse_errors: int = 0
    line_count: int = 0

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0

    slug: str = ""
    version: str = ""
    git_branch: str = ""
    cwd: str = ""

    def feed(self, line: str) -> Optional[Message]:
        """Consume one line; return the Message it produced, if any."""
        self.line_count += 1
        if not line.strip():
            return None

        try:
            raw = decode_record(line)
        except RecordDecodeError as e:
            self.parse_errors += 1
            # Don't log the content, it may contain secrets
            logger.debug("Skipping malformed record on line %d: %s", self.line_count, e)
            return None

        return self.add(raw)

    def add(self, raw: RawRecord) -> Optional[Message]:
        """Route an already decoded record."""
        if raw.usage is not None:
            self.input_tokens += raw.usage.input_tokens
            self.output_tokens += raw.usage.output_tokens
            self.cache_read_tokens += raw.usage.cache_read_input_tokens
            self.cache_create_tokens += raw.usage.cache_creation_input_tokens

        if not self.slug and raw.slug:
            self.slug = raw.slug
        if not self.version and raw.version:
            self.version = raw.version
        if not self.git_branch and raw.git_branch:
            self.git_branch = raw.git_branch
        if not self.cwd and raw.cwd:
            self.cwd = raw.cwd

        if raw.type == "system" and raw.subtype == "compact_boundary" and raw.uuid:
            target = raw.logical_parent_uuid.strip()
            if target:
                self.resolver.register(raw.uuid, target)
            return None

        if raw.type == "summary":
            if not self.summary:
                self.summary = raw.summary.strip()
            return None

        if raw.type not in MESSAGE_TYPES:
            return None

        message = build_message(raw)
        self.messages.append(message)
        return message
