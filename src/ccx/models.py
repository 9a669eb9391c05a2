"""Data models for parsed Claude Code sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class MessageKind(str, Enum):
    """Semantic classification of a message."""

    USER_PROMPT = "user_prompt"  # Actual user input
    TOOL_RESULT = "tool_result"  # Tool execution result
    COMMAND = "command"  # Slash command (/init, /compact, ...)
    META = "meta"  # Meta/system instruction
    COMPACT_SUMMARY = "compact_summary"  # Compacted context carrier
    ASSISTANT = "assistant"  # Assistant response
    SYSTEM = "system"  # System event
    UNKNOWN = "unknown"


@dataclass
class ContentBlock:
    """One normalized unit of message content."""

    type: str  # text | thinking | tool_use | tool_result | image
    text: str = ""
    tool_name: str = ""
    tool_id: str = ""
    tool_input: Any = None
    tool_result: Any = None
    is_error: bool = False
    image_data: str = ""
    media_type: str = ""


@dataclass(eq=False)
class Message:
    """A classified, parent-resolved message in a session.

    Messages are tree nodes and compare by identity.
    """

    uuid: str
    parent_uuid: str = ""
    type: str = ""  # user, assistant, system
    kind: MessageKind = MessageKind.UNKNOWN
    timestamp: Optional[datetime] = None
    content: list[ContentBlock] = field(default_factory=list)
    children: list["Message"] = field(default_factory=list)
    is_compacted: bool = False  # isCompactSummary: carries compacted context
    is_sidechain: bool = False
    is_meta: bool = False
    is_command: bool = False
    command_name: str = ""
    command_args: str = ""
    agent_id: str = ""
    model: str = ""
    subtype: str = ""

    def __repr__(self) -> str:
        # children are recursive, keep the repr flat
        return (
            f"Message(uuid={self.uuid!r}, parent_uuid={self.parent_uuid!r}, "
            f"kind={self.kind.value}, children={len(self.children)})"
        )


@dataclass
class SessionStats:
    """Counters derived from a session's messages."""

    message_count: int = 0
    user_prompts: int = 0
    tool_calls: int = 0
    continuations: int = 0
    agent_sidechains: int = 0

    # Token usage (from API responses)
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0

    duration_seconds: float = 0.0
    parse_errors: int = 0

    @property
    def total_tokens(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_tokens
            + self.cache_create_tokens
        )


@dataclass
class Session:
    """One session log file, reconstructed as a forest of messages."""

    id: str
    file_path: str
    project_name: str = ""
    summary: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    root_messages: list[Message] = field(default_factory=list)
    stats: SessionStats = field(default_factory=SessionStats)

    # Metadata from session records
    slug: str = ""  # Human-readable name like "melodic-cooking-piglet"
    version: str = ""  # Claude Code version
    git_branch: str = ""
    cwd: str = ""

    @property
    def messages(self) -> list[Message]:
        """All messages, depth-first in tree order."""
        from .tree import flatten_messages

        return flatten_messages(self.root_messages)


@dataclass
class Project:
    """A directory of session files."""

    name: str
    encoded_name: str
    path: str
    sessions: list[Session] = field(default_factory=list)
    last_modified: Optional[datetime] = None
