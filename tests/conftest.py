"""Shared fixtures for session parsing tests."""

import json
from pathlib import Path

import pytest

from ccx.models import ContentBlock, Message, MessageKind


def write_jsonl(path: Path, records: list) -> Path:
    """Write records (dicts, or raw strings for malformed lines) as JSONL."""
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            line = record if isinstance(record, str) else json.dumps(record)
            f.write(line + "\n")
    return path


def make_message(
    uuid: str,
    kind: MessageKind = MessageKind.USER_PROMPT,
    parent_uuid: str = "",
    **kwargs,
) -> Message:
    msg_type = "assistant" if kind == MessageKind.ASSISTANT else "user"
    return Message(uuid=uuid, parent_uuid=parent_uuid, type=msg_type, kind=kind, **kwargs)


def tool_use(name: str = "Bash", tool_id: str = "toolu_1") -> ContentBlock:
    return ContentBlock(type="tool_use", tool_name=name, tool_id=tool_id, tool_input={})


@pytest.fixture
def session_file(tmp_path):
    """Factory writing a session file into a project directory."""

    def _write(records: list, name: str = "session-1.jsonl") -> Path:
        return write_jsonl(tmp_path / name, records)

    return _write


@pytest.fixture
def projects_dir(tmp_path):
    """A Claude projects directory with two projects."""
    root = tmp_path / "projects"
    app = root / "-Users-eric-src-github-com-acme-app"
    lib = root / "-home-dev-projects-lib"
    app.mkdir(parents=True)
    lib.mkdir(parents=True)

    write_jsonl(
        app / "aaaa1111-0000.jsonl",
        [
            {"type": "summary", "summary": "Fix login bug"},
            {
                "type": "user",
                "uuid": "u1",
                "timestamp": "2026-01-10T10:00:00Z",
                "gitBranch": "main",
                "message": {"role": "user", "content": "The login form is broken"},
            },
            {
                "type": "assistant",
                "uuid": "a1",
                "parentUuid": "u1",
                "timestamp": "2026-01-10T10:00:05Z",
                "message": {
                    "role": "assistant",
                    "content": [{"type": "text", "text": "Looking at the validator"}],
                },
            },
        ],
    )
    write_jsonl(
        app / "bbbb2222-0000.jsonl",
        [
            {
                "type": "user",
                "uuid": "u1",
                "timestamp": "2026-01-12T09:00:00Z",
                "message": {"role": "user", "content": "Add dark mode\nwith a toggle"},
            },
        ],
    )
    # Sub-agent transcript and warmup session are not listed
    write_jsonl(
        app / "agent-cccc3333.jsonl",
        [
            {
                "type": "user",
                "uuid": "u1",
                "timestamp": "2026-01-13T09:00:00Z",
                "message": {"role": "user", "content": "Explore the repo"},
            },
        ],
    )
    write_jsonl(
        app / "dddd4444-0000.jsonl",
        [
            {
                "type": "user",
                "uuid": "u1",
                "timestamp": "2026-01-14T09:00:00Z",
                "message": {"role": "user", "content": "Warmup"},
            },
        ],
    )
    write_jsonl(
        lib / "eeee5555-0000.jsonl",
        [
            {
                "type": "user",
                "uuid": "u1",
                "timestamp": "2026-01-01T09:00:00Z",
                "message": {"role": "user", "content": "Write release notes"},
            },
        ],
    )
    return root
