"""Normalize raw message content into ContentBlocks.

Message content in the log is either a plain string or a list of typed
objects. Everything downstream only ever sees ``list[ContentBlock]``.
Unknown shapes degrade to an empty list; unknown block types are dropped so
new block kinds in the log format don't break parsing.
"""

from typing import Any

from .models import ContentBlock


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def normalize_block(item: Any) -> ContentBlock | None:
    """Convert one raw content entry, or return None if it is not recognized."""
    if not isinstance(item, dict):
        return None

    block_type = _str(item.get("type"))
    match block_type:
        case "text":
            return ContentBlock(type="text", text=_str(item.get("text")))
        case "thinking":
            return ContentBlock(type="thinking", text=_str(item.get("thinking")))
        case "tool_use":
            return ContentBlock(
                type="tool_use",
                tool_name=_str(item.get("name")),
                tool_id=_str(item.get("id")),
                tool_input=item.get("input"),
            )
        case "tool_result":
            is_error = item.get("is_error")
            return ContentBlock(
                type="tool_result",
                tool_id=_str(item.get("tool_use_id")),
                tool_result=item.get("content"),
                is_error=is_error if isinstance(is_error, bool) else False,
            )
        case "image":
            source = item.get("source")
            if not isinstance(source, dict):
                source = {}
            return ContentBlock(
                type="image",
                media_type=_str(source.get("media_type")),
                image_data=_str(source.get("data")),
            )
    return None


def normalize_content(content: Any) -> list[ContentBlock]:
    """Convert a string or list content payload into ContentBlocks."""
    if content is None:
        return []
    if isinstance(content, str):
        return [ContentBlock(type="text", text=content)]
    if not isinstance(content, list):
        return []

    blocks = []
    for item in content:
        block = normalize_block(item)
        if block is not None:
            blocks.append(block)
    return blocks


def first_text(blocks: list[ContentBlock]) -> str:
    """Return the first non-empty text block, or an empty string."""
    for block in blocks:
        if block.type == "text" and block.text:
            return block.text
    return ""


def count_tool_calls(content: Any) -> int:
    """Count tool_use entries in a raw content payload."""
    if not isinstance(content, list):
        return 0
    return sum(
        1
        for item in content
        if isinstance(item, dict) and item.get("type") == "tool_use"
    )
