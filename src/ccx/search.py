"""Search the content of a parsed session."""

import json
import re

from .models import Session

SNIPPET_CONTEXT = 20  # characters kept before the match


def extract_snippet(text: str, query: str, max_len: int = 60) -> str:
    """Return text around the first case-insensitive match of ``query``.

    Newlines are flattened and ``...`` marks trimmed ends. Returns an empty
    string when there is no match.
    """
    match = re.search(re.escape(query), text, re.IGNORECASE)
    if match is None:
        return ""

    start = max(match.start() - SNIPPET_CONTEXT, 0)
    end = min(match.end() + max_len - SNIPPET_CONTEXT, len(text))
    snippet = text[start:end].replace("\n", " ")
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


def _as_text(result) -> str:
    if isinstance(result, str):
        return result
    try:
        return json.dumps(result)
    except (TypeError, ValueError):
        return str(result)


def search_session_content(session: Session, query: str) -> tuple[str, str]:
    """Find the first message matching ``query``.

    Looks at text blocks, tool inputs and tool results in tree order.
    Returns ``(snippet, message_uuid)``, or ``("", "")`` if nothing matches.
    """
    if not query:
        return "", ""

    for message in session.messages:
        for block in message.content:
            if block.type == "text":
                snippet = extract_snippet(block.text, query)
                if snippet:
                    return snippet, message.uuid
            if block.type == "tool_use":
                snippet = extract_snippet(_as_text(block.tool_input), query, 40)
                if snippet:
                    return f"[{block.tool_name}] {snippet}", message.uuid
            if block.type == "tool_result":
                snippet = extract_snippet(_as_text(block.tool_result), query)
                if snippet:
                    return snippet, message.uuid
    return "", ""
