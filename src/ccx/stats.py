"""Aggregate session statistics from the flat message list."""

from .models import Message, MessageKind, SessionStats


def add_message(stats: SessionStats, message: Message) -> None:
    """Count one message into ``stats`` (everything but duration)."""
    match message.kind:
        case MessageKind.USER_PROMPT:
            stats.message_count += 1
            stats.user_prompts += 1
        case MessageKind.ASSISTANT:
            stats.message_count += 1

    if message.is_compacted:
        stats.continuations += 1
    if message.is_sidechain:
        stats.agent_sidechains += 1
    stats.tool_calls += sum(1 for block in message.content if block.type == "tool_use")


def compute_stats(messages: list[Message]) -> SessionStats:
    """Fold messages (in file order) into SessionStats.

    Only real user prompts and assistant responses count as conversation
    turns; tool results, meta, commands and compact summaries do not.
    Token totals are not message-derived and are left at zero.
    """
    stats = SessionStats()
    for message in messages:
        add_message(stats, message)

    if messages:
        stats.duration_seconds = duration_between(messages[0], messages[-1])

    return stats


def duration_between(first: Message, last: Message) -> float:
    if first.timestamp is None or last.timestamp is None:
        return 0.0
    return (last.timestamp - first.timestamp).total_seconds()
