"""Build the message forest from parent references."""

from .models import Message


def build_message_tree(messages: list[Message]) -> list[Message]:
    """Attach each message to its parent and return the roots.

    Two passes: index by uuid, then link. Messages with no parent, a parent
    that isn't in the file (truncated or rotated logs) or themselves as
    parent become roots. Sibling order follows input order. If a uuid
    appears more than once the first message owns it.

    A parent cycle (a -> b -> a) has no root. It is cut at the cycle member
    that comes first in the input, which becomes a root; messages that merely
    descend from the cycle keep their parent.
    """
    by_uuid: dict[str, Message] = {}
    for message in messages:
        if message.uuid and message.uuid not in by_uuid:
            by_uuid[message.uuid] = message

    roots = []
    for message in messages:
        parent = by_uuid.get(message.parent_uuid) if message.parent_uuid else None
        if parent is None or parent is message:
            roots.append(message)
        else:
            parent.children.append(message)

    position = {id(m): i for i, m in enumerate(messages)}
    reachable = {id(m) for m in flatten_messages(roots)}
    for message in messages:
        if id(message) in reachable:
            continue
        member = _first_cycle_member(message, by_uuid, position)
        by_uuid[member.parent_uuid].children.remove(member)
        roots.append(member)
        reachable.update(id(m) for m in flatten_messages([member]))

    return roots


def _first_cycle_member(
    message: Message, by_uuid: dict[str, Message], position: dict[int, int]
) -> Message:
    # Unreachable messages always have a linked parent, so the walk ends in a cycle
    path: list[Message] = []
    index: dict[int, int] = {}
    node = message
    while id(node) not in index:
        index[id(node)] = len(path)
        path.append(node)
        node = by_uuid[node.parent_uuid]
    cycle = path[index[id(node)]:]
    return min(cycle, key=lambda m: position[id(m)])


def flatten_messages(roots: list[Message]) -> list[Message]:
    """Return all messages depth-first, parents before children."""
    result = []
    stack = list(reversed(roots))
    seen = set()
    while stack:
        message = stack.pop()
        if id(message) in seen:
            continue
        seen.add(id(message))
        result.append(message)
        stack.extend(reversed(message.children))
    return result
