"""Resolve parent references across compaction boundaries.

When a session is compacted, a synthetic ``system``/``compact_boundary``
record is written whose ``logicalParentUuid`` names the message the
conversation really continues from. Messages written after the boundary
point their ``parentUuid`` at the boundary, which never becomes a Message.
Resolving rewrites those references to the logical parent so the boundary
is transparent in the tree.
"""

import logging
from typing import Iterable

from .models import Message

logger = logging.getLogger("ccx")

# Compaction chains are short; this only guards against cyclic data
MAX_HOPS = 16


class LogicalParentResolver:
    """Map of compaction boundary uuid -> logical parent uuid."""

    def __init__(self, max_hops: int = MAX_HOPS):
        self.max_hops = max_hops
        self.boundaries: dict[str, str] = {}
        self.exhausted = 0  # resolutions that hit max_hops

    def __len__(self) -> int:
        return len(self.boundaries)

    def __contains__(self, uuid: str) -> bool:
        return uuid in self.boundaries

    def register(self, boundary_uuid: str, target: str) -> None:
        self.boundaries[boundary_uuid] = target

    def resolve(self, parent_uuid: str) -> str:
        """Follow boundary mappings from ``parent_uuid``.

        Stops at the first uuid that isn't a boundary, maps to an empty
        target, or maps to itself. If ``max_hops`` is used up the uuid
        reached so far is returned as-is.
        """
        current = parent_uuid
        for _ in range(self.max_hops):
            target = self.boundaries.get(current)
            if not target or target == current:
                return current
            current = target

        target = self.boundaries.get(current)
        if not target or target == current:
            return current

        self.exhausted += 1
        logger.warning(
            "Logical parent chain from %s exceeded %d hops, stopping at %s",
            parent_uuid,
            self.max_hops,
            current,
        )
        return current

    def resolve_all(self, messages: Iterable[Message]) -> None:
        """Rewrite each message's parent_uuid in place."""
        for message in messages:
            if message.parent_uuid in self.boundaries:
                message.parent_uuid = self.resolve(message.parent_uuid)
