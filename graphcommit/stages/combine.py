from __future__ import annotations

from typing import List, Set

from graphcommit.model import Drop, Keep, Kill, Message
from graphcommit.utils import get_logger

logger = get_logger(__name__)


def combine(messages: List[Message]) -> List[Message]:
    """Partially merge messages that share a key.

    Associative and idempotent over the message multiset, so the engine may
    apply it to any subset of a group any number of times. With exactly one
    ``Keep``/``Drop`` present, collected kill ids are applied to that vertex
    and only the pruned vertex is forwarded. Without one, a single ``Kill`` per
    distinct id is forwarded.
    """
    kill_ids: Set[int] = set()
    owners: List[Message] = []
    for msg in messages:
        match msg:
            case Kill(vertex_id=vid):
                kill_ids.add(vid)
            case Keep() | Drop():
                owners.append(msg)

    if not owners:
        return [Kill(vid) for vid in sorted(kill_ids)]

    if len(owners) > 1:
        # Left for the committer to reject; pruning keeps the merge idempotent.
        logger.warning("combine: %d authoritative records in one group", len(owners))

    merged: List[Message] = []
    for msg in owners:
        vertex = msg.vertex.without_edges_to(kill_ids)
        merged.append(Keep(vertex) if isinstance(msg, Keep) else Drop(vertex))
    return merged
