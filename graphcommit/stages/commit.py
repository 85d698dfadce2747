from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

from graphcommit.model import Drop, JobCounters, Keep, Kill, MalformedGroupError, Message, VertexRecord
from graphcommit.utils import get_logger

logger = get_logger(__name__)


def commit(
    key: int,
    messages: Iterable[Message],
    *,
    track_state: bool = False,
) -> Tuple[Optional[VertexRecord], JobCounters]:
    """Assemble the final vertex for ``key`` from its complete message group.

    Works on merged and unmerged groups alike. Returns ``(vertex, counters)``
    where ``vertex`` is ``None`` when a dropped vertex is suppressed because
    tombstones are not tracked.

    Raises ``MalformedGroupError`` when the group holds no authoritative
    ``Keep``/``Drop`` record, more than one, or one whose id is not ``key``.
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
        reason = f"only kill notifications ({len(kill_ids)} ids)" if kill_ids else "empty group"
        raise MalformedGroupError(key, reason)
    if len(owners) > 1:
        kinds = ",".join(type(m).__name__.upper() for m in owners)
        raise MalformedGroupError(key, f"{len(owners)} authoritative records ({kinds})")

    match owners[0]:
        case Drop(vertex=vertex):
            result = vertex.as_deleted()
        case Keep(vertex=vertex):
            result = vertex.without_edges_to(kill_ids)

    if result.id != key:
        raise MalformedGroupError(key, f"vertex id {result.id} routed to wrong key")

    counters = JobCounters(out_edges_kept=len(result.out_edges), in_edges_kept=len(result.in_edges))
    if result.is_removed and not track_state:
        return None, counters
    return result, counters
