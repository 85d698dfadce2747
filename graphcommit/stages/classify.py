from __future__ import annotations

from typing import List, Tuple

from graphcommit.model import Drop, DropMode, JobCounters, Keep, Keyed, Kill, VertexRecord
from graphcommit.utils import get_logger

logger = get_logger(__name__)


def keep_vertex(drop_mode: DropMode, has_paths: bool) -> bool:
    return not (drop_mode == DropMode.DROP and has_paths) and not (
        drop_mode == DropMode.KEEP and not has_paths
    )


def classify(vertex: VertexRecord, drop_mode: DropMode) -> Tuple[List[Keyed], JobCounters]:
    """Decide keep/drop for one vertex and emit keyed messages.

    A kept vertex yields a single ``Keep`` under its own id. A dropped vertex
    yields one ``Kill`` per non-self-loop edge, keyed by the neighbor, followed
    by one ``Drop`` under its own id.
    """
    if keep_vertex(drop_mode, vertex.has_paths):
        return [(vertex.id, Keep(vertex))], JobCounters(vertices_kept=1)

    out: List[Keyed] = []
    for other_id in vertex.neighbor_ids():
        if other_id != vertex.id:
            out.append((other_id, Kill(vertex.id)))
    out.append((vertex.id, Drop(vertex)))
    logger.debug("classify: drop id=%d kills=%d", vertex.id, len(out) - 1)
    return out, JobCounters(vertices_dropped=1)
