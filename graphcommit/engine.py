"""In-process shuffle engine that drives the commit stages.

Map partitions run on a thread pool, each map output is optionally merged
with ``combine`` before the shuffle, and every key group is reduced exactly
once. Each stage invocation is retried as a whole by tenacity; integrity
errors are never retried.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from tenacity import Retrying, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from graphcommit.model import DropMode, GraphIntegrityError, JobCounters, Keyed, Message, VertexRecord
from graphcommit.stages.classify import classify
from graphcommit.stages.combine import combine as combine_messages
from graphcommit.stages.commit import commit
from graphcommit.utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class JobResult:
    vertices: List[VertexRecord]
    counters: JobCounters
    took_ms: Dict[str, int] = field(default_factory=dict)

    def by_id(self) -> Dict[int, VertexRecord]:
        return {v.id: v for v in self.vertices}


def _invoke(retries: int, fn: Callable[..., T], *args, **kwargs) -> T:
    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=0.01, min=0.01, max=0.5),
        retry=retry_if_not_exception_type(GraphIntegrityError),
        reraise=True,
    )
    return retrying(fn, *args, **kwargs)


def partition_of(key: int, partitions: int) -> int:
    return key % partitions


def split(vertices: Iterable[VertexRecord], partitions: int) -> List[List[VertexRecord]]:
    parts: List[List[VertexRecord]] = [[] for _ in range(partitions)]
    for v in vertices:
        parts[partition_of(v.id, partitions)].append(v)
    return parts


def group_by_key(records: Iterable[Keyed]) -> Dict[int, List[Message]]:
    groups: Dict[int, List[Message]] = {}
    for key, msg in records:
        groups.setdefault(key, []).append(msg)
    return groups


def combine_records(records: Sequence[Keyed], passes: int = 1) -> List[Keyed]:
    """Apply ``combine`` per key, ``passes`` times, to one partition's output."""
    out = list(records)
    for _ in range(passes):
        out = [(key, msg) for key, group in group_by_key(out).items() for msg in combine_messages(group)]
    return out


def _map_task(
    vertices: List[VertexRecord],
    drop_mode: DropMode,
    combine_passes: int,
    retries: int,
) -> Tuple[List[Keyed], JobCounters]:
    records: List[Keyed] = []
    counters = JobCounters()
    for vertex in vertices:
        emitted, c = _invoke(retries, classify, vertex, drop_mode)
        records.extend(emitted)
        counters = counters + c
    if combine_passes > 0:
        before = len(records)
        records = combine_records(records, combine_passes)
        logger.debug("map.combine: records=%d from=%d", len(records), before)
    return records, counters


def _reduce_task(
    groups: List[Tuple[int, List[Message]]],
    track_state: bool,
    retries: int,
) -> Tuple[List[VertexRecord], JobCounters]:
    vertices: List[VertexRecord] = []
    counters = JobCounters()
    for key, messages in groups:
        vertex, c = _invoke(retries, commit, key, messages, track_state=track_state)
        if vertex is not None:
            vertices.append(vertex)
        counters = counters + c
    return vertices, counters


def run_commit_job(
    vertices: Iterable[VertexRecord],
    *,
    drop_mode: DropMode,
    track_state: bool = False,
    partitions: int = 4,
    workers: Optional[int] = None,
    combine: bool = True,
    combine_passes: int = 1,
    retries: int = 2,
) -> JobResult:
    if partitions < 1:
        raise ValueError("partitions must be >= 1")
    drop_mode = DropMode(drop_mode)
    passes = combine_passes if combine else 0
    took: Dict[str, int] = {}

    parts = split(vertices, partitions)
    with ThreadPoolExecutor(max_workers=workers or partitions, thread_name_prefix="graphcommit_") as pool:
        t0 = time.monotonic()
        map_out = list(pool.map(lambda p: _map_task(p, drop_mode, passes, retries), parts))
        took["map"] = int((time.monotonic() - t0) * 1000)
        map_counters = JobCounters.total(c for _, c in map_out)
        logger.info(
            "map: partitions=%d kept=%d dropped=%d records=%d took_ms=%d",
            partitions,
            map_counters.vertices_kept,
            map_counters.vertices_dropped,
            sum(len(r) for r, _ in map_out),
            took["map"],
        )

        t1 = time.monotonic()
        groups = group_by_key(rec for records, _ in map_out for rec in records)
        reduce_parts: List[List[Tuple[int, List[Message]]]] = [[] for _ in range(partitions)]
        for key in sorted(groups):
            reduce_parts[partition_of(key, partitions)].append((key, groups[key]))
        took["shuffle"] = int((time.monotonic() - t1) * 1000)

        t2 = time.monotonic()
        reduce_out = list(pool.map(lambda g: _reduce_task(g, track_state, retries), reduce_parts))
        took["reduce"] = int((time.monotonic() - t2) * 1000)

    out_vertices = sorted((v for vs, _ in reduce_out for v in vs), key=lambda v: v.id)
    counters = map_counters + JobCounters.total(c for _, c in reduce_out)
    logger.info(
        "reduce: keys=%d emitted=%d out_edges=%d in_edges=%d took_ms=%d",
        len(groups),
        len(out_vertices),
        counters.out_edges_kept,
        counters.in_edges_kept,
        took["reduce"],
    )
    return JobResult(vertices=out_vertices, counters=counters, took_ms=took)
