"""Vertex records, tagged messages and job counters shared by every stage."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple, Union

from pydantic import BaseModel, Field


class DropMode(str, Enum):
    DROP = "DROP"  # remove vertices that carry path annotations
    KEEP = "KEEP"  # remove vertices that carry none


class ElementState(str, Enum):
    NORMAL = "NORMAL"
    DELETED = "DELETED"


class EdgeRecord(BaseModel):
    """One adjacency entry.

    ``other_id`` is the target for an outgoing edge and the source for an
    incoming one, i.e. always the endpoint that is not the owning vertex.
    """

    other_id: int
    label: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class VertexRecord(BaseModel):
    id: int
    properties: Dict[str, Any] = Field(default_factory=dict)
    out_edges: List[EdgeRecord] = Field(default_factory=list)
    in_edges: List[EdgeRecord] = Field(default_factory=list)
    state: ElementState = ElementState.NORMAL
    path_count: int = 0

    @property
    def has_paths(self) -> bool:
        return self.path_count > 0

    @property
    def is_removed(self) -> bool:
        return self.state == ElementState.DELETED

    def neighbor_ids(self) -> List[int]:
        """Other endpoints of all edges, outgoing first, one entry per edge."""
        return [e.other_id for e in self.out_edges] + [e.other_id for e in self.in_edges]

    def without_edges_to(self, ids: Iterable[int]) -> "VertexRecord":
        """Return a copy with every edge to or from any of ``ids`` removed."""
        drop = set(ids)
        if not drop:
            return self.model_copy(deep=True)
        out_kept = [e.model_copy(deep=True) for e in self.out_edges if e.other_id not in drop]
        in_kept = [e.model_copy(deep=True) for e in self.in_edges if e.other_id not in drop]
        return self.model_copy(deep=True, update={"out_edges": out_kept, "in_edges": in_kept})

    def as_deleted(self) -> "VertexRecord":
        """Tombstone: same id and properties, DELETED, no adjacency."""
        return self.model_copy(
            deep=True,
            update={"state": ElementState.DELETED, "out_edges": [], "in_edges": []},
        )


# ---------- Messages ----------

@dataclass(frozen=True)
class Keep:
    vertex: VertexRecord


@dataclass(frozen=True)
class Drop:
    vertex: VertexRecord


@dataclass(frozen=True)
class Kill:
    vertex_id: int


Message = Union[Keep, Drop, Kill]
Keyed = Tuple[int, Message]


# ---------- Counters ----------

@dataclass
class JobCounters:
    vertices_kept: int = 0
    vertices_dropped: int = 0
    out_edges_kept: int = 0
    in_edges_kept: int = 0

    def __add__(self, other: "JobCounters") -> "JobCounters":
        return JobCounters(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    @classmethod
    def total(cls, parts: Iterable["JobCounters"]) -> "JobCounters":
        acc = cls()
        for part in parts:
            acc = acc + part
        return acc

    def as_dict(self) -> Dict[str, int]:
        return {f.name.upper(): getattr(self, f.name) for f in fields(self)}


# ---------- Errors ----------

class GraphIntegrityError(Exception):
    """Input violates a structural guarantee the job relies on."""


class MalformedGroupError(GraphIntegrityError):
    def __init__(self, key: int, reason: str) -> None:
        super().__init__(f"malformed message group for key={key}: {reason}")
        self.key = key
        self.reason = reason
