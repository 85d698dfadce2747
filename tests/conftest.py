from typing import Dict, List, Optional, Tuple

import pytest

from graphcommit.model import EdgeRecord, VertexRecord

GODS = {
    4: {"name": "saturn", "age": 10000, "type": "titan"},
    8: {"name": "sky", "type": "location"},
    12: {"name": "sea", "type": "location"},
    16: {"name": "jupiter", "age": 5000, "type": "god"},
    20: {"name": "neptune", "age": 4500, "type": "god"},
    24: {"name": "hercules", "age": 30, "type": "demigod"},
    28: {"name": "alcmene", "age": 45, "type": "human"},
    32: {"name": "pluto", "age": 4000, "type": "god"},
    36: {"name": "nemean", "type": "monster"},
    40: {"name": "hydra", "type": "monster"},
    44: {"name": "cerberus", "type": "monster"},
    48: {"name": "tartarus", "type": "location"},
}

GODS_EDGES: List[Tuple[int, str, int, dict]] = [
    (16, "father", 4, {}),
    (16, "lives", 8, {"reason": "loves fresh breezes"}),
    (16, "brother", 20, {}),
    (16, "brother", 32, {}),
    (20, "lives", 12, {"reason": "loves waves"}),
    (20, "brother", 16, {}),
    (20, "brother", 32, {}),
    (24, "father", 16, {}),
    (24, "mother", 28, {}),
    (24, "battled", 36, {"time": 1}),
    (24, "battled", 40, {"time": 2}),
    (24, "battled", 44, {"time": 12}),
    (32, "brother", 16, {}),
    (32, "brother", 20, {}),
    (32, "lives", 48, {"reason": "no fear of death"}),
    (32, "pet", 44, {}),
    (44, "lives", 48, {}),
]


def build_graph(
    vertex_props: Dict[int, dict],
    edges: List[Tuple[int, str, int, dict]],
) -> Dict[int, VertexRecord]:
    """Wire both adjacency sides for each (source, label, target, props) edge."""
    graph = {vid: VertexRecord(id=vid, properties=dict(props)) for vid, props in vertex_props.items()}
    for src, label, dst, props in edges:
        graph[src].out_edges.append(EdgeRecord(other_id=dst, label=label, properties=dict(props)))
        graph[dst].in_edges.append(EdgeRecord(other_id=src, label=label, properties=dict(props)))
    return graph


def start_path(graph: Dict[int, VertexRecord], *ids: int) -> Dict[int, VertexRecord]:
    """Annotate ``ids`` (or every vertex when none given) with one more path."""
    for vid in ids or list(graph):
        graph[vid].path_count += 1
    return graph


def vertex(vid: int, out: Optional[List[int]] = None, inn: Optional[List[int]] = None, path_count: int = 0) -> VertexRecord:
    return VertexRecord(
        id=vid,
        out_edges=[EdgeRecord(other_id=o, label="link") for o in (out or [])],
        in_edges=[EdgeRecord(other_id=i, label="link") for i in (inn or [])],
        path_count=path_count,
    )


@pytest.fixture
def gods() -> Dict[int, VertexRecord]:
    return build_graph(GODS, GODS_EDGES)


@pytest.fixture
def two_vertex_graph() -> Dict[int, VertexRecord]:
    """A(1) -> B(2), A annotated."""
    return {
        1: vertex(1, out=[2], path_count=1),
        2: vertex(2, inn=[1]),
    }
