import json

import pytest
import yaml

from graphcommit.model import ElementState, VertexRecord
from graphcommit.orchestrator import load_vertices, run_once
from graphcommit.utils import build_config, validate_config

from conftest import start_path


def _write_graph(path, graph):
    path.write_text("\n".join(v.model_dump_json() for v in graph.values()) + "\n", encoding="utf-8")


def _write_config(path, cfg):
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")


def test_build_config_is_valid(tmp_path):
    cfg = build_config("drop", track_state=True, input={"path": str(tmp_path / "g.jsonl")})
    validate_config(cfg)
    assert cfg["commit"] == {"action": "DROP", "track_state": True}
    assert cfg["engine"]["combine"] is True


def test_validate_config_rejects_unknown_action(tmp_path):
    cfg = build_config("PURGE", input={"path": "g.jsonl"})
    with pytest.raises(ValueError, match="Config validation error"):
        validate_config(cfg)


def test_run_once_writes_vertices_and_counters(tmp_path, gods):
    start_path(gods, 16)
    graph_path = tmp_path / "gods.jsonl"
    _write_graph(graph_path, gods)
    cfg = build_config(
        "DROP",
        job_id="gods",
        input={"path": str(graph_path)},
        engine={"partitions": 2, "workers": 2},
        output={"dir": str(tmp_path / "out")},
    )
    config_path = tmp_path / "job.yaml"
    _write_config(config_path, cfg)

    result = run_once(str(config_path))
    assert len(result.vertices) == 11

    out_dir = tmp_path / "out"
    vertex_files = list(out_dir.glob("vertices_*.jsonl"))
    counter_files = list(out_dir.glob("counters_*.json"))
    assert len(vertex_files) == 1 and len(counter_files) == 1

    written = load_vertices(str(vertex_files[0]))
    assert [v.id for v in written] == [4, 8, 12, 20, 24, 28, 32, 36, 40, 44, 48]
    counters = json.loads(counter_files[0].read_text(encoding="utf-8"))
    assert counters["VERTICES_DROPPED"] == 1
    assert counters["OUT_EDGES_KEPT"] == 10


def test_run_once_applies_overrides(tmp_path, two_vertex_graph):
    graph_path = tmp_path / "g.jsonl"
    _write_graph(graph_path, two_vertex_graph)
    cfg = build_config("KEEP", input={"path": "missing.jsonl"}, output={"dir": str(tmp_path / "unused")})
    config_path = tmp_path / "job.yaml"
    _write_config(config_path, cfg)

    result = run_once(
        str(config_path),
        overrides={
            "input_path": str(graph_path),
            "output_dir": str(tmp_path / "out"),
            "action": "drop",
            "track_state": True,
            "combine": False,
            "partitions": 1,
        },
    )
    out = result.by_id()
    assert out[1].state == ElementState.DELETED
    assert out[2].in_edges == []
    assert list((tmp_path / "out").glob("vertices_*.jsonl"))


def test_load_vertices_reports_bad_line(tmp_path):
    path = tmp_path / "bad.jsonl"
    good = VertexRecord(id=1).model_dump_json()
    path.write_text(good + "\n\n" + '{"id": "not-a-number"}\n', encoding="utf-8")
    with pytest.raises(ValueError, match=r"bad.jsonl:3"):
        load_vertices(str(path))


def test_load_vertices_defaults(tmp_path):
    path = tmp_path / "g.jsonl"
    path.write_text('{"id": 7, "out_edges": [{"other_id": 8, "label": "knows"}]}\n', encoding="utf-8")
    [v] = load_vertices(str(path))
    assert v.state == ElementState.NORMAL
    assert v.path_count == 0
    assert v.out_edges[0].properties == {}
