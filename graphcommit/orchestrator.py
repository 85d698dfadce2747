
import time
import uuid
import yaml
from typing import Dict, Any, Iterator, List, Optional

from pydantic import ValidationError

from graphcommit.engine import JobResult, run_commit_job
from graphcommit.model import DropMode, VertexRecord
from graphcommit.utils import write_output, validate_config, get_logger

logger = get_logger(__name__)

_ENGINE_DEFAULTS: Dict[str, Any] = {
    "partitions": 4,
    "workers": 4,
    "combine": True,
    "combine_passes": 1,
    "retries": 2,
}

def iter_vertices(path: str) -> Iterator[VertexRecord]:
    """Read one vertex per JSON line; blank lines are skipped."""
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                yield VertexRecord.model_validate_json(line)
            except ValidationError as e:
                raise ValueError(f"Invalid vertex record at {path}:{lineno}: {e.error_count()} error(s)") from e

def load_vertices(path: str) -> List[VertexRecord]:
    return list(iter_vertices(path))

def _apply_overrides(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> None:
    if not overrides:
        return

    if overrides.get("input_path") is not None:
        cfg.setdefault("input", {})["path"] = overrides["input_path"]
    if overrides.get("output_dir") is not None:
        cfg.setdefault("output", {})["dir"] = overrides["output_dir"]

    # Commit
    if overrides.get("action") is not None or overrides.get("track_state") is not None:
        cm = cfg.setdefault("commit", {})
        if overrides.get("action") is not None:
            cm["action"] = str(overrides["action"]).upper()
        if overrides.get("track_state") is not None:
            cm["track_state"] = bool(overrides["track_state"])

    # Engine
    eng = cfg.setdefault("engine", {})
    for key in ("partitions", "workers", "combine_passes", "retries"):
        if overrides.get(key) is not None:
            eng[key] = int(overrides[key])  # type: ignore[arg-type]
    if overrides.get("combine") is not None:
        eng["combine"] = bool(overrides["combine"])

def _execute_job(cfg: Dict[str, Any], run_id: str) -> JobResult:
    """Execute the commit job with a validated configuration."""
    commit_cfg = cfg["commit"]
    engine_cfg = {**_ENGINE_DEFAULTS, **(cfg.get("engine") or {})}
    drop_mode = DropMode(commit_cfg["action"])
    track_state = bool(commit_cfg.get("track_state", False))
    logger.info(
        "config loaded job_id=%s run=%s action=%s track_state=%s",
        cfg["job_id"], run_id, drop_mode.value, track_state,
    )

    t0 = time.monotonic()
    vertices = load_vertices(cfg["input"]["path"])
    logger.info("loaded vertices=%d took_ms=%d", len(vertices), int((time.monotonic()-t0)*1000))

    result = run_commit_job(
        vertices,
        drop_mode=drop_mode,
        track_state=track_state,
        partitions=int(engine_cfg["partitions"]),
        workers=int(engine_cfg["workers"]),
        combine=bool(engine_cfg["combine"]),
        combine_passes=int(engine_cfg["combine_passes"]),
        retries=int(engine_cfg["retries"]),
    )
    logger.info("counters %s", result.counters.as_dict())

    generated_files = write_output(
        (v.model_dump_json() for v in result.vertices),
        result.counters.as_dict(),
        cfg["output"],
    )
    logger.info("output written files=%s", generated_files)
    return result

def run_once(config_path: str, overrides: Optional[Dict[str, Any]] = None) -> JobResult:
    """Execute the job once with given config file path."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s ===", run_id)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        _apply_overrides(cfg, overrides)
        validate_config(cfg)
        return _execute_job(cfg, run_id)

    except Exception as e:
        logger.error("Job execution failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)
