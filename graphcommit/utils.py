
import os
import json
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError
from typing import Any, Dict, Iterable, List

# ---------- Time helpers ----------

def now_utc():
    return dt.datetime.now(dt.timezone.utc)

# ---------- Config validation ----------

def load_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def validate_config(cfg: dict):
    here = os.path.dirname(os.path.abspath(__file__))
    schema_path = os.path.join(here, "schemas", "config.schema.json")
    schema = json.loads(load_file(schema_path))
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ValueError(f"Config validation error: {e.message} at {list(e.path)}") from e

def build_config(
    action: str,
    track_state: bool = False,
    *,
    job_id: str = "commit-vertices",
    **sections: Dict[str, Any],
) -> Dict[str, Any]:
    """Build a complete job config in code.

    ``sections`` may carry ``input``, ``engine`` or ``output`` dicts; they are
    merged over the defaults. The result passes ``validate_config`` as long as
    ``input.path`` is supplied.
    """
    cfg: Dict[str, Any] = {
        "job_id": job_id,
        "input": {"path": ""},
        "commit": {"action": str(action).upper(), "track_state": bool(track_state)},
        "engine": {
            "partitions": 4,
            "workers": 4,
            "combine": True,
            "combine_passes": 1,
            "retries": 2,
        },
        "output": {"dir": "out", "formats": ["jsonl", "counters"]},
    }
    for name, values in sections.items():
        cfg.setdefault(name, {}).update(values or {})
    return cfg

# ---------- Output writer ----------

def write_output(vertex_lines: Iterable[str], counters: Dict[str, int], out_cfg: dict) -> List[str]:
    out_dir = out_cfg["dir"]
    formats = out_cfg.get("formats", ["jsonl", "counters"])
    os.makedirs(out_dir, exist_ok=True)
    now_local = dt.datetime.now().astimezone()
    ts = now_local.strftime("%Y%m%dT%H%M%S%z")

    generated_files = []

    if "jsonl" in formats:
        jsonl_path = os.path.join(out_dir, f"vertices_{ts}.jsonl")
        with open(jsonl_path, "w", encoding="utf-8") as f:
            for line in vertex_lines:
                f.write(line)
                f.write("\n")
        generated_files.append(jsonl_path)

    if "counters" in formats:
        counters_path = os.path.join(out_dir, f"counters_{ts}.json")
        with open(counters_path, "w", encoding="utf-8") as f:
            json.dump(counters, f, ensure_ascii=False, indent=2)
        generated_files.append(counters_path)

    return generated_files

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    # Default to a local, writable logs directory
    log_dir = os.getenv("LOG_DIR", "logs")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    ch = logging.StreamHandler()
    ch.setLevel(logger.level)

    fh = TimedRotatingFileHandler(os.path.join(log_dir, "graphcommit.log"), when="D", backupCount=7, encoding="utf-8")
    fh.setLevel(logger.level)

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    ch.setFormatter(fmt)
    fh.setFormatter(fmt)
    logger.addHandler(ch)
    logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: str = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)
