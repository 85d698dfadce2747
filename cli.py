#!/usr/bin/env python3
import argparse

from graphcommit.orchestrator import run_once


def main():
    parser = argparse.ArgumentParser(description="Commit pending vertex drops across a partitioned graph")
    parser.add_argument("--config", required=True, help="Path to YAML config")
    parser.add_argument("--input", dest="input_path", help="Override input JSON Lines path")
    parser.add_argument("--output-dir", dest="output_dir", help="Override output directory")
    # commit flags
    parser.add_argument("--action", choices=["DROP", "KEEP"], type=str.upper, help="DROP annotated vertices, or KEEP only annotated ones")
    parser.add_argument("--track-state", dest="track_state", action="store_true", help="Emit tombstones for dropped vertices")
    parser.add_argument("--no-track-state", dest="track_state", action="store_false", help="Omit dropped vertices from output")
    # engine flags
    parser.add_argument("--partitions", type=int, help="Number of map/reduce partitions")
    parser.add_argument("--workers", type=int, help="Thread pool size")
    parser.add_argument("--combine", dest="combine", action="store_true", help="Merge map output before the shuffle")
    parser.add_argument("--no-combine", dest="combine", action="store_false", help="Ship raw map output to reducers")
    parser.add_argument("--combine-passes", dest="combine_passes", type=int, help="Merge passes per map partition")
    parser.add_argument("--retries", type=int, help="Extra attempts per stage invocation")
    parser.set_defaults(track_state=None, combine=None)
    args = parser.parse_args()

    overrides = {
        "input_path": args.input_path,
        "output_dir": args.output_dir,
        "action": args.action,
        "track_state": args.track_state,
        "partitions": args.partitions,
        "workers": args.workers,
        "combine": args.combine,
        "combine_passes": args.combine_passes,
        "retries": args.retries,
    }

    result = run_once(args.config, overrides=overrides)
    print("Counters:", " ".join(f"{k}={v}" for k, v in result.counters.as_dict().items()))


if __name__ == "__main__":
    main()
