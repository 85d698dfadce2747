"""Commit stages: classify (map), combine (partial merge), commit (reduce).

Each stage exposes a small, pure function API: inputs are never mutated and
counters are returned as values for the engine to aggregate.
"""
