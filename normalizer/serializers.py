# normalizer/serializers.py
"""
Utility functions to turn grammars, trace events and conversion results into
JSON-compatible dicts for the frontend visualizer.
"""

from typing import Any, Dict, List, Optional

from normalizer.cnf_converter import CNFResult
from normalizer.grammar import Grammar
from normalizer.symbols import format_production
from normalizer.trace import TransformationEvent

SNAPSHOT_MODES = ("full", "delta", "none")


# -------------------------------------------------------
# 1. Grammars
# -------------------------------------------------------

def grammar_to_json(grammar: Grammar) -> Dict[str, Any]:
    """
    Output format:
    {
        "start": "S0",
        "rules": { "S0": ["ZX", "ε"], "X": ["SY"], ... }
    }
    """
    return {"start": grammar.start.name, "rules": grammar.as_dict()}


# -------------------------------------------------------
# 2. Trace events
# -------------------------------------------------------

def event_to_json(event: TransformationEvent, include_snapshot: bool = True) -> Dict[str, Any]:
    data = {
        "stage": event.stage.value,
        "action": event.action,
        "variables": [variable.name for variable in event.variables],
        "added": [format_production(lhs, body) for lhs, body in event.added],
        "removed": [format_production(lhs, body) for lhs, body in event.removed],
        "message": event.message,
    }
    if include_snapshot:
        data["snapshot"] = grammar_to_json(event.snapshot)
    return data


def trace_to_json(events, snapshots: str = "delta") -> List[Dict[str, Any]]:
    """
    Serialize a trace.

    snapshots="full" attaches the grammar to every event, "delta" only to
    events whose snapshot differs from the previous one (the consumer keeps
    the last grammar it saw), "none" never.
    """
    if snapshots not in SNAPSHOT_MODES:
        raise ValueError(f"snapshots must be one of {', '.join(SNAPSHOT_MODES)}, got {snapshots!r}")

    out = []
    previous: Optional[Grammar] = None
    for event in events:
        if snapshots == "full":
            include = True
        elif snapshots == "delta":
            include = event.snapshot is not previous
        else:
            include = False
        out.append(event_to_json(event, include_snapshot=include))
        previous = event.snapshot
    return out


# -------------------------------------------------------
# 3. Main public function
# -------------------------------------------------------

def result_to_json(result: CNFResult, snapshots: str = "delta") -> Dict[str, Any]:
    return {
        "empty": result.is_empty,
        "infinite": result.is_infinite,
        "cycle": [variable.name for variable in result.cycle],
        "trimmed": grammar_to_json(result.trimmed.grammar),
        "cnf": grammar_to_json(result.grammar),
        "text": result.grammar.to_text(),
        "trace": trace_to_json(result.trace, snapshots=snapshots),
    }


__all__ = ["grammar_to_json", "event_to_json", "trace_to_json", "result_to_json"]
