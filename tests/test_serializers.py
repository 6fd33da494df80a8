import pytest

from normalizer.cnf_converter import convert_to_cnf
from normalizer.serializers import event_to_json, grammar_to_json, result_to_json, trace_to_json


@pytest.fixture
def anbn(grammar_from_text):
    return convert_to_cnf(grammar_from_text("S -> aSb | eps"))


def test_grammar_to_json(grammar_from_text):
    g = grammar_from_text("S -> aA | eps\nA -> a")
    assert grammar_to_json(g) == {"start": "S", "rules": {"S": ["aA", "ε"], "A": ["a"]}}


def test_event_to_json(anbn):
    data = event_to_json(anbn.trace[0])
    assert data["stage"] == "trim"
    assert data["action"] == "productive-init"
    assert data["variables"] == ["S"]
    assert data["snapshot"]["start"] == "S"


def test_full_snapshots(anbn):
    events = trace_to_json(anbn.trace, snapshots="full")
    assert len(events) == len(anbn.trace)
    assert all("snapshot" in event for event in events)


def test_delta_snapshots_only_on_change(anbn):
    events = trace_to_json(anbn.trace, snapshots="delta")
    with_snapshot = [event for event in events if "snapshot" in event]

    assert "snapshot" in events[0]
    assert 1 < len(with_snapshot) < len(events)
    # the last snapshot sent is the final grammar
    assert with_snapshot[-1]["snapshot"] == grammar_to_json(anbn.grammar)


def test_no_snapshots(anbn):
    assert not any("snapshot" in event for event in trace_to_json(anbn.trace, snapshots="none"))


def test_unknown_snapshot_mode(anbn):
    with pytest.raises(ValueError):
        trace_to_json(anbn.trace, snapshots="some")


def test_result_to_json(anbn):
    data = result_to_json(anbn)
    assert data["empty"] is False
    assert data["infinite"] is True
    assert data["cycle"] == ["S", "X", "S"]
    assert data["cnf"]["start"] == "S0"
    assert data["text"].splitlines()[0] == "S0 -> ε | ZX | ZY"
    assert data["trimmed"] == {"start": "S", "rules": {"S": ["aSb", "ε"]}}


def test_result_to_json_for_empty_language(grammar_from_text):
    data = result_to_json(convert_to_cnf(grammar_from_text("S -> aS")))
    assert data["empty"] is True
    assert data["infinite"] is None
    assert data["cnf"] == {"start": "S", "rules": {}}
    assert data["text"] == ""
