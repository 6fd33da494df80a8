from normalizer.allocator import AllocatorState
from normalizer.cascade import cascade_long_productions
from normalizer.symbols import NonTerminal
from normalizer.trace import Stage, TraceSink


def test_long_body_becomes_a_chain(build_grammar, rule_sets):
    g = build_grammar("S0", {"S0": ["ABCD"], "A": ["a"], "B": ["b"], "C": ["c"], "D": ["d"]})
    trace = TraceSink()
    result = cascade_long_productions(g, AllocatorState(used=g.names()), trace)

    assert rule_sets(result) == {
        "S0": {"AZ"},
        "Z": {"BY"},
        "Y": {"CD"},
        "A": {"a"},
        "B": {"b"},
        "C": {"c"},
        "D": {"d"},
    }
    assert trace.actions(Stage.CASCADE) == ["create-helpers", "split", "add-binary-rule", "add-binary-rule"]


def test_repeated_body_reuses_helpers(build_grammar, rule_sets):
    g = build_grammar("S0", {"S0": ["ABC"], "A": ["ABC", "a"], "B": ["b"], "C": ["c"]})
    allocator = AllocatorState(used=g.names())
    trace = TraceSink()
    result = cascade_long_productions(g, allocator, trace)

    assert allocator.allocated == [NonTerminal("Z")]
    assert rule_sets(result) == {
        "S0": {"AZ"},
        "A": {"AZ", "a"},
        "Z": {"BC"},
        "B": {"b"},
        "C": {"c"},
    }
    assert "reuse-helpers" in trace.actions(Stage.CASCADE)


def test_every_body_is_at_most_binary(build_grammar):
    g = build_grammar("S0", {"S0": ["ABABA", "BAB", "AB"], "A": ["a"], "B": ["b"]})
    result = cascade_long_productions(g, AllocatorState(used=g.names()))
    assert all(len(body) <= 2 for _, body in result.productions())
