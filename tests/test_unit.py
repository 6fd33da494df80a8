import pytest

from normalizer.epsilon import eliminate_epsilon
from normalizer.errors import StartSymbolInexpansible
from normalizer.symbols import NonTerminal, is_unit, tokenize_body
from normalizer.trace import Stage, TraceSink
from normalizer.unit import compute_unit_closure, eliminate_units

S, S0, A, B, X = (NonTerminal(name) for name in ("S", "S0", "A", "B", "X"))


def test_unit_closure(build_grammar):
    g = build_grammar("S0", {"S0": ["S"], "S": ["A"], "A": ["a", "B"], "B": ["b"]})
    closure = compute_unit_closure(g)

    assert closure[S0] == {S0, S, A, B}
    assert closure[A] == {A, B}
    assert closure[B] == {B}


def test_unit_chain_collapses(build_grammar, rule_sets):
    g = build_grammar("S0", {
        "S0": ["S"],
        "S": ["A"],
        "A": ["B"],
        "B": ["Cdb"],
        "C": ["A", "bb"],
    })
    trace = TraceSink()
    result = eliminate_units(g, trace)

    assert rule_sets(result) == {"S0": {"Cdb"}, "C": {"bb", "Cdb"}}
    final = trace.for_stage(Stage.UNIT)[-1]
    assert final.action == "drop-unreachable"
    assert set(final.variables) == {A, B, S}


def test_unit_cycle_without_base_case_in_between(build_grammar, rule_sets):
    g = build_grammar("S0", {"S0": ["S"], "S": ["A"], "A": ["B"], "B": ["S", "a"]})
    assert rule_sets(eliminate_units(g)) == {"S0": {"a"}}


def test_no_unit_productions_remain(grammar_from_text):
    g = eliminate_epsilon(grammar_from_text("S -> A | B | eps\nA -> B | aA\nB -> S | b")).grammar
    result = eliminate_units(g)
    assert not any(is_unit(body) for _, body in result.productions())


def test_start_symbol_is_expanded_in_place(build_grammar, rule_sets):
    g = build_grammar("S0", {"S0": ["aX", "c"], "X": ["S0b", "d"]})
    trace = TraceSink()
    result = eliminate_units(g, trace)

    assert rule_sets(result) == {"S0": {"aX", "c"}, "X": {"d", "aXb", "cb"}}
    assert "expand-start" in trace.actions(Stage.UNIT)
    assert S0 not in result.referenced()


def test_copies_that_would_mention_start_are_skipped(build_grammar):
    g = build_grammar("S0", {"S0": ["c", "aA"], "A": ["B"], "B": ["aS0", "b"]})
    trace = TraceSink()
    result = eliminate_units(g, trace)

    copied = [added for event in trace.for_stage(Stage.UNIT) if event.action == "copy" for added in event.added]
    assert (A, tokenize_body("aS0")) not in copied
    assert (A, tokenize_body("b")) in copied
    assert S0 not in result.referenced()


def test_start_without_substitute_raises(build_grammar):
    g = build_grammar("S0", {"S0": ["aS0"], "X": ["S0b"]})
    with pytest.raises(StartSymbolInexpansible) as info:
        eliminate_units(g)
    assert info.value.lhs == X


def test_variables_left_without_terminating_production_are_dropped(build_grammar, rule_sets):
    g = build_grammar("S0", {"S0": ["S", "eps"], "S": ["SS", "S"]})
    trace = TraceSink()
    result = eliminate_units(g, trace)

    assert rule_sets(result) == {"S0": {"ε"}}
    assert "drop-unproductive" in trace.actions(Stage.UNIT)
