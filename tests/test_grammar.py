import pytest

from normalizer.grammar import Grammar, ProductionTable
from normalizer.symbols import EPSILON_BODY, NonTerminal, Terminal, tokenize_body

S, A, B, C = NonTerminal("S"), NonTerminal("A"), NonTerminal("B"), NonTerminal("C")


def test_duplicate_bodies_are_collapsed_in_order(build_grammar):
    g = build_grammar("S", {"S": ["ab", "A", "ab"], "A": ["a"]})
    assert g.bodies(S) == (tokenize_body("ab"), (A,))


def test_equality_ignores_body_order(build_grammar):
    left = build_grammar("S", {"S": ["ab", "A"], "A": ["a"]})
    right = build_grammar("S", {"A": ["a"], "S": ["A", "ab"]})
    assert left == right
    assert left != build_grammar("A", {"S": ["ab", "A"], "A": ["a"]})


def test_to_text_lists_start_first(build_grammar):
    g = build_grammar("S", {"A": ["a", "eps"], "S": ["aA", "b"]})
    assert g.to_text() == "S -> aA | b\nA -> a | ε"
    assert list(g.as_dict()) == ["S", "A"]


def test_dangling_and_terminals(build_grammar):
    g = build_grammar("S", {"S": ["aB", "A"], "A": ["c"]})
    assert g.dangling() == {B}
    assert g.terminals() == {Terminal("a"), Terminal("c")}
    assert g.referenced() == {A, B}


def test_freeze_without_edits_returns_same_grammar(build_grammar):
    g = build_grammar("S", {"S": ["aA"], "A": ["a"]})
    assert g.edit().freeze() is g


def test_freeze_shares_untouched_variables(build_grammar):
    g = build_grammar("S", {"S": ["aA"], "A": ["a"], "B": ["b"]})
    table = g.edit()
    assert table.add(A, tokenize_body("b"))
    after = table.freeze()

    assert after.bodies(A) == (tokenize_body("a"), tokenize_body("b"))
    assert after.bodies(S) is g.bodies(S)
    assert after.bodies(B) is g.bodies(B)
    # the original snapshot is unaffected
    assert g.bodies(A) == (tokenize_body("a"),)
    # freezing again without edits is free
    assert table.freeze() is after


def test_add_and_remove_report_changes():
    table = ProductionTable(S)
    assert table.add(S, tokenize_body("a"))
    assert not table.add(S, tokenize_body("a"))
    assert table.remove(S, tokenize_body("a"))
    assert not table.remove(S, tokenize_body("a"))
    assert not table.remove(A, tokenize_body("a"))


def test_replace_keeps_position():
    table = ProductionTable(S, {S: [tokenize_body("ab"), tokenize_body("c"), tokenize_body("d")]})
    assert table.replace(S, tokenize_body("c"), (A, B))
    assert table.bodies(S) == (tokenize_body("ab"), (A, B), tokenize_body("d"))


def test_replace_onto_existing_body_drops_old():
    table = ProductionTable(S, {S: [tokenize_body("AB"), tokenize_body("ab")]})
    assert table.replace(S, tokenize_body("ab"), (A, B))
    assert table.bodies(S) == ((A, B),)


def test_prune_dead_cascades():
    table = ProductionTable(S, {
        S: [tokenize_body("aA"), tokenize_body("b")],
        A: [tokenize_body("B")],
        B: [],
        C: [tokenize_body("c")],
    })
    dropped, removed = table.prune_dead()

    assert dropped == [B, A]
    assert removed == [(A, (B,)), (S, tokenize_body("aA"))]
    assert table.bodies(S) == (tokenize_body("b"),)
    assert C in table


def test_prune_dead_keeps_empty_start():
    table = ProductionTable(S, {S: [], A: [EPSILON_BODY]})
    dropped, removed = table.prune_dead()
    assert dropped == []
    assert removed == []
    assert S in table


def test_start_is_read_only(build_grammar):
    g = build_grammar("S", {"S": ["a"], "A": ["a"]})
    with pytest.raises(AttributeError):
        g.start = A
    assert g.start == S
    assert g.edit().freeze().start == S
