import pytest

from normalizer.cfg_parser import parse_grammar_text
from normalizer.grammar import Grammar
from normalizer.symbols import NonTerminal, tokenize_body


def _rule_sets(grammar):
    """Order-insensitive view of a grammar: {"S": {"aSb", "ab"}, ...}"""
    return {lhs: set(bodies) for lhs, bodies in grammar.as_dict().items()}


def _build(start, rules):
    """Grammar from {"S": ["aSb", "eps"], ...} without any validation."""
    return Grammar(
        NonTerminal(start),
        {NonTerminal(lhs): [tokenize_body(body) for body in bodies] for lhs, bodies in rules.items()},
    )


@pytest.fixture
def grammar_from_text():
    return parse_grammar_text


@pytest.fixture
def build_grammar():
    return _build


@pytest.fixture
def rule_sets():
    return _rule_sets
