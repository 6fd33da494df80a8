"""
generator.py

Bounded enumeration of the language of a grammar.

Functions:
- derivable_strings(grammar, max_length)
    Every terminal string of length <= max_length derivable from the start
    symbol. Computed as a fixpoint over per-variable string sets: a variable
    collects every concatenation its bodies allow, cut off at max_length.
    The universe of strings up to max_length is finite, so the loop ends.

- generate_strings(grammar, max_length, max_strings)
    The same strings in shortlex order, at most max_strings of them.

Notes:
- The empty word is returned as the empty string "" (presentation layer may
  render it as "ε").
- Works on any grammar, epsilon and unit productions included; the CNF output
  and its source must give the same strings, which is what the tests check.
"""

from typing import Dict, List, Optional, Set

from normalizer.grammar import Grammar
from normalizer.symbols import Epsilon, NonTerminal, Production, Terminal


def _expand_body(body: Production, table: Dict[NonTerminal, Set[str]], max_length: int) -> Set[str]:
    partial = {""}
    for sym in body:
        if isinstance(sym, Epsilon):
            continue
        if isinstance(sym, Terminal):
            options = {sym.char}
        else:
            options = table.get(sym, set())
        partial = {
            prefix + option
            for prefix in partial
            for option in options
            if len(prefix) + len(option) <= max_length
        }
        if not partial:
            break
    return partial


def derivable_strings(grammar: Grammar, max_length: int) -> Set[str]:
    if max_length < 0:
        raise ValueError("max_length must be >= 0")

    table: Dict[NonTerminal, Set[str]] = {lhs: set() for lhs in grammar.nonterminals}
    changed = True
    while changed:
        changed = False
        for lhs in grammar.sorted_nonterminals():
            for body in grammar.bodies(lhs):
                new = _expand_body(body, table, max_length) - table[lhs]
                if new:
                    table[lhs].update(new)
                    changed = True

    return set(table.get(grammar.start, set()))


def generate_strings(grammar: Grammar, max_length: int, max_strings: Optional[int] = None) -> List[str]:
    ordered = sorted(derivable_strings(grammar, max_length), key=lambda s: (len(s), s))
    if max_strings is not None:
        ordered = ordered[:max_strings]
    return ordered
