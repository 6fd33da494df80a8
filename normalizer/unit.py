"""
Unit-production elimination
---------------------------
Removes every production A -> B (B a single variable) by copying the non-unit
productions of everything in A's unit closure into A. The start symbol must
stay off every right-hand side, so copies that would put it there are skipped,
and any occurrence that survives is expanded in place afterwards.
"""

import itertools
import logging
from typing import Dict, FrozenSet, Iterator, List, Optional, Set

from normalizer.errors import StartSymbolInexpansible
from normalizer.fixpoint import fixpoint_rounds
from normalizer.grammar import Grammar, ProductionTable
from normalizer.productivity import compute_productive, compute_reachable
from normalizer.symbols import (
    NonTerminal,
    Production,
    format_production,
    is_epsilon_body,
    is_unit,
)
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)


def compute_unit_closure(grammar: Grammar,
                         trace: Optional[TraceSink] = None) -> Dict[NonTerminal, FrozenSet[NonTerminal]]:
    """Reflexive-transitive closure of the unit relation, per variable."""
    trace = trace if trace is not None else TraceSink()
    closure: Dict[NonTerminal, Set[NonTerminal]] = {lhs: {lhs} for lhs in grammar.nonterminals}
    targets = {
        lhs: [body[0] for body in grammar.bodies(lhs) if is_unit(body) and body[0] in grammar]
        for lhs in grammar.nonterminals
    }

    for _ in fixpoint_rounds(len(grammar.nonterminals) + 1, "unit closure"):
        changed = False
        for lhs in grammar.sorted_nonterminals():
            for member in sorted(frozenset(closure[lhs])):
                for target in targets[member]:
                    if target not in closure[lhs]:
                        closure[lhs].add(target)
                        changed = True
        if not changed:
            break

    for lhs in grammar.sorted_nonterminals():
        if len(closure[lhs]) > 1:
            trace.emit(Stage.UNIT, "closure", grammar, variables=sorted(closure[lhs]),
                       message=f"unit closure of {lhs}: {{{', '.join(map(str, sorted(closure[lhs])))}}}")

    return {lhs: frozenset(members) for lhs, members in closure.items()}


def _substitutions(body: Production, start: NonTerminal, replacements: List[Production]) -> Iterator[Production]:
    slots = [replacements if sym == start else [(sym,)] for sym in body]
    for choice in itertools.product(*slots):
        yield tuple(itertools.chain.from_iterable(choice))


def _protect_start(table: ProductionTable, trace: TraceSink) -> None:
    """Expand every right-hand-side occurrence of the start symbol in place."""
    start = table.start
    for lhs in table.sorted_nonterminals():
        if lhs == start:
            continue
        for body in table.bodies(lhs):
            if start not in body:
                continue
            replacements = [
                candidate for candidate in table.bodies(start)
                if not is_epsilon_body(candidate) and start not in candidate
            ]
            if not replacements:
                raise StartSymbolInexpansible(start, lhs, body)

            table.remove(lhs, body)
            added = [(lhs, expanded) for expanded in _substitutions(body, start, replacements)
                     if table.add(lhs, expanded)]
            trace.emit(Stage.UNIT, "expand-start", table, variables=[lhs, start],
                       added=added, removed=[(lhs, body)])


def eliminate_units(grammar: Grammar, trace: Optional[TraceSink] = None) -> Grammar:
    trace = trace if trace is not None else TraceSink()
    start = grammar.start
    closure = compute_unit_closure(grammar, trace)
    table = grammar.edit()

    # ---------------------------------------------------------
    # Copy non-unit productions along the closure
    # ---------------------------------------------------------
    for lhs in table.sorted_nonterminals():
        added = []
        for member in sorted(closure[lhs]):
            if member == lhs:
                continue
            for body in table.bodies(member):
                if is_unit(body) or is_epsilon_body(body):
                    continue
                if start in body and lhs != start:
                    log.debug("skip copy of %s into %s", format_production(member, body), lhs)
                    continue
                if table.add(lhs, body):
                    added.append((lhs, body))
        if added:
            trace.emit(Stage.UNIT, "copy", table, variables=[lhs], added=added)

    # ---------------------------------------------------------
    # Drop the unit productions themselves
    # ---------------------------------------------------------
    for lhs in table.sorted_nonterminals():
        for body in table.bodies(lhs):
            if is_unit(body):
                table.remove(lhs, body)
                trace.emit(Stage.UNIT, "remove-unit", table, variables=[lhs, body[0]],
                           removed=[(lhs, body)])

    _protect_start(table, trace)

    # A -> AA | B with B -> ε is left as A -> AA, which derives nothing
    productive = compute_productive(table.freeze())
    unproductive = [lhs for lhs in table.sorted_nonterminals() if lhs != start and lhs not in productive]
    lost = []
    for lhs in unproductive:
        lost.extend((lhs, body) for body in table.drop(lhs))
    dropped, orphaned = table.prune_dead()
    if unproductive or dropped or orphaned:
        trace.emit(Stage.UNIT, "drop-unproductive", table, variables=unproductive + dropped,
                   removed=lost + orphaned)

    reachable = compute_reachable(table)
    unreachable = [lhs for lhs in table.sorted_nonterminals() if lhs not in reachable]
    lost = []
    for lhs in unreachable:
        lost.extend((lhs, body) for body in table.drop(lhs))
    if unreachable:
        trace.emit(Stage.UNIT, "drop-unreachable", table, variables=unreachable, removed=lost)

    result = table.freeze()
    log.info("unit: %d variables, %d productions", len(result.nonterminals), result.production_count())
    return result
