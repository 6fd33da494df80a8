"""
Epsilon elimination
-------------------
Introduces a fresh start symbol S0 -> <old start>, computes the nullable
variables, adds every variant of every production with some nullable
occurrences dropped, and finally removes all epsilon productions except the
one S0 keeps when the old start symbol was nullable.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Container, FrozenSet, List, Optional, Set

from normalizer.allocator import AllocatorState
from normalizer.fixpoint import fixpoint_rounds
from normalizer.grammar import Grammar
from normalizer.symbols import (
    EPSILON_BODY,
    NonTerminal,
    Production,
    is_epsilon_body,
)
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpsilonResult:
    grammar: Grammar
    nullable: FrozenSet[NonTerminal]
    previous_start: NonTerminal


def fresh_start_symbol(*taken: Container[str]) -> NonTerminal:
    """S0 unless one of `taken` holds it, then S1, S2, ..."""
    index = 0
    while any(f"S{index}" in pool for pool in taken):
        index += 1
    return NonTerminal(f"S{index}")


def compute_nullable(grammar: Grammar, trace: Optional[TraceSink] = None) -> FrozenSet[NonTerminal]:
    """
    A variable is nullable if it has an epsilon production or a body made
    only of nullable variables.
    """
    trace = trace if trace is not None else TraceSink()
    nullable: Set[NonTerminal] = set()

    for lhs in grammar.sorted_nonterminals():
        if EPSILON_BODY in grammar.bodies(lhs):
            nullable.add(lhs)
            trace.emit(Stage.EPSILON, "nullable-add", grammar, variables=[lhs],
                       message=f"{lhs} -> ε")

    for _ in fixpoint_rounds(len(grammar.nonterminals) + 1, "nullable set"):
        known = frozenset(nullable)
        found: List[NonTerminal] = []
        for lhs in grammar.sorted_nonterminals():
            if lhs in known:
                continue
            for body in grammar.bodies(lhs):
                if is_epsilon_body(body):
                    continue
                if all(isinstance(sym, NonTerminal) and sym in known for sym in body):
                    found.append(lhs)
                    trace.emit(Stage.EPSILON, "nullable-add", grammar, variables=[lhs],
                               message=f"every symbol of {lhs} -> {''.join(map(str, body))} is nullable")
                    break
        if not found:
            break
        nullable.update(found)

    trace.emit(Stage.EPSILON, "nullable-complete", grammar, variables=sorted(nullable))
    return frozenset(nullable)


def expand_nullable(body: Production, nullable: FrozenSet[NonTerminal]) -> List[Production]:
    """
    Every variant of `body` with a non-empty subset of its nullable occurrences
    deleted. Variants that would be empty are left out.
    """
    positions = [
        index for index, sym in enumerate(body)
        if isinstance(sym, NonTerminal) and sym in nullable
    ]
    variants: List[Production] = []
    for size in range(1, len(positions) + 1):
        for dropped in itertools.combinations(positions, size):
            variant = tuple(sym for index, sym in enumerate(body) if index not in dropped)
            if variant and variant not in variants:
                variants.append(variant)
    return variants


def eliminate_epsilon(grammar: Grammar,
                      trace: Optional[TraceSink] = None,
                      allocator: Optional[AllocatorState] = None) -> EpsilonResult:
    """
    Parameters
    ----------
    grammar : Grammar
        Trimmed grammar whose start symbol has productions.
    trace : TraceSink, optional
        Receives the stage events.
    allocator : AllocatorState, optional
        Names it already holds are avoided for the new start symbol, which is
        reserved in it afterwards.
    """
    trace = trace if trace is not None else TraceSink()
    old_start = grammar.start

    if allocator is None:
        new_start = fresh_start_symbol(grammar.names())
    else:
        new_start = fresh_start_symbol(grammar.names(), allocator)
        allocator.reserve(new_start.name)

    # ---------------------------------------------------------
    # 1. New start symbol
    # ---------------------------------------------------------
    table = grammar.edit()
    table.add(new_start, (old_start,))
    table.set_start(new_start)
    trace.emit(Stage.EPSILON, "introduce-start", table, variables=[new_start, old_start],
               added=[(new_start, (old_start,))])

    # ---------------------------------------------------------
    # 2. Nullable variables
    # ---------------------------------------------------------
    nullable = compute_nullable(table.freeze(), trace)

    if new_start in nullable:
        table.add(new_start, EPSILON_BODY)
        trace.emit(Stage.EPSILON, "start-epsilon", table, variables=[new_start],
                   added=[(new_start, EPSILON_BODY)],
                   message=f"{old_start} is nullable, so the language contains ε")

    # ---------------------------------------------------------
    # 3. Add the variants without nullable occurrences
    # ---------------------------------------------------------
    for lhs in table.sorted_nonterminals():
        added = []
        for body in table.bodies(lhs):
            if is_epsilon_body(body):
                continue
            for variant in expand_nullable(body, nullable):
                if table.add(lhs, variant):
                    added.append((lhs, variant))
        if added:
            trace.emit(Stage.EPSILON, "expand", table, variables=[lhs], added=added)

    # ---------------------------------------------------------
    # 4. Remove epsilon productions (S0 keeps its own)
    # ---------------------------------------------------------
    removed = []
    for lhs in table.sorted_nonterminals():
        if lhs != new_start and table.remove(lhs, EPSILON_BODY):
            removed.append((lhs, EPSILON_BODY))
    if removed:
        trace.emit(Stage.EPSILON, "remove-epsilon", table,
                   variables=[lhs for lhs, _ in removed], removed=removed)

    # variables that only ever derived ε are now without productions
    dropped, orphaned = table.prune_dead()
    if dropped or orphaned:
        trace.emit(Stage.EPSILON, "drop-empty", table, variables=dropped, removed=orphaned,
                   message="variables deriving only ε are gone")

    log.info("epsilon: start %s -> %s, %d nullable variables", old_start, new_start, len(nullable))
    return EpsilonResult(grammar=table.freeze(), nullable=nullable, previous_start=old_start)
