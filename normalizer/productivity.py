"""
Productivity & reachability
---------------------------
Trims a grammar to the variables that are both productive (derive some
terminal string, the empty word included) and reachable from the start symbol,
and decides emptiness on the way: the language is empty iff the start symbol
does not survive the trim.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Union

from normalizer.fixpoint import fixpoint_rounds
from normalizer.grammar import Grammar, ProductionTable
from normalizer.symbols import NonTerminal, Production, body_nonterminals, format_body
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrimResult:
    grammar: Grammar
    productive: FrozenSet[NonTerminal]
    reachable: FrozenSet[NonTerminal]
    retained: FrozenSet[NonTerminal]

    @property
    def is_empty(self) -> bool:
        return self.grammar.start not in self.retained


def _is_productive_body(body: Production, productive: FrozenSet[NonTerminal]) -> bool:
    # terminals and epsilon always count; variables only once known productive
    return all(sym in productive for sym in body_nonterminals(body))


def compute_productive(grammar: Grammar, trace: Optional[TraceSink] = None) -> FrozenSet[NonTerminal]:
    """
    Fixpoint of the productive variables.

    Round 0 takes every variable with a body made only of terminals/epsilon.
    Each further round adds the variables with a body whose variables are all
    already known to be productive; a round reads a frozen copy of the set.
    """
    trace = trace if trace is not None else TraceSink()
    productive: Set[NonTerminal] = set()
    nothing: FrozenSet[NonTerminal] = frozenset()

    for lhs in grammar.sorted_nonterminals():
        direct = [body for body in grammar.bodies(lhs) if _is_productive_body(body, nothing)]
        if direct:
            productive.add(lhs)
            trace.emit(
                Stage.TRIM, "productive-init", grammar, variables=[lhs],
                message=f"{lhs} derives terminals directly: {', '.join(format_body(b) for b in direct)}",
            )

    for iteration in fixpoint_rounds(len(grammar.nonterminals) + 1, "productive set"):
        known = frozenset(productive)
        found: List[NonTerminal] = []
        for lhs in grammar.sorted_nonterminals():
            if lhs in known:
                continue
            witnesses = [body for body in grammar.bodies(lhs) if _is_productive_body(body, known)]
            if witnesses:
                found.append(lhs)
                trace.emit(
                    Stage.TRIM, "productive-add", grammar, variables=[lhs],
                    message=f"iteration {iteration}: {lhs} -> {' | '.join(format_body(b) for b in witnesses)}",
                )
        if not found:
            trace.emit(
                Stage.TRIM, "fixpoint", grammar, variables=sorted(productive),
                message=f"iteration {iteration}: no new productive variables",
            )
            break
        productive.update(found)

    return frozenset(productive)


def compute_reachable(grammar: Union[Grammar, ProductionTable], start: Optional[NonTerminal] = None) -> FrozenSet[NonTerminal]:
    """Breadth-first search over right-hand-side references from the start symbol."""
    start = start if start is not None else grammar.start
    reachable = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for body in grammar.bodies(current):
            for sym in body_nonterminals(body):
                if sym not in reachable:
                    reachable.add(sym)
                    queue.append(sym)
    return frozenset(reachable)


def trim(grammar: Grammar, trace: Optional[TraceSink] = None) -> TrimResult:
    """
    Restrict `grammar` to its productive and reachable variables.

    Productions that mention a non-productive variable are dropped first;
    reachability is then computed over that filtered grammar.
    """
    trace = trace if trace is not None else TraceSink()
    productive = compute_productive(grammar, trace)

    table = grammar.edit()
    removed = []
    for lhs in table.sorted_nonterminals():
        for body in table.bodies(lhs):
            if not _is_productive_body(body, productive):
                table.remove(lhs, body)
                removed.append((lhs, body))
    if removed:
        trace.emit(
            Stage.TRIM, "filter", table, variables=sorted({lhs for lhs, _ in removed}),
            removed=removed, message="drop productions using non-productive variables",
        )

    reachable = compute_reachable(table)
    trace.emit(Stage.TRIM, "reachable", table, variables=sorted(reachable))

    retained = productive & reachable
    dropped = [lhs for lhs in table.sorted_nonterminals() if lhs not in retained]
    lost = []
    for lhs in dropped:
        lost.extend((lhs, body) for body in table.drop(lhs))
    if dropped:
        trace.emit(Stage.TRIM, "restrict", table, variables=dropped, removed=lost)

    result = TrimResult(
        grammar=table.freeze(),
        productive=productive,
        reachable=reachable,
        retained=frozenset(retained),
    )

    verdict = "empty" if result.is_empty else "not empty"
    trace.emit(
        Stage.TRIM, "result", result.grammar, variables=sorted(retained),
        message=f"language is {verdict}: start symbol {grammar.start} "
                f"{'not ' if result.is_empty else ''}in the retained set",
    )
    log.info(
        "trim: %d productive, %d reachable, %d retained, language %s",
        len(productive), len(reachable), len(retained), verdict,
    )
    return result
