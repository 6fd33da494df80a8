"""
CNF Converter
-------------
Runs the full normalization pipeline on a validated grammar:

- Trims to productive and reachable variables (decides emptiness)
- Eliminates epsilon productions behind a fresh start symbol S0
- Eliminates unit productions, keeping S0 off every right-hand side
- Isolates terminals inside productions of length >= 2
- Cascades productions of length >= 3 into binary chains
- Decides finiteness from cycles of the final dependency graph

Every run gets its own TraceSink and AllocatorState; nothing is shared between
calls.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from normalizer.allocator import AllocatorState
from normalizer.cascade import cascade_long_productions
from normalizer.epsilon import eliminate_epsilon
from normalizer.errors import CFGError, CNFError
from normalizer.finiteness import decide_finiteness
from normalizer.grammar import Grammar
from normalizer.productivity import TrimResult, trim
from normalizer.symbols import (
    EPSILON,
    Epsilon,
    NonTerminal,
    Production,
    Terminal,
    format_body,
    format_production,
    is_epsilon_body,
    is_nonterminal_name,
    is_terminal_char,
)
from normalizer.terminals import isolate_terminals
from normalizer.trace import TraceSink, TransformationEvent
from normalizer.unit import eliminate_units

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CNFResult:
    source: Grammar
    trimmed: TrimResult
    grammar: Grammar
    is_empty: bool
    is_infinite: Optional[bool]
    cycle: Tuple[NonTerminal, ...]
    trace: Tuple[TransformationEvent, ...]

    @property
    def start(self) -> NonTerminal:
        return self.grammar.start


def cnf_violations(grammar: Grammar) -> List[str]:
    """
    Productions that break the CNF shape: X -> YZ (neither is the start
    symbol), X -> a, or S0 -> ε for the start symbol only.
    """
    problems = []
    for lhs, body in grammar.productions():
        rendered = format_production(lhs, body)
        if is_epsilon_body(body):
            if lhs != grammar.start:
                problems.append(f"{rendered}: only the start symbol may derive ε")
        elif len(body) == 1:
            if not isinstance(body[0], Terminal):
                problems.append(f"{rendered}: single symbol must be a terminal")
        elif len(body) == 2:
            if not all(isinstance(sym, NonTerminal) for sym in body):
                problems.append(f"{rendered}: binary body must hold two variables")
            elif grammar.start in body:
                problems.append(f"{rendered}: start symbol on a right-hand side")
        else:
            problems.append(f"{rendered}: body longer than two symbols")
    for sym in sorted(grammar.dangling()):
        problems.append(f"{sym} is used but has no productions")
    return problems


def _check_body(lhs: NonTerminal, body: Production) -> None:
    if not body:
        raise CFGError(f"Empty body for '{lhs}'; write ε for the empty word.")
    if EPSILON in body and len(body) > 1:
        raise CFGError(f"\"{lhs} -> {format_body(body)}\" mixes ε with other symbols.")
    for sym in body:
        if isinstance(sym, Terminal):
            if not isinstance(sym.char, str) or not is_terminal_char(sym.char):
                raise CFGError(f"Invalid terminal '{sym.char}' in \"{lhs} -> {format_body(body)}\". "
                               f"Terminals are single lowercase letters.")
        elif isinstance(sym, NonTerminal):
            _check_variable(sym)
        elif not isinstance(sym, Epsilon):
            raise CFGError(f"Unsupported symbol {sym!r} in a body of '{lhs}'.")


def _check_variable(variable: NonTerminal) -> None:
    name = getattr(variable, "name", None)
    if not isinstance(variable, NonTerminal) or not isinstance(name, str) or not is_nonterminal_name(name):
        raise CFGError(
            f"Invalid variable {variable!r}. Variables are an uppercase letter optionally "
            f"followed by digits (e.g., S, S0, X1)."
        )


def validate_grammar(grammar: Grammar) -> None:
    """Reject grammars the pipeline cannot work on, before it starts."""
    _check_variable(grammar.start)
    for lhs, bodies in grammar.rules.items():
        _check_variable(lhs)
        for body in bodies:
            _check_body(lhs, body)
    if grammar.start not in grammar:
        raise CFGError(f"Start symbol '{grammar.start}' has no productions.")
    dangling = sorted(grammar.dangling())
    if dangling:
        raise CFGError(f"Undeclared variable(s) used on a right-hand side: {', '.join(map(str, dangling))}")


def convert_to_cnf(grammar: Grammar, trace: Optional[TraceSink] = None) -> CNFResult:
    """
    Perform full CNF conversion.

    Parameters
    ----------
    grammar : Grammar
        Source grammar, e.g. from cfg_parser.parse_cfg.
    trace : TraceSink, optional
        Collects the transformation events; a fresh sink is used if omitted.

    Returns
    -------
    CNFResult
        For an empty language the pipeline stops after trimming: `grammar`
        has no rules, `is_empty` is True and `is_infinite` is None.
    """
    validate_grammar(grammar)
    trace = trace if trace is not None else TraceSink()
    allocator = AllocatorState(used=grammar.names())

    trimmed = trim(grammar, trace)
    if trimmed.is_empty:
        log.info("language of %s is empty, stopping after trim", grammar.start)
        return CNFResult(
            source=grammar,
            trimmed=trimmed,
            grammar=Grammar(grammar.start, {}),
            is_empty=True,
            is_infinite=None,
            cycle=(),
            trace=trace.events,
        )

    epsilon_free = eliminate_epsilon(trimmed.grammar, trace, allocator).grammar
    unit_free = eliminate_units(epsilon_free, trace)
    isolated = isolate_terminals(unit_free, allocator, trace)
    cnf = cascade_long_productions(isolated, allocator, trace)

    problems = cnf_violations(cnf)
    if problems:
        raise CNFError("Conversion produced a non-CNF grammar: " + "; ".join(problems))

    finiteness = decide_finiteness(cnf, trace)

    return CNFResult(
        source=grammar,
        trimmed=trimmed,
        grammar=cnf,
        is_empty=False,
        is_infinite=finiteness.infinite,
        cycle=finiteness.cycle,
        trace=trace.events,
    )


# -------------------------------------------------------------
# Manual test
# -------------------------------------------------------------
if __name__ == "__main__":
    from normalizer.cfg_parser import parse_grammar_text

    G = parse_grammar_text("""
        S -> aSb | eps
    """)

    result = convert_to_cnf(G)

    print(result.grammar.to_text())
    print("empty:", result.is_empty, "infinite:", result.is_infinite)
