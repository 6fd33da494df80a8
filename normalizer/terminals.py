"""
Terminal isolation
------------------
Inside every production of length >= 2, each terminal is replaced by a helper
variable that produces exactly that terminal. Productions X -> a stay as they
are.
"""

import logging
from typing import Dict, Optional

from normalizer.allocator import AllocatorState
from normalizer.grammar import Grammar
from normalizer.symbols import NonTerminal, Terminal, format_body
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)


def existing_terminal_helpers(grammar: Grammar) -> Dict[Terminal, NonTerminal]:
    """
    Map terminals to variables whose only production is that terminal.

    The start symbol is never used, it must not appear on a right-hand side.
    A variable with further productions would change the language if it were
    substituted for a bare terminal, so it does not qualify either.
    """
    helpers: Dict[Terminal, NonTerminal] = {}
    for lhs in grammar.sorted_nonterminals():
        if lhs == grammar.start:
            continue
        bodies = grammar.bodies(lhs)
        if len(bodies) == 1 and len(bodies[0]) == 1 and isinstance(bodies[0][0], Terminal):
            helpers.setdefault(bodies[0][0], lhs)
    return helpers


def isolate_terminals(grammar: Grammar,
                      allocator: AllocatorState,
                      trace: Optional[TraceSink] = None) -> Grammar:
    trace = trace if trace is not None else TraceSink()
    helpers = existing_terminal_helpers(grammar)
    table = grammar.edit()

    def helper_for(terminal: Terminal) -> NonTerminal:
        if terminal in helpers:
            return helpers[terminal]
        variable = allocator.allocate()
        table.add(variable, (terminal,))
        helpers[terminal] = variable
        trace.emit(Stage.TERMINAL, "create-helper", table, variables=[variable],
                   added=[(variable, (terminal,))],
                   message=f"new variable {variable} for terminal '{terminal}'")
        return variable

    for lhs in table.sorted_nonterminals():
        for body in table.bodies(lhs):
            if len(body) < 2 or not any(isinstance(sym, Terminal) for sym in body):
                continue
            isolated = tuple(helper_for(sym) if isinstance(sym, Terminal) else sym for sym in body)
            table.replace(lhs, body, isolated)
            trace.emit(Stage.TERMINAL, "replace-terminals", table, variables=[lhs],
                       added=[(lhs, isolated)], removed=[(lhs, body)],
                       message=f"{lhs} -> {format_body(body)} becomes {lhs} -> {format_body(isolated)}")

    result = table.freeze()
    log.info("terminal: %d helper variables in use", len(set(helpers.values())))
    return result
