"""
Binary cascading
----------------
Splits every production A -> X1 X2 ... Xm with m >= 3 into

    A -> X1 H1,  H1 -> X2 H2,  ...,  H(m-2) -> X(m-1) Xm

A body that was already split earlier in the stage, under any left-hand side,
reuses the helper chain created for it.
"""

import logging
from typing import Dict, Optional, Tuple

from normalizer.allocator import AllocatorState
from normalizer.grammar import Grammar
from normalizer.symbols import NonTerminal, Production, format_body
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)

CascadeCache = Dict[Production, Tuple[NonTerminal, ...]]


def cascade_long_productions(grammar: Grammar,
                             allocator: AllocatorState,
                             trace: Optional[TraceSink] = None,
                             cache: Optional[CascadeCache] = None) -> Grammar:
    trace = trace if trace is not None else TraceSink()
    cache = {} if cache is None else cache
    table = grammar.edit()

    for lhs in table.sorted_nonterminals():
        for body in table.bodies(lhs):
            if len(body) < 3:
                continue

            helpers = cache.get(body)
            fresh = helpers is None
            if fresh:
                helpers = tuple(allocator.allocate() for _ in range(len(body) - 2))
                cache[body] = helpers
                trace.emit(Stage.CASCADE, "create-helpers", table, variables=[lhs, *helpers],
                           message=f"split {lhs} -> {format_body(body)} ({len(body)} symbols)")
            else:
                trace.emit(Stage.CASCADE, "reuse-helpers", table, variables=[lhs, *helpers],
                           message=f"{format_body(body)} was split before")

            head = (body[0], helpers[0])
            table.replace(lhs, body, head)
            trace.emit(Stage.CASCADE, "split", table, variables=[lhs],
                       added=[(lhs, head)], removed=[(lhs, body)])

            if not fresh:
                continue
            for index, helper in enumerate(helpers[:-1]):
                link = (body[index + 1], helpers[index + 1])
                table.add(helper, link)
                trace.emit(Stage.CASCADE, "add-binary-rule", table, variables=[helper],
                           added=[(helper, link)])
            tail = (body[-2], body[-1])
            table.add(helpers[-1], tail)
            trace.emit(Stage.CASCADE, "add-binary-rule", table, variables=[helpers[-1]],
                       added=[(helpers[-1], tail)])

    result = table.freeze()
    log.info("cascade: %d long bodies split", len(cache))
    return result
