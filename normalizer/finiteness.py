"""
Finiteness
----------
On a trimmed CNF grammar the language is infinite iff the dependency graph
(an edge A -> B for every variable B in a body of A) has a cycle. The search
is an iterative depth-first walk that keeps the current path as its recursion
stack; an edge back into that path closes a cycle.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

from normalizer.grammar import Grammar
from normalizer.symbols import NonTerminal, body_nonterminals
from normalizer.trace import Stage, TraceSink

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinitenessResult:
    infinite: bool
    cycle: Tuple[NonTerminal, ...] = ()


def dependency_graph(grammar: Grammar) -> Dict[NonTerminal, Tuple[NonTerminal, ...]]:
    graph = {}
    for lhs in grammar.sorted_nonterminals():
        neighbours = {
            sym for body in grammar.bodies(lhs) for sym in body_nonterminals(body) if sym in grammar
        }
        graph[lhs] = tuple(sorted(neighbours))
    return graph


def decide_finiteness(grammar: Grammar, trace: Optional[TraceSink] = None) -> FinitenessResult:
    trace = trace if trace is not None else TraceSink()
    graph = dependency_graph(grammar)
    result = _search_cycle(grammar, graph, trace)

    if result.infinite:
        message = f"language is infinite, cycle {' -> '.join(map(str, result.cycle))}"
    else:
        message = "language is finite, the dependency graph is acyclic"
    trace.emit(Stage.FINITENESS, "result", grammar, variables=result.cycle, message=message)
    log.info("finiteness: %s", message)
    return result


def _search_cycle(grammar: Grammar,
                  graph: Dict[NonTerminal, Tuple[NonTerminal, ...]],
                  trace: TraceSink) -> FinitenessResult:
    visited: Set[NonTerminal] = set()
    on_path: Set[NonTerminal] = set()
    path: List[NonTerminal] = []

    def enter(node: NonTerminal) -> None:
        visited.add(node)
        on_path.add(node)
        path.append(node)
        trace.emit(Stage.FINITENESS, "visit", grammar, variables=[node],
                   message=f"path {' -> '.join(map(str, path))}")

    for root in graph:
        if root in visited:
            continue
        trace.emit(Stage.FINITENESS, "start-dfs", grammar, variables=[root])
        enter(root)
        stack: List[Tuple[NonTerminal, Iterator[NonTerminal]]] = [(root, iter(graph[root]))]

        while stack:
            node, neighbours = stack[-1]
            descended = False
            for neighbour in neighbours:
                if neighbour in on_path:
                    cycle = tuple(path[path.index(neighbour):]) + (neighbour,)
                    trace.emit(Stage.FINITENESS, "cycle-found", grammar, variables=cycle,
                               message=" -> ".join(map(str, cycle)))
                    return FinitenessResult(infinite=True, cycle=cycle)
                if neighbour not in visited:
                    trace.emit(Stage.FINITENESS, "explore-edge", grammar, variables=[node, neighbour])
                    enter(neighbour)
                    stack.append((neighbour, iter(graph[neighbour])))
                    descended = True
                    break
            if not descended:
                stack.pop()
                path.pop()
                on_path.discard(node)
                trace.emit(Stage.FINITENESS, "backtrack", grammar, variables=[node])

    return FinitenessResult(infinite=False)
