"""
Grammar model
-------------
`Grammar` is an immutable snapshot: a start symbol plus, for every variable, an
ordered tuple of distinct production bodies. Stages never edit a Grammar; they
call `edit()` to get a `ProductionTable`, change that, and `freeze()` it again.

Freezing reuses the body tuple of every variable that was not touched since the
table was created (or last frozen), so consecutive snapshots share structure and
only the changed variables cost memory.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from normalizer.fixpoint import fixpoint_rounds
from normalizer.symbols import (
    NonTerminal,
    Production,
    Terminal,
    format_body,
)


class Grammar:

    __slots__ = ("_start", "_rules")

    def __init__(self, start: NonTerminal, rules: Optional[Mapping[NonTerminal, Iterable[Production]]] = None):
        self._start = start
        self._rules: Dict[NonTerminal, Tuple[Production, ...]] = {}
        for lhs, bodies in (rules or {}).items():
            # dict.fromkeys keeps the first occurrence of each body, in order
            self._rules[lhs] = tuple(dict.fromkeys(tuple(body) for body in bodies))

    @classmethod
    def _shared(cls, start: NonTerminal, rules: Dict[NonTerminal, Tuple[Production, ...]]) -> "Grammar":
        grammar = cls.__new__(cls)
        grammar._start = start
        grammar._rules = rules
        return grammar

    # ---------------------------------------------------------
    # Queries
    # ---------------------------------------------------------
    @property
    def start(self) -> NonTerminal:
        return self._start

    @property
    def rules(self) -> Mapping[NonTerminal, Tuple[Production, ...]]:
        return MappingProxyType(self._rules)

    @property
    def nonterminals(self) -> Tuple[NonTerminal, ...]:
        return tuple(self._rules)

    def sorted_nonterminals(self) -> List[NonTerminal]:
        return sorted(self._rules)

    def names(self) -> Set[str]:
        return {lhs.name for lhs in self._rules}

    def bodies(self, lhs: NonTerminal) -> Tuple[Production, ...]:
        return self._rules.get(lhs, ())

    def productions(self) -> Iterator[Tuple[NonTerminal, Production]]:
        """Yield (lhs, body) pairs, variables in alphabetical order."""
        for lhs in self.sorted_nonterminals():
            for body in self._rules[lhs]:
                yield lhs, body

    def production_count(self) -> int:
        return sum(len(bodies) for bodies in self._rules.values())

    def __contains__(self, lhs: NonTerminal) -> bool:
        return lhs in self._rules

    def referenced(self) -> Set[NonTerminal]:
        return {
            sym
            for bodies in self._rules.values()
            for body in bodies
            for sym in body
            if isinstance(sym, NonTerminal)
        }

    def dangling(self) -> Set[NonTerminal]:
        """Variables used on some right-hand side without productions of their own."""
        return {sym for sym in self.referenced() if sym not in self._rules}

    def terminals(self) -> Set[Terminal]:
        return {
            sym
            for bodies in self._rules.values()
            for body in bodies
            for sym in body
            if isinstance(sym, Terminal)
        }

    def edit(self) -> "ProductionTable":
        return ProductionTable._from_grammar(self)

    # ---------------------------------------------------------
    # Rendering / comparison
    # ---------------------------------------------------------
    def _display_order(self) -> List[NonTerminal]:
        ordered = self.sorted_nonterminals()
        if self.start in self._rules:
            ordered.remove(self.start)
            ordered.insert(0, self.start)
        return ordered

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            lhs.name: [format_body(body) for body in self._rules[lhs]]
            for lhs in self._display_order()
        }

    def to_text(self) -> str:
        lines = []
        for lhs in self._display_order():
            lines.append(f"{lhs} -> {' | '.join(format_body(body) for body in self._rules[lhs])}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Grammar(start={self.start.name!r}, rules={self.as_dict()!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grammar):
            return NotImplemented
        return self.start == other.start and {
            lhs: set(bodies) for lhs, bodies in self._rules.items()
        } == {lhs: set(bodies) for lhs, bodies in other._rules.items()}

    __hash__ = None


class ProductionTable:
    """
    Mutable working copy of a grammar, owned by a single stage.

    Every mutating method returns whether it changed anything, so callers can
    decide whether a trace event is worth emitting.
    """

    def __init__(self, start: NonTerminal, rules: Optional[Mapping[NonTerminal, Iterable[Production]]] = None):
        self.start = start
        self._rules: Dict[NonTerminal, List[Production]] = {}
        self._frozen: Dict[NonTerminal, Tuple[Production, ...]] = {}
        self._snapshot: Optional[Grammar] = None
        for lhs, bodies in (rules or {}).items():
            self.ensure(lhs)
            for body in bodies:
                self.add(lhs, body)

    @classmethod
    def _from_grammar(cls, grammar: Grammar) -> "ProductionTable":
        table = cls(grammar.start)
        table._rules = {lhs: list(bodies) for lhs, bodies in grammar._rules.items()}
        table._frozen = dict(grammar._rules)
        table._snapshot = grammar
        return table

    def _touch(self, lhs: NonTerminal) -> None:
        self._frozen.pop(lhs, None)
        self._snapshot = None

    # ---------------------------------------------------------
    # Mutation
    # ---------------------------------------------------------
    def set_start(self, start: NonTerminal) -> None:
        self.start = start
        self._snapshot = None

    def ensure(self, lhs: NonTerminal) -> bool:
        if lhs in self._rules:
            return False
        self._rules[lhs] = []
        self._touch(lhs)
        return True

    def add(self, lhs: NonTerminal, body: Iterable) -> bool:
        body = tuple(body)
        self.ensure(lhs)
        if body in self._rules[lhs]:
            return False
        self._rules[lhs].append(body)
        self._touch(lhs)
        return True

    def remove(self, lhs: NonTerminal, body: Production) -> bool:
        bodies = self._rules.get(lhs)
        if bodies is None or body not in bodies:
            return False
        bodies.remove(body)
        self._touch(lhs)
        return True

    def replace(self, lhs: NonTerminal, old: Production, new: Production) -> bool:
        """Swap `old` for `new` in place; if `new` is already there, just drop `old`."""
        bodies = self._rules.get(lhs)
        if bodies is None or old not in bodies or old == new:
            return False
        index = bodies.index(old)
        if new in bodies:
            del bodies[index]
        else:
            bodies[index] = tuple(new)
        self._touch(lhs)
        return True

    def drop(self, lhs: NonTerminal) -> Tuple[Production, ...]:
        bodies = self._rules.pop(lhs, [])
        self._touch(lhs)
        return tuple(bodies)

    def prune_dead(self) -> Tuple[List[NonTerminal], List[Tuple[NonTerminal, Production]]]:
        """
        Drop variables left without productions (other than the start symbol)
        and every production that references a variable no longer in the table.

        Returns the dropped variables and the removed productions.
        """
        dropped: List[NonTerminal] = []
        removed: List[Tuple[NonTerminal, Production]] = []

        for _ in fixpoint_rounds(len(self._rules) + 2, "dead variable set"):
            changed = False
            for lhs in self.sorted_nonterminals():
                if lhs != self.start and not self._rules[lhs]:
                    self.drop(lhs)
                    dropped.append(lhs)
                    changed = True
            for lhs in self.sorted_nonterminals():
                for body in list(self._rules[lhs]):
                    if any(isinstance(sym, NonTerminal) and sym not in self._rules for sym in body):
                        self.remove(lhs, body)
                        removed.append((lhs, body))
                        changed = True
            if not changed:
                break

        return dropped, removed

    # ---------------------------------------------------------
    # Queries
    # ---------------------------------------------------------
    def bodies(self, lhs: NonTerminal) -> Tuple[Production, ...]:
        return tuple(self._rules.get(lhs, ()))

    def sorted_nonterminals(self) -> List[NonTerminal]:
        return sorted(self._rules)

    def names(self) -> Set[str]:
        return {lhs.name for lhs in self._rules}

    def __contains__(self, lhs: NonTerminal) -> bool:
        return lhs in self._rules

    def __iter__(self) -> Iterator[NonTerminal]:
        return iter(list(self._rules))

    def freeze(self) -> Grammar:
        if self._snapshot is None:
            for lhs, bodies in self._rules.items():
                if lhs not in self._frozen:
                    self._frozen[lhs] = tuple(bodies)
            self._snapshot = Grammar._shared(
                self.start, {lhs: self._frozen[lhs] for lhs in self._rules}
            )
        return self._snapshot
