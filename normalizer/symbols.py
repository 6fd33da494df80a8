"""
Grammar symbols
---------------
Terminals are single lowercase letters, nonterminals are an uppercase letter
optionally followed by digits (S, S0, X1, D12), epsilon is a sentinel that only
ever appears as the whole body of a production.

A production body is a tuple of symbols; the only legal epsilon body is
EPSILON_BODY.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from normalizer.errors import CFGError

NONTERMINAL_RE = re.compile(r"^[A-Z][0-9]*$")
TERMINAL_RE = re.compile(r"^[a-z]$")

# Spellings accepted for the empty word, both as a whole body and as a token.
EPSILON_ALIASES = ("ε", "eps", "_")


@dataclass(frozen=True, order=True)
class Terminal:
    char: str

    def __str__(self) -> str:
        return self.char


@dataclass(frozen=True, order=True)
class NonTerminal:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Epsilon:
    def __str__(self) -> str:
        return "ε"


Symbol = Union[Terminal, NonTerminal, Epsilon]
Production = Tuple[Symbol, ...]

EPSILON = Epsilon()
EPSILON_BODY: Production = (EPSILON,)


def is_nonterminal_name(name: str) -> bool:
    return bool(NONTERMINAL_RE.fullmatch(name))


def is_terminal_char(char: str) -> bool:
    return bool(TERMINAL_RE.fullmatch(char))


def is_epsilon_body(body: Production) -> bool:
    return body == EPSILON_BODY


def is_unit(body: Production) -> bool:
    """A unit production has exactly one nonterminal as its body."""
    return len(body) == 1 and isinstance(body[0], NonTerminal)


def body_nonterminals(body: Production) -> Tuple[NonTerminal, ...]:
    return tuple(sym for sym in body if isinstance(sym, NonTerminal))


def parse_symbol(token: str) -> Symbol:
    """Turn a single token (`a`, `S0`, `eps`) into a symbol."""
    token = token.strip()
    if token in EPSILON_ALIASES:
        return EPSILON
    if is_terminal_char(token):
        return Terminal(token)
    if is_nonterminal_name(token):
        return NonTerminal(token)
    raise CFGError(
        f"Invalid symbol '{token}'. Terminals are single lowercase letters, "
        f"variables an uppercase letter optionally followed by digits (e.g. S, S0, X1)."
    )


def tokenize_body(text: str) -> Production:
    """
    Split a body such as "aS0Bb" into (a, S0, B, b).

    Whitespace is ignored. An empty body or one of EPSILON_ALIASES yields
    EPSILON_BODY. Epsilon marks mixed with other symbols are dropped.
    """
    compact = "".join(text.split())
    if compact in ("",) + EPSILON_ALIASES:
        return EPSILON_BODY

    compact = compact.replace("ε", "").replace("_", "")
    if compact == "":
        return EPSILON_BODY

    symbols = []
    i = 0
    while i < len(compact):
        char = compact[i]
        if "A" <= char <= "Z":
            j = i + 1
            while j < len(compact) and "0" <= compact[j] <= "9":
                j += 1
            symbols.append(NonTerminal(compact[i:j]))
            i = j
        elif "a" <= char <= "z":
            symbols.append(Terminal(char))
            i += 1
        else:
            raise CFGError(f"Invalid character '{char}' in production body \"{text}\".")
    return tuple(symbols)


def normalize_body(symbols: Iterable[Symbol]) -> Production:
    """Drop epsilon from a mixed body; an empty result is the epsilon body."""
    kept = tuple(sym for sym in symbols if not isinstance(sym, Epsilon))
    return kept if kept else EPSILON_BODY


def format_body(body: Production) -> str:
    return "".join(str(sym) for sym in body)


def format_production(lhs: NonTerminal, body: Production) -> str:
    return f"{lhs} -> {format_body(body)}"
