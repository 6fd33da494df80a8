import re
from typing import Any, Dict, List, Optional

from normalizer.cnf_converter import validate_grammar
from normalizer.errors import CFGError
from normalizer.grammar import Grammar
from normalizer.symbols import (
    NonTerminal,
    Production,
    is_nonterminal_name,
    normalize_body,
    parse_symbol,
    tokenize_body,
)

# Everything after a '#' is a comment in textual grammars.
_COMMENT_RE = re.compile(r"#.*$")


def _parse_lhs(lhs: Any) -> NonTerminal:
    if not isinstance(lhs, str) or lhs.strip() == "":
        raise CFGError(f"Invalid or missing LHS value: {lhs!r}")
    lhs = lhs.strip()
    if not is_nonterminal_name(lhs):
        raise CFGError(
            f"Invalid variable format on left-hand side: '{lhs}'. Variables are an uppercase "
            f"letter optionally followed by digits (e.g., S, S0, X1)."
        )
    return NonTerminal(lhs)


def _parse_rhs_string(rhs_str: str) -> List[Production]:
    """
    Parse a RHS string like "aSb | AB | eps" into a list of bodies:
    [(a, S, b), (A, B), (ε,)]
    """
    return [tokenize_body(part) for part in rhs_str.split("|")]


def _parse_rhs_tokens(lhs: NonTerminal, tokens: List[Any]) -> Production:
    """A body given as a token list, e.g. ["a", "S0", "b"]."""
    symbols = []
    for token in tokens:
        if not isinstance(token, str):
            raise CFGError(f"Unsupported RHS entry type for '{lhs}': {type(token).__name__}")
        if token.strip() != "":
            symbols.append(parse_symbol(token))
    return normalize_body(symbols)


def _parse_rhs(lhs: NonTerminal, rhs: Any) -> List[Production]:
    # rhs can be a string like "aSb | ab | eps" or a list of alternatives,
    # each either such a string or a token list like ["a", "S0", "b"]
    if isinstance(rhs, str):
        return _parse_rhs_string(rhs)
    if isinstance(rhs, list):
        bodies = []
        for alternative in rhs:
            if isinstance(alternative, str):
                bodies.extend(_parse_rhs_string(alternative))
            elif isinstance(alternative, list):
                bodies.append(_parse_rhs_tokens(lhs, alternative))
            else:
                raise CFGError(f"Unsupported RHS entry type for '{lhs}': {type(alternative).__name__}")
        return bodies
    raise CFGError(f"Unsupported RHS type for production {lhs.name!r}: {type(rhs).__name__}")


def parse_cfg(start_variable: str, productions: Any) -> Grammar:
    """
    Parse and validate the grammar supplied by the frontend.

    Expected input shapes
    ---------------------
    - productions can be a mapping: { "S": ["aSb", "eps"], "A": "a | bA" }
      (alternatives as strings, "|"-separated strings, or token lists)
    - OR productions can be a list of dicts: [ { "lhs": "S", "rhs": "aSb | eps" }, ... ]

    Bodies are read character by character: lowercase letters are terminals,
    an uppercase letter plus trailing digits is a variable, "eps", "ε", "_" or
    an empty alternative is the empty word.

    Returns
    -------
    Grammar

    Raises
    ------
    CFGError on invalid grammar.
    """
    if not start_variable or not isinstance(start_variable, str):
        raise CFGError("Start variable must be a non-empty string.")

    start = _parse_lhs(start_variable)
    productions_map: Dict[NonTerminal, List[Production]] = {}

    if isinstance(productions, dict):
        entries = list(productions.items())
    elif isinstance(productions, list):
        entries = []
        for entry in productions:
            if not isinstance(entry, dict):
                raise CFGError("Each production entry must be an object/dict with 'lhs' and 'rhs'.")
            entries.append((entry.get("lhs"), entry.get("rhs")))
    else:
        raise CFGError("Unsupported productions type. Provide a dict or a list of production entries.")

    for raw_lhs, rhs in entries:
        lhs = _parse_lhs(raw_lhs)
        productions_map.setdefault(lhs, []).extend(_parse_rhs(lhs, rhs))

    if len(productions_map) == 0:
        raise CFGError("No production rules defined. Add at least one rule.")

    grammar = Grammar(start, productions_map)
    validate_grammar(grammar)
    return grammar


def parse_grammar_text(text: str, start: Optional[str] = None) -> Grammar:
    """
    Parse lines such as

        S -> aSb | eps
        A → a | _

    Blank lines and '#' comments are ignored. The start symbol defaults to the
    left-hand side of the first rule.
    """
    entries = []
    for line_number, original_line in enumerate(text.splitlines(), start=1):
        cleaned = _COMMENT_RE.sub("", original_line).strip().replace("→", "->")
        if not cleaned:
            continue
        if "->" not in cleaned:
            raise CFGError(f"Line {line_number}: production must contain '->'. Found: {original_line!r}")
        lhs, rhs = cleaned.split("->", 1)
        if lhs.strip() == "":
            raise CFGError(f"Line {line_number}: production is missing a left-hand side.")
        entries.append({"lhs": lhs.strip(), "rhs": rhs})

    if not entries:
        raise CFGError("No production rules defined. Add at least one rule.")

    return parse_cfg(start or entries[0]["lhs"], entries)


# Quick manual test (only runs if executed directly)
if __name__ == "__main__":
    example = [
        {"lhs": "S", "rhs": "A | B | eps"},
        {"lhs": "A", "rhs": "B"},
        {"lhs": "B", "rhs": "Cdb"},
        {"lhs": "C", "rhs": "A | bb"},
    ]
    try:
        g = parse_cfg("S", example)
        import json
        print(json.dumps(g.as_dict(), indent=2, ensure_ascii=False))
    except CFGError as e:
        print("ERROR:", e)
