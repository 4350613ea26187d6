"""
Loads the Flux lexical tables (keywords, punctuation, operators) from
flux_grammar.yaml and exposes them as frozensets.
"""
from pathlib import Path
from typing import Any, Dict

import yaml

GRAMMAR_PATH = Path(__file__).parent / "flux_grammar.yaml"


def load_grammar(path: Path = GRAMMAR_PATH) -> Dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        grammar_def = yaml.safe_load(f)
    if not isinstance(grammar_def, dict) or "keywords" not in grammar_def:
        raise ValueError(f"Malformed grammar table: {path}")
    return grammar_def


_GRAMMAR = load_grammar()

KEYWORDS = frozenset(
    str(word) for group in _GRAMMAR["keywords"].values() for word in group
)
LITERAL_KEYWORDS = frozenset(_GRAMMAR["keywords"]["literal"])
DECLARATION_KEYWORDS = frozenset(_GRAMMAR["declarations"])
OPERATORS = tuple(_GRAMMAR["operators"])
PUNCTUATION = tuple(_GRAMMAR["punctuation"])
BINARY_OPERATORS = frozenset(_GRAMMAR["binary_operators"])


def is_keyword(word: str) -> bool:
    """True when `word` is one of the reserved words."""
    return word in KEYWORDS
