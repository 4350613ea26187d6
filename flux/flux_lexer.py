"""
Splits Flux source text into a flat list of token strings.
"""
import re
from typing import List

from flux.flux_datatypes import LexError
from flux.flux_grammar import OPERATORS, PUNCTUATION

# Order matters: the first alternative that matches at a position wins.
TOKEN_SPEC = [
    ('IDENT',  r'[A-Za-z_][A-Za-z0-9_]*'),
    ('NUMBER', r'[0-9]+(?:\.[0-9]+)?'),
    ('STRING', r'"[^"]*"|\'[^\']*\''),
    ('OP',     '|'.join(re.escape(op) for op in OPERATORS)),
    ('PUNC',   '|'.join(re.escape(p) for p in PUNCTUATION)),
]
TOKEN_RE = re.compile('|'.join('(?P<%s>%s)' % pair for pair in TOKEN_SPEC))
SKIP_RE = re.compile(r'\s*')


def tokenize(source: str) -> List[str]:
    """Tokenize `source` into token strings.

    Whitespace is skipped and never emitted. Raises LexError at the first
    character no alternative accepts; no partial result is returned.
    """
    tokens: List[str] = []
    pos = SKIP_RE.match(source, 0).end()
    end = len(source)
    while pos < end:
        m = TOKEN_RE.match(source, pos)
        if m is None:
            ch = source[pos]
            if ch in ('"', "'"):
                raise LexError(f"Unterminated string literal at offset {pos}", pos)
            raise LexError(f"Unrecognized token {ch!r} at offset {pos}", pos)
        tokens.append(m.group())
        pos = SKIP_RE.match(source, m.end()).end()
    return tokens
