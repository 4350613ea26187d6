"""
Recursive-descent parser turning a token list into Flux statement nodes.

Grammar (tokens come from flux_lexer.tokenize):

    program    := statement*
    statement  := ('let' | 'const' | 'var') NAME '=' expression ';'
                | expression ';'
    expression := call (OP call)*          OP in + - * / == !=, left to right
    call       := primary ('(' [expression (',' expression)*] ')')*
    primary    := NUMBER | STRING | KEYWORD | NAME

All binary operators share one precedence tier: `1 + 2 * 3` is `(1 + 2) * 3`.
"""
import re
from typing import List, Optional, Sequence

from flux.flux_datatypes import (
    Node, Number, String, Literal, Variable, Keyword, Call, Binary, VarDecl, ExprStmt,
    FluxSyntaxError, UnexpectedEndOfInput, number_from_text,
)
from flux.flux_grammar import (
    BINARY_OPERATORS, DECLARATION_KEYWORDS, LITERAL_KEYWORDS, OPERATORS, PUNCTUATION, is_keyword,
)
from flux.flux_lexer import tokenize

NUMBER_RE = re.compile(r'[0-9]+(?:\.[0-9]+)?')
NAME_RE = re.compile(r'[A-Za-z_]\w*')

_LITERAL_VALUES = {"true": True, "false": False, "null": None}
_SYMBOLS = frozenset(OPERATORS) | frozenset(PUNCTUATION)


class Parser:
    """Parses one token list. Instances are single-use."""

    def __init__(self, tokens: Sequence[str]):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self) -> Optional[str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def consume(self, expected: Optional[str] = None) -> str:
        token = self.peek()
        if token is None:
            raise UnexpectedEndOfInput(expected)
        if expected is not None and token != expected:
            raise FluxSyntaxError(f"Expected '{expected}' but got '{token}'", token)
        self.pos += 1
        return token

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    # --- Grammar rules ---

    def parse_program(self) -> List[Node]:
        statements = []
        while not self.at_end():
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Node:
        if self.peek() in DECLARATION_KEYWORDS:
            kind = self.consume()
            name = self.consume()
            if not NAME_RE.fullmatch(name):
                raise FluxSyntaxError(f"Invalid variable name '{name}'", name)
            self.consume("=")
            expr = self.parse_expression()
            self.consume(";")
            return VarDecl(kind, name, expr)
        expr = self.parse_expression()
        self.consume(";")
        return ExprStmt(expr)

    def parse_expression(self) -> Node:
        left = self.parse_call()
        while self.peek() in BINARY_OPERATORS:
            operator = self.consume()
            right = self.parse_call()
            left = Binary(operator, left, right)
        return left

    def parse_call(self) -> Node:
        expr = self.parse_primary()
        while self.peek() == "(":
            self.consume("(")
            args = []
            if self.peek() != ")":
                args.append(self.parse_expression())
                while self.peek() == ",":
                    self.consume(",")
                    args.append(self.parse_expression())
            self.consume(")")
            expr = Call(expr, args)
        return expr

    def parse_primary(self) -> Node:
        token = self.consume()
        if NUMBER_RE.fullmatch(token):
            return Number(number_from_text(token))
        if token[0] in ('"', "'"):
            return String(token[1:-1])
        if is_keyword(token):
            if token in LITERAL_KEYWORDS:
                return Literal(_LITERAL_VALUES[token])
            return Keyword(token)
        if token in _SYMBOLS:
            raise FluxSyntaxError(f"Unexpected token '{token}'", token)
        return Variable(token)


def parse(tokens: Sequence[str]) -> List[Node]:
    """Parse a token list into an ordered list of statement nodes."""
    return Parser(tokens).parse_program()


def parse_source(source: str) -> List[Node]:
    return parse(tokenize(source))
