"""
Defines the core data types for the Flux language runtime.

This module provides the error taxonomy, the statement/expression tree
nodes produced by the parser, the run environment and the callable
interface that built-ins implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
import collections.abc

# =================================================================
# Errors
# =================================================================

class FluxError(Exception):
    """Base class for every error a Flux run can raise."""
    kind = "FluxError"


class LexError(FluxError):
    kind = "LexError"

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class FluxSyntaxError(FluxError):
    kind = "SyntaxError"

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.token = token


class UnexpectedEndOfInput(FluxSyntaxError):
    def __init__(self, expected: Optional[str] = None):
        msg = "Unexpected end of input"
        if expected is not None:
            msg = f"{msg}, expected '{expected}'"
        super().__init__(msg)
        self.expected = expected


class FluxNameError(FluxError, NameError):
    kind = "NameError"

    def __init__(self, name: str):
        super().__init__(f"Undefined variable '{name}'")
        self.name = name


class FluxTypeError(FluxError, TypeError):
    kind = "TypeError"


class FluxNotImplementedError(FluxError, NotImplementedError):
    kind = "NotImplementedError"


# =================================================================
# Callables
# =================================================================

class FluxCallable(ABC):
    """Abstract base class for all objects callable within Flux."""

    name: str = "<callable>"

    @abstractmethod
    def invoke(self, args: List[Any]) -> Any:
        raise NotImplementedError


class Builtin(FluxCallable):
    """A native Python function exposed to scripts under `name`."""
    def __init__(self, name: str, func: Callable[..., Any]):
        self.name = name
        self.func = func

    def invoke(self, args: List[Any]) -> Any:
        return self.func(*args)

    def __repr__(self) -> str:
        return f"<Builtin {self.name}>"

    def __eq__(self, other):
        if not isinstance(other, Builtin):
            return NotImplemented
        return self.name == other.name and self.func == other.func

    def __hash__(self):
        return hash((self.name, id(self.func)))


# =================================================================
# Runtime values
# =================================================================

def type_name(value: Any) -> str:
    """Classify a runtime value as number, string, boolean, null or callable."""
    match value:
        case None:
            return "null"
        # bool is a subclass of int, so check it first
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case FluxCallable():
            return "callable"
        case _:
            raise FluxTypeError(f"Not a Flux value: {type(value).__name__}")


# Integers above this magnitude are no longer exact as doubles
MAX_SAFE_INTEGER = 2 ** 53


def normalize_number(n: int | float) -> int | float:
    """Keep an int only while a double would hold it exactly."""
    if isinstance(n, int) and not isinstance(n, bool) and abs(n) > MAX_SAFE_INTEGER:
        return float(n)
    return n


def number_from_text(text: str) -> int | float:
    """The number a run of decimal digits (with optional sign and fraction) denotes."""
    value = float(text)
    if "." in text or not value.is_integer() or abs(value) > MAX_SAFE_INTEGER:
        return value
    return int(value)


class Environment(collections.abc.MutableMapping):
    """The flat name -> value mapping a single run executes against.

    There is no parent chain: a lookup either finds the name here or raises
    KeyError (the evaluator reports that as FluxNameError).
    """
    def __init__(self, bindings: Optional[Dict[str, Any]] = None):
        self.bindings: Dict[str, Any] = dict(bindings or {})

    def __getitem__(self, key: str) -> Any:
        return self.bindings[key]

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Environment key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __delitem__(self, key: str):
        del self.bindings[key]

    def __contains__(self, key: object) -> bool:
        return key in self.bindings

    def __iter__(self):
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        return f"<Environment bindings=[{keys}]>"


# =================================================================
# Tree nodes
# =================================================================

class Node(ABC):
    """Abstract base class for parsed statements and expressions."""
    tag: str = ""
    fields: tuple = ()

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.fields)

    def __repr__(self) -> str:
        args = ", ".join(f"{getattr(self, f)!r}" for f in self.fields)
        return f"{type(self).__name__}({args})"


class Number(Node):
    tag = "number"
    fields = ("value",)

    def __init__(self, value: int | float):
        self.value = value

    def __eq__(self, other):
        # 1 and 1.0 are different literals
        if isinstance(other, Number):
            return type(self.value) is type(other.value) and self.value == other.value
        return NotImplemented


class String(Node):
    tag = "string"
    fields = ("value",)

    def __init__(self, value: str):
        self.value = value


class Literal(Node):
    """`true`, `false` or `null`."""
    tag = "literal"
    fields = ("value",)

    def __init__(self, value: Optional[bool]):
        self.value = value

    def __eq__(self, other):
        if isinstance(other, Literal):
            return self.value is other.value
        return NotImplemented


class Variable(Node):
    tag = "variable"
    fields = ("name",)

    def __init__(self, name: str):
        self.name = name


class Keyword(Node):
    """A reserved word parsed as a primary. It has no evaluation semantics."""
    tag = "keyword"
    fields = ("value",)

    def __init__(self, value: str):
        self.value = value


class Call(Node):
    tag = "call"
    fields = ("callee", "arguments")

    def __init__(self, callee: Node, arguments: List[Node]):
        self.callee = callee
        self.arguments = list(arguments)


class Binary(Node):
    tag = "binary"
    fields = ("operator", "left", "right")

    def __init__(self, operator: str, left: Node, right: Node):
        self.operator = operator
        self.left = left
        self.right = right


class VarDecl(Node):
    tag = "var_decl"
    fields = ("kind", "name", "expr")

    def __init__(self, kind: str, name: str, expr: Node):
        self.kind = kind
        self.name = name
        self.expr = expr


class ExprStmt(Node):
    tag = "expr_stmt"
    fields = ("expr",)

    def __init__(self, expr: Node):
        self.expr = expr
