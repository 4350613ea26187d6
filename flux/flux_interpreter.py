"""
The Flux tree-walking evaluator.
"""
import math
import os
import re
import sys
from typing import Any, Iterable, Optional

from flux.flux_datatypes import (
    Environment, FluxCallable, Node,
    Number, String, Literal, Variable, Keyword, Call, Binary, VarDecl, ExprStmt,
    FluxNameError, FluxTypeError, FluxNotImplementedError, type_name, normalize_number,
)
from flux.flux_printer import Printer

_NUMERIC_STRING_RE = re.compile(r'\s*[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\s*')


def to_number(value: Any) -> int | float:
    """Numeric coercion used by - * / (JavaScript ToNumber rules)."""
    match value:
        case None:
            return 0
        case bool():
            return int(value)
        case int() | float():
            return value
        case str():
            text = value.strip()
            if text == "":
                return 0
            if _NUMERIC_STRING_RE.fullmatch(text):
                return float(text)
            if text in ("Infinity", "+Infinity", "-Infinity"):
                return -math.inf if text.startswith("-") else math.inf
            return math.nan
        case _:
            return math.nan


def strict_equals(a: Any, b: Any) -> bool:
    """Value-and-type equality: no coercion, booleans never equal numbers."""
    kind_a, kind_b = type_name(a), type_name(b)
    if kind_a != kind_b:
        return False
    if kind_a == "callable":
        return a is b
    # NaN compares unequal to itself, as in float comparison
    return a == b


def divide(a: int | float, b: int | float) -> int | float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


class Evaluator:
    """The Flux execution engine.

    Holds no script state of its own: every call receives the environment it
    runs against. `current_node` tracks the node being evaluated so error
    reports can name it.
    """

    def __init__(self, printer: Optional[Printer] = None):
        self.printer = printer or Printer()
        self.current_node: Optional[Node] = None

    def _dbg(self, *parts):
        if os.environ.get("FLUX_DEBUG"):
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    def run(self, statements: Iterable[Node], env: Environment) -> Any:
        """Execute `statements` in order. Returns the last statement's value."""
        result = None
        for stmt in statements:
            result = self.eval(stmt, env)
        return result

    def eval(self, node: Node, env: Environment) -> Any:
        self.current_node = node
        match node:
            case Number() | String() | Literal():
                return node.value

            case Variable(name=name):
                if name not in env:
                    raise FluxNameError(name)
                return env[name]

            case Call():
                callee = self.eval(node.callee, env)
                if not isinstance(callee, FluxCallable):
                    raise FluxTypeError(
                        f"Call of non-function: {self.printer.pformat(node.callee)} is {type_name(callee)}"
                    )
                args = [self.eval(arg, env) for arg in node.arguments]
                self._dbg("CALL", callee.name, "argc", len(args))
                return callee.invoke(args)

            case Binary():
                left = self.eval(node.left, env)
                right = self.eval(node.right, env)
                self._dbg("BINARY", node.operator, type_name(left), type_name(right))
                return self.apply_operator(node.operator, left, right)

            case VarDecl():
                value = self.eval(node.expr, env)
                # let/const/var all bind the same way; const is not enforced
                env[node.name] = value
                self._dbg("BIND", node.kind, node.name, type_name(value))
                return None

            case ExprStmt():
                return self.eval(node.expr, env)

            case Keyword(value=word):
                raise FluxNotImplementedError(f"'{word}' is not implemented")

            case _:
                raise FluxTypeError(f"Unknown node type {type(node).__name__}")

    def apply_operator(self, operator: str, left: Any, right: Any) -> Any:
        match operator:
            case "+":
                if any(isinstance(v, (str, FluxCallable)) for v in (left, right)):
                    return self.printer.pformat(left) + self.printer.pformat(right)
                return normalize_number(to_number(left) + to_number(right))
            case "-":
                return normalize_number(to_number(left) - to_number(right))
            case "*":
                return normalize_number(to_number(left) * to_number(right))
            case "/":
                return divide(to_number(left), to_number(right))
            case "==":
                return strict_equals(left, right)
            case "!=":
                return not strict_equals(left, right)
            case _:
                raise FluxTypeError(f"Unsupported operator {operator}")
