"""
A printer for Flux runtime values and statement trees.
"""
import math
from decimal import Decimal
from typing import Any, Iterable

from flux.flux_datatypes import (
    FluxCallable, Node, Number, String, Literal, Variable, Keyword, Call, Binary, VarDecl, ExprStmt,
)


class Printer:
    """Formats runtime values the way `print` shows them, and trees as Flux source."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj: Any) -> str:
        """Public entry point to format a value or a node."""
        handler = self._get_handler(obj)
        return handler(obj)

    def display(self, *values: Any) -> str:
        """The line `print` writes for `values`."""
        return " ".join(self.pformat(v) for v in values)

    def format_program(self, statements: Iterable[Node]) -> str:
        return "\n".join(self.pformat(stmt) for stmt in statements)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, FluxCallable):
            return self._pformat_callable
        # Default to Python's repr for unknown types
        return repr

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_int,
            float: self._pformat_float,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            Number: self._pformat_number_node,
            String: self._pformat_string_node,
            Literal: self._pformat_literal_node,
            Variable: self._pformat_variable_node,
            Keyword: self._pformat_keyword_node,
            Call: self._pformat_call_node,
            Binary: self._pformat_binary_node,
            VarDecl: self._pformat_var_decl_node,
            ExprStmt: self._pformat_expr_stmt_node,
        }

    # --- Values ---

    def _pformat_str(self, obj):
        return obj

    def _pformat_int(self, obj):
        return str(obj)

    def _pformat_float(self, obj):
        if math.isnan(obj):
            return "NaN"
        if math.isinf(obj):
            return "Infinity" if obj > 0 else "-Infinity"
        if obj.is_integer() and abs(obj) < 1e21:
            return str(int(obj))
        return repr(obj).replace("e-0", "e-").replace("e+0", "e+")

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj):
        return 'null'

    def _pformat_callable(self, obj):
        return f"[function {obj.name}]"

    # --- Nodes ---
    # Binary operands never need parentheses: the parser's single left-to-right
    # tier means a right operand is always a call or primary.

    def _pformat_number_node(self, node):
        value = node.value
        if isinstance(value, int):
            return str(value)
        text = repr(value)
        if "e" in text or not text[0].isdigit():
            text = format(Decimal(text), "f")
        return text

    def _pformat_string_node(self, node):
        quote = "'" if '"' in node.value else '"'
        return f"{quote}{node.value}{quote}"

    def _pformat_literal_node(self, node):
        return self.pformat(node.value)

    def _pformat_variable_node(self, node):
        return node.name

    def _pformat_keyword_node(self, node):
        return node.value

    def _pformat_call_node(self, node):
        args = ", ".join(self.pformat(a) for a in node.arguments)
        return f"{self.pformat(node.callee)}({args})"

    def _pformat_binary_node(self, node):
        return f"{self.pformat(node.left)} {node.operator} {self.pformat(node.right)}"

    def _pformat_var_decl_node(self, node):
        return f"{node.kind} {node.name} = {self.pformat(node.expr)};"

    def _pformat_expr_stmt_node(self, node):
        return f"{self.pformat(node.expr)};"
