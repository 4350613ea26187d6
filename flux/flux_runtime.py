# flux_runtime.py

import inspect
import math
import random
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from flux.flux_datatypes import (
    Builtin, Environment, FluxCallable, FluxError, FluxTypeError, normalize_number, number_from_text,
)
from flux.flux_interpreter import Evaluator, to_number
from flux.flux_lexer import tokenize
from flux.flux_parser import parse
from flux.flux_printer import Printer

# ===================================================================
# 1. Built-in registration
# ===================================================================

def builtin(name: str):
    """A decorator marking a StdLib method as the built-in `name`."""
    def mark(func):
        func._flux_builtin = name
        return func
    return mark


def _default_stdout(*args):
    print(Printer().display(*args))


def _default_stdin(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


_PARSE_INT_RE = re.compile(r'\s*([+-]?[0-9]+)')
_PARSE_FLOAT_RE = re.compile(r'\s*([+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?))')

# ===================================================================
# 2. The Standard Library
# ===================================================================

class StdLib:
    """Contains Python implementations for all Flux built-ins.

    The method definitions are shared by every run; an instance only binds
    the output/input channels and the side-effect log its `print` writes to.
    """
    def __init__(self,
                 stdout: Optional[Callable[..., Any]] = None,
                 stdin: Optional[Callable[[str], Optional[str]]] = None,
                 side_effects: Optional[List[Dict]] = None,
                 printer: Optional[Printer] = None):
        self.stdout = stdout or _default_stdout
        self.stdin = stdin or _default_stdin
        self.side_effects = side_effects if side_effects is not None else []
        self.printer = printer or Printer()

    def registry(self) -> Dict[str, Builtin]:
        """Return a fresh name -> Builtin mapping of every decorated method."""
        out: Dict[str, Builtin] = {}
        for _, member in inspect.getmembers(self, callable):
            name = getattr(member, "_flux_builtin", None)
            if name is not None:
                out[name] = Builtin(name, member)
        return out

    def _require_str(self, fname: str, value: Any) -> str:
        if not isinstance(value, str):
            raise FluxTypeError(f"{fname} expects a string, got {self.printer.pformat(value)}")
        return value

    def _to_index(self, value: Any, length: int) -> int:
        n = to_number(value)
        if math.isnan(n):
            return 0
        if math.isinf(n):
            return length if n > 0 else -length
        return int(n)

    # --- Console ---
    @builtin("print")
    def _print(self, *args):
        self.side_effects.append({'topics': ['stdout'], 'message': self.printer.display(*args)})
        self.stdout(*args)
        return None

    @builtin("input")
    def _input(self, prompt: Any = ""):
        return self.stdin(self.printer.pformat(prompt))

    # --- Math ---
    @builtin("sqrt")
    def _sqrt(self, x):
        n = to_number(x)
        return math.nan if n < 0 or math.isnan(n) else math.sqrt(n)

    @builtin("pow")
    def _pow(self, base, exponent):
        b, e = to_number(base), to_number(exponent)
        if b == 0 and e < 0:
            # Zero to a negative power is Infinity; -0 keeps its sign for odd powers
            return math.copysign(math.inf, b) if e % 2 == 1 else math.inf
        try:
            return math.pow(b, e)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    @builtin("abs")
    def _abs(self, x): return abs(to_number(x))

    @builtin("round")
    def _round(self, x):
        # Halves round toward +Infinity: round(2.5) is 3, round(-2.5) is -2
        n = to_number(x)
        if math.isnan(n) or math.isinf(n):
            return n
        return normalize_number(math.floor(n + 0.5))

    @builtin("random")
    def _random(self): return random.random()

    @builtin("isNaN")
    def _is_nan(self, value): return math.isnan(to_number(value))

    # --- Conversion ---
    @builtin("int")
    def _int(self, value):
        m = _PARSE_INT_RE.match(self.printer.pformat(value))
        return number_from_text(m.group(1)) if m else math.nan

    @builtin("parseInt")
    def _parse_int(self, value): return self._int(value)

    @builtin("float")
    def _float(self, value):
        m = _PARSE_FLOAT_RE.match(self.printer.pformat(value))
        if not m:
            return math.nan
        text = m.group(1)
        if text.endswith("Infinity"):
            return -math.inf if text.startswith("-") else math.inf
        return float(text)

    @builtin("parseFloat")
    def _parse_float(self, value): return self._float(value)

    @builtin("str")
    def _str(self, value): return self.printer.pformat(value)

    @builtin("toString")
    def _to_string(self, value):
        if value is None:
            raise FluxTypeError("Cannot convert null to a string with toString")
        return self.printer.pformat(value)

    @builtin("type")
    def _type(self, value):
        match value:
            case None:
                return "object"
            case bool():
                return "boolean"
            case int() | float():
                return "number"
            case str():
                return "string"
            case FluxCallable():
                return "function"
        raise FluxTypeError(f"Not a Flux value: {type(value).__name__}")

    # --- Strings ---
    @builtin("len")
    def _len(self, value): return len(self._require_str("len", value))

    @builtin("upper")
    def _upper(self, value): return self._require_str("upper", value).upper()

    @builtin("lower")
    def _lower(self, value): return self._require_str("lower", value).lower()

    @builtin("slice")
    def _slice(self, value, start=None, end=None):
        s = self._require_str("slice", value)
        lo = self._to_index(start, len(s)) if start is not None else 0
        hi = self._to_index(end, len(s)) if end is not None else len(s)
        return s[lo:hi]

    @builtin("concat")
    def _concat(self, a, b):
        return self._require_str("concat", a) + self.printer.pformat(b)


BUILTIN_NAMES = frozenset(
    member._flux_builtin
    for _, member in inspect.getmembers(StdLib, inspect.isfunction)
    if hasattr(member, "_flux_builtin")
)

# ===================================================================
# 3. Script Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        return str(self.error_message or "Unknown error")


class ScriptRunner:
    """Tokenizes, parses, and executes Flux code.

    Every `handle_script` call runs against a fresh Environment seeded with
    the built-ins unless an environment is passed in explicitly (the REPL
    does that to keep declarations between lines).
    """

    def __init__(self,
                 stdout: Optional[Callable[..., Any]] = None,
                 stdin: Optional[Callable[[str], Optional[str]]] = None,
                 host_functions: Optional[Dict[str, Callable[..., Any]]] = None):
        self.printer = Printer()
        self.evaluator = Evaluator(self.printer)
        self.side_effects: List[Dict] = []
        self.stdlib = StdLib(stdout=stdout, stdin=stdin, side_effects=self.side_effects, printer=self.printer)
        self.host_functions = dict(host_functions or {})
        self.environment: Optional[Environment] = None

    def new_environment(self) -> Environment:
        env = Environment(self.stdlib.registry())
        # Host functions are bound last so they shadow built-ins of the same name
        for name, func in self.host_functions.items():
            env[name] = func if isinstance(func, FluxCallable) else Builtin(name, func)
        return env

    def execute(self, source_code: str, environment: Optional[Environment] = None) -> Any:
        """Run `source_code`, raising the first error. Returns the last statement's value."""
        env = environment if environment is not None else self.new_environment()
        self.environment = env
        statements = parse(tokenize(source_code))
        return self.evaluator.run(statements, env)

    def _format_error(self, e: Exception) -> tuple[str, str]:
        match e:
            case FluxError():
                return e.kind, f"{e.kind}: {e}"
            case _:
                return "InternalError", f"InternalError: {type(e).__name__}: {e}"

    def handle_script(self, source_code: str, environment: Optional[Environment] = None) -> ExecutionResult:
        """The main entry point to execute a script."""
        # Clear side effects for each run
        self.side_effects.clear()
        try:
            value = self.execute(source_code, environment)
        except Exception as e:
            error_type, err_msg = self._format_error(e)
            self.side_effects.append({'topics': ['stderr'], 'message': err_msg})
            return ExecutionResult(
                status='error',
                error_message=err_msg,
                error_type=error_type,
                side_effects=list(self.side_effects),
            )
        return ExecutionResult(status='success', value=value, side_effects=list(self.side_effects))
