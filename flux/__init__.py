from flux.flux_datatypes import (
    FluxError, LexError, FluxSyntaxError, UnexpectedEndOfInput,
    FluxNameError, FluxTypeError, FluxNotImplementedError,
    Environment, FluxCallable, Builtin,
)
from flux.flux_grammar import is_keyword
from flux.flux_lexer import tokenize
from flux.flux_parser import parse, parse_source
from flux.flux_interpreter import Evaluator
from flux.flux_runtime import ScriptRunner, ExecutionResult, StdLib, builtin
from flux.flux_embed import find_flux_blocks, run_document, load_document

__all__ = [
    "FluxError", "LexError", "FluxSyntaxError", "UnexpectedEndOfInput",
    "FluxNameError", "FluxTypeError", "FluxNotImplementedError",
    "Environment", "FluxCallable", "Builtin",
    "is_keyword", "tokenize", "parse", "parse_source", "Evaluator",
    "ScriptRunner", "ExecutionResult", "StdLib", "builtin",
    "find_flux_blocks", "run_document", "load_document",
]
