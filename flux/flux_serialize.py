from __future__ import annotations

import json
from typing import Any

import yaml

from flux.flux_datatypes import Node, FluxCallable


def to_builtin(obj: Any) -> Any:
    """Convert tokens, nodes and runtime values into plain JSON/YAML-safe data.

    Nodes become dicts keyed by their fields, tagged with the node kind:
        Binary('+', Number(1), Number(2)) ->
        {'tag': 'binary', 'operator': '+', 'left': {...}, 'right': {...}}
    """
    if isinstance(obj, Node):
        out = {'tag': obj.tag}
        for name in obj.fields:
            out[name] = to_builtin(getattr(obj, name))
        return out
    if isinstance(obj, (list, tuple)):
        return [to_builtin(x) for x in obj]
    if isinstance(obj, FluxCallable):
        return {'tag': 'callable', 'name': obj.name}
    return obj


def serialize(value: Any, *, fmt: str = 'json', pretty: bool = True) -> str:
    """
    Convert tokens, a statement list or a runtime value into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "serialize",
    "to_builtin",
]
