"""bridgegen: generate a server command and a typed async client stub from one Rust function."""

from __future__ import annotations

from . import abi, errors
from .config import GeneratorOptions
from .decode import DecodeStrategy, select_decode
from .generate import BridgeOutput, expand_source, generate
from .parse import parse_function, parse_type
from .signature import FunctionSignature, Parameter
from .typedesc import has_borrowed_view, render_type, rewrite_scope

__all__ = [
    "BridgeOutput",
    "DecodeStrategy",
    "FunctionSignature",
    "GeneratorOptions",
    "Parameter",
    "abi",
    "errors",
    "expand_source",
    "generate",
    "has_borrowed_view",
    "parse_function",
    "parse_type",
    "render_type",
    "rewrite_scope",
    "select_decode",
]
