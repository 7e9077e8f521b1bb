"""Parse Rust function declarations and types into bridgegen's model.

Source text is parsed with tree-sitter's Rust grammar; this module maps the
concrete syntax tree onto `FunctionSignature` and the type descriptors.
Only what a bridged function needs is looked at: outer attributes and doc
comments, visibility, `async`, generics and `where` clauses (kept as text),
identifier parameters, types and the body block (kept as text).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Union

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from .errors import SignatureParseError
from .signature import FunctionSignature, Parameter
from .typedesc import (
    UNIT,
    ArrayType,
    BorrowedView,
    NamedType,
    OpaqueType,
    ParenType,
    SliceType,
    TupleType,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)

RUST_LANGUAGE = Language(tree_sitter_rust.language())

_COMMENTS = {"line_comment", "block_comment"}
_FUNCTIONS = {"function_item", "function_signature_item"}
_CLOSERS = {"}", ")", "]", ">"}
_TYPE_ALIAS = "type __BridgegenType = "

# A generic argument span merged with its trailing bounds, as (start_byte, end_byte).
_Span = tuple[int, int]
_TypeItem = Union[Node, _Span]


@dataclass(frozen=True)
class BridgedItem:
    signature: FunctionSignature
    # Character offsets of the whole item (attributes through body) in the source.
    start: int
    end: int


def _normalize(text: str) -> str:
    return " ".join(text.split())


def _compact(text: str) -> str:
    text = re.sub(r"\s*::\s*", "::", _normalize(text))
    text = re.sub(r"\bpub\s+\(", "pub(", text)
    return re.sub(r"\(\s+", "(", re.sub(r"\s+\)", ")", text))


def _parse_tree(data: bytes) -> Node:
    return Parser(RUST_LANGUAGE).parse(data).root_node


def _first_error(root: Node) -> Node | None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        stack.extend(c for c in reversed(node.children) if c.has_error or c.is_missing)
    return None


class _Source:
    """Source text with its UTF-8 encoding; tree-sitter reports byte offsets."""

    def __init__(self, text: str, *, skip: int = 0):
        self.text = text
        self.data = text.encode("utf-8")
        # Characters of synthetic prefix excluded from reported positions.
        self.skip = skip

    def offset(self, byte: int) -> int:
        if len(self.data) == len(self.text):
            return byte
        return len(self.data[:byte].decode("utf-8", errors="ignore"))

    def node_text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def position(self, byte: int) -> tuple[int, int]:
        body = self.text[self.skip :]
        off = min(max(self.offset(byte) - self.skip, 0), len(body))
        line = body.count("\n", 0, off) + 1
        column = off - (body.rfind("\n", 0, off) + 1) + 1
        return line, column


class _Reader:
    def __init__(self, src: _Source):
        self.src = src

    def text(self, node: Node) -> str:
        return self.src.node_text(node)

    def error(self, msg: str, byte: int) -> SignatureParseError:
        line, column = self.src.position(byte)
        return SignatureParseError(msg, line=line, column=column)

    def syntax_error(self, root: Node) -> SignatureParseError:
        node = _first_error(root) or root
        if node.is_missing:
            if node.type in _CLOSERS:
                return self.error(f"unclosed delimiter, expected {node.type!r}", node.start_byte)
            return self.error(f"expected {node.type!r}", node.start_byte)
        snippet = _normalize(self.text(node))
        if not snippet:
            return self.error("unexpected end of input", node.start_byte)
        return self.error(f"unexpected {snippet[:40]!r}", node.start_byte)

    # -- metadata --

    def is_doc_comment(self, node: Node) -> bool:
        if node.type == "line_comment":
            text = self.text(node)
            return text.startswith("///") and not text.startswith("////")
        if node.type == "block_comment":
            text = self.text(node)
            return text.startswith("/**") and not text.startswith(("/***", "/**/"))
        return False

    def attribute_path(self, node: Node) -> str:
        if node.type != "attribute_item":
            return "doc"
        attr = next((c for c in node.named_children if c.type == "attribute"), None)
        if attr is None or not attr.named_children:
            return ""
        return _compact(self.text(attr.named_children[0]))

    def metadata_text(self, node: Node) -> str:
        return self.text(node).rstrip("\r\n")

    # -- types --

    def type_of(self, root: Node) -> TypeDescriptor:
        """Build a type descriptor from a type node.

        Children are built before their parent from an explicit work stack, so
        nesting depth is bounded only by memory.
        """
        work: list[tuple[_TypeItem, int]] = [(root, -1)]
        built: list[TypeDescriptor] = []
        while work:
            item, arity = work.pop()
            if arity >= 0:
                parts = built[len(built) - arity :]
                del built[len(built) - arity :]
                built.append(self._assemble(item, parts))
                continue
            parts = self._type_parts(item)
            if parts is None:
                built.append(self._leaf(item))
                continue
            work.append((item, len(parts)))
            work.extend((p, -1) for p in reversed(parts))
        return built[0]

    def _type_parts(self, item: _TypeItem) -> list[_TypeItem] | None:
        if isinstance(item, tuple):
            return None
        kind = item.type
        if kind == "reference_type":
            return [item.child_by_field_name("type")]
        if kind == "generic_type":
            base = _compact(self.text(item.child_by_field_name("type")))
            if "<" in base:
                return None
            return self._type_arguments(item.child_by_field_name("type_arguments"))
        if kind == "tuple_type":
            return [c for c in item.named_children if c.type not in _COMMENTS]
        if kind == "array_type":
            return [item.child_by_field_name("element")]
        return None

    def _type_arguments(self, node: Node) -> list[_TypeItem]:
        units: list[_TypeItem] = []
        for c in node.named_children:
            if c.type in _COMMENTS:
                continue
            if c.type == "trait_bounds" and units:
                prev = units.pop()
                start = prev[0] if isinstance(prev, tuple) else prev.start_byte
                units.append((start, c.end_byte))
                continue
            units.append(c)
        return units

    def _assemble(self, item: _TypeItem, parts: list[TypeDescriptor]) -> TypeDescriptor:
        # Spans never have parts, so `item` is a node here.
        kind = item.type
        if kind == "reference_type":
            scope = next((self.text(c) for c in item.children if self.text(c).startswith("'")), None)
            mutable = any(c.type == "mutable_specifier" for c in item.children)
            return BorrowedView(inner=parts[0], mutable=mutable, scope=scope)
        if kind == "generic_type":
            base = _compact(self.text(item.child_by_field_name("type")))
            return NamedType(path=tuple(base.split("::")), args=tuple(parts))
        if kind == "tuple_type":
            if len(parts) == 1 and not any(c.type == "," for c in item.children):
                return ParenType(parts[0])
            return TupleType(tuple(parts))
        length = item.child_by_field_name("length")
        if length is None:
            return SliceType(parts[0])
        return ArrayType(element=parts[0], length=_normalize(self.text(length)))

    def _leaf(self, item: _TypeItem) -> TypeDescriptor:
        if isinstance(item, tuple):
            return OpaqueType(_compact(self.src.data[item[0] : item[1]].decode("utf-8")))
        text = _compact(self.text(item))
        if item.type in ("type_identifier", "primitive_type"):
            return NamedType(path=(text,))
        if item.type == "unit_type":
            return UNIT
        if item.type == "scoped_type_identifier" and not re.search(r"[<>()\[\]]", text):
            return NamedType(path=tuple(text.split("::")))
        return OpaqueType(text)

    # -- functions --

    def signature(self, fn: Node, metadata: list[Node], *, skip_attr: str | None) -> FunctionSignature:
        if fn.has_error:
            raise self.syntax_error(fn)
        if fn.type != "function_item":
            raise self.error("expected function body", fn.end_byte)

        visibility = ""
        is_async = False
        for c in fn.children:
            if c.type == "visibility_modifier":
                visibility = _compact(self.text(c))
            elif c.type == "function_modifiers":
                for m in c.children:
                    word = _normalize(self.text(m))
                    if word != "async":
                        raise self.error(f"unsupported function qualifier {word!r}", m.start_byte)
                    is_async = True

        generics_node = fn.child_by_field_name("type_parameters")
        return_node = fn.child_by_field_name("return_type")
        where_node = next((c for c in fn.children if c.type == "where_clause"), None)
        indent = _line_indent(self.src.text, self.src.offset(fn.start_byte))
        body = _dedent_tail(self.text(fn.child_by_field_name("body")), indent)

        return FunctionSignature(
            name=self.text(fn.child_by_field_name("name")),
            visibility=visibility,
            is_async=is_async,
            parameters=tuple(self._parameters(fn.child_by_field_name("parameters"))),
            return_type=None if return_node is None else self.type_of(return_node),
            attached_metadata=tuple(
                self.metadata_text(m)
                for m in metadata
                if skip_attr is None or not _attr_matches(self.attribute_path(m), skip_attr)
            ),
            generics="" if generics_node is None else _normalize(self.text(generics_node)),
            where_clause="" if where_node is None else _normalize(self.text(where_node)),
            body=body,
        )

    def _parameters(self, node: Node) -> list[Parameter]:
        params: list[Parameter] = []
        seen: set[str] = set()
        for c in node.children:
            if c.type in ("(", ")", ",") or c.type in _COMMENTS:
                continue
            if c.type == "attribute_item":
                raise self.error("parameter attributes are not supported", c.start_byte)
            if c.type == "self_parameter":
                raise self.error("methods with a receiver are not supported", c.start_byte)
            if c.type == "variadic_parameter":
                raise self.error("variadic parameters are not supported", c.start_byte)
            if c.type != "parameter":
                raise self.error("only `name: Type` parameters are supported", c.start_byte)

            mutable = any(k.type == "mutable_specifier" for k in c.children)
            pattern = c.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "mut_pattern":
                mutable = True
                pattern = pattern.named_children[-1]
            if pattern is not None and pattern.type == "self":
                raise self.error("methods with a receiver are not supported", c.start_byte)
            if pattern is None or pattern.type != "identifier":
                raise self.error("only `name: Type` parameters are supported", c.start_byte)

            name = self.text(pattern)
            if name in seen:
                raise self.error(f"duplicate parameter {name!r}", pattern.start_byte)
            seen.add(name)
            params.append(
                Parameter(name=name, type=self.type_of(c.child_by_field_name("type")), mutable_binding=mutable)
            )
        return params


def _attr_matches(path: str, marker: str) -> bool:
    return path == marker or path.endswith("::" + marker)


def _line_indent(source: str, offset: int) -> str:
    prefix = source[source.rfind("\n", 0, offset) + 1 : offset]
    return prefix if not prefix.strip() else ""


def _dedent_tail(text: str, indent: str) -> str:
    """Strip `indent` from every line after the first."""
    if not indent:
        return text
    lines = text.split("\n")
    out = [lines[0]]
    for ln in lines[1:]:
        out.append(ln[len(indent) :] if ln.startswith(indent) else ln)
    return "\n".join(out)


def parse_type(text: str) -> TypeDescriptor:
    """Parse a single Rust type."""
    src = _Source(f"{_TYPE_ALIAS}{text};", skip=len(_TYPE_ALIAS))
    reader = _Reader(src)
    root = _parse_tree(src.data)
    if root.has_error:
        raise reader.syntax_error(root)
    items = [c for c in root.named_children if c.type not in _COMMENTS]
    if len(items) != 1 or items[0].type != "type_item":
        extra = items[1] if len(items) > 1 else root
        raise reader.error(f"unexpected {_normalize(reader.text(extra))[:40]!r} after type", extra.start_byte)
    return reader.type_of(items[0].child_by_field_name("type"))


def parse_function(text: str, *, skip_attr: str | None = None) -> FunctionSignature:
    """Parse a single function item (attributes through body)."""
    src = _Source(text)
    reader = _Reader(src)
    root = _parse_tree(src.data)
    if root.has_error:
        raise reader.syntax_error(root)

    metadata: list[Node] = []
    sig: FunctionSignature | None = None
    for c in root.children:
        if c.type in _COMMENTS and not reader.is_doc_comment(c):
            continue
        if sig is not None:
            raise reader.error(f"unexpected {_normalize(reader.text(c))[:40]!r} after function body", c.start_byte)
        if c.type == "attribute_item" or reader.is_doc_comment(c):
            metadata.append(c)
        elif c.type == "inner_attribute_item":
            continue
        elif c.type in _FUNCTIONS:
            sig = reader.signature(c, metadata, skip_attr=skip_attr)
        else:
            raise reader.error(f"expected a function item, found {c.type}", c.start_byte)
    if sig is None:
        raise reader.error("expected a function item", len(src.data))
    return sig


def find_bridged_functions(source: str, *, marker: str = "tauri_bridge") -> list[BridgedItem]:
    """Find every function item in `source` carrying the `marker` attribute.

    Attributes and doc comments are siblings of the item they annotate in the
    syntax tree, so each container is scanned in order and the pending
    metadata run is attached to the next item.
    """
    src = _Source(source)
    reader = _Reader(src)
    found: list[BridgedItem] = []
    stack = [_parse_tree(src.data)]
    while stack:
        container = stack.pop()
        pending: list[Node] = []
        for child in container.children:
            if child.type == "attribute_item" or reader.is_doc_comment(child):
                pending.append(child)
                continue
            if child.type in _COMMENTS:
                continue
            marked = any(_attr_matches(reader.attribute_path(m), marker) for m in pending)
            if marked and child.type in _FUNCTIONS:
                sig = reader.signature(child, pending, skip_attr=marker)
                line, _ = src.position(pending[0].start_byte)
                logger.debug("found bridged function %s at line %d", sig.name, line)
                found.append(
                    BridgedItem(
                        signature=sig,
                        start=src.offset(pending[0].start_byte),
                        end=src.offset(child.end_byte),
                    )
                )
                pending = []
                continue
            if marked:
                line, _ = src.position(pending[0].start_byte)
                logger.warning("#[%s] on a non-function item at line %d ignored", marker, line)
            pending = []
            if child.child_count:
                stack.append(child)
    found.sort(key=lambda item: item.start)
    return found
