"""Type descriptors and the borrowed-view analysis over them.

A type descriptor is an immutable tree mirroring a Rust type. The set of shapes
is closed: ``_children`` names the sub-descriptors of each shape and raises
``TypeError`` for anything else, so adding a shape means revisiting
``_children``, ``_rescoped`` and ``_rendered`` together. Walks use explicit
stacks; nesting depth is bounded only by memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, TypeVar, Union


@dataclass(frozen=True)
class BorrowedView:
    """A reference ``&'scope mut inner``; ``scope`` is None when no lifetime is written."""

    inner: "TypeDescriptor"
    mutable: bool = False
    scope: str | None = None


@dataclass(frozen=True)
class NamedType:
    # Earlier segments are kept as written; only the last segment's
    # generic arguments are part of the tree.
    path: tuple[str, ...]
    args: tuple["TypeDescriptor", ...] = ()

    @property
    def ident(self) -> str:
        return self.path[-1]


@dataclass(frozen=True)
class TupleType:
    elements: tuple["TypeDescriptor", ...] = ()


@dataclass(frozen=True)
class ArrayType:
    element: "TypeDescriptor"
    length: str


@dataclass(frozen=True)
class SliceType:
    element: "TypeDescriptor"


@dataclass(frozen=True)
class ParenType:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class OpaqueType:
    """Any type the analysis does not look into (trait objects, fn pointers, lifetimes...)."""

    text: str


TypeDescriptor = Union[BorrowedView, NamedType, TupleType, ArrayType, SliceType, ParenType, OpaqueType]

UNIT = TupleType(())

T = TypeVar("T")


def _children(t: TypeDescriptor) -> tuple[TypeDescriptor, ...]:
    if isinstance(t, (BorrowedView, ParenType)):
        return (t.inner,)
    if isinstance(t, NamedType):
        return t.args
    if isinstance(t, TupleType):
        return t.elements
    if isinstance(t, (ArrayType, SliceType)):
        return (t.element,)
    if isinstance(t, OpaqueType):
        return ()
    raise TypeError(f"not a type descriptor: {t!r}")


def _fold(t: TypeDescriptor, combine: Callable[[TypeDescriptor, tuple[TypeDescriptor, ...], list[T]], T]) -> T:
    """Post-order fold over `t` with an explicit stack.

    `combine(node, children, results)` receives the node, its child descriptors
    and the already-folded results for those children, in order.
    """
    work: list[tuple[TypeDescriptor, bool]] = [(t, False)]
    done: list[T] = []
    while work:
        node, ready = work.pop()
        kids = _children(node)
        if kids and not ready:
            work.append((node, True))
            work.extend((k, False) for k in reversed(kids))
            continue
        results = done[len(done) - len(kids) :]
        del done[len(done) - len(kids) :]
        done.append(combine(node, kids, results))
    return done[0]


def iter_borrowed_views(t: TypeDescriptor) -> Iterator[BorrowedView]:
    """Yield every reference node of `t`, outermost first."""
    stack = [t]
    while stack:
        node = stack.pop()
        if isinstance(node, BorrowedView):
            yield node
        stack.extend(reversed(_children(node)))


def has_borrowed_view(t: TypeDescriptor) -> bool:
    """Return True if `t` is a reference or contains one at any depth."""
    return next(iter_borrowed_views(t), None) is not None


def _rescoped(
    t: TypeDescriptor, kids: tuple[TypeDescriptor, ...], new: list[TypeDescriptor], tag: str
) -> TypeDescriptor:
    if isinstance(t, BorrowedView):
        if t.scope is None:
            return BorrowedView(inner=new[0], mutable=t.mutable, scope=tag)
    if all(n is k for n, k in zip(new, kids, strict=True)):
        return t
    if isinstance(t, BorrowedView):
        return BorrowedView(inner=new[0], mutable=t.mutable, scope=t.scope)
    if isinstance(t, NamedType):
        return NamedType(path=t.path, args=tuple(new))
    if isinstance(t, TupleType):
        return TupleType(tuple(new))
    if isinstance(t, ArrayType):
        return ArrayType(element=new[0], length=t.length)
    if isinstance(t, SliceType):
        return SliceType(element=new[0])
    return ParenType(inner=new[0])


def rewrite_scope(t: TypeDescriptor, tag: str) -> TypeDescriptor:
    """Return `t` with every reference that has no lifetime given `tag`.

    References that already name a lifetime keep it; their inner type is still
    rewritten, so `&&str` becomes `&'a &'a str`. Subtrees without an untagged
    reference are returned as the same objects.
    """
    return _fold(t, lambda node, kids, new: _rescoped(node, kids, new, tag))


def _rendered(t: TypeDescriptor, _kids: tuple[TypeDescriptor, ...], parts: list[str]) -> str:
    if isinstance(t, BorrowedView):
        out = "&"
        if t.scope is not None:
            out += f"{t.scope} "
        if t.mutable:
            out += "mut "
        return out + parts[0]
    if isinstance(t, NamedType):
        head = "::".join(t.path)
        if not parts:
            return head
        return f"{head}<{', '.join(parts)}>"
    if isinstance(t, TupleType):
        if len(parts) == 1:
            return f"({parts[0]},)"
        return f"({', '.join(parts)})"
    if isinstance(t, ArrayType):
        return f"[{parts[0]}; {t.length}]"
    if isinstance(t, SliceType):
        return f"[{parts[0]}]"
    if isinstance(t, ParenType):
        return f"({parts[0]})"
    return t.text


def render_type(t: TypeDescriptor) -> str:
    """Render `t` as canonical Rust type text."""
    return _fold(t, _rendered)
