from __future__ import annotations

from typing import Any

from .errors import ResponseDecodeError
from .typedesc import (
    ArrayType,
    BorrowedView,
    NamedType,
    OpaqueType,
    ParenType,
    SliceType,
    TupleType,
    TypeDescriptor,
)

_INT_RANGES = {
    "i8": (-(2**7), 2**7 - 1),
    "i16": (-(2**15), 2**15 - 1),
    "i32": (-(2**31), 2**31 - 1),
    "i64": (-(2**63), 2**63 - 1),
    "i128": (-(2**127), 2**127 - 1),
    # Treat pointer-sized integers as 64-bit.
    "isize": (-(2**63), 2**63 - 1),
    "u8": (0, 2**8 - 1),
    "u16": (0, 2**16 - 1),
    "u32": (0, 2**32 - 1),
    "u64": (0, 2**64 - 1),
    "u128": (0, 2**128 - 1),
    "usize": (0, 2**64 - 1),
}

_SEQUENCES = {"Vec", "VecDeque", "LinkedList", "HashSet", "BTreeSet", "BinaryHeap"}
_MAPS = {"HashMap", "BTreeMap", "IndexMap"}
_WRAPPERS = {"Box", "Rc", "Arc", "Cow"}
_STRINGS = {"String", "str"}


def conform(t: TypeDescriptor, v: Any) -> Any:
    """Check a decoded value against `t` and return it in its Python shape.

    Tuples and fixed arrays come back from MessagePack as lists and are returned
    as tuples/lists respectively. Named types that are not standard library
    shapes are accepted as decoded.
    """
    if isinstance(t, (BorrowedView, ParenType)):
        return conform(t.inner, v)
    if isinstance(t, TupleType):
        if not t.elements:
            if v is not None:
                raise ResponseDecodeError("expected unit")
            return None
        if not isinstance(v, (list, tuple)) or len(v) != len(t.elements):
            raise ResponseDecodeError(f"expected tuple of {len(t.elements)} elements")
        return tuple(conform(et, item) for et, item in zip(t.elements, v, strict=True))
    if isinstance(t, ArrayType):
        items = _expect_list(v)
        if t.length.isdigit() and len(items) != int(t.length):
            raise ResponseDecodeError(f"expected array of {t.length} elements, got {len(items)}")
        return [conform(t.element, item) for item in items]
    if isinstance(t, SliceType):
        return [conform(t.element, item) for item in _expect_list(v)]
    if isinstance(t, OpaqueType):
        return v
    if isinstance(t, NamedType):
        return _conform_named(t, v)
    raise TypeError(f"not a type descriptor: {t!r}")


def _expect_list(v: Any) -> list[Any]:
    if not isinstance(v, (list, tuple)):
        raise ResponseDecodeError("expected list")
    return list(v)


def _type_args(t: NamedType) -> list[TypeDescriptor]:
    # Drop lifetimes and const arguments, e.g. Cow<'a, str>.
    return [a for a in t.args if not isinstance(a, OpaqueType)]


def _conform_named(t: NamedType, v: Any) -> Any:
    name = t.ident
    args = _type_args(t)

    if name == "bool":
        if not isinstance(v, bool):
            raise ResponseDecodeError("expected bool")
        return v
    if name in _STRINGS:
        if not isinstance(v, str):
            raise ResponseDecodeError("expected str")
        return v
    if name == "char":
        if not isinstance(v, str) or len(v) != 1:
            raise ResponseDecodeError("expected a single character")
        return v
    if name in _INT_RANGES:
        if not isinstance(v, int) or isinstance(v, bool):
            raise ResponseDecodeError(f"expected int ({name})")
        lo, hi = _INT_RANGES[name]
        if v < lo or v > hi:
            raise ResponseDecodeError(f"int out of range for {name}")
        return v
    if name in {"f32", "f64"}:
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            raise ResponseDecodeError(f"expected float ({name})")
        return float(v)

    if name == "Option" and len(args) == 1:
        if v is None:
            return None
        return conform(args[0], v)
    if name in _SEQUENCES and len(args) == 1:
        return [conform(args[0], item) for item in _expect_list(v)]
    if name in _MAPS and len(args) >= 2:
        if not isinstance(v, dict):
            raise ResponseDecodeError("expected dict")
        return {conform(args[0], k): conform(args[1], vv) for k, vv in v.items()}
    if name in _WRAPPERS and len(args) == 1:
        return conform(args[0], v)
    if name == "Result" and len(args) == 2:
        # Externally tagged, as serde encodes enums.
        if not isinstance(v, dict) or len(v) != 1 or next(iter(v)) not in ("Ok", "Err"):
            raise ResponseDecodeError("expected {'Ok': ...} or {'Err': ...}")
        tag, inner = next(iter(v.items()))
        return {tag: conform(args[0] if tag == "Ok" else args[1], inner)}

    return v
