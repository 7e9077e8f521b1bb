from __future__ import annotations

import re
from dataclasses import dataclass

from .typedesc import UNIT, TypeDescriptor, has_borrowed_view


@dataclass(frozen=True)
class Parameter:
    name: str
    type: TypeDescriptor
    # `mut name: T`; only meaningful for the re-emitted server function.
    mutable_binding: bool = False


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    visibility: str = ""
    is_async: bool = False
    parameters: tuple[Parameter, ...] = ()
    # None means the function returns nothing.
    return_type: TypeDescriptor | None = None
    attached_metadata: tuple[str, ...] = ()

    # Server-only pieces, re-emitted verbatim.
    generics: str = ""
    where_clause: str = ""
    body: str = "{}"

    @property
    def try_name(self) -> str:
        return f"try_{self.name}"

    @property
    def args_record_name(self) -> str:
        return f"{pascal_case(self.name)}Args"

    @property
    def needs_scope_tag(self) -> bool:
        return any(has_borrowed_view(p.type) for p in self.parameters)

    @property
    def returns(self) -> TypeDescriptor:
        return UNIT if self.return_type is None else self.return_type


_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")


def pascal_case(name: str) -> str:
    """Convert an identifier to PascalCase (`get_version` -> `GetVersion`)."""
    words = []
    for chunk in re.split(r"[_\-\s]+", name):
        words.extend(_WORD_RE.findall(chunk))
    return "".join(w[:1].upper() + w[1:].lower() for w in words)
