"""Choose how a client stub turns a dispatched call's result into its return type.

Selection matches the canonical text of the return type, not its meaning: a
user type spelled `bool` takes the bool accessor path, and
`std::string::String` takes the generic decode path.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from . import abi
from .config import GeneratorOptions
from .errors import ResponseDecodeError
from .typedesc import UNIT, TypeDescriptor, render_type
from .validate import conform

NUMERIC_TYPES = frozenset(
    {
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
        "f32",
        "f64",
    }
)


class DecodeStrategy(enum.Enum):
    STRING = "string"
    UNIT = "unit"
    BOOL = "bool"
    NUMBER = "number"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class DecodeTemplate:
    strategy: DecodeStrategy
    return_type: TypeDescriptor

    @property
    def message(self) -> str | None:
        return _MESSAGES[self.strategy]

    def render(self, result_var: str = "result", *, options: GeneratorOptions | None = None) -> list[str]:
        """Rust expression lines evaluating to `Result<T, String>`."""
        opts = options or GeneratorOptions()
        if self.strategy is DecodeStrategy.UNIT:
            return ["Ok(())"]
        if self.strategy is DecodeStrategy.STRING:
            return [f'{result_var}.as_string().ok_or_else(|| "{self.message}".to_string())']
        if self.strategy is DecodeStrategy.BOOL:
            return [f'{result_var}.as_bool().ok_or_else(|| "{self.message}".to_string())']
        return [
            f"{opts.decode_fn}({result_var})",
            f'    .map_err(|e| format!("{self.message}: {{}}", e))',
        ]

    def apply(self, value: Any) -> Any:
        """Decode a call result the way the rendered expression would."""
        if self.strategy is DecodeStrategy.UNIT:
            return None
        if self.strategy is DecodeStrategy.STRING:
            s = abi.as_string(value)
            if s is None:
                raise ResponseDecodeError(self.message)
            return s
        if self.strategy is DecodeStrategy.BOOL:
            b = abi.as_bool(value)
            if b is None:
                raise ResponseDecodeError(self.message)
            return b
        try:
            return conform(self.return_type, value)
        except ResponseDecodeError as e:
            raise ResponseDecodeError(f"{self.message}: {e}") from None


_MESSAGES: dict[DecodeStrategy, str | None] = {
    DecodeStrategy.STRING: "Expected string response",
    DecodeStrategy.UNIT: None,
    DecodeStrategy.BOOL: "Expected bool response",
    DecodeStrategy.NUMBER: "Failed to deserialize number",
    DecodeStrategy.STRUCTURED: "Failed to deserialize response",
}


def select_decode(return_type: TypeDescriptor | None) -> DecodeTemplate:
    t = UNIT if return_type is None else return_type
    ident = " ".join(render_type(t).split())
    if ident == "String":
        strategy = DecodeStrategy.STRING
    elif ident == "()":
        strategy = DecodeStrategy.UNIT
    elif ident == "bool":
        strategy = DecodeStrategy.BOOL
    elif ident in NUMERIC_TYPES:
        strategy = DecodeStrategy.NUMBER
    else:
        strategy = DecodeStrategy.STRUCTURED
    return DecodeTemplate(strategy=strategy, return_type=t)
