"""Generator options and their environment overrides."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields, replace
from typing import Mapping

from .errors import ConfigError

_LIFETIME_RE = re.compile(r"'[A-Za-z_][A-Za-z0-9_]*")
_PATH_RE = re.compile(r"(::)?[A-Za-z_][A-Za-z0-9_]*(::[A-Za-z_][A-Za-z0-9_]*)*")

ENV_PREFIX = "BRIDGEGEN_"


@dataclass(frozen=True)
class GeneratorOptions:
    # Lifetime shared by every untagged reference in the client stub.
    scope_tag: str = "'a"
    marker: str = "tauri_bridge"

    invoke_path: str = "crate::invoke"
    # Whether `invoke` returns a Result that must be mapped into the stub's error.
    fallible_invoke: bool = False
    encode_fn: str = "serde_wasm_bindgen::to_value"
    decode_fn: str = "serde_wasm_bindgen::from_value"
    null_value: str = "serde_json::Value::Null"

    command_attribute: str = "tauri::command"
    server_module_prefix: str = "__tauri_cmd_"

    # `#[cfg(...)]` predicates; None emits no gate.
    server_cfg: str | None = 'all(feature = "backend", not(target_arch = "wasm32"))'
    client_cfg: str | None = 'target_arch = "wasm32"'

    def __post_init__(self) -> None:
        if not _LIFETIME_RE.fullmatch(self.scope_tag) or self.scope_tag in ("'static", "'_"):
            raise ConfigError(f"scope_tag must be a named lifetime like 'a, got {self.scope_tag!r}")
        for name in ("invoke_path", "encode_fn", "decode_fn", "command_attribute", "marker"):
            value = getattr(self, name)
            if not _PATH_RE.fullmatch(value):
                raise ConfigError(f"{name} must be a Rust path, got {value!r}")
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", self.server_module_prefix):
            raise ConfigError(f"server_module_prefix must be an identifier, got {self.server_module_prefix!r}")


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {raw!r}")


def options_from_env(
    base: GeneratorOptions | None = None, *, environ: Mapping[str, str] | None = None
) -> GeneratorOptions:
    """Apply `BRIDGEGEN_<FIELD>` environment overrides on top of `base`.

    Cfg predicates accept an empty value to disable the gate.
    """
    env = os.environ if environ is None else environ
    opts = base or GeneratorOptions()
    changes: dict[str, object] = {}
    for f in fields(GeneratorOptions):
        key = ENV_PREFIX + f.name.upper()
        raw = env.get(key)
        if raw is None:
            continue
        if f.name == "fallible_invoke":
            changes[f.name] = _parse_bool(key, raw)
        elif f.name in ("server_cfg", "client_cfg"):
            changes[f.name] = raw.strip() or None
        else:
            changes[f.name] = raw.strip()
    if not changes:
        return opts
    return replace(opts, **changes)
