"""MessagePack payloads exchanged by bridged calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import msgpack

from .errors import ArgumentEncodeError, DispatchError, ResponseDecodeError


@dataclass(frozen=True)
class ABIError:
    type: str
    message: str


@dataclass(frozen=True)
class ABIResponse:
    ok: bool
    result: Any | None = None
    error: ABIError | None = None


def encode_args(record: dict[str, Any] | None) -> bytes:
    """Encode an arguments record; None is the explicit no-arguments payload."""
    try:
        return msgpack.packb(record, use_bin_type=True)
    except Exception as e:  # noqa: BLE001 - encode boundary
        raise ArgumentEncodeError(str(e)) from e


def decode_value(payload: bytes) -> Any:
    try:
        return msgpack.unpackb(payload, raw=False, strict_map_key=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise ResponseDecodeError(str(e)) from e


def as_string(v: Any) -> str | None:
    return v if isinstance(v, str) else None


def as_bool(v: Any) -> bool | None:
    return v if isinstance(v, bool) else None


def encode_response(*, ok: bool, result: Any = None, error: ABIError | None = None) -> bytes:
    payload: dict[str, Any] = {"ok": ok}
    if ok:
        payload["result"] = result
    else:
        if error is None:
            raise DispatchError("error envelope requires an ABIError")
        payload["error"] = {"type": error.type, "message": error.message}
    try:
        return msgpack.packb(payload, use_bin_type=True)
    except Exception as e:  # noqa: BLE001 - encode boundary
        raise DispatchError(f"cannot encode response: {e}") from e


def decode_response(payload: bytes) -> ABIResponse:
    try:
        obj = msgpack.unpackb(payload, raw=False, strict_map_key=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise DispatchError(f"invalid response payload: {e}") from e

    if not isinstance(obj, dict) or "ok" not in obj:
        raise DispatchError("invalid response envelope")

    if bool(obj.get("ok")):
        return ABIResponse(ok=True, result=obj.get("result"), error=None)

    err = obj.get("error")
    if not isinstance(err, dict):
        raise DispatchError("invalid error envelope")
    return ABIResponse(
        ok=False,
        result=None,
        error=ABIError(type=str(err.get("type", "")), message=str(err.get("message", ""))),
    )
