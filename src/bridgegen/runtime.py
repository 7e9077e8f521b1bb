"""Call-time behaviour of generated client stubs, runnable from Python.

`BridgeClient.try_call` follows the generated `try_<name>` step by step:
encode the arguments record (or the explicit null payload), dispatch under the
declared name, then decode with the template chosen for the return type. Every
failure becomes a textual error on the returned `CallOutcome`. `call` is the
convenience variant and raises `BridgeCallError` instead.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol

from . import abi
from .decode import select_decode
from .errors import ArgumentEncodeError, BridgeCallError, ResponseDecodeError
from .signature import FunctionSignature

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def dispatch(self, name: str, payload: bytes) -> bytes: ...


@dataclass(frozen=True)
class CallOutcome:
    ok: bool
    value: Any | None = None
    error: str | None = None

    def unwrap(self) -> Any:
        if not self.ok:
            raise BridgeCallError(self.error or "call failed")
        return self.value


@dataclass(frozen=True)
class RecordedCall:
    name: str
    args: Any


@dataclass
class LoopbackTransport:
    """In-process server side: commands registered by name, called with the record's fields.

    Every dispatch is appended to `calls` for inspection; call `clear()` on a
    long-lived transport to drop them.
    """

    _handlers: dict[str, Callable[..., Any]] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def clear(self) -> None:
        self.calls.clear()

    def register(self, name: str, handler: Callable[..., Any | Awaitable[Any]]) -> None:
        self._handlers[name] = handler

    def command(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator form of `register`, using the function's own name."""
        self.register(fn.__name__, fn)
        return fn

    async def dispatch(self, name: str, payload: bytes) -> bytes:
        handler = self._handlers.get(name)
        try:
            args = abi.decode_value(payload)
        except ResponseDecodeError as e:
            return abi.encode_response(ok=False, error=abi.ABIError("InvalidArgs", str(e)))
        self.calls.append(RecordedCall(name=name, args=args))

        if handler is None:
            return abi.encode_response(ok=False, error=abi.ABIError("UnknownCommand", f"command {name} not found"))
        if args is not None and not isinstance(args, dict):
            return abi.encode_response(ok=False, error=abi.ABIError("InvalidArgs", "expected a map of arguments"))
        try:
            result = handler(**(args or {}))
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:  # noqa: BLE001 - reported to the caller as an error envelope
            logger.debug("command %s failed: %s", name, e)
            return abi.encode_response(ok=False, error=abi.ABIError(type(e).__name__, str(e)))
        return abi.encode_response(ok=True, result=result)


class BridgeClient:
    def __init__(self, transport: Transport):
        self._transport = transport

    async def try_call(self, sig: FunctionSignature, *args: Any) -> CallOutcome:
        if len(args) != len(sig.parameters):
            raise TypeError(f"{sig.try_name}() takes {len(sig.parameters)} arguments ({len(args)} given)")

        record = {p.name: a for p, a in zip(sig.parameters, args, strict=True)} if sig.parameters else None
        try:
            payload = abi.encode_args(record)
        except ArgumentEncodeError as e:
            return CallOutcome(ok=False, error=f"Failed to serialize arguments: {e}")

        try:
            resp = abi.decode_response(await self._transport.dispatch(sig.name, payload))
        except Exception as e:  # noqa: BLE001 - transport boundary
            return CallOutcome(ok=False, error=f"Failed to invoke command: {e}")
        if not resp.ok:
            err = resp.error
            detail = "missing error object in failed response" if err is None else f"{err.type}: {err.message}"
            return CallOutcome(ok=False, error=f"Failed to invoke command: {detail}")

        try:
            value = select_decode(sig.return_type).apply(resp.result)
        except ResponseDecodeError as e:
            return CallOutcome(ok=False, error=str(e))
        return CallOutcome(ok=True, value=value)

    async def call(self, sig: FunctionSignature, *args: Any) -> Any:
        outcome = await self.try_call(sig, *args)
        return outcome.unwrap()

    def bind(self, sig: FunctionSignature) -> "BoundCommand":
        return BoundCommand(client=self, signature=sig)


@dataclass(frozen=True)
class BoundCommand:
    """Both client entry points for one signature: `await cmd(...)` and `await cmd.try_call(...)`."""

    client: BridgeClient
    signature: FunctionSignature

    async def try_call(self, *args: Any) -> CallOutcome:
        return await self.client.try_call(self.signature, *args)

    async def __call__(self, *args: Any) -> Any:
        return await self.client.call(self.signature, *args)
