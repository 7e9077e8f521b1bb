from __future__ import annotations

import asyncio

import bridgegen
from bridgegen.runtime import BridgeClient, LoopbackTransport

SOURCE = """
#[tauri_bridge]
pub fn greet(name: &str) -> String {
    format!("Hello, {}!", name)
}
"""


def main() -> None:
    # Print the generated Rust: the command module plus the wasm client stubs.
    print(bridgegen.expand_source(SOURCE))

    # Drive the same signature from Python against an in-process command table.
    sig = bridgegen.parse_function(SOURCE.replace("#[tauri_bridge]", ""))
    transport = LoopbackTransport()
    transport.register("greet", lambda name: f"Hello, {name}!")

    greet = BridgeClient(transport).bind(sig)
    print("greet('World') ->", asyncio.run(greet("World")))
    print("try_greet('Ada') ->", asyncio.run(greet.try_call("Ada")))


if __name__ == "__main__":
    main()
