from __future__ import annotations

import argparse
import importlib.metadata
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from .config import GeneratorOptions, options_from_env
from .errors import BridgeGenError


def _inspect(source: str, opts: GeneratorOptions) -> list[dict[str, Any]]:
    from .client import client_parameters
    from .decode import select_decode
    from .parse import find_bridged_functions
    from .typedesc import has_borrowed_view, iter_borrowed_views, render_type

    out = []
    for item in find_bridged_functions(source, marker=opts.marker):
        sig = item.signature
        client_params = client_parameters(sig, opts)
        out.append(
            {
                "name": sig.name,
                "visibility": sig.visibility,
                "is_async": sig.is_async,
                "try_name": sig.try_name,
                "record": sig.args_record_name if sig.parameters else None,
                "scope_tag": opts.scope_tag if sig.needs_scope_tag else None,
                "parameters": [
                    {
                        "name": p.name,
                        "type": render_type(p.type),
                        "client_type": render_type(cp.type),
                        "borrowed": has_borrowed_view(p.type),
                        "scopes": [v.scope for v in iter_borrowed_views(cp.type)],
                    }
                    for p, cp in zip(sig.parameters, client_params, strict=True)
                ],
                "return_type": render_type(sig.returns),
                "decode": select_decode(sig.return_type).strategy.value,
            }
        )
    return out


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="bridgegen")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print bridgegen version.")

    p_expand = sub.add_parser(
        "expand",
        help="Replace every marked function in a Rust source file with its server and client code.",
    )
    p_expand.add_argument("input", help="Rust source file.")
    p_expand.add_argument("--out", default=None, help="Output file path (default: stdout).")

    p_inspect = sub.add_parser("inspect", help="Print the analysis of every marked function as JSON.")
    p_inspect.add_argument("input", help="Rust source file.")

    for p in (p_expand, p_inspect):
        p.add_argument("--marker", default=None, help="Marker attribute name (default: tauri_bridge).")
        p.add_argument("--scope-tag", default=None, help="Lifetime shared by client references (default: 'a).")
        p.add_argument(
            "--fallible-invoke",
            action="store_true",
            default=None,
            help="Treat the invoke function as returning a Result.",
        )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("bridgegen"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return

    try:
        opts = options_from_env()
        overrides = {
            "marker": args.marker,
            "scope_tag": args.scope_tag,
            "fallible_invoke": args.fallible_invoke,
        }
        opts = replace(opts, **{k: v for k, v in overrides.items() if v is not None})
        source = Path(args.input).read_text(encoding="utf-8")

        if args.cmd == "expand":
            from .generate import expand_source

            expanded = expand_source(source, opts)
            if args.out is None:
                sys.stdout.write(expanded)
            else:
                out = Path(args.out)
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(expanded, encoding="utf-8")
            return

        if args.cmd == "inspect":
            print(json.dumps(_inspect(source, opts), indent=2))
            return
    except BridgeGenError as e:
        raise SystemExit(f"bridgegen: {e}") from None
    except OSError as e:
        raise SystemExit(f"bridgegen: {e}") from None
