"""Server-side code generation: the function re-emitted as a named command."""

from __future__ import annotations

from .config import GeneratorOptions
from .signature import FunctionSignature
from .typedesc import render_type

INDENT = "    "


def server_module_name(sig: FunctionSignature, options: GeneratorOptions) -> str:
    return f"{options.server_module_prefix}{sig.name}"


def inner_visibility(visibility: str) -> str:
    """Visibility for the function inside the isolation module.

    The function lives one module deeper than it was written, so it must be
    visible at least to the parent for the re-export to resolve.
    """
    if visibility in ("", "pub(self)"):
        return "pub(super)"
    if visibility == "pub(super)":
        return "pub(in super::super)"
    if visibility.startswith("pub(in ") and visibility.endswith(")"):
        path = visibility[len("pub(in ") : -1].strip()
        if path == "self" or path.startswith("self::"):
            return f"pub(in super{path[len('self'):]})"
        if path == "super" or path.startswith("super::"):
            return f"pub(in super::{path})"
    return visibility


def reindent(text: str, prefix: str) -> list[str]:
    """Split verbatim text into lines, prefixing every line after the first."""
    lines = text.splitlines()
    return [lines[0], *[(prefix + ln) if ln.strip() else "" for ln in lines[1:]]]


def render_server_fn_header(sig: FunctionSignature, *, visibility: str) -> str:
    params = ", ".join(
        f"{'mut ' if p.mutable_binding else ''}{p.name}: {render_type(p.type)}" for p in sig.parameters
    )
    head = f"{visibility} " if visibility else ""
    if sig.is_async:
        head += "async "
    head += f"fn {sig.name}{sig.generics}({params})"
    if sig.return_type is not None:
        head += f" -> {render_type(sig.return_type)}"
    if sig.where_clause:
        head += f" {sig.where_clause}"
    return head


def generate_server(sig: FunctionSignature, options: GeneratorOptions | None = None) -> str:
    """Generate the server artifact for `sig`.

    The function is placed in its own module so that whatever the command
    attribute expands to stays out of the caller's namespace; only the function
    name is re-exported.
    """
    opts = options or GeneratorOptions()
    mod_name = server_module_name(sig, opts)

    lines: list[str] = []
    if opts.server_cfg is not None:
        lines.append(f"#[cfg({opts.server_cfg})]")
    lines.append(f"mod {mod_name} {{")
    lines.append(f"{INDENT}use super::*;")
    lines.append("")
    for meta in sig.attached_metadata:
        lines.extend(INDENT + ln if ln.strip() else "" for ln in reindent(meta, INDENT))
    lines.append(f"{INDENT}#[{opts.command_attribute}]")
    header = render_server_fn_header(sig, visibility=inner_visibility(sig.visibility))
    body = reindent(sig.body, INDENT)
    lines.append(f"{INDENT}{header} {body[0]}")
    lines.extend(body[1:])
    lines.append("}")
    lines.append("")
    if opts.server_cfg is not None:
        lines.append(f"#[cfg({opts.server_cfg})]")
    vis = f"{sig.visibility} " if sig.visibility else ""
    lines.append(f"{vis}use {mod_name}::{sig.name};")
    return "\n".join(lines) + "\n"
