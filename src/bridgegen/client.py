"""Client-side code generation: argument record plus `try_<name>` and `<name>` stubs.

Generated for `pub fn greet(name: &str) -> String`::

    #[derive(serde::Serialize, serde::Deserialize)]
    struct GreetArgs<'a> {
        name: &'a str,
    }

    pub async fn try_greet<'a>(name: &'a str) -> Result<String, String> { ... }

    pub async fn greet<'a>(name: &'a str) -> String {
        try_greet(name).await.unwrap()
    }
"""

from __future__ import annotations

import logging

from .config import GeneratorOptions
from .decode import select_decode
from .signature import FunctionSignature, Parameter
from .typedesc import iter_borrowed_views, render_type, rewrite_scope

logger = logging.getLogger(__name__)

INDENT = "    "


def client_parameters(sig: FunctionSignature, options: GeneratorOptions) -> list[Parameter]:
    """Parameters as they appear in the record and both client functions."""
    if not sig.needs_scope_tag:
        return list(sig.parameters)
    return [
        Parameter(name=p.name, type=rewrite_scope(p.type, options.scope_tag)) for p in sig.parameters
    ]


def _record_derives(params: list[Parameter]) -> str:
    # serde cannot deserialize into `&mut T`.
    has_mut = any(v.mutable for p in params for v in iter_borrowed_views(p.type))
    if has_mut:
        return "serde::Serialize"
    return "serde::Serialize, serde::Deserialize"


def render_args_record(sig: FunctionSignature, options: GeneratorOptions | None = None) -> list[str]:
    """Lines of the arguments record; empty when the function takes no parameters."""
    opts = options or GeneratorOptions()
    if not sig.parameters:
        return []
    params = client_parameters(sig, opts)
    generics = f"<{opts.scope_tag}>" if sig.needs_scope_tag else ""
    lines = []
    if opts.client_cfg is not None:
        lines.append(f"#[cfg({opts.client_cfg})]")
    lines.append(f"#[derive({_record_derives(params)})]")
    lines.append(f"struct {sig.args_record_name}{generics} {{")
    for p in params:
        lines.append(f"{INDENT}{p.name}: {render_type(p.type)},")
    lines.append("}")
    return lines


def _fn_head(sig: FunctionSignature, name: str, params: list[Parameter], options: GeneratorOptions) -> str:
    vis = f"{sig.visibility} " if sig.visibility else ""
    generics = f"<{options.scope_tag}>" if sig.needs_scope_tag else ""
    plist = ", ".join(f"{p.name}: {render_type(p.type)}" for p in params)
    return f"{vis}async fn {name}{generics}({plist})"


def render_try_fn(sig: FunctionSignature, options: GeneratorOptions | None = None) -> list[str]:
    opts = options or GeneratorOptions()
    params = client_parameters(sig, opts)
    ret = render_type(sig.returns)
    template = select_decode(sig.return_type)

    if sig.parameters:
        inits = ", ".join(p.name for p in params)
        value = f"&{sig.args_record_name} {{ {inits} }}"
    else:
        value = f"&{opts.null_value}"

    lines = []
    if opts.client_cfg is not None:
        lines.append(f"#[cfg({opts.client_cfg})]")
    lines.append(f"{_fn_head(sig, sig.try_name, params, opts)} -> Result<{ret}, String> {{")
    lines.append(f"{INDENT}let args = {opts.encode_fn}({value})")
    lines.append(f'{INDENT}{INDENT}.map_err(|e| format!("Failed to serialize arguments: {{}}", e))?;')
    # The command is dispatched under the declared name, not the try_ name.
    if opts.fallible_invoke:
        lines.append(f'{INDENT}let result = {opts.invoke_path}("{sig.name}", args)')
        lines.append(f"{INDENT}{INDENT}.await")
        lines.append(f'{INDENT}{INDENT}.map_err(|e| format!("Failed to invoke command: {{:?}}", e))?;')
    else:
        lines.append(f'{INDENT}let result = {opts.invoke_path}("{sig.name}", args).await;')
    lines.extend(INDENT + ln for ln in template.render("result", options=opts))
    lines.append("}")
    return lines


def render_convenience_fn(sig: FunctionSignature, options: GeneratorOptions | None = None) -> list[str]:
    opts = options or GeneratorOptions()
    params = client_parameters(sig, opts)
    ret = "" if sig.return_type is None else f" -> {render_type(sig.return_type)}"
    forwards = ", ".join(p.name for p in params)

    lines = []
    if opts.client_cfg is not None:
        lines.append(f"#[cfg({opts.client_cfg})]")
    lines.append(f"{_fn_head(sig, sig.name, params, opts)}{ret} {{")
    lines.append(f"{INDENT}{sig.try_name}({forwards}).await.unwrap()")
    lines.append("}")
    return lines


def generate_client(sig: FunctionSignature, options: GeneratorOptions | None = None) -> str:
    """Generate the client artifact for `sig`."""
    opts = options or GeneratorOptions()
    logger.debug(
        "client stub for %s: record=%s scope_tag=%s",
        sig.name,
        sig.args_record_name if sig.parameters else None,
        opts.scope_tag if sig.needs_scope_tag else None,
    )
    blocks = [
        render_args_record(sig, opts),
        render_try_fn(sig, opts),
        render_convenience_fn(sig, opts),
    ]
    return "\n\n".join("\n".join(b) for b in blocks if b) + "\n"
