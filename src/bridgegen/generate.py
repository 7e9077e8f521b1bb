from __future__ import annotations

import logging
from dataclasses import dataclass

from .backend import generate_server
from .client import generate_client
from .config import GeneratorOptions
from .parse import find_bridged_functions
from .signature import FunctionSignature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BridgeOutput:
    server: str
    client: str

    def render(self) -> str:
        return f"{self.server}\n{self.client}"


def generate(sig: FunctionSignature, options: GeneratorOptions | None = None) -> BridgeOutput:
    """Generate the server and client artifacts for one function."""
    opts = options or GeneratorOptions()
    logger.debug("generating bridge for %s", sig.name)
    return BridgeOutput(server=generate_server(sig, opts), client=generate_client(sig, opts))


def expand_source(source: str, options: GeneratorOptions | None = None) -> str:
    """Replace every function marked with the bridge attribute by its generated code."""
    opts = options or GeneratorOptions()
    items = find_bridged_functions(source, marker=opts.marker)
    if not items:
        return source

    out: list[str] = []
    cursor = 0
    for item in items:
        out.append(source[cursor : item.start])
        line_start = source.rfind("\n", 0, item.start) + 1
        indent = source[line_start : item.start]
        if indent.strip():
            indent = ""
        code = generate(item.signature, opts).render().rstrip("\n")
        out.append("\n".join((indent + ln if ln and i else ln) for i, ln in enumerate(code.split("\n"))))
        cursor = item.end
    out.append(source[cursor:])
    logger.info("expanded %d bridged function(s)", len(items))
    return "".join(out)
