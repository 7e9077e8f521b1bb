from __future__ import annotations

from bridgegen import GeneratorOptions, expand_source, generate, parse_function


def test_generate_renders_server_then_client():
    out = generate(parse_function("pub fn add(a: i32, b: i32) -> i32 { a + b }"))
    assert out.server.startswith("#[cfg(all(")
    assert out.client.startswith('#[cfg(target_arch = "wasm32")]\n')
    assert out.render() == out.server + "\n" + out.client


def test_expand_source_replaces_only_marked_items():
    source = (
        "use serde::Serialize;\n"
        "\n"
        "#[tauri_bridge]\n"
        "pub fn add(a: i32, b: i32) -> i32 { a + b }\n"
        "\n"
        "fn untouched() {}\n"
    )
    expanded = expand_source(source)
    assert expanded.startswith("use serde::Serialize;\n\n#[cfg(all(")
    assert expanded.endswith("\n\nfn untouched() {}\n")
    assert "#[tauri_bridge]" not in expanded
    assert "mod __tauri_cmd_add {" in expanded
    assert "pub async fn try_add(a: i32, b: i32) -> Result<i32, String> {" in expanded


def test_expand_source_without_marked_items_is_identity():
    source = "fn main() {}\n"
    assert expand_source(source) is source


def test_expand_source_indents_nested_items():
    source = (
        "mod api {\n"
        "    use super::*;\n"
        "\n"
        "    #[tauri_bridge]\n"
        "    pub fn ping() -> bool {\n"
        "        true\n"
        "    }\n"
        "}\n"
    )
    lines = expand_source(source).splitlines()
    assert lines[3] == '    #[cfg(all(feature = "backend", not(target_arch = "wasm32")))]'
    assert "    mod __tauri_cmd_ping {" in lines
    assert "        pub fn ping() -> bool {" in lines
    assert "            true" in lines
    assert "    pub async fn try_ping() -> Result<bool, String> {" in lines
    assert lines[-1] == "}"


def test_expand_source_honours_custom_marker():
    source = "#[bridge]\npub fn hi() {}\n#[tauri_bridge]\npub fn other() {}\n"
    expanded = expand_source(source, GeneratorOptions(marker="bridge"))
    assert "mod __tauri_cmd_hi" in expanded
    assert "#[tauri_bridge]\npub fn other() {}\n" in expanded
