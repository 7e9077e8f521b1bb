from __future__ import annotations

from bridgegen.client import generate_client, render_args_record
from bridgegen.config import GeneratorOptions
from bridgegen.parse import parse_function


def _norm(s: str) -> str:
    return " ".join(s.split())


def test_scenario_greet_borrowed_text_to_text():
    sig = parse_function(
        """
        pub fn greet(name: &str) -> String {
            format!("Hello, {}!", name)
        }
        """
    )
    client = generate_client(sig)
    assert client == (
        '#[cfg(target_arch = "wasm32")]\n'
        "#[derive(serde::Serialize, serde::Deserialize)]\n"
        "struct GreetArgs<'a> {\n"
        "    name: &'a str,\n"
        "}\n"
        "\n"
        '#[cfg(target_arch = "wasm32")]\n'
        "pub async fn try_greet<'a>(name: &'a str) -> Result<String, String> {\n"
        "    let args = serde_wasm_bindgen::to_value(&GreetArgs { name })\n"
        '        .map_err(|e| format!("Failed to serialize arguments: {}", e))?;\n'
        '    let result = crate::invoke("greet", args).await;\n'
        '    result.as_string().ok_or_else(|| "Expected string response".to_string())\n'
        "}\n"
        "\n"
        '#[cfg(target_arch = "wasm32")]\n'
        "pub async fn greet<'a>(name: &'a str) -> String {\n"
        "    try_greet(name).await.unwrap()\n"
        "}\n"
    )


def test_scenario_no_parameters_sends_null_payload():
    sig = parse_function('pub fn get_version() -> String { "1.0.0".to_string() }')
    client = _norm(generate_client(sig))
    assert "struct GetVersionArgs" not in client
    assert render_args_record(sig) == []
    assert "serde_wasm_bindgen::to_value(&serde_json::Value::Null)" in client
    assert "pub async fn try_get_version() -> Result<String, String>" in client
    assert "pub async fn get_version() -> String" in client
    assert "try_get_version().await.unwrap()" in client


def test_scenario_no_return_value():
    sig = parse_function('pub fn do_something(value: i32) { println!("{}", value); }')
    client = _norm(generate_client(sig))
    assert "struct DoSomethingArgs { value: i32, }" in client
    assert "pub async fn try_do_something(value: i32) -> Result<(), String>" in client
    assert "Ok(())" in client
    assert "pub async fn do_something(value: i32) {" in client


def test_scenario_mixed_borrowed_and_owned_parameters():
    sig = parse_function(
        """
        pub fn process(name: &str, count: u32, data: &str) -> String {
            format!("{}: {} x {}", name, data, count)
        }
        """
    )
    client = _norm(generate_client(sig))
    assert "struct ProcessArgs<'a> { name: &'a str, count: u32, data: &'a str, }" in client
    assert "&ProcessArgs { name, count, data }" in client
    assert "pub async fn try_process<'a>(name: &'a str, count: u32, data: &'a str)" in client
    assert "try_process(name, count, data).await.unwrap()" in client


def test_owned_parameters_get_no_scope_tag():
    sig = parse_function("pub fn add(a: i32, b: i32) -> i32 { a + b }")
    client = _norm(generate_client(sig))
    assert "struct AddArgs { a: i32, b: i32, }" in client
    assert "pub async fn try_add(a: i32, b: i32) -> Result<i32, String>" in client
    assert 'format!("Failed to deserialize number: {}", e)' in client
    assert "'a" not in client


def test_nested_borrow_tags_every_reference_site():
    sig = parse_function(
        "pub fn tag_all(items: Vec<&str>, pair: (u8, &[u8]), fixed: &'static str, nested: &&str) {}"
    )
    client = _norm(generate_client(sig))
    assert (
        "struct TagAllArgs<'a> { items: Vec<&'a str>, pair: (u8, &'a [u8]), "
        "fixed: &'static str, nested: &'a &'a str, }"
    ) in client


def test_mutable_borrow_record_is_serialize_only():
    sig = parse_function("pub fn fill(buf: &mut Vec<u8>) {}")
    lines = render_args_record(sig)
    assert "#[derive(serde::Serialize)]" in lines
    assert "    buf: &'a mut Vec<u8>," in lines


def test_client_is_async_and_keeps_visibility_even_for_sync_private_source():
    sig = parse_function("fn secret(token: String) -> bool { !token.is_empty() }")
    client = _norm(generate_client(sig))
    assert "async fn try_secret(token: String) -> Result<bool, String>" in client
    assert "pub" not in client
    assert "result.as_bool().ok_or_else" in client


def test_client_generation_honours_options():
    opts = GeneratorOptions(
        scope_tag="'req",
        invoke_path="crate::bridge::invoke",
        fallible_invoke=True,
        client_cfg=None,
    )
    sig = parse_function("pub async fn lookup(key: &str) -> Option<String> { None }")
    client = generate_client(sig, opts)
    assert "#[cfg(" not in client
    assert "struct LookupArgs<'req> {" in client
    assert "pub async fn try_lookup<'req>(key: &'req str) -> Result<Option<String>, String> {" in client
    assert '    let result = crate::bridge::invoke("lookup", args)\n        .await\n' in client
    assert 'format!("Failed to invoke command: {:?}", e))?;' in client
    assert 'format!("Failed to deserialize response: {}", e)' in client
