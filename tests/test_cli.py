from __future__ import annotations

import json

import pytest

from bridgegen.cli import main

SOURCE = (
    "#[tauri_bridge]\n"
    "pub fn greet(name: &str) -> String {\n"
    '    format!("Hello, {}!", name)\n'
    "}\n"
    "\n"
    "#[tauri_bridge]\n"
    "pub fn get_version() -> String {\n"
    '    "1.0.0".to_string()\n'
    "}\n"
)


def test_expand_writes_to_stdout(tmp_path, capsys):
    src = tmp_path / "lib.rs"
    src.write_text(SOURCE, encoding="utf-8")
    main(["expand", str(src)])
    out = capsys.readouterr().out
    assert "mod __tauri_cmd_greet {" in out
    assert "pub async fn try_get_version() -> Result<String, String> {" in out


def test_expand_writes_out_file(tmp_path):
    src = tmp_path / "lib.rs"
    src.write_text(SOURCE, encoding="utf-8")
    dst = tmp_path / "gen" / "lib.rs"
    main(["expand", str(src), "--out", str(dst), "--scope-tag", "'s", "--fallible-invoke"])
    text = dst.read_text(encoding="utf-8")
    assert "struct GreetArgs<'s> {" in text
    assert 'format!("Failed to invoke command: {:?}", e))?;' in text


def test_inspect_reports_analysis(tmp_path, capsys):
    src = tmp_path / "lib.rs"
    src.write_text(SOURCE, encoding="utf-8")
    main(["inspect", str(src)])
    report = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in report] == ["greet", "get_version"]
    greet = report[0]
    assert greet["try_name"] == "try_greet"
    assert greet["record"] == "GreetArgs"
    assert greet["scope_tag"] == "'a"
    assert greet["decode"] == "string"
    assert greet["parameters"] == [
        {"name": "name", "type": "&str", "client_type": "&'a str", "borrowed": True, "scopes": ["'a"]}
    ]
    assert report[1]["record"] is None
    assert report[1]["scope_tag"] is None


def test_env_overrides_apply_to_cli(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("BRIDGEGEN_SCOPE_TAG", "'env")
    src = tmp_path / "lib.rs"
    src.write_text(SOURCE, encoding="utf-8")
    main(["inspect", str(src)])
    assert json.loads(capsys.readouterr().out)[0]["scope_tag"] == "'env"


def test_errors_exit_with_message(tmp_path):
    src = tmp_path / "lib.rs"
    src.write_text("#[tauri_bridge]\nfn bad(&self) {}\n", encoding="utf-8")
    with pytest.raises(SystemExit, match="^bridgegen: .*receiver"):
        main(["expand", str(src)])
    with pytest.raises(SystemExit, match="^bridgegen: "):
        main(["inspect", str(tmp_path / "missing.rs")])
    with pytest.raises(SystemExit, match="^bridgegen: .*scope_tag"):
        main(["inspect", str(src), "--scope-tag", "'static"])


def test_version(capsys):
    main(["version"])
    assert capsys.readouterr().out.strip()
