from __future__ import annotations

import pytest

from bridgegen.decode import NUMERIC_TYPES, DecodeStrategy, select_decode
from bridgegen.errors import ResponseDecodeError
from bridgegen.parse import parse_type


@pytest.mark.parametrize(
    ("text", "strategy"),
    [
        ("String", DecodeStrategy.STRING),
        ("()", DecodeStrategy.UNIT),
        ("bool", DecodeStrategy.BOOL),
        ("UserData", DecodeStrategy.STRUCTURED),
        ("Vec<String>", DecodeStrategy.STRUCTURED),
        ("Option<bool>", DecodeStrategy.STRUCTURED),
        ("crate::models::UserProfile", DecodeStrategy.STRUCTURED),
        ("Result<u32, String>", DecodeStrategy.STRUCTURED),
    ],
)
def test_select_decode_by_return_type(text: str, strategy: DecodeStrategy):
    assert select_decode(parse_type(text)).strategy is strategy


@pytest.mark.parametrize("name", sorted(NUMERIC_TYPES))
def test_every_fixed_width_numeric_type_uses_number_decode(name: str):
    assert select_decode(parse_type(name)).strategy is DecodeStrategy.NUMBER


def test_no_return_value_is_unit():
    t = select_decode(None)
    assert t.strategy is DecodeStrategy.UNIT
    assert t.render() == ["Ok(())"]
    assert t.apply("anything at all") is None


def test_selection_is_textual_not_semantic():
    # A fully qualified String is not textually `String`.
    assert select_decode(parse_type("std::string::String")).strategy is DecodeStrategy.STRUCTURED
    assert select_decode(parse_type("( )")).strategy is DecodeStrategy.UNIT


def test_rendered_expressions():
    assert select_decode(parse_type("String")).render() == [
        'result.as_string().ok_or_else(|| "Expected string response".to_string())'
    ]
    assert select_decode(parse_type("bool")).render("r") == [
        'r.as_bool().ok_or_else(|| "Expected bool response".to_string())'
    ]
    assert select_decode(parse_type("i32")).render() == [
        "serde_wasm_bindgen::from_value(result)",
        '    .map_err(|e| format!("Failed to deserialize number: {}", e))',
    ]
    assert select_decode(parse_type("UserData")).render()[1] == (
        '    .map_err(|e| format!("Failed to deserialize response: {}", e))'
    )


def test_accessor_strategies_reject_wrong_shapes():
    with pytest.raises(ResponseDecodeError, match="^Expected string response$"):
        select_decode(parse_type("String")).apply(42)
    with pytest.raises(ResponseDecodeError, match="^Expected bool response$"):
        select_decode(parse_type("bool")).apply("true")
    assert select_decode(parse_type("String")).apply("hi") == "hi"
    assert select_decode(parse_type("bool")).apply(False) is False


def test_generic_strategies_validate_against_type():
    assert select_decode(parse_type("u8")).apply(255) == 255
    with pytest.raises(ResponseDecodeError, match="^Failed to deserialize number: int out of range for u8$"):
        select_decode(parse_type("u8")).apply(256)
    with pytest.raises(ResponseDecodeError, match="^Failed to deserialize number: expected int"):
        select_decode(parse_type("i64")).apply("12")
    assert select_decode(parse_type("f64")).apply(2) == 2.0

    structured = select_decode(parse_type("Vec<(String, Option<u32>)>"))
    assert structured.apply([["a", 1], ["b", None]]) == [("a", 1), ("b", None)]
    with pytest.raises(ResponseDecodeError, match="^Failed to deserialize response: "):
        structured.apply([["a", -1]])

