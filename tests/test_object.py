"""Object validator tests: field order, nesting, refiners and record sources."""
from __future__ import annotations

from collections import namedtuple
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from ursa.errors import ErrorCode, ParseError
from ursa.validation import (
    Int,
    Matches,
    Min,
    MinLength,
    Object,
    ObjectResult,
    Required,
    Strict,
    String,
    WithDefault,
)


@dataclass
class SignupRecord:
    Name: str
    Count: int


class SignupModel(BaseModel):
    Name: str
    Count: int


SignupTuple = namedtuple("SignupTuple", ["Name", "Count"])


@pytest.mark.unit
def test_valid_json_payload(name_count_schema) -> None:
    result = name_count_schema.parse(b'{"Name": "abcdef", "Count": 5}')
    assert result.valid
    assert result.get_string("Name") == "abcdef"
    assert result.get_int("Count") == 5
    assert result.value == {"Name": "abcdef", "Count": 5}


@pytest.mark.unit
def test_short_name_and_absent_count(name_count_schema) -> None:
    result = name_count_schema.parse(b'{"Name": "abc"}')
    assert not result.valid
    assert result.errors == [ParseError(ErrorCode.E2010_TOO_SHORT, path="Name")]
    assert result.is_field_valid("Count")
    assert result.get_int("Count") == 0
    assert result.get_error("Name") == "string too short"
    assert result.get_error("Count") is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "source",
    [
        {"Name": "abcdef", "Count": 5},
        SignupRecord("abcdef", 5),
        SignupModel(Name="abcdef", Count=5),
        SignupTuple("abcdef", 5),
    ],
    ids=["mapping", "dataclass", "pydantic", "namedtuple"],
)
def test_structured_sources(name_count_schema, source) -> None:
    result = name_count_schema.parse(source)
    assert result.valid
    assert result.value == {"Name": "abcdef", "Count": 5}


@pytest.mark.unit
def test_errors_follow_declaration_order() -> None:
    schema = Object(B=String(MinLength(3)), A=Int(Min(10)))
    result = schema.parse({"A": 1, "B": "x"})
    assert [e.path for e in result.errors] == ["B", "A"]


@pytest.mark.unit
def test_one_field_may_report_several_errors() -> None:
    schema = Object(Code=String(MinLength(5), Matches(r"^\d+$")))
    result = schema.parse({"Code": "abc1"})
    assert len(result.errors) == 2
    assert result.get_error("Code") == "string too short, string does not match pattern"


@pytest.mark.unit
def test_missing_field_with_default_is_valid() -> None:
    result = Object(Count=Int(WithDefault(3), Min(1))).parse({})
    assert result.valid
    assert result.get_int("Count") == 3


@pytest.mark.unit
def test_required_field_missing() -> None:
    result = Object(Name=String(Required())).parse({"Other": 1})
    assert result.errors == [ParseError(ErrorCode.E1003_REQUIRED_PROPERTY_MISSING, path="Name")]


@pytest.mark.unit
def test_absent_object() -> None:
    assert Object(Required()).parse(None).errors == [
        ParseError(ErrorCode.E1003_REQUIRED_PROPERTY_MISSING)
    ]
    optional = Object(Count=Int()).parse(None)
    assert optional.valid
    assert optional.value == {"Count": 0}


@pytest.mark.unit
def test_unsupported_shape_fails_each_field() -> None:
    result = Object(A=Int(), B=String()).parse(42)
    assert [(e.path, e.code) for e in result.errors] == [
        ("A", ErrorCode.E1000_INVALID_TYPE),
        ("B", ErrorCode.E1000_INVALID_TYPE),
    ]
    assert "failed to extract value" in result.errors[0].message


@pytest.mark.unit
def test_nested_objects() -> None:
    schema = Object().string("name").object("address", Object(street=String(MinLength(3)), zip=Int()))
    result = schema.parse({"name": "Ann", "address": {"street": "ab", "zip": "12345"}})
    assert [str(e) for e in result.errors] == ["address.street: string too short"]
    address = result.get_field("address")
    assert isinstance(address, ObjectResult)
    assert address.get_int("zip") == 12345
    assert not result.is_field_valid("address")


@pytest.mark.unit
def test_refiners_run_after_fields() -> None:
    def passwords_match(result: ObjectResult):
        if result.get("password") != result.get("confirm"):
            return "passwords do not match"
        return None

    schema = (
        Object()
        .string("password", MinLength(8))
        .string("confirm")
        .refine(passwords_match)
    )
    result = schema.parse({"password": "short", "confirm": "other"})
    assert [e.message for e in result.errors] == ["string too short", "passwords do not match"]
    assert result.errors[-1].code is ErrorCode.E2090_CUSTOM


@pytest.mark.unit
def test_refiner_may_return_several_errors() -> None:
    schema = Object(a=Int()).refine(
        lambda r: [ParseError(ErrorCode.E2090_CUSTOM, "first"), ParseError(ErrorCode.E2090_CUSTOM, "second")]
    )
    assert [e.message for e in schema.parse({"a": 1}).errors] == ["first", "second"]


@pytest.mark.unit
def test_refiner_exception_is_reported() -> None:
    schema = Object(a=Int()).refine(lambda r: 1 / 0)
    result = schema.parse({"a": 1})
    assert [e.code for e in result.errors] == [ErrorCode.E2090_CUSTOM]
    assert isinstance(result.errors[0].causes[0], ZeroDivisionError)


@pytest.mark.unit
def test_duplicate_field_is_build_error() -> None:
    schema = Object().int("A").int("A")
    assert schema.error is not None
    assert schema.error.code is ErrorCode.E9000_INVALID_VALIDATOR_STATE
    assert schema.parse({"A": 1}).errors == [schema.error]


@pytest.mark.unit
def test_unsupported_option_is_build_error() -> None:
    assert Object(Strict()).error is not None


@pytest.mark.unit
def test_builder_methods_do_not_mutate() -> None:
    base = Object().int("A")
    extended = base.string("B").with_max_body_size(1024)
    assert base.field_names == ("A",)
    assert extended.field_names == ("A", "B")
    assert base.max_body_size != 1024
    assert extended.max_body_size == 1024


@pytest.mark.unit
def test_width_builders() -> None:
    schema = Object().int8("a").uint16("b").float32("c").bool("d").uuid("e").time("f")
    result = schema.parse({"a": "5", "b": 7, "c": "1.5", "d": "on"})
    assert result.valid
    assert result.value["a"] == 5
    assert result.value["d"] is True
    assert result.value["f"] is None


@pytest.mark.unit
def test_malformed_json_payload() -> None:
    result = Object(a=Int()).parse(b"{not json")
    assert [e.code for e in result.errors] == [ErrorCode.E3003_MALFORMED_BODY]
    assert result.errors[0].message == "unmarshalling JSON value"


@pytest.mark.unit
def test_json_array_is_rejected() -> None:
    result = Object(a=Int()).parse(b"[1, 2]")
    assert [e.code for e in result.errors] == [ErrorCode.E3003_MALFORMED_BODY]


@pytest.mark.unit
def test_from_state_builds_valid_result() -> None:
    schema = Object().string("name").object("address", Object().string("city"))
    result = schema.from_state({"name": "Ann", "address": {"city": "Oslo"}})
    assert result.valid
    assert result.value == {"name": "Ann", "address": {"city": "Oslo"}}


@pytest.mark.unit
def test_parse_is_idempotent(name_count_schema) -> None:
    payload = {"Name": "abc", "Count": "x"}
    assert name_count_schema.parse(payload) == name_count_schema.parse(payload)


@pytest.mark.unit
def test_to_dict_reports_field_errors(name_count_schema) -> None:
    data = name_count_schema.parse({"Name": "abc"}).to_dict()
    assert data["valid"] is False
    assert data["fields"] == {"Name": ["string too short"]}
    assert data["errors"][0]["field"] == "Name"


@pytest.mark.unit
def test_refiner_messages_in_a_list_become_errors() -> None:
    schema = Object(a=Int()).refine(lambda r: ["bad one", ParseError(ErrorCode.E2090_CUSTOM, "bad two")])
    result = schema.parse({"a": 1})
    assert [(e.code, e.message) for e in result.errors] == [
        (ErrorCode.E2090_CUSTOM, "bad one"),
        (ErrorCode.E2090_CUSTOM, "bad two"),
    ]
    assert [e["message"] for e in result.to_dict()["errors"]] == ["bad one", "bad two"]


@pytest.mark.unit
@pytest.mark.parametrize("outcome, type_name", [(False, "bool"), (0, "int"), ({"a": "x"}, "dict")])
def test_unexpected_refiner_outcome_is_reported(outcome, type_name: str) -> None:
    result = Object(a=Int()).refine(lambda r: outcome).parse({"a": 1})
    assert [(e.code, e.message) for e in result.errors] == [
        (ErrorCode.E2090_CUSTOM, f"refiner returned {type_name}")
    ]


@pytest.mark.unit
def test_refiner_list_with_foreign_item() -> None:
    result = Object(a=Int()).refine(lambda r: ["fine", 42]).parse({"a": 1})
    assert [e.message for e in result.errors] == ["fine", "refiner returned int"]


@pytest.fixture
def mixed_result() -> ObjectResult:
    schema = (
        Object()
        .int("Count")
        .float64("Ratio")
        .float64("Huge")
        .string("Flag")
        .string("Digits")
        .string("Word")
        .int("Zero")
    )
    return schema.from_state(
        {"Count": 5, "Ratio": 2.5, "Huge": 1e20, "Flag": "true", "Digits": "-42", "Word": "yes", "Zero": 0}
    )


@pytest.mark.unit
def test_get_string_formats_numbers(mixed_result: ObjectResult) -> None:
    assert mixed_result.get_string("Count") == "5"
    assert mixed_result.get_string("Ratio") == "2.5"
    assert mixed_result.get_string("Huge") == "100000000000000000000"
    assert mixed_result.get_string("Missing") == ""


@pytest.mark.unit
def test_get_int_truncates_and_parses(mixed_result: ObjectResult) -> None:
    assert mixed_result.get_int("Ratio") == 2
    assert mixed_result.get_int("Digits") == -42
    assert mixed_result.get_int("Word") == 0
    assert mixed_result.get_int("Flag") == 0


@pytest.mark.unit
def test_get_bool_reads_text_and_numbers(mixed_result: ObjectResult) -> None:
    assert mixed_result.get_bool("Flag") is True
    assert mixed_result.get_bool("Count") is True
    assert mixed_result.get_bool("Zero") is False
    assert mixed_result.get_bool("Ratio") is True
    assert mixed_result.get_bool("Word") is False
    assert mixed_result.get_bool("Missing") is False
