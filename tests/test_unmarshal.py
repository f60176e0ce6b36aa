"""Unmarshalling object results into dicts, dataclasses, models and objects."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from ursa.errors import ErrorCode, ValidationError
from ursa.validation import Int, MinLength, Object, String

SIGNUP = Object().string("Name", MinLength(5)).int("Count")


@dataclass
class Signup:
    name: str = field(default="", metadata={"json": "Name"})
    count: int = field(default=0, metadata={"form": "Count"})


@dataclass(frozen=True)
class FrozenSignup:
    name: str = field(default="", metadata={"json": "Name"})
    count: int = field(default=0, metadata={"json": "Count"})


@dataclass
class Address:
    street: str = ""
    zip: int = 0


@dataclass
class Customer:
    name: str = ""
    address: Optional[Address] = None


class SignupModel(BaseModel):
    name: str = Field(alias="Name")
    count: int = Field(alias="Count")


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    Name: str = ""
    Count: int = 0


class Plain:
    Name: str
    Count: int


@dataclass
class Prioritized:
    value: str = field(default="", metadata={"json": "from_json", "query": "from_query"})


@pytest.fixture
def valid_result():
    result = SIGNUP.parse({"Name": "abcdef", "Count": "5"})
    assert result.valid
    return result


@pytest.mark.unit
def test_into_dict(valid_result) -> None:
    target = {"extra": True}
    assert valid_result.unmarshal(target) is target
    assert target == {"extra": True, "Name": "abcdef", "Count": 5}


@pytest.mark.unit
def test_into_dataclass_class(valid_result) -> None:
    assert valid_result.unmarshal(Signup) == Signup(name="abcdef", count=5)


@pytest.mark.unit
def test_into_dataclass_instance_in_place(valid_result) -> None:
    target = Signup()
    assert valid_result.unmarshal(target) is target
    assert target == Signup(name="abcdef", count=5)


@pytest.mark.unit
def test_frozen_dataclass_is_copied(valid_result) -> None:
    original = FrozenSignup()
    copy = valid_result.unmarshal(original)
    assert copy == FrozenSignup(name="abcdef", count=5)
    assert original == FrozenSignup()


@pytest.mark.unit
def test_into_pydantic_model(valid_result) -> None:
    model = valid_result.unmarshal(SignupModel)
    assert (model.name, model.count) == ("abcdef", 5)


@pytest.mark.unit
def test_frozen_pydantic_instance_is_copied(valid_result) -> None:
    original = FrozenModel()
    copy = valid_result.unmarshal(original)
    assert (copy.Name, copy.Count) == ("abcdef", 5)
    assert original.Name == ""


@pytest.mark.unit
def test_into_plain_annotated_class(valid_result) -> None:
    plain = valid_result.unmarshal(Plain)
    assert (plain.Name, plain.Count) == ("abcdef", 5)


@pytest.mark.unit
def test_nested_object_builds_nested_record() -> None:
    schema = Object().string("name").object("address", Object(street=String(), zip=Int()))
    result = schema.parse({"name": "Ada", "address": {"street": "Main", "zip": "12345"}})
    customer = result.unmarshal(Customer)
    assert customer == Customer(name="Ada", address=Address(street="Main", zip=12345))


@pytest.mark.unit
def test_first_present_alias_wins() -> None:
    both = Object().string("from_json").string("from_query").parse(
        {"from_json": "j", "from_query": "q"}
    )
    assert both.unmarshal(Prioritized).value == "j"

    query_only = Object().string("from_query").parse({"from_query": "q"})
    assert query_only.unmarshal(Prioritized).value == "q"


@pytest.mark.unit
def test_invalid_result_writes_nothing() -> None:
    result = SIGNUP.parse({"Name": "abc", "Count": "5"})
    target: dict = {}
    with pytest.raises(ValidationError) as excinfo:
        result.unmarshal(target)
    assert target == {}
    assert excinfo.value.message == "cannot unmarshal invalid value"
    assert excinfo.value.errors[0].code is ErrorCode.E2010_TOO_SHORT


@pytest.mark.unit
def test_model_rejecting_values_raises_validation_error() -> None:
    result = Object().string("Name").parse({})
    with pytest.raises(ValidationError) as excinfo:
        result.unmarshal(SignupModel)
    assert excinfo.value.errors[0].code is ErrorCode.E1001_INVALID_VALUE
