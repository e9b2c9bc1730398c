from typing import Annotated

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from servicekit.validation import SchemaValidator, ValidationError, ValidationFailure


class BookingCreate(BaseModel):
    provider_id: str
    slots: Annotated[int, Field(gt=0)]


def test_model_schema_parses_value():
    result = SchemaValidator().validate({"provider_id": "p1", "slots": "2"}, BookingCreate)
    assert result.valid
    assert result.value == BookingCreate(provider_id="p1", slots=2)
    assert result.errors == ()


def test_model_schema_collects_every_error():
    result = SchemaValidator().validate({"slots": 0}, BookingCreate)
    assert not result.valid
    assert result.value == {"slots": 0}
    assert len(result.errors) == 2
    assert any(message.startswith("provider_id:") for message in result.errors)
    assert any(message.startswith("slots:") for message in result.errors)


def test_annotation_and_type_adapter_schemas():
    validator = SchemaValidator()
    assert validator.validate("42", int).value == 42
    assert not validator.validate("abc", int).valid
    assert validator.validate([1, "2"], TypeAdapter(list[int])).value == [1, 2]
    assert validator.validate("ab", Annotated[str, Field(min_length=2)]).valid


def test_top_level_error_has_no_location():
    result = SchemaValidator().validate("abc", int)
    assert result.errors[0] == "Input should be a valid integer, unable to parse string as an integer"


def test_unusable_schema_is_a_failure_not_an_exception():
    class NotPydantic:
        def __init__(self, value):
            self.value = value

    result = SchemaValidator().validate("x", NotPydantic)
    assert not result.valid
    assert result.errors[0].startswith("invalid schema:")


def test_validation_error_lists_every_failure():
    error = ValidationError(
        [
            ValidationFailure(0, "data", ("slots: too small",)),
            ValidationFailure(1, "user_id", ("invalid uuid", "too short")),
        ],
        method="BookingService:create",
    )
    assert error.message == "Validation failed: data: slots: too small; user_id: invalid uuid, too short"
    assert error.param_names == ["data", "user_id"]
    assert error.context["method"] == "BookingService:create"
    assert error.code == "VAL_ARGUMENTS_INVALID"


class SlotRequest(BaseModel):
    slot: str

    @field_validator("slot")
    @classmethod
    def label_slot(cls, v):
        return {"am": "morning"}[v]


def test_errors_raised_by_custom_validators_become_failures():
    validator = SchemaValidator()
    assert validator.validate({"slot": "am"}, SlotRequest).value == SlotRequest(slot="morning")

    result = validator.validate({"slot": "pm"}, SlotRequest)
    assert not result.valid
    assert result.value == {"slot": "pm"}
    assert result.errors == ("KeyError: 'pm'",)
