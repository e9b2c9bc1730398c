from typing import Annotated
from uuid import UUID

import pytest
from pydantic import BaseModel, Field, field_validator
from structlog.testing import capture_logs

from servicekit.interceptors import ValidationRule, configure_interceptors, validate, with_validation
from servicekit.validation import ValidationError


class BookingCreate(BaseModel):
    provider_id: str
    slots: Annotated[int, Field(gt=0)]


class BookingService:
    def __init__(self):
        self.received = []

    @validate(
        ValidationRule(0, BookingCreate, "data"),
        ValidationRule(1, UUID),
    )
    async def create(self, data, user_id, note=None):
        self.received.append((data, user_id))
        return "created"

    @validate(ValidationRule(0, Annotated[int, Field(gt=0)], "amount"), throw_on_error=False)
    async def refund(self, amount):
        self.received.append(amount)
        return amount


@pytest.mark.asyncio
async def test_valid_arguments_are_replaced_by_parsed_values():
    service = BookingService()
    user_id = "12345678-1234-5678-1234-567812345678"
    assert await service.create({"provider_id": "p1", "slots": "2"}, user_id) == "created"
    data, parsed_user_id = service.received[0]
    assert data == BookingCreate(provider_id="p1", slots=2)
    assert parsed_user_id == UUID(user_id)


@pytest.mark.asyncio
async def test_keyword_arguments_are_validated_too():
    service = BookingService()
    with pytest.raises(ValidationError) as exc:
        await service.create({"provider_id": "p1", "slots": 1}, user_id="nope")
    assert exc.value.param_names == ["user_id"]


@pytest.mark.asyncio
async def test_all_failures_are_reported_together_and_method_not_called(tracker):
    configure_interceptors(error_tracker=tracker)
    service = BookingService()
    with capture_logs() as logs:
        with pytest.raises(ValidationError) as exc:
            await service.create({"slots": 0}, "not-a-uuid")

    error = exc.value
    assert error.param_names == ["data", "user_id"]
    assert [failure.param_index for failure in error.failures] == [0, 1]
    assert len(error.failures[0].errors) == 2
    assert service.received == []
    assert logs[0]["event"] == "Validation failed"
    assert tracker.captured[0][0] is error


@pytest.mark.asyncio
async def test_rules_beyond_supplied_arguments_are_skipped():
    async def notify(user_id, channel="email"):
        return channel

    wrapped = with_validation(notify, [ValidationRule(1, Annotated[str, Field(min_length=10)])])
    assert await wrapped("u1") == "email"
    with pytest.raises(ValidationError):
        await wrapped("u1", "sms")


@pytest.mark.asyncio
async def test_soft_mode_logs_and_calls_with_original_arguments():
    service = BookingService()
    with capture_logs() as logs:
        assert await service.refund(-5) == -5
    assert service.received == [-5]
    assert logs[0]["event"] == "Validation failed"


def test_rules_are_checked_at_definition_time():
    with pytest.raises(ValueError):
        ValidationRule(-1, int)

    async def f(x):
        pass

    with pytest.raises(ValueError):
        with_validation(f, [])


class SlotRequest(BaseModel):
    slot: str

    @field_validator("slot")
    @classmethod
    def label_slot(cls, v):
        return {"am": "morning"}[v]


@pytest.mark.asyncio
async def test_crashing_custom_validator_is_reported_as_validation_error():
    async def reserve(request):
        return request.slot

    wrapped = with_validation(reserve, [ValidationRule(0, SlotRequest, "request")])
    assert await wrapped({"slot": "am"}) == "morning"
    with pytest.raises(ValidationError) as exc:
        await wrapped({"slot": "pm"})
    assert exc.value.failures[0].errors == ("KeyError: 'pm'",)
