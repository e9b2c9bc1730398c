import pytest
from structlog.testing import capture_logs

from servicekit.interceptors import AuditEvent, audited, configure_interceptors, with_audit
from servicekit.logging import set_correlation_id


class RecordingSink:
    def __init__(self):
        self.events = []

    async def record(self, event):
        self.events.append(event)


class BookingService:
    @audited("booking.created", include_args=True, include_result=True)
    async def create(self, user_id, slot, token=None):
        return {"booking_id": "b1", "token": "t-secret"}

    @audited("booking.cancelled")
    async def cancel(self, booking_id):
        raise LookupError(f"booking {booking_id} not found")


@pytest.fixture
def sink():
    sink = RecordingSink()
    configure_interceptors(audit_sink=sink)
    return sink


@pytest.mark.asyncio
async def test_success_event_carries_masked_args_and_result(sink):
    await BookingService().create("u1", 3, token="abc")

    [event] = sink.events
    assert isinstance(event, AuditEvent)
    assert event.event_type == "booking.created"
    assert event.method == "BookingService:create"
    assert event.outcome == "success"
    assert event.args == {"user_id": "u1", "slot": 3, "token": "***MASKED***"}
    assert event.result == {"booking_id": "b1", "token": "***MASKED***"}
    assert event.duration_ms >= 0


@pytest.mark.asyncio
async def test_failure_event_is_recorded_and_error_reraised(sink):
    with pytest.raises(LookupError):
        await BookingService().cancel("b9")

    [event] = sink.events
    assert event.outcome == "failure"
    assert event.error_type == "LookupError"
    assert event.error_message == "booking b9 not found"
    assert event.args is None


@pytest.mark.asyncio
async def test_event_carries_the_correlation_id(sink):
    set_correlation_id("req-42")
    await BookingService().create("u1", 1)
    assert sink.events[0].correlation_id == "req-42"


@pytest.mark.asyncio
async def test_broken_sink_is_logged_and_ignored():
    class BrokenSink:
        async def record(self, event):
            raise ConnectionError("audit store down")

    async def approve(request_id):
        return "approved"

    wrapped = with_audit(approve, event_type="request.approved", sink=BrokenSink())
    with capture_logs() as logs:
        assert await wrapped("r1") == "approved"
    assert logs[-1]["event"] == "Audit sink failed"
    assert logs[-1]["error"] == "audit store down"


@pytest.mark.asyncio
async def test_default_sink_writes_to_the_log():
    async def approve(request_id):
        return "approved"

    wrapped = with_audit(approve, event_type="request.approved")
    with capture_logs() as logs:
        await wrapped("r1")
    [entry] = [e for e in logs if e["event"] == "Audit event"]
    assert entry["event_type"] == "request.approved"
    assert entry["outcome"] == "success"
