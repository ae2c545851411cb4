import pytest

from hourlyavg.errors import DeadlineExceededError
from hourlyavg.pipeline.deadline import Deadline
from tests.unit.helpers import FakeClock


def test_deadline_counts_down_with_clock():
    deadline = Deadline(10, clock=FakeClock(start=100.0, step=4.0))

    assert deadline.remaining() == 6.0
    assert not deadline.is_expired()
    assert deadline.is_expired()


def test_check_raises_with_timeout_in_message():
    deadline = Deadline(300, clock=FakeClock(step=301.0))

    with pytest.raises(DeadlineExceededError, match=r"timeout reached \(300 seconds\)") as info:
        deadline.check()
    assert info.value.timeout == 300.0


def test_expired_token_trips_immediately():
    deadline = Deadline.expired(5)

    assert deadline.is_expired()
    assert deadline.remaining() == 0.0
