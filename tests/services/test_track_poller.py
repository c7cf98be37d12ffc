import pytest

from mixarchive.exceptions import ExtractionTimeout
from mixarchive.services.track_poller import TrackPoller


class _RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _attempts(results):
    calls = []

    async def attempt():
        calls.append(1)
        return results[len(calls) - 1]

    return attempt, calls


@pytest.mark.asyncio
async def test_returns_first_result_without_sleeping():
    sleep = _RecordingSleep()
    attempt, calls = _attempts([["t1"]])

    assert await TrackPoller(sleep=sleep).poll(attempt) == ["t1"]
    assert len(calls) == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_second_attempt_waits_exactly_one_delay():
    sleep = _RecordingSleep()
    attempt, calls = _attempts([None, ["t1"]])

    result = await TrackPoller(max_attempts=5, delay_seconds=0.09, sleep=sleep).poll(attempt)

    assert result == ["t1"]
    assert len(calls) == 2
    assert sleep.calls == [0.09]


@pytest.mark.asyncio
async def test_empty_list_is_a_result():
    sleep = _RecordingSleep()
    attempt, calls = _attempts([[]])

    assert await TrackPoller(sleep=sleep).poll(attempt) == []
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    sleep = _RecordingSleep()
    attempt, calls = _attempts([None] * 10)

    with pytest.raises(ExtractionTimeout) as exc:
        await TrackPoller(max_attempts=5, delay_seconds=0.09, sleep=sleep).poll(attempt, "https://e.com/mix")

    assert len(calls) == 5
    assert sleep.calls == [0.09] * 4
    assert exc.value.attempts == 5
    assert exc.value.url == "https://e.com/mix"


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        TrackPoller(max_attempts=0)
