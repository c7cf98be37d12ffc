from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from mixarchive.domain import CrawlRequest
from mixarchive.exceptions import IntakeError, InvocationError
from mixarchive.services.archive_request_service import ArchiveRequestService
from mixarchive.services.invoker import FUNCTION_PAGINATE


class RecordingInvoker:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def invoke(self, function, payload):
        if self.error:
            raise self.error
        self.calls.append((function, payload))


def _repo():
    return Mock(create_request=Mock(return_value=CrawlRequest("rid-1", "https://e.com/dj/history", "history")))


@pytest.mark.asyncio
async def test_submit_creates_request_and_starts_pagination():
    repo = _repo()
    invoker = RecordingInvoker()
    service = ArchiveRequestService(requests_repo=repo, invoker=invoker)

    request = await service.submit("https://e.com/dj/history", "history")

    assert request.request_id == "rid-1"
    repo.create_request.assert_called_once_with("https://e.com/dj/history", "history")
    assert invoker.calls == [
        (FUNCTION_PAGINATE, {"url": "https://e.com/dj/history", "id": "rid-1", "currentPage": 1, "count": 1, "total": 0})
    ]


@pytest.mark.asyncio
async def test_submit_rejects_unknown_type():
    service = ArchiveRequestService(requests_repo=_repo(), invoker=RecordingInvoker())
    with pytest.raises(ValueError):
        await service.submit("https://e.com/dj/history", "favorites")


@pytest.mark.asyncio
async def test_submit_rejects_empty_url():
    service = ArchiveRequestService(requests_repo=_repo(), invoker=RecordingInvoker())
    with pytest.raises(ValueError):
        await service.submit("", "history")


@pytest.mark.asyncio
async def test_database_error_becomes_intake_error():
    repo = Mock(create_request=Mock(side_effect=OperationalError("insert", {}, Exception("locked"))))
    service = ArchiveRequestService(requests_repo=repo, invoker=RecordingInvoker())

    with pytest.raises(IntakeError) as exc:
        await service.submit("https://e.com/dj/history", "history")
    assert str(exc.value) == "Unable to initiate archive request."


@pytest.mark.asyncio
async def test_invocation_error_marks_request_failed():
    repo = _repo()
    service = ArchiveRequestService(
        requests_repo=repo,
        invoker=RecordingInvoker(error=InvocationError(FUNCTION_PAGINATE, "HTTP 500")),
    )

    with pytest.raises(IntakeError):
        await service.submit("https://e.com/dj/history", "history")
    repo.mark_failed.assert_called_once()
    assert repo.mark_failed.call_args.args[0] == "rid-1"
