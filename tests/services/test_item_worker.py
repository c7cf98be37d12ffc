import io
import zipfile

import pytest

from fakes import FakePage, FakeRenderer, MemoryStore, mix_page
from mixarchive.domain import ERROR_SENTINEL, ItemJob
from mixarchive.exceptions import PageLoadFailure, StorageFailure
from mixarchive.repository.archive_requests import RequestsRepository
from mixarchive.repository.artifacts import ArtifactsRepository
from mixarchive.services.archive_assembler import ArchiveAssembler
from mixarchive.services.completion_tracker import CompletionTracker
from mixarchive.services.item_worker import ItemWorker
from mixarchive.services.mix_extractor import MixExtractor
from mixarchive.services.track_poller import TrackPoller
from mixarchive.storage import item_key


async def _no_sleep(seconds):
    return None


def _setup(session_factory, renderer, store):
    requests_repo = RequestsRepository(session_factory)
    artifacts_repo = ArtifactsRepository(session_factory)
    req = requests_repo.create_request("https://e.com/dj/history", "history")
    requests_repo.add_discovered_links(req.request_id, list(renderer.pages) + list(renderer.fail_urls))
    worker = ItemWorker(
        renderer=renderer,
        extractor=MixExtractor(TrackPoller(sleep=_no_sleep)),
        artifact_store=store,
        artifacts_repo=artifacts_repo,
    )
    return req.request_id, worker, artifacts_repo


@pytest.mark.asyncio
async def test_success_stores_blob_then_records(session_factory):
    url = "https://e.com/dj/late-night"
    renderer = FakeRenderer({url: mix_page(name="Late Night", owner="dj")})
    store = MemoryStore()
    rid, worker, artifacts_repo = _setup(session_factory, renderer, store)

    artifact = await worker.process(ItemJob(rid, url, count=1, total=1))

    assert artifact.artifact_key == "dj-Late Night.txt"
    blob = store.blobs[item_key(rid, url, "dj-Late Night.txt")]
    assert blob.decode("utf-8").startswith("Late Night\nby dj\n")
    assert artifacts_repo.count_completed(rid) == 1


@pytest.mark.asyncio
async def test_load_failure_records_error_sentinel(session_factory):
    url = "https://e.com/dj/gone"
    renderer = FakeRenderer(fail_urls=[url])
    store = MemoryStore()
    rid, worker, artifacts_repo = _setup(session_factory, renderer, store)

    artifact = await worker.process(ItemJob(rid, url))

    assert artifact.artifact_key == ERROR_SENTINEL
    assert artifact.failed
    assert "net::ERR_NAME_NOT_RESOLVED" in artifact.error
    assert store.calls == []
    assert artifacts_repo.count_completed(rid) == 1


@pytest.mark.asyncio
async def test_track_timeout_records_error_sentinel(session_factory):
    url = "https://e.com/dj/slow"
    page = mix_page()
    page._tracks = []  # the track list never appears
    renderer = FakeRenderer({url: page})
    rid, worker, artifacts_repo = _setup(session_factory, renderer, MemoryStore())

    artifact = await worker.process(ItemJob(rid, url))

    assert artifact.failed
    assert page.evaluations == 5
    assert artifacts_repo.count_completed(rid) == 1


@pytest.mark.asyncio
async def test_storage_failure_records_nothing(session_factory):
    url = "https://e.com/dj/late-night"
    renderer = FakeRenderer({url: mix_page()})
    rid, worker, artifacts_repo = _setup(session_factory, renderer, MemoryStore(fail_keys=["*"]))

    with pytest.raises(StorageFailure):
        await worker.process(ItemJob(rid, url))

    assert artifacts_repo.count_completed(rid) == 0
    assert artifacts_repo.list_for_request(rid) == []


@pytest.mark.asyncio
async def test_running_twice_counts_once(session_factory):
    url = "https://e.com/dj/late-night"
    page = mix_page()
    page._tracks = [[{"name": "a", "performer": "b"}], [{"name": "a", "performer": "b"}]]
    renderer = FakeRenderer({url: page})
    store = MemoryStore()
    rid, worker, artifacts_repo = _setup(session_factory, renderer, store)

    await worker.process(ItemJob(rid, url))
    await worker.process(ItemJob(rid, url))

    assert renderer.opened == [url, url]
    assert len(store.blobs) == 1
    assert artifacts_repo.count_completed(rid) == 1


@pytest.mark.asyncio
async def test_mixes_with_same_owner_and_name_are_both_archived(session_factory):
    first_url = "https://e.com/dj/faves"
    second_url = "https://e.com/dj/faves-1"
    renderer = FakeRenderer({
        first_url: mix_page(name="Faves", owner="dj", tracks=[{"name": "FIRST", "performer": "a"}]),
        second_url: mix_page(name="Faves", owner="dj", tracks=[{"name": "SECOND", "performer": "b"}]),
    })
    store = MemoryStore()
    rid, worker, artifacts_repo = _setup(session_factory, renderer, store)
    requests_repo = RequestsRepository(session_factory)
    requests_repo.finalize_total(rid)

    await worker.process(ItemJob(rid, first_url))
    await worker.process(ItemJob(rid, second_url))

    assembler = ArchiveAssembler(
        tracker=CompletionTracker(requests_repo=requests_repo, artifacts_repo=artifacts_repo),
        artifacts_repo=artifacts_repo,
        artifact_store=store,
    )
    ref = await assembler.assemble(rid)

    with zipfile.ZipFile(io.BytesIO(store.blobs[ref.key])) as zf:
        contents = {name: zf.read(name).decode("utf-8") for name in zf.namelist()}
    assert sorted(contents) == ["dj-Faves (2).txt", "dj-Faves.txt"]
    bodies = sorted(contents.values())
    assert "FIRST" in bodies[0] and "SECOND" not in bodies[0]
    assert "SECOND" in bodies[1] and "FIRST" not in bodies[1]
    assert ref.failed == 0


class _ClosedPage(FakePage):
    def __init__(self, url, **kwargs):
        super().__init__(**kwargs)
        self.url = url

    async def text(self, selector):
        raise PageLoadFailure(self.url, RuntimeError("Target page, context or browser has been closed"))


@pytest.mark.asyncio
async def test_page_closed_mid_extraction_records_error_sentinel(session_factory):
    url = "https://e.com/dj/closed"
    page = mix_page(name="Closed", owner="dj")
    renderer = FakeRenderer({url: _ClosedPage(url, texts=page._texts, lists=page._lists)})
    store = MemoryStore()
    rid, worker, artifacts_repo = _setup(session_factory, renderer, store)

    artifact = await worker.process(ItemJob(rid, url))

    assert artifact.artifact_key == ERROR_SENTINEL
    assert "has been closed" in artifact.error
    assert store.calls == []
    assert artifacts_repo.count_completed(rid) == 1
