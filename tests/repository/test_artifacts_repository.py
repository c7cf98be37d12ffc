from mixarchive.domain import ERROR_SENTINEL, ItemArtifact
from mixarchive.repository.archive_requests import RequestsRepository
from mixarchive.repository.artifacts import ArtifactsRepository


def _request_with_links(session_factory, links):
    requests_repo = RequestsRepository(session_factory)
    req = requests_repo.create_request("https://example.com/u/history", "history")
    requests_repo.add_discovered_links(req.request_id, links)
    return req.request_id


def test_record_and_count(session_factory):
    rid = _request_with_links(session_factory, ["https://e.com/a", "https://e.com/b"])
    repo = ArtifactsRepository(session_factory)

    repo.record_artifact(ItemArtifact(rid, "https://e.com/a", "dj-a.txt"))
    assert repo.count_completed(rid) == 1

    repo.record_artifact(ItemArtifact(rid, "https://e.com/b", ERROR_SENTINEL, error="timed out"))
    assert repo.count_completed(rid) == 2


def test_record_same_item_twice_counts_once_last_write_wins(session_factory):
    rid = _request_with_links(session_factory, ["https://e.com/a"])
    repo = ArtifactsRepository(session_factory)

    repo.record_artifact(ItemArtifact(rid, "https://e.com/a", ERROR_SENTINEL, error="first try"))
    saved = repo.record_artifact(ItemArtifact(rid, "https://e.com/a", "dj-a.txt"))

    assert saved.artifact_key == "dj-a.txt"
    assert saved.error is None
    assert repo.count_completed(rid) == 1
    rows = repo.list_for_request(rid)
    assert len(rows) == 1
    assert not rows[0].failed


def test_count_ignores_items_outside_discovered_set(session_factory):
    rid = _request_with_links(session_factory, ["https://e.com/a"])
    repo = ArtifactsRepository(session_factory)

    repo.record_artifact(ItemArtifact(rid, "https://e.com/a", "a.txt"))
    repo.record_artifact(ItemArtifact(rid, "https://e.com/stray", "stray.txt"))

    assert repo.count_completed(rid) == 1


def test_list_for_request_in_insert_order(session_factory):
    rid = _request_with_links(session_factory, ["https://e.com/a", "https://e.com/b"])
    repo = ArtifactsRepository(session_factory)
    repo.record_artifact(ItemArtifact(rid, "https://e.com/b", "b.txt"))
    repo.record_artifact(ItemArtifact(rid, "https://e.com/a", "a.txt"))

    rows = repo.list_for_request(rid)
    assert [r.artifact_key for r in rows] == ["b.txt", "a.txt"]
    assert repo.list_for_request("other") == []
