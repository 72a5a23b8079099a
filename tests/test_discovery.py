import pytest
import requests

from backend.discovery import PublicBucket, ManualListing, parse_last_modified

from conftest import FakeResponse

EXISTING = {
    "cr-intro-to-sadhguru.mp4": {'content-length': '2048', 'last-modified': 'Wed, 01 May 2024 12:30:00 GMT'},
    "en-notes.pdf": {},
}


@pytest.fixture
def fake_head(monkeypatch):
    calls = []

    def head(url, timeout=None, allow_redirects=False):
        calls.append(url)
        key = url.rsplit('/isha2/', 1)[1]
        if key == "offline.mp4":
            raise requests.ConnectionError("no route to host")
        if key in EXISTING:
            return FakeResponse(headers=EXISTING[key])
        return FakeResponse(status_code=404, reason="Not Found")

    monkeypatch.setattr("backend.discovery.requests.head", head)
    head.calls = calls
    return head


@pytest.fixture
def bucket():
    return PublicBucket("https://sos-ch-dk-2.exo.io/", "isha2")


def test_object_url(bucket):
    assert bucket.object_url("en-a.mp4") == "https://sos-ch-dk-2.exo.io/isha2/en-a.mp4"
    assert bucket.object_url("videos/en a.mp4") == "https://sos-ch-dk-2.exo.io/isha2/videos/en%20a.mp4"


def test_head_object_reads_metadata_from_headers(bucket, fake_head):
    record = bucket.head_object("cr-intro-to-sadhguru.mp4")
    assert record == {'key': "cr-intro-to-sadhguru.mp4", 'size': 2048, 'last_modified': "2024-05-01 12:30:00"}


def test_head_object_without_headers(bucket, fake_head):
    assert bucket.head_object("en-notes.pdf") == {'key': "en-notes.pdf", 'size': None, 'last_modified': None}


def test_head_object_missing_or_unreachable(bucket, fake_head):
    assert bucket.head_object("missing.mp4") is None
    assert bucket.head_object("offline.mp4") is None


def test_manual_listing_reports_only_existing_files(bucket, fake_head):
    listing = ManualListing(bucket, ["cr-intro-to-sadhguru.mp4", "missing.mp4"])
    assert listing.add("en-notes.pdf")

    files = listing.list_objects()

    assert [f['key'] for f in files] == ["cr-intro-to-sadhguru.mp4", "en-notes.pdf"]
    assert len(fake_head.calls) == 3


def test_manual_listing_rejects_duplicates_and_blanks(bucket):
    listing = ManualListing(bucket, ["a.mp4"])

    assert listing.add("a.mp4") is False
    assert listing.add("  ") is False
    assert listing.remove("a.mp4") is True
    assert listing.remove("a.mp4") is False
    assert listing.known_keys == []


def test_parse_last_modified():
    assert parse_last_modified(None) is None
    assert parse_last_modified("not a date") is None
    assert parse_last_modified("Wed, 01 May 2024 12:30:00 GMT") == "2024-05-01 12:30:00"


def test_removing_a_key_while_listing_keeps_the_others(bucket, monkeypatch):
    listing = ManualListing(bucket, ["a.mp4", "b.mp4", "c.mp4"])

    def head_object(key):
        if key == "a.mp4":
            listing.remove("a.mp4")
        return {'key': key, 'size': 1, 'last_modified': None}

    monkeypatch.setattr(bucket, "head_object", head_object)

    keys = [f['key'] for f in listing.list_objects()]

    assert "b.mp4" in keys
    assert "c.mp4" in keys
    assert listing.known_keys == ["b.mp4", "c.mp4"]


def test_keep_known_drops_removed_keys(bucket):
    listing = ManualListing(bucket, ["a.mp4", "b.mp4"])
    files = [{'key': "a.mp4", 'size': 1, 'last_modified': None},
             {'key': "b.mp4", 'size': 2, 'last_modified': None}]

    listing.remove("a.mp4")

    assert listing.keep_known(files) == [files[1]]
