import os

import pytest

from backend.download import (
    ByteStream, DirectorySaver, DownloadStatus, ProgressiveDownloader, collect, open_stream
)
from backend.errors import AccessError, NotFoundError, StorageError, StreamError, TransportError

from conftest import FakeResponse


def test_collect_reports_progress_after_every_chunk():
    stream = ByteStream.from_chunks([b"a" * 30, b"b" * 30, b"c" * 40], total=100)
    progress = []

    data = collect(stream, progress.append)

    assert data == b"a" * 30 + b"b" * 30 + b"c" * 40
    assert progress == [30, 60, 100]


def test_collect_rounds_progress_down():
    stream = ByteStream.from_chunks([b"x", b"yy"], total=3)
    progress = []
    collect(stream, progress.append)
    assert progress == [33, 100]


def test_collect_without_length_skips_progress():
    stream = ByteStream.from_chunks([b"ab", b"cd"])
    progress = []

    assert collect(stream, progress.append) == b"abcd"
    assert progress == []


def test_collect_raises_when_body_is_short():
    stream = ByteStream.from_chunks([b"12345"], total=10)
    with pytest.raises(StreamError):
        collect(stream)


def test_byte_stream_can_be_read_twice():
    stream = ByteStream.from_chunks([b"ab", b"c"], total=3)
    assert b"".join(stream) == b"abc"
    assert b"".join(stream) == b"abc"


def test_open_stream_uses_content_length(fake_get):
    fake_get.responses.append(FakeResponse(headers={'content-length': '4'}, chunks=[b"ab", b"cd"]))

    stream = open_stream("http://signed.example/en-a.mp4")

    assert stream.total == 4
    assert b"".join(stream) == b"abcd"


def test_open_stream_rereads_the_url_on_restart(fake_get):
    fake_get.responses.append(FakeResponse(chunks=[b"one"]))
    fake_get.responses.append(FakeResponse(chunks=[b"one"]))

    stream = open_stream("http://signed.example/en-a.mp4")
    assert b"".join(stream) == b"one"
    assert b"".join(stream) == b"one"
    assert len(fake_get.calls) == 2


@pytest.mark.parametrize("status, error_type", [
    (403, AccessError),
    (404, NotFoundError),
    (500, TransportError),
])
def test_open_stream_rejects_unsuccessful_responses(fake_get, status, error_type):
    response = FakeResponse(status_code=status, reason="Nope")
    fake_get.responses.append(response)

    with pytest.raises(error_type) as excinfo:
        open_stream("http://signed.example/en-a.mp4")

    assert str(status) in str(excinfo.value)
    assert response.closed


def test_interrupted_body_raises_stream_error(fake_get):
    response = FakeResponse(headers={'content-length': '6'}, chunks=[b"abc", b"def"], fail_after=1)
    fake_get.responses.append(response)

    with pytest.raises(StreamError):
        collect(open_stream("http://signed.example/en-a.mp4"))
    assert response.closed


def test_gzip_body_larger_than_content_length_completes(fake_get):
    # Content-Length counts the compressed bytes, iter_content yields decoded ones
    fake_get.responses.append(FakeResponse(
        headers={'content-length': '10', 'content-encoding': 'gzip'},
        chunks=[b"abcd", b"efgh"], encoded_sizes=[5, 5]
    ))
    progress = []

    data = collect(open_stream("http://signed.example/en-a.mp4"), progress.append)

    assert data == b"abcdefgh"
    assert progress == [50, 100]


def test_gzip_progress_follows_compressed_bytes(fake_get):
    fake_get.responses.append(FakeResponse(
        headers={'content-length': '4', 'content-encoding': 'gzip'},
        chunks=[b"a" * 50, b"b" * 50], encoded_sizes=[2, 2]
    ))
    progress = []

    data = collect(open_stream("http://signed.example/en-a.mp4"), progress.append)

    assert len(data) == 100
    assert progress == [50, 100]


def test_gzip_body_short_on_the_wire_raises(fake_get):
    fake_get.responses.append(FakeResponse(
        headers={'content-length': '10', 'content-encoding': 'gzip'},
        chunks=[b"abcdef"], encoded_sizes=[3]
    ))

    with pytest.raises(StreamError):
        collect(open_stream("http://signed.example/en-a.mp4"))


def test_encoded_body_without_wire_count_skips_progress(fake_get):
    response = FakeResponse(
        headers={'content-length': '2', 'content-encoding': 'gzip'},
        chunks=[b"abcdef"]
    )
    response.raw = None
    fake_get.responses.append(response)
    progress = []

    stream = open_stream("http://signed.example/en-a.mp4")

    assert stream.total is None
    assert collect(stream, progress.append) == b"abcdef"
    assert progress == []


def test_directory_saver_uses_key_as_file_name(tmp_path):
    saver = DirectorySaver(str(tmp_path))

    path = saver.save("en-intro.mp4", b"video")

    assert os.path.basename(path) == "en-intro.mp4"
    assert (tmp_path / "en-intro.mp4").read_bytes() == b"video"
    assert sorted(os.listdir(tmp_path)) == ["en-intro.mp4"]


def test_directory_saver_keeps_existing_files(tmp_path):
    (tmp_path / "en-intro.mp4").write_bytes(b"old")
    saver = DirectorySaver(str(tmp_path))

    path = saver.save("en-intro.mp4", b"new")

    assert os.path.basename(path) == "en-intro_1.mp4"
    assert (tmp_path / "en-intro.mp4").read_bytes() == b"old"


def test_directory_saver_creates_folders_for_nested_keys(tmp_path):
    path = DirectorySaver(str(tmp_path)).save("videos/en-intro.mp4", b"video")
    assert path == str(tmp_path / "videos" / "en-intro.mp4")


def test_directory_saver_refuses_to_escape(tmp_path):
    saver = DirectorySaver(str(tmp_path / "downloads"))
    with pytest.raises(StorageError):
        saver.save("../outside.txt", b"nope")


def test_downloader_runs_through_states(fake_get, tmp_path):
    fake_get.responses.append(FakeResponse(headers={'content-length': '4'}, chunks=[b"ab", b"cd"]))
    statuses, progress = [], []
    downloader = ProgressiveDownloader(lambda key: f"http://signed.example/{key}", DirectorySaver(str(tmp_path)))

    path = downloader.download("es-b.mp4", statuses.append, progress.append)

    assert path == str(tmp_path / "es-b.mp4")
    assert statuses == [
        DownloadStatus.REQUESTING_URL,
        DownloadStatus.STREAMING,
        DownloadStatus.ASSEMBLING,
        DownloadStatus.SAVED,
    ]
    assert progress == [50, 100]
    assert fake_get.calls == ["http://signed.example/es-b.mp4"]


def test_downloader_does_not_stream_without_url(fake_get, tmp_path):
    def refuse(key):
        raise AccessError("Access denied.")

    statuses = []
    downloader = ProgressiveDownloader(refuse, DirectorySaver(str(tmp_path)))

    with pytest.raises(AccessError):
        downloader.download("en-a.mp4", statuses.append)

    assert statuses == [DownloadStatus.REQUESTING_URL, DownloadStatus.FAILED]
    assert fake_get.calls == []
    assert os.listdir(tmp_path) == []
