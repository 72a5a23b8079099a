import pytest
import requests

from backend import ConnectionSettings, S3Client


class FakeRaw:
    """Counts bytes read off the wire like urllib3's response.tell()"""

    def __init__(self):
        self.position = 0

    def tell(self):
        return self.position


class FakeResponse:
    """Stand-in for a streamed requests.Response

    ``encoded_sizes`` gives the wire size of each chunk for compressed
    bodies; otherwise every chunk arrives as it is.
    """

    def __init__(self, status_code=200, headers=None, chunks=(), reason="OK", fail_after=None,
                 encoded_sizes=None):
        self.status_code = status_code
        self.headers = headers or {}
        self.reason = reason
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.encoded_sizes = encoded_sizes
        self.raw = FakeRaw()
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=1):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise requests.ConnectionError("connection reset by peer")
            if self.raw is None:
                pass
            elif self.encoded_sizes is not None:
                self.raw.position += self.encoded_sizes[index]
            else:
                self.raw.position += len(chunk)
            yield chunk

    def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return ConnectionSettings(
        endpoint_url="http://localhost:9000",
        bucket_name="media",
        access_key="AKIAEXAMPLEKEY123456",
        secret_key="secret-example-key",
        region="ch-dk-2",
    )


@pytest.fixture
def s3_client(settings):
    return S3Client(settings)


@pytest.fixture
def fake_get(monkeypatch):
    """Route requests.get in the download module to queued fake responses"""
    calls = []
    responses = []

    def get(url, stream=False, timeout=None):
        calls.append(url)
        return responses.pop(0)

    monkeypatch.setattr("backend.download.requests.get", get)
    get.calls = calls
    get.responses = responses
    return get
