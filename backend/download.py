#!/usr/bin/env python3
"""
Progressive downloads
Streams an object through a signed (or public) URL while reporting
byte level progress, then saves it under its original key name
"""

import enum
import os
import tempfile
from typing import Callable, Iterable, Iterator, List, Optional

import requests

from .errors import StorageError, StreamError, TransportError, error_for_status

CHUNK_SIZE = 64 * 1024

# (connect, read) seconds; the read timeout also bounds a stalled stream
REQUEST_TIMEOUT = (10, 60)


class DownloadStatus(enum.Enum):
    IDLE = 'idle'
    REQUESTING_URL = 'requesting_url'
    STREAMING = 'streaming'
    ASSEMBLING = 'assembling'
    SAVED = 'saved'
    FAILED = 'failed'


class DownloadState:
    """Progress of one in-flight download"""

    def __init__(self, status: DownloadStatus = DownloadStatus.REQUESTING_URL, percent_complete: int = 0):
        self.status = status
        self.percent_complete = percent_complete

    def __repr__(self):
        return f"DownloadState({self.status.value}, {self.percent_complete}%)"


class ByteStream:
    """Finite, restartable sequence of byte chunks

    Every iteration calls the factory again, so the body can be read more
    than once. ``total`` is the declared length, or None when unknown.
    ``tell`` reports how many of those bytes have been read so far, for
    bodies whose chunks don't match the declared length (compressed
    transfers); without it the chunk sizes are counted.
    """

    def __init__(self, factory: Callable[[], Iterable[bytes]], total: Optional[int] = None,
                 tell: Optional[Callable[[], int]] = None):
        self._factory = factory
        self.total = total
        self.tell = tell

    @classmethod
    def from_chunks(cls, chunks: List[bytes], total: Optional[int] = None) -> 'ByteStream':
        return cls(lambda: iter(chunks), total)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._factory())


def _get(url: str, timeout) -> requests.Response:
    try:
        response = requests.get(url, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Download request failed: {e}")

    if not response.ok:
        response.close()
        raise error_for_status(response.status_code, response.reason or "", "Download")
    return response


def open_stream(url: str, timeout=REQUEST_TIMEOUT) -> ByteStream:
    """Issue the GET and wrap its body as a ByteStream

    The first iteration reads the response already received, later ones
    fetch the URL again.
    """
    response = _get(url, timeout)

    content_length = response.headers.get('content-length')
    try:
        total = int(content_length) if content_length else None
    except ValueError:
        total = None

    pending = [response]
    active = [response]

    # Content-Length counts encoded bytes while iter_content yields decoded ones
    tell = None
    encoding = response.headers.get('content-encoding', '').strip().lower()
    if total and encoding and encoding != 'identity':
        if callable(getattr(response.raw, 'tell', None)):
            tell = lambda: active[0].raw.tell()
        else:
            total = None

    def chunks():
        current = pending.pop() if pending else _get(url, timeout)
        active[0] = current
        try:
            for chunk in current.iter_content(chunk_size=CHUNK_SIZE):
                yield chunk
        except requests.RequestException as e:
            raise StreamError(f"Download interrupted: {e}")
        finally:
            current.close()

    return ByteStream(chunks, total, tell)


def collect(stream: ByteStream, progress_callback: Optional[Callable[[int], None]] = None) -> bytes:
    """Read the whole stream, reporting percent complete after every chunk"""
    total = stream.total
    if not total:
        # No length to measure against, take the body in one go
        return b"".join(stream)

    chunks = []
    loaded = 0
    for chunk in stream:
        if not chunk:
            continue
        chunks.append(chunk)
        loaded = stream.tell() if stream.tell else loaded + len(chunk)
        if progress_callback:
            progress_callback(min(100, loaded * 100 // total))

    if stream.tell:
        loaded = stream.tell()
    if loaded < total:
        raise StreamError(f"Download ended after {loaded} of {total} bytes")
    return b"".join(chunks)


class DirectorySaver:
    """Saves downloaded bytes into a directory using the key as file name"""

    def __init__(self, download_dir: str):
        self.download_dir = os.path.abspath(download_dir)

    def target_path(self, key: str) -> str:
        """Path for a key, with a numeric suffix when the name is taken"""
        local_path = os.path.normpath(os.path.join(self.download_dir, key))
        if os.path.commonpath([self.download_dir, local_path]) != self.download_dir or local_path == self.download_dir:
            raise StorageError(f"Refusing to save '{key}' outside the download directory")

        # Handle duplicate filenames
        counter = 1
        original_path = local_path
        while os.path.exists(local_path):
            name, ext = os.path.splitext(original_path)
            local_path = f"{name}_{counter}{ext}"
            counter += 1
        return local_path

    def save(self, key: str, data: bytes) -> str:
        local_path = self.target_path(key)
        directory = os.path.dirname(local_path)
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.', suffix='.part')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(temp_path, local_path)
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)
        return local_path


class ProgressiveDownloader:
    """Runs one download from URL request to saved file"""

    def __init__(self, url_provider: Callable[[str], str], saver: DirectorySaver,
                 timeout=REQUEST_TIMEOUT, verbose: bool = False):
        self.url_provider = url_provider
        self.saver = saver
        self.timeout = timeout
        self.verbose = verbose

    def download(self, key: str,
                 status_callback: Optional[Callable[[DownloadStatus], None]] = None,
                 progress_callback: Optional[Callable[[int], None]] = None) -> str:
        """Download a key, returning the saved path

        Status changes go to status_callback; a failure reports FAILED
        before the error is raised to the caller.
        """
        def set_status(status):
            if self.verbose:
                print(f"[VERBOSE] {key}: {status.value}")
            if status_callback:
                status_callback(status)

        try:
            set_status(DownloadStatus.REQUESTING_URL)
            url = self.url_provider(key)

            set_status(DownloadStatus.STREAMING)
            stream = open_stream(url, self.timeout)
            data = collect(stream, progress_callback)

            set_status(DownloadStatus.ASSEMBLING)
            local_path = self.saver.save(key, data)
        except Exception as e:
            if self.verbose:
                print(f"[VERBOSE] Download failed for {key}: {type(e).__name__}: {e}")
            set_status(DownloadStatus.FAILED)
            raise

        set_status(DownloadStatus.SAVED)
        return local_path
