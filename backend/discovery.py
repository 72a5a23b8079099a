#!/usr/bin/env python3
"""
Public bucket access
Objects addressed by predictable URLs and discovered with HEAD requests
"""

from email.utils import parsedate_to_datetime
from typing import List, Dict, Any, Optional, Iterable
from urllib.parse import quote

import requests

from .s3_operations import make_record, DATE_FORMAT

# (connect, read) seconds
REQUEST_TIMEOUT = (10, 60)


def parse_last_modified(header: Optional[str]) -> Optional[str]:
    """Convert an HTTP Last-Modified header to the listing date format"""
    if not header:
        return None
    try:
        return parsedate_to_datetime(header).strftime(DATE_FORMAT)
    except (TypeError, ValueError):
        return None


def parse_content_length(header: Optional[str]) -> Optional[int]:
    if not header:
        return None
    try:
        length = int(header)
    except ValueError:
        return None
    return length if length >= 0 else None


class PublicBucket:
    """A bucket whose objects are readable without credentials"""

    def __init__(self, endpoint_url: str, bucket_name: str, verbose: bool = False):
        self.endpoint_url = endpoint_url.rstrip('/')
        self.bucket_name = bucket_name
        self.verbose = verbose

    def object_url(self, key: str) -> str:
        return f"{self.endpoint_url}/{self.bucket_name}/{quote(key, safe='/')}"

    def head_object(self, key: str) -> Optional[Dict[str, Any]]:
        """HEAD one object, returning its record or None when it can't be reached"""
        url = self.object_url(key)
        try:
            response = requests.head(url, timeout=REQUEST_TIMEOUT, allow_redirects=True)
        except requests.RequestException as e:
            if self.verbose:
                print(f"[VERBOSE] Error checking file {key}: {e}")
            return None

        if not response.ok:
            if self.verbose:
                print(f"[VERBOSE] File not accessible: {key} ({response.status_code})")
            return None

        return make_record(
            key,
            parse_content_length(response.headers.get('content-length')),
            parse_last_modified(response.headers.get('last-modified'))
        )


class ManualListing:
    """Listing built from keys the user knows about

    Listing a public bucket needs permissions we usually don't have, so
    keys are added by name and only the ones answering a HEAD request are
    reported.
    """

    def __init__(self, bucket: PublicBucket, keys: Iterable[str] = ()):
        self.bucket = bucket
        self.known_keys: List[str] = []
        for key in keys:
            self.add(key)

    def add(self, key: str) -> bool:
        """Add a key to look up, False if it's empty or already known"""
        key = key.strip()
        if not key or key in self.known_keys:
            return False
        self.known_keys.append(key)
        return True

    def remove(self, key: str) -> bool:
        if key not in self.known_keys:
            return False
        self.known_keys.remove(key)
        return True

    def keep_known(self, files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Drop records for keys removed since they were listed"""
        return [f for f in files if f['key'] in self.known_keys]

    def list_objects(self) -> List[Dict[str, Any]]:
        files = []
        # Keys can be added or removed from the UI while this runs
        for key in list(self.known_keys):
            file_info = self.bucket.head_object(key)
            if file_info is not None:
                files.append(file_info)
        return files
