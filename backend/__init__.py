#!/usr/bin/env python3
"""
Backend module for Bucket Shelf
Contains bucket listing, sectioning and download logic.
The Qt worker threads live in backend.workers.
"""

from .config import ConnectionSettings, load_settings
from .controller import BucketController
from .discovery import PublicBucket, ManualListing
from .download import (
    ByteStream,
    DirectorySaver,
    DownloadState,
    DownloadStatus,
    ProgressiveDownloader
)
from .errors import (
    StorageError,
    ConfigurationError,
    AccessError,
    NotFoundError,
    TransportError,
    StreamError,
    describe_error
)
from .s3_operations import S3Client, FileProcessor
from .sections import Section, classify

__all__ = [
    'ConnectionSettings',
    'load_settings',
    'BucketController',
    'PublicBucket',
    'ManualListing',
    'ByteStream',
    'DirectorySaver',
    'DownloadState',
    'DownloadStatus',
    'ProgressiveDownloader',
    'StorageError',
    'ConfigurationError',
    'AccessError',
    'NotFoundError',
    'TransportError',
    'StreamError',
    'describe_error',
    'S3Client',
    'FileProcessor',
    'Section',
    'classify'
]
