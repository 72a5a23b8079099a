#!/usr/bin/env python3
"""
S3 backend operations module
Handles listing and URL signing against S3-compatible storage
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from botocore.client import Config
from typing import List, Dict, Any, Optional, Callable

from .config import ConnectionSettings
from .errors import translate_boto_error

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Signed download URLs stay valid for one hour
SIGNED_URL_EXPIRY = 3600


def make_record(key: str, size: Optional[int] = None, last_modified: Optional[str] = None) -> Dict[str, Any]:
    """Build the file_info dict used everywhere for one object"""
    return {
        'key': key,
        'size': size,
        'last_modified': last_modified,
    }


class S3Client:
    """S3 client wrapper for handling S3-compatible storage operations"""

    def __init__(self, settings: ConnectionSettings, verbose: bool = False):
        self.settings = settings
        self.bucket_name = settings.bucket_name
        self.verbose = verbose
        self._client = None
        self.listing_partial = False

    def _get_client(self):
        """Get or create S3 client"""
        if not self._client:
            if self.verbose:
                print(f"[VERBOSE] Creating boto3 session with access key: {self.settings.masked_access_key()}")

            session = boto3.Session(
                aws_access_key_id=self.settings.access_key,
                aws_secret_access_key=self.settings.secret_key,
                region_name=self.settings.region
            )

            if self.verbose:
                print(f"[VERBOSE] Creating S3 client with endpoint: {self.settings.endpoint_url}")
                print(f"[VERBOSE] Using signature version: s3v4, addressing style: path")

            self._client = session.client(
                's3',
                endpoint_url=self.settings.endpoint_url,
                config=Config(
                    signature_version='s3v4',
                    s3={
                        'addressing_style': 'path'
                    }
                )
            )

        return self._client

    def list_files_progressive(self, max_pages: int = 1,
                               page_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> Dict[str, Any]:
        """List files page by page, calling callback for each page loaded"""
        try:
            client = self._get_client()

            if self.verbose:
                print(f"[VERBOSE] Listing bucket {self.bucket_name} (max_pages: {max_pages})")

            paginator = client.get_paginator('list_objects_v2')
            page_iterator = paginator.paginate(Bucket=self.bucket_name)

            page_count = 0
            total_files = 0
            truncated = False

            for page in page_iterator:
                page_count += 1
                truncated = page.get('IsTruncated', False)

                page_files = []
                for obj in page.get('Contents', []):
                    last_modified = obj.get('LastModified')
                    page_files.append(make_record(
                        obj['Key'],
                        obj.get('Size'),
                        last_modified.strftime(DATE_FORMAT) if last_modified else None
                    ))
                total_files += len(page_files)

                if self.verbose:
                    print(f"[VERBOSE] Page {page_count}: {len(page_files)} objects, truncated: {truncated}")

                if page_callback:
                    page_callback({
                        'files': page_files,
                        'page_number': page_count
                    })

                if page_count >= max_pages:
                    if self.verbose and truncated:
                        print(f"[VERBOSE] Reached max_pages limit ({max_pages}), listing is partial")
                    break

            return {
                'pages_processed': page_count,
                'total_files_found': total_files,
                'stopped_at_limit': page_count >= max_pages and truncated
            }

        except (BotoCoreError, ClientError) as e:
            if self.verbose:
                print(f"[VERBOSE] Listing failed: {type(e).__name__}: {e}")
            raise translate_boto_error(e, self.bucket_name)

    def list_objects(self, max_pages: int = 1) -> List[Dict[str, Any]]:
        """List files in the bucket as one flat list

        listing_partial is set when more pages were left unread.
        """
        result: List[Dict[str, Any]] = []

        def collect_files(page_info):
            result.extend(page_info['files'])

        summary = self.list_files_progressive(max_pages=max_pages, page_callback=collect_files)
        self.listing_partial = summary['stopped_at_limit']

        if self.verbose:
            print(f"[VERBOSE] Listed {summary['total_files_found']} files in {summary['pages_processed']} pages")
        return result

    def generate_download_url(self, key: str, expires_in: int = SIGNED_URL_EXPIRY) -> str:
        """Generate a time limited signed GET URL for a key"""
        try:
            url = self._get_client().generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=expires_in
            )
        except (BotoCoreError, ClientError) as e:
            if self.verbose:
                print(f"[VERBOSE] Could not sign URL for {key}: {e}")
            raise translate_boto_error(e, self.bucket_name, key)

        if self.verbose:
            print(f"[VERBOSE] Signed URL for {key} valid for {expires_in}s")
        return url


class FileProcessor:
    """Formatting helpers for file listings"""

    @staticmethod
    def format_size(size: Optional[int]) -> str:
        """Format file size in human readable format"""
        if not size:
            return "Unknown"
        if size < 1024:
            return f"{size} B"
        elif size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        elif size < 1024 * 1024 * 1024:
            return f"{size / (1024 * 1024):.1f} MB"
        else:
            return f"{size / (1024 * 1024 * 1024):.1f} GB"

    @staticmethod
    def format_date(last_modified: Optional[str]) -> str:
        return last_modified or "Unknown"
