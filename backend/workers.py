#!/usr/bin/env python3
"""
Worker threads for bucket operations
Handles background operations without blocking the UI
"""

from PyQt6.QtCore import QThread, pyqtSignal
from typing import Any, Callable, Dict, List

from .download import ProgressiveDownloader
from .errors import describe_error


class ListingWorker(QThread):
    """Worker thread for listing the bucket"""

    files_loaded = pyqtSignal(list)
    error_occurred = pyqtSignal(str)
    progress_update = pyqtSignal(str)

    def __init__(self, lister: Callable[[], List[Dict[str, Any]]], verbose: bool = False):
        super().__init__()
        self.lister = lister
        self.verbose = verbose

    def run(self):
        try:
            self.progress_update.emit("Listing bucket contents...")
            files = self.lister()
            if self.verbose:
                print(f"[VERBOSE] ListingWorker loaded {len(files)} files")
            self.progress_update.emit(f"Loaded {len(files)} files")
            self.files_loaded.emit(files)
        except Exception as e:
            if self.verbose:
                print(f"[VERBOSE] ListingWorker failed: {type(e).__name__}: {e}")
            self.error_occurred.emit(f"Failed to load files: {describe_error(e)}")


class DownloadWorker(QThread):
    """Worker thread for downloading one key"""

    status_changed = pyqtSignal(str, str)  # key, DownloadStatus value
    progress_changed = pyqtSignal(str, int)  # key, percent
    download_complete = pyqtSignal(str, str)  # key, local path
    download_failed = pyqtSignal(str, str)  # key, message

    def __init__(self, downloader: ProgressiveDownloader, key: str):
        super().__init__()
        self.downloader = downloader
        self.key = key

    def run(self):
        try:
            local_path = self.downloader.download(
                self.key,
                status_callback=lambda status: self.status_changed.emit(self.key, status.value),
                progress_callback=lambda percent: self.progress_changed.emit(self.key, percent)
            )
            self.download_complete.emit(self.key, local_path)
        except Exception as e:
            self.download_failed.emit(self.key, f"Download failed for {self.key}: {describe_error(e)}")
