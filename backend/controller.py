#!/usr/bin/env python3
"""
Bucket controller
Owns the current listing, its sections and the per-key download state
"""

from typing import Any, Callable, Dict, List, Optional

from .download import DownloadState, DownloadStatus, ProgressiveDownloader
from .sections import Section, classify

LISTING_CHANGED = 'listing_changed'
DOWNLOAD_CHANGED = 'download_changed'


class BucketController:
    """State holder shared by the window and the background workers

    All methods are meant to be called from one thread; workers report
    back through signals and the window forwards them here.
    """

    def __init__(self, lister: Callable[[], List[Dict[str, Any]]],
                 downloader: Optional[ProgressiveDownloader] = None, verbose: bool = False):
        self.lister = lister
        self.downloader = downloader
        self.verbose = verbose
        self.files: List[Dict[str, Any]] = []
        self.sections: List[Section] = []
        self.downloads: Dict[str, DownloadState] = {}
        self._listeners: List[Callable[[str, Optional[str]], None]] = []

    def subscribe(self, listener: Callable[[str, Optional[str]], None]):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[str, Optional[str]], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str, key: Optional[str] = None):
        for listener in list(self._listeners):
            listener(event, key)

    # Listing

    def fetch_listing(self) -> List[Dict[str, Any]]:
        """Run the lister without touching state (safe from a worker thread)"""
        return self.lister()

    def set_listing(self, files: List[Dict[str, Any]]):
        self.files = list(files)
        self.sections = classify(self.files)
        if self.verbose:
            print(f"[VERBOSE] Listing has {len(self.files)} files in {len(self.sections)} sections")
            for section in self.sections:
                print(f"[VERBOSE] - {section.display_name}: {len(section.files)} files")
        self._notify(LISTING_CHANGED)

    def refresh(self) -> List[Section]:
        """List the bucket and rebuild sections

        A failing listing raises before anything is replaced.
        """
        files = self.fetch_listing()
        self.set_listing(files)
        return self.sections

    # Downloads

    def get_download_state(self, key: str) -> Optional[DownloadState]:
        return self.downloads.get(key)

    def is_downloading(self, key: str) -> bool:
        return key in self.downloads

    def active_downloads(self) -> List[str]:
        return list(self.downloads)

    def begin_download(self, key: str) -> bool:
        """Register a new download, False if one is already running for key"""
        if key in self.downloads:
            if self.verbose:
                print(f"[VERBOSE] Download already in progress for: {key}")
            return False
        self.downloads[key] = DownloadState(DownloadStatus.REQUESTING_URL, 0)
        self._notify(DOWNLOAD_CHANGED, key)
        return True

    def update_status(self, key: str, status: DownloadStatus):
        state = self.downloads.get(key)
        if state is None or state.status == status:
            return
        state.status = status
        self._notify(DOWNLOAD_CHANGED, key)

    def update_progress(self, key: str, percent: int):
        state = self.downloads.get(key)
        if state is None:
            return
        percent = max(0, min(100, int(percent)))
        if percent <= state.percent_complete:
            return
        state.percent_complete = percent
        self._notify(DOWNLOAD_CHANGED, key)

    def finish_download(self, key: str):
        if self.downloads.pop(key, None) is not None:
            self._notify(DOWNLOAD_CHANGED, key)

    def download(self, key: str) -> Optional[str]:
        """Download key in the calling thread

        Returns the saved path, or None when the key is already downloading.
        Errors are raised after the key's state has been cleared.
        """
        if self.downloader is None:
            raise RuntimeError("No downloader configured")
        if not self.begin_download(key):
            return None
        try:
            return self.downloader.download(
                key,
                status_callback=lambda status: self.update_status(key, status),
                progress_callback=lambda percent: self.update_progress(key, percent)
            )
        finally:
            self.finish_download(key)
