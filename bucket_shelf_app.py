#!/usr/bin/env python3
"""
Bucket Shelf: browse and download files from S3-compatible storage, grouped into sections
"""

import sys
import os
import argparse
from typing import Dict, List, Optional

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QProgressBar,
    QStatusBar, QMessageBox, QFileDialog
)

from backend import (
    BucketController, ConnectionSettings, ConfigurationError, DirectorySaver,
    DownloadStatus, ManualListing, ProgressiveDownloader, PublicBucket, S3Client,
    load_settings
)
from backend.controller import LISTING_CHANGED, DOWNLOAD_CHANGED
from backend.workers import ListingWorker, DownloadWorker
from ui import ConnectionWidget, SectionListWidget


class BucketShelfMainWindow(QMainWindow):
    """Main window for the Bucket Shelf application"""

    def __init__(self, public_mode: bool = False, initial_keys: Optional[List[str]] = None,
                 download_dir: Optional[str] = None, verbose: bool = False):
        super().__init__()

        self.public_mode = public_mode
        self.initial_keys = initial_keys or []
        self.download_dir = download_dir
        self.verbose = verbose

        self.controller = BucketController(lister=lambda: [], verbose=verbose)
        self.controller.subscribe(self.on_controller_event)
        self.manual_listing: Optional[ManualListing] = None
        self.listing_worker: Optional[ListingWorker] = None
        self.download_workers: Dict[str, DownloadWorker] = {}
        self.downloader_url_provider = None
        self.s3_client: Optional[S3Client] = None

        self.init_ui()
        self.setup_status_bar()
        self.connect_signals()

    def init_ui(self):
        """Initialize the user interface"""
        self.setWindowTitle("Bucket Shelf")
        self.setGeometry(100, 100, 1000, 700)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)

        self.connection_widget = ConnectionWidget(public_mode=self.public_mode)
        self.connection_widget.setMaximumHeight(120)
        main_layout.addWidget(self.connection_widget)

        # Listing progress (indeterminate, hidden when idle)
        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        self.progress_bar.setMaximumHeight(25)
        main_layout.addWidget(self.progress_bar)

        self.section_list_widget = SectionListWidget(public_mode=self.public_mode)
        main_layout.addWidget(self.section_list_widget, 1)

    def setup_status_bar(self):
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready to connect to S3-compatible storage")

    def connect_signals(self):
        """Connect signals between components"""
        self.connection_widget.connection_requested.connect(self.connect_to_bucket)

        self.section_list_widget.download_requested.connect(self.start_download)
        self.section_list_widget.refresh_requested.connect(self.refresh_file_list)
        self.section_list_widget.add_file_requested.connect(self.add_file)
        self.section_list_widget.remove_file_requested.connect(self.remove_file)

    def load_settings(self, settings: ConnectionSettings):
        """Fill the connection form and connect when the settings are complete"""
        self.connection_widget.load_settings(settings)
        try:
            settings.validate(require_credentials=not self.public_mode)
        except ConfigurationError as e:
            self.status_bar.showMessage(str(e))
            return
        self.connect_to_bucket(settings.to_dict())

    def connect_to_bucket(self, connection_data: Dict[str, str]):
        """Point the controller at a bucket and list it"""
        settings = ConnectionSettings.from_dict(connection_data)

        if self.verbose:
            print(f"[VERBOSE] Connecting to bucket {settings.bucket_name} at {settings.endpoint_url}")

        if self.public_mode:
            bucket = PublicBucket(settings.endpoint_url, settings.bucket_name, self.verbose)
            known_keys = self.manual_listing.known_keys if self.manual_listing else self.initial_keys
            self.manual_listing = ManualListing(bucket, known_keys)
            self.controller.lister = self.manual_listing.list_objects
            self.s3_client = None
            url_provider = bucket.object_url
        else:
            self.s3_client = S3Client(settings, self.verbose)
            self.controller.lister = self.s3_client.list_objects
            url_provider = self.s3_client.generate_download_url

        self.downloader_url_provider = url_provider
        self.refresh_file_list()

    def refresh_file_list(self):
        """List the bucket in the background"""
        if self.listing_worker and self.listing_worker.isRunning():
            QMessageBox.information(self, "Please Wait", "A listing is already in progress.")
            return

        self.connection_widget.set_connect_enabled(False)
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, 0)  # Indeterminate progress

        self.listing_worker = ListingWorker(self.controller.fetch_listing, self.verbose)
        self.listing_worker.files_loaded.connect(self.on_files_loaded)
        self.listing_worker.error_occurred.connect(self.on_error_occurred)
        self.listing_worker.progress_update.connect(self.status_bar.showMessage)
        self.listing_worker.finished.connect(self.on_listing_finished)
        self.listing_worker.start()

    def on_files_loaded(self, files: List[Dict]):
        if self.manual_listing is not None:
            files = self.manual_listing.keep_known(files)
        self.controller.set_listing(files)

    def on_listing_finished(self):
        self.connection_widget.set_connect_enabled(True)
        self.progress_bar.setVisible(False)

    def on_controller_event(self, event: str, key: Optional[str]):
        if event == LISTING_CHANGED:
            self.section_list_widget.set_sections(self.controller.sections, self.controller.downloads)
            message = f"Found {len(self.controller.files)} files in {len(self.controller.sections)} sections"
            if self.s3_client is not None and self.s3_client.listing_partial:
                message += " (partial listing, first page only)"
            self.status_bar.showMessage(message)
        elif event == DOWNLOAD_CHANGED:
            self.section_list_widget.update_download(key, self.controller.get_download_state(key))

    def on_error_occurred(self, error_message: str):
        QMessageBox.critical(self, "Error", error_message)
        self.status_bar.showMessage("Error occurred")

    def _choose_download_dir(self) -> Optional[str]:
        if self.download_dir:
            return self.download_dir

        download_dir = QFileDialog.getExistingDirectory(
            self, "Select Download Directory", os.path.expanduser("~/Downloads")
        )
        if download_dir:
            self.download_dir = download_dir
        return download_dir or None

    def start_download(self, key: str):
        """Download one key in the background"""
        if self.controller.is_downloading(key):
            self.status_bar.showMessage(f"Download already in progress for: {key}")
            return
        if self.downloader_url_provider is None:
            QMessageBox.warning(self, "Not Connected", "Please connect to a bucket before downloading files.")
            return

        download_dir = self._choose_download_dir()
        if not download_dir or not self.controller.begin_download(key):
            return

        downloader = ProgressiveDownloader(
            self.downloader_url_provider, DirectorySaver(download_dir), verbose=self.verbose
        )
        worker = DownloadWorker(downloader, key)
        worker.status_changed.connect(self.on_download_status)
        worker.progress_changed.connect(self.on_download_progress)
        worker.download_complete.connect(self.on_download_complete)
        worker.download_failed.connect(self.on_download_failed)
        worker.finished.connect(self.on_download_finished)
        self.download_workers[key] = worker
        worker.start()
        self.status_bar.showMessage(f"Downloading {key}...")

    def on_download_status(self, key: str, status_value: str):
        self.controller.update_status(key, DownloadStatus(status_value))

    def on_download_progress(self, key: str, percent: int):
        self.controller.update_progress(key, percent)

    def on_download_complete(self, key: str, local_path: str):
        self.status_bar.showMessage(f"Downloaded {key} to {local_path}")

    def on_download_failed(self, key: str, message: str):
        QMessageBox.warning(self, "Download Failed", message)
        self.status_bar.showMessage(f"Download failed for {key}")

    def on_download_finished(self):
        worker = self.sender()
        self.controller.finish_download(worker.key)
        self.download_workers.pop(worker.key, None)

    def add_file(self, key: str):
        """Add a file by name in public mode and look the list up again"""
        if self.manual_listing is None:
            if key not in self.initial_keys:
                self.initial_keys.append(key)
            self.connection_widget.request_connection()
            return
        if not self.manual_listing.add(key):
            QMessageBox.information(self, "Already Listed", "File already in the list!")
            return
        self.refresh_file_list()

    def remove_file(self, key: str):
        if self.manual_listing is None:
            return
        self.manual_listing.remove(key)
        self.controller.set_listing([f for f in self.controller.files if f['key'] != key])

    def closeEvent(self, event):
        """Let running workers finish before the window goes away"""
        workers = list(self.download_workers.values())
        if self.listing_worker:
            workers.append(self.listing_worker)
        for worker in workers:
            if worker.isRunning():
                worker.wait()
        super().closeEvent(event)


def main():
    """Main application entry point"""
    parser = argparse.ArgumentParser(description='Bucket Shelf - Browse and download files from S3-compatible storage')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output for connection debugging')
    parser.add_argument('--public', action='store_true',
                        help='Access a public bucket by URL instead of signed requests')
    parser.add_argument('--key', action='append', default=[], metavar='KEY',
                        help='Known file to look up in public mode (repeatable)')
    parser.add_argument('--profile', help='Saved connection profile to start from')
    parser.add_argument('--download-dir', help='Directory downloads are saved to')
    args = parser.parse_args()

    if args.verbose:
        print("[VERBOSE] Bucket Shelf starting with verbose mode enabled")

    try:
        settings = load_settings(profile_name=args.profile)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    app = QApplication(sys.argv)
    app.setApplicationName("Bucket Shelf")
    app.setApplicationVersion("0.1.0")

    window = BucketShelfMainWindow(
        public_mode=args.public,
        initial_keys=args.key,
        download_dir=args.download_dir,
        verbose=args.verbose
    )
    window.show()
    window.load_settings(settings)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
