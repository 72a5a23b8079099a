import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from backend import DownloadState, DownloadStatus, classify
from ui.section_list_widget import SectionListWidget, PROGRESS_COLUMN

FILES = [
    {'key': "en-a.mp4", 'size': 1024, 'last_modified': "2024-05-01 12:30:00"},
    {'key': "es-b.mp4", 'size': 2048, 'last_modified': None},
]


@pytest.fixture(scope="module")
def qapp():
    return QApplication.instance() or QApplication([])


@pytest.fixture
def widget(qapp):
    return SectionListWidget()


def progress_value(widget, key):
    progress_bar = widget.tree.itemWidget(widget.file_items[key], PROGRESS_COLUMN)
    return None if progress_bar is None else progress_bar.value()


def test_set_sections_lists_every_file(widget):
    widget.set_sections(classify(FILES))

    assert set(widget.file_items) == {"en-a.mp4", "es-b.mp4"}
    assert widget.file_count_label.text() == "2 files in 2 sections"


def test_refresh_keeps_download_progress(widget):
    widget.set_sections(classify(FILES))
    widget.update_download("en-a.mp4", DownloadState(DownloadStatus.STREAMING, 10))

    widget.set_sections(classify(FILES), {"en-a.mp4": DownloadState(DownloadStatus.STREAMING, 40)})

    assert progress_value(widget, "en-a.mp4") == 40
    assert progress_value(widget, "es-b.mp4") is None
    assert widget.downloading_keys == {"en-a.mp4"}


def test_refresh_without_downloads_clears_progress(widget):
    widget.set_sections(classify(FILES))
    widget.update_download("en-a.mp4", DownloadState(DownloadStatus.STREAMING, 10))

    widget.set_sections(classify(FILES), {})

    assert progress_value(widget, "en-a.mp4") is None
    assert widget.downloading_keys == set()


def test_finished_download_removes_progress_bar(widget):
    widget.set_sections(classify(FILES), {"es-b.mp4": DownloadState(DownloadStatus.ASSEMBLING, 100)})

    widget.update_download("es-b.mp4", None)

    assert progress_value(widget, "es-b.mp4") is None
    assert "es-b.mp4" not in widget.downloading_keys
