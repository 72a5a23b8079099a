#!/usr/bin/env python3
"""
Section list widget for Bucket Shelf
Shows the bucket listing grouped into sections with per-file download progress
"""

from typing import Dict, List, Optional

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QTreeWidget, QTreeWidgetItem, QProgressBar, QHeaderView
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont

from backend import FileProcessor, Section, DownloadState

NAME_COLUMN = 0
PROGRESS_COLUMN = 3


class SectionListWidget(QWidget):
    """Widget for displaying files grouped by section"""

    # Signals
    download_requested = pyqtSignal(str)  # key
    refresh_requested = pyqtSignal()
    add_file_requested = pyqtSignal(str)  # key
    remove_file_requested = pyqtSignal(str)  # key

    def __init__(self, public_mode: bool = False):
        super().__init__()
        self.public_mode = public_mode
        self.file_items: Dict[str, QTreeWidgetItem] = {}
        self.downloading_keys = set()
        self.init_ui()

    def init_ui(self):
        """Initialize the section list UI"""
        layout = QVBoxLayout(self)

        layout.addLayout(self._create_title_controls())

        if self.public_mode:
            layout.addLayout(self._create_add_file_controls())

        self.tree = QTreeWidget()
        self.tree.setColumnCount(4)
        self.tree.setHeaderLabels(["File Name", "Size", "Last Modified", "Download"])
        self.tree.header().setSectionResizeMode(NAME_COLUMN, QHeaderView.ResizeMode.Stretch)
        self.tree.setRootIsDecorated(True)
        self.tree.itemDoubleClicked.connect(self.on_item_double_clicked)
        self.tree.currentItemChanged.connect(self._update_action_buttons)
        layout.addWidget(self.tree)

        self.empty_label = QLabel("No files found in the bucket.")
        self.empty_label.setStyleSheet("color: gray;")
        self.empty_label.setVisible(False)
        layout.addWidget(self.empty_label)

    def _create_title_controls(self) -> QHBoxLayout:
        title_layout = QHBoxLayout()
        title_layout.addWidget(QLabel("Files:"))

        self.file_count_label = QLabel("0 files")
        self.file_count_label.setStyleSheet("color: gray;")
        title_layout.addWidget(self.file_count_label)

        title_layout.addStretch()

        self.download_button = QPushButton("Download")
        self.download_button.clicked.connect(self.download_selected)
        self.download_button.setEnabled(False)
        title_layout.addWidget(self.download_button)

        if self.public_mode:
            self.remove_button = QPushButton("Remove")
            self.remove_button.setToolTip("Remove from list")
            self.remove_button.clicked.connect(self.remove_selected)
            self.remove_button.setEnabled(False)
            title_layout.addWidget(self.remove_button)

        refresh_button = QPushButton("Refresh")
        refresh_button.clicked.connect(self.refresh_requested.emit)
        title_layout.addWidget(refresh_button)

        return title_layout

    def _create_add_file_controls(self) -> QHBoxLayout:
        """Input for adding files by exact name"""
        add_layout = QHBoxLayout()
        add_layout.addWidget(QLabel("Add file:"))

        self.add_file_edit = QLineEdit()
        self.add_file_edit.setPlaceholderText("e.g., my-video.mp4, document.pdf")
        self.add_file_edit.returnPressed.connect(self.add_file)
        add_layout.addWidget(self.add_file_edit)

        add_button = QPushButton("Add File")
        add_button.clicked.connect(self.add_file)
        add_layout.addWidget(add_button)

        return add_layout

    def add_file(self):
        key = self.add_file_edit.text().strip()
        if not key:
            return
        self.add_file_edit.clear()
        self.add_file_requested.emit(key)

    def set_sections(self, sections: List[Section],
                     download_states: Optional[Dict[str, DownloadState]] = None):
        """Rebuild the tree from freshly classified sections

        ``download_states`` maps keys still downloading to their current
        state, so their progress bars come back where they were.
        """
        self.tree.clear()
        self.file_items = {}

        bold = QFont()
        bold.setBold(True)

        total_files = 0
        for section in sections:
            section_item = QTreeWidgetItem([f"{section.display_name}  ({len(section.files)} files)"])
            section_item.setFont(NAME_COLUMN, bold)
            section_item.setFlags(section_item.flags() & ~Qt.ItemFlag.ItemIsSelectable)
            self.tree.addTopLevelItem(section_item)

            for file_info in section.files:
                item = QTreeWidgetItem([
                    file_info['key'],
                    FileProcessor.format_size(file_info.get('size')),
                    FileProcessor.format_date(file_info.get('last_modified')),
                    ""
                ])
                item.setData(NAME_COLUMN, Qt.ItemDataRole.UserRole, file_info['key'])
                section_item.addChild(item)
                self.file_items[file_info['key']] = item
                total_files += 1

            section_item.setExpanded(True)

        self.file_count_label.setText(f"{total_files} files in {len(sections)} sections")
        self.empty_label.setVisible(total_files == 0)

        # Downloads survive a refresh; put their progress bars back
        download_states = download_states or {}
        self.downloading_keys = set(download_states)
        for key, state in download_states.items():
            self.update_download(key, state)
        self._update_action_buttons()

    def selected_key(self) -> Optional[str]:
        item = self.tree.currentItem()
        if item is None:
            return None
        return item.data(NAME_COLUMN, Qt.ItemDataRole.UserRole)

    def on_item_double_clicked(self, item: QTreeWidgetItem, column: int):
        key = item.data(NAME_COLUMN, Qt.ItemDataRole.UserRole)
        if key and key not in self.downloading_keys:
            self.download_requested.emit(key)

    def download_selected(self):
        key = self.selected_key()
        if key:
            self.download_requested.emit(key)

    def remove_selected(self):
        key = self.selected_key()
        if key:
            self.remove_file_requested.emit(key)

    def _update_action_buttons(self, *args):
        key = self.selected_key()
        self.download_button.setEnabled(bool(key) and key not in self.downloading_keys)
        if self.public_mode:
            self.remove_button.setEnabled(bool(key))

    def _attach_progress_bar(self, key: str) -> Optional[QProgressBar]:
        item = self.file_items.get(key)
        if item is None:
            return None
        progress_bar = self.tree.itemWidget(item, PROGRESS_COLUMN)
        if progress_bar is None:
            progress_bar = QProgressBar()
            progress_bar.setRange(0, 100)
            progress_bar.setMaximumHeight(18)
            self.tree.setItemWidget(item, PROGRESS_COLUMN, progress_bar)
        return progress_bar

    def update_download(self, key: str, state: Optional[DownloadState]):
        """Show the download state of a key, None once it's finished"""
        item = self.file_items.get(key)

        if state is None:
            self.downloading_keys.discard(key)
            if item is not None:
                self.tree.removeItemWidget(item, PROGRESS_COLUMN)
                item.setText(PROGRESS_COLUMN, "")
            self._update_action_buttons()
            return

        self.downloading_keys.add(key)
        progress_bar = self._attach_progress_bar(key)
        if progress_bar is not None:
            progress_bar.setValue(state.percent_complete)
            progress_bar.setFormat(f"{state.percent_complete}%  {state.status.value.replace('_', ' ')}")
        self._update_action_buttons()
