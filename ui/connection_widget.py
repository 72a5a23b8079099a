#!/usr/bin/env python3
"""
Connection widget for Bucket Shelf
Holds the bucket connection settings
"""

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
    QPushButton, QGroupBox, QCheckBox, QMessageBox
)
from PyQt6.QtCore import pyqtSignal

from backend import ConnectionSettings


class ConnectionWidget(QWidget):
    """Widget for editing the connection and requesting a listing"""

    # Signals
    connection_requested = pyqtSignal(dict)  # ConnectionSettings.to_dict()

    def __init__(self, public_mode: bool = False):
        super().__init__()
        self.public_mode = public_mode
        self.init_ui()

    def init_ui(self):
        """Initialize the connection widget UI"""
        layout = QVBoxLayout(self)
        layout.addWidget(self._create_connection_group())

    def _create_connection_group(self) -> QGroupBox:
        """Create the connection settings group with compact layout"""
        group = QGroupBox("Public Bucket" if self.public_mode else "Bucket Connection")
        layout = QVBoxLayout(group)
        layout.setSpacing(4)

        # First row: Endpoint, Region and Bucket
        row1_layout = QHBoxLayout()
        self._setup_location_controls(row1_layout)
        layout.addLayout(row1_layout)

        # Second row: Credentials and Browse button
        row2_layout = QHBoxLayout()
        if not self.public_mode:
            self._setup_credential_controls(row2_layout)
        else:
            row2_layout.addStretch()
        self._setup_connect_controls(row2_layout)
        layout.addLayout(row2_layout)

        return group

    def _setup_location_controls(self, layout: QHBoxLayout):
        layout.addWidget(QLabel("Endpoint:"))
        self.endpoint_edit = QLineEdit()
        self.endpoint_edit.setPlaceholderText("https://sos-ch-dk-2.exo.io")
        self.endpoint_edit.setMinimumHeight(24)
        layout.addWidget(self.endpoint_edit)

        layout.addWidget(QLabel("Region:"))
        self.region_edit = QLineEdit()
        self.region_edit.setPlaceholderText("ch-dk-2")
        self.region_edit.setMinimumHeight(24)
        self.region_edit.setMaximumWidth(120)
        layout.addWidget(self.region_edit)

        layout.addWidget(QLabel("Bucket:"))
        self.bucket_edit = QLineEdit()
        self.bucket_edit.setPlaceholderText("bucket-name")
        self.bucket_edit.setMinimumHeight(24)
        self.bucket_edit.setMaximumWidth(240)
        layout.addWidget(self.bucket_edit)

    def _setup_credential_controls(self, layout: QHBoxLayout):
        """Setup credential input controls"""
        layout.addWidget(QLabel("Access:"))

        self.access_key_edit = QLineEdit()
        self.access_key_edit.setPlaceholderText("Access key")
        self.access_key_edit.setMinimumHeight(24)
        layout.addWidget(self.access_key_edit)

        layout.addWidget(QLabel("Secret:"))

        self.secret_key_edit = QLineEdit()
        self.secret_key_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.secret_key_edit.setPlaceholderText("Secret key")
        self.secret_key_edit.setMinimumHeight(24)
        layout.addWidget(self.secret_key_edit)

        self.show_passwords_checkbox = QCheckBox("Show")
        self.show_passwords_checkbox.stateChanged.connect(self.toggle_password_visibility)
        layout.addWidget(self.show_passwords_checkbox)

    def _setup_connect_controls(self, layout: QHBoxLayout):
        self.connect_button = QPushButton("Browse")
        self.connect_button.clicked.connect(self.request_connection)
        self.connect_button.setDefault(True)
        self.connect_button.setMinimumHeight(24)
        self.connect_button.setMinimumWidth(80)
        layout.addWidget(self.connect_button)

    def toggle_password_visibility(self, state):
        """Toggle visibility of the secret key"""
        if state == 2:  # Checked
            self.secret_key_edit.setEchoMode(QLineEdit.EchoMode.Normal)
        else:
            self.secret_key_edit.setEchoMode(QLineEdit.EchoMode.Password)

    def request_connection(self):
        """Request a listing with the current settings"""
        settings = self.get_settings()
        missing = settings.missing(require_credentials=not self.public_mode)
        if missing:
            QMessageBox.warning(self, "Missing Information",
                                "Please fill in all connection fields.\n\nMissing: " + ", ".join(missing))
            return

        self.connection_requested.emit(settings.to_dict())

    def set_connect_enabled(self, enabled: bool):
        self.connect_button.setEnabled(enabled)

    def get_settings(self) -> ConnectionSettings:
        """Get current form data as settings"""
        return ConnectionSettings(
            endpoint_url=self.endpoint_edit.text(),
            bucket_name=self.bucket_edit.text(),
            access_key="" if self.public_mode else self.access_key_edit.text(),
            secret_key="" if self.public_mode else self.secret_key_edit.text(),
            region=self.region_edit.text()
        )

    def load_settings(self, settings: ConnectionSettings):
        """Load settings into form fields"""
        self.endpoint_edit.setText(settings.endpoint_url)
        self.region_edit.setText(settings.region)
        self.bucket_edit.setText(settings.bucket_name)
        if not self.public_mode:
            self.access_key_edit.setText(settings.access_key)
            self.secret_key_edit.setText(settings.secret_key)
