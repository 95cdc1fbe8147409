from __future__ import annotations

from PySide6.QtCore import QUrl
from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QFileDialog,
)
from PySide6.QtGui import QDesktopServices

from app.core.paths import downloads_dir, logs_dir
from app.services.app_ctx import job_tracker
from app.ui.widgets.health_indicator import HealthIndicator
from stemclient.config import Config


class SettingsPage(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)

        jt = job_tracker()

        # Endpoint
        self.endpoint_edit = QLineEdit(jt.endpoint)
        self.endpoint_edit.setPlaceholderText(Config.DEFAULT_ENDPOINT)
        self.endpoint_edit.editingFinished.connect(self.on_endpoint_changed)
        self.health = HealthIndicator()
        self.health.set_state(jt.health.value)
        jt.bus.health_changed.connect(self.health.set_state)

        # Downloads dir
        self.downloads_edit = QLineEdit(str(jt.client_settings.download_dir))
        self.downloads_browse = QPushButton("Browse…")
        self.downloads_browse.clicked.connect(self.browse_downloads)

        # Open dirs
        self.open_downloads = QPushButton("Open Downloads Folder")
        self.open_downloads.clicked.connect(lambda: QDesktopServices.openUrl(QUrl.fromLocalFile(str(downloads_dir()))))
        self.open_logs = QPushButton("Open Logs Folder")
        self.open_logs.clicked.connect(lambda: QDesktopServices.openUrl(QUrl.fromLocalFile(str(logs_dir()))))

        # Layout
        layout = QVBoxLayout(self)

        row1 = QHBoxLayout()
        row1.addWidget(QLabel("API endpoint:"))
        row1.addWidget(self.endpoint_edit, 1)
        row1.addWidget(self.health)
        layout.addLayout(row1)

        row2 = QHBoxLayout()
        row2.addWidget(QLabel("Downloads dir:"))
        row2.addWidget(self.downloads_edit, 1)
        row2.addWidget(self.downloads_browse)
        layout.addLayout(row2)

        row3 = QHBoxLayout()
        row3.addWidget(self.open_downloads)
        row3.addWidget(self.open_logs)
        row3.addStretch(1)
        layout.addLayout(row3)

        layout.addStretch(1)

    # Handlers ---------------------------------------------------------------
    def on_endpoint_changed(self) -> None:
        jt = job_tracker()
        text = self.endpoint_edit.text()
        if text.strip().rstrip("/") == jt.endpoint:
            self.endpoint_edit.setText(jt.endpoint)
            return
        self.endpoint_edit.setText(jt.set_endpoint(text))

    def browse_downloads(self) -> None:
        d = QFileDialog.getExistingDirectory(self, "Select downloads directory", self.downloads_edit.text() or str(downloads_dir()))
        if d:
            self.downloads_edit.setText(d)
            job_tracker().set_download_dir(d)
