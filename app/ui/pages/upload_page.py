from __future__ import annotations

from pathlib import Path

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QComboBox,
    QCheckBox,
    QFileDialog,
    QGroupBox,
)

from app.services.app_ctx import job_tracker
from stemclient.config import MODEL_LABELS, STEM_LABELS
from stemclient.models import JobConfig
from stemclient.upload import is_wav, guess_content_type
from stemclient.utils import format_size


class UploadPage(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)

        self._file: Path | None = None
        self._config = JobConfig.default()
        self._stem_boxes: list[QCheckBox] = []

        self.choose_btn = QPushButton("Choose WAV…")
        self.choose_btn.clicked.connect(self.choose_file)
        self.file_label = QLabel("No file selected")

        self.model_combo = QComboBox()
        for key, label in MODEL_LABELS.items():
            self.model_combo.addItem(label, key)
        self.model_combo.setCurrentIndex(self.model_combo.findData(self._config.model))
        self.model_combo.currentIndexChanged.connect(self.on_model_changed)

        self.stems_box = QGroupBox("Stems")
        self.stems_layout = QHBoxLayout(self.stems_box)

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(self.reset)
        self.upload_btn = QPushButton("Upload")
        self.upload_btn.clicked.connect(self.upload)

        # Layout
        layout = QVBoxLayout(self)

        row1 = QHBoxLayout()
        row1.addWidget(self.choose_btn)
        row1.addWidget(self.file_label, 1)
        layout.addLayout(row1)

        row2 = QHBoxLayout()
        row2.addWidget(QLabel("Model profile:"))
        row2.addWidget(self.model_combo)
        row2.addStretch(1)
        layout.addLayout(row2)

        layout.addWidget(self.stems_box)

        row3 = QHBoxLayout()
        row3.addStretch(1)
        row3.addWidget(self.reset_btn)
        row3.addWidget(self.upload_btn)
        layout.addLayout(row3)
        layout.addStretch(1)

        self._rebuild_stems()
        job_tracker().bus.upload_changed.connect(lambda _busy: self._refresh_actions())
        self._refresh_actions()

    # Handlers ---------------------------------------------------------------
    def choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select WAV file", "", "WAV audio (*.wav);;All files (*)")
        if not path:
            return
        p = Path(path)
        if not is_wav(p.name, guess_content_type(p)):
            job_tracker().bus.message.emit("Please select a WAV file")
            return
        self._file = p
        self.file_label.setText(f"{p.name} ({format_size(p.stat().st_size)})")
        self._refresh_actions()

    def on_model_changed(self, index: int) -> None:
        key = self.model_combo.itemData(index)
        if key:
            self._config = self._config.with_model(key)
            self._rebuild_stems()

    def on_stem_toggled(self, stem: str) -> None:
        self._config = self._config.toggle_stem(stem)

    def reset(self) -> None:
        self._file = None
        self.file_label.setText("No file selected")
        self._refresh_actions()

    def upload(self) -> None:
        tracker = job_tracker()
        if self._file is None or tracker.uploading:
            return
        tracker.submit(self._file, self._config)
        self._refresh_actions()

    # Helpers ----------------------------------------------------------------
    def _rebuild_stems(self) -> None:
        for box in self._stem_boxes:
            self.stems_layout.removeWidget(box)
            box.deleteLater()
        self._stem_boxes = []
        for stem in self._config.available_stems:
            box = QCheckBox(STEM_LABELS.get(stem, stem))
            box.setChecked(stem in self._config.stems)
            box.toggled.connect(lambda _checked, s=stem: self.on_stem_toggled(s))
            self.stems_layout.addWidget(box)
            self._stem_boxes.append(box)

    def _refresh_actions(self) -> None:
        busy = job_tracker().uploading
        # Disabled while a submission is in flight: the only guard against double uploads
        self.upload_btn.setEnabled(self._file is not None and not busy)
        self.upload_btn.setText("Uploading..." if busy else "Upload")
        self.reset_btn.setEnabled(self._file is not None and not busy)
        self.choose_btn.setEnabled(not busy)
