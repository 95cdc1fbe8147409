from __future__ import annotations

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QTableWidget,
    QTableWidgetItem,
    QPushButton,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QAbstractItemView,
)

from app.services.app_ctx import job_tracker
from stemclient.orchestrator import RemovalChoice, TrackedJob
from stemclient.view import format_progress


class JobsPage(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["ID", "State", "Progress", "Message"])
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.table.itemSelectionChanged.connect(self._refresh_actions)

        self.empty_label = QLabel("No jobs yet. Upload a WAV to start.")

        self.cancel_btn = QPushButton("Cancel Selected")
        self.cancel_btn.clicked.connect(self.cancel_selected)
        self.download_btn = QPushButton("Download Stems")
        self.download_btn.clicked.connect(self.download_selected)
        self.remove_btn = QPushButton("Remove Selected")
        self.remove_btn.clicked.connect(self.remove_selected)

        top = QHBoxLayout()
        top.addWidget(QLabel("Jobs"))
        top.addStretch(1)
        top.addWidget(self.cancel_btn)
        top.addWidget(self.download_btn)
        top.addWidget(self.remove_btn)

        layout = QVBoxLayout(self)
        layout.addLayout(top)
        layout.addWidget(self.empty_label)
        layout.addWidget(self.table, 1)

        jt = job_tracker()
        jt.bus.job_added.connect(self.on_job_added)
        jt.bus.job_updated.connect(self.on_job_updated)
        jt.bus.job_removed.connect(self.on_job_removed)
        for job in reversed(jt.jobs()):
            self.on_job_added(job.id)
        self._refresh_actions()

    def _find_row(self, job_id: str) -> int:
        for r in range(self.table.rowCount()):
            if self.table.item(r, 0) and self.table.item(r, 0).text() == job_id:
                return r
        return -1

    def _selected_jobs(self) -> list[TrackedJob]:
        jt = job_tracker()
        jobs = []
        for idx in self.table.selectionModel().selectedRows():
            job = jt.job(self.table.item(idx.row(), 0).text())
            if job is not None:
                jobs.append(job)
        return jobs

    def _render(self, row: int, job: TrackedJob) -> None:
        self.table.setItem(row, 1, QTableWidgetItem(job.display.value))
        self.table.setItem(row, 2, QTableWidgetItem(format_progress(job.snapshot)))
        if job.downloading:
            message = "Downloading..."
        elif job.error:
            message = job.error
        elif job.downloaded_to:
            message = f"Saved to {job.downloaded_to}"
        else:
            message = job.snapshot.output_location or ""
        self.table.setItem(row, 3, QTableWidgetItem(message))

    def on_job_added(self, job_id: str) -> None:
        job = job_tracker().job(job_id)
        if job is None or self._find_row(job_id) >= 0:
            return
        # Newest first
        self.table.insertRow(0)
        self.table.setItem(0, 0, QTableWidgetItem(job_id))
        self._render(0, job)
        self.empty_label.setVisible(False)
        self._refresh_actions()

    def on_job_updated(self, job_id: str) -> None:
        row = self._find_row(job_id)
        job = job_tracker().job(job_id)
        if row >= 0 and job is not None:
            self._render(row, job)
        self._refresh_actions()

    def on_job_removed(self, job_id: str) -> None:
        row = self._find_row(job_id)
        if row >= 0:
            self.table.removeRow(row)
        self.empty_label.setVisible(self.table.rowCount() == 0)
        self._refresh_actions()

    def _refresh_actions(self) -> None:
        selected = self._selected_jobs()
        self.cancel_btn.setEnabled(any(j.can_cancel for j in selected))
        self.download_btn.setEnabled(len(selected) == 1 and selected[0].can_download)
        self.remove_btn.setEnabled(bool(selected))

    def cancel_selected(self) -> None:
        jt = job_tracker()
        for job in self._selected_jobs():
            if job.can_cancel:
                jt.cancel(job.id)

    def download_selected(self) -> None:
        selected = self._selected_jobs()
        if len(selected) == 1 and selected[0].can_download:
            job_tracker().download(selected[0].id)

    def remove_selected(self) -> None:
        jt = job_tracker()
        for job in self._selected_jobs():
            jt.remove(job.id, self.confirm_removal)

    def confirm_removal(self, job: TrackedJob) -> RemovalChoice:
        box = QMessageBox(self)
        box.setIcon(QMessageBox.Icon.Warning)
        box.setWindowTitle("Job still running")
        box.setText(f"Job {job.id} is {job.display.value}.")
        box.setInformativeText(
            "Removing it from this list does not stop it on the server. Cancel the job instead?"
        )
        cancel_job = box.addButton("Cancel Job", QMessageBox.ButtonRole.AcceptRole)
        remove_only = box.addButton("Remove Anyway", QMessageBox.ButtonRole.DestructiveRole)
        keep = box.addButton("Keep", QMessageBox.ButtonRole.RejectRole)
        box.setDefaultButton(keep)
        box.exec()
        clicked = box.clickedButton()
        if clicked is cancel_job:
            return RemovalChoice.CANCEL if job.can_cancel else RemovalChoice.KEEP
        if clicked is remove_only:
            return RemovalChoice.REMOVE
        return RemovalChoice.KEEP
