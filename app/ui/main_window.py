from __future__ import annotations

from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QMainWindow, QTabWidget

from app.services.app_ctx import job_tracker
from app.ui.pages.jobs_page import JobsPage
from app.ui.pages.settings_page import SettingsPage
from app.ui.pages.upload_page import UploadPage
from app.ui.widgets.health_indicator import HealthIndicator


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Stemsmith")

        self.tabs = QTabWidget()
        self.tabs.addTab(UploadPage(self), "Upload")
        self.jobs_page = JobsPage(self)
        self.tabs.addTab(self.jobs_page, "Jobs")
        self.tabs.addTab(SettingsPage(self), "Settings")
        self.setCentralWidget(self.tabs)

        jt = job_tracker()
        self.health = HealthIndicator()
        self.health.set_state(jt.health.value)
        self.statusBar().addPermanentWidget(self.health)
        jt.bus.health_changed.connect(self.health.set_state)
        jt.bus.message.connect(lambda msg: self.statusBar().showMessage(msg, 8000))
        jt.bus.job_added.connect(self.on_job_added)

    def on_job_added(self, job_id: str) -> None:
        self.statusBar().showMessage(f"Submitted job {job_id}", 5000)
        self.tabs.setCurrentWidget(self.jobs_page)

    def closeEvent(self, event: QCloseEvent) -> None:
        # Stop polling before widgets go away; late results are dropped
        job_tracker().shutdown()
        super().closeEvent(event)
