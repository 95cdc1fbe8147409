from __future__ import annotations

from PySide6.QtWidgets import QLabel, QWidget


_COLORS = {
    "unknown": "#9e9e9e",
    "ok": "#2e7d32",
    "fail": "#c62828",
}


class HealthIndicator(QLabel):
    """Coloured dot plus text for the endpoint's reachability."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.set_state("unknown")

    def set_state(self, state: str) -> None:
        color = _COLORS.get(state, _COLORS["unknown"])
        self.setText(f'<span style="color:{color}">&#9679;</span> server {state}')
        self.setToolTip(f"API health: {state}")
