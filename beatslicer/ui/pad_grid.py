from PyQt6.QtWidgets import QWidget, QGridLayout, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QSizePolicy
from PyQt6.QtCore import Qt, QTimer, pyqtSignal

from beatslicer.core.config import PAD_CONFIG
from beatslicer.core.pads import PAD_SLOTS

# Pastel colours, one per pad
PAD_COLORS = [
    "#fca5a5", "#fdba74", "#fcd34d", "#fde047",
    "#bef264", "#86efac", "#6ee7b7", "#5eead4",
    "#67e8f9", "#7dd3fc", "#93c5fd", "#a5b4fc",
    "#c4b5fd", "#d8b4fe", "#f0abfc", "#f9a8d4",
]


class PadGridWidget(QWidget):
    """4x4 performance pads; inert pads are disabled."""
    padTriggered = pyqtSignal(int)  # Slot index

    def __init__(self, parent=None):
        super().__init__(parent)
        self.buttons = []
        self.init_ui()
        self.set_live_slots(set())

    def init_ui(self):
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        title = QLabel("PERFORMANCE PADS")
        title.setStyleSheet("color: #a1a1aa; font-family: 'Consolas'; font-size: 11px; letter-spacing: 2px;")
        hint = QLabel("KEYBOARD MAPPED")
        hint.setStyleSheet("color: #71717a; font-family: 'Consolas'; font-size: 10px;")
        header.addWidget(title)
        header.addStretch()
        header.addWidget(hint)
        layout.addLayout(header)

        grid = QGridLayout()
        grid.setSpacing(10)
        for slot in PAD_SLOTS:
            btn = QPushButton(f"{slot.slot_index + 1}\n{slot.key_binding.upper()}")
            btn.setMinimumSize(72, 72)
            btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            btn.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
            btn.clicked.connect(lambda checked, i=slot.slot_index: self.padTriggered.emit(i))
            row, col = divmod(slot.slot_index, PAD_CONFIG.columns)
            grid.addWidget(btn, row, col)
            self.buttons.append(btn)
        layout.addLayout(grid)

    def _style(self, index, live, active=False):
        if not live:
            return ("QPushButton { background-color: #27272a; color: #52525b; "
                    "border: 1px solid #3f3f46; border-radius: 8px; font-weight: bold; }")
        color = PAD_COLORS[index % len(PAD_COLORS)]
        border = "#ffffff" if active else "rgba(0, 0, 0, 40)"
        return (f"QPushButton {{ background-color: {color}; color: #18181b; "
                f"border: 2px solid {border}; border-radius: 8px; font-weight: bold; font-size: 16px; }}")

    def set_live_slots(self, live):
        for i, btn in enumerate(self.buttons):
            is_live = i in live
            btn.setEnabled(is_live)
            btn.setStyleSheet(self._style(i, is_live))

    def flash(self, index):
        """Brief visual feedback for a triggered pad."""
        if not 0 <= index < len(self.buttons):
            return
        btn = self.buttons[index]
        btn.setStyleSheet(self._style(index, True, active=True))
        QTimer.singleShot(PAD_CONFIG.flash_ms, lambda: btn.setStyleSheet(self._style(index, btn.isEnabled())))
