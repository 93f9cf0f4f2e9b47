from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import Qt, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QPen, QPalette
import numpy as np

from beatslicer.core.config import WAVEFORM_CONFIG


class WaveformWidget(QWidget):
    """
    Bar waveform with slice region overlays and a playhead.
    Width follows the zoom level (pixels per second); place it in a scroll area.
    """
    regionClicked = pyqtSignal(object)  # Region
    sliceRequested = pyqtSignal(float)  # Seconds

    def __init__(self, parent=None):
        super().__init__(parent)
        self.audio_data = None
        self.sr = 44100
        self.regions = []
        self.playhead_seconds = 0.0
        self.pixels_per_second = float(WAVEFORM_CONFIG.default_zoom)
        self._peaks = None
        self._peaks_width = 0

        self.setMinimumHeight(WAVEFORM_CONFIG.height)
        self.setAutoFillBackground(True)
        self.setBackgroundRole(QPalette.ColorRole.Base)

        self.wave_color = QColor(*WAVEFORM_CONFIG.wave_color)
        self.progress_color = QColor(*WAVEFORM_CONFIG.progress_color)
        self.playhead_color = QColor(*WAVEFORM_CONFIG.playhead_color)
        self.region_colors = [QColor(*c) for c in WAVEFORM_CONFIG.region_colors]

    @property
    def duration(self):
        if self.audio_data is None or self.sr <= 0:
            return 0.0
        return len(self.audio_data) / self.sr

    def set_data(self, data, sr):
        """Sets the audio data for visualization (None clears)."""
        self.audio_data = data
        self.sr = sr
        self.playhead_seconds = 0.0
        self._peaks = None
        self._resize_to_zoom()
        self.update()

    def set_regions(self, regions):
        self.regions = list(regions)
        self.update()

    def set_playhead(self, seconds):
        if self.playhead_seconds != seconds:
            self.playhead_seconds = seconds
            self.update()

    def set_zoom(self, pixels_per_second):
        self.pixels_per_second = float(pixels_per_second)
        self._peaks = None
        self._resize_to_zoom()
        self.update()

    def _resize_to_zoom(self):
        if self.audio_data is None:
            self.setMinimumWidth(0)
            return
        self.setMinimumWidth(max(1, int(self.duration * self.pixels_per_second)))

    def _x_for(self, seconds):
        return seconds * self.pixels_per_second

    def _seconds_for(self, x):
        return x / self.pixels_per_second if self.pixels_per_second > 0 else 0.0

    def _compute_peaks(self, width):
        """Per-pixel peak amplitude, normalized to 1.0."""
        mono = self.audio_data.mean(axis=1) if self.audio_data.ndim > 1 else self.audio_data
        bins = max(1, width)
        usable = (len(mono) // bins) * bins
        if usable == 0:
            peaks = np.abs(np.resize(mono, bins))
        else:
            peaks = np.abs(mono[:usable]).reshape(bins, -1).max(axis=1)
        top = peaks.max() if peaks.size else 0.0
        return peaks / top if top > 0 else peaks

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(9, 9, 11))

        if self.audio_data is None:
            painter.setPen(QColor(100, 100, 100))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No Audio Loaded")
            return

        width, height = self.width(), self.height()
        if self._peaks is None or self._peaks_width != width:
            self._peaks = self._compute_peaks(width)
            self._peaks_width = width

        # Bars: 2px wide, 1px gap
        mid_y = height / 2
        playhead_x = self._x_for(self.playhead_seconds)
        visible = event.rect()
        for x in range(max(0, visible.left() - visible.left() % 3), min(width, visible.right() + 1), 3):
            amp = float(self._peaks[min(x, len(self._peaks) - 1)]) * mid_y * 0.9
            color = self.progress_color if x < playhead_x else self.wave_color
            painter.fillRect(QRectF(x, mid_y - amp, 2, max(1.0, amp * 2)), color)

        self._draw_regions(painter, height)
        self._draw_playhead(painter, height, playhead_x)

    def _draw_regions(self, painter, height):
        for region in self.regions:
            x0 = self._x_for(region.start)
            x1 = self._x_for(region.end)
            color = self.region_colors[region.index % len(self.region_colors)]
            painter.fillRect(QRectF(x0, 0, x1 - x0, height), color)
            painter.setPen(QPen(QColor(255, 255, 255, 120), 1))
            painter.drawLine(int(x0), 0, int(x0), height)
            painter.setPen(QColor(230, 230, 230))
            painter.drawText(QRectF(x0 + 4, 4, 40, 16), Qt.AlignmentFlag.AlignLeft, str(region.index + 1))

    def _draw_playhead(self, painter, height, playhead_x):
        painter.setPen(QPen(self.playhead_color, 1))
        painter.drawLine(int(playhead_x), 0, int(playhead_x), height)

    def region_at(self, seconds):
        for region in self.regions:
            if region.contains(seconds):
                return region
        return None

    def mouseReleaseEvent(self, event):
        if self.audio_data is None or event.button() != Qt.MouseButton.LeftButton:
            return
        region = self.region_at(self._seconds_for(event.position().x()))
        if region is not None:
            self.regionClicked.emit(region)

    def mouseDoubleClickEvent(self, event):
        if self.audio_data is None:
            return
        seconds = self._seconds_for(event.position().x())
        if 0 <= seconds < self.duration:
            self.sliceRequested.emit(seconds)
