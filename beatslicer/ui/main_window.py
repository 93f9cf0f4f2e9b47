from pathlib import Path

from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                             QPushButton, QLabel, QFileDialog, QScrollArea,
                             QSlider, QMessageBox)
from PyQt6.QtCore import Qt, QThread, QSize
from PyQt6.QtGui import QAction, QKeySequence
import qtawesome as qta
import soundfile as sf

from beatslicer.core.analysis import create_analysis_client
from beatslicer.core.config import WAVEFORM_CONFIG, TransportState
from beatslicer.core.coordinator import PlaybackCoordinator
from beatslicer.core.export import export_regions
from beatslicer.core.pads import PadTriggerFilter, live_slots, slot_for_key
from beatslicer.core.slices import insert_slice
from beatslicer.core.transport import SoundDeviceTransport
from beatslicer.ui.dispatch import QtDispatcher
from beatslicer.ui.pad_grid import PadGridWidget
from beatslicer.ui.waveform_view import WaveformWidget
from beatslicer.ui.workers import AnalysisWorker
from beatslicer.utils.logger import logger


def format_time(seconds):
    seconds = max(0.0, seconds or 0.0)
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"


class MainWindow(QMainWindow):
    def __init__(self, analysis_client=None):
        super().__init__()

        self.setWindowTitle("BeatSlicer")
        self.resize(1100, 860)

        # Core Components
        self.dispatcher = QtDispatcher(self)
        self.analysis_client = analysis_client or create_analysis_client()
        self.coordinator = PlaybackCoordinator(
            transport_factory=lambda: SoundDeviceTransport(dispatch=self.dispatcher),
            on_state_changed=self.on_state_changed,
            on_regions_changed=self.on_regions_changed,
            on_status_changed=self.on_status_changed,
            on_metadata_changed=self.on_metadata_changed,
            on_position_changed=self.on_position_changed,
            on_analysis_failed=self.on_analysis_failed,
        )
        self.pad_filter = PadTriggerFilter()
        self._analysis_threads = []

        # UI Setup
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.main_layout = QVBoxLayout(self.central_widget)

        self.create_menus()
        self.create_waveform_view()
        self.create_transport_controls()
        self.create_pad_grid()
        self.update_controls()

    def create_menus(self):
        menubar = self.menuBar()
        file_menu = menubar.addMenu("&File")

        open_action = QAction(qta.icon("fa5s.folder-open", color="white"), "&Open Audio...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file_dialog)
        file_menu.addAction(open_action)

        self.export_action = QAction(qta.icon("fa5s.file-export", color="white"), "&Export Slices...", self)
        self.export_action.setShortcut(QKeySequence("Ctrl+E"))
        self.export_action.triggered.connect(self.export_slices_dialog)
        file_menu.addAction(self.export_action)

        file_menu.addSeparator()

        exit_action = QAction("&Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

    def create_waveform_view(self):
        header = QHBoxLayout()
        title = QLabel("WAVEFORM VISUALIZATION")
        title.setStyleSheet("color: #a1a1aa; font-family: 'Consolas'; font-size: 10px; letter-spacing: 2px;")
        self.time_label = QLabel("00:00 / 00:00")
        self.time_label.setStyleSheet("font-family: 'Consolas'; font-size: 16px; font-weight: bold; color: #60a5fa;")
        header.addWidget(title)
        header.addStretch()
        header.addWidget(self.time_label)
        self.main_layout.addLayout(header)

        self.waveform = WaveformWidget()
        self.waveform.regionClicked.connect(self.coordinator.region_clicked)
        self.waveform.sliceRequested.connect(self.add_manual_slice)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.scroll_area.setWidget(self.waveform)
        self.scroll_area.setMinimumHeight(WAVEFORM_CONFIG.height + 24)
        self.main_layout.addWidget(self.scroll_area, stretch=1)

        zoom_row = QHBoxLayout()
        zoom_label = QLabel("TIME SCALE")
        zoom_label.setStyleSheet("color: #71717a; font-family: 'Consolas'; font-size: 10px;")
        self.zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self.zoom_slider.setRange(WAVEFORM_CONFIG.min_zoom, WAVEFORM_CONFIG.max_zoom)
        self.zoom_slider.setValue(WAVEFORM_CONFIG.default_zoom)
        self.zoom_slider.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.zoom_slider.valueChanged.connect(self.on_zoom_changed)
        zoom_row.addWidget(zoom_label)
        zoom_row.addWidget(self.zoom_slider, stretch=1)
        self.main_layout.addLayout(zoom_row)

    def create_transport_controls(self):
        transport_widget = QWidget()
        transport_widget.setStyleSheet("background-color: #18181b; border: 1px solid #27272a; border-radius: 8px;")
        transport_layout = QHBoxLayout(transport_widget)
        transport_layout.setContentsMargins(20, 10, 20, 10)

        # Style helper for transport buttons
        btn_style = """
            QPushButton {
                background-color: transparent;
                border-radius: 20px;
                padding: 5px;
            }
            QPushButton:hover { background-color: #3f3f46; }
            QPushButton:pressed { background-color: #52525b; }
            QPushButton:disabled { background-color: transparent; }
        """

        self.btn_play_pause = QPushButton()
        self.btn_play_pause.setIcon(qta.icon("fa5s.play", color="#55ff55"))
        self.btn_play_pause.setIconSize(QSize(32, 32))
        self.btn_play_pause.setStyleSheet(btn_style)
        self.btn_play_pause.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.btn_play_pause.setToolTip("Play / Pause")
        self.btn_play_pause.clicked.connect(self.coordinator.toggle_play)

        self.status_label = QLabel("Upload MP3 / WAV to begin")
        self.status_label.setStyleSheet("color: #a1a1aa; font-family: 'Consolas'; border: none;")
        self.meta_label = QLabel("")
        self.meta_label.setStyleSheet("color: #60a5fa; font-family: 'Consolas'; border: none;")

        self.btn_open = QPushButton()
        self.btn_open.setIcon(qta.icon("fa5s.upload", color="#a1a1aa"))
        self.btn_open.setIconSize(QSize(22, 22))
        self.btn_open.setStyleSheet(btn_style)
        self.btn_open.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.btn_open.setToolTip("Upload New File")
        self.btn_open.clicked.connect(self.open_file_dialog)

        self.btn_clear = QPushButton()
        self.btn_clear.setIcon(qta.icon("fa5s.trash-alt", color="#f87171"))
        self.btn_clear.setIconSize(QSize(22, 22))
        self.btn_clear.setStyleSheet(btn_style)
        self.btn_clear.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.btn_clear.setToolTip("Clear Slices")
        self.btn_clear.clicked.connect(self.coordinator.clear_slices)

        self.btn_auto_chop = QPushButton(" Auto-Chop")
        self.btn_auto_chop.setIcon(qta.icon("fa5s.magic", color="#60a5fa"))
        self.btn_auto_chop.setIconSize(QSize(22, 22))
        self.btn_auto_chop.setStyleSheet(btn_style)
        self.btn_auto_chop.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.btn_auto_chop.clicked.connect(self.start_analysis)

        transport_layout.addWidget(self.btn_play_pause)
        transport_layout.addSpacing(12)
        transport_layout.addWidget(self.status_label)
        transport_layout.addStretch()
        transport_layout.addWidget(self.meta_label)
        transport_layout.addSpacing(12)
        transport_layout.addWidget(self.btn_open)
        transport_layout.addWidget(self.btn_clear)
        transport_layout.addWidget(self.btn_auto_chop)

        self.main_layout.addWidget(transport_widget)
        self.statusBar().showMessage("Ready")

    def create_pad_grid(self):
        self.pad_grid = PadGridWidget()
        self.pad_grid.padTriggered.connect(self.trigger_pad)
        self.main_layout.addWidget(self.pad_grid)

    # --- Controls state ---

    def update_controls(self):
        ready = self.coordinator.is_loaded
        processing = self.coordinator.status.is_processing
        has_audio = self.coordinator.source is not None

        self.btn_play_pause.setEnabled(ready)
        self.btn_clear.setEnabled(has_audio and not processing)
        self.btn_auto_chop.setEnabled(ready and not processing)
        self.zoom_slider.setEnabled(ready)
        self.export_action.setEnabled(ready and bool(self.coordinator.regions))
        self.pad_grid.set_live_slots(live_slots(self.coordinator.regions) if ready else set())

    # --- Actions ---

    def open_file_dialog(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Audio File", "", "Audio Files (*.wav *.mp3 *.flac *.ogg *.aiff)")
        if file_path:
            logger.info(f"User selected: {file_path}")
            self.open_track(file_path)

    def open_track(self, file_path):
        self.waveform.set_data(None, 44100)
        self.waveform.set_regions([])
        self.coordinator.track_selected(file_path)
        self.update_controls()

    def export_slices_dialog(self):
        transport = self.coordinator.transport
        regions = self.coordinator.regions
        if transport is None or transport.samples is None or not regions:
            self.statusBar().showMessage("Nothing to export", 3000)
            return

        directory = QFileDialog.getExistingDirectory(self, "Export Slices")
        if not directory:
            return
        try:
            paths = export_regions(
                directory, Path(self.coordinator.source).stem,
                transport.samples, transport.samplerate, regions
            )
        except (OSError, ValueError, sf.LibsndfileError) as e:
            logger.error(f"Slice export failed: {e}")
            QMessageBox.critical(self, "Export Error", f"Could not export slices: {e}")
            return
        self.statusBar().showMessage(f"Exported {len(paths)} slice(s) to: {directory}", 5000)

    def start_analysis(self):
        request = self.coordinator.request_analysis()
        if request is None:
            return
        self.update_controls()

        thread = QThread(self)
        worker = AnalysisWorker(request, self.analysis_client)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.phase.connect(self.on_analysis_phase)
        worker.finished.connect(self.on_analysis_finished)
        worker.finished.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(lambda: self._forget_thread(thread))
        self._analysis_threads.append((thread, worker))
        thread.start()

    def _forget_thread(self, thread):
        self._analysis_threads = [(t, w) for t, w in self._analysis_threads if t is not thread]
        thread.deleteLater()

    def on_analysis_phase(self, request, message):
        self.coordinator.analysis_progress(request, message)

    def on_analysis_finished(self, request, result):
        self.coordinator.apply_analysis(request, result)
        self.update_controls()

    def add_manual_slice(self, seconds):
        if not self.coordinator.is_loaded:
            return
        self.coordinator.set_slices(insert_slice(self.coordinator.slices, seconds))

    def trigger_pad(self, slot_index):
        if self.coordinator.trigger_region(slot_index):
            self.pad_grid.flash(slot_index)

    def on_zoom_changed(self, value):
        if self.coordinator.zoom(value):
            self.waveform.set_zoom(self.coordinator.zoom_level)

    def keyPressEvent(self, event):
        slot_index = slot_for_key(event.text())
        if slot_index is None:
            super().keyPressEvent(event)
            return
        if self.pad_filter.accept(slot_index, auto_repeat=event.isAutoRepeat()):
            self.trigger_pad(slot_index)
        event.accept()

    # --- Coordinator callbacks ---

    def on_state_changed(self, state):
        if state == TransportState.PLAYING:
            self.btn_play_pause.setIcon(qta.icon("fa5s.pause", color="#ffff55"))
        else:
            self.btn_play_pause.setIcon(qta.icon("fa5s.play", color="#55ff55"))

        if state == TransportState.LOADED and self.waveform.audio_data is None:
            transport = self.coordinator.transport
            if transport is not None:
                self.waveform.set_data(transport.samples, transport.samplerate)
                self.waveform.set_zoom(self.coordinator.zoom_level)
        self.update_controls()

    def on_regions_changed(self, regions):
        self.waveform.set_regions(regions)
        self.update_controls()

    def on_status_changed(self, status):
        self.status_label.setText(status.message or ("Ready" if self.coordinator.is_loaded else ""))
        if status.message:
            self.statusBar().showMessage(status.message, 3000)
        self.update_controls()

    def on_metadata_changed(self, metadata):
        parts = []
        if metadata.bpm:
            parts.append(f"{metadata.bpm:g} BPM")
        if metadata.genre:
            parts.append(metadata.genre.upper())
        self.meta_label.setText("  ".join(parts))

    def on_position_changed(self, seconds):
        self.waveform.set_playhead(seconds)
        self.time_label.setText(f"{format_time(seconds)} / {format_time(self.coordinator.duration)}")

    def on_analysis_failed(self, message):
        QMessageBox.warning(self, "Analysis Failed", message)

    def closeEvent(self, event):
        self.coordinator.close()
        for thread, _ in list(self._analysis_threads):
            thread.quit()
            thread.wait(100)
        super().closeEvent(event)
