"""
BeatSlicer UI Module

Qt-based user interface components:
- MainWindow: Main application window
- WaveformWidget: Waveform and slice region display
- PadGridWidget: 4x4 performance pads
- AnalysisWorker: Background slice analysis
"""
from .main_window import MainWindow
from .waveform_view import WaveformWidget
from .pad_grid import PadGridWidget
from .workers import AnalysisWorker

__all__ = [
    'MainWindow',
    'WaveformWidget',
    'PadGridWidget',
    'AnalysisWorker',
]
