from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from beatslicer.core.analysis import analyze_track
from beatslicer.core.types import AnalysisResult
from beatslicer.utils.logger import logger


class AnalysisWorker(QObject):
    """Runs one analysis request off the GUI thread."""
    phase = pyqtSignal(object, str)      # request, message
    finished = pyqtSignal(object, object)  # request, AnalysisResult

    def __init__(self, request, client, parent=None):
        super().__init__(parent)
        self._request = request
        self._client = client

    @pyqtSlot()
    def run(self):
        logger.info(f"Analysis started for generation {self._request.generation}")
        try:
            result = analyze_track(
                self._request,
                self._client,
                on_phase=lambda message: self.phase.emit(self._request, message),
            )
        except Exception as e:
            # finished must always fire so the coordinator clears its pending request
            logger.error(f"Analysis worker failed: {e}", exc_info=True)
            result = AnalysisResult.fallback()
        self.finished.emit(self._request, result)
