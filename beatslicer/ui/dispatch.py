from PyQt6.QtCore import QObject, pyqtSignal, Qt


class QtDispatcher(QObject):
    """Runs callables posted from any thread on the thread that owns this object."""
    _posted = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._posted.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def __call__(self, fn):
        self._posted.emit(fn)

    def _run(self, fn):
        fn()
