import sys
from PyQt6.QtWidgets import QApplication
import qdarktheme

from beatslicer.ui.main_window import MainWindow
from beatslicer.utils.logger import logger


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("BeatSlicer")

    # Apply modern dark theme
    app.setStyleSheet(qdarktheme.load_stylesheet(theme="dark"))

    window = MainWindow()
    window.show()
    logger.info("BeatSlicer started")

    # Optional track path on the command line
    if len(sys.argv) > 1:
        window.open_track(sys.argv[1])

    sys.exit(app.exec())

if __name__ == "__main__":
    main()
