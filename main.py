# main.py
import logging
import sys

from renko_app.config import LOG_LEVEL


def main():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    from PyQt6.QtWidgets import QApplication
    app = QApplication(sys.argv)

    # Crée et montre la fenêtre
    from renko_app.ui.main_window import MainWindow
    win = MainWindow()
    win.show()

    # Arrêt propre si l’appli quitte (fermeture, Ctrl+C, etc.)
    app.aboutToQuit.connect(win.stop_feed)

    # Catch global exceptions pour voir un éventuel plantage silencieux
    def _excepthook(t, v, tb):
        logging.getLogger("main").critical("uncaught exception", exc_info=(t, v, tb))
        try:
            win.stop_feed()
        finally:
            sys.exit(1)
    sys.excepthook = _excepthook

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
