# renko_app/ui/qt_driver.py
from __future__ import annotations
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot


class QtTimer(QObject):
    """Timer récurrent du RefreshController, sur la boucle Qt du thread propriétaire."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._timer: QTimer | None = None

    def start(self, interval_ms: int, callback: Callable[[], None]):
        self.stop()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(callback)
        self._timer.start()

    def stop(self):
        if self._timer:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None


class QtDispatcher(QObject):
    """
    Ramène les callbacks de fin de fetch (thread de l'executor) sur le thread
    de cet objet. Le signal émis depuis un autre thread passe en QueuedConnection.
    """
    invoke = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.invoke.connect(self._run)

    def __call__(self, fn: Callable[[], None]):
        self.invoke.emit(fn)

    @pyqtSlot(object)
    def _run(self, fn):
        fn()
