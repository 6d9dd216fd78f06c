# renko_app/ui/main_window.py
import json
import logging
from concurrent.futures import ThreadPoolExecutor

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QHBoxLayout, QLabel, QLineEdit, QMainWindow, QPushButton, QVBoxLayout, QWidget
)

from renko_app.chart.chart_bridge import ChartBridge, status_text
from renko_app.chat.sentiment_service_groq import GroqSentimentService
from renko_app.config import REFRESH_INTERVAL_MS
from renko_app.data.coingecko_source import CoinGeckoSource
from renko_app.data.models import ChartState, SentimentResult
from renko_app.errors import ClassificationError
from renko_app.refresh.controller import RefreshController
from renko_app.ui.qt_driver import QtDispatcher, QtTimer

log = logging.getLogger(__name__)

DARK_QSS = """
    QMainWindow, QWidget { background-color:#0e1116; color:#cfd3dc; }
    * { font-family: "Inter", "Segoe UI", system-ui; font-size:13px; }
    QLineEdit {
    background:#0f172a; color:#e5e7eb; border:1px solid #334155;
    padding:6px 10px; border-radius:10px;
    }
    QPushButton {
    background:#111827; color:#e5e7eb; border:1px solid #334155;
    padding:6px 12px; border-radius:10px;
    }
    QPushButton:hover { background:#0b1220; }
    QPushButton:disabled { color:#6b7280; }
    QLabel#Error { color:#ff9a9a; }
"""

SENTIMENT_COLORS = {"Positive": "#8ff0b8", "Neutral": "#ffd479", "Negative": "#ff9a9a"}


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Asset Sentiment Monitor")
        self.resize(900, 600)
        self.setStyleSheet(DARK_QSS)

        # Saisie
        self.asset_input = QLineEdit(); self.asset_input.setPlaceholderText("e.g. Bitcoin, Ethereum")
        self.analyze_btn = QPushButton("Analyze")
        row = QHBoxLayout(); row.addWidget(self.asset_input, 1); row.addWidget(self.analyze_btn)

        self.sentiment_lbl = QLabel(); self.sentiment_lbl.setWordWrap(True)
        self.error_lbl = QLabel(); self.error_lbl.setObjectName("Error"); self.error_lbl.setWordWrap(True)
        self.chart_lbl = QLabel(); self.chart_lbl.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)

        central = QWidget(); lay = QVBoxLayout(central)
        lay.addLayout(row); lay.addWidget(self.error_lbl); lay.addWidget(self.sentiment_lbl); lay.addWidget(self.chart_lbl, 1)
        self.setCentralWidget(central)

        # Services
        self._dispatch = QtDispatcher(self)
        self._classifier = GroqSentimentService()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="classify")
        self._classify_gen = 0
        self._searched = ""

        self.bridge = ChartBridge(self)
        self.controller = RefreshController(
            CoinGeckoSource().fetch_bars,
            QtTimer(self),
            dispatch=self._dispatch,
            interval_ms=REFRESH_INTERVAL_MS,
        )
        self.controller.subscribe(self.bridge.publish)
        self.controller.subscribe(self._on_chart_state)
        self.bridge.chartLoaded.connect(self._on_chart_json)
        self.bridge.chartCleared.connect(lambda: self.chart_lbl.setText(""))

        self.analyze_btn.clicked.connect(self._on_analyze)
        self.asset_input.returnPressed.connect(self._on_analyze)

    # ---------- classification ----------
    def _on_analyze(self):
        name = self.asset_input.text().strip()
        if not name:
            self.error_lbl.setText("Please type the name of an asset.")
            return
        self._searched = name
        self._classify_gen += 1
        gen = self._classify_gen
        self.error_lbl.setText("")
        self.sentiment_lbl.setText("Analyzing sentiment…")
        self.analyze_btn.setEnabled(False)
        self.controller.deselect()

        fut = self._executor.submit(self._classifier.classify, name)
        fut.add_done_callback(lambda f: self._dispatch(lambda: self._on_classified(gen, name, f)))

    def _on_classified(self, gen: int, name: str, fut):
        if gen != self._classify_gen:
            return
        self.analyze_btn.setEnabled(True)
        try:
            result: SentimentResult = fut.result()
        except ClassificationError as e:
            log.warning("classification failed for %r: %s", name, e)
            self.sentiment_lbl.setText("")
            self.error_lbl.setText("An error occurred while analyzing the asset. Please try again.")
            return
        color = SENTIMENT_COLORS.get(result.sentiment, "#cfd3dc")
        self.sentiment_lbl.setText(
            f"<b>{name}</b> — {result.icon} <span style='color:{color}'>{result.sentiment}</span><br>{result.summary}"
        )
        self.controller.select_from_classification(result, name)

    # ---------- chart ----------
    def _on_chart_state(self, state: ChartState):
        text = status_text(state)
        if text is not None:
            self.error_lbl.setText(text)

    def _on_chart_json(self, payload: str):
        data = json.loads(payload)
        lines = [f"Renko (last 7 days) — {len(data['bricks'])} bricks, size {data['brickSize'] or 0:.4f}"]
        lines += [m["text"] for m in data["markers"]]
        if data.get("lastRefreshedAt"):
            lines.append(f"Last update: {data['lastRefreshedAt']}")
        self.chart_lbl.setText("\n".join(lines))

    # ---------- shutdown ----------
    def closeEvent(self, e):
        self.stop_feed()
        super().closeEvent(e)

    def stop_feed(self):
        self._classify_gen += 1
        self.controller.close()
        self._executor.shutdown(wait=False, cancel_futures=True)
