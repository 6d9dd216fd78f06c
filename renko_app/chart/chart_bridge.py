# renko_app/chart/chart_bridge.py
from __future__ import annotations

import json
from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from renko_app.data.models import ChartState, RefreshPhase
from renko_app.indicators.renko import chart_payload


def state_payload(state: ChartState) -> dict:
    """ChartState -> dict JSON prêt pour le widget (briques + markers + statut)."""
    payload = chart_payload(state.result)
    payload.update({
        "phase": state.phase.value,
        "assetId": state.asset_id,
        "requestedName": state.requested_name,
        "lastRefreshedAt": state.last_refreshed_at.isoformat() if state.last_refreshed_at else None,
        "message": state.message,
    })
    return payload


def status_text(state: ChartState) -> str | None:
    """Texte de la ligne d'erreur : message publié, vidé sur READY, sinon inchangé (None)."""
    if state.message:
        return state.message
    if state.phase is RefreshPhase.READY:
        return ""
    return None


class ChartBridge(QObject):
    """
    Sortie publiée vers la couche de rendu.
    Côté rendu, on se connecte à :
      bridge.chartLoaded.connect(fn)    # JSON {bricks, markers, brickSize, phase, ...}
      bridge.chartCleared.connect(fn)
      bridge.showLoading.connect(fn)
      bridge.hideLoading.connect(fn)
    """

    chartLoaded = pyqtSignal(str)
    chartCleared = pyqtSignal()
    errorRaised = pyqtSignal(str)

    showLoading = pyqtSignal()
    hideLoading = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)

    @pyqtSlot(object)
    def publish(self, state: ChartState):
        """Abonné du RefreshController : traduit chaque ChartState en signaux."""
        if state.phase is RefreshPhase.FETCHING:
            # refresh du même actif : le graphique courant reste affiché
            self.showLoading.emit()
            if not state.bricks:
                self.chartCleared.emit()
            return
        self.hideLoading.emit()

        if state.phase is RefreshPhase.FAILED and state.message:
            self.errorRaised.emit(state.message)

        if not state.bricks and state.high_marker is None:
            self.chartCleared.emit()
            return
        self.chartLoaded.emit(json.dumps(state_payload(state), separators=(",", ":")))
