# renko_app/indicators/renko.py
from __future__ import annotations
from math import floor, isfinite
from typing import Any, Dict, List, Optional, Sequence, Tuple

from renko_app.config import ATR_PERIOD, BRICK_FLOOR_PCT
from renko_app.data.models import Bar, Brick, ExtremumMarker, RenkoResult
from renko_app.errors import InvalidBrickSize
from renko_app.indicators.ta import brick_size

HIGH_COLOR = "#2563eb"
LOW_COLOR = "#ef4444"

# ----------------- extrema -----------------
def find_extrema(bars: Sequence[Bar]) -> Tuple[Optional[ExtremumMarker], Optional[ExtremumMarker]]:
    """Plus haut high / plus bas low de la série, la première occurrence gagne."""
    if not bars:
        return None, None
    hi, lo = bars[0], bars[0]
    for b in bars[1:]:
        if b.high > hi.high:
            hi = b
        if b.low < lo.low:
            lo = b
    return (
        ExtremumMarker(time=hi.time, price=hi.high, role="high"),
        ExtremumMarker(time=lo.time, price=lo.low, role="low"),
    )

# ----------------- conversion -----------------
def build_renko(bars: Sequence[Bar], size: float) -> RenkoResult:
    """
    Une seule passe sur les closes. La référence part du open de la 1re barre ;
    chaque barre dont le close s'en éloigne d'au moins `size` émet
    floor(|mvt| / size) briques, toutes datées du time de cette barre.
    Les bords sont calculés close = open + size * sens : pour une taille non
    représentable en binaire (0.1, un ATR), |close - open| vaut size à un ulp près.
    """
    if not isfinite(size) or size <= 0:
        raise InvalidBrickSize(size)

    bricks: List[Brick] = []
    if not bars:
        return RenkoResult(bricks=bricks, brick_size=size)

    ref = bars[0].open
    for b in bars:
        movement = b.close - ref
        if abs(movement) < size:
            continue
        direction = 1 if movement > 0 else -1
        for _ in range(floor(abs(movement) / size)):
            o = ref
            c = o + size * direction
            bricks.append(Brick(time=b.time, open=o, high=max(o, c), low=min(o, c), close=c))
            ref = c

    high_marker, low_marker = find_extrema(bars)
    return RenkoResult(bricks=bricks, high_marker=high_marker, low_marker=low_marker, brick_size=size)

def renko_from_bars(bars: Sequence[Bar], period: int = ATR_PERIOD, floor_pct: float = BRICK_FLOOR_PCT) -> RenkoResult:
    """Estimateur + convertisseur. < 2 barres : pas de briques, mais les markers restent."""
    if len(bars) < 2:
        high_marker, low_marker = find_extrema(bars)
        return RenkoResult(high_marker=high_marker, low_marker=low_marker)
    return build_renko(bars, brick_size(bars, period, floor_pct))

# ----------------- moteur -----------------
class RenkoEngine:
    """Garde la dernière série et son Renko ; sort le paquet JSON du graphique."""
    def __init__(self, period: int = ATR_PERIOD, floor_pct: float = BRICK_FLOOR_PCT):
        self.period = period
        self.floor_pct = floor_pct
        self._bars: List[Bar] = []
        self._result = RenkoResult()

    @property
    def result(self) -> RenkoResult:
        return self._result

    def set_history(self, bars: Sequence[Bar]) -> RenkoResult:
        self._bars = list(bars)
        self._result = renko_from_bars(self._bars, self.period, self.floor_pct)
        return self._result

    def clear(self) -> None:
        self._bars = []
        self._result = RenkoResult()

    def series_for_chart(self) -> Dict[str, Any]:
        return chart_payload(self._result)

def _marker(m: ExtremumMarker) -> Dict[str, Any]:
    up = m.role == "low"
    return {
        "time": m.time,
        "position": "belowBar" if up else "aboveBar",
        "shape": "arrowUp" if up else "arrowDown",
        "color": LOW_COLOR if up else HIGH_COLOR,
        "text": f"{'Low' if up else 'High'}: {m.price:.2f}",
        "price": m.price,
    }

def chart_payload(result: RenkoResult) -> Dict[str, Any]:
    markers = [_marker(m) for m in (result.high_marker, result.low_marker) if m is not None]
    return {
        "bricks": [b.model_dump() for b in result.bricks],
        "markers": markers,
        "brickSize": result.brick_size,
    }
