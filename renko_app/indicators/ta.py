# renko_app/indicators/ta.py
from __future__ import annotations
from typing import List, Sequence

from renko_app.config import ATR_PERIOD, BRICK_FLOOR_PCT
from renko_app.data.models import Bar
from renko_app.errors import InsufficientData

# ----------------- true range -----------------
def true_range(prev: Bar, cur: Bar) -> float:
    return max(cur.high - cur.low, abs(cur.high - prev.close), abs(cur.low - prev.close))

def true_ranges(bars: Sequence[Bar]) -> List[float]:
    return [true_range(bars[i - 1], bars[i]) for i in range(1, len(bars))]

# ----------------- ATR -----------------
def average_true_range(bars: Sequence[Bar], period: int = ATR_PERIOD) -> float:
    """
    "ATR(14)" tel que le graphique l'a toujours calculé : moyenne arithmétique
    des true ranges de TOUTES les paires consécutives. `period` est accepté
    mais n'ouvre pas de fenêtre glissante.
    """
    if len(bars) < 2:
        raise InsufficientData(len(bars))
    trs = true_ranges(bars)
    return sum(trs) / len(trs)

def brick_size(bars: Sequence[Bar], period: int = ATR_PERIOD, floor_pct: float = BRICK_FLOOR_PCT) -> float:
    """max(ATR, floor_pct * dernier close) — jamais 0 sur une série figée."""
    atr = average_true_range(bars, period)
    return max(atr, bars[-1].close * floor_pct)
