from typing import List, Sequence

import pytest

from renko_app.data.models import Bar


def make_bars(closes: Sequence[float], start_open: float | None = None, spread: float = 1.0) -> List[Bar]:
    """Barres chaînées (open = close précédent) autour d'une suite de closes."""
    bars: List[Bar] = []
    prev = closes[0] if start_open is None else start_open
    for i, c in enumerate(closes):
        o = prev
        bars.append(Bar(time=i * 60, open=o, high=max(o, c) + spread, low=min(o, c) - spread, close=c))
        prev = c
    return bars


@pytest.fixture
def scenario_bars() -> List[Bar]:
    return [
        Bar(time=0, open=100, high=105, low=95, close=100),
        Bar(time=1, open=100, high=110, low=100, close=108),
    ]


@pytest.fixture
def bars_from():
    return make_bars
