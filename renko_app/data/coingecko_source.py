# renko_app/data/coingecko_source.py
from __future__ import annotations
import logging
import time
from typing import List, Optional

import pandas as pd
import requests
from pydantic import ValidationError

from renko_app.config import COINGECKO_BASE_URL, HTTP_TIMEOUT_SEC, LOOKBACK_DAYS, VS_CURRENCY
from .models import Bar
from renko_app.errors import UpstreamUnavailable

log = logging.getLogger(__name__)

OHLC_COLUMNS = ["time_ms", "open", "high", "low", "close"]


def parse_ohlc_rows(raw, asset_id: Optional[str] = None) -> List[Bar]:
    """[[timeMillis, o, h, l, c], ...] -> list[Bar] (time en secondes entières)."""
    if not isinstance(raw, list):
        raise UpstreamUnavailable(f"Unexpected OHLC payload for {asset_id}: {type(raw).__name__}", asset_id=asset_id)
    if not raw:
        return []
    try:
        df = pd.DataFrame(raw, columns=OHLC_COLUMNS)
        bars: List[Bar] = []
        for r in df.itertuples(index=False):
            bars.append(Bar(
                time=int(r.time_ms) // 1000,
                open=float(r.open),
                high=float(r.high),
                low=float(r.low),
                close=float(r.close),
            ))
    except (ValueError, TypeError, ValidationError) as e:
        raise UpstreamUnavailable(f"Malformed OHLC rows for {asset_id}: {e}", asset_id=asset_id) from e
    return bars


class CoinGeckoSource:
    """Source de marché : /coins/{id}/ohlc (pas de clé API)."""

    def __init__(self, session: Optional[requests.Session] = None,
                 base_url: str = COINGECKO_BASE_URL, vs_currency: str = VS_CURRENCY,
                 timeout_sec: float = HTTP_TIMEOUT_SEC):
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.timeout_sec = timeout_sec

    def ohlc_url(self, asset_id: str) -> str:
        return f"{self.base_url}/coins/{asset_id}/ohlc"

    def fetch_bars(self, asset_id: str, days: int = LOOKBACK_DAYS) -> List[Bar]:
        params = {"vs_currency": self.vs_currency, "days": str(days)}
        headers = {"Accept": "application/json", "User-Agent": "renko_app/1.0"}
        t0 = time.time()
        try:
            resp = self.session.get(self.ohlc_url(asset_id), params=params, headers=headers, timeout=self.timeout_sec)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Market data request failed for {asset_id}: {e}", asset_id=asset_id) from e
        log.debug("GET ohlc %s status=%s in %.2fs", asset_id, resp.status_code, time.time() - t0)

        if not resp.ok:
            raise UpstreamUnavailable(
                f"Market data not found for {asset_id} (HTTP {resp.status_code})",
                asset_id=asset_id, status_code=resp.status_code,
            )
        try:
            raw = resp.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Market data for {asset_id} is not JSON", asset_id=asset_id,
                                      status_code=resp.status_code) from e

        bars = parse_ohlc_rows(raw, asset_id)
        log.info("%s: %d bars (%sd)", asset_id, len(bars), days)
        return bars
