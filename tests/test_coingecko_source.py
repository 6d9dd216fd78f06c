"""
Unit tests for the CoinGecko market-data adapter.
"""

from unittest.mock import MagicMock

import pytest
import requests

from renko_app.data.coingecko_source import CoinGeckoSource, parse_ohlc_rows
from renko_app.errors import UpstreamUnavailable

ROWS = [
    [1700000000000, 100.0, 105.0, 95.0, 100.0],
    [1700001800000, 100.0, 110.0, 100.0, 108.0],
]


def _response(status: int = 200, body=None, json_error: bool = False) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def _source(resp=None, exc=None) -> tuple[CoinGeckoSource, MagicMock]:
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value = resp
    return CoinGeckoSource(session=session, base_url="https://example.test/api/v3/"), session


class TestParseOhlcRows:
    def test_converts_millis_to_whole_seconds(self) -> None:
        bars = parse_ohlc_rows([[1700000000999, 1, 2, 0.5, 1.5]])
        assert bars[0].time == 1700000000
        assert (bars[0].open, bars[0].high, bars[0].low, bars[0].close) == (1, 2, 0.5, 1.5)

    def test_keeps_upstream_order(self) -> None:
        assert [b.time for b in parse_ohlc_rows(ROWS)] == [1700000000, 1700001800]

    def test_empty_list_is_valid(self) -> None:
        assert parse_ohlc_rows([]) == []

    @pytest.mark.parametrize("raw", [{"error": "coin not found"}, "oops", None])
    def test_non_list_payload_raises(self, raw) -> None:
        with pytest.raises(UpstreamUnavailable):
            parse_ohlc_rows(raw, "bitcoin")

    @pytest.mark.parametrize("raw", [
        [[1700000000000, 1, 2, 0.5]],                 # colonne manquante
        [[1700000000000, 1, 2, 0.5, 1.5, 9]],         # colonne en trop
        [[1700000000000, "a", 2, 0.5, 1.5]],          # non numérique
        [[1700000000000, 1, 2, 3, 1.5]],              # low > open
    ])
    def test_malformed_rows_raise(self, raw) -> None:
        with pytest.raises(UpstreamUnavailable) as exc:
            parse_ohlc_rows(raw, "bitcoin")
        assert exc.value.asset_id == "bitcoin"


class TestCoinGeckoSource:
    def test_fetch_bars_request_shape(self) -> None:
        src, session = _source(_response(body=ROWS))

        bars = src.fetch_bars("bitcoin", days=7)

        assert len(bars) == 2
        args, kwargs = session.get.call_args
        assert args[0] == "https://example.test/api/v3/coins/bitcoin/ohlc"
        assert kwargs["params"] == {"vs_currency": "usd", "days": "7"}
        assert kwargs["timeout"] == src.timeout_sec

    def test_non_2xx_raises_with_status(self) -> None:
        src, _ = _source(_response(status=404, body={"error": "coin not found"}))

        with pytest.raises(UpstreamUnavailable) as exc:
            src.fetch_bars("nope")

        assert exc.value.status_code == 404
        assert exc.value.asset_id == "nope"
        assert "404" in str(exc.value)

    def test_invalid_json_raises(self) -> None:
        src, _ = _source(_response(json_error=True))
        with pytest.raises(UpstreamUnavailable):
            src.fetch_bars("bitcoin")

    def test_transport_error_is_wrapped(self) -> None:
        src, _ = _source(exc=requests.ConnectionError("dns"))
        with pytest.raises(UpstreamUnavailable) as exc:
            src.fetch_bars("bitcoin")
        assert isinstance(exc.value.__cause__, requests.ConnectionError)

    def test_empty_body_gives_no_bars(self) -> None:
        src, _ = _source(_response(body=[]))
        assert src.fetch_bars("bitcoin") == []
