"""Tests for exchange clients (HTTP and yfinance mocked)."""
import json
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from oscsetups.data import (
    BinanceClient,
    CoinbaseClient,
    DataSource,
    Exchange,
    Interval,
    KlineCache,
    KlineParams,
    SymbolFilters,
    YahooClient,
    fetch_bars,
    get_client,
)
from oscsetups.shared.errors import ExchangeError


def _response(payload, status=200, headers=None, url="https://api.test/path"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.json.return_value = payload
    resp.headers = headers or {}
    resp.url = url
    resp.text = json.dumps(payload)
    return resp


def _binance_row(i, close):
    open_time = 1_700_000_000_000 + i * 14_400_000
    return [
        open_time, str(close - 1), str(close + 2), str(close - 2), str(close), "12.5",
        open_time + 14_399_999, "0", 10, "0", "0", "0",
    ]


class TestKlineParams:
    def test_string_fields(self):
        params = KlineParams("ETH", "USDT", interval="15m", source="file")
        assert params.interval is Interval.M15
        assert params.source is DataSource.FILE

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            KlineParams("ETH", "USDT", limit=0)

    def test_interval_seconds(self):
        assert Interval.H4.seconds == 14400
        assert Interval.W1.code == "1w"


class TestBinanceClient:
    @patch("oscsetups.data.binance.requests.get")
    def test_fetch_drops_forming_kline(self, mock_get, tmp_path):
        rows = [_binance_row(i, 100.0 + i) for i in range(4)]
        mock_get.return_value = _response(rows, headers={"x-mbx-used-weight": "3"})

        client = BinanceClient(cache=KlineCache(tmp_path))
        bars = client.fetch(KlineParams("ETH", "USDT", Interval.H4, limit=3))

        assert len(bars) == 3
        assert bars.symbol == "ETHUSDT"
        assert list(bars.closes) == [100.0, 101.0, 102.0]
        assert bars[0].high == 102.0
        assert bars[0].low == 98.0
        assert bars[0].time_close == rows[0][6]

        url = mock_get.call_args[0][0]
        assert url == "https://api.binance.us/api/v3/klines"
        query = mock_get.call_args[1]["params"]
        assert query == {"symbol": "ETHUSDT", "interval": "4h", "limit": 4}

    @patch("oscsetups.data.binance.requests.get")
    def test_custom_base_url(self, mock_get, tmp_path):
        mock_get.return_value = _response([_binance_row(i, 10.0) for i in range(3)])
        client = BinanceClient(cache=KlineCache(tmp_path))
        client.fetch(KlineParams("BTC", "USDT", limit=2, base_url="https://api.binance.com/"))
        assert mock_get.call_args[0][0] == "https://api.binance.com/api/v3/klines"

    @patch("oscsetups.data.binance.requests.get")
    def test_not_found(self, mock_get):
        mock_get.return_value = _response({}, status=404)
        with pytest.raises(ExchangeError, match="Resource not found"):
            BinanceClient().fetch_remote(KlineParams("ETH", "USDT"))

    @patch("oscsetups.data.binance.requests.get")
    def test_api_error_message(self, mock_get):
        mock_get.return_value = _response({"code": -1121, "msg": "Invalid symbol."}, status=400)
        with pytest.raises(ExchangeError, match="Invalid symbol"):
            BinanceClient().fetch_remote(KlineParams("XXX", "YYY"))

    @patch("oscsetups.data.binance.requests.get")
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(ExchangeError):
            BinanceClient().fetch_remote(KlineParams("ETH", "USDT"))

    @patch("oscsetups.data.binance.requests.get")
    def test_only_forming_kline_is_error(self, mock_get, tmp_path):
        mock_get.return_value = _response([_binance_row(0, 100.0)])
        with pytest.raises(ExchangeError):
            BinanceClient(cache=KlineCache(tmp_path)).fetch(KlineParams("ETH", "USDT", limit=5))

    @patch("oscsetups.data.binance.requests.get")
    def test_malformed_row(self, mock_get, tmp_path):
        mock_get.return_value = _response([["bad"], ["bad"]])
        with pytest.raises(ExchangeError):
            BinanceClient(cache=KlineCache(tmp_path)).fetch(KlineParams("ETH", "USDT", limit=1))


class TestBinanceSymbolFilters:
    """Minimum quantity / price from /api/v3/exchangeInfo."""

    INFO = {
        "serverTime": 1_700_000_000_000,
        "symbols": [{
            "symbol": "ETHUSDT",
            "status": "TRADING",
            "baseAsset": "ETH",
            "quoteAsset": "USDT",
            "filters": [
                {"filterType": "PRICE_FILTER", "minPrice": "0.01000000",
                 "maxPrice": "1000000.00000000", "tickSize": "0.01000000"},
                {"filterType": "LOT_SIZE", "minQty": "0.00010000",
                 "maxQty": "9000.00000000", "stepSize": "0.00010000"},
                {"filterType": "MIN_NOTIONAL", "minNotional": "10.00000000"},
            ],
        }],
    }

    @patch("oscsetups.data.binance.requests.get")
    def test_filters_parsed(self, mock_get, tmp_path):
        mock_get.return_value = _response(self.INFO)
        filters = BinanceClient(cache=KlineCache(tmp_path)).symbol_filters(KlineParams("ETH", "USDT"))

        assert filters == SymbolFilters(min_qty=0.0001, min_price=0.01)
        assert mock_get.call_args[0][0] == "https://api.binance.us/api/v3/exchangeInfo"
        assert mock_get.call_args[1]["params"] == {"symbol": "ETHUSDT"}

    @patch("oscsetups.data.binance.requests.get")
    def test_zero_disables_filter(self, mock_get):
        info = json.loads(json.dumps(self.INFO))
        info["symbols"][0]["filters"][0]["minPrice"] = "0.00000000"
        mock_get.return_value = _response(info)
        filters = BinanceClient().symbol_filters(KlineParams("ETH", "USDT"))
        assert filters.min_price is None
        assert filters.min_qty == 0.0001

    @patch("oscsetups.data.binance.requests.get")
    def test_unlisted_symbol(self, mock_get):
        mock_get.return_value = _response(self.INFO)
        with pytest.raises(ExchangeError, match="BTCUSDT"):
            BinanceClient().symbol_filters(KlineParams("BTC", "USDT"))

    @patch("oscsetups.data.binance.requests.get")
    def test_malformed_filter(self, mock_get):
        info = json.loads(json.dumps(self.INFO))
        info["symbols"][0]["filters"][1] = {"filterType": "LOT_SIZE", "minQty": "n/a"}
        mock_get.return_value = _response(info)
        with pytest.raises(ExchangeError):
            BinanceClient().symbol_filters(KlineParams("ETH", "USDT"))

    @patch("oscsetups.data.binance.requests.get")
    def test_unexpected_response(self, mock_get):
        mock_get.return_value = _response([])
        with pytest.raises(ExchangeError):
            BinanceClient().symbol_filters(KlineParams("ETH", "USDT"))

    @patch("oscsetups.data.binance.requests.get")
    def test_file_source_caches_exchange_info(self, mock_get, tmp_path):
        mock_get.return_value = _response(self.INFO)
        client = BinanceClient(cache=KlineCache(tmp_path))
        params = KlineParams("ETH", "USDT", source="file")

        first = client.symbol_filters(params)
        second = client.symbol_filters(params)

        assert first == second
        assert mock_get.call_count == 1
        assert (tmp_path / "api.binance.us" / "exchangeInfo" / "ethusdt.json").exists()


class TestCoinbaseClient:
    T0 = 1_700_000_000

    def _candles(self, n, granularity=3600, start=0):
        # Newest first, as the endpoint returns them
        rows = [
            [self.T0 + (start + i) * granularity, 99.0 + i, 102.0 + i, 100.0 + i, 101.0 + i, 5.0]
            for i in range(n)
        ]
        return list(reversed(rows))

    @patch("oscsetups.data.coinbase.time.sleep")
    @patch("oscsetups.data.coinbase.requests.get")
    def test_fetch_single_page(self, mock_get, mock_sleep, tmp_path):
        mock_get.return_value = _response(self._candles(5))

        client = CoinbaseClient(cache=KlineCache(tmp_path))
        bars = client.fetch(KlineParams("ETH", "USD", Interval.H1, limit=3))

        assert len(bars) == 3
        assert bars.symbol == "ETH-USD"
        # newest 4 kept, newest dropped
        assert list(bars.closes) == [102.0, 103.0, 104.0]
        first = bars[0]
        assert first.low == 100.0 and first.high == 103.0 and first.open == 101.0
        assert first.time_open == (self.T0 + 3600) * 1000
        assert first.time_close == (self.T0 + 3600) * 1000 + 3600 * 1000 - 1

        url = mock_get.call_args[0][0]
        assert url == "https://api.exchange.coinbase.com/products/ETH-USD/candles"
        kwargs = mock_get.call_args[1]
        assert kwargs["params"]["granularity"] == 3600
        assert "start" in kwargs["params"] and "end" in kwargs["params"]
        assert kwargs["headers"]["User-Agent"].startswith("oscillator-setups/")
        mock_sleep.assert_not_called()

    @patch("oscsetups.data.coinbase.time.sleep")
    @patch("oscsetups.data.coinbase.requests.get")
    def test_fetch_pages_backwards(self, mock_get, mock_sleep, tmp_path):
        newer = self._candles(300, start=300)
        older = self._candles(300, start=0)
        mock_get.side_effect = [_response(newer), _response(older)]

        rows = CoinbaseClient(cache=KlineCache(tmp_path)).fetch_remote(
            KlineParams("ETH", "USD", Interval.H1, limit=400)
        )

        assert mock_get.call_count == 2
        assert mock_sleep.call_count == 1
        assert len(rows) == 401
        times = [r[0] for r in rows]
        assert times == sorted(times)
        assert times[-1] == self.T0 + 599 * 3600

        first_end = mock_get.call_args_list[0][1]["params"]["start"]
        second_end = mock_get.call_args_list[1][1]["params"]["end"]
        assert second_end == first_end

    def test_unsupported_granularity(self, tmp_path):
        with pytest.raises(ValueError):
            CoinbaseClient(cache=KlineCache(tmp_path)).fetch_remote(KlineParams("ETH", "USD", Interval.H4))

    @patch("oscsetups.data.coinbase.requests.get")
    def test_error_status(self, mock_get):
        mock_get.return_value = _response({"message": "NotFound"}, status=400)
        with pytest.raises(ExchangeError, match="NotFound"):
            CoinbaseClient().fetch_remote(KlineParams("ETH", "USD", Interval.H1, limit=3))


class TestYahooClient:
    def _frame(self, n):
        idx = pd.date_range("2024-01-01", periods=n, freq="D")
        closes = [100.0 + i for i in range(n)]
        return pd.DataFrame({
            "Open": closes,
            "High": [c + 1 for c in closes],
            "Low": [c - 1 for c in closes],
            "Close": closes,
            "Volume": [1000] * n,
        }, index=idx)

    @patch("oscsetups.data.yahoo.yf.download")
    def test_fetch(self, mock_download, tmp_path):
        mock_download.return_value = self._frame(5)
        bars = YahooClient(cache=KlineCache(tmp_path)).fetch(KlineParams("BTC", "USD", Interval.D1, limit=2))

        assert list(bars.closes) == [102.0, 103.0]
        assert bars.symbol == "BTC-USD"
        assert bars[0].time_open == int(pd.Timestamp("2024-01-03").value // 1_000_000)
        assert mock_download.call_args[0][0] == "BTC-USD"
        assert mock_download.call_args[1]["interval"] == "1d"

    @patch("oscsetups.data.yahoo.yf.download")
    def test_multiindex_columns(self, mock_download, tmp_path):
        frame = self._frame(4)
        frame.columns = pd.MultiIndex.from_product([frame.columns, ["BTC-USD"]])
        mock_download.return_value = frame
        bars = YahooClient(cache=KlineCache(tmp_path)).fetch(KlineParams("BTC", "USD", Interval.D1, limit=10))
        assert len(bars) == 3

    @patch("oscsetups.data.yahoo.yf.download")
    def test_empty(self, mock_download):
        mock_download.return_value = pd.DataFrame()
        with pytest.raises(ExchangeError):
            YahooClient().fetch_remote(KlineParams("BTC", "USD", Interval.D1))

    def test_unsupported_interval(self):
        with pytest.raises(ValueError):
            YahooClient().fetch_remote(KlineParams("BTC", "USD", Interval.H4))


class TestKlineCache:
    @patch("oscsetups.data.binance.requests.get")
    def test_file_source_falls_back_and_caches(self, mock_get, tmp_path):
        rows = [_binance_row(i, 50.0 + i) for i in range(4)]
        mock_get.return_value = _response(rows)
        params = KlineParams("ETH", "USDT", limit=3, source=DataSource.FILE)

        first = fetch_bars(Exchange.BINANCE, params, cache_dir=tmp_path)
        cache_file = tmp_path / "api.binance.us" / "ethusdt.json"
        assert cache_file.exists()
        assert json.loads(cache_file.read_text()) == rows

        mock_get.reset_mock()
        second = fetch_bars(Exchange.BINANCE, params, cache_dir=tmp_path)
        mock_get.assert_not_called()
        assert second == first

    @patch("oscsetups.data.binance.requests.get")
    def test_api_source_skips_cache(self, mock_get, tmp_path):
        mock_get.return_value = _response([_binance_row(i, 50.0) for i in range(3)])
        fetch_bars("binance", KlineParams("ETH", "USDT", limit=2), cache_dir=tmp_path)
        assert not any(tmp_path.iterdir())

    def test_cache_must_be_list(self, tmp_path):
        cache = KlineCache(tmp_path)
        path = cache.path_for("https://api.binance.us", "ETHUSDT")
        path.parent.mkdir(parents=True)
        path.write_text("{}")
        with pytest.raises(ValueError):
            cache.load("https://api.binance.us", "ETHUSDT")


class TestGetClient:
    def test_by_tag(self):
        assert isinstance(get_client(Exchange.BINANCE), BinanceClient)
        assert isinstance(get_client("coinbase"), CoinbaseClient)
        assert isinstance(get_client("Yahoo"), YahooClient)

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_client("kraken")
