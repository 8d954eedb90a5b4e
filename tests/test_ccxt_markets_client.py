import unittest
from unittest.mock import MagicMock

import ccxt
import requests

from watchlist.errors import BackendDecodeError, BackendError, SourceConfigError
from watchlist.integrations.ccxt_markets import CcxtMarketsClient, market_to_instrument
from watchlist.services.source_fetcher import fetch_ordinary


class TestCcxtMarketsClient(unittest.TestCase):
    def _client_with_exchange(self, exchange):
        factory = MagicMock(return_value=exchange)
        session = MagicMock()
        client = CcxtMarketsClient(timeout_ms=1500, session=session, exchange_factory=factory)
        return client, factory, session

    def test_list_instruments_maps_ccxt_markets(self):
        exchange = MagicMock()
        exchange.load_markets.return_value = {
            "ETH/BTC": {"symbol": "ETH/BTC", "base": "ETH", "quote": "BTC", "spot": True, "active": True},
            "ETH/BTC:BTC": {"symbol": "ETH/BTC:BTC", "base": "ETH", "quote": "BTC", "spot": False, "active": True},
            "ADA/BTC": {"symbol": "ADA/BTC", "base": "ADA", "quote": "BTC", "spot": True, "active": None},
        }
        client, factory, session = self._client_with_exchange(exchange)

        instruments = client.list_instruments("okx")

        self.assertEqual([(i.base, i.kind, i.active) for i in instruments], [
            ("ETH", "spot", True),
            ("ETH", "other", True),
            ("ADA", "spot", None),
        ])
        factory.assert_called_once_with(
            "okx",
            {"enableRateLimit": True, "timeout": 1500, "session": session},
        )

    def test_endpoint_rewrites_public_api_urls(self):
        exchange = MagicMock()
        exchange.urls = {
            "logo": "https://example.test/logo.png",
            "api": {
                "public": "https://api.binance.com/api/v3",
                "sapi": "https://api.binance.com/sapi/v1",
                "fapiPublic": "https://fapi.binance.com/fapi/v1",
            },
        }
        exchange.load_markets.return_value = {}
        client, factory, _ = self._client_with_exchange(exchange)

        client.list_instruments("binance", endpoint="api-gcp.binance.com")

        self.assertNotIn("hostname", factory.call_args.args[1])
        self.assertEqual(exchange.urls["api"], {
            "public": "https://api-gcp.binance.com/api/v3",
            "sapi": "https://api-gcp.binance.com/sapi/v1",
            "fapiPublic": "https://fapi.binance.com/fapi/v1",
        })
        self.assertEqual(exchange.urls["logo"], "https://example.test/logo.png")

    def test_endpoint_without_public_url_is_config_error(self):
        exchange = MagicMock()
        exchange.urls = {"api": {}}
        client, _, _ = self._client_with_exchange(exchange)

        with self.assertRaises(SourceConfigError):
            client.list_instruments("binance", endpoint="api4.binance.com")
        exchange.load_markets.assert_not_called()

    def test_market_without_base_or_quote_is_skipped(self):
        exchange = MagicMock()
        exchange.load_markets.return_value = {
            "ETH/BTC": {"symbol": "ETH/BTC", "base": "ETH", "quote": "BTC", "spot": True, "active": True},
            "BTC-INDEX": {"symbol": "BTC-INDEX", "base": "BTC", "quote": None, "spot": False},
        }
        client, _, _ = self._client_with_exchange(exchange)

        result = fetch_ordinary(client, "okx")

        self.assertEqual(result.symbols, ("OKX:ETHBTC",))
        self.assertEqual(result.diagnostics, ())

    def test_network_error_is_wrapped(self):
        exchange = MagicMock()
        exchange.load_markets.side_effect = ccxt.NetworkError("binance GET https://api.binance.com 451")
        client, _, _ = self._client_with_exchange(exchange)

        with self.assertRaises(BackendError) as ctx:
            client.list_instruments("binance")

        self.assertIn("451", str(ctx.exception))

    def test_requests_timeout_is_wrapped(self):
        exchange = MagicMock()
        exchange.load_markets.side_effect = requests.Timeout("read timed out")
        client, _, _ = self._client_with_exchange(exchange)

        with self.assertRaises(BackendError):
            client.list_instruments("okx")

    def test_bad_response_is_decode_error(self):
        exchange = MagicMock()
        exchange.load_markets.side_effect = ccxt.BadResponse("unexpected token")
        client, _, _ = self._client_with_exchange(exchange)

        with self.assertRaises(BackendDecodeError):
            client.list_instruments("okx")

    def test_non_mapping_markets_is_decode_error(self):
        exchange = MagicMock()
        exchange.load_markets.return_value = ["ETH/BTC"]
        client, _, _ = self._client_with_exchange(exchange)

        with self.assertRaises(BackendDecodeError):
            client.list_instruments("okx")

    def test_market_missing_quote_maps_to_none(self):
        self.assertIsNone(market_to_instrument({"symbol": "ETH/", "base": "ETH", "spot": True}))

    def test_non_object_market_entry_is_decode_error(self):
        with self.assertRaises(BackendDecodeError):
            market_to_instrument("ETH/BTC")

    def test_unknown_exchange_is_config_error(self):
        client = CcxtMarketsClient(session=MagicMock())

        with self.assertRaises(SourceConfigError):
            client.list_instruments("not-an-exchange")

    def test_real_binance_exchange_is_bound_to_endpoint(self):
        client = CcxtMarketsClient(timeout_ms=2000)

        exchange = client.make_exchange("binance", endpoint="api4.binance.com")

        self.assertIsInstance(exchange, ccxt.binance)
        self.assertEqual(exchange.urls["api"]["public"], "https://api4.binance.com/api/v3")
        self.assertNotIn("api.binance.com", exchange.urls["api"]["public"])
        self.assertEqual(exchange.hostname, "binance.com")
        self.assertEqual(exchange.timeout, 2000)
        self.assertTrue(exchange.enableRateLimit)

    def test_real_exchange_without_endpoint_keeps_default_urls(self):
        exchange = CcxtMarketsClient().make_exchange("binance")

        self.assertEqual(exchange.urls["api"]["public"], "https://api.binance.com/api/v3")

    def test_each_exchange_gets_its_own_session(self):
        client = CcxtMarketsClient()

        first = client.make_exchange("okx")
        second = client.make_exchange("okx")

        self.assertIsInstance(first.session, requests.Session)
        self.assertIsNot(first.session, second.session)

    def test_injected_session_is_shared(self):
        session = requests.Session()
        client = CcxtMarketsClient(session=session)

        self.assertIs(client.make_exchange("okx").session, session)
        self.assertIs(client.make_exchange("mexc").session, session)

    def test_timeout_must_be_positive(self):
        with self.assertRaises(ValueError):
            CcxtMarketsClient(timeout_ms=0)


if __name__ == "__main__":
    unittest.main()
