from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlsplit

import ccxt
import requests
from pydantic import ValidationError

from watchlist.errors import BackendDecodeError, BackendError, SourceConfigError
from watchlist.schemas.instrument import Instrument


def _default_exchange_factory(source_id: str, options: Dict[str, Any]) -> Any:
    exchange_cls = getattr(ccxt, source_id, None) if source_id in ccxt.exchanges else None
    if exchange_cls is None:
        raise SourceConfigError(f"Exchange not found in ccxt: {source_id}")
    return exchange_cls(options)


def _rewrite_host(value: Any, default_host: str, endpoint: str) -> Any:
    if isinstance(value, dict):
        return {k: _rewrite_host(v, default_host, endpoint) for k, v in value.items()}
    if isinstance(value, str) and urlsplit(value).netloc == default_host:
        return value.replace(f"://{default_host}", f"://{endpoint}", 1)
    return value


def bind_endpoint(exchange: Any, endpoint: str) -> str:
    """Point every REST url on the exchange's public api host at `endpoint`.

    ccxt's `hostname` option only feeds url templates some exchanges use;
    binance hard-codes `https://api.binance.com/...`, so the urls are rewritten.
    Returns the host that was replaced.
    """
    urls = getattr(exchange, "urls", None)
    api = urls.get("api") if isinstance(urls, dict) else None
    public = api.get("public") if isinstance(api, dict) else None
    default_host = urlsplit(public).netloc if isinstance(public, str) else ""
    if not default_host:
        raise SourceConfigError(f"cannot bind endpoint {endpoint}: exchange has no public api url")

    exchange.urls = {**urls, "api": _rewrite_host(api, default_host, endpoint)}
    return default_host


def market_to_instrument(market: Any) -> Instrument | None:
    """Map one ccxt unified market dict into an Instrument.

    Entries without base/quote (indexes, settlement markets) map to None.
    """
    if not isinstance(market, dict):
        raise BackendDecodeError(f"market entry must be an object, got {type(market).__name__}")

    base = market.get("base")
    quote = market.get("quote")
    if not base or not quote:
        return None

    active = market.get("active")
    try:
        return Instrument(
            base=str(base),
            quote=str(quote),
            kind="spot" if market.get("spot") else "other",
            active=None if active is None else bool(active),
        )
    except ValidationError as exc:
        raise BackendDecodeError(f"invalid market entry: {market.get('symbol')!r}") from exc


class CcxtMarketsClient:
    """Lists exchange instruments through ccxt, optionally bound to one api host.

    Each exchange gets its own `requests.Session` unless `session` is injected,
    in which case that one session is shared by every exchange built here.
    """

    def __init__(
        self,
        *,
        timeout_ms: int = 30000,
        session: Optional[Any] = None,
        exchange_factory: Optional[Callable[[str, Dict[str, Any]], Any]] = None,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        self.timeout_ms = timeout_ms
        self.session = session
        self._exchange_factory = exchange_factory or _default_exchange_factory

    def build_options(self) -> Dict[str, Any]:
        return {
            "enableRateLimit": True,
            "timeout": self.timeout_ms,
            "session": self.session or requests.Session(),
        }

    def make_exchange(self, source_id: str, endpoint: str | None = None) -> Any:
        if not source_id:
            raise SourceConfigError("source id must not be empty")
        exchange = self._exchange_factory(source_id, self.build_options())
        if endpoint:
            bind_endpoint(exchange, endpoint)
        return exchange

    def list_instruments(self, source_id: str, endpoint: str | None = None) -> List[Instrument]:
        exchange = self.make_exchange(source_id, endpoint)

        try:
            markets = exchange.load_markets()
        except ccxt.BadResponse as exc:
            raise BackendDecodeError(str(exc) or type(exc).__name__) from exc
        except (ccxt.BaseError, requests.RequestException, TimeoutError) as exc:
            raise BackendError(str(exc) or type(exc).__name__) from exc

        if not isinstance(markets, dict):
            raise BackendDecodeError("load_markets must return a mapping of markets")

        instruments = (market_to_instrument(m) for m in markets.values())
        return [i for i in instruments if i is not None]
