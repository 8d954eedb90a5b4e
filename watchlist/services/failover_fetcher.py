from __future__ import annotations

from typing import Sequence

from watchlist.schemas.watchlist import EndpointAttempt, SourceResult
from watchlist.services.normalizer import SETTLEMENT_ASSET
from watchlist.services.source_fetcher import fetch_symbols


class FailoverFetcher:
    """Walks an ordered endpoint list until one returns a non-empty listing.

    Each endpoint gets exactly one attempt. A raised error and an empty listing
    both advance to the next endpoint, but are recorded as different outcomes:
    an empty listing from this source usually means the host is soft-blocked
    rather than that nothing is tradable.
    """

    def __init__(self, backend, *, quote: str = SETTLEMENT_ASSET) -> None:
        self.backend = backend
        self.quote = quote
        self.attempts: list[EndpointAttempt] = []

    def _attempt(self, source_id: str, endpoint: str) -> tuple[EndpointAttempt, tuple[str, ...]]:
        tag = source_id.upper()
        try:
            symbols = fetch_symbols(self.backend, source_id, quote=self.quote, endpoint=endpoint)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            print(f"[{tag}] {endpoint}: {message}; trying next host...", flush=True)
            return EndpointAttempt(endpoint=endpoint, outcome="error", message=message), ()

        if not symbols:
            print(f"[{tag}] {endpoint}: returned 0 pairs, trying next host...", flush=True)
            return EndpointAttempt(endpoint=endpoint, outcome="empty"), ()

        print(f"[{tag}] using host: {endpoint} ({len(symbols)} pairs)", flush=True)
        return EndpointAttempt(endpoint=endpoint, outcome="success", count=len(symbols)), symbols

    def fetch(self, source_id: str, endpoints: Sequence[str]) -> SourceResult:
        self.attempts = []
        tag = source_id.upper()

        if not endpoints:
            print(f"[{tag}][config_error] no endpoints configured", flush=True)
            return SourceResult(
                source_id=source_id,
                diagnostics=(f"{tag} failed: no failover endpoints configured",),
            )

        for endpoint in endpoints:
            attempt, symbols = self._attempt(source_id, endpoint)
            self.attempts.append(attempt)
            if attempt.outcome == "success":
                return SourceResult(source_id=source_id, symbols=symbols)

        trail = tuple(a.describe() for a in self.attempts)
        print(
            f"[{tag}] All hosts failed:\n" + "\n".join(f"- {line}" for line in trail),
            flush=True,
        )
        return SourceResult(source_id=source_id, diagnostics=trail)


def fetch_with_failover(
    backend,
    source_id: str,
    endpoints: Sequence[str],
    *,
    quote: str = SETTLEMENT_ASSET,
) -> tuple[SourceResult, tuple[EndpointAttempt, ...]]:
    fetcher = FailoverFetcher(backend, quote=quote)
    result = fetcher.fetch(source_id, endpoints)
    return result, tuple(fetcher.attempts)
