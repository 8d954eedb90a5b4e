from __future__ import annotations

from watchlist.schemas.watchlist import SourceResult
from watchlist.services.normalizer import SETTLEMENT_ASSET, normalize_all


def fetch_symbols(
    backend,
    source_id: str,
    *,
    quote: str = SETTLEMENT_ASSET,
    endpoint: str | None = None,
) -> tuple[str, ...]:
    """One backend call, normalized, deduplicated and sorted. Errors propagate."""
    if endpoint is None:
        instruments = backend.list_instruments(source_id)
    else:
        instruments = backend.list_instruments(source_id, endpoint=endpoint)
    return normalize_all(instruments, source_id, quote)


def fetch_ordinary(backend, source_id: str, *, quote: str = SETTLEMENT_ASSET) -> SourceResult:
    tag = source_id.upper()
    try:
        symbols = fetch_symbols(backend, source_id, quote=quote)
    except Exception as exc:
        message = str(exc) or type(exc).__name__
        print(f"[{tag}][fetch_error] error={message}", flush=True)
        return SourceResult(source_id=source_id, diagnostics=(f"{tag} failed: {message}",))

    return SourceResult(source_id=source_id, symbols=symbols)
