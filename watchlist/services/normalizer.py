from __future__ import annotations

from typing import Iterable

from watchlist.schemas.instrument import Instrument

SETTLEMENT_ASSET = "BTC"


def normalize(instrument: Instrument, source_id: str, quote: str = SETTLEMENT_ASSET) -> str | None:
    """Return `SOURCE:BASEQUOTE` for a tradable spot pair in `quote`, else None.

    An unknown active flag is accepted; only an explicit False rejects.
    """
    if not source_id:
        raise ValueError("source_id must not be empty")

    if instrument.kind != "spot":
        return None
    if instrument.quote != quote:
        return None
    if instrument.active is False:
        return None

    return f"{source_id.upper()}:{instrument.base}{quote}"


def normalize_all(
    instruments: Iterable[Instrument],
    source_id: str,
    quote: str = SETTLEMENT_ASSET,
) -> tuple[str, ...]:
    symbols = {normalize(i, source_id, quote) for i in instruments}
    symbols.discard(None)
    return tuple(sorted(symbols))
