class WatchlistError(Exception):
    """Base error for watchlist build failures."""


class SourceConfigError(WatchlistError):
    """Unknown source id or unusable source configuration."""


class BackendError(WatchlistError):
    """Market listing could not be retrieved (network, timeout, bad status)."""


class BackendDecodeError(BackendError):
    """Market listing was retrieved but could not be decoded."""
