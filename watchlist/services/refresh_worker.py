from __future__ import annotations

import threading
import time
from typing import Sequence

from watchlist.config.settings import Settings
from watchlist.integrations.ccxt_markets import CcxtMarketsClient
from watchlist.schemas.watchlist import RunResult, SourceConfig
from watchlist.services.aggregator import WatchlistAggregator
from watchlist.services.output_writer import OutputWriter


class WatchlistRefreshService:
    """Runs aggregate+persist on demand or on an interval and keeps the latest run."""

    def __init__(
        self,
        *,
        aggregator: WatchlistAggregator,
        writer: OutputWriter | None,
        source_configs: Sequence[SourceConfig],
        interval_sec: float = 0.0,
    ) -> None:
        self.aggregator = aggregator
        self.writer = writer
        self.source_configs = list(source_configs)
        self.interval_sec = interval_sec
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._latest: RunResult | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._metrics = {
            "runs": 0,
            "failed_runs": 0,
            "last_run_ts": None,
            "last_error": None,
        }

    @classmethod
    def from_settings(cls, settings: Settings, *, backend=None) -> "WatchlistRefreshService":
        backend = backend or CcxtMarketsClient(timeout_ms=settings.WATCHLIST_TIMEOUT_MS)
        aggregator = WatchlistAggregator(
            backend=backend,
            quote=settings.WATCHLIST_QUOTE,
            lists_dir=settings.WATCHLIST_LISTS_DIR,
            max_workers=settings.WATCHLIST_MAX_WORKERS,
        )
        return cls(
            aggregator=aggregator,
            writer=OutputWriter(settings.WATCHLIST_OUTPUT_DIR),
            source_configs=settings.source_configs(),
            interval_sec=settings.WATCHLIST_REFRESH_SEC,
        )

    def refresh_once(self) -> RunResult:
        # one run at a time; API-triggered and scheduled refreshes may overlap
        with self._run_lock:
            try:
                run = self.aggregator.run(self.source_configs)
                if self.writer is not None:
                    self.writer.write(run)
            except Exception as exc:
                with self._lock:
                    self._metrics["failed_runs"] += 1
                    self._metrics["last_error"] = str(exc)
                raise

        with self._lock:
            self._latest = run
            self._metrics["runs"] += 1
            self._metrics["last_run_ts"] = int(time.time())
            self._metrics["last_error"] = None
        return run

    def latest(self) -> RunResult | None:
        with self._lock:
            return self._latest

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_sec):
            try:
                self.refresh_once()
            except Exception as exc:
                print(f"[WATCHLIST][refresh_error] error={exc}", flush=True)
                continue

    def start(self) -> bool:
        if self.interval_sec <= 0:
            return False
        if self._thread and self._thread.is_alive():
            return True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="watchlist-refresh-worker")
        self._thread.start()
        print(f"[WATCHLIST][refresh_worker_start] interval_sec={self.interval_sec}", flush=True)
        return True

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
            print("[WATCHLIST][refresh_worker_stop]", flush=True)

    def metrics(self) -> dict:
        with self._lock:
            return {
                **self._metrics,
                "interval_sec": self.interval_sec,
                "worker_alive": bool(self._thread and self._thread.is_alive()),
            }
