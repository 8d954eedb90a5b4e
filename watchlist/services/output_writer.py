from __future__ import annotations

import json
from pathlib import Path

from watchlist.schemas.watchlist import RunResult

META_FILENAME = "META.json"


def render_lines(symbols) -> str:
    return "".join(f"{s}\n" for s in symbols)


class OutputWriter:
    """Persists list artifacts and the metadata record under one root directory.

    OSError is not caught here; an unwritable destination fails the run.
    """

    def __init__(self, root: str | Path = ".", *, meta_filename: str = META_FILENAME) -> None:
        self.root = Path(root)
        self.meta_path = self.root / meta_filename

    def _write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def write(self, run: RunResult) -> list[Path]:
        written: list[Path] = []
        for artifact, symbols in run.artifacts.items():
            path = self.root / artifact
            self._write_text(path, render_lines(symbols))
            print(f"[WATCHLIST] Wrote {path} ({len(symbols)} symbols)", flush=True)
            written.append(path)

        if not run.combined:
            print("[WATCHLIST][combined_skip] reason=no_symbols", flush=True)

        meta = run.metadata.model_dump(mode="json")
        self._write_text(self.meta_path, json.dumps(meta, ensure_ascii=False, indent=2) + "\n")
        print(f"[WATCHLIST] Wrote {self.meta_path}", flush=True)
        written.append(self.meta_path)
        return written
