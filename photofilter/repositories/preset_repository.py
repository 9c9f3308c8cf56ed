"""SQLite-backed store for named adjustment presets.

One row per preset name; the parameters live in a JSON text column so that
integer values round-trip exactly and absent adjustments stay absent.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional
import json
import logging
import os
import sqlite3
import threading

from dotenv import load_dotenv

from ..errors import PresetStoreError
from ..models.adjustment_parameters import AdjustmentParameters
from ..models.preset import Preset

load_dotenv()

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS presets (
        name       TEXT PRIMARY KEY,
        params     TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_UPSERT = """
    INSERT INTO presets (name, params)
    VALUES (?, ?)
    ON CONFLICT (name)
    DO UPDATE SET params = excluded.params, updated_at = CURRENT_TIMESTAMP
"""


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class PresetRepository:
    """Persistence access layer for presets.

    Connections are short-lived (one per call); a process-wide lock serialises
    writers so concurrent server requests never interleave an upsert.
    """

    _write_lock = threading.Lock()

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path or os.getenv("PRESET_DB_PATH", "data/presets.db"))
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create preset store directory {self.db_path.parent}: {e}")
            raise PresetStoreError(f"Cannot create preset store directory {self.db_path.parent}: {e}") from e
        with self._connect() as conn:
            conn.execute(_SCHEMA)
        logger.debug(f"Preset store ready at {self.db_path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=10.0)
        except sqlite3.Error as e:
            logger.error(f"Failed to open preset store {self.db_path}: {e}")
            raise PresetStoreError(f"Cannot open preset store {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Preset store error: {e}")
            raise PresetStoreError(f"Preset store error: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _decode_params(name: str, raw: str) -> AdjustmentParameters:
        try:
            return AdjustmentParameters.from_stored(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as e:
            raise PresetStoreError(f"Corrupt parameters stored for preset {name!r}: {e}") from e

    # ── Public API ───────────────────────────────────────────────────
    def save(self, name: str, params: AdjustmentParameters) -> None:
        """Insert or overwrite (last write wins)."""
        payload = json.dumps(params.to_dict(), sort_keys=True)
        with self._write_lock, self._connect() as conn:
            conn.execute(_UPSERT, (name, payload))
        logger.info(f"Saved preset {name!r}: {payload}")

    def get(self, name: str) -> Optional[Preset]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, params, created_at, updated_at FROM presets WHERE name = ?",
                (name,),
            ).fetchone()
        if row is None:
            return None
        return Preset(
            name=row["name"],
            parameters=self._decode_params(row["name"], row["params"]),
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    def load_all(self) -> Dict[str, AdjustmentParameters]:
        with self._connect() as conn:
            rows = conn.execute("SELECT name, params FROM presets ORDER BY name").fetchall()
        return {row["name"]: self._decode_params(row["name"], row["params"]) for row in rows}

    def delete(self, name: str) -> bool:
        """Remove *name*; False when there was nothing to remove."""
        with self._write_lock, self._connect() as conn:
            deleted = conn.execute("DELETE FROM presets WHERE name = ?", (name,)).rowcount
        if deleted:
            logger.info(f"Deleted preset {name!r}")
        else:
            logger.warning(f"Preset {name!r} not found")
        return deleted > 0

    def list_names(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT name FROM presets ORDER BY name").fetchall()
        return [row["name"] for row in rows]
