"""
Build Index: content hash -> candidate message records.

A build index is produced by an external analyzer for one build of the
protocol. Identifier tables only ask it one question: which records carry a
given hash. HashBuildIndex is the in-memory implementation that analyzer
output (Parquet, Polars or JSON) is loaded into.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Sequence

import polars as pl
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class MessageRecord(BaseModel):
    """One message of a protocol build, as reported by the analyzer."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, le=0xFFFF, description="Build-specific message id")
    hash: str = Field(..., min_length=1, description="Content hash of the message")
    class_name: Optional[str] = Field(default=None, description="Analyzer-reported class name")
    structure: Optional[str] = Field(default=None, description="Analyzer-reported field layout")


class BuildIndex(Protocol):
    """Hash lookup consumed by identifier tables."""

    def candidates(self, message_hash: str) -> Sequence[MessageRecord]:
        """Return every record of the build carrying this hash, in analyzer order."""
        ...


class HashBuildIndex:
    """
    In-memory build index keyed by content hash.

    Records sharing a hash are kept in insertion order; a hash with more than
    one record is ambiguous and never resolves.
    """

    SCHEMA = {
        "id": pl.UInt16,
        "hash": pl.Utf8,
        "class_name": pl.Utf8,
        "structure": pl.Utf8,
    }

    def __init__(self, records: Iterable[MessageRecord] = ()):
        self._by_hash: dict[str, list[MessageRecord]] = {}
        self._count = 0
        self.extend(records)

    def add(self, record: MessageRecord):
        self._by_hash.setdefault(record.hash, []).append(record)
        self._count += 1

    def extend(self, records: Iterable[MessageRecord]):
        for record in records:
            self.add(record)

    def candidates(self, message_hash: str) -> tuple[MessageRecord, ...]:
        return tuple(self._by_hash.get(message_hash, ()))

    def hashes(self) -> list[str]:
        return list(self._by_hash)

    def records(self) -> list[MessageRecord]:
        return [r for recs in self._by_hash.values() for r in recs]

    def __contains__(self, message_hash: object) -> bool:
        return message_hash in self._by_hash

    def __len__(self) -> int:
        return self._count

    def stats(self) -> dict:
        """Return record, hash and ambiguity counts."""
        ambiguous = sum(1 for recs in self._by_hash.values() if len(recs) > 1)
        return {
            "total_records": self._count,
            "distinct_hashes": len(self._by_hash),
            "ambiguous_hashes": ambiguous,
            "unique_hashes": len(self._by_hash) - ambiguous,
        }

    # =========================================================================
    # Polars / Parquet
    # =========================================================================

    def to_dataframe(self) -> pl.DataFrame:
        """
        Export the index as a DataFrame.

        Schema:
        - id: u16
        - hash: string
        - class_name: string (nullable)
        - structure: string (nullable)
        """
        records = self.records()
        if not records:
            return pl.DataFrame(schema=self.SCHEMA)
        return pl.DataFrame(
            [r.model_dump() for r in records],
            schema=self.SCHEMA,
        )

    @classmethod
    def from_dataframe(cls, df: pl.DataFrame) -> "HashBuildIndex":
        """
        Build an index from a DataFrame with at least ``id`` and ``hash`` columns.

        Optional columns ``class_name`` and ``structure`` are carried over.
        """
        missing = {"id", "hash"} - set(df.columns)
        if missing:
            raise ValueError(f"Build index frame is missing columns: {sorted(missing)}")

        optional = [c for c in ("class_name", "structure") if c in df.columns]
        index = cls()
        for row in df.select(["id", "hash", *optional]).iter_rows(named=True):
            index.add(MessageRecord(**row))
        return index

    def save(self, path: Path):
        """Save the index to a Parquet file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().write_parquet(path)
        logger.info(f"Saved build index ({self._count} records) to {path}")

    @classmethod
    def load(cls, path: Path) -> "HashBuildIndex":
        """
        Load an index from a Parquet or JSON file, chosen by suffix.
        """
        path = Path(path)
        if path.suffix.lower() == ".json":
            return cls.from_json(path)
        index = cls.from_dataframe(pl.read_parquet(path))
        logger.info(f"Loaded build index ({len(index)} records) from {path}")
        return index

    # =========================================================================
    # JSON
    # =========================================================================

    @classmethod
    def from_json(cls, path: Path) -> "HashBuildIndex":
        """
        Load analyzer output from JSON.

        Accepts either a list of record objects:
            [{"id": 10, "hash": "abc123", "class_name": "PingComposer"}, ...]
        or a mapping of hash to records:
            {"abc123": [{"id": 10}, ...], ...}
        """
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        index = cls.from_obj(data)
        logger.info(f"Loaded build index ({len(index)} records) from {path}")
        return index

    @classmethod
    def from_obj(cls, data: Any) -> "HashBuildIndex":
        index = cls()
        if isinstance(data, dict):
            for message_hash, entries in data.items():
                for entry in entries:
                    index.add(MessageRecord(**{**entry, "hash": message_hash}))
        elif isinstance(data, list):
            for entry in data:
                index.add(MessageRecord(**entry))
        else:
            raise ValueError(f"Unsupported build index document: {type(data).__name__}")
        return index

    def to_obj(self) -> dict[str, list[dict]]:
        """Export as a hash -> records mapping (the JSON shape ``from_obj`` accepts)."""
        return {
            message_hash: [r.model_dump(exclude={"hash"}, exclude_none=True) for r in recs]
            for message_hash, recs in self._by_hash.items()
        }

    def __repr__(self) -> str:
        return f"HashBuildIndex(records={self._count}, hashes={len(self._by_hash)})"
