"""
Message catalog: every identifier section of one curated file.

The curated file usually carries an ``[Incoming]`` and an ``[Outgoing]``
block. A catalog reads the source once and loads each of its tables from it,
and writes all sections back into a single snapshot.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional

from msgident.build_index import BuildIndex
from msgident.identifiers import Destination, Identifiers, Incoming, Outgoing, Source

logger = logging.getLogger(__name__)


class MessageCatalog:
    """
    Ordered collection of identifier tables keyed by section name.

    Usage:
        catalog = MessageCatalog()
        catalog.load(HashBuildIndex.load("build.parquet"), "names.ini")

        ping = catalog.outgoing.get_id("Ping")
        catalog.save("snapshot.ini")
    """

    def __init__(
        self,
        tables: Optional[Iterable[Identifiers]] = None,
        encoding: str = "utf-8",
    ):
        self.encoding = encoding
        if tables is None:
            tables = [Incoming(encoding=encoding), Outgoing(encoding=encoding)]
        self._tables: dict[str, Identifiers] = {}
        for table in tables:
            self.add(table)

    @classmethod
    def from_sections(cls, sections: Iterable[str], encoding: str = "utf-8") -> "MessageCatalog":
        """Create a catalog with one plain table per section name."""
        return cls(
            [Identifiers(section=s, encoding=encoding) for s in sections],
            encoding=encoding,
        )

    def add(self, table: Identifiers):
        if table.section in self._tables:
            raise ValueError(f"Duplicate section: {table.section}")
        self._tables[table.section] = table

    def __getitem__(self, section: str) -> Identifiers:
        return self._tables[section]

    def __contains__(self, section: object) -> bool:
        return section in self._tables

    def __iter__(self) -> Iterator[Identifiers]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def sections(self) -> list[str]:
        return list(self._tables)

    @property
    def incoming(self) -> Optional[Identifiers]:
        return self._tables.get("Incoming")

    @property
    def outgoing(self) -> Optional[Identifiers]:
        return self._tables.get("Outgoing")

    def load(self, build_index: BuildIndex, source: Source):
        """
        Load every table from one curated source.

        The source is read fully once; tables then scan it independently.
        """
        text = self._read(source)
        for table in self._tables.values():
            table.load(build_index, io.StringIO(text))

    def _read(self, source: Source) -> str:
        if isinstance(source, (str, Path)):
            with open(source, "r", encoding=self.encoding) as f:
                return f.read()
        data = source.read()
        if isinstance(data, bytes):
            return data.decode(self.encoding)
        return data

    def serialize(self) -> str:
        """Render all sections, separated by a blank line."""
        return "\n\n".join(table.serialize() for table in self._tables.values())

    def save(self, destination: Destination):
        if isinstance(destination, (str, Path)):
            with open(destination, "w", encoding=self.encoding) as f:
                self._write(f)
            logger.info(f"Saved {len(self)} sections to {destination}")
        else:
            self._write(destination)

    def _write(self, output: IO[str]):
        output.write(self.serialize())
        output.write("\n")

    def stats(self) -> dict[str, dict]:
        return {section: table.stats() for section, table in self._tables.items()}
