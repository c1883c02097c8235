"""
Message Identifier Tables.

Reconciles a curated ``name=hash`` file against the hash -> id table of one
protocol build and serves bidirectional lookups for that build.

Key design decisions:
- Hashes are the stable key: names are curated against hashes, ids are
  resolved per build
- Conservative resolution: a hash resolves only when the build index has
  exactly one candidate for it, ambiguity is treated like absence
- Unresolved names keep the UNRESOLVED_ID sentinel (0xFFFF) so callers can
  compare ids directly
- Snapshots emit ``name=id`` lines, the curated file keeps ``name=hash`` lines
"""

from __future__ import annotations

import inspect
import io
import logging
from pathlib import Path
from typing import IO, Iterator, Optional, Tuple, Union

from msgident.build_index import BuildIndex

logger = logging.getLogger(__name__)


# Type alias for message identifiers (u16)
MessageId = int

UNRESOLVED_ID: MessageId = 0xFFFF
MAX_ID = 0xFFFF

Source = Union[str, Path, IO[str], IO[bytes]]
Destination = Union[str, Path, IO[str]]


class MalformedLineError(ValueError):
    """
    Curated data line without the ``name=value`` shape.

    Raised for a missing ``=``, an empty name or an empty value. Blank lines
    carry no entry and are skipped, so sections may be separated by them.
    """

    def __init__(self, line: str, line_number: int, section: str):
        self.line = line
        self.line_number = line_number
        self.section = section
        super().__init__(
            f"Malformed line {line_number} in section [{section}]: {line!r}"
        )


def parse_entry(line: str, line_number: int, section: str) -> Tuple[str, str]:
    """Split a data line on the first '=' into a trimmed (name, value) pair."""
    name, sep, value = line.partition("=")
    name = name.strip()
    value = value.strip()
    if not sep or not name or not value:
        raise MalformedLineError(line, line_number, section)
    return name, value


def is_section_header(line: str) -> bool:
    return line.startswith("[") and line.endswith("]")


class Identifiers:
    """
    Name <-> id <-> hash lookup table for one section of a curated file.

    The section name defaults to the class name, so subclasses such as
    ``Incoming`` read the ``[Incoming]`` block of a shared file.

    Subclasses may declare integer slots as class annotations; after a load
    every curated name with a matching slot gets its id bound onto the
    instance:

        class Outgoing(Identifiers):
            Ping: int = UNRESOLVED_ID

    Thread-safety: NOT thread-safe. Serialize loads and reads externally.
    """

    def __init__(
        self,
        build_index: Optional[BuildIndex] = None,
        source: Optional[Source] = None,
        section: Optional[str] = None,
        encoding: str = "utf-8",
    ):
        self.section = section or type(self).__name__
        self.encoding = encoding

        self._ids_by_name: dict[str, MessageId] = {}
        self._names_by_id: dict[MessageId, str] = {}
        self._hashes_by_id: dict[MessageId, str] = {}
        self._names_by_hash: dict[str, str] = {}

        if build_index is not None and source is not None:
            self.load(build_index, source)

    # =========================================================================
    # Lookups
    # =========================================================================

    def __getitem__(self, name: str) -> MessageId:
        return self._ids_by_name[name]

    def __setitem__(self, name: str, message_id: MessageId):
        self.set_id(name, message_id)

    def __contains__(self, name: object) -> bool:
        return name in self._ids_by_name

    def __len__(self) -> int:
        return len(self._ids_by_name)

    def __iter__(self) -> Iterator[MessageId]:
        """Yield the id of every curated name, in name order."""
        for name in sorted(self._ids_by_name):
            yield self._ids_by_name[name]

    def get_id(self, name: str) -> MessageId:
        """Return the id for a name, or UNRESOLVED_ID if absent or unresolved."""
        return self._ids_by_name.get(name, UNRESOLVED_ID)

    def try_get_id(self, name: str) -> Tuple[MessageId, bool]:
        """
        Look up a name, distinguishing absent from unresolved.

        Returns:
            (id, found) where found is True iff the name is in the table,
            whether or not it resolved.
        """
        if name not in self._ids_by_name:
            return UNRESOLVED_ID, False
        return self._ids_by_name[name], True

    def get_hash(self, message_id: MessageId) -> Optional[str]:
        """Get the content hash a resolved id came from."""
        return self._hashes_by_id.get(message_id)

    def get_name(self, key: Union[MessageId, str]) -> Optional[str]:
        """
        Get the curated name for a resolved id or for a content hash.

        Integers are looked up as ids, strings as hashes.
        """
        if isinstance(key, str):
            return self._names_by_hash.get(key)
        return self._names_by_id.get(key)

    def set_id(self, name: str, message_id: MessageId):
        """Override the id of a name directly (manual patching after load)."""
        if not 0 <= message_id <= MAX_ID:
            raise ValueError(f"Message id out of range: {message_id}")
        self._ids_by_name[name] = message_id

    def names(self) -> list[str]:
        """Return every curated name in sorted order."""
        return sorted(self._ids_by_name)

    def resolved_ids(self) -> list[MessageId]:
        """Return the ids that resolved during the last load."""
        return list(self._names_by_id)

    # =========================================================================
    # Load
    # =========================================================================

    def load(self, build_index: BuildIndex, source: Source):
        """
        Rebuild every index from a curated source.

        Args:
            build_index: Hash -> candidate records for the current build
            source: Path, text stream or binary stream of curated lines.
                Streams passed in are left open; files opened here are closed.

        Raises:
            MalformedLineError: If a line in this section lacks ``name=hash``.
                The table is invalid after a failed load.
            OSError: If the source cannot be opened or read.
        """
        if isinstance(source, (str, Path)):
            with open(source, "r", encoding=self.encoding) as f:
                self._load_lines(build_index, f)
        elif not _is_binary(source):
            self._load_lines(build_index, source)
        else:
            wrapper = io.TextIOWrapper(source, encoding=self.encoding)
            try:
                self._load_lines(build_index, wrapper)
            finally:
                wrapper.detach()

    def _load_lines(self, build_index: BuildIndex, lines):
        self._ids_by_name.clear()
        self._names_by_id.clear()
        self._hashes_by_id.clear()
        self._names_by_hash.clear()

        slots = self.bindable_slots()
        for slot in slots:
            setattr(self, slot, UNRESOLVED_ID)

        header = f"[{self.section}]"
        in_section = False
        ambiguous = 0
        missing = 0

        for line_number, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")
            if line_number == 1:
                line = line.lstrip("\ufeff")
            if is_section_header(line):
                in_section = line == header
                continue
            if not in_section or not line.strip():
                continue

            name, message_hash = parse_entry(line, line_number, self.section)

            message_id = UNRESOLVED_ID
            candidates = build_index.candidates(message_hash)
            if len(candidates) == 1:
                message_id = candidates[0].id
                if message_hash not in self._names_by_hash:
                    self._names_by_hash[message_hash] = name
            elif candidates:
                ambiguous += 1
                logger.debug(
                    f"[{self.section}] {name}: {len(candidates)} candidates for {message_hash}"
                )
            else:
                missing += 1
                logger.debug(f"[{self.section}] {name}: no candidate for {message_hash}")

            if message_id != UNRESOLVED_ID:
                self._names_by_id[message_id] = name
                self._hashes_by_id[message_id] = message_hash

            self._ids_by_name[name] = message_id
            if name in slots:
                setattr(self, name, message_id)

        stats = self.stats()
        logger.info(
            f"Loaded [{self.section}]: {stats['total_names']} names, "
            f"{stats['resolved']} resolved, {ambiguous} ambiguous lines, "
            f"{missing} missing lines"
        )

    # =========================================================================
    # Slot binding
    # =========================================================================

    @classmethod
    def bindable_slots(cls) -> frozenset[str]:
        """Names of the integer slots declared by subclasses."""
        slots = set()
        for klass in cls.__mro__:
            if klass is Identifiers:
                break
            for name in inspect.get_annotations(klass):
                if not name.startswith("_"):
                    slots.add(name)
        return frozenset(slots)

    # =========================================================================
    # Save
    # =========================================================================

    def serialize(self) -> str:
        """Render the table as a ``[section]`` block of ``name=id`` lines."""
        lines = [f"[{self.section}]"]
        for name in sorted(self._ids_by_name):
            lines.append(f"{name}={self._ids_by_name[name]}")
        return "\n".join(lines)

    def save(self, destination: Destination):
        """
        Write the ``name=id`` snapshot of this table.

        Paths are opened (and closed) here; streams are written to and left open.
        """
        if isinstance(destination, (str, Path)):
            with open(destination, "w", encoding=self.encoding) as f:
                self._write(f)
            logger.info(f"Saved [{self.section}] ({len(self)} names) to {destination}")
        else:
            self._write(destination)

    def _write(self, output: IO[str]):
        output.write(self.serialize())
        output.write("\n")

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Return resolution statistics for the last load."""
        unresolved = sum(1 for mid in self._ids_by_name.values() if mid == UNRESOLVED_ID)
        return {
            "section": self.section,
            "total_names": len(self._ids_by_name),
            "resolved": len(self._ids_by_name) - unresolved,
            "unresolved": unresolved,
            "distinct_ids": len(self._names_by_id),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(section={self.section!r}, names={len(self)})"


def _is_binary(stream) -> bool:
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in getattr(stream, "mode", "")


class Incoming(Identifiers):
    """Identifiers of messages received from the server."""


class Outgoing(Identifiers):
    """Identifiers of messages sent to the server."""
