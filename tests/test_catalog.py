"""Tests for the multi-section message catalog."""
import io

import pytest

from msgident.build_index import HashBuildIndex, MessageRecord
from msgident.catalog import MessageCatalog
from msgident.identifiers import Identifiers, Incoming, Outgoing, UNRESOLVED_ID


CURATED = """\
[Incoming]
Chat=aaa
Ping=ccc

[Outgoing]
Pong=bbb
Walk=ddd
"""


@pytest.fixture
def index():
    return HashBuildIndex([
        MessageRecord(id=1, hash="aaa"),
        MessageRecord(id=2, hash="bbb"),
        MessageRecord(id=3, hash="ddd"),
        MessageRecord(id=4, hash="ddd"),
    ])


class TestMessageCatalog:
    def test_default_sections(self):
        catalog = MessageCatalog()
        assert catalog.sections == ["Incoming", "Outgoing"]
        assert isinstance(catalog.incoming, Incoming)
        assert isinstance(catalog.outgoing, Outgoing)

    def test_from_sections(self):
        catalog = MessageCatalog.from_sections(["A", "B"])
        assert catalog.sections == ["A", "B"]
        assert catalog.incoming is None
        assert catalog["A"].section == "A"

    def test_duplicate_section(self):
        with pytest.raises(ValueError):
            MessageCatalog([Identifiers(section="A"), Identifiers(section="A")])

    def test_load(self, index):
        catalog = MessageCatalog()
        catalog.load(index, io.StringIO(CURATED))

        assert catalog.incoming.get_id("Chat") == 1
        assert catalog.incoming.get_id("Ping") == UNRESOLVED_ID
        assert catalog.outgoing.get_id("Pong") == 2
        assert catalog.outgoing.get_id("Walk") == UNRESOLVED_ID
        assert "Pong" not in catalog.incoming

    def test_load_from_path_and_bytes(self, index, tmp_path):
        path = tmp_path / "names.ini"
        path.write_text(CURATED, encoding="utf-8")

        from_path = MessageCatalog()
        from_path.load(index, path)
        from_bytes = MessageCatalog()
        from_bytes.load(index, io.BytesIO(CURATED.encode("utf-8")))

        assert from_path.serialize() == from_bytes.serialize()

    def test_serialize(self, index):
        catalog = MessageCatalog()
        catalog.load(index, io.StringIO(CURATED))
        assert catalog.serialize() == (
            "[Incoming]\nChat=1\nPing=65535\n\n[Outgoing]\nPong=2\nWalk=65535"
        )

    def test_save_and_reload_sections(self, index, tmp_path):
        catalog = MessageCatalog()
        catalog.load(index, io.StringIO(CURATED))
        path = tmp_path / "snapshot.ini"
        catalog.save(path)

        text = path.read_text(encoding="utf-8")
        assert text.endswith("Walk=65535\n")
        # the snapshot keeps the section layout of the curated file
        reread = MessageCatalog()
        reread.load(HashBuildIndex(), path)
        assert reread.incoming.names() == ["Chat", "Ping"]
        assert reread.outgoing.names() == ["Pong", "Walk"]

    def test_byte_order_mark(self, index, tmp_path):
        path = tmp_path / "names.ini"
        path.write_text("\ufeff" + CURATED, encoding="utf-8")
        catalog = MessageCatalog()
        catalog.load(index, path)
        assert catalog.incoming.get_id("Chat") == 1
        assert catalog.outgoing.get_id("Pong") == 2

    def test_stats(self, index):
        catalog = MessageCatalog()
        catalog.load(index, io.StringIO(CURATED))
        stats = catalog.stats()
        assert stats["Incoming"]["resolved"] == 1
        assert stats["Outgoing"]["unresolved"] == 1

    def test_iteration(self):
        catalog = MessageCatalog()
        assert [t.section for t in catalog] == ["Incoming", "Outgoing"]
        assert len(catalog) == 2
        assert "Incoming" in catalog
