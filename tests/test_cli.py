"""Tests for the command line interface."""
import json

import pytest

from msgident.build_index import HashBuildIndex, MessageRecord
from msgident.cli import main


CURATED = "[Incoming]\nChat=aaa\n\n[Outgoing]\nPong=bbb\nWalk=ccc\n"


@pytest.fixture
def files(tmp_path):
    index = HashBuildIndex([
        MessageRecord(id=1, hash="aaa"),
        MessageRecord(id=2, hash="bbb"),
    ])
    index_path = tmp_path / "build.parquet"
    index.save(index_path)
    curated_path = tmp_path / "names.ini"
    curated_path.write_text(CURATED, encoding="utf-8")
    return tmp_path, index_path, curated_path


class TestResolve:
    def test_writes_snapshot(self, files):
        tmp_path, index_path, curated_path = files
        output = tmp_path / "snapshot.ini"
        code = main([
            "resolve", "-i", str(index_path), "-n", str(curated_path), "-o", str(output),
        ])
        assert code == 0
        assert output.read_text(encoding="utf-8") == (
            "[Incoming]\nChat=1\n\n[Outgoing]\nPong=2\nWalk=65535\n"
        )

    def test_stdout(self, files, capsys):
        _, index_path, curated_path = files
        assert main(["resolve", "-i", str(index_path), "-n", str(curated_path)]) == 0
        assert "Pong=2" in capsys.readouterr().out

    def test_section_filter(self, files, capsys):
        _, index_path, curated_path = files
        main([
            "resolve", "-i", str(index_path), "-n", str(curated_path), "--section", "Outgoing",
        ])
        out = capsys.readouterr().out
        assert "[Incoming]" not in out
        assert "[Outgoing]" in out

    def test_from_config(self, files):
        tmp_path, index_path, curated_path = files
        output = tmp_path / "out.ini"
        config = tmp_path / "resolver.json"
        config.write_text(json.dumps({
            "build_index_path": str(index_path),
            "curated_path": str(curated_path),
            "output_path": str(output),
        }))
        assert main(["--config", str(config), "resolve"]) == 0
        assert "Chat=1" in output.read_text(encoding="utf-8")

    def test_malformed_curated_file(self, files):
        tmp_path, index_path, _ = files
        curated_path = tmp_path / "bad.ini"
        curated_path.write_text("[Incoming]\nBadLine\n", encoding="utf-8")
        assert main(["resolve", "-i", str(index_path), "-n", str(curated_path)]) == 2

    def test_invalid_config(self, files):
        _, index_path, curated_path = files
        code = main([
            "--log-level", "loud", "resolve", "-i", str(index_path), "-n", str(curated_path),
        ])
        assert code == 2

    def test_missing_inputs(self):
        assert main(["resolve"]) == 2


class TestStats:
    def test_stats(self, files, capsys):
        _, index_path, _ = files
        assert main(["stats", "-i", str(index_path)]) == 0
        out = capsys.readouterr().out
        assert "total_records: 2" in out
        assert "ambiguous_hashes: 0" in out

    def test_missing_index(self):
        assert main(["stats"]) == 2
