"""Tests for the specforge command-line tool."""

import json

from specforge.cli.document import main


class TestOutline:

    def test_plain_outline(self, tmp_path, capsys):
        path = tmp_path / "spec.md"
        path.write_text("Intro\n### 1. PRD\nfoo\nbar\n### 2. Tech Stack\nbaz\n", encoding="utf-8")

        assert main(["outline", str(path)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "overview\tOverview\t(1 lines)",
            "1.-prd\t1. PRD\t(3 lines)",
            "2.-tech-stack\t2. Tech Stack\t(2 lines)",
        ]

    def test_json_outline(self, tmp_path, capsys):
        path = tmp_path / "spec.md"
        path.write_text("### 1. PRD\nfoo\n", encoding="utf-8")

        assert main(["outline", str(path), "--json"]) == 0

        assert json.loads(capsys.readouterr().out) == [
            {"id": "1.-prd", "title": "1. PRD", "content": "### 1. PRD\nfoo"}
        ]

    def test_missing_file(self, tmp_path, capsys):
        assert main(["outline", str(tmp_path / "nope.md")]) == 1
        assert "Cannot read" in capsys.readouterr().err
