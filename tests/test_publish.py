"""Tests for the publish adapter and site export."""

import sys
import types

import pytest
from conftest import post

from postrev.config import load_config
from postrev.ingest import ingest_units
from postrev.models import ContentUnit, ParsedDocument
from postrev.parser import parse_document
from postrev.publish import PublishAdapter, PublishedDocument, history_diagnostics, render, run_build
from postrev.store import ContentStore


@pytest.fixture
def store():
    report = ingest_units([
        ContentUnit("2020-01-01-first.md", post("First", "one")),
        ContentUnit("2020-02-01-second.md", "---\ntitle: Second\nlayout: page\n---\ntwo v1"),
        ContentUnit("2020-02-01-second.md", "---\ntitle: Second\nlayout: page\n---\ntwo v2"),
    ])
    return report.store


class TestIterDocuments:
    def test_is_lazy(self, store):
        assert isinstance(PublishAdapter(store).iter_documents(), types.GeneratorType)

    def test_one_triple_per_document_from_latest(self, store):
        docs = list(PublishAdapter(store).iter_documents())
        assert docs == [
            PublishedDocument("2020-01-01-first", {"title": "First"}, "one"),
            PublishedDocument("2020-02-01-second", {"title": "Second", "layout": "page"}, "two v2"),
        ]
        identity, front_matter, body = docs[1]
        assert (identity, body) == ("2020-02-01-second", "two v2")

    def test_empty_store(self):
        assert list(PublishAdapter(ContentStore()).iter_documents()) == []

    def test_default_layout_from_config(self, store, blog):
        (blog / "postrev.toml").write_text('[publish]\ndefault_layout = "post"\n')
        adapter = PublishAdapter(store, load_config(blog))
        docs = {d.identity: d for d in adapter.iter_documents()}
        assert docs["2020-01-01-first"].front_matter["layout"] == "post"
        assert docs["2020-02-01-second"].front_matter["layout"] == "page"
        # the store is never mutated
        assert "layout" not in store.get_latest("2020-01-01-first").front_matter


class TestDiagnostics:
    def test_reports_documents_with_history(self, store):
        diags = PublishAdapter(store).diagnostics()
        assert [(d.kind, d.identity) for d in diags] == [("duplicate_revision", "2020-02-01-second")]
        assert "2 revisions" in diags[0].message
        assert diags[0].path == "2020-02-01-second.md"

    def test_single_revisions_are_quiet(self):
        store = ContentStore()
        store.put("a", ParsedDocument({"title": "A"}, "x"))
        assert history_diagnostics(store) == []

    def test_diagnostics_do_not_mutate(self, store):
        before = [store.get_history(i) for i in store.list_identities()]
        PublishAdapter(store).diagnostics()
        assert [store.get_history(i) for i in store.list_identities()] == before


class TestRender:
    def test_front_matter_then_body(self):
        text = render(PublishedDocument("a", {"title": "A", "tags": ["x", "y"]}, "body\n"))
        assert text.startswith("---\ntitle: A\n")
        assert text.endswith("---\nbody\n")

    def test_parses_back(self):
        doc = PublishedDocument("a", {"layout": "post", "title": "Über", "date": "2019-04-01"}, "# H\n\n$$x$$\n")
        parsed = parse_document(render(doc))
        assert parsed.front_matter == doc.front_matter
        assert list(parsed.front_matter) == ["layout", "title", "date"]
        assert parsed.body == doc.body

    def test_empty_front_matter(self):
        assert render(PublishedDocument("a", {}, "b")) == "---\n---\nb"


class TestExport:
    def test_writes_latest_revision_per_document(self, store, tmp_path):
        dest = tmp_path / "out" / "_posts"
        written = PublishAdapter(store).export(dest)
        assert sorted(p.name for p in written) == ["2020-01-01-first.md", "2020-02-01-second.md"]
        second = parse_document((dest / "2020-02-01-second.md").read_text(encoding="utf-8"))
        assert second.body == "two v2"

    def test_rejects_path_like_identity(self, tmp_path):
        store = ContentStore()
        store.put("../escape", ParsedDocument({"title": "A"}, "x"))
        with pytest.raises(ValueError, match="plain file name"):
            PublishAdapter(store).export(tmp_path)

    def test_bad_identity_writes_nothing(self, tmp_path):
        store = ContentStore()
        store.put("good", ParsedDocument({"title": "A"}, "x"))
        store.put("../escape", ParsedDocument({"title": "B"}, "y"))
        dest = tmp_path / "out"
        with pytest.raises(ValueError, match="plain file name"):
            PublishAdapter(store).export(dest)
        assert not dest.exists()

    def test_stale_files_are_removed(self, store, tmp_path):
        dest = tmp_path / "out"
        dest.mkdir()
        (dest / "2019-12-31-renamed.md").write_text("old", encoding="utf-8")
        (dest / "notes.txt").write_text("kept", encoding="utf-8")
        PublishAdapter(store).export(dest)
        assert sorted(p.name for p in dest.iterdir()) == [
            "2020-01-01-first.md",
            "2020-02-01-second.md",
            "notes.txt",
        ]

    def test_prune_disabled_keeps_stale_files(self, store, tmp_path):
        (tmp_path / "old.md").write_text("old", encoding="utf-8")
        PublishAdapter(store).export(tmp_path, prune=False)
        assert (tmp_path / "old.md").exists()


class TestRunBuild:
    def test_returns_exit_code(self, blog):
        cmd = f'["{sys.executable}", "-c", "raise SystemExit(3)"]'
        (blog / "postrev.toml").write_text(f"[publish]\nbuild_command = {cmd}\n")
        assert run_build(load_config(blog)) == 3

    def test_runs_in_project_root(self, blog):
        script = "import pathlib; pathlib.Path('built.txt').write_text('ok')"
        cmd = f'["{sys.executable}", "-c", "{script}"]'
        (blog / "postrev.toml").write_text(f"[publish]\nbuild_command = {cmd}\n")
        assert run_build(load_config(blog)) == 0
        assert (blog / "built.txt").read_text() == "ok"

    def test_no_command_configured(self, blog):
        with pytest.raises(ValueError, match="build_command"):
            run_build(load_config(blog))
