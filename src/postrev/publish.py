"""Hand the canonical revision of every post to the external site renderer.

The adapter only reads the store. For each document it publishes the latest
revision as an (identity, front_matter, body) triple, and it reports every
document that has more than one revision: that is either editing history or
an accidentally repeated post, and the operator decides which.

Output tree written by export():

    <dest_dir>/
        <identity>.md     # ---\n<yaml front matter>---\n<body>
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple

import yaml

from postrev.errors import Diagnostic, DuplicateRevisionWarning

if TYPE_CHECKING:
    from collections.abc import Iterator

    from postrev.config import PostrevConfig
    from postrev.store import ContentStore

logger = logging.getLogger("postrev.publish")


class PublishedDocument(NamedTuple):
    identity: str
    front_matter: dict[str, Any]
    body: str


def history_diagnostics(store: ContentStore) -> list[Diagnostic]:
    """One duplicate-revision notice per document with history length > 1."""
    out: list[Diagnostic] = []
    for doc in store.iter_documents():
        if not doc.has_history:
            continue
        latest = doc.revisions[-1]
        sources = ", ".join(dict.fromkeys(r.path for r in doc.revisions if r.path))
        msg = f"{len(doc.revisions)} revisions ingested, publishing #{latest.sequence}"
        if sources:
            msg += f" (from {sources})"
        warning = DuplicateRevisionWarning(msg, path=latest.path, identity=doc.identity)
        out.append(Diagnostic.from_issue(warning))
    return out


def render(document: PublishedDocument) -> str:
    """Serialise a published document back to front matter + body."""
    if document.front_matter:
        block = yaml.dump(
            document.front_matter,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
    else:
        block = ""
    return f"---\n{block}---\n{document.body}"


class PublishAdapter:
    """Read-only view of a ContentStore shaped for the site renderer."""

    def __init__(self, store: ContentStore, config: PostrevConfig | None = None) -> None:
        self.store = store
        self.config = config

    @property
    def default_layout(self) -> str:
        return self.config.publish.default_layout if self.config is not None else ""

    def iter_documents(self) -> Iterator[PublishedDocument]:
        """Lazily yield the latest revision of each document."""
        for identity in self.store.list_identities():
            latest = self.store.get_latest(identity)
            if latest is None:
                continue
            front_matter = dict(latest.front_matter)
            if self.default_layout and "layout" not in front_matter:
                front_matter["layout"] = self.default_layout
            yield PublishedDocument(identity, front_matter, latest.body)

    def diagnostics(self) -> list[Diagnostic]:
        return history_diagnostics(self.store)

    def export(self, dest_dir: Path, *, prune: bool = True) -> list[Path]:
        """Write <identity>.md for every document into dest_dir.

        Every identity is checked before anything is written. With prune, any
        other *.md left in dest_dir from an earlier export is removed.
        """
        documents = list(self.iter_documents())
        for doc in documents:
            if Path(doc.identity).name != doc.identity:
                msg = f"identity is not a plain file name: {doc.identity!r}"
                raise ValueError(msg)

        dest_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for doc in documents:
            path = dest_dir / f"{doc.identity}.md"
            path.write_text(render(doc), encoding="utf-8")
            written.append(path)

        removed = 0
        if prune:
            keep = set(written)
            for stale in dest_dir.glob("*.md"):
                if stale not in keep and stale.is_file():
                    stale.unlink()
                    removed += 1
        logger.info("exported %d documents to %s (%d stale removed)", len(written), dest_dir, removed)
        return written


def run_build(config: PostrevConfig) -> int:
    """Run the configured site build command from the project root."""
    command = config.publish.build_command
    if not command:
        msg = "no publish.build_command configured in postrev.toml"
        raise ValueError(msg)
    logger.info("running build: %s", " ".join(command))
    result = subprocess.run(command, cwd=config.root, check=False)
    if result.returncode != 0:
        logger.warning("build exited with status %d", result.returncode)
    return result.returncode
