"""In-memory content store: identity -> append-only revision history.

ContentStore is the public API:
    store = ContentStore()
    seq = store.put("2019-04-01-hello", parsed)      # -> 0
    store.get_latest("2019-04-01-hello")             # Revision | None
    store.get_history("2019-04-01-hello")            # [Revision, ...]
    for identity in store.list_identities(): ...

Revisions are never reordered or removed; the latest revision is always the
last one appended. `put` is serialised per identity so unrelated identities
can be written from several threads at once.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from postrev.models import Document, ParsedDocument, Revision

if TYPE_CHECKING:
    from collections.abc import Iterator


class ContentStore:
    """Append-only revision store keyed by document identity."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()   # protects _documents/_locks membership

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def _document_for_write(self, identity: str) -> tuple[Document, threading.Lock]:
        with self._guard:
            doc = self._documents.get(identity)
            if doc is None:
                doc = Document(identity=identity)
                self._documents[identity] = doc
                self._locks[identity] = threading.Lock()
            return doc, self._locks[identity]

    def lock(self, identity: str) -> threading.Lock:
        """Per-identity write lock. Creates the (empty) document if unseen."""
        return self._document_for_write(identity)[1]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, identity: str) -> Document | None:
        doc = self._documents.get(identity)
        return doc if doc is not None and doc.revisions else None

    def get_latest(self, identity: str) -> Revision | None:
        """Highest-sequence revision, or None when the identity is unknown."""
        doc = self._documents.get(identity)
        if doc is None:
            return None
        return doc.latest

    def get_history(self, identity: str) -> list[Revision]:
        """All revisions in sequence order (a copy; empty when unknown)."""
        doc = self._documents.get(identity)
        if doc is None:
            return []
        return list(doc.revisions)

    def find_revision(self, identity: str, parsed: ParsedDocument) -> Revision | None:
        """Return an existing revision with identical front matter and body."""
        digest = parsed.digest
        for rev in self.get_history(identity):
            if rev.digest == digest and rev.same_content(parsed):
                return rev
        return None

    def list_identities(self) -> Iterator[str]:
        """Lazily yield identities in first-ingestion order.

        Each call starts a fresh pass over a snapshot of the keys.
        """
        for identity in list(self._documents):
            if self._documents[identity].revisions:
                yield identity

    def iter_documents(self) -> Iterator[Document]:
        for identity in self.list_identities():
            yield self._documents[identity]

    def __contains__(self, identity: object) -> bool:
        doc = self._documents.get(identity) if isinstance(identity, str) else None
        return doc is not None and bool(doc.revisions)

    def __len__(self) -> int:
        return sum(1 for _ in self.list_identities())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, identity: str, parsed: ParsedDocument, path: str | None = None) -> int:
        """Append a revision and return its sequence position."""
        doc, lock = self._document_for_write(identity)
        with lock:
            return doc.append(parsed, path=path).sequence

    def append_locked(self, identity: str, parsed: ParsedDocument, path: str | None = None) -> Revision:
        """Append while the caller already holds lock(identity)."""
        doc, _ = self._document_for_write(identity)
        return doc.append(parsed, path=path)
