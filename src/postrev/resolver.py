"""Map content units to document identities and ordered revisions.

Identity: derived from the unit's file name,
    _posts/2019-04-01-Hello World.md  ->  2019-04-01-hello-world

Sequence positions follow discovery order per identity (0, 1, 2, ...).
A unit whose front matter and body are identical to an existing revision of
the same identity is a resubmission: no new revision, the existing one is
returned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import TYPE_CHECKING

from postrev.errors import UnresolvableIdentityError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from postrev.models import ParsedDocument, Revision
    from postrev.store import ContentStore

MARKDOWN_SUFFIXES = (".md", ".markdown", ".mdown", ".mkd", ".mkdn")

_WS_RE = re.compile(r"\s+")


def derive_identity(path: str) -> str:
    """Stable identity from a unit path. Raises UnresolvableIdentityError."""
    name = PurePath(path.strip()).name if path and path.strip() else ""
    lowered = name.lower()
    for suffix in MARKDOWN_SUFFIXES:
        if lowered.endswith(suffix):
            name = name[: -len(suffix)]
            break
    identity = _WS_RE.sub("-", name.strip()).lower()
    if not identity:
        msg = f"cannot derive an identity from path {path!r}"
        raise UnresolvableIdentityError(msg, path=path or None)
    return identity


@dataclass(frozen=True)
class Resolution:
    revision: Revision
    created: bool        # False when the unit duplicated an existing revision


class RevisionResolver:
    """Assign sequence positions and deduplicate resubmissions."""

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def resolve(self, identity: str, parsed: ParsedDocument, path: str | None = None) -> Resolution:
        with self.store.lock(identity):
            existing = self.store.find_revision(identity, parsed)
            if existing is not None:
                return Resolution(revision=existing, created=False)
            revision = self.store.append_locked(identity, parsed, path=path)
        return Resolution(revision=revision, created=True)

    def resolve_stream(self, pairs: Iterable[tuple[str, ParsedDocument]]) -> Iterator[Resolution]:
        """Resolve (identity, parsed) pairs in the order given."""
        for identity, parsed in pairs:
            yield self.resolve(identity, parsed)
