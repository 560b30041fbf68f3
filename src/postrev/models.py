"""Data models for the versioned post store."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from postrev.errors import UnreadableUnitError

if TYPE_CHECKING:
    from pathlib import Path

    from postrev.errors import PostrevWarning


def content_digest(front_matter: dict[str, Any], body: str, raw_front_matter: str = "") -> str:
    """Stable digest of the raw front-matter block, its parsed form and the body.

    Used only to find byte-identical resubmissions, never for ordering.
    """
    canonical = json.dumps(front_matter, ensure_ascii=False, default=str)
    h = hashlib.sha256()
    h.update(raw_front_matter.encode("utf-8"))
    h.update(b"\x00")
    h.update(canonical.encode("utf-8"))
    h.update(b"\x00")
    h.update(body.encode("utf-8"))
    return h.hexdigest()


@dataclass(frozen=True)
class ContentUnit:
    """One (path, raw text) pair handed over by file discovery.

    Discovered files carry `source` instead of text; read() loads them
    lazily so a bad file fails as its own unit.
    """

    path: str
    text: str = ""
    source: Path | None = None

    def read(self) -> str:
        """Return the unit text. Raises UnreadableUnitError."""
        if self.source is None:
            return self.text
        try:
            return self.source.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"not valid UTF-8: {exc}"
            raise UnreadableUnitError(msg, path=self.path) from exc
        except OSError as exc:
            msg = f"cannot read file: {exc}"
            raise UnreadableUnitError(msg, path=self.path) from exc


@dataclass
class ParsedDocument:
    """Front matter + body of one unit, before it is assigned a sequence position."""

    front_matter: dict[str, Any]
    body: str
    warnings: list[PostrevWarning] = field(default_factory=list)
    raw_front_matter: str = ""       # block text as written, between the markers

    @property
    def digest(self) -> str:
        return content_digest(self.front_matter, self.body, self.raw_front_matter)


@dataclass(frozen=True)
class Revision:
    """An immutable snapshot of one post at one sequence position."""

    identity: str
    sequence: int
    front_matter: dict[str, Any]
    body: str
    path: str | None = None
    digest: str = ""
    raw_front_matter: str = ""

    def same_content(self, parsed: ParsedDocument) -> bool:
        """Byte-identical front-matter block and body (parsed form must match too)."""
        return (
            self.body == parsed.body
            and self.raw_front_matter == parsed.raw_front_matter
            and list(self.front_matter.items()) == list(parsed.front_matter.items())
        )

    @property
    def title(self) -> str:
        value = self.front_matter.get("title")
        return str(value) if value is not None else self.identity

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "identity": self.identity,
            "sequence": self.sequence,
            "front_matter": self.front_matter,
            "body": self.body,
        }
        if self.path:
            d["path"] = self.path
        return d


@dataclass
class Document:
    """A logical post and its append-only revision history."""

    identity: str
    revisions: list[Revision] = field(default_factory=list)

    @property
    def latest(self) -> Revision | None:
        return self.revisions[-1] if self.revisions else None

    @property
    def has_history(self) -> bool:
        """True when more than one revision was ingested."""
        return len(self.revisions) > 1

    def append(self, parsed: ParsedDocument, path: str | None = None) -> Revision:
        revision = Revision(
            identity=self.identity,
            sequence=len(self.revisions),
            front_matter=dict(parsed.front_matter),
            body=parsed.body,
            path=path,
            digest=parsed.digest,
            raw_front_matter=parsed.raw_front_matter,
        )
        self.revisions.append(revision)
        return revision
