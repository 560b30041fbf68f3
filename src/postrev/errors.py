"""Error taxonomy and diagnostic records.

Errors (raised for one content unit, collected by the ingestion run):
    ParseError
        MissingFrontMatterError     no opening or closing `---` marker
        InvalidFrontMatterError     block is not a YAML mapping of string keys
        UnreadableUnitError         file cannot be read or is not valid UTF-8
    ResolutionError
        UnresolvableIdentityError   no identity derivable from the unit's path

Warnings (never raised, only recorded):
    DuplicateKeyWarning         same key twice in one front-matter block
    DuplicateRevisionWarning    a document has more than one revision

Nothing here is fatal to an ingestion run. The host decides what to fail on
by diagnostic `kind`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class PostrevError(Exception):
    """Base class for per-unit failures."""

    kind = "error"

    def __init__(self, message: str, *, path: str | None = None, identity: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.identity = identity


class ParseError(PostrevError):
    kind = "parse_error"


class MissingFrontMatterError(ParseError):
    """The unit has no front-matter block, or the block is never closed."""


class InvalidFrontMatterError(ParseError):
    """The front-matter block is not valid structured data."""


class UnreadableUnitError(ParseError):
    """The unit's file cannot be read or is not valid UTF-8."""


class ResolutionError(PostrevError):
    kind = "resolution_error"


class UnresolvableIdentityError(ResolutionError):
    """The unit's path yields an empty identity."""


class PostrevWarning(UserWarning):
    kind = "warning"

    def __init__(self, message: str, *, path: str | None = None, identity: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.identity = identity


class DuplicateKeyWarning(PostrevWarning):
    kind = "duplicate_key"


class DuplicateRevisionWarning(PostrevWarning):
    kind = "duplicate_revision"


@dataclass(frozen=True)
class Diagnostic:
    """One entry of an ingestion or publish report."""

    kind: str
    severity: Severity
    message: str
    path: str | None = None
    identity: str | None = None

    @classmethod
    def from_issue(cls, issue: PostrevError | PostrevWarning) -> Diagnostic:
        severity = Severity.WARNING if isinstance(issue, PostrevWarning) else Severity.ERROR
        return cls(
            kind=issue.kind,
            severity=severity,
            message=issue.message,
            path=issue.path,
            identity=issue.identity,
        )

    def format_line(self) -> str:
        """Single-line format: severity kind [identity] path: message"""
        where = " ".join(p for p in (f"[{self.identity}]" if self.identity else "", self.path or "") if p)
        prefix = f"{self.severity} {self.kind}"
        return f"{prefix} {where}: {self.message}" if where else f"{prefix}: {self.message}"
