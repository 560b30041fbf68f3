"""Versioned post store: Markdown + front matter in, latest revision per post out.

Layout:
    postrev.toml
    _posts/
        2019-04-01-hello-world.md       # one content unit
        drafts/2019-04-01-hello-world.md  # same identity -> a second revision
    _build/_posts/
        2019-04-01-hello-world.md       # latest revision, for the site renderer

Pipeline:
    collect_units -> parse_document -> RevisionResolver -> ContentStore -> PublishAdapter

A unit's identity is its lower-cased file name without the Markdown suffix.
Units with the same identity become successive revisions in discovery order;
identical resubmissions are deduplicated. Failures for one unit are reported
as diagnostics and never abort a run.
"""

from postrev.config import PostrevConfig, init_config, load_config
from postrev.errors import (
    Diagnostic,
    DuplicateKeyWarning,
    DuplicateRevisionWarning,
    InvalidFrontMatterError,
    MissingFrontMatterError,
    ParseError,
    PostrevError,
    ResolutionError,
    UnreadableUnitError,
    UnresolvableIdentityError,
)
from postrev.ingest import IngestReport, collect_units, ingest_units
from postrev.models import ContentUnit, Document, ParsedDocument, Revision
from postrev.parser import parse_document
from postrev.publish import PublishAdapter, PublishedDocument
from postrev.resolver import RevisionResolver, derive_identity
from postrev.store import ContentStore

__all__ = [
    "ContentStore",
    "ContentUnit",
    "Diagnostic",
    "Document",
    "DuplicateKeyWarning",
    "DuplicateRevisionWarning",
    "IngestReport",
    "InvalidFrontMatterError",
    "MissingFrontMatterError",
    "ParseError",
    "ParsedDocument",
    "PostrevConfig",
    "PostrevError",
    "PublishAdapter",
    "PublishedDocument",
    "ResolutionError",
    "Revision",
    "RevisionResolver",
    "UnreadableUnitError",
    "UnresolvableIdentityError",
    "collect_units",
    "derive_identity",
    "ingest_units",
    "init_config",
    "load_config",
    "parse_document",
]
