"""Batch ingestion: content units -> ContentStore + diagnostics.

Entry points:
    collect_units(content_dir, include, exclude)   # discover *.md units, sorted by path
    ingest_units(units, store=None, workers=1)     # one run, always completes

A unit that fails to resolve or parse is skipped and reported; every other
unit is still ingested. With workers > 1 units are parsed on a thread pool,
then resolved in discovery order so sequence positions match a serial run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import TYPE_CHECKING

from postrev.errors import Diagnostic, PostrevError, PostrevWarning
from postrev.models import ContentUnit, ParsedDocument
from postrev.parser import parse_document
from postrev.publish import history_diagnostics
from postrev.resolver import RevisionResolver, derive_identity
from postrev.store import ContentStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger("postrev.ingest")


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

def _glob_files(source_path: Path, include: list[str], exclude: list[str]) -> list[Path]:
    """Glob-based file discovery respecting include/exclude patterns."""
    def _excluded(rel: str) -> bool:
        return any(fnmatch(rel, pat.lstrip("/")) for pat in exclude)

    files: list[Path] = []
    for pattern in include:
        pattern = pattern.lstrip("/")
        # "**/x" matches at every depth, anything else is relative to source_path
        if pattern.startswith("**/"):
            matches = source_path.rglob(pattern.removeprefix("**/"))
        else:
            matches = source_path.glob(pattern)
        for p in matches:
            if p.is_file():
                rel = p.relative_to(source_path).as_posix()
                if not _excluded(rel):
                    files.append(p)

    # Deduplicate, then order by relative path (Jekyll names start with the date)
    unique = dict.fromkeys(files)
    return sorted(unique, key=lambda p: p.relative_to(source_path).as_posix())


def collect_units(content_dir: Path, include: list[str], exclude: list[str]) -> Iterator[ContentUnit]:
    """Yield one ContentUnit per discovered file, path relative to content_dir.

    Files are read later, per unit, by ingest_units.
    """
    if not content_dir.exists():
        logger.warning("content dir does not exist: %s", content_dir)
        return
    for p in _glob_files(content_dir, include, exclude):
        rel = p.relative_to(content_dir).as_posix()
        yield ContentUnit(path=rel, source=p)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@dataclass
class _Prepared:
    unit: ContentUnit
    identity: str | None = None
    parsed: ParsedDocument | None = None
    error: PostrevError | None = None


def _prepare(unit: ContentUnit) -> _Prepared:
    try:
        identity = derive_identity(unit.path)
    except PostrevError as exc:
        return _Prepared(unit=unit, error=exc)
    try:
        parsed = parse_document(unit.read(), path=unit.path)
    except PostrevError as exc:
        exc.identity = identity
        return _Prepared(unit=unit, identity=identity, error=exc)
    return _Prepared(unit=unit, identity=identity, parsed=parsed)


@dataclass
class IngestReport:
    """Result of one ingestion run."""

    store: ContentStore
    errors: list[PostrevError] = field(default_factory=list)
    warnings: list[PostrevWarning] = field(default_factory=list)
    created: int = 0          # new revisions appended
    deduplicated: int = 0     # units identical to an existing revision

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Unit failures and warnings in discovery order, then per-document history notices."""
        out = [Diagnostic.from_issue(e) for e in self.errors]
        out.extend(Diagnostic.from_issue(w) for w in self.warnings)
        out.extend(history_diagnostics(self.store))
        return out

    def has_failures(self, fail_on: Iterable[str]) -> bool:
        kinds = set(fail_on)
        return any(d.kind in kinds for d in self.diagnostics)


def ingest_units(
    units: Iterable[ContentUnit],
    store: ContentStore | None = None,
    workers: int = 1,
) -> IngestReport:
    """Ingest units in discovery order. Never raises for a single bad unit."""
    report = IngestReport(store=store if store is not None else ContentStore())
    resolver = RevisionResolver(report.store)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            prepared = list(executor.map(_prepare, units))
    else:
        prepared = [_prepare(u) for u in units]

    for item in prepared:
        if item.error is not None:
            logger.warning("skipped %s: %s", item.unit.path, item.error.message)
            report.errors.append(item.error)
            continue
        if item.identity is None or item.parsed is None:
            continue
        for w in item.parsed.warnings:
            w.identity = item.identity
            logger.warning("%s: %s", item.unit.path, w.message)
        report.warnings.extend(item.parsed.warnings)

        resolution = resolver.resolve(item.identity, item.parsed, path=item.unit.path)
        if resolution.created:
            report.created += 1
            logger.debug("revision %s#%d from %s", item.identity, resolution.revision.sequence, item.unit.path)
        else:
            report.deduplicated += 1
            logger.debug(
                "duplicate of %s#%d ignored: %s",
                item.identity, resolution.revision.sequence, item.unit.path,
            )

    logger.info(
        "ingested %d units: %d revisions, %d duplicates, %d skipped",
        len(prepared), report.created, report.deduplicated, len(report.errors),
    )
    return report
