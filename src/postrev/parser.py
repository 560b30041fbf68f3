"""Split a content unit into YAML front matter and a Markdown body.

Layout of a unit:

    ---                 opening marker (first line, BOM tolerated)
    title: Hello
    tags: [a, b]
    ---                 closing marker (`---` or `...`)
    body text, kept verbatim

parse_document() is pure: the same text always yields an equal ParsedDocument.
"""

from __future__ import annotations

from typing import Any

import yaml

from postrev.errors import DuplicateKeyWarning, InvalidFrontMatterError, MissingFrontMatterError
from postrev.models import ParsedDocument

_BOM = "\ufeff"
_OPEN_MARKER = "---"
_CLOSE_MARKERS = ("---", "...")
_MERGE_TAG = "tag:yaml.org,2002:merge"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that notes duplicate keys and leaves timestamps as written."""

    def __init__(self, stream: str) -> None:
        super().__init__(stream)
        self.duplicate_keys: list[str] = []

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                if key in seen:
                    self.duplicate_keys.append(str(key))
                seen.add(key)
            except TypeError:
                continue  # unhashable key; SafeConstructor reports it
        return super().construct_mapping(node, deep=deep)


def _construct_timestamp(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


_FrontMatterLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_timestamp)


def split_front_matter(text: str, path: str | None = None) -> tuple[str, str]:
    """Return (raw front-matter block, body). Raises MissingFrontMatterError."""
    if text.startswith(_BOM):
        text = text[1:]
    lines = text.split("\n")
    if lines[0].rstrip() != _OPEN_MARKER:
        msg = "missing front matter: unit does not start with '---'"
        raise MissingFrontMatterError(msg, path=path)

    for i in range(1, len(lines)):
        if lines[i].rstrip() in _CLOSE_MARKERS:
            block = "\n".join(lines[1:i])
            body = "\n".join(lines[i + 1 :])
            return block, body

    msg = "missing front matter: no closing '---' marker"
    raise MissingFrontMatterError(msg, path=path)


def _load_block(block: str, path: str | None) -> tuple[dict[str, Any], list[str]]:
    loader = _FrontMatterLoader(block)
    try:
        data = loader.get_single_data()
    except yaml.YAMLError as exc:
        msg = f"invalid front matter: {exc}"
        raise InvalidFrontMatterError(msg, path=path) from exc
    finally:
        loader.dispose()

    if data is None:
        return {}, loader.duplicate_keys
    if not isinstance(data, dict):
        msg = f"invalid front matter: expected a mapping, got {type(data).__name__}"
        raise InvalidFrontMatterError(msg, path=path)
    bad_keys = [k for k in data if not isinstance(k, str)]
    if bad_keys:
        msg = f"invalid front matter: non-string keys {bad_keys!r}"
        raise InvalidFrontMatterError(msg, path=path)
    return data, loader.duplicate_keys


def parse_document(text: str, path: str | None = None) -> ParsedDocument:
    """Parse one unit. `path` is only used to label errors and warnings."""
    block, body = split_front_matter(text, path=path)
    front_matter, duplicates = _load_block(block, path)
    warnings = [
        DuplicateKeyWarning(f"duplicate front-matter key '{key}', last value wins", path=path)
        for key in duplicates
    ]
    return ParsedDocument(front_matter=front_matter, body=body, warnings=warnings, raw_front_matter=block)
