"""PostrevConfig: project-local config for a blog's post store.

Default layout (all relative to the project root):

    postrev.toml          # project config (git-tracked)
    _posts/               # Markdown + front matter, one file per unit
    _build/_posts/        # latest revision of every post, written by `postrev publish`

postrev.toml example:

    [site]
    name = "my-blog"
    content_dir = "_posts"
    include = ["**/*.md", "**/*.markdown"]
    exclude = ["_site/**"]

    [publish]
    dest_dir = "_build/_posts"
    default_layout = "post"
    build_command = ["bundle", "exec", "jekyll", "build"]

    [diagnostics]
    fail_on = ["parse_error", "resolution_error"]

    [ingest]
    workers = 1
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "postrev.toml"
_DEFAULT_CONTENT_DIR = "_posts"
_DEFAULT_DEST_DIR = "_build/_posts"

_DEFAULT_INCLUDE = ["**/*.md", "**/*.markdown", "**/*.mdown", "**/*.mkd", "**/*.mkdn"]
_DEFAULT_EXCLUDE = ["_site/**", "**/.git/**", "**/node_modules/**", ".jekyll-cache/**"]
_DEFAULT_FAIL_ON = ["parse_error", "resolution_error"]


class ConfigError(ValueError):
    """postrev.toml is present but unusable."""


@dataclass
class SiteConfig:
    name: str = ""
    content_dir: Path = field(default_factory=Path)
    include: list[str] = field(default_factory=lambda: list(_DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=lambda: list(_DEFAULT_EXCLUDE))


@dataclass
class PublishConfig:
    dest_dir: Path = field(default_factory=Path)
    default_layout: str = ""                  # empty = leave layout untouched
    build_command: list[str] = field(default_factory=list)   # empty = no build step


@dataclass
class DiagnosticsConfig:
    fail_on: list[str] = field(default_factory=lambda: list(_DEFAULT_FAIL_ON))


@dataclass
class IngestConfig:
    workers: int = 1                          # >1 parses units on a thread pool


@dataclass
class PostrevConfig:
    """Resolved configuration for a blog project."""

    root: Path                                # directory that contains postrev.toml
    site: SiteConfig = field(default_factory=SiteConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME


def _str_list(section: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = section.get(key, default)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{key} must be a list of strings, got {value!r}"
        raise ConfigError(msg)
    return list(value)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        msg = f"[{name}] must be a table, got {value!r}"
        raise ConfigError(msg)
    return value


def load_config(root: Path | str | None = None) -> PostrevConfig:
    """Load postrev.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"{config_path}: {exc}"
            raise ConfigError(msg) from exc

    site_section = _section(raw, "site")
    pub_section = _section(raw, "publish")
    diag_section = _section(raw, "diagnostics")
    ingest_section = _section(raw, "ingest")

    build_command = pub_section.get("build_command", [])
    if isinstance(build_command, str):
        build_command = build_command.split()

    try:
        workers = int(ingest_section.get("workers", 1))
    except (TypeError, ValueError) as exc:
        msg = f"ingest.workers must be an integer, got {ingest_section.get('workers')!r}"
        raise ConfigError(msg) from exc
    if workers < 1:
        msg = f"ingest.workers must be >= 1, got {workers}"
        raise ConfigError(msg)

    return PostrevConfig(
        root=root_path,
        site=SiteConfig(
            name=site_section.get("name", root_path.name),
            content_dir=root_path / site_section.get("content_dir", _DEFAULT_CONTENT_DIR),
            include=_str_list(site_section, "include", _DEFAULT_INCLUDE),
            exclude=_str_list(site_section, "exclude", _DEFAULT_EXCLUDE),
        ),
        publish=PublishConfig(
            dest_dir=root_path / pub_section.get("dest_dir", _DEFAULT_DEST_DIR),
            default_layout=str(pub_section.get("default_layout", "")),
            build_command=[str(part) for part in build_command],
        ),
        diagnostics=DiagnosticsConfig(
            fail_on=_str_list(diag_section, "fail_on", _DEFAULT_FAIL_ON),
        ),
        ingest=IngestConfig(workers=workers),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for postrev.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, name: str | None = None) -> Path:
    """Write a default postrev.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"postrev.toml already exists at {config_path}"
        raise FileExistsError(msg)

    project_name = name or root.name
    content = f"""\
[site]
name = "{project_name}"
# content_dir = "_posts"   # default
# include = ["**/*.md", "**/*.markdown"]
# exclude = ["_site/**"]

[publish]
# dest_dir = "_build/_posts"   # default
# default_layout = "post"      # applied to posts without a layout key
# build_command = ["bundle", "exec", "jekyll", "build"]

[diagnostics]
# Diagnostic kinds that make `postrev check` / `postrev publish` exit non-zero:
# parse_error, resolution_error, duplicate_key, duplicate_revision
fail_on = ["parse_error", "resolution_error"]

# [ingest]
# workers = 1   # >1 parses posts on a thread pool
"""
    config_path.write_text(content, encoding="utf-8")
    return config_path
