"""Shared fixtures: a throwaway blog project under tmp_path."""

from pathlib import Path

import pytest


def post(title: str, body: str = "", **extra: str) -> str:
    """Build the raw text of one post with simple scalar front matter."""
    lines = ["---", f'title: "{title}"']
    lines.extend(f"{k}: {v}" for k, v in extra.items())
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def blog(tmp_path: Path) -> Path:
    """Project root with postrev.toml and an empty _posts/ dir."""
    (tmp_path / "postrev.toml").write_text('[site]\nname = "test-blog"\n')
    (tmp_path / "_posts").mkdir()
    return tmp_path
