"""Front-matter codec for Markdown documents."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Tuple

import yaml

from .exceptions import FrontMatterError

FRONTMATTER_DELIMITER = "---"

_OPENING_RE = re.compile(r"\A---[ \t]*(?:\r?\n|\Z)")
_CLOSING_RE = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


def _extract_frontmatter(raw: str) -> Tuple[str | None, str]:
    """Split raw document text into optional front-matter text and body.

    Args:
        raw: Raw Markdown document.

    Returns:
        A tuple of optional raw YAML text and the body, verbatim.

    Raises:
        FrontMatterError: If the opening delimiter exists without a closing one.
    """
    opening = _OPENING_RE.match(raw)
    if opening is None:
        return None, raw

    closing = _CLOSING_RE.search(raw, opening.end())
    if closing is None:
        raise FrontMatterError("Invalid front matter: missing closing delimiter")

    return raw[opening.end() : closing.start()], raw[closing.end() :]


def _load_mapping(text: str) -> Dict[str, Any]:
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid front matter: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise FrontMatterError("Invalid front matter: expected a YAML mapping")
    return {str(key): value for key, value in parsed.items()}


def decode(raw: str) -> Tuple[Dict[str, Any], str]:
    """Parse a document into its front-matter fields and body.

    A document without a leading ``---`` block yields empty fields and the
    whole input as body.
    """
    text, body = _extract_frontmatter(raw)
    if text is None:
        return {}, body
    return _load_mapping(text), body


def encode(body: str, fields: Mapping[str, Any]) -> str:
    """Serialize fields and body into a document; ``None`` values are omitted."""
    present = {key: value for key, value in fields.items() if value is not None}

    if not present:
        # an empty block keeps a body that looks like front matter from being read as one
        if _OPENING_RE.match(body):
            return f"{FRONTMATTER_DELIMITER}\n{FRONTMATTER_DELIMITER}\n{body}"
        return body

    block = yaml.safe_dump(
        present,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
    return f"{FRONTMATTER_DELIMITER}\n{block}{FRONTMATTER_DELIMITER}\n{body}"
