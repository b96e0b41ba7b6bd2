# models.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union
import urllib.parse

from .exceptions import ValidationError

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
DOCUMENT_SUFFIX = ".md"


def utc_now() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_timestamp(value: Any) -> Optional[str]:
    """Normalize a front-matter value into an ISO-8601 string (or None)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def require_text(**values: Any) -> None:
    """Raise ValidationError naming every blank or non-string value."""
    blank = [name for name, value in values.items() if is_blank(value)]
    if blank:
        raise ValidationError(f"Required fields are blank: {', '.join(blank)}")


def validate_slug(slug: str) -> str:
    if is_blank(slug) or not SLUG_RE.match(slug):
        raise ValidationError(
            f"Invalid slug format {slug!r}: use lowercase letters, digits and single hyphens"
        )
    return slug


def is_absolute_url(url: str) -> bool:
    try:
        parsed = urllib.parse.urlparse(url.strip())
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


# -------------------------------
# Articles
# -------------------------------


@dataclass
class Article:
    """
    Metadata of one article, as stored in the index file.

    `path` is the repository-relative location of the Markdown document and
    never changes after creation.
    """

    title: str
    description: str
    date: str
    lastModified: str
    path: str

    @property
    def slug(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        if name.endswith(DOCUMENT_SUFFIX):
            name = name[: -len(DOCUMENT_SUFFIX)]
        return name

    @classmethod
    def from_front_matter(
        cls,
        path: str,
        fields: Dict[str, Any],
        *,
        last_modified: Optional[str] = None,
    ) -> "Article":
        modified = last_modified or to_timestamp(fields.get("lastModified")) or utc_now()
        # undated documents are dated by their last modification
        return cls(
            title=str(fields.get("title") or ""),
            description=str(fields.get("description") or ""),
            date=to_timestamp(fields.get("date")) or modified,
            lastModified=modified,
            path=path,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            date=to_timestamp(data.get("date")) or "",
            lastModified=to_timestamp(data.get("lastModified")) or "",
            path=str(data["path"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "lastModified": self.lastModified,
            "path": self.path,
        }


@dataclass
class ArticleContent(Article):
    """An article plus its Markdown body; the unit of single-article reads and writes."""

    content: str = ""
    # blob sha observed when the article was read; used as the write precondition
    version: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArticleContent":
        if "path" not in data:
            raise ValidationError("Article is missing its path")
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            date=to_timestamp(data.get("date")) or "",
            lastModified=to_timestamp(data.get("lastModified")) or "",
            path=str(data["path"]),
            content=data.get("content") or "",
            version=data.get("version"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["content"] = self.content
        if self.version is not None:
            data["version"] = self.version
        return data

    def metadata(self) -> Article:
        return Article(
            title=self.title,
            description=self.description,
            date=self.date,
            lastModified=self.lastModified,
            path=self.path,
        )


class ArticleIndex:
    """
    Indexable / sliceable view over the ordered article list.

    Supports:
      - index[0]             → Article by position
      - index[1:3]           → list of Articles
      - index["slug"]        → Article by slug
      - index["data/md/x.md"] → Article by path
    """

    def __init__(self, articles: Sequence[Article] = ()) -> None:
        self._articles: List[Article] = list(articles)

    @classmethod
    def from_json(cls, payload: Any) -> "ArticleIndex":
        if not isinstance(payload, list):
            raise ValidationError(f"Unexpected index format: {type(payload).__name__}")
        return cls([Article.from_dict(item) for item in payload])

    def to_json(self) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in self._articles]

    # ------------------------------------------------------------------ #
    # Python container protocol
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._articles)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ArticleIndex):
            return self._articles == other._articles
        return NotImplemented

    def __getitem__(self, key: Union[int, slice, str]):
        if isinstance(key, int):
            return self._articles[key]

        if isinstance(key, slice):
            return self._articles[key]

        if isinstance(key, str):
            key = key.lstrip("/")
            for article in self._articles:
                if article.path == key or article.slug == key:
                    return article
            raise KeyError(f"No article matching {key!r}")

        raise TypeError(f"Unsupported key type: {type(key)!r}")

    def __contains__(self, key: object) -> bool:
        if isinstance(key, Article):
            return key in self._articles
        if isinstance(key, str):
            try:
                self[key]
            except KeyError:
                return False
            return True
        return False

    def slugs(self) -> List[str]:
        return [a.slug for a in self._articles]

    def __repr__(self) -> str:
        return f"<ArticleIndex articles={len(self._articles)}>"


# -------------------------------
# Resources
# -------------------------------


@dataclass
class Resource:
    name: str
    description: str
    url: str

    @classmethod
    def from_dict(cls, data: Any) -> "Resource":
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid resource data: {data!r}")
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            url=data.get("url"),
        )

    def validate(self) -> "Resource":
        require_text(name=self.name, description=self.description, url=self.url)
        if not is_absolute_url(self.url):
            raise ValidationError(f"Invalid resource url {self.url!r}: expected an absolute URL")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "url": self.url}
