"""
Article collection backed by Markdown files in the content repository.

Every article is one ``<content-dir>/<slug>.md`` document with a front-matter
block. ``articles.json`` is a derived index of their metadata, rebuilt by
``ArticleStore.sync()`` after every write.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol

from . import frontmatter
from .exceptions import (
    AlreadyExistsError,
    ConflictError,
    ContentError,
    NotFoundError,
    ValidationError,
)
from .models import (
    DOCUMENT_SUFFIX,
    Article,
    ArticleContent,
    ArticleIndex,
    require_text,
    to_timestamp,
    utc_now,
    validate_slug,
)

if TYPE_CHECKING:
    from .client import ContentClient

logger = logging.getLogger(__name__)


class SyncStrategy(Protocol):
    """Collects the current article metadata for an index rebuild."""

    def collect(self, store: "ArticleStore") -> List[Article]:
        ...


class FullRescanSync:
    """
    Rebuild from scratch: list the content directory and re-read every
    document plus its latest commit date. One directory listing and two
    calls per article.
    """

    def collect(self, store: "ArticleStore") -> List[Article]:
        repo = store.repository
        entries = [
            entry
            for entry in repo.list_directory(store.content_dir)
            if entry.type == "file" and entry.name.endswith(DOCUMENT_SUFFIX)
        ]

        articles = []
        for entry in entries:
            remote = repo.get_file(entry.path)
            fields, _body = frontmatter.decode(remote.text())
            last_modified = repo.last_commit_date(entry.path)
            articles.append(
                Article.from_front_matter(
                    entry.path,
                    fields,
                    last_modified=last_modified or store.clock(),
                )
            )
        return articles


def order_articles(articles: List[Article]) -> List[Article]:
    """Newest first; ties by path so the index is stable across syncs."""
    by_path = sorted(articles, key=lambda a: a.path)
    return sorted(by_path, key=lambda a: a.date, reverse=True)


class ArticleStore:
    """
    Create, read, update, delete and index articles in the repository.

    Writes are guarded only by the repository's version tokens: each write
    is conditioned on the sha read just before it (or on the sha the
    caller's editor session saw), so a stale writer gets ConflictError.
    Nothing here retries.

    Example:
        >>> store = ArticleStore(client)
        >>> store.create("Hi", "d", "body", "hi")
        >>> store.list()["hi"].title
        'Hi'
    """

    def __init__(
        self,
        repository: "ContentClient",
        *,
        content_dir: str = "data/md",
        index_path: str = "data/json/articles.json",
        strategy: Optional[SyncStrategy] = None,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self.repository = repository
        self.content_dir = content_dir.strip("/")
        self.index_path = index_path.strip("/")
        self.strategy = strategy or FullRescanSync()
        self.clock = clock

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def path_for(self, slug: str) -> str:
        return f"{self.content_dir}/{slug}{DOCUMENT_SUFFIX}"

    def _check_path(self, path: str) -> str:
        if not isinstance(path, str):
            raise ValidationError("Article path is required")
        path = path.strip().lstrip("/")
        directory, _, name = path.rpartition("/")
        if directory != self.content_dir or not name.endswith(DOCUMENT_SUFFIX):
            raise ValidationError(f"Not an article path: {path!r}")
        validate_slug(name[: -len(DOCUMENT_SUFFIX)])
        return path

    # ------------------------------------------------------------------
    # Single-article operations
    # ------------------------------------------------------------------

    def create(self, title: str, description: str, body: str, slug: str) -> ArticleContent:
        """Write a new article and rebuild the index. The slug fixes the path for good."""
        require_text(title=title, description=description, content=body, slug=slug)
        validate_slug(slug)
        path = self.path_for(slug)

        if self.repository.stat_file(path).exists:
            raise AlreadyExistsError(
                status_code=409,
                detail="Article with this slug already exists",
                path=path,
            )

        created = self.clock()
        fields = {"title": title, "description": description, "date": created}
        raw = frontmatter.encode(body, fields)

        # create-only write: a racing creator of the same slug gets AlreadyExistsError
        sha = self.repository.put_file(
            path,
            raw.encode("utf-8"),
            sha=None,
            message=f"Create new article: {title}",
        )
        logger.info("Created article %s", path)

        self._sync_after_write(path)
        return ArticleContent(
            title=title,
            description=description,
            date=created,
            lastModified=created,
            path=path,
            content=body,
            version=sha,
        )

    def read(self, path: str) -> ArticleContent:
        path = self._check_path(path)
        remote = self.repository.get_file(path)
        fields, body = frontmatter.decode(remote.text())
        modified = (
            to_timestamp(fields.get("lastModified"))
            or to_timestamp(fields.get("date"))
            or self.repository.last_commit_date(remote.path)
            or self.clock()
        )
        article = Article.from_front_matter(remote.path, fields, last_modified=modified)
        return ArticleContent(
            title=article.title,
            description=article.description,
            date=article.date,
            lastModified=article.lastModified,
            path=article.path,
            content=body,
            version=remote.sha,
        )

    def update(self, article: ArticleContent) -> ArticleContent:
        """
        Rewrite an article's title, description and body.

        Other front-matter keys are preserved. The write is conditioned on
        `article.version` when set (the sha the editor loaded), else on the
        sha read here.

        Raises:
            NotFoundError: If the article no longer exists
            ConflictError: If the file changed since the version being edited
        """
        path = self._check_path(article.path)
        require_text(title=article.title, description=article.description)
        if not isinstance(article.content, str):
            raise ValidationError("Article content must be text")

        current = self.repository.stat_file(path)
        if not current.exists:
            raise NotFoundError(status_code=404, detail="Article not found", path=path)

        expected = article.version or current.sha
        if expected != current.sha:
            logger.warning("Stale update of %s: editing %s, remote is %s", path, expected, current.sha)
            raise ConflictError(
                status_code=409,
                detail="Article was modified since it was loaded",
                path=path,
            )

        fields, _old_body = frontmatter.decode(current.content.decode("utf-8"))
        modified = self.clock()
        fields.update(
            title=article.title,
            description=article.description,
            lastModified=modified,
        )
        raw = frontmatter.encode(article.content, fields)

        sha = self.repository.put_file(
            path,
            raw.encode("utf-8"),
            sha=expected,
            message=f"Update article: {article.title}",
        )
        logger.info("Updated article %s", path)

        self._sync_after_write(path)
        return ArticleContent(
            title=article.title,
            description=article.description,
            date=to_timestamp(fields.get("date")) or article.date,
            lastModified=modified,
            path=path,
            content=article.content,
            version=sha,
        )

    def delete(self, path: str, *, version: Optional[str] = None) -> None:
        """Remove an article and rebuild the index."""
        path = self._check_path(path)
        current = self.repository.stat_file(path)
        if not current.exists:
            raise NotFoundError(status_code=404, detail="Article not found", path=path)
        if version and version != current.sha:
            raise ConflictError(
                status_code=409,
                detail="Article was modified since it was loaded",
                path=path,
            )

        self.repository.delete_file(path, sha=current.sha, message=f"Delete article: {path}")
        logger.info("Deleted article %s", path)
        self._sync_after_write(path)

    def _sync_after_write(self, path: str) -> None:
        try:
            self.sync()
        except ContentError:
            # the content commit stands; a later sync() repairs the index
            logger.warning("Wrote %s but the index rebuild failed", path)
            raise

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def sync(self) -> ArticleIndex:
        """
        Rebuild the index from the content directory.

        The index is written conditioned on its current sha (create-only
        when it does not exist). An unchanged index is not rewritten, so
        repeated syncs produce no commits.

        The index version is read before the content directory is scanned,
        so an index committed by anyone else during the scan makes this
        write fail instead of replacing the newer list.

        Raises:
            ConflictError: If another writer replaced the index meanwhile
        """
        current = self.repository.stat_file(self.index_path)
        index = ArticleIndex(order_articles(self.strategy.collect(self)))
        payload = (json.dumps(index.to_json(), indent=2, ensure_ascii=False) + "\n").encode("utf-8")

        if current.exists and current.content == payload:
            logger.debug("Index %s already up to date (%d articles)", self.index_path, len(index))
            return index

        self.repository.put_file(
            self.index_path,
            payload,
            sha=current.sha if current.exists else None,
            message="Sync articles",
        )
        logger.info("Synced %d articles into %s", len(index), self.index_path)
        return index

    def list(self) -> ArticleIndex:
        """Read the cached index; call sync() first when freshness matters."""
        current = self.repository.stat_file(self.index_path)
        if not current.exists:
            return ArticleIndex()
        try:
            payload = json.loads(current.content.decode("utf-8"))
        except ValueError as exc:
            raise ContentError(f"Index file {self.index_path} is not valid JSON: {exc}") from exc
        return ArticleIndex.from_json(payload)
