"""
Operation surface for UI/CLI collaborators.

Every operation returns an OperationResult; failures are reported, never
raised, so callers branch on `result.success` and `result.kind`.
"""

from __future__ import annotations

from dataclasses import dataclass
import functools
import logging
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar, Union

from .articles import ArticleStore
from .exceptions import ContentError, ErrorKind, ValidationError, describe
from .guard import AccessGuard, require
from .models import ArticleContent
from .resources import ResourceStore

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., "OperationResult"])


@dataclass
class OperationResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=message, kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        """`{success, data?, error?}` as exchanged with collaborators."""
        body: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            body["data"] = self.data
        if self.error is not None:
            body["error"] = self.error
        return body


def operation(name: str) -> Callable[[F], F]:
    """Catch everything an operation raises and turn it into a failed result."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                return func(*args, **kwargs)
            except ContentError as exc:
                level = logging.INFO if exc.kind is ErrorKind.VALIDATION else logging.WARNING
                logger.log(level, "%s failed: %s", name, describe(exc))
                return OperationResult.failure(exc.kind, str(exc))
            except Exception as exc:
                logger.exception("%s failed unexpectedly", name)
                return OperationResult.failure(ErrorKind.INTERNAL, f"Failed to {name.replace('-', ' ')}: {exc}")

        return wrapper  # type: ignore[return-value]

    return decorator


class ContentService:
    """
    Example:
        >>> service = ContentService(articles, resources, PasswordGuard("s3cret"))
        >>> service.create_article("s3cret", "Hi", "d", "body", "hi").success
        True
        >>> service.list_articles(sync=True).to_dict()["data"][0]["title"]
        'Hi'
    """

    def __init__(
        self,
        articles: ArticleStore,
        resources: ResourceStore,
        guard: AccessGuard,
    ) -> None:
        self.articles = articles
        self.resources = resources
        self.guard = guard

    def authorize(self, credential: Any) -> bool:
        try:
            return bool(self.guard.authorize(credential))
        except Exception:
            logger.exception("Access guard raised; treating as denied")
            return False

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    @operation("create-article")
    def create_article(
        self,
        credential: Any,
        title: str,
        description: str,
        content: str,
        slug: str,
    ) -> OperationResult:
        require(self, credential)
        self.articles.create(title, description, content, slug)
        return OperationResult.ok()

    @operation("list-articles")
    def list_articles(self, sync: bool = False) -> OperationResult:
        index = self.articles.sync() if sync else self.articles.list()
        return OperationResult.ok(index.to_json())

    @operation("read-article")
    def read_article(self, path: str) -> OperationResult:
        return OperationResult.ok(self.articles.read(path).to_dict())

    @operation("update-article")
    def update_article(
        self,
        credential: Any,
        article: Union[ArticleContent, Dict[str, Any]],
    ) -> OperationResult:
        require(self, credential)
        if isinstance(article, dict):
            article = ArticleContent.from_dict(article)
        elif not isinstance(article, ArticleContent):
            raise ValidationError("Invalid article data")
        self.articles.update(article)
        return OperationResult.ok()

    @operation("delete-article")
    def delete_article(self, credential: Any, path: str, version: Optional[str] = None) -> OperationResult:
        require(self, credential)
        self.articles.delete(path, version=version)
        return OperationResult.ok()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    @operation("list-resources")
    def list_resources(self, source: str = "local") -> OperationResult:
        if source == "local":
            resources = self.resources.list_local()
        elif source == "remote":
            resources = self.resources.list_remote()
        else:
            raise ValidationError(f"Unknown resource source {source!r}: expected 'local' or 'remote'")
        return OperationResult.ok([r.to_dict() for r in resources])

    @operation("replace-resources")
    def replace_resources(self, credential: Any, resources: Iterable[Any]) -> OperationResult:
        require(self, credential)
        if resources is None:
            raise ValidationError("Resources must be a list")
        written = self.resources.replace_all(resources)
        return OperationResult.ok([r.to_dict() for r in written])
