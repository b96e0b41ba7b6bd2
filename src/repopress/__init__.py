"""repopress - a git-hosted content store for articles and resource lists."""

from .client import ContentClient, Credentials
from .articles import ArticleStore
from .resources import ResourceStore
from .service import ContentService, OperationResult
from .factory import build_service

__all__ = [
    "ArticleStore",
    "ContentClient",
    "ContentService",
    "Credentials",
    "OperationResult",
    "ResourceStore",
    "build_service",
]
__version__ = "0.1.0"
