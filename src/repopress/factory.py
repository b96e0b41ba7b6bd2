"""Composition root: turn Settings into a wired ContentService."""

from __future__ import annotations

import logging
from typing import Optional

from .articles import ArticleStore, SyncStrategy
from .client import ContentClient, Credentials
from .config import Settings, get_settings
from .exceptions import ConfigurationError
from .guard import AccessGuard, PasswordGuard
from .resources import ResourceStore
from .service import ContentService

logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> ContentClient:
    missing = settings.missing_github_settings()
    if missing:
        names = ", ".join(f"REPOPRESS_{name.upper()}" for name in missing)
        logger.error("Repository settings missing: %s", names)
        raise ConfigurationError(f"Server configuration error: {names} not set")

    return ContentClient(
        Credentials(settings.github_token),
        settings.github_owner,
        settings.github_repo,
        branch=settings.github_branch,
        base_url=settings.github_api_url,
        default_timeout=settings.request_timeout,
        read_retries=settings.read_retries,
    )


def build_service(
    settings: Optional[Settings] = None,
    *,
    client: Optional[ContentClient] = None,
    guard: Optional[AccessGuard] = None,
    strategy: Optional[SyncStrategy] = None,
) -> ContentService:
    settings = settings or get_settings()
    client = client or build_client(settings)

    articles = ArticleStore(
        client,
        content_dir=settings.content_dir,
        index_path=settings.index_path,
        strategy=strategy,
    )
    resources = ResourceStore(
        client,
        remote_path=settings.resources_path,
        local_path=settings.local_resources_path,
    )
    return ContentService(articles, resources, guard or PasswordGuard(settings.access_password))
