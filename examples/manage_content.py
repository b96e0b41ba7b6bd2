"""
Example: Managing site content stored in a GitHub repository

This example shows how to wire the content service from environment
settings, create and edit an article, rebuild the article index and
replace the resource list.

Usage:
    export REPOPRESS_GITHUB_OWNER="your-user"
    export REPOPRESS_GITHUB_REPO="your-site"
    export REPOPRESS_GITHUB_TOKEN="ghp_..."
    export REPOPRESS_ACCESS_PASSWORD="admin-password"
    python examples/manage_content.py
"""

import os

from repopress import build_service
from repopress.config import get_settings
from repopress.logging_config import setup_logging


def show(label, result):
    status = "ok" if result.success else f"failed ({result.kind.value}): {result.error}"
    print(f"{label}: {status}")


def main():
    # -------------------------------------------------------------------------
    # 1. Wire the service
    # -------------------------------------------------------------------------

    settings = get_settings()
    setup_logging(settings)
    service = build_service(settings)
    password = os.environ.get("REPOPRESS_ACCESS_PASSWORD", "")

    # -------------------------------------------------------------------------
    # 2. Articles
    # -------------------------------------------------------------------------

    print("=== Articles ===\n")

    show(
        "create",
        service.create_article(
            password,
            title="Hello, repository",
            description="The first article written through repopress",
            content="# Hello\n\nThis file lives in git.\n",
            slug="hello-repository",
        ),
    )

    listed = service.list_articles(sync=True)
    for article in listed.data or []:
        print(f"  - {article['title']} ({article['path']}, modified {article['lastModified']})")

    # Load, edit and save; a concurrent edit in between would fail with a conflict
    read = service.read_article(f"{settings.content_dir}/hello-repository.md")
    if read.success:
        article = read.data
        article["description"] = "Edited through repopress"
        show("update", service.update_article(password, article))

    # -------------------------------------------------------------------------
    # 3. Resources
    # -------------------------------------------------------------------------

    print("\n=== Resources ===\n")

    remote = service.list_resources("remote")
    resources = remote.data if remote.success else []
    resources.append(
        {
            "name": "GitHub REST API",
            "description": "Repository contents endpoints",
            "url": "https://docs.github.com/rest/repos/contents",
        }
    )
    show("replace", service.replace_resources(password, resources))

    # The local cache is refreshed out of band
    service.resources.refresh_local()
    print(f"Local cache now holds {len(service.list_resources('local').data)} resources")


if __name__ == "__main__":
    main()
