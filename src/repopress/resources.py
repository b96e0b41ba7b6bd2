"""
The resource list: one JSON array kept in the repository, mirrored to a
local cache file that public pages read without a remote call.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import TYPE_CHECKING, Any, Iterable, List, Union

from .exceptions import ContentError, NotFoundError, ValidationError
from .models import Resource

if TYPE_CHECKING:
    from .client import ContentClient

logger = logging.getLogger(__name__)


def _parse_resources(raw: Union[str, bytes], origin: str) -> List[Resource]:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ContentError(f"Resource list {origin} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise ContentError(f"Resource list {origin} must be a JSON array")
    return [Resource.from_dict(item) for item in payload]


def _serialize(resources: Iterable[Resource]) -> bytes:
    data = [r.to_dict() for r in resources]
    return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


class ResourceStore:
    """
    Whole-list reads and writes of the resource file.

    `replace_all` never touches the local cache; `refresh_local` copies the
    remote list over it out of band.
    """

    def __init__(
        self,
        repository: "ContentClient",
        *,
        remote_path: str = "data/json/resources.json",
        local_path: Union[str, Path] = "data/json/resources.json",
    ) -> None:
        self.repository = repository
        self.remote_path = remote_path.strip("/")
        self.local_path = Path(local_path)

    def list_local(self) -> List[Resource]:
        try:
            raw = self.local_path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(
                status_code=404,
                detail="Local resource cache not found",
                path=str(self.local_path),
            ) from exc
        return _parse_resources(raw, str(self.local_path))

    def list_remote(self) -> List[Resource]:
        remote = self.repository.get_file(self.remote_path)
        return _parse_resources(remote.content, self.remote_path)

    def replace_all(self, resources: List[Any]) -> List[Resource]:
        """
        Validate and write the entire list, conditioned on the sha read
        immediately before the write.

        Raises:
            ValidationError: If any element is malformed (nothing is written)
            ConflictError: If the remote list changed concurrently
        """
        if not isinstance(resources, (list, tuple)):
            raise ValidationError("Resources must be a list")

        items: List[Resource] = []
        for position, item in enumerate(resources):
            resource = item if isinstance(item, Resource) else Resource.from_dict(item)
            try:
                items.append(resource.validate())
            except ValidationError as exc:
                raise ValidationError(f"Invalid resource at position {position}: {exc}") from exc

        current = self.repository.stat_file(self.remote_path)
        self.repository.put_file(
            self.remote_path,
            _serialize(items),
            sha=current.sha if current.exists else None,
            message="Update resources",
        )
        logger.info("Replaced resource list (%d entries)", len(items))
        return items

    def refresh_local(self) -> List[Resource]:
        """Overwrite the local cache with the remote list."""
        resources = self.list_remote()
        self.local_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.local_path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(_serialize(resources))
            os.replace(tmp_name, self.local_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Refreshed local resource cache %s (%d entries)", self.local_path, len(resources))
        return resources
