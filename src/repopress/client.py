"""
A compact, robust HTTP client for the GitHub repository contents API.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional
import urllib.parse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import (
    AlreadyExistsError,
    APIError,
    ConflictError,
    ContentError,
    NotFoundError,
    UnavailableError,
    raise_for_api_error,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


# -------------------------------
# Credentials & file models
# -------------------------------


@dataclass
class Credentials:
    """
    Personal access token (or app installation token) with `contents`
    read/write permission on the target repository.
    """
    token: str

    def __post_init__(self) -> None:
        if not self.token or not self.token.strip():
            raise ValueError("A repository access token must be provided.")

    def __repr__(self) -> str:
        return "Credentials(token='***')"


@dataclass
class RemoteFile:
    path: str
    content: bytes
    sha: str

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding)


@dataclass
class FileState:
    """Result of an existence probe: either a file with its sha, or `exists=False`."""
    path: str
    exists: bool
    content: bytes = b""
    sha: Optional[str] = None

    @classmethod
    def missing(cls, path: str) -> "FileState":
        return cls(path=path, exists=False)

    @classmethod
    def of(cls, remote: RemoteFile) -> "FileState":
        return cls(path=remote.path, exists=True, content=remote.content, sha=remote.sha)


@dataclass
class DirectoryEntry:
    name: str
    path: str
    type: str = "file"
    sha: Optional[str] = None


# -------------------------------
# Main Client
# -------------------------------


class ContentClient:
    """
    HTTP client for one repository on the GitHub contents API.

    The client is constructed explicitly and owns its own connection pool;
    nothing about it is process-global.

    Args:
        credentials: Credentials carrying the access token
        owner: Repository owner (user or organization)
        repo: Repository name
        branch: Branch to read from and commit to (default: repository default branch)
        base_url: API root (default: 'https://api.github.com')
        verify_tls: Whether to verify SSL/TLS certificates (default: True)
        default_timeout: Default request timeout in seconds (default: 30.0)
        pool_connections: Number of connection pools to cache (default: 3)
        pool_maxsize: Maximum number of connections to save in the pool (default: 10)
        read_retries: Transport-level retries for GET requests (default: 3)

    Example:
        >>> client = ContentClient(Credentials('ghp_...'), 'octo', 'site')
        >>> remote = client.get_file('data/json/articles.json')
        >>> remote.sha
    """

    def __init__(
        self,
        credentials: Credentials,
        owner: str,
        repo: str,
        *,
        branch: Optional[str] = None,
        base_url: str = GITHUB_API_URL,
        verify_tls: bool = True,
        default_timeout: float = 30.0,
        pool_connections: int = 3,
        pool_maxsize: int = 10,
        read_retries: int = 3,
    ) -> None:

        self.base_url = base_url.rstrip("/")
        self.owner = owner
        self.repo = repo
        self.branch = branch or None
        self.credentials = credentials
        self.verify_tls = verify_tls
        self.default_timeout = default_timeout

        self._session = requests.Session()

        # Configure connection pooling; only reads are retried here
        retry_strategy = Retry(
            total=read_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(
            pool_connections=pool_connections,
            pool_maxsize=pool_maxsize,
            max_retries=retry_strategy,
        )
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------

    def _join(self, base: str, path: str) -> str:
        """Join base and path cleanly without stripping segments."""
        return urllib.parse.urljoin(base.rstrip("/") + "/", path.lstrip("/"))

    @property
    def api_base(self) -> str:
        """e.g. 'https://api.github.com/repos/octo/site'"""
        return self._join(self.base_url, f"repos/{self.owner}/{self.repo}")

    def endpoint(self, endpoint: str) -> str:
        """Return absolute URL for a repository-relative API endpoint."""
        return self._join(self.api_base, endpoint)

    @staticmethod
    def contents_endpoint(path: str) -> str:
        quoted = urllib.parse.quote(path.strip("/"), safe="/")
        return f"contents/{quoted}"

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ContentClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Low-level request
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        timeout=None,
        headers=None,
        params=None,
        path: Optional[str] = None,
        **kwargs,
    ):
        """
        Low-level HTTP request against the repository API.

        Transport failures are raised as UnavailableError and error
        responses as the matching APIError subclass; `path` only labels
        the error message.
        """
        url = self.endpoint(endpoint)

        req_headers: Dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

        # Merge headers but avoid overriding Authorization
        if headers:
            req_headers.update(
                {k: v for k, v in headers.items() if k.lower() != "authorization"}
            )
        req_headers["Authorization"] = f"Bearer {self.credentials.token}"

        # GET must not have a body
        if kwargs and method.upper() == "GET":
            raise ValueError("GET requests cannot include a request body.")

        try:
            resp = self._session.request(
                method.upper(),
                url,
                headers=req_headers,
                params=params,
                verify=self.verify_tls,
                timeout=self.default_timeout if timeout is None else timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method.upper(), url, exc)
            raise UnavailableError(status_code=0, detail=str(exc), path=path) from exc

        raise_for_api_error(resp, path=path)
        return resp

    # ------------------------------------------------------------------
    # API-relative HTTP verbs
    # ------------------------------------------------------------------

    def get(self, endpoint: str, *, path: Optional[str] = None, **params: Any) -> requests.Response:
        return self.request("GET", endpoint, params=params, path=path)

    def put(self, endpoint: str, *, path: Optional[str] = None, **kwargs: Any) -> requests.Response:
        return self.request("PUT", endpoint, path=path, **kwargs)

    def delete(self, endpoint: str, *, path: Optional[str] = None, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", endpoint, path=path, **kwargs)

    def _ref_params(self) -> Dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------

    def get_file(self, path: str) -> RemoteFile:
        """
        Fetch one file and its version token (blob sha).

        Raises:
            NotFoundError: If the file does not exist
            ContentError: If the path names a directory
        """
        resp = self.get(self.contents_endpoint(path), path=path, **self._ref_params())
        data = resp.json()

        if isinstance(data, list) or data.get("type") != "file":
            raise ContentError(f"Expected a file at {path!r}, found a directory")

        encoded = data.get("content") or ""
        if data.get("encoding", "base64") != "base64":
            raise ContentError(f"Unsupported content encoding for {path!r}: {data.get('encoding')}")

        return RemoteFile(
            path=data.get("path", path),
            content=base64.b64decode(encoded),
            sha=data["sha"],
        )

    def stat_file(self, path: str) -> FileState:
        """
        Probe a file. Absence is an ordinary result (`exists=False`);
        every other failure propagates.
        """
        try:
            remote = self.get_file(path)
        except NotFoundError:
            return FileState.missing(path)
        return FileState.of(remote)

    def put_file(
        self,
        path: str,
        content: bytes,
        *,
        sha: Optional[str],
        message: str,
    ) -> str:
        """
        Create or update a file, conditioned on its version token.

        With `sha`, the write fails with ConflictError unless the remote
        file is still at that version. Without `sha`, the write only
        creates; an existing file raises AlreadyExistsError.

        Returns:
            The new blob sha of the file.
        """
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if sha:
            payload["sha"] = sha
        if self.branch:
            payload["branch"] = self.branch

        try:
            resp = self.put(self.contents_endpoint(path), path=path, json=payload)
        except ConflictError:
            raise
        except APIError as exc:
            if exc.status_code == 422:
                raise self._write_rejection(exc, path, sha) from exc
            raise

        new_sha = resp.json()["content"]["sha"]
        logger.info("Committed %s (%s -> %s)", path, sha or "new", new_sha)
        return new_sha

    def delete_file(self, path: str, *, sha: str, message: str) -> None:
        """Delete a file, conditioned on its version token."""
        payload: Dict[str, Any] = {"message": message, "sha": sha}
        if self.branch:
            payload["branch"] = self.branch

        try:
            self.delete(self.contents_endpoint(path), path=path, json=payload)
        except ConflictError:
            raise
        except APIError as exc:
            if exc.status_code == 422:
                raise self._write_rejection(exc, path, sha) from exc
            raise
        logger.info("Deleted %s (was %s)", path, sha)

    @staticmethod
    def _write_rejection(exc: APIError, path: str, sha: Optional[str]) -> APIError:
        """
        GitHub reports version-token problems as 422:
          - "Invalid request.\\n\\n\\"sha\\" wasn't supplied." → file exists, create-only write
          - "... does not match ..."                          → stale sha
        """
        detail = exc.detail or ""
        if sha is None and "sha" in detail:
            return AlreadyExistsError(
                status_code=exc.status_code,
                detail="File already exists",
                path=path,
                response_body=exc.response_body,
                help_url=exc.help_url,
            )
        if sha is not None and ("sha" in detail or "match" in detail):
            return ConflictError(
                status_code=exc.status_code,
                detail=f"Version token is stale: {detail}",
                path=path,
                response_body=exc.response_body,
                help_url=exc.help_url,
            )
        return exc

    def list_directory(self, path: str) -> List[DirectoryEntry]:
        """List one directory level (non-recursive)."""
        resp = self.get(self.contents_endpoint(path), path=path, **self._ref_params())
        data = resp.json()

        if not isinstance(data, list):
            raise ContentError(f"Expected a directory at {path!r}, found a file")

        return [
            DirectoryEntry(
                name=item["name"],
                path=item["path"],
                type=item.get("type", "file"),
                sha=item.get("sha"),
            )
            for item in data
        ]

    def last_commit_date(self, path: str) -> Optional[str]:
        """Committer date of the latest commit touching `path`, or None."""
        params: Dict[str, Any] = {"path": path, "per_page": 1}
        if self.branch:
            params["sha"] = self.branch
        resp = self.request("GET", "commits", params=params, path=path)
        commits = resp.json()
        if not commits:
            return None
        commit = commits[0].get("commit") or {}
        return (commit.get("committer") or {}).get("date")
