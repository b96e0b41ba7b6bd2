import hashlib
import sys
from pathlib import Path

import pytest

# Allow tests to import the package from src without installation
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from repopress.client import DirectoryEntry, FileState, RemoteFile  # noqa: E402
from repopress.exceptions import (  # noqa: E402
    AlreadyExistsError,
    ConflictError,
    ContentError,
    NotFoundError,
)


class StubResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text

    def json(self):
        if isinstance(self._json_data, Exception):
            raise self._json_data
        return self._json_data


class StubSession:
    def __init__(self):
        self.request_calls = []
        self.mounted = {}
        self.request_response = StubResponse()
        # responses consumed in order before falling back to request_response
        self.queued = []
        self.closed = False

    def mount(self, prefix, adapter):
        self.mounted[prefix] = adapter

    def close(self):
        self.closed = True

    def request(self, method, url, headers=None, params=None, verify=None, timeout=None, **kwargs):
        self.request_calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers or {},
                "params": params or {},
                "verify": verify,
                "timeout": timeout,
                "kwargs": kwargs,
            }
        )
        response = self.queued.pop(0) if self.queued else self.request_response
        if isinstance(response, Exception):
            raise response
        return response


def blob_sha(content: bytes) -> str:
    return hashlib.sha1(b"blob %d\0" % len(content) + content).hexdigest()


class FakeContentClient:
    """
    In-memory stand-in for ContentClient with the same version-token rules:
    writes with a sha must match the stored sha, writes without one only create.
    """

    def __init__(self):
        self.files = {}
        self.commit_dates = {}
        self.commits = []
        self._tick = 0
        # called as hook(path) right before a put/delete is applied
        self.before_write = None
        self.fail_on_put = {}

    def _now(self):
        self._tick += 1
        return f"2024-02-01T00:00:{self._tick:02d}Z"

    def seed(self, path, text):
        content = text.encode("utf-8") if isinstance(text, str) else text
        self.files[path] = (content, blob_sha(content))
        self.commit_dates[path] = self._now()
        return self.files[path][1]

    def text(self, path):
        return self.files[path][0].decode("utf-8")

    def get_file(self, path):
        if path not in self.files:
            raise NotFoundError(status_code=404, detail="Not Found", path=path)
        content, sha = self.files[path]
        return RemoteFile(path=path, content=content, sha=sha)

    def stat_file(self, path):
        if path not in self.files:
            return FileState.missing(path)
        return FileState.of(self.get_file(path))

    def put_file(self, path, content, *, sha, message):
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook(path)
        if path in self.fail_on_put:
            raise self.fail_on_put[path]
        if sha is None and path in self.files:
            raise AlreadyExistsError(status_code=422, detail="File already exists", path=path)
        if sha is not None:
            if path not in self.files:
                raise NotFoundError(status_code=404, detail="Not Found", path=path)
            if self.files[path][1] != sha:
                raise ConflictError(status_code=409, detail=f"{path} does not match {sha}", path=path)
        new_sha = blob_sha(content)
        self.files[path] = (content, new_sha)
        self.commit_dates[path] = self._now()
        self.commits.append((message, path))
        return new_sha

    def delete_file(self, path, *, sha, message):
        if path not in self.files:
            raise NotFoundError(status_code=404, detail="Not Found", path=path)
        if self.files[path][1] != sha:
            raise ConflictError(status_code=409, detail=f"{path} does not match {sha}", path=path)
        del self.files[path]
        self.commit_dates.pop(path, None)
        self.commits.append((message, path))

    def list_directory(self, path):
        prefix = path.strip("/") + "/"
        entries = {}
        for name in self.files:
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            head, _, tail = rest.partition("/")
            kind = "dir" if tail else "file"
            entries[head] = DirectoryEntry(name=head, path=prefix + head, type=kind)
        if not entries:
            if path.strip("/") in self.files:
                raise ContentError(f"Expected a directory at {path!r}, found a file")
            raise NotFoundError(status_code=404, detail="Not Found", path=path)
        return [entries[k] for k in sorted(entries)]

    def last_commit_date(self, path):
        return self.commit_dates.get(path)


class Clock:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"2024-03-01T10:00:{self.calls:02d}.000Z"


@pytest.fixture
def stub_session():
    return StubSession()


@pytest.fixture
def repo():
    return FakeContentClient()


@pytest.fixture
def clock():
    return Clock()
