import pytest

from repopress.exceptions import UnauthorizedError
from repopress.guard import PasswordGuard, require


def test_password_guard_accepts_only_the_secret():
    guard = PasswordGuard("s3cret")

    assert guard.authorize("s3cret") is True
    assert guard.authorize("S3CRET") is False
    assert guard.authorize("") is False
    assert guard.authorize(None) is False
    assert guard.authorize(12345) is False


def test_unset_secret_denies_everything(caplog):
    guard = PasswordGuard("")

    assert guard.authorize("") is False
    assert guard.authorize("anything") is False
    assert "not set" in caplog.text


def test_require_raises_unauthorized():
    require(PasswordGuard("s3cret"), "s3cret")
    with pytest.raises(UnauthorizedError):
        require(PasswordGuard("s3cret"), "nope")
