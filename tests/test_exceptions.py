import pytest

from repopress.exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    ErrorKind,
    NotFoundError,
    UnavailableError,
    error_from_response,
    raise_for_api_error,
)

from conftest import StubResponse


def test_not_found_uses_github_message_and_documentation_url():
    payload = {
        "message": "Not Found",
        "documentation_url": "https://docs.github.com/rest/repos/contents#get-repository-content",
        "status": "404",
    }
    err = error_from_response(StubResponse(404, payload), path="data/md/missing.md")

    assert isinstance(err, NotFoundError)
    assert err.kind is ErrorKind.NOT_FOUND
    assert str(err) == "Not Found (data/md/missing.md)"
    assert err.help_url == payload["documentation_url"]
    assert err.response_body == payload


def test_conflict_and_auth_statuses():
    conflict = error_from_response(StubResponse(409, {"message": "x.md does not match abc"}))
    assert isinstance(conflict, ConflictError)
    assert conflict.kind is ErrorKind.CONFLICT

    denied = error_from_response(StubResponse(401, {"message": "Bad credentials"}))
    assert isinstance(denied, AuthenticationError)
    assert denied.kind is ErrorKind.UNAUTHORIZED


@pytest.mark.parametrize("status", [429, 500, 502, 503, 504, 599])
def test_transient_statuses_are_unavailable_and_retryable(status):
    err = error_from_response(StubResponse(status, {"message": "busy"}))
    assert isinstance(err, UnavailableError)
    assert err.retryable


def test_nested_errors_are_formatted_into_message():
    payload = {
        "message": "Validation Failed",
        "errors": [{"resource": "Commit", "field": "message", "code": "missing_field"}],
    }
    err = error_from_response(StubResponse(422, payload))

    assert type(err) is APIError
    assert "Validation Failed: message: missing_field" in str(err)
    assert err.errors == payload["errors"]
    assert not err.retryable


def test_non_json_error_body_falls_back_to_text():
    err = error_from_response(StubResponse(502, ValueError("no json"), text="Bad gateway"))
    assert isinstance(err, UnavailableError)
    assert str(err) == "Bad gateway"


def test_raise_for_api_error_passes_success_responses():
    raise_for_api_error(StubResponse(200, {"content": {}}))
    with pytest.raises(NotFoundError):
        raise_for_api_error(StubResponse(404, {"message": "Not Found"}))
