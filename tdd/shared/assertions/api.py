"""
Custom assertion helpers for API testing.

These helpers provide cleaner, more expressive assertions for common
patterns in API tests.
"""
from typing import Any

from httpx import Response


def assert_status_code(response: Response, expected: int) -> None:
    """Assert response has expected status code with helpful error message."""
    assert response.status_code == expected, (
        f"Expected status {expected}, got {response.status_code}. "
        f"Response body: {response.text}"
    )


def assert_json_contains(response: Response, expected: dict[str, Any] = None, **kwargs) -> None:
    """Assert response JSON contains all expected key-value pairs.

    This allows for partial matching - the response can contain additional
    fields not specified in expected.
    """
    if expected is None:
        expected = kwargs
    else:
        expected = {**expected, **kwargs}

    actual = response.json()
    for key, value in expected.items():
        assert key in actual, f"Expected key '{key}' not found in response: {actual}"
        assert actual[key] == value, (
            f"Expected {key}={value!r}, got {key}={actual[key]!r}"
        )


def assert_error_response(response: Response, status_code: int, text: str) -> None:
    """Assert a plain-text error response whose body contains the given text."""
    assert_status_code(response, status_code)
    assert "text/plain" in response.headers["content-type"]
    assert text in response.text, f"Expected '{text}' in error body: {response.text}"


def assert_not_found(response: Response) -> None:
    """Assert response is a 404 plain-text error."""
    assert_error_response(response, 404, "not found")


def assert_validation_error(response: Response, text: str = "") -> None:
    """Assert response is a 400 validation error."""
    assert_error_response(response, 400, text)


def assert_git_info_refs_response(
    response: Response,
    service: str,
) -> bytes:
    """Assert response is a valid git info/refs response.

    Args:
        response: HTTP response
        service: Expected service (git-upload-pack or git-receive-pack)

    Returns:
        The advertisement that follows the service prelude
    """
    assert_status_code(response, 200)

    expected_content_type = f"application/x-{service}-advertisement"
    assert response.headers["content-type"] == expected_content_type, (
        f"Expected content-type '{expected_content_type}', "
        f"got '{response.headers['content-type']}'"
    )

    content = response.content
    service_line = f"# service={service}\n".encode()
    prelude = f"{len(service_line) + 4:04x}".encode() + service_line + b"0000"
    assert content.startswith(prelude), f"Missing service announcement: {content[:64]!r}"
    assert content.endswith(b"0000"), "Response should end with flush packet"

    return content[len(prelude):]


def assert_git_head_response(response: Response) -> str:
    """Assert response is a valid git HEAD response.

    Returns:
        The HEAD reference (e.g., 'ref: refs/heads/main')
    """
    assert_status_code(response, 200)
    assert "text/plain" in response.headers["content-type"]

    content = response.text
    assert content.startswith("ref: refs/heads/"), (
        f"HEAD should be symbolic ref, got: {content}"
    )
    assert content.endswith("\n"), "HEAD response should end with newline"

    return content.strip()


def assert_git_pack_response(
    response: Response,
    service: str,
) -> bytes:
    """Assert response is a valid git RPC result response.

    Args:
        response: HTTP response
        service: git-upload-pack or git-receive-pack

    Returns:
        The response content
    """
    assert_status_code(response, 200)

    expected_content_type = f"application/x-{service}-result"
    assert response.headers["content-type"] == expected_content_type, (
        f"Expected content-type '{expected_content_type}', "
        f"got '{response.headers['content-type']}'"
    )

    return response.content
