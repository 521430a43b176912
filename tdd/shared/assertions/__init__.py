# Custom assertion helpers

from .api import (
    assert_error_response,
    assert_git_head_response,
    assert_git_info_refs_response,
    assert_git_pack_response,
    assert_json_contains,
    assert_not_found,
    assert_status_code,
    assert_validation_error,
)

__all__ = [
    "assert_error_response",
    "assert_git_head_response",
    "assert_git_info_refs_response",
    "assert_git_pack_response",
    "assert_json_contains",
    "assert_not_found",
    "assert_status_code",
    "assert_validation_error",
]
