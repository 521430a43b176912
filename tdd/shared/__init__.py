# Cross-cutting test utilities shared across all test types

from .git_helpers import (
    FakeTransport,
    git_available,
    requires_git,
    run_git_cmd,
)

__all__ = [
    "FakeTransport",
    "git_available",
    "requires_git",
    "run_git_cmd",
]
