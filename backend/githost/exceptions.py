"""
Error taxonomy for the git gateway and repository lifecycle operations.

Validation errors are raised before any subprocess is spawned or any
filesystem path is touched. Process errors carry the stderr text of the
failed git invocation. EmptyRepositoryError is the one expected condition:
a repository that exists but has no commits on the requested branch.
"""


class GitHostError(Exception):
    """Base exception for githost."""
    pass


class RepositoryValidationError(GitHostError, ValueError):
    """Raised when a repository, organisation or service name is invalid."""
    pass


class UnexpectedServiceError(RepositoryValidationError):
    """Raised when a transport service is not upload-pack or receive-pack."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"unexpected service: {service}")


class RepositoryNotFoundError(GitHostError):
    """Raised when a hosted repository does not exist on disk."""
    pass


class RepositoryExistsError(GitHostError):
    """Raised when creating a repository whose path already exists."""
    pass


class GitProcessError(GitHostError):
    """Raised when a git subprocess cannot be started or exits non-zero."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str, message: str | None = None):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            command = " ".join(self.args_list[:2])
            message = f"{command} failed (exit status {returncode})"
        detail = stderr.strip()
        super().__init__(f"{message}: {detail}" if detail else message)


class EmptyRepositoryError(GitHostError):
    """Raised when a branch has no commits yet, e.g. a freshly created bare repo."""

    def __init__(self, branch_name: str):
        self.branch_name = branch_name
        super().__init__(f"repository is empty on branch: {branch_name}")
