"""
Repository descriptors and lifecycle operations.

A HostedRepository describes a bare repository served over HTTP; a
WorkingCopy describes a checked-out clone of one. Operations that only make
sense on one variant exist only on that class. Descriptors are built per
operation and never cached; they name filesystem state without owning it.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo as DulwichRepo

from githost.config import Settings
from githost.exceptions import (
    EmptyRepositoryError,
    GitProcessError,
    RepositoryExistsError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)
from githost.services.process import DebugFlags, run_git

logger = logging.getLogger(__name__)

REPOSITORY_SUFFIX = ".git"


def validate_name(value: str, kind: str) -> None:
    """Reject names that are empty, contain whitespace, or could escape their directory."""
    if not value:
        raise RepositoryValidationError(f"{kind} must not be empty")
    if any(ch.isspace() for ch in value):
        raise RepositoryValidationError(f"{kind} must not contain spaces")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise RepositoryValidationError(f"invalid {kind}: {value}")


@dataclass(frozen=True)
class File:
    """A path relative to a repository's tree root."""
    name: str


@dataclass(frozen=True)
class GitRepository:
    """Operations shared by bare and working-copy repositories."""

    def _path(self) -> Path:
        raise NotImplementedError

    def _debug(self) -> DebugFlags:
        raise NotImplementedError

    def delete_repo(self) -> bool:
        """Delete the repository directory. Returns False if it did not exist."""
        path = self._path()
        logger.debug(f"attempting to delete {path}")
        if not path.exists():
            return False
        shutil.rmtree(path)
        logger.info(f"deleted repository {path}")
        return True

    def get_files(self, branch_name: str) -> list[File]:
        """
        List every file in the tree of the given branch.

        Raises:
            RepositoryValidationError: If the branch name is empty or looks like an option
            EmptyRepositoryError: If the branch does not resolve to a commit yet
            GitProcessError: On any other git failure
        """
        if not branch_name or branch_name.startswith("-"):
            raise RepositoryValidationError(f"invalid branch name: {branch_name}")
        try:
            result = run_git(
                ["git", "ls-tree", "--full-tree", "-r", "--name-only", "-z", "--end-of-options", branch_name],
                cwd=self._path(),
                debug=self._debug(),
            )
        except GitProcessError as e:
            # Message text as printed by git; may change across git versions
            if e.returncode == 128 and f"fatal: Not a valid object name {branch_name}\n" in e.stderr:
                raise EmptyRepositoryError(branch_name) from e
            raise

        # NUL-separated output is never C-quoted
        return [File(name) for name in result.stdout.split("\0") if name]


@dataclass(frozen=True)
class HostedRepository(GitRepository):
    """A bare repository stored under the repositories root."""
    name: str
    org_name: str
    repositories_dir: Path
    clones_dir: Path
    base_url: str = ""
    default_branch: str = "main"
    debug: DebugFlags = field(default_factory=DebugFlags)

    def __post_init__(self):
        if self.name.endswith(REPOSITORY_SUFFIX):
            raise RepositoryValidationError(
                f"{self.name} must not end with '{REPOSITORY_SUFFIX}' as it is added automatically"
            )
        validate_name(self.name, "repository name")
        validate_name(self.org_name, "org name")

    @property
    def full_name(self) -> str:
        return self.name + REPOSITORY_SUFFIX

    @property
    def full_path(self) -> Path:
        return self.repositories_dir / self.org_name / self.full_name

    @property
    def clone_url(self) -> str:
        return f"{self.base_url}/{self.org_name}/{self.full_name}"

    def _path(self) -> Path:
        return self.full_path

    def _debug(self) -> DebugFlags:
        return self.debug

    def exists(self) -> bool:
        return self.full_path.is_dir()

    def create_bare_repo(self) -> None:
        """Initialise a bare repository whose HEAD points at the default branch."""
        if self.full_path.exists():
            raise RepositoryExistsError(f"repository {self.org_name}/{self.full_name} already exists")

        logger.debug(f"creating repository at {self.full_path}")
        run_git(
            [
                "git",
                "init",
                "--bare",
                f"--initial-branch={self.default_branch}",
                str(self.full_path),
            ],
            debug=self.debug,
        )
        logger.info(f"created repository {self.org_name}/{self.full_name}")

    def read_head(self) -> str:
        """Return the symbolic HEAD, e.g. 'ref: refs/heads/main'."""
        try:
            repo = DulwichRepo(str(self.full_path))
        except NotGitRepository as e:
            raise RepositoryNotFoundError(f"repository {self.org_name}/{self.full_name} not found") from e
        try:
            head = repo.refs.read_ref(b"HEAD")
        finally:
            repo.close()
        if head is None:
            raise RepositoryNotFoundError(f"repository {self.org_name}/{self.full_name} has no HEAD")
        return head.decode("utf-8")

    def clone(self, destination: str) -> "WorkingCopy":
        """Clone over HTTP into <clones_dir>/<org_name>/<destination>."""
        validate_name(destination, "clone destination")
        clone_path = self.clones_dir / self.org_name / destination
        logger.debug(f"cloning {self.clone_url} into {clone_path}")

        run_git(
            [
                "git",
                "-c",
                f"init.defaultBranch={self.default_branch}",
                "clone",
                self.clone_url,
                str(clone_path),
            ],
            debug=self.debug,
        )
        logger.info(f"cloned {self.clone_url} into {clone_path}")
        return WorkingCopy(full_path=clone_path, debug=self.debug)


@dataclass(frozen=True)
class WorkingCopy(GitRepository):
    """A checked-out clone of a hosted repository."""
    full_path: Path
    debug: DebugFlags = field(default_factory=DebugFlags)

    def _path(self) -> Path:
        return self.full_path

    def _debug(self) -> DebugFlags:
        return self.debug

    def _git(self, *args: str) -> str:
        return run_git(["git", *args], cwd=self.full_path, debug=self.debug).stdout

    def get_branch(self) -> str:
        """Current branch name without the trailing newline."""
        output = self._git("branch", "--show-current")
        return output[:-1] if output.endswith("\n") else output

    def add_all(self) -> None:
        self._git("add", ".")

    def commit(self, message: str) -> None:
        self._git("commit", "-m", message)

    def push(self) -> None:
        self._git("push", "origin", "HEAD")

    def get_config(self) -> str:
        return self._git("config", "--list")

    def set_config(self, key: str, value: str) -> None:
        self._git("config", key, value)


def new_hosted_repository(org_name: str, repo_name: str, settings: Settings) -> HostedRepository:
    """Build a hosted descriptor from configuration. Raises RepositoryValidationError on bad names."""
    return HostedRepository(
        name=repo_name,
        org_name=org_name,
        repositories_dir=settings.repositories_dir,
        clones_dir=settings.clones_dir,
        base_url=settings.base_url,
        default_branch=settings.default_branch,
        debug=DebugFlags.from_debug(settings.debug),
    )
