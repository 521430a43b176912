"""
Repository management endpoints: create, inspect, delete and list files of
hosted bare repositories.
"""

import dataclasses

from fastapi import APIRouter, Depends, Query, Response

from githost.config import Settings
from githost.dependencies import get_app_settings
from githost.exceptions import EmptyRepositoryError, RepositoryNotFoundError
from githost.schemas import FileListing, FileRead, RepositoryCreate, RepositoryRead
from githost.services.repository import HostedRepository, new_hosted_repository

router = APIRouter(prefix="/api/orgs/{org_name}/repos", tags=["repos"])

HEAD_BRANCH_PREFIX = "ref: refs/heads/"


def repo_to_read(repo: HostedRepository, default_branch: str | None = None) -> RepositoryRead:
    return RepositoryRead(
        name=repo.name,
        org_name=repo.org_name,
        full_name=repo.full_name,
        clone_url=repo.clone_url,
        default_branch=default_branch or repo.default_branch,
    )


def existing_repository(org_name: str, repo_name: str, settings: Settings) -> HostedRepository:
    repo = new_hosted_repository(org_name, repo_name, settings)
    if not repo.exists():
        raise RepositoryNotFoundError(f"repository {org_name}/{repo.full_name} not found")
    return repo


@router.post("", response_model=RepositoryRead, status_code=201)
def create_repo(
    org_name: str,
    payload: RepositoryCreate,
    settings: Settings = Depends(get_app_settings),
):
    """Create a bare repository that clients can clone from and push to."""
    repo = new_hosted_repository(org_name, payload.name, settings)
    if payload.default_branch:
        repo = dataclasses.replace(repo, default_branch=payload.default_branch)
    repo.create_bare_repo()
    return repo_to_read(repo)


@router.get("/{repo_name}", response_model=RepositoryRead)
def get_repo(
    org_name: str,
    repo_name: str,
    settings: Settings = Depends(get_app_settings),
):
    repo = existing_repository(org_name, repo_name, settings)
    head = repo.read_head()
    branch = head[len(HEAD_BRANCH_PREFIX):] if head.startswith(HEAD_BRANCH_PREFIX) else None
    return repo_to_read(repo, default_branch=branch)


@router.delete("/{repo_name}", status_code=204)
def delete_repo(
    org_name: str,
    repo_name: str,
    settings: Settings = Depends(get_app_settings),
):
    """Delete a repository. Deleting a missing repository is not an error."""
    repo = new_hosted_repository(org_name, repo_name, settings)
    repo.delete_repo()
    return Response(status_code=204)


@router.get("/{repo_name}/files", response_model=FileListing)
def list_files(
    org_name: str,
    repo_name: str,
    branch: str | None = Query(None),
    settings: Settings = Depends(get_app_settings),
):
    repo = existing_repository(org_name, repo_name, settings)
    branch_name = branch or repo.default_branch
    try:
        files = repo.get_files(branch_name)
    except EmptyRepositoryError:
        return FileListing(branch=branch_name, empty=True, files=[])
    return FileListing(branch=branch_name, files=[FileRead(name=f.name) for f in files])
