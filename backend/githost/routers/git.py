"""
Git HTTP smart protocol endpoints.

Implements the server side of git clone/fetch/push over HTTP by running
git upload-pack / receive-pack and streaming their output.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from githost.config import Settings
from githost.dependencies import get_app_settings, get_transport
from githost.exceptions import RepositoryValidationError
from githost.responses import NO_CACHE_HEADERS, GitServiceResponse
from githost.services.repository import REPOSITORY_SUFFIX, HostedRepository, new_hosted_repository
from githost.services.transport import TransportExecutor, parse_service, service_prelude

logger = logging.getLogger(__name__)

router = APIRouter(tags=["git"])


def resolve_repository(org_name: str, repository_name: str, settings: Settings) -> HostedRepository:
    """Strip the .git suffix from a URL segment and build the hosted descriptor."""
    if not repository_name.endswith(REPOSITORY_SUFFIX):
        raise RepositoryValidationError(f"invalid repository name {repository_name}")
    name = repository_name[: -len(REPOSITORY_SUFFIX)]
    return new_hosted_repository(org_name, name, settings)


@router.get("/{org_name}/{repository_name}/info/refs")
async def get_info_refs(
    org_name: str,
    repository_name: str,
    service: str | None = Query(None, description="git-upload-pack or git-receive-pack"),
    settings: Settings = Depends(get_app_settings),
    transport: TransportExecutor = Depends(get_transport),
):
    """
    Refs discovery endpoint for git clone/fetch/push.

    GET /{org}/{repo}.git/info/refs?service=git-upload-pack  (clone/fetch)
    GET /{org}/{repo}.git/info/refs?service=git-receive-pack (push)
    """
    repo = resolve_repository(org_name, repository_name, settings)
    selected = parse_service(service)
    logger.info(f"info/refs {selected.value} for {repo.org_name}/{repo.full_name}")

    return GitServiceResponse(
        lambda: transport.advertise(repo, selected),
        media_type=f"application/x-{service}-advertisement",
        prelude=service_prelude(service),
    )


@router.post("/{org_name}/{repository_name}/{service}")
async def post_service(
    org_name: str,
    repository_name: str,
    service: str,
    request: Request,
    settings: Settings = Depends(get_app_settings),
    transport: TransportExecutor = Depends(get_transport),
):
    """
    Stateless RPC endpoint: fetch negotiation (upload-pack) or push (receive-pack).

    POST /{org}/{repo}.git/git-upload-pack
    POST /{org}/{repo}.git/git-receive-pack
    """
    repo = resolve_repository(org_name, repository_name, settings)
    selected = parse_service(service)
    logger.info(f"{selected.value} request for {repo.org_name}/{repo.full_name}")

    return GitServiceResponse(
        lambda: transport.stateless_rpc(repo, selected),
        media_type=f"application/x-{service}-result",
        stream_request_body=True,
        content_encoding=request.headers.get("content-encoding"),
    )


@router.get("/{org_name}/{repository_name}/HEAD")
def get_head(
    org_name: str,
    repository_name: str,
    settings: Settings = Depends(get_app_settings),
):
    """Get HEAD reference (required by some git clients)."""
    repo = resolve_repository(org_name, repository_name, settings)
    return PlainTextResponse(repo.read_head() + "\n", headers=NO_CACHE_HEADERS)
