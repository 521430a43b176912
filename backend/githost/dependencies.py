from fastapi import Request

from githost.config import Settings
from githost.services.transport import TransportExecutor


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_transport(request: Request) -> TransportExecutor:
    return request.app.state.transport
