"""
FastAPI dependencies: settings, credential, and a backend bound to that credential.

The credential is resolved before any backend client is built, so a request
without one fails with 401 and never reaches the backend.
"""

from fastapi import Depends, Header, Request

from storechat.backend.base import BackendFactory, IndexBackend
from storechat.core.config import API_KEY_HEADER, Settings
from storechat.core.credentials import resolve_credential


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend_factory(request: Request) -> BackendFactory:
    return request.app.state.backend_factory


def get_credential(
    settings: Settings = Depends(get_settings),
    api_key: str | None = Header(None, alias=API_KEY_HEADER),
) -> str:
    return resolve_credential(api_key, settings.fallback_api_key)


def get_backend(
    credential: str = Depends(get_credential),
    factory: BackendFactory = Depends(get_backend_factory),
) -> IndexBackend:
    return factory(credential)
