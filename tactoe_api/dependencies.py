"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Request

from tactoe_api.errors import DatabaseUnavailable
from tactoe_api.services import FileLibrary, LoginLog, Services


def get_services(request: Request) -> Services:
    """
    Return the services attached at startup. Until the database connection
    is up there are none, and every data endpoint answers 503.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise DatabaseUnavailable()
    return services


def get_login_log(request: Request) -> LoginLog:
    return get_services(request).logins


def get_file_library(request: Request) -> FileLibrary:
    return get_services(request).files
