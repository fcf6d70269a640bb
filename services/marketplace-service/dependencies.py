"""FastAPI dependencies: per-request session, principal, role gate and services.

Long-lived collaborators (session factory, resolver, publisher, upload
service) are built once in the app lifespan and read from ``app.state``.
"""

from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from auth import authorize
from database import session_scope
from models import User
from order_workflow import OrderWorkflow
from upload_service import UploadService


def get_db(request: Request) -> Iterator[Session]:
    """Get database session."""
    yield from session_scope(request.app.state.session_factory)


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    return request.app.state.principal_resolver.resolve(db, authorization)


def require_roles(*roles: str):
    """Dependency factory: the current user, provided they hold one of `roles`."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        authorize(user, roles)
        return user

    return dependency


def get_workflow(request: Request, db: Session = Depends(get_db)) -> OrderWorkflow:
    return OrderWorkflow(
        db,
        request.app.state.event_publisher,
        enforce_status_order=request.app.state.settings.enforce_status_order,
    )


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service
