from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campusdesk.core.exceptions import AuthenticationError, PermissionDeniedError
from campusdesk.core.security import InvalidTokenError, decode_token
from campusdesk.db.session import SessionLocal
from campusdesk.models.user import User, UserRole
from campusdesk.schemas.common import ListQuery

# auto_error is off so a missing header and a bad token get different messages.
security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _resolve_user(token: str, db: Session) -> User:
    try:
        payload = decode_token(token)
    except InvalidTokenError as exc:
        raise AuthenticationError() from exc
    user = db.get(User, payload["sub"])
    if user is None or not user.is_active:
        raise AuthenticationError()
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required")
    return _resolve_user(credentials.credentials, db)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Resolve the caller when a valid token is sent; otherwise proceed anonymously."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _resolve_user(credentials.credentials, db)
    except AuthenticationError:
        return None


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise PermissionDeniedError()
        return current_user

    return role_checker


require_admin = require_roles(UserRole.admin)
require_student_or_representative = require_roles(UserRole.student, UserRole.class_representative)


def list_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder", pattern="^(asc|desc)$"),
) -> ListQuery:
    return ListQuery(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
