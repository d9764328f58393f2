from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_current_user, get_db
from campusdesk.api.responses import success
from campusdesk.core.config import get_settings
from campusdesk.core.exceptions import AuthenticationError, ConflictError, ValidationFailedError
from campusdesk.core.security import create_access_token, get_password_hash, verify_password
from campusdesk.models.user import ApprovalStatus, User, UserRole, class_sections_for, initial_approval_status
from campusdesk.schemas.user import LoginRequest, PasswordChangeRequest, ProfileUpdate, RegisterRequest, UserOut
from campusdesk.services.audit import log_activity
from campusdesk.services.registration import release_rejected_identities
from campusdesk.services.rate_limit import enforce_rate_limit

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    enforce_rate_limit(
        request=request,
        scope="registration",
        limit=settings.auth_rate_limit_register_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
        identity=payload.email,
    )
    release_rejected_identities(db, email=payload.email, roll_number=payload.roll_number)

    approval = initial_approval_status(payload.role)
    user = User(
        roll_number=payload.roll_number,
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        department=payload.department,
        year=payload.year,
        phone=payload.phone,
        class_name=payload.class_name,
        is_active=True,
        approval_status=approval,
    )
    db.add(user)
    db.flush()
    log_activity(db, user=user, action="auth.register", entity_type="user", entity_id=user.id, details={"role": user.role.value})
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email or roll number already exists") from exc
    db.refresh(user)

    needs_approval = approval == ApprovalStatus.pending
    message = (
        "Registration successful! Your account is pending admin approval. You will be able to login once approved."
        if needs_approval
        else "Registration successful! You can now login to your account."
    )
    return success({"user": UserOut.model_validate(user), "needsApproval": needs_approval}, message)


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    enforce_rate_limit(
        request=request,
        scope="login",
        limit=settings.auth_rate_limit_login_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
        identity=payload.email,
    )
    user = db.execute(select(User).where(User.email == payload.email)).scalar_one_or_none()
    # Password first, so approval state is only revealed to the account holder.
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")
    if user.approval_status == ApprovalStatus.pending:
        raise AuthenticationError(
            "Your account is pending admin approval. Please wait for approval before logging in.",
            extra={"needsApproval": True},
        )
    if user.approval_status == ApprovalStatus.rejected:
        raise AuthenticationError("Your registration was rejected. Please contact administrator.")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated. Please contact administrator.")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    token = create_access_token(user.id)
    logger.info("User %s logged in", user.roll_number)
    return success({"user": UserOut.model_validate(user), "token": token}, "Login successful")


@router.get("/me")
def me(current_user: User = Depends(get_current_user)) -> dict:
    return success({"user": UserOut.model_validate(current_user)})


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field in ("name", "phone", "department", "year", "class_name"):
        if field in updates:
            setattr(current_user, field, updates[field])

    if current_user.role == UserRole.admin:
        current_user.class_name = None
    elif current_user.class_name not in class_sections_for(current_user.department):
        raise ValidationFailedError.for_field("className", "Invalid class name for the selected department")

    db.commit()
    db.refresh(current_user)
    return success({"user": UserOut.model_validate(current_user)}, "Profile updated successfully")


@router.put("/change-password")
def change_password(
    payload: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise ValidationFailedError.for_field("currentPassword", "Current password is incorrect")
    current_user.hashed_password = get_password_hash(payload.new_password)
    log_activity(db, user=current_user, action="auth.password_change", entity_type="user", entity_id=current_user.id)
    db.commit()
    return success(message="Password changed successfully")
