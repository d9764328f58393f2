import os
import tempfile

# Settings are read once at import, so the test environment must be in place first.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="campusdesk-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campusdesk.api.deps import get_db
from campusdesk.core.config import get_settings
from campusdesk.core.security import create_access_token, get_password_hash
from campusdesk.db.base import Base
from campusdesk.main import app
from campusdesk.models.user import AcademicYear, ApprovalStatus, Department, User, UserRole
from campusdesk.services.rate_limit import clear_rate_limiter

DEFAULT_PASSWORD = "password123"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(get_settings(), "upload_dir", str(target))
    return target


@pytest.fixture()
def client(session_factory, upload_dir):
    clear_rate_limiter()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_rate_limiter()


@pytest.fixture()
def make_user(db_session):
    counter = {"value": 0}

    def _make_user(
        *,
        role: UserRole = UserRole.student,
        name: str | None = None,
        email: str | None = None,
        roll_number: str | None = None,
        department: Department = Department.computer_science,
        year: AcademicYear = AcademicYear.third,
        class_name: str | None = "G1",
        approval_status: ApprovalStatus = ApprovalStatus.approved,
        is_active: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        counter["value"] += 1
        index = counter["value"]
        user = User(
            roll_number=roll_number or f"22CS{index:03d}",
            name=name or f"{role.value.title()} {index}",
            email=email or f"user{index}@psgtech.ac.in",
            hashed_password=get_password_hash(password),
            role=role,
            department=department,
            year=year,
            class_name=None if role == UserRole.admin else class_name,
            approval_status=approval_status,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def admin_user(make_user):
    return make_user(role=UserRole.admin, name="Campus Admin", email="admin@psgtech.ac.in", roll_number="ADMIN001")


@pytest.fixture()
def student_user(make_user):
    return make_user(name="Asha Kumar", email="asha@psgtech.ac.in", roll_number="22CS101")


@pytest.fixture()
def other_student(make_user):
    return make_user(name="Ravi Shankar", email="ravi@psgtech.ac.in", roll_number="22CS102")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture()
def student_headers(student_user):
    return auth_headers(student_user)


@pytest.fixture()
def other_headers(other_student):
    return auth_headers(other_student)
