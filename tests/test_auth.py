import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Account
from app.auth.security import hash_password, verify_password

from tests.conftest import ADMIN_PASSWORD


async def _add_student(db: AsyncSession, *, is_approved: bool = True, must_change: bool = True) -> Account:
    account = Account(
        email="student@uni.edu",
        password_hash=hash_password("TempPass1"),
        role="student",
        is_approved=is_approved,
        must_change_password=must_change,
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, admin: Account) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "Admin@Uni.edu", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["role"] == "admin"
    assert data["user"]["email"] == "admin@uni.edu"


@pytest.mark.asyncio
async def test_login_invalid_password(client: AsyncClient, admin: Account) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@uni.edu", "password": "WrongPassword"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_role_mismatch(client: AsyncClient, admin: Account) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@uni.edu", "password": ADMIN_PASSWORD, "role": "student"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unapproved_student_cannot_login(client: AsyncClient, db_session: AsyncSession) -> None:
    await _add_student(db_session, is_approved=False)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "student@uni.edu", "password": "TempPass1"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_oauth_login_and_me(client: AsyncClient, db_session: AsyncSession) -> None:
    await _add_student(db_session)
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": "student@uni.edu", "password": "TempPass1"},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["must_change_password"] is True


@pytest.mark.asyncio
async def test_change_password_clears_flag(client: AsyncClient, db_session: AsyncSession) -> None:
    account = await _add_student(db_session)
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "student@uni.edu", "password": "TempPass1"},
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "TempPass1", "new_password": "NewSecret99", "confirm_password": "NewSecret99"},
        headers=headers,
    )
    assert response.status_code == 200

    await db_session.refresh(account)
    assert account.must_change_password is False
    assert verify_password("NewSecret99", account.password_hash)


@pytest.mark.asyncio
async def test_change_password_rejects_wrong_current(client: AsyncClient, db_session: AsyncSession) -> None:
    await _add_student(db_session)
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "student@uni.edu", "password": "TempPass1"},
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "NotIt123", "new_password": "NewSecret99", "confirm_password": "NewSecret99"},
        headers=headers,
    )
    assert response.status_code == 400

    mismatch = await client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "TempPass1", "new_password": "NewSecret99", "confirm_password": "Different99"},
        headers=headers,
    )
    assert mismatch.status_code == 422


@pytest.mark.asyncio
async def test_admin_set_password(client: AsyncClient, db_session: AsyncSession, admin_headers: dict) -> None:
    account = await _add_student(db_session, must_change=False)
    response = await client.post(
        "/api/v1/auth/admin/set-password",
        json={"email": "student@uni.edu", "password": "AdminChosen1"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    await db_session.refresh(account)
    assert account.must_change_password is True
    assert verify_password("AdminChosen1", account.password_hash)

    unknown = await client.post(
        "/api/v1/auth/admin/set-password",
        json={"email": "nobody@uni.edu", "password": "AdminChosen1"},
        headers=admin_headers,
    )
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_login_after_approval(client: AsyncClient, db_session: AsyncSession, admin_headers: dict, notifier) -> None:
    submitted = await client.post(
        "/api/v1/applications",
        json={
            "name": "Ravi Kumar",
            "email": "ravi@example.com",
            "phone": "+919876543210",
            "date_of_birth": "2004-09-01",
            "gender": "Male",
            "address": "4 Lake Road, Pune",
            "program": "B.Sc Physics",
        },
    )
    assert submitted.status_code == 201
    application_id = (await db_session.execute(
        select(Account.id).where(Account.email == "ravi@example.com")
    )).scalar_one_or_none()
    # Submission alone does not create an account
    assert application_id is None

    listing = await client.get("/api/v1/applications", headers=admin_headers)
    approve = await client.put(f"/api/v1/applications/{listing.json()[0]['id']}/approve", headers=admin_headers)
    assert approve.status_code == 200

    temp_password = notifier.approvals[0][3]
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "ravi@example.com", "password": temp_password, "role": "student"},
    )
    assert login.status_code == 200
    assert login.json()["user"]["must_change_password"] is True
