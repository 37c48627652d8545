"""
Tests for UserRepository and the session endpoints
"""
import pytest

from crud.user import UserRepository
from auth_utils import hash_password, verify_password
from tests.conftest import STRONG_PASSWORD, signup


@pytest.mark.asyncio
async def test_create_and_get_user(test_db):
    """
    Test creating a new user and retrieving it by email.

    This test verifies:
    - User creation via UserRepository.create_user
    - Email is stored lowercased
    - User retrieval by email and by id
    """
    user_repo = UserRepository(test_db)

    test_email = "Test@Example.com"
    hashed_pwd = hash_password("test_password_123")

    created_user = await user_repo.create_user({
        "email": test_email,
        "hashed_password": hashed_pwd,
    })

    assert created_user.id
    assert created_user.email == test_email.lower()
    assert created_user.is_active is True

    await test_db.commit()

    retrieved_user = await user_repo.get_user_by_email(test_email)
    assert retrieved_user is not None
    assert retrieved_user.id == created_user.id

    by_id = await user_repo.get_user_by_id(created_user.id)
    assert by_id is not None
    assert by_id.email == test_email.lower()


@pytest.mark.asyncio
async def test_login_verification(test_db):
    """Stored argon2 hash verifies the right password only."""
    user_repo = UserRepository(test_db)
    test_password = "secure_password_456"

    await user_repo.create_user({
        "email": "login_test@example.com",
        "hashed_password": hash_password(test_password),
    })
    await test_db.commit()

    retrieved_user = await user_repo.get_user_by_email("login_test@example.com")
    assert verify_password(test_password, retrieved_user.hashed_password) is True
    assert verify_password("wrong_password", retrieved_user.hashed_password) is False


@pytest.mark.asyncio
async def test_signup_login_me_logout(async_client):
    user_id, headers = await signup(async_client, "flow@example.com")

    me = await async_client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    body = me.json()
    assert body["success"] is True
    assert body["data"]["userId"] == user_id
    assert body["data"]["email"] == "flow@example.com"
    assert body["data"]["createdAt"].endswith("Z")

    login = await async_client.post(
        "/api/auth/login",
        json={"email": "FLOW@example.com", "password": STRONG_PASSWORD},
    )
    assert login.status_code == 200
    assert login.json()["data"]["userId"] == user_id
    assert "auth_token=" in login.headers["set-cookie"]

    logout = await async_client.post("/api/auth/logout")
    assert logout.status_code == 200
    assert "auth_token=" in logout.headers["set-cookie"]


@pytest.mark.asyncio
async def test_login_wrong_password(async_client):
    await signup(async_client, "wrongpass@example.com")

    response = await async_client.post(
        "/api/auth/login",
        json={"email": "wrongpass@example.com", "password": "WrongPassword123!"},
    )
    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_duplicate_signup_conflict(async_client):
    await signup(async_client, "dupe@example.com")

    response = await async_client.post(
        "/api/auth/signup",
        json={"email": "dupe@example.com", "password": STRONG_PASSWORD},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_protected_route_requires_session(async_client):
    response = await async_client.get("/api/pets")
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "Authentication required"},
    }
