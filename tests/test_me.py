import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import create_access_token
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def test_me_returns_current_user():
    client = TestClient(app)
    token = register_and_login(client, "me@example.com", "secret")
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"


def test_me_without_bearer_scheme_returns_401():
    client = TestClient(app)
    token = register_and_login(client, "me@example.com", "secret")
    response = client.get("/auth/me", headers={"Authorization": token})
    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}


def test_me_with_expired_token_returns_401():
    client = TestClient(app)
    register_and_login(client, "me@example.com", "secret")
    with SessionLocal() as db:
        user_id = db.query(User).filter(User.email == "me@example.com").one().id
    expired = create_access_token(user_id, expires_minutes=-1)
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_token_for_missing_user_returns_401():
    client = TestClient(app)
    token = create_access_token(9999)
    response = client.get("/clients", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
