import os

# Storage is built at import time from DATABASE_URL: point it at memory first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "testing"

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.user import Role, User, UserStatus  # noqa: E402
from utils.security import hash_password  # noqa: E402

PREFIX = "/api/v1"
PASSWORD = "Secret123"


@pytest.fixture
def app():
    storage.drop_all()
    storage.reload()
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    """Cookie-carrying client, like a browser."""
    return app.test_client()


@pytest.fixture
def api_client(app):
    """Cookie-less client; tests pass Bearer headers explicitly."""
    return app.test_client(use_cookies=False)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, email="ana@ueb.edu.ec", password=PASSWORD, **extra):
    return client.post(f"{PREFIX}/auth/register", json={"email": email, "password": password, **extra})


def login(client, email, password=PASSWORD):
    return client.post(f"{PREFIX}/auth/login", json={"email": email, "password": password})


def create_user(email, password=PASSWORD, role=Role.STUDENT, status=UserStatus.ACTIVE, **extra) -> str:
    """Insert a user straight into storage and return its id."""
    user = User(email=email, password_hash=hash_password(password), role=role, status=status, **extra)
    storage.new(user)
    storage.save()
    user_id = user.id
    storage.close()
    return user_id


@pytest.fixture
def student(app, api_client):
    """A registered student: {"id", "accessToken", "refreshToken"}."""
    tokens = register(api_client, "ana@ueb.edu.ec").get_json()["data"]
    me = api_client.get(f"{PREFIX}/auth/me", headers=bearer(tokens["accessToken"])).get_json()["data"]
    return {"id": me["id"], **tokens}


@pytest.fixture
def other_student(app, api_client):
    tokens = register(api_client, "luis@mailes.ueb.edu.ec").get_json()["data"]
    me = api_client.get(f"{PREFIX}/auth/me", headers=bearer(tokens["accessToken"])).get_json()["data"]
    return {"id": me["id"], **tokens}


@pytest.fixture
def admin(app, api_client):
    admin_id = create_user("admin@ueb.edu.ec", role=Role.ADMIN, first_name="Admin")
    tokens = login(api_client, "admin@ueb.edu.ec").get_json()["data"]
    return {"id": admin_id, **tokens}
