import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from quizrank.auth.dependencies import get_db
from quizrank.main import app
from quizrank.quiz.database import create_quiz_indexes

USERS = [
    {"user_id": "stu_ada", "first_name": "Ada", "last_name": "Lovelace", "username": "ada", "role": "student", "is_approved": True},
    {"user_id": "stu_bob", "first_name": "Bob", "last_name": "Stone", "username": "bob", "role": "student", "is_approved": True},
    {"user_id": "stu_cy", "first_name": "Cy", "last_name": "Young", "username": "cy", "role": "student", "is_approved": True},
    {"user_id": "stu_dee", "first_name": "Dee", "last_name": "Park", "username": "dee", "role": "student", "is_approved": True},
    {"user_id": "stu_pending", "first_name": "Pat", "last_name": "Wait", "username": "pat", "role": "student", "is_approved": False},
    {"user_id": "adm_1", "first_name": "Ann", "last_name": "Admin", "username": "admin", "role": "admin", "is_approved": True},
]


@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["quizrank_test"]
    await create_quiz_indexes(database)
    return database


@pytest.fixture
async def users(db):
    await db.users_profile.insert_many([dict(u) for u in USERS])
    return USERS


@pytest.fixture
async def client(db, users):
    async def override_db():
        return db

    app.dependency_overrides[get_db] = override_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
