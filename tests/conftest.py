import os
import tempfile

# Point the app at throwaway storage before it is imported
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['UPLOAD_DIRECTORY'] = tempfile.mkdtemp(prefix='marketplace-uploads-')

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from database import Base, get_db  # noqa: E402
from main import app  # noqa: E402

DEFAULT_PASSWORD = 'P@ssw0rd'

test_engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_session(client):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


def register_user(client, username, email, password=DEFAULT_PASSWORD):
    response = client.post(
        '/register', json={'username': username, 'email': email, 'password': password}
    )
    assert response.status_code == 200, response.text
    return response.json()['userId']


def login_headers(client, identifier, password=DEFAULT_PASSWORD):
    response = client.post('/login', json={'username': identifier, 'password': password})
    assert response.status_code == 200, response.text
    return {'Authorization': f"Bearer {response.json()['token']}"}


def create_product(client, headers, **fields):
    data = {
        'title': 'Desk',
        'description': 'Solid oak writing desk',
        'category': 'furniture',
        'condition_desc': 'used',
        'price': '50',
    }
    data.update({key: str(value) for key, value in fields.items()})
    response = client.post('/products', data=data, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()['productId']


@pytest.fixture
def alice(client):
    user_id = register_user(client, 'alice', 'alice@x.com', 'pw1')
    return {'id': user_id, 'headers': login_headers(client, 'alice', 'pw1')}


@pytest.fixture
def bob(client):
    user_id = register_user(client, 'bob', 'bob@x.com', 'pw2')
    return {'id': user_id, 'headers': login_headers(client, 'bob', 'pw2')}


@pytest.fixture
def carol(client):
    user_id = register_user(client, 'carol', 'carol@x.com', 'pw3')
    return {'id': user_id, 'headers': login_headers(client, 'carol', 'pw3')}


@pytest.fixture
def desk(client, alice):
    return create_product(client, alice['headers'])
