"""Pytest fixtures for marketplace tests."""

from typing import List

import pytest
from fastapi.testclient import TestClient

from auth import issue_token
from catalog_repository import CatalogRepository
from config import Settings
from database import create_db_engine, create_session_factory
from models import Base, Product, Shop, User
from shop_repository import ShopRepository
from upload_service import UploadService

JWT_SECRET = "test-secret"


class RecordingPublisher:
    """Event publisher that keeps everything it is given."""

    def __init__(self):
        self.events: List = []
        self.closed = False

    def publish(self, event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    def of_type(self, event_type: str) -> List:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'marketplace.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(
        database_url=database_url,
        jwt_secret=JWT_SECRET,
        kafka_enabled=False,
        keepalive_url=None,
        seed_demo_data=False,
        imagekit_public_key=None,
        imagekit_private_key=None,
        enforce_status_order=True,
    )


@pytest.fixture
def engine(database_url):
    engine = create_db_engine(database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


# ---------------------------------------------------------------------------
# Record factories; every factory commits so the API sees the rows
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db):
    def factory(role: str, name: str = None, is_active: bool = True) -> User:
        name = name or f"Test {role.title()}"
        user = User(name=name, email=f"{name.lower().replace(' ', '.')}@agro.test", role=role, is_active=is_active)
        db.add(user)
        db.commit()
        return user

    return factory


@pytest.fixture
def make_shop(db):
    def factory(owner: User, status: str = "verified", name: str = "Green Fields Agro") -> Shop:
        repo = ShopRepository(db)
        shop = repo.create_shop(owner.id, name, "Pune", owner.name)
        if status != "pending":
            repo.update_status(shop, status)
        db.commit()
        return shop

    return factory


@pytest.fixture
def make_product(db):
    def factory(shop: Shop, **overrides) -> Product:
        fields = {
            "name": "Urea",
            "category": "fertilizer",
            "description": "Nitrogen fertilizer",
            "price": 250.0,
            "quantity": 10,
            "is_published": True,
        }
        fields.update(overrides)
        product = CatalogRepository(db).create_product(shop.owner_id, shop.id, fields)
        db.commit()
        return product

    return factory


@pytest.fixture
def farmer(make_user):
    return make_user("farmer", name="Ravi Patil")


@pytest.fixture
def dealer(make_user):
    return make_user("dealer", name="Sunil Traders")


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Meera Admin")


@pytest.fixture
def shop(make_shop, dealer):
    return make_shop(dealer)


@pytest.fixture
def reload(db):
    """Re-read a row from the database, discarding session state."""

    def loader(model, record_id):
        db.expire_all()
        return db.get(model, record_id)

    return loader


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_headers():
    def headers(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.id, JWT_SECRET)}"}

    return headers


@pytest.fixture
def client(settings, engine, publisher):
    from main import create_app

    app = create_app(settings, event_publisher=publisher, upload_service=UploadService())
    with TestClient(app) as test_client:
        yield test_client
