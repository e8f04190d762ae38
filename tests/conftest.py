import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_DELAY_SECONDS"] = "0"
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from eliteshop.auth import create_access_token, get_password_hash
from eliteshop.database import Base, get_db, make_engine
from eliteshop.main import app
from eliteshop.models import Category, Product, ProductStock, User

engine = make_engine("sqlite://")
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "segredo123"
_PASSWORD_HASH = get_password_hash(PASSWORD)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", email=None, **kw):
        counter["n"] += 1
        user = User(
            nome=kw.pop("nome", f"Usuário {counter['n']}"),
            email=email or f"user{counter['n']}@loja.com",
            password_hash=_PASSWORD_HASH,
            role=role,
            **kw,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def user_headers(make_user):
    return auth_headers(make_user("user"))


@pytest.fixture
def admin_headers(make_user):
    return auth_headers(make_user("admin"))


@pytest.fixture
def super_headers(make_user):
    return auth_headers(make_user("super_admin"))


@pytest.fixture
def make_category(db):
    def _make(nome="Smartphones", **kw):
        cat = Category(nome=nome, slug=kw.pop("slug", nome.lower()), **kw)
        db.add(cat)
        db.commit()
        db.refresh(cat)
        return cat

    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(**kw):
        counter["n"] += 1
        n = counter["n"]
        estoque = kw.pop("estoque", 10)
        data = {
            "nome": f"Produto {n}",
            "slug": f"produto-{n}",
            "descricao": "Descrição longa o suficiente",
            "preco": Decimal("100.00"),
            "marca": "Marca",
            "categoria": "Geral",
            "status": "publicado",
            "image_url": "",
        }
        data.update(kw)
        product = Product(estoque=estoque, **data)
        product.stock.append(ProductStock(quantidade=estoque))
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


def fresh(db, model, pk):
    db.expire_all()
    return db.get(model, pk)
