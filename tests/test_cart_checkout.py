from decimal import Decimal

from conftest import auth_headers, fresh
from eliteshop.models import CartItem, Order, Product


def test_cart_requires_auth(client):
    assert client.get("/api/cart").status_code == 401
    assert client.post("/api/cart", json={"product_id": 1}).status_code == 401
    assert client.post("/api/checkout").status_code == 401


def test_add_to_cart_upserts(client, db, user_headers, make_product):
    p = make_product()
    r1 = client.post("/api/cart", json={"product_id": p.id}, headers=user_headers)
    assert r1.status_code == 201
    assert r1.json()["quantidade"] == 1

    r2 = client.post("/api/cart", json={"product_id": p.id, "quantidade": 3}, headers=user_headers)
    assert r2.status_code == 201
    assert r2.json()["id"] == r1.json()["id"]
    assert r2.json()["quantidade"] == 4

    assert db.query(CartItem).count() == 1
    cart = client.get("/api/cart", headers=user_headers).json()
    assert len(cart) == 1
    assert cart[0]["product"]["id"] == p.id


def test_add_to_cart_validation(client, user_headers, make_product):
    p = make_product()
    r = client.post("/api/cart", json={"product_id": p.id, "quantidade": 0}, headers=user_headers)
    assert r.status_code == 400
    r = client.post("/api/cart", json={"product_id": 999}, headers=user_headers)
    assert r.status_code == 404
    inactive = make_product(status="inativo")
    r = client.post("/api/cart", json={"product_id": inactive.id}, headers=user_headers)
    assert r.status_code == 400


def test_update_and_remove_cart_item(client, user_headers, make_user, make_product):
    p = make_product()
    item = client.post("/api/cart", json={"product_id": p.id}, headers=user_headers).json()

    r = client.put(f"/api/cart/{item['id']}", json={"quantidade": 5}, headers=user_headers)
    assert r.status_code == 200
    assert r.json()["quantidade"] == 5

    r = client.put(f"/api/cart/{item['id']}", json={"quantidade": 0}, headers=user_headers)
    assert r.status_code == 400

    stranger = auth_headers(make_user())
    assert client.put(f"/api/cart/{item['id']}", json={"quantidade": 2}, headers=stranger).status_code == 404
    assert client.delete(f"/api/cart/{item['id']}", headers=stranger).status_code == 404

    r = client.delete(f"/api/cart/{item['id']}", headers=user_headers)
    assert r.status_code == 204
    assert client.get("/api/cart", headers=user_headers).json() == []


def test_clear_cart(client, user_headers, make_product):
    for _ in range(3):
        client.post("/api/cart", json={"product_id": make_product().id}, headers=user_headers)
    assert client.delete("/api/cart", headers=user_headers).status_code == 204
    assert client.get("/api/cart", headers=user_headers).json() == []


def test_checkout_empty_cart(client, user_headers):
    r = client.post("/api/checkout", headers=user_headers)
    assert r.status_code == 400
    assert r.json() == {"message": "Carrinho vazio"}


def test_checkout_creates_order_snapshot(client, db, user_headers, make_product):
    a = make_product(preco=Decimal("10.50"))
    b = make_product(preco=Decimal("99.90"))
    client.post("/api/cart", json={"product_id": a.id, "quantidade": 2}, headers=user_headers)
    client.post("/api/cart", json={"product_id": b.id}, headers=user_headers)

    r = client.post("/api/checkout", headers=user_headers)
    assert r.status_code == 201
    body = r.json()
    order = body["order"]
    assert body["message"]
    assert order["status"] == "PROCESSANDO"
    assert Decimal(order["total"]) == Decimal("120.90")
    lines = {i["product_id"]: i for i in order["items"]}
    assert lines[a.id]["quantidade"] == 2
    assert Decimal(lines[a.id]["preco"]) == Decimal("10.50")
    assert Decimal(lines[b.id]["preco"]) == Decimal("99.90")

    assert client.get("/api/cart", headers=user_headers).json() == []

    # alteração de preço não muda o pedido já criado
    product = fresh(db, Product, a.id)
    product.preco = Decimal("50.00")
    db.commit()
    orders = client.get("/api/orders", headers=user_headers).json()
    assert len(orders) == 1
    line = next(i for i in orders[0]["items"] if i["product_id"] == a.id)
    assert Decimal(line["preco"]) == Decimal("10.50")
    assert Decimal(orders[0]["total"]) == Decimal("120.90")


def test_checkout_uses_current_product_price(client, db, user_headers, make_product):
    p = make_product(preco=Decimal("20.00"))
    client.post("/api/cart", json={"product_id": p.id, "quantidade": 3}, headers=user_headers)
    product = fresh(db, Product, p.id)
    product.preco = Decimal("25.00")
    db.commit()

    order = client.post("/api/checkout", headers=user_headers).json()["order"]
    assert Decimal(order["total"]) == Decimal("75.00")
    assert Decimal(order["items"][0]["preco"]) == Decimal("25.00")


def test_order_detail_is_private(client, db, user_headers, make_user, make_product):
    client.post("/api/cart", json={"product_id": make_product().id}, headers=user_headers)
    order_id = client.post("/api/checkout", headers=user_headers).json()["order"]["id"]

    assert client.get(f"/api/orders/{order_id}", headers=user_headers).status_code == 200
    stranger = auth_headers(make_user())
    assert client.get(f"/api/orders/{order_id}", headers=stranger).status_code == 404
    assert client.get("/api/orders", headers=stranger).json() == []
    assert db.query(Order).count() == 1


def test_favorites(client, user_headers, make_product):
    p = make_product()
    r = client.post(f"/api/favorites/{p.id}", headers=user_headers)
    assert r.status_code == 201
    again = client.post(f"/api/favorites/{p.id}", headers=user_headers)
    assert again.json()["id"] == r.json()["id"]
    assert [f["product_id"] for f in client.get("/api/favorites", headers=user_headers).json()] == [p.id]
    assert client.delete(f"/api/favorites/{p.id}", headers=user_headers).status_code == 204
    assert client.delete(f"/api/favorites/{p.id}", headers=user_headers).status_code == 404
    assert client.post("/api/favorites/999", headers=user_headers).status_code == 404
