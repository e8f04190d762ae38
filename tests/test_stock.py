from decimal import Decimal

from conftest import fresh
from eliteshop.models import Product, ProductStock


def test_stock_update_clamps_and_mirrors(client, db, admin_headers, make_product):
    p = make_product(estoque=10)
    r = client.put(f"/api/admin/products/{p.id}/stock", json={"quantidade": -4}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["quantidade"] == 0
    assert fresh(db, Product, p.id).estoque == 0


def test_stock_update_upserts_per_location(client, db, admin_headers, make_product):
    p = make_product(estoque=10)
    url = f"/api/admin/products/{p.id}/stock"

    first = client.put(url, json={"quantidade": 7, "localizacao": "CD-SP"}, headers=admin_headers).json()
    second = client.put(url, json={"quantidade": 3, "localizacao": "CD-SP"}, headers=admin_headers).json()
    assert first["id"] == second["id"]
    assert second["quantidade"] == 3

    client.put(url, json={"quantidade": 12}, headers=admin_headers)
    rows = db.query(ProductStock).filter(ProductStock.product_id == p.id).all()
    assert sorted((r.localizacao or "", r.quantidade) for r in rows) == [("", 12), ("CD-SP", 3)]

    # o campo legado recebe a última quantidade gravada
    assert fresh(db, Product, p.id).estoque == 12
    detail = client.get(f"/api/products/{p.id}").json()
    assert detail["estoque"] == 12
    assert detail["current_stock"] == 15

    listed = client.get(url, headers=admin_headers).json()
    assert len(listed) == 2


def test_stock_endpoints_need_permission(client, user_headers, make_product):
    p = make_product()
    r = client.put(f"/api/admin/products/{p.id}/stock", json={"quantidade": 1}, headers=user_headers)
    assert r.status_code == 403
    assert client.get("/api/admin/stock/alerts", headers=user_headers).status_code == 403
    assert client.put("/api/admin/products/999/stock", json={"quantidade": 1}).status_code == 401


def test_stock_alerts_most_deficient_first(client, admin_headers, make_product):
    make_product(nome="Folgado", estoque=50, estoque_minimo=5)
    a = make_product(nome="No limite", estoque=5, estoque_minimo=5)
    b = make_product(nome="Zerado", estoque=0, estoque_minimo=10)
    c = make_product(nome="Sem mínimo", estoque=2, estoque_minimo=None)
    d = make_product(nome="Baixo", estoque=1, estoque_minimo=3)

    r = client.get("/api/admin/stock/alerts", headers=admin_headers)
    assert r.status_code == 200
    alerts = r.json()
    assert [x["product_id"] for x in alerts] == [b.id, c.id, d.id, a.id]
    by_id = {x["product_id"]: x for x in alerts}
    assert by_id[c.id]["minimum_stock"] == 5
    assert by_id[b.id] == {"product_id": b.id, "product_name": "Zerado", "current_stock": 0, "minimum_stock": 10}

    r = client.get("/api/admin/stock/alerts?limit=2", headers=admin_headers)
    assert [x["product_id"] for x in r.json()] == [b.id, c.id]


def test_stock_summary(client, admin_headers, make_product):
    make_product(estoque=0, preco=Decimal("10.00"))
    make_product(estoque=3, preco=Decimal("20.00"))
    make_product(estoque=100, preco=Decimal("1.50"))
    body = client.get("/api/admin/stock/summary", headers=admin_headers).json()
    assert body["total_products"] == 3
    assert body["out_of_stock_count"] == 1
    assert body["low_stock_count"] == 1
    assert Decimal(body["total_value"]) == Decimal("210.00")


def test_product_create_and_update_keep_stock_in_sync(client, db, admin_headers):
    payload = {
        "nome": "Echo Dot",
        "descricao": "Alto-falante inteligente com Alexa",
        "preco": 349.9,
        "marca": "Amazon",
        "categoria": "Áudio",
        "estoque": 9,
    }
    r = client.post("/api/admin/products", json=payload, headers=admin_headers)
    assert r.status_code == 201
    pid = r.json()["id"]
    rows = db.query(ProductStock).filter(ProductStock.product_id == pid).all()
    assert [(s.localizacao, s.quantidade) for s in rows] == [(None, 9)]

    r = client.put(f"/api/admin/products/{pid}", json={**payload, "estoque": 4}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["estoque"] == 4
    db.expire_all()
    rows = db.query(ProductStock).filter(ProductStock.product_id == pid).all()
    assert [(s.localizacao, s.quantidade) for s in rows] == [(None, 4)]
