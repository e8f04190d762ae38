from decimal import Decimal

from eliteshop.models import ProductTag, Tag
from eliteshop.storage import bounded_limit, slugify


def test_slugify():
    assert slugify("Áudio & Vídeo") == "audio-video"
    assert slugify("  iPhone 15 Pro ") == "iphone-15-pro"
    assert slugify("!!!") == "item"


def test_bounded_limit():
    assert bounded_limit(None, 6) == 6
    assert bounded_limit(0, 6) == 1
    assert bounded_limit(100, 6) == 24
    assert bounded_limit(10, 6) == 10


def test_list_products_hides_inactive(client, make_product):
    make_product(nome="Ativo")
    make_product(nome="Rascunho", status="rascunho")
    make_product(nome="Fora", status="inativo")
    r = client.get("/api/products")
    assert r.status_code == 200
    assert sorted(p["nome"] for p in r.json()) == ["Ativo", "Rascunho"]


def test_list_products_filters(client, make_product, make_category):
    cat = make_category("Laptops", slug="laptops")
    make_product(nome="MacBook Air", marca="Apple", category_id=cat.id, categoria="Laptops", preco=Decimal("9000"))
    make_product(nome="Galaxy", marca="Samsung", categoria="Smartphones", preco=Decimal("4000"))

    assert [p["nome"] for p in client.get("/api/products?q=apple").json()] == ["MacBook Air"]
    assert [p["nome"] for p in client.get("/api/products?category=laptops").json()] == ["MacBook Air"]
    assert [p["nome"] for p in client.get("/api/products?category=smartphones").json()] == ["Galaxy"]
    assert [p["nome"] for p in client.get("/api/products?max_price=5000").json()] == ["Galaxy"]


def test_product_detail(client, make_product, make_category):
    cat = make_category("Games", slug="games")
    p = make_product(category_id=cat.id, estoque=7)
    r = client.get(f"/api/products/{p.id}")
    assert r.status_code == 200
    body = r.json()
    assert body["category"]["slug"] == "games"
    assert body["current_stock"] == 7
    assert body["images"] == []
    assert Decimal(body["preco"]) == Decimal("100.00")


def test_product_not_found(client):
    r = client.get("/api/products/999")
    assert r.status_code == 404
    assert r.json() == {"message": "Produto não encontrado"}


def test_related_excludes_self_and_ranks(client, make_product, make_category):
    cat = make_category()
    other = make_category("Tablets", slug="tablets")
    src = make_product(category_id=cat.id, avaliacao=Decimal("5.0"), vendas=9999)
    a = make_product(category_id=cat.id, avaliacao=Decimal("4.5"), vendas=10)
    b = make_product(category_id=cat.id, avaliacao=Decimal("4.9"), vendas=5)
    c = make_product(category_id=cat.id, avaliacao=Decimal("4.5"), vendas=300)
    make_product(category_id=other.id, avaliacao=Decimal("5.0"), vendas=1000)

    r = client.get(f"/api/products/{src.id}/related")
    assert r.status_code == 200
    ids = [p["id"] for p in r.json()]
    assert src.id not in ids
    assert ids == [b.id, c.id, a.id]

    r = client.get(f"/api/products/{src.id}/related?limit=1")
    assert [p["id"] for p in r.json()] == [b.id]


def test_related_limit_is_clamped(client, make_product):
    src = make_product(categoria="Áudio")
    for _ in range(30):
        make_product(categoria="Áudio")
    assert len(client.get(f"/api/products/{src.id}/related").json()) == 6
    assert len(client.get(f"/api/products/{src.id}/related?limit=100").json()) == 24
    assert len(client.get(f"/api/products/{src.id}/related?limit=0").json()) == 1


def test_related_uses_legacy_category_string(client, make_product):
    src = make_product(categoria="Áudio")
    same = make_product(categoria="Áudio")
    make_product(categoria="Games")
    assert [p["id"] for p in client.get(f"/api/products/{src.id}/related").json()] == [same.id]


def test_bestsellers_and_featured(client, make_product):
    low = make_product(vendas=5, is_featured=True, avaliacao=Decimal("4.0"))
    high = make_product(vendas=500, is_featured=False)
    mid = make_product(vendas=50, is_featured=True, avaliacao=Decimal("4.9"))

    r = client.get("/api/products/bestsellers?limit=2")
    assert [p["id"] for p in r.json()] == [high.id, mid.id]

    r = client.get("/api/products/featured")
    assert [p["id"] for p in r.json()] == [mid.id, low.id]


def test_categories_with_counts_and_detail(client, make_category, make_product):
    parent = make_category("Eletrônicos", slug="eletronicos")
    child = make_category("Celulares", slug="celulares", parent_id=parent.id)
    make_category("Oculta", slug="oculta", is_active=False)
    make_product(category_id=child.id)
    make_product(category_id=child.id)

    r = client.get("/api/categories")
    counts = {c["slug"]: c["product_count"] for c in r.json()}
    assert counts == {"eletronicos": 0, "celulares": 2}

    r = client.get(f"/api/categories/{parent.id}")
    assert [c["slug"] for c in r.json()["children"]] == ["celulares"]
    r = client.get(f"/api/categories/{child.id}")
    assert r.json()["parent"]["slug"] == "eletronicos"


def test_tag_products(client, db, make_product):
    tag = Tag(nome="Promoção", slug="promocao")
    db.add(tag)
    db.commit()
    p = make_product()
    make_product()
    db.add(ProductTag(product_id=p.id, tag_id=tag.id))
    db.commit()

    assert [t["slug"] for t in client.get("/api/tags").json()] == ["promocao"]
    assert [x["id"] for x in client.get("/api/tags/promocao/products").json()] == [p.id]
    assert [x["id"] for x in client.get("/api/products?tag=promocao").json()] == [p.id]
    assert client.get("/api/tags/nada/products").status_code == 404


def test_seed_is_idempotent(client, db):
    from eliteshop.seed import SAMPLE_PRODUCTS, seed_products

    assert seed_products(db) == len(SAMPLE_PRODUCTS)
    assert seed_products(db) == 0

    products = client.get("/api/products").json()
    assert len(products) == len(SAMPLE_PRODUCTS)
    slugs = {c["slug"] for c in client.get("/api/categories").json()}
    assert slugs == {"smartphones", "laptops", "tablets", "audio", "games"}
    switch = next(p for p in products if p["marca"] == "Nintendo")
    assert client.get(f"/api/products/{switch['id']}").json()["current_stock"] == 3
