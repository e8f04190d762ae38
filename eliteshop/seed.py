# eliteshop/seed.py
"""Catálogo inicial. Uso: python -m eliteshop.seed"""
import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from .database import Base, SessionLocal, engine
from .models import Category, Product, ProductStock
from .storage import slugify

logger = logging.getLogger(__name__)

IMG = "https://images.unsplash.com/{}?w=500&h=500&fit=crop"

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "nome": "iPhone 15 Pro",
        "descricao": "Smartphone Apple iPhone 15 Pro com chip A17 Pro, câmera de 48MP e tela de 6.1 polegadas",
        "preco": "8999.00", "preco_anterior": "9999.00",
        "image_url": IMG.format("photo-1592899677977-9c10ca588bbd"),
        "categoria": "Smartphones", "marca": "Apple",
        "avaliacao": "4.8", "total_avaliacoes": 1250, "vendas": 850, "desconto": 10,
        "is_featured": True, "estoque": 25,
    },
    {
        "nome": "Samsung Galaxy S24 Ultra",
        "descricao": "Smartphone Samsung Galaxy S24 Ultra com S Pen, câmera de 200MP e tela de 6.8 polegadas",
        "preco": "7999.00", "preco_anterior": "8999.00",
        "image_url": IMG.format("photo-1610945265064-0e34e5519bbf"),
        "categoria": "Smartphones", "marca": "Samsung",
        "avaliacao": "4.7", "total_avaliacoes": 980, "vendas": 650, "desconto": 11,
        "is_featured": True, "estoque": 18,
    },
    {
        "nome": "MacBook Air M3",
        "descricao": "Notebook Apple MacBook Air 13 polegadas com chip M3, 8GB RAM e 256GB SSD",
        "preco": "12999.00", "preco_anterior": "14999.00",
        "image_url": IMG.format("photo-1541807084-5c52b6b3adef"),
        "categoria": "Laptops", "marca": "Apple",
        "avaliacao": "4.9", "total_avaliacoes": 750, "vendas": 420, "desconto": 13,
        "is_featured": True, "estoque": 12,
    },
    {
        "nome": "Dell XPS 13",
        "descricao": "Notebook Dell XPS 13 com processador Intel Core i7, 16GB RAM e 512GB SSD",
        "preco": "8999.00", "preco_anterior": "10999.00",
        "image_url": IMG.format("photo-1496181133206-80ce9b88a853"),
        "categoria": "Laptops", "marca": "Dell",
        "avaliacao": "4.6", "total_avaliacoes": 620, "vendas": 380, "desconto": 18,
        "is_featured": False, "estoque": 8,
    },
    {
        "nome": "iPad Pro 12.9",
        "descricao": "Tablet Apple iPad Pro 12.9 polegadas com chip M2 e tela Liquid Retina XDR",
        "preco": "6999.00", "preco_anterior": "7999.00",
        "image_url": IMG.format("photo-1544244015-0df4b3ffc6b0"),
        "categoria": "Tablets", "marca": "Apple",
        "avaliacao": "4.8", "total_avaliacoes": 540, "vendas": 320, "desconto": 12,
        "is_featured": True, "estoque": 15,
    },
    {
        "nome": "Samsung Galaxy Tab S9",
        "descricao": "Tablet Samsung Galaxy Tab S9 com tela AMOLED de 11 polegadas e S Pen inclusa",
        "preco": "4999.00", "preco_anterior": "5999.00",
        "image_url": IMG.format("photo-1585790050230-5dd28404ccb9"),
        "categoria": "Tablets", "marca": "Samsung",
        "avaliacao": "4.5", "total_avaliacoes": 380, "vendas": 240, "desconto": 17,
        "is_featured": False, "estoque": 22,
    },
    {
        "nome": "AirPods Pro 2",
        "descricao": "Fones de ouvido Apple AirPods Pro 2 com cancelamento ativo de ruído",
        "preco": "1799.00", "preco_anterior": "2199.00",
        "image_url": IMG.format("photo-1600294037681-c80b4cb5b434"),
        "categoria": "Áudio", "marca": "Apple",
        "avaliacao": "4.7", "total_avaliacoes": 1850, "vendas": 1200, "desconto": 18,
        "is_featured": True, "estoque": 45,
    },
    {
        "nome": "Sony WH-1000XM5",
        "descricao": "Headphone Sony WH-1000XM5 com cancelamento de ruído líder da categoria",
        "preco": "1999.00", "preco_anterior": "2499.00",
        "image_url": IMG.format("photo-1618366712010-f4ae9c647dcb"),
        "categoria": "Áudio", "marca": "Sony",
        "avaliacao": "4.6", "total_avaliacoes": 920, "vendas": 680, "desconto": 20,
        "is_featured": True, "estoque": 35,
    },
    {
        "nome": "Nintendo Switch OLED",
        "descricao": "Console Nintendo Switch modelo OLED com tela de 7 polegadas",
        "preco": "2299.00", "preco_anterior": "2599.00",
        "image_url": IMG.format("photo-1578303512597-81e6cc155b3e"),
        "categoria": "Games", "marca": "Nintendo",
        "avaliacao": "4.8", "total_avaliacoes": 2100, "vendas": 1550, "desconto": 12,
        "is_featured": True, "estoque": 3,
    },
]


def _category_for(db: Session, nome: str, cache: Dict[str, Category]) -> Category:
    slug = slugify(nome)
    if slug not in cache:
        cat = db.query(Category).filter(Category.slug == slug).first()
        if cat is None:
            cat = Category(nome=nome, slug=slug, ordem=len(cache))
            db.add(cat)
            db.flush()
        cache[slug] = cat
    return cache[slug]


def seed_products(db: Session) -> int:
    count = db.query(func.count(Product.id)).scalar() or 0
    if count > 0:
        logger.info("Banco já possui %s produtos, seed ignorado", count)
        return 0

    logger.info("Populando banco com produtos iniciais...")
    cache: Dict[str, Category] = {}
    for data in SAMPLE_PRODUCTS:
        cat = _category_for(db, data["categoria"], cache)
        product = Product(
            nome=data["nome"],
            slug=slugify(data["nome"]),
            descricao=data["descricao"],
            preco=Decimal(data["preco"]),
            preco_anterior=Decimal(data["preco_anterior"]),
            image_url=data["image_url"],
            category_id=cat.id,
            categoria=data["categoria"],
            marca=data["marca"],
            avaliacao=Decimal(data["avaliacao"]),
            total_avaliacoes=data["total_avaliacoes"],
            vendas=data["vendas"],
            desconto=data["desconto"],
            is_featured=data["is_featured"],
            status="publicado",
            estoque=data["estoque"],
        )
        product.stock.append(ProductStock(quantidade=data["estoque"]))
        db.add(product)
    db.commit()
    logger.info("%s produtos criados", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_products(db)


if __name__ == "__main__":
    main()
