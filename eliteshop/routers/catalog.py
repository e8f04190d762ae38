# eliteshop/routers/catalog.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..database import get_db

router = APIRouter(prefix="/api", tags=["catalog"])

# -----------------------------------------------------------------------------
# Produtos (público)
# -----------------------------------------------------------------------------
@router.get("/products", response_model=List[schemas.ProductOut])
def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    db: Session = Depends(get_db),
):
    return storage.list_products(db, q=q, category=category, tag=tag, min_price=min_price, max_price=max_price)

# rotas fixas antes de /products/{pid}
@router.get("/products/bestsellers", response_model=List[schemas.ProductOut])
def bestsellers(limit: Optional[int] = None, db: Session = Depends(get_db)):
    return storage.get_bestsellers(db, storage.bounded_limit(limit, default=8))

@router.get("/products/featured", response_model=List[schemas.ProductOut])
def featured(limit: Optional[int] = None, db: Session = Depends(get_db)):
    return storage.get_featured(db, storage.bounded_limit(limit, default=8))

@router.get("/products/{pid}", response_model=schemas.ProductDetailOut)
def get_product(pid: int, db: Session = Depends(get_db)):
    return storage.get_product_or_404(db, pid)

@router.get("/products/{pid}/related", response_model=List[schemas.ProductOut])
def related_products(pid: int, limit: Optional[int] = None, db: Session = Depends(get_db)):
    product = storage.get_product_or_404(db, pid)
    return storage.get_related_products(db, product, storage.bounded_limit(limit, default=6))

@router.get("/products/{pid}/images", response_model=List[schemas.ProductImageOut])
def product_images(pid: int, db: Session = Depends(get_db)):
    return storage.list_images(db, storage.get_product_or_404(db, pid))

# -----------------------------------------------------------------------------
# Categorias / tags (público)
# -----------------------------------------------------------------------------
@router.get("/categories", response_model=List[schemas.CategoryListOut])
def list_categories(db: Session = Depends(get_db)):
    return [
        schemas.CategoryListOut.model_validate(cat).model_copy(update={"product_count": count})
        for cat, count in storage.list_categories(db)
    ]

@router.get("/categories/{cid}", response_model=schemas.CategoryDetailOut)
def get_category(cid: int, db: Session = Depends(get_db)):
    return storage.get_category_or_404(db, cid)

@router.get("/tags", response_model=List[schemas.TagOut])
def list_tags(db: Session = Depends(get_db)):
    return storage.list_tags(db)

@router.get("/tags/{slug}/products", response_model=List[schemas.ProductOut])
def tag_products(slug: str, db: Session = Depends(get_db)):
    return storage.products_by_tag(db, slug)
