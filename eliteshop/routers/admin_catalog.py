# eliteshop/routers/admin_catalog.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..auth import require_permission
from ..database import get_db
from ..models import User

router = APIRouter(prefix="/api/admin", tags=["admin-catalog"])

can_products = require_permission("manage_products")
can_stock = require_permission("manage_stock")
can_categories = require_permission("manage_categories")
can_tags = require_permission("manage_tags")

# -----------------------------------------------------------------------------
# Produtos
# -----------------------------------------------------------------------------
@router.get("/products", response_model=List[schemas.ProductOut])
def admin_list_products(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    _: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    return storage.list_products(db, q=search, status=status, category=category, include_inactive=True)

@router.post("/products", response_model=schemas.ProductDetailOut, status_code=201)
def create_product(
    payload: schemas.ProductIn,
    current: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    return storage.create_product(db, payload, current)

@router.get("/products/{pid}", response_model=schemas.ProductDetailOut)
def admin_get_product(pid: int, _: User = Depends(can_products), db: Session = Depends(get_db)):
    return storage.get_product_or_404(db, pid)

@router.put("/products/{pid}", response_model=schemas.ProductDetailOut)
def update_product(
    pid: int,
    payload: schemas.ProductIn,
    current: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    product = storage.get_product_or_404(db, pid)
    return storage.update_product(db, product, payload, current)

@router.delete("/products/{pid}", status_code=204)
def delete_product(pid: int, _: User = Depends(can_products), db: Session = Depends(get_db)):
    storage.delete_product(db, storage.get_product_or_404(db, pid))
    return Response(status_code=204)

@router.put("/products/{pid}/tags", response_model=List[schemas.TagOut])
def set_product_tags(
    pid: int,
    payload: schemas.ProductTagsIn,
    _: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    return storage.set_product_tags(db, storage.get_product_or_404(db, pid), payload.tag_ids)

@router.get("/products/{pid}/price-history", response_model=List[schemas.PriceHistoryOut])
def price_history(pid: int, _: User = Depends(can_products), db: Session = Depends(get_db)):
    return storage.get_price_history(db, storage.get_product_or_404(db, pid))

# -----------------------------------------------------------------------------
# Imagens
# -----------------------------------------------------------------------------
@router.post("/products/{pid}/images", response_model=schemas.ProductImageOut, status_code=201)
def add_image(
    pid: int,
    payload: schemas.ProductImageIn,
    _: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    return storage.add_image(db, storage.get_product_or_404(db, pid), payload)

# reorder antes de /images/{image_id}
@router.put("/products/{pid}/images/reorder", response_model=List[schemas.ProductImageOut])
def reorder_images(
    pid: int,
    payload: schemas.ImageReorderIn,
    _: User = Depends(can_products),
    db: Session = Depends(get_db),
):
    return storage.reorder_images(db, storage.get_product_or_404(db, pid), payload.image_orders)

@router.put("/products/{pid}/images/{image_id}/primary", response_model=schemas.ProductImageOut)
def set_primary_image(pid: int, image_id: int, _: User = Depends(can_products), db: Session = Depends(get_db)):
    product = storage.get_product_or_404(db, pid)
    return storage.set_primary_image(db, product, storage.get_image_or_404(db, product, image_id))

@router.delete("/products/{pid}/images/{image_id}", status_code=204)
def delete_image(pid: int, image_id: int, _: User = Depends(can_products), db: Session = Depends(get_db)):
    product = storage.get_product_or_404(db, pid)
    storage.delete_image(db, product, storage.get_image_or_404(db, product, image_id))
    return Response(status_code=204)

# -----------------------------------------------------------------------------
# Estoque
# -----------------------------------------------------------------------------
@router.get("/products/{pid}/stock", response_model=List[schemas.ProductStockOut])
def product_stock(pid: int, _: User = Depends(can_stock), db: Session = Depends(get_db)):
    return storage.list_stock(db, storage.get_product_or_404(db, pid))

@router.put("/products/{pid}/stock", response_model=schemas.ProductStockOut)
def update_stock(
    pid: int,
    payload: schemas.StockUpdateIn,
    _: User = Depends(can_stock),
    db: Session = Depends(get_db),
):
    product = storage.get_product_or_404(db, pid)
    return storage.update_stock(db, product, payload.quantidade, payload.localizacao)

@router.get("/stock/alerts", response_model=List[schemas.StockAlertOut])
def stock_alerts(limit: int = 20, _: User = Depends(can_stock), db: Session = Depends(get_db)):
    return storage.get_stock_alerts(db, max(1, limit))

@router.get("/stock/summary", response_model=schemas.StockSummaryOut)
def stock_summary(_: User = Depends(can_stock), db: Session = Depends(get_db)):
    return storage.get_stock_summary(db)

# -----------------------------------------------------------------------------
# Categorias
# -----------------------------------------------------------------------------
@router.get("/categories", response_model=List[schemas.CategoryListOut])
def admin_list_categories(_: User = Depends(can_categories), db: Session = Depends(get_db)):
    return [
        schemas.CategoryListOut.model_validate(cat).model_copy(update={"product_count": count})
        for cat, count in storage.list_categories(db, include_inactive=True)
    ]

@router.post("/categories", response_model=schemas.CategoryOut, status_code=201)
def create_category(payload: schemas.CategoryIn, _: User = Depends(can_categories), db: Session = Depends(get_db)):
    return storage.create_category(db, payload)

@router.put("/categories/{cid}", response_model=schemas.CategoryOut)
def update_category(
    cid: int,
    payload: schemas.CategoryIn,
    _: User = Depends(can_categories),
    db: Session = Depends(get_db),
):
    return storage.update_category(db, storage.get_category_or_404(db, cid), payload)

@router.delete("/categories/{cid}", status_code=204)
def delete_category(cid: int, _: User = Depends(can_categories), db: Session = Depends(get_db)):
    storage.delete_category(db, storage.get_category_or_404(db, cid))
    return Response(status_code=204)

# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------
@router.get("/tags", response_model=List[schemas.TagOut])
def admin_list_tags(_: User = Depends(can_tags), db: Session = Depends(get_db)):
    return storage.list_tags(db, include_inactive=True)

@router.post("/tags", response_model=schemas.TagOut, status_code=201)
def create_tag(payload: schemas.TagIn, _: User = Depends(can_tags), db: Session = Depends(get_db)):
    return storage.save_tag(db, payload)

@router.put("/tags/{tid}", response_model=schemas.TagOut)
def update_tag(tid: int, payload: schemas.TagIn, _: User = Depends(can_tags), db: Session = Depends(get_db)):
    return storage.save_tag(db, payload, storage.get_tag_or_404(db, tid))

@router.delete("/tags/{tid}", status_code=204)
def delete_tag(tid: int, _: User = Depends(can_tags), db: Session = Depends(get_db)):
    storage.delete_tag(db, storage.get_tag_or_404(db, tid))
    return Response(status_code=204)
