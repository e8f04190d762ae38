# eliteshop/routers/cart.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..auth import get_current_user
from ..database import get_db
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=List[schemas.CartItemWithProductOut])
def get_cart(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_cart_items(db, current.id)


@router.post("", response_model=schemas.CartItemOut, status_code=201)
def add_to_cart(
    payload: schemas.CartItemIn,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return storage.add_to_cart(db, current.id, payload.product_id, payload.quantidade)
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        logger.exception("Falha ao adicionar produto %s ao carrinho", payload.product_id)
        raise HTTPException(status_code=400, detail="Falha ao adicionar item ao carrinho")


@router.put("/{item_id}", response_model=schemas.CartItemOut)
def update_cart_item(
    item_id: int,
    payload: schemas.CartItemPatch,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.update_cart_item_quantity(db, current.id, item_id, payload.quantidade)


@router.delete("/{item_id}", status_code=204)
def remove_cart_item(item_id: int, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    storage.remove_from_cart(db, current.id, item_id)
    return Response(status_code=204)


@router.delete("", status_code=204)
def clear_cart(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    storage.clear_cart(db, current.id)
    return Response(status_code=204)
