# eliteshop/routers/favorites.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..auth import get_current_user
from ..database import get_db
from ..models import User

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.get("", response_model=List[schemas.FavoriteOut])
def list_favorites(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.list_favorites(db, current.id)


@router.post("/{product_id}", response_model=schemas.FavoriteOut, status_code=201)
def add_favorite(product_id: int, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.add_favorite(db, current.id, product_id)


@router.delete("/{product_id}", status_code=204)
def remove_favorite(product_id: int, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    storage.remove_favorite(db, current.id, product_id)
    return Response(status_code=204)
