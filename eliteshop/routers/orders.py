# eliteshop/routers/orders.py
import asyncio
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..auth import get_current_user
from ..config import PAYMENT_DELAY_SECONDS
from ..database import get_db
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orders"])


async def simulate_payment(order_id: int) -> None:
    # sem gateway real: apenas registra a confirmação após um atraso
    await asyncio.sleep(PAYMENT_DELAY_SECONDS)
    logger.info("Pagamento processado para o pedido %s", order_id)


@router.post("/checkout", response_model=schemas.CheckoutOut, status_code=201)
def create_checkout(
    background: BackgroundTasks,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        order = storage.checkout(db, current)
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        logger.exception("Checkout falhou para o usuário %s", current.id)
        raise HTTPException(status_code=500, detail="Falha ao processar o checkout")

    background.add_task(simulate_payment, order.id)
    return schemas.CheckoutOut(
        order=schemas.OrderWithItemsOut.model_validate(order),
        message="Pedido criado com sucesso. O pagamento está sendo processado.",
    )


@router.get("/orders", response_model=List[schemas.OrderWithItemsOut])
def my_orders(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_orders_by_user(db, current.id)


@router.get("/orders/{order_id}", response_model=schemas.OrderWithItemsOut)
def get_order(order_id: int, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_order_for_user(db, current.id, order_id)
