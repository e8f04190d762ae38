# eliteshop/routers/admin.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .. import schemas, storage
from ..auth import require_permission
from ..database import get_db
from ..models import User

router = APIRouter(prefix="/api/admin", tags=["admin"])

# -----------------------------------------------------------------------------
# ADMIN · USUÁRIOS
# -----------------------------------------------------------------------------
@router.get("/users", response_model=List[schemas.UserOut])
def admin_list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    _: User = Depends(require_permission("manage_users")),
    db: Session = Depends(get_db),
):
    return storage.list_users(db, search=search, role=role)

@router.put("/users/{uid}", response_model=schemas.UserOut)
def admin_update_user(
    uid: int,
    payload: schemas.UserAdminPatch,
    current: User = Depends(require_permission("manage_users")),
    db: Session = Depends(get_db),
):
    u = storage.get_user_or_404(db, uid)
    if payload.role is not None and payload.role != u.role:
        if u.id == current.id:
            raise HTTPException(status_code=400, detail="Não é possível alterar o próprio papel")
        if "super_admin" in (payload.role, u.role) and current.role != "super_admin":
            raise HTTPException(status_code=403, detail="Apenas super administradores gerenciam esse papel")
        u.role = payload.role
    if payload.is_active is not None:
        if u.id == current.id and not payload.is_active:
            raise HTTPException(status_code=400, detail="Não é possível desativar a própria conta")
        if u.role == "super_admin" and current.role != "super_admin":
            raise HTTPException(status_code=403, detail="Apenas super administradores gerenciam esse papel")
        u.is_active = payload.is_active
    db.commit()
    db.refresh(u)
    return u

@router.delete("/users/{uid}", status_code=204)
def admin_delete_user(
    uid: int,
    current: User = Depends(require_permission("manage_users")),
    db: Session = Depends(get_db),
):
    u = storage.get_user_or_404(db, uid)
    if u.id == current.id:
        raise HTTPException(status_code=400, detail="Não é possível excluir a própria conta")
    if u.role == "super_admin" and current.role != "super_admin":
        raise HTTPException(status_code=403, detail="Apenas super administradores gerenciam esse papel")
    db.delete(u)
    db.commit()
    return Response(status_code=204)

# -----------------------------------------------------------------------------
# ADMIN · PEDIDOS / PAINEL / CONFIGURAÇÕES
# -----------------------------------------------------------------------------
@router.get("/orders", response_model=List[schemas.OrderWithItemsOut])
def admin_list_orders(
    status: Optional[str] = None,
    _: User = Depends(require_permission("manage_orders")),
    db: Session = Depends(get_db),
):
    return storage.list_all_orders(db, status=status)

@router.get("/dashboard", response_model=schemas.DashboardOut)
def dashboard(_: User = Depends(require_permission("view_dashboard")), db: Session = Depends(get_db)):
    return storage.get_dashboard_stats(db)

@router.get("/settings", response_model=schemas.SettingsIn)
def get_settings(_: User = Depends(require_permission("manage_settings")), db: Session = Depends(get_db)):
    return storage.get_settings(db)

@router.put("/settings", response_model=schemas.SettingsIn)
def update_settings(
    payload: schemas.SettingsIn,
    _: User = Depends(require_permission("manage_settings")),
    db: Session = Depends(get_db),
):
    return storage.save_settings(db, payload)
