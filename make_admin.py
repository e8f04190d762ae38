# make_admin.py
import sys

from eliteshop.database import SessionLocal
from eliteshop.models import ROLES, User

EMAIL = (sys.argv[1] if len(sys.argv) > 1 else "").strip().lower()
ROLE = (sys.argv[2] if len(sys.argv) > 2 else "admin").strip()
if not EMAIL or ROLE not in ROLES:
    print("Uso: python make_admin.py email@dominio.com [user|admin|super_admin]"); raise SystemExit(1)

with SessionLocal() as db:
    user = db.query(User).filter(User.email == EMAIL).first()
    if not user:
        print("Nenhum usuário com esse e-mail."); raise SystemExit(2)
    user.role = ROLE
    db.commit()
print("✅ Papel atualizado:", EMAIL, "->", ROLE)
