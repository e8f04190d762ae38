# eliteshop/storage.py
"""
Consultas e regras de persistência da loja.

As rotas só validam entrada e formatam saída; tudo o que toca o banco
(ranking de relacionados, alertas de estoque, reconciliação do estoque legado,
carrinho e checkout) fica aqui.
"""
from __future__ import annotations

import json
import logging
import re
import unicodedata
from decimal import Decimal
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .models import (
    DEFAULT_MIN_STOCK,
    CartItem,
    Category,
    Favorite,
    Order,
    OrderItem,
    PriceHistory,
    Product,
    ProductImage,
    ProductStock,
    ProductTag,
    StoreSetting,
    Tag,
    User,
)
from . import schemas

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def slugify(text: str) -> str:
    norm = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    norm = re.sub(r"[^a-zA-Z0-9]+", "-", norm).strip("-").lower()
    return norm or "item"

def bounded_limit(raw: Optional[int], default: int, low: int = 1, high: int = 24) -> int:
    if raw is None:
        return default
    return max(low, min(high, raw))

def _ensure_unique(db: Session, model, column, value, detail: str, exclude_id: Optional[int] = None) -> None:
    if value is None:
        return
    qry = db.query(model).filter(column == value)
    if exclude_id is not None:
        qry = qry.filter(model.id != exclude_id)
    if qry.first():
        raise HTTPException(status_code=409, detail=detail)

def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)

def _min_stock():
    return func.coalesce(Product.estoque_minimo, DEFAULT_MIN_STOCK)

# -----------------------------------------------------------------------------
# Usuários
# -----------------------------------------------------------------------------
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == (email or "").strip().lower()).first()

def create_user(db: Session, nome: str, email: str, password_hash: str, role: str = "user") -> User:
    if get_user_by_email(db, email):
        raise HTTPException(status_code=409, detail="E-mail já cadastrado")
    user = User(nome=nome.strip(), email=email.strip().lower(), password_hash=password_hash, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def list_users(db: Session, search: Optional[str] = None, role: Optional[str] = None) -> List[User]:
    qry = db.query(User)
    if search:
        like = f"%{search.lower()}%"
        qry = qry.filter(or_(User.nome.ilike(like), User.email.ilike(like)))
    if role:
        qry = qry.filter(User.role == role)
    return qry.order_by(User.id.desc()).all()

def get_user_or_404(db: Session, uid: int) -> User:
    user = db.get(User, uid)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    return user

# -----------------------------------------------------------------------------
# Categorias
# -----------------------------------------------------------------------------
def list_categories(db: Session, include_inactive: bool = False):
    qry = (
        db.query(Category, func.count(Product.id))
        .outerjoin(Product, Product.category_id == Category.id)
        .group_by(Category.id)
    )
    if not include_inactive:
        qry = qry.filter(Category.is_active.is_(True))
    return qry.order_by(Category.ordem, Category.nome).all()

def get_category_or_404(db: Session, cid: int) -> Category:
    cat = db.get(Category, cid)
    if not cat:
        raise HTTPException(status_code=404, detail="Categoria não encontrada")
    return cat

def _check_parent(db: Session, category_id: Optional[int], parent_id: Optional[int]) -> None:
    if parent_id is None:
        return
    parent = db.get(Category, parent_id)
    if not parent:
        raise HTTPException(status_code=400, detail="Categoria pai não encontrada")
    # sobe a árvore a partir do pai; achar a própria categoria seria um ciclo
    node = parent
    while node is not None:
        if category_id is not None and node.id == category_id:
            raise HTTPException(status_code=400, detail="Categoria não pode ser descendente de si mesma")
        node = node.parent

def create_category(db: Session, payload: schemas.CategoryIn) -> Category:
    slug = slugify(payload.slug or payload.nome)
    _ensure_unique(db, Category, Category.slug, slug, "Slug de categoria já cadastrado")
    _check_parent(db, None, payload.parent_id)
    cat = Category(**payload.model_dump(exclude={"slug"}), slug=slug)
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat

def update_category(db: Session, cat: Category, payload: schemas.CategoryIn) -> Category:
    slug = slugify(payload.slug or payload.nome)
    _ensure_unique(db, Category, Category.slug, slug, "Slug de categoria já cadastrado", exclude_id=cat.id)
    _check_parent(db, cat.id, payload.parent_id)
    for key, value in payload.model_dump(exclude={"slug"}).items():
        setattr(cat, key, value)
    cat.slug = slug
    db.commit()
    db.refresh(cat)
    return cat

def delete_category(db: Session, cat: Category) -> None:
    if cat.children:
        raise HTTPException(status_code=400, detail="Categoria possui subcategorias")
    if cat.products:
        raise HTTPException(status_code=400, detail="Categoria possui produtos vinculados")
    db.delete(cat)
    db.commit()

# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------
def list_tags(db: Session, include_inactive: bool = False) -> List[Tag]:
    qry = db.query(Tag)
    if not include_inactive:
        qry = qry.filter(Tag.is_active.is_(True))
    return qry.order_by(Tag.nome).all()

def get_tag_or_404(db: Session, tid: int) -> Tag:
    tag = db.get(Tag, tid)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag não encontrada")
    return tag

def save_tag(db: Session, payload: schemas.TagIn, tag: Optional[Tag] = None) -> Tag:
    slug = slugify(payload.slug or payload.nome)
    exclude = tag.id if tag else None
    _ensure_unique(db, Tag, Tag.nome, payload.nome, "Tag já cadastrada", exclude_id=exclude)
    _ensure_unique(db, Tag, Tag.slug, slug, "Slug de tag já cadastrado", exclude_id=exclude)
    if tag is None:
        tag = Tag()
        db.add(tag)
    tag.nome = payload.nome
    tag.slug = slug
    tag.cor = payload.cor
    tag.is_active = payload.is_active
    db.commit()
    db.refresh(tag)
    return tag

def delete_tag(db: Session, tag: Tag) -> None:
    db.delete(tag)
    db.commit()

def set_product_tags(db: Session, product: Product, tag_ids: Iterable[int]) -> List[Tag]:
    wanted = set(tag_ids)
    found = {t.id for t in db.query(Tag).filter(Tag.id.in_(wanted)).all()} if wanted else set()
    missing = wanted - found
    if missing:
        raise HTTPException(status_code=400, detail=f"Tags inexistentes: {sorted(missing)}")
    current = {pt.tag_id: pt for pt in product.product_tags}
    for tag_id, link in current.items():
        if tag_id not in wanted:
            product.product_tags.remove(link)
    for tag_id in wanted - set(current):
        product.product_tags.append(ProductTag(tag_id=tag_id))
    db.commit()
    db.refresh(product)
    return product.tags

def products_by_tag(db: Session, slug: str) -> List[Product]:
    tag = db.query(Tag).filter(Tag.slug == slug).first()
    if not tag:
        raise HTTPException(status_code=404, detail="Tag não encontrada")
    return (
        db.query(Product)
        .join(ProductTag, ProductTag.product_id == Product.id)
        .filter(ProductTag.tag_id == tag.id, Product.status != "inativo")
        .order_by(Product.id)
        .all()
    )

# -----------------------------------------------------------------------------
# Produtos
# -----------------------------------------------------------------------------
def list_products(
    db: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    status: Optional[str] = None,
    include_inactive: bool = False,
) -> List[Product]:
    qry = db.query(Product)
    if not include_inactive:
        qry = qry.filter(Product.status != "inativo")
    if status:
        qry = qry.filter(Product.status == status)
    if q:
        like = f"%{q.lower()}%"
        qry = qry.filter(or_(Product.nome.ilike(like), Product.marca.ilike(like), Product.sku.ilike(like)))
    if category:
        qry = qry.outerjoin(Category, Product.category_id == Category.id).filter(
            or_(Category.slug == category, func.lower(Product.categoria) == category.lower())
        )
    if tag:
        qry = (
            qry.join(ProductTag, ProductTag.product_id == Product.id)
            .join(Tag, Tag.id == ProductTag.tag_id)
            .filter(Tag.slug == tag)
        )
    if min_price is not None:
        qry = qry.filter(Product.preco >= min_price)
    if max_price is not None:
        qry = qry.filter(Product.preco <= max_price)
    return qry.order_by(Product.id).all()

def get_product_or_404(db: Session, pid: int) -> Product:
    product = db.get(Product, pid)
    if not product:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return product

def get_related_products(db: Session, product: Product, limit: int = 6) -> List[Product]:
    qry = db.query(Product).filter(Product.id != product.id, Product.status != "inativo")
    if product.category_id is not None:
        qry = qry.filter(Product.category_id == product.category_id)
    elif product.categoria:
        qry = qry.filter(Product.categoria == product.categoria)
    else:
        return []
    return (
        qry.order_by(Product.avaliacao.desc(), Product.vendas.desc(), Product.id)
        .limit(limit)
        .all()
    )

def get_bestsellers(db: Session, limit: int = 8) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.status != "inativo")
        .order_by(Product.vendas.desc(), Product.id)
        .limit(limit)
        .all()
    )

def get_featured(db: Session, limit: int = 8) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.is_featured.is_(True), Product.status != "inativo")
        .order_by(Product.avaliacao.desc(), Product.vendas.desc(), Product.id)
        .limit(limit)
        .all()
    )

def _apply_category(db: Session, product: Product, payload: schemas.ProductIn) -> None:
    product.category_id = payload.category_id
    if payload.category_id is None:
        product.categoria = payload.categoria or ""
        return
    cat = db.get(Category, payload.category_id)
    if not cat:
        raise HTTPException(status_code=400, detail="Categoria não encontrada")
    product.categoria = payload.categoria or cat.nome

_PRODUCT_SKIP = {"slug", "category_id", "categoria", "estoque", "motivo_preco", "image_url"}

def create_product(db: Session, payload: schemas.ProductIn, user: Optional[User] = None) -> Product:
    slug = slugify(payload.slug or payload.nome)
    _ensure_unique(db, Product, Product.slug, slug, "Slug já cadastrado.")
    _ensure_unique(db, Product, Product.sku, payload.sku, "SKU já cadastrado.")

    product = Product(**payload.model_dump(exclude=_PRODUCT_SKIP), slug=slug, image_url=payload.image_url or "")
    _apply_category(db, product, payload)
    db.add(product)
    db.flush()
    db.add(PriceHistory(
        product_id=product.id,
        preco_anterior=None,
        preco_novo=payload.preco,
        motivo=payload.motivo_preco or "Cadastro do produto",
        user_id=user.id if user else None,
    ))
    _upsert_stock(db, product, payload.estoque, None)
    db.commit()
    db.refresh(product)
    logger.info("Produto %s criado (slug=%s)", product.id, product.slug)
    return product

def update_product(db: Session, product: Product, payload: schemas.ProductIn, user: Optional[User] = None) -> Product:
    slug = slugify(payload.slug or payload.nome)
    _ensure_unique(db, Product, Product.slug, slug, "Slug já cadastrado em outro produto.", exclude_id=product.id)
    _ensure_unique(db, Product, Product.sku, payload.sku, "SKU já cadastrado em outro produto.", exclude_id=product.id)

    old_price = product.preco
    for key, value in payload.model_dump(exclude=_PRODUCT_SKIP).items():
        setattr(product, key, value)
    product.slug = slug
    _apply_category(db, product, payload)
    # a imagem principal manda no campo legado quando existe
    if not any(img.is_primary for img in product.images):
        product.image_url = payload.image_url or ""

    if old_price is None or _money(old_price) != _money(payload.preco):
        db.add(PriceHistory(
            product_id=product.id,
            preco_anterior=old_price,
            preco_novo=payload.preco,
            motivo=payload.motivo_preco,
            user_id=user.id if user else None,
        ))
    if payload.estoque != product.estoque:
        _upsert_stock(db, product, payload.estoque, None)
    db.commit()
    db.refresh(product)
    return product

def delete_product(db: Session, product: Product) -> None:
    if db.query(OrderItem).filter(OrderItem.product_id == product.id).first():
        raise HTTPException(status_code=400, detail="Produto possui pedidos; defina o status como inativo.")
    db.delete(product)
    db.commit()

def get_price_history(db: Session, product: Product) -> List[PriceHistory]:
    return (
        db.query(PriceHistory)
        .filter(PriceHistory.product_id == product.id)
        .order_by(PriceHistory.id.desc())
        .all()
    )

# -----------------------------------------------------------------------------
# Imagens
# -----------------------------------------------------------------------------
def _sync_primary_url(product: Product) -> None:
    primary = next((img for img in product.images if img.is_primary), None)
    if primary is not None:
        product.image_url = primary.url

def _mark_primary(product: Product, image: ProductImage) -> None:
    for img in product.images:
        img.is_primary = img is image
    _sync_primary_url(product)

def get_image_or_404(db: Session, product: Product, image_id: int) -> ProductImage:
    image = db.get(ProductImage, image_id)
    if not image or image.product_id != product.id:
        raise HTTPException(status_code=404, detail="Imagem não encontrada")
    return image

def add_image(db: Session, product: Product, payload: schemas.ProductImageIn) -> ProductImage:
    image = ProductImage(url=payload.url, alt_text=payload.alt_text, ordem=payload.ordem, is_primary=False)
    product.images.append(image)
    db.flush()
    # primeira imagem vira principal
    if payload.is_primary or len(product.images) == 1:
        _mark_primary(product, image)
    db.commit()
    db.refresh(image)
    return image

def set_primary_image(db: Session, product: Product, image: ProductImage) -> ProductImage:
    _mark_primary(product, image)
    db.commit()
    db.refresh(image)
    return image

def delete_image(db: Session, product: Product, image: ProductImage) -> None:
    was_primary = image.is_primary
    product.images.remove(image)
    db.flush()
    if was_primary:
        if product.images:
            successor = min(product.images, key=lambda img: (img.ordem, img.id))
            _mark_primary(product, successor)
        else:
            product.image_url = ""
    db.commit()

def reorder_images(db: Session, product: Product, orders: List[schemas.ImageOrder]) -> List[ProductImage]:
    by_id = {img.id: img for img in product.images}
    unknown = [o.id for o in orders if o.id not in by_id]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Imagens não pertencem ao produto: {unknown}")
    for o in orders:
        by_id[o.id].ordem = o.ordem
    db.commit()
    return list_images(db, product)

def list_images(db: Session, product: Product) -> List[ProductImage]:
    return (
        db.query(ProductImage)
        .filter(ProductImage.product_id == product.id)
        .order_by(ProductImage.ordem, ProductImage.id)
        .all()
    )

# -----------------------------------------------------------------------------
# Estoque
# -----------------------------------------------------------------------------
def _upsert_stock(db: Session, product: Product, quantidade: int, localizacao: Optional[str]) -> ProductStock:
    qty = max(0, int(quantidade))
    qry = db.query(ProductStock).filter(ProductStock.product_id == product.id)
    if localizacao is None:
        qry = qry.filter(ProductStock.localizacao.is_(None))
    else:
        qry = qry.filter(ProductStock.localizacao == localizacao)
    row = qry.first()
    if row is None:
        row = ProductStock(quantidade=qty, localizacao=localizacao)
        product.stock.append(row)
    else:
        row.quantidade = qty
    # espelha no campo legado sempre
    product.estoque = qty
    return row

def update_stock(db: Session, product: Product, quantidade: int, localizacao: Optional[str] = None) -> ProductStock:
    row = _upsert_stock(db, product, quantidade, localizacao)
    db.commit()
    db.refresh(row)
    logger.info("Estoque do produto %s atualizado para %s (local=%s)", product.id, row.quantidade, localizacao)
    return row

def list_stock(db: Session, product: Product) -> List[ProductStock]:
    return db.query(ProductStock).filter(ProductStock.product_id == product.id).order_by(ProductStock.id).all()

def get_stock_alerts(db: Session, limit: int = 20) -> List[schemas.StockAlertOut]:
    minimum = _min_stock()
    rows = (
        db.query(Product.id, Product.nome, Product.estoque, minimum.label("minimo"))
        .filter(Product.estoque <= minimum)
        .order_by((Product.estoque - minimum).asc(), Product.id)
        .limit(limit)
        .all()
    )
    return [
        schemas.StockAlertOut(product_id=pid, product_name=nome, current_stock=estoque, minimum_stock=minimo)
        for pid, nome, estoque, minimo in rows
    ]

def count_low_stock(db: Session) -> int:
    return db.query(func.count(Product.id)).filter(Product.estoque <= _min_stock()).scalar() or 0

def get_stock_summary(db: Session) -> schemas.StockSummaryOut:
    minimum = _min_stock()
    total = db.query(func.count(Product.id)).scalar() or 0
    low = db.query(func.count(Product.id)).filter(Product.estoque > 0, Product.estoque <= minimum).scalar() or 0
    out = db.query(func.count(Product.id)).filter(Product.estoque <= 0).scalar() or 0
    value = db.query(func.sum(Product.preco * Product.estoque)).scalar()
    return schemas.StockSummaryOut(
        total_products=total,
        low_stock_count=low,
        out_of_stock_count=out,
        total_value=_money(value),
    )

# -----------------------------------------------------------------------------
# Carrinho
# -----------------------------------------------------------------------------
def get_cart_items(db: Session, user_id: int) -> List[CartItem]:
    return (
        db.query(CartItem)
        .join(Product, CartItem.product_id == Product.id)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id)
        .all()
    )

def add_to_cart(db: Session, user_id: int, product_id: int, quantidade: int = 1) -> CartItem:
    product = get_product_or_404(db, product_id)
    if product.status == "inativo":
        raise HTTPException(status_code=400, detail="Produto indisponível")
    qty = max(1, quantidade or 1)
    item = (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .first()
    )
    if item:
        item.quantidade = item.quantidade + qty
    else:
        item = CartItem(user_id=user_id, product_id=product_id, quantidade=qty)
        db.add(item)
    db.commit()
    db.refresh(item)
    return item

def _own_cart_item_or_404(db: Session, user_id: int, item_id: int) -> CartItem:
    item = db.get(CartItem, item_id)
    if not item or item.user_id != user_id:
        raise HTTPException(status_code=404, detail="Item do carrinho não encontrado")
    return item

def update_cart_item_quantity(db: Session, user_id: int, item_id: int, quantidade: int) -> CartItem:
    item = _own_cart_item_or_404(db, user_id, item_id)
    item.quantidade = quantidade
    db.commit()
    db.refresh(item)
    return item

def remove_from_cart(db: Session, user_id: int, item_id: int) -> None:
    item = _own_cart_item_or_404(db, user_id, item_id)
    db.delete(item)
    db.commit()

def clear_cart(db: Session, user_id: int, commit: bool = True) -> None:
    db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
    if commit:
        db.commit()

# -----------------------------------------------------------------------------
# Pedidos
# -----------------------------------------------------------------------------
def checkout(db: Session, user: User) -> Order:
    cart = get_cart_items(db, user.id)
    if not cart:
        raise HTTPException(status_code=400, detail="Carrinho vazio")

    total = sum((_money(it.product.preco) * it.quantidade for it in cart), Decimal("0"))
    order = Order(user_id=user.id, status="PROCESSANDO", total=_money(total))
    db.add(order)
    db.flush()

    for it in cart:
        order.items.append(OrderItem(
            product_id=it.product.id,
            quantidade=it.quantidade,
            preco=_money(it.product.preco),   # preço atual do produto
        ))

    clear_cart(db, user.id, commit=False)
    db.commit()
    db.refresh(order)
    logger.info("Pedido %s criado para usuário %s (total=%s, itens=%s)", order.id, user.id, order.total, len(cart))
    return order

def get_orders_by_user(db: Session, user_id: int) -> List[Order]:
    return db.query(Order).filter(Order.user_id == user_id).order_by(Order.id.desc()).all()

def get_order_for_user(db: Session, user_id: int, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if not order or order.user_id != user_id:
        raise HTTPException(status_code=404, detail="Pedido não encontrado")
    return order

def list_all_orders(db: Session, status: Optional[str] = None) -> List[Order]:
    qry = db.query(Order)
    if status:
        qry = qry.filter(Order.status == status)
    return qry.order_by(Order.id.desc()).all()

# -----------------------------------------------------------------------------
# Favoritos
# -----------------------------------------------------------------------------
def list_favorites(db: Session, user_id: int) -> List[Favorite]:
    return db.query(Favorite).filter(Favorite.user_id == user_id).order_by(Favorite.id).all()

def add_favorite(db: Session, user_id: int, product_id: int) -> Favorite:
    get_product_or_404(db, product_id)
    fav = db.query(Favorite).filter(Favorite.user_id == user_id, Favorite.product_id == product_id).first()
    if fav:
        return fav
    fav = Favorite(user_id=user_id, product_id=product_id)
    db.add(fav)
    db.commit()
    db.refresh(fav)
    return fav

def remove_favorite(db: Session, user_id: int, product_id: int) -> None:
    fav = db.query(Favorite).filter(Favorite.user_id == user_id, Favorite.product_id == product_id).first()
    if not fav:
        raise HTTPException(status_code=404, detail="Favorito não encontrado")
    db.delete(fav)
    db.commit()

# -----------------------------------------------------------------------------
# Painel / configurações
# -----------------------------------------------------------------------------
def get_dashboard_stats(db: Session) -> schemas.DashboardOut:
    recent = db.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(5).all()
    return schemas.DashboardOut(
        total_products=db.query(func.count(Product.id)).scalar() or 0,
        total_users=db.query(func.count(User.id)).scalar() or 0,
        total_orders=db.query(func.count(Order.id)).scalar() or 0,
        low_stock_products=count_low_stock(db),
        recent_products=[schemas.ProductOut.model_validate(p) for p in recent],
        stock_alerts=get_stock_alerts(db, limit=5),
    )

def get_settings(db: Session) -> schemas.SettingsIn:
    stored = {row.key: json.loads(row.value) for row in db.query(StoreSetting).all()}
    known = {k: v for k, v in stored.items() if k in schemas.SettingsIn.model_fields}
    return schemas.SettingsIn(**known)

def save_settings(db: Session, payload: schemas.SettingsIn) -> schemas.SettingsIn:
    for key, value in payload.model_dump(mode="json").items():
        row = db.get(StoreSetting, key)
        if row is None:
            db.add(StoreSetting(key=key, value=json.dumps(value)))
        else:
            row.value = json.dumps(value)
    db.commit()
    return get_settings(db)
