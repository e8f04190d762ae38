# eliteshop/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

# -----------------------------------------------------------------------------
# Auth / usuários
# -----------------------------------------------------------------------------
class RegisterIn(BaseModel):
    nome: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

class LoginIn(BaseModel):
    email: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserOut(BaseModel):
    id: int
    nome: str
    email: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

class UserAdminPatch(BaseModel):
    role: Optional[str] = Field(None, pattern="^(user|admin|super_admin)$")
    is_active: Optional[bool] = None

# -----------------------------------------------------------------------------
# Categorias / tags
# -----------------------------------------------------------------------------
class CategoryIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    descricao: Optional[str] = Field(None, max_length=1000)
    parent_id: Optional[int] = None
    imagem_url: Optional[str] = None
    is_active: bool = True
    ordem: int = 0

class CategoryOut(BaseModel):
    id: int
    nome: str
    slug: str
    descricao: Optional[str] = None
    parent_id: Optional[int] = None
    imagem_url: Optional[str] = None
    is_active: bool
    ordem: Optional[int] = 0
    model_config = {"from_attributes": True}

class CategoryListOut(CategoryOut):
    product_count: int = 0

class CategoryDetailOut(CategoryOut):
    parent: Optional[CategoryOut] = None
    children: List[CategoryOut] = []

class TagIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    cor: str = Field("#3B82F6", pattern=HEX_COLOR)
    is_active: bool = True

class TagOut(BaseModel):
    id: int
    nome: str
    slug: str
    cor: Optional[str] = None
    is_active: bool
    model_config = {"from_attributes": True}

class ProductTagsIn(BaseModel):
    tag_ids: List[int] = []

# -----------------------------------------------------------------------------
# Produtos
# -----------------------------------------------------------------------------
class ProductIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    descricao: str = Field(..., min_length=10)
    descricao_rica: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    preco: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    preco_promocional: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    preco_anterior: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    category_id: Optional[int] = None
    categoria: Optional[str] = Field(None, max_length=100)
    marca: str = Field(..., min_length=1, max_length=100)
    avaliacao: Decimal = Field(Decimal("5.0"), ge=0, le=5)
    total_avaliacoes: int = Field(0, ge=0)
    vendas: int = Field(0, ge=0)
    desconto: int = Field(0, ge=0, le=100)
    is_featured: bool = False
    status: str = Field("rascunho", pattern="^(rascunho|publicado|inativo)$")
    peso: Optional[Decimal] = Field(None, gt=0)
    dimensoes: Optional[str] = None
    estoque: int = Field(0, ge=0)
    estoque_minimo: Optional[int] = Field(5, ge=0)
    permitir_venda_sem_estoque: bool = False
    image_url: Optional[str] = ""
    motivo_preco: Optional[str] = Field(None, max_length=255)   # registrado no histórico de preços

    @field_validator("sku")
    @classmethod
    def _blank_sku(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None

class ProductOut(BaseModel):
    id: int
    nome: str
    slug: str
    descricao: str
    descricao_rica: Optional[str] = None
    sku: Optional[str] = None
    preco: Decimal
    preco_promocional: Optional[Decimal] = None
    preco_anterior: Optional[Decimal] = None
    category_id: Optional[int] = None
    categoria: str = ""
    marca: str
    avaliacao: Decimal
    total_avaliacoes: int
    vendas: int
    desconto: Optional[int] = 0
    is_featured: bool
    status: str
    peso: Optional[Decimal] = None
    dimensoes: Optional[str] = None
    estoque: int
    estoque_minimo: Optional[int] = None
    permitir_venda_sem_estoque: Optional[bool] = False
    image_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

class ProductImageIn(BaseModel):
    url: str = Field(..., pattern=r"^https?://")
    alt_text: Optional[str] = Field(None, max_length=255)
    ordem: int = Field(0, ge=0)
    is_primary: bool = False

class ProductImageOut(BaseModel):
    id: int
    product_id: int
    url: str
    alt_text: Optional[str] = None
    ordem: int
    is_primary: bool
    model_config = {"from_attributes": True}

class ImageOrder(BaseModel):
    id: int
    ordem: int = Field(..., ge=0)

class ImageReorderIn(BaseModel):
    image_orders: List[ImageOrder]

class ProductDetailOut(ProductOut):
    category: Optional[CategoryOut] = None
    images: List[ProductImageOut] = []
    tags: List[TagOut] = []
    current_stock: int = 0

class PriceHistoryOut(BaseModel):
    id: int
    preco_anterior: Optional[Decimal] = None
    preco_novo: Decimal
    motivo: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

# -----------------------------------------------------------------------------
# Estoque
# -----------------------------------------------------------------------------
class StockUpdateIn(BaseModel):
    # negativos são aceitos e levados a zero
    quantidade: int
    localizacao: Optional[str] = Field(None, max_length=100)

class ProductStockOut(BaseModel):
    id: int
    product_id: int
    quantidade: int
    quantidade_reservada: Optional[int] = 0
    localizacao: Optional[str] = None
    lote: Optional[str] = None
    model_config = {"from_attributes": True}

class StockAlertOut(BaseModel):
    product_id: int
    product_name: str
    current_stock: int
    minimum_stock: int

class StockSummaryOut(BaseModel):
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    total_value: Decimal

# -----------------------------------------------------------------------------
# Carrinho / pedidos / favoritos
# -----------------------------------------------------------------------------
class CartItemIn(BaseModel):
    product_id: int
    quantidade: int = Field(1, ge=1)

class CartItemPatch(BaseModel):
    quantidade: int = Field(..., ge=1)

class CartItemOut(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantidade: int
    model_config = {"from_attributes": True}

class CartItemWithProductOut(CartItemOut):
    product: ProductOut

class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantidade: int
    preco: Decimal
    product: Optional[ProductOut] = None
    model_config = {"from_attributes": True}

class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    total: Decimal
    created_at: Optional[datetime] = None
    model_config = {"from_attributes": True}

class OrderWithItemsOut(OrderOut):
    items: List[OrderItemOut] = []

class CheckoutOut(BaseModel):
    order: OrderWithItemsOut
    message: str

class FavoriteOut(BaseModel):
    id: int
    product_id: int
    product: ProductOut
    model_config = {"from_attributes": True}

# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
class DashboardOut(BaseModel):
    total_products: int
    total_users: int
    total_orders: int
    low_stock_products: int
    recent_products: List[ProductOut] = []
    stock_alerts: List[StockAlertOut] = []

class SettingsIn(BaseModel):
    site_name: str = Field("EliteShop", min_length=1)
    site_description: str = Field("Sua loja online premium", max_length=300)
    site_url: Optional[str] = Field(None, pattern=r"^(https?://.+)?$")
    smtp_host: Optional[str] = ""
    smtp_port: Optional[str] = "587"
    smtp_user: Optional[str] = ""
    smtp_from_email: Optional[EmailStr] = None
    require_email_verification: bool = False
    enable_two_factor: bool = False
    session_timeout: int = Field(60, ge=1, le=1440)   # minutos
    currency: str = Field("BRL", min_length=1)
    tax_rate: float = Field(0, ge=0, le=100)
    enable_inventory_tracking: bool = True
    low_stock_threshold: int = Field(5, ge=0)
    email_notifications: bool = True
    sms_notifications: bool = False
    push_notifications: bool = True
