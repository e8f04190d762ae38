# eliteshop/models.py
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

ROLES = ("user", "admin", "super_admin")
PRODUCT_STATUSES = ("rascunho", "publicado", "inativo")
DEFAULT_MIN_STOCK = 5


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    nome = Column(String(255), nullable=False)
    role = Column(String(50), default="user", nullable=False)   # user | admin | super_admin
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    cart_items = relationship("CartItem", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    descricao = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    imagem_url = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    ordem = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", order_by="Category.ordem")
    products = relationship("Product", back_populates="category")

    __table_args__ = (
        Index("categories_parent_idx", "parent_id"),
        Index("categories_active_idx", "is_active"),
    )


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    cor = Column(String(7), default="#3B82F6")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    product_tags = relationship("ProductTag", back_populates="tag", cascade="all, delete-orphan")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    descricao = Column(Text, nullable=False)
    descricao_rica = Column(Text, nullable=True)
    sku = Column(String(100), unique=True, nullable=True)
    preco = Column(Numeric(10, 2), nullable=False)
    preco_promocional = Column(Numeric(10, 2), nullable=True)
    preco_anterior = Column(Numeric(10, 2), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    marca = Column(String(100), nullable=False)
    avaliacao = Column(Numeric(2, 1), default=5, nullable=False)
    total_avaliacoes = Column(Integer, default=0, nullable=False)
    vendas = Column(Integer, default=0, nullable=False)
    desconto = Column(Integer, default=0)
    is_featured = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="rascunho", nullable=False)   # rascunho, publicado, inativo
    peso = Column(Numeric(8, 3), nullable=True)                       # kg
    dimensoes = Column(Text, nullable=True)                           # JSON {comprimento, largura, altura}
    estoque_minimo = Column(Integer, default=DEFAULT_MIN_STOCK, nullable=True)
    permitir_venda_sem_estoque = Column(Boolean, default=False)

    # ===== Campos legados =====
    image_url = Column(Text, default="", nullable=False)
    categoria = Column(String(100), default="", nullable=False)
    estoque = Column(Integer, default=0, nullable=False)   # espelho de product_stock

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductImage.ordem",
    )
    stock = relationship("ProductStock", back_populates="product", cascade="all, delete-orphan")
    product_tags = relationship("ProductTag", back_populates="product", cascade="all, delete-orphan")
    price_history = relationship("PriceHistory", back_populates="product", cascade="all, delete-orphan")
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        Index("products_category_idx", "category_id"),
        Index("products_marca_idx", "marca"),
        Index("products_avaliacao_idx", "avaliacao"),
        Index("products_featured_idx", "is_featured"),
        Index("products_status_idx", "status"),
        Index("products_vendas_idx", "vendas"),
    )

    @property
    def tags(self):
        return [pt.tag for pt in self.product_tags]

    @property
    def current_stock(self) -> int:
        # soma por localização; sem linhas de estoque vale o campo legado
        if self.stock:
            return sum(s.quantidade for s in self.stock)
        return self.estoque or 0


class ProductTag(Base):
    __tablename__ = "product_tags"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    product = relationship("Product", back_populates="product_tags")
    tag = relationship("Tag", back_populates="product_tags")

    __table_args__ = (
        UniqueConstraint("product_id", "tag_id", name="product_tags_unique"),
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    url = Column(Text, nullable=False)
    alt_text = Column(String(255), nullable=True)
    ordem = Column(Integer, default=0, nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    product = relationship("Product", back_populates="images")

    __table_args__ = (
        Index("product_images_product_idx", "product_id"),
    )


class ProductStock(Base):
    __tablename__ = "product_stock"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantidade = Column(Integer, default=0, nullable=False)
    quantidade_reservada = Column(Integer, default=0, nullable=False)
    localizacao = Column(String(100), nullable=True)   # depósito
    lote = Column(String(100), nullable=True)
    data_validade = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="stock")

    __table_args__ = (
        Index("product_stock_product_idx", "product_id"),
        Index("product_stock_localizacao_idx", "localizacao"),
    )


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    preco_anterior = Column(Numeric(10, 2), nullable=True)
    preco_novo = Column(Numeric(10, 2), nullable=False)
    motivo = Column(String(255), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    product = relationship("Product", back_populates="price_history")


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="favorites")
    product = relationship("Product", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="favorites_user_product_unique"),
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantidade = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="cart_items")
    product = relationship("Product", back_populates="cart_items")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(50), default="PROCESSANDO", nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantidade = Column(Integer, nullable=False)
    preco = Column(Numeric(10, 2), nullable=False)   # preço no momento da compra

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class StoreSetting(Base):
    __tablename__ = "store_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)   # JSON
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
