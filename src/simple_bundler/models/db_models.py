"""SQLAlchemy ORM models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from simple_bundler.models.pydantic_models import BundleHealth, ProductStatus


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a new random primary key."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Bundle(Base):
    """A merchant's bundle definition."""

    __tablename__ = "bundles"
    __table_args__ = (
        UniqueConstraint("shop", "parent_product_id", name="uq_bundle_shop_parent"),
        UniqueConstraint("shop", "handle", name="uq_bundle_shop_handle"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    shop: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    parent_product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    handle: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ProductStatus.DRAFT.value, nullable=False
    )  # draft | active | archived | unknown

    # Mapping health
    health: Mapped[str] = mapped_column(String(20), default=BundleHealth.OK.value, nullable=False)
    issues_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_validated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    # Relationships
    components: Mapped[list["BundleComponent"]] = relationship(
        "BundleComponent",
        back_populates="bundle",
        cascade="all, delete-orphan",
        order_by="BundleComponent.position",
    )

    @property
    def component_product_ids(self) -> list[str]:
        """Component product ids in position order."""
        return [c.product_id for c in self.components]

    def __repr__(self) -> str:
        return f"<Bundle(id={self.id}, shop='{self.shop}', title='{self.title[:30]}')>"


class BundleComponent(Base):
    """A component product of a bundle, at position 1 or 2."""

    __tablename__ = "bundle_components"
    __table_args__ = (UniqueConstraint("bundle_id", "position", name="uq_component_position"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    bundle_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("bundles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    bundle: Mapped["Bundle"] = relationship("Bundle", back_populates="components")

    def __repr__(self) -> str:
        return f"<BundleComponent(bundle_id={self.bundle_id}, position={self.position})>"
