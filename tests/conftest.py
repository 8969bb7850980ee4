"""Shared fixtures: in-memory database and an in-memory platform catalog."""

import itertools

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from simple_bundler.models.db_models import Base
from simple_bundler.models.pydantic_models import (
    MetafieldInput,
    MetafieldUserError,
    Product,
    ProductOption,
    ProductStatus,
    SelectedOption,
    Variant,
)
from simple_bundler.shopify.admin_client import PlatformError, PlatformUserError


class FakeCatalog:
    """Platform catalog kept in dictionaries.

    Products created through create_product get a single default variant;
    create_product_option replaces it with one variant per value, and
    delete_product_options brings back the single default variant, as the
    platform does.
    """

    def __init__(self) -> None:
        self.products: dict[str, Product] = {}
        self.variants: dict[str, list[Variant]] = {}
        self.written: list[MetafieldInput] = []
        self.deleted: list[str] = []
        self.options_deleted: list[str] = []
        self.write_errors: list[MetafieldUserError] = []
        self.fail_reads = False
        self.delete_error: PlatformError | None = None
        self._ids = itertools.count(1000)

    def add_product(
        self,
        product_id: str,
        title: str,
        option_values: list[str] | None = None,
        option_name: str = "Color",
    ) -> Product:
        """Register a product with one variant per option value (or a default variant)."""
        if option_values:
            options = [ProductOption(name=option_name, values=option_values)]
            variants = [
                Variant(
                    id=f"{product_id.replace('Product', 'ProductVariant')}{i}",
                    title=value,
                    selected_options=[SelectedOption(name=option_name, value=value)],
                )
                for i, value in enumerate(option_values, 1)
            ]
        else:
            options = [ProductOption(name="Title", values=["Default Title"])]
            variants = [
                Variant(
                    id=f"{product_id.replace('Product', 'ProductVariant')}1",
                    title="Default Title",
                    selected_options=[SelectedOption(name="Title", value="Default Title")],
                )
            ]
        product = Product(
            id=product_id,
            title=title,
            handle=title.lower().replace(" ", "-"),
            status=ProductStatus.ACTIVE,
            options=options,
        )
        self.products[product_id] = product
        self.variants[product_id] = variants
        return product

    @property
    def mapped_variant_ids(self) -> set[str]:
        return {m.owner_id for m in self.written}

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise PlatformError("Admin API returned HTTP 503")

    async def fetch_variants(self, product_id: str) -> list[Variant]:
        self._check_reads()
        return list(self.variants.get(product_id, []))

    async def set_metafields(self, metafields: list[MetafieldInput]) -> list[MetafieldUserError]:
        if self.write_errors:
            return list(self.write_errors)
        self.written.extend(metafields)
        return []

    async def fetch_products(self, product_ids: list[str]) -> dict[str, Product]:
        self._check_reads()
        return {pid: self.products[pid] for pid in product_ids if pid in self.products}

    async def fetch_mapping_presence(self, product_id: str) -> dict[str, bool]:
        self._check_reads()
        mapped = self.mapped_variant_ids
        return {v.id: v.id in mapped for v in self.variants.get(product_id, [])}

    async def create_product(self, title: str, handle: str) -> Product:
        product_id = f"gid://shopify/Product/{next(self._ids)}"
        product = self.add_product(product_id, title)
        product = product.model_copy(update={"handle": handle, "status": ProductStatus.DRAFT})
        self.products[product_id] = product
        return product

    async def create_product_option(
        self, product_id: str, option_name: str, values: list[str]
    ) -> None:
        product = self.products[product_id]
        self.add_product(product_id, product.title, values, option_name)
        self.products[product_id] = self.products[product_id].model_copy(
            update={"handle": product.handle, "status": product.status}
        )

    async def delete_product_options(self, product_id: str) -> None:
        product = self.products[product_id]
        self.options_deleted.append(product_id)
        self.add_product(product_id, product.title)
        self.products[product_id] = self.products[product_id].model_copy(
            update={"handle": product.handle, "status": product.status}
        )

    async def rename_product(self, product_id: str, title: str) -> Product:
        if product_id not in self.products:
            raise PlatformUserError(["Product does not exist"])
        product = self.products[product_id].model_copy(update={"title": title})
        self.products[product_id] = product
        return product

    async def list_products(self, first: int = 50) -> list[Product]:
        self._check_reads()
        return list(self.products.values())[:first]

    async def delete_product(self, product_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        if product_id not in self.products:
            raise PlatformUserError(["Product does not exist"])
        self.deleted.append(product_id)
        del self.products[product_id]
        self.variants.pop(product_id, None)


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    """Create an empty in-memory catalog."""
    return FakeCatalog()


@pytest.fixture
def session_factory():
    """Create a session factory bound to a shared in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create an in-memory database session for testing."""
    session = session_factory()
    yield session
    session.close()
