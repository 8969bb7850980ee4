"""Repository layer for database operations."""

import functools
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from typing_extensions import ParamSpec

from simple_bundler.models.db_models import Bundle, BundleComponent
from simple_bundler.models.pydantic_models import BundleHealth, ProductStatus

P = ParamSpec("P")
R = TypeVar("R")

# Retry configuration for database operations
DB_RETRY_MAX_ATTEMPTS = 5
DB_RETRY_WAIT_MIN = 1  # seconds
DB_RETRY_WAIT_MAX = 8  # seconds
DB_RETRY_WAIT_MULTIPLIER = 2


def with_db_retry(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to retry database operations on SQLite lock errors.

    Retries on sqlalchemy.exc.OperationalError using exponential backoff.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        for attempt in Retrying(
            retry=retry_if_exception_type(OperationalError),
            stop=stop_after_attempt(DB_RETRY_MAX_ATTEMPTS),
            wait=wait_exponential(
                multiplier=DB_RETRY_WAIT_MULTIPLIER,
                min=DB_RETRY_WAIT_MIN,
                max=DB_RETRY_WAIT_MAX,
            ),
            reraise=True,
        ):
            with attempt:
                return func(*args, **kwargs)
        raise RuntimeError("Retry logic failed unexpectedly")

    return wrapper


class BundleRepository:
    """Repository for Bundle records, always scoped to one shop."""

    def __init__(self, session: Session) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session instance.
        """
        self._session = session

    # ========== CREATE ==========

    @with_db_retry
    def create_bundle(
        self,
        shop: str,
        parent_product_id: str,
        title: str,
        handle: str,
        component_product_ids: Sequence[str],
        status: ProductStatus = ProductStatus.DRAFT,
    ) -> Bundle:
        """Create a bundle with its components at positions 1, 2, ...

        Args:
            shop: Owning shop domain.
            parent_product_id: Id of the bundle's sellable product.
            title: Bundle title.
            handle: Bundle product handle.
            component_product_ids: Component product ids in position order.
            status: Initial lifecycle status.

        Returns:
            Created Bundle ORM object.
        """
        bundle = Bundle(
            shop=shop,
            parent_product_id=parent_product_id,
            title=title,
            handle=handle,
            status=status.value,
            last_validated_at=datetime.now(timezone.utc),
            components=[
                BundleComponent(position=position, product_id=product_id)
                for position, product_id in enumerate(component_product_ids, start=1)
            ],
        )

        self._session.add(bundle)
        self._session.commit()
        self._session.refresh(bundle)

        return bundle

    # ========== READ ==========

    def get_bundle(self, shop: str, bundle_id: str) -> Bundle | None:
        """Get a bundle of a shop by id."""
        stmt = select(Bundle).where(Bundle.id == bundle_id, Bundle.shop == shop)
        return self._session.scalars(stmt).first()

    def get_bundles(self, shop: str) -> list[Bundle]:
        """Get all bundles of a shop, newest first."""
        stmt = select(Bundle).where(Bundle.shop == shop).order_by(Bundle.created_at.desc())
        return list(self._session.scalars(stmt).all())

    def get_bundles_by_parent(self, shop: str, parent_product_id: str) -> list[Bundle]:
        """Get bundles of a shop built on the given parent product."""
        stmt = select(Bundle).where(
            Bundle.shop == shop, Bundle.parent_product_id == parent_product_id
        )
        return list(self._session.scalars(stmt).all())

    # ========== UPDATE ==========

    @with_db_retry
    def update_bundle(
        self,
        bundle: Bundle,
        title: str | None = None,
        component_product_ids: Sequence[str] | None = None,
    ) -> Bundle:
        """Change a bundle's title and/or its components."""
        if title is not None:
            bundle.title = title
        if component_product_ids is not None:
            bundle.components.clear()
            # Flush removals first, positions are unique per bundle
            self._session.flush()
            bundle.components.extend(
                BundleComponent(position=position, product_id=product_id)
                for position, product_id in enumerate(component_product_ids, start=1)
            )

        self._session.commit()
        self._session.refresh(bundle)
        return bundle

    @with_db_retry
    def mark_validated(self, bundle: Bundle) -> Bundle:
        """Record a successful mapping sync."""
        bundle.health = BundleHealth.OK.value
        bundle.issues_count = 0
        bundle.last_validated_at = datetime.now(timezone.utc)
        self._session.commit()
        self._session.refresh(bundle)
        return bundle

    @with_db_retry
    def mark_needs_attention(self, bundle: Bundle, issues_count: int) -> Bundle:
        """Record a failed mapping sync."""
        bundle.health = BundleHealth.NEEDS_ATTENTION.value
        bundle.issues_count = issues_count
        self._session.commit()
        self._session.refresh(bundle)
        return bundle

    @with_db_retry
    def update_status_by_parent(self, shop: str, parent_product_id: str, status: str) -> int:
        """Set the lifecycle status of bundles built on a parent product.

        Returns:
            Number of bundles updated.
        """
        bundles = self.get_bundles_by_parent(shop, parent_product_id)
        for bundle in bundles:
            bundle.status = status
        self._session.commit()
        return len(bundles)

    # ========== DELETE ==========

    @with_db_retry
    def delete_bundle(self, bundle: Bundle) -> None:
        """Delete a bundle and its components."""
        self._session.delete(bundle)
        self._session.commit()

    @with_db_retry
    def delete_by_parent(self, shop: str, parent_product_id: str) -> int:
        """Delete bundles built on a parent product.

        Returns:
            Number of bundles deleted.
        """
        bundles = self.get_bundles_by_parent(shop, parent_product_id)
        for bundle in bundles:
            self._session.delete(bundle)
        self._session.commit()
        return len(bundles)

    @with_db_retry
    def delete_for_shop(self, shop: str) -> int:
        """Delete every bundle of a shop.

        Returns:
            Number of bundles deleted.
        """
        bundles = self.get_bundles(shop)
        for bundle in bundles:
            self._session.delete(bundle)
        self._session.commit()
        return len(bundles)
