"""Service layer for platform webhooks."""

import base64
import hashlib
import hmac
import logging
from typing import Any

from sqlalchemy.orm import Session

from simple_bundler.database.repository import BundleRepository
from simple_bundler.models.pydantic_models import PRODUCT_GID_PREFIX, ProductStatus

logger = logging.getLogger(__name__)

TOPIC_PRODUCTS_DELETE = "PRODUCTS_DELETE"
TOPIC_PRODUCTS_UPDATE = "PRODUCTS_UPDATE"
TOPIC_APP_UNINSTALLED = "APP_UNINSTALLED"


def normalize_topic(topic: str) -> str:
    """Turn header topics like ``products/delete`` into ``PRODUCTS_DELETE``."""
    return topic.strip().replace("/", "_").upper()


def to_gid_product_id(rest_product_id: int | str) -> str:
    """Convert a REST numeric product id into a GraphQL global id."""
    return f"{PRODUCT_GID_PREFIX}{rest_product_id}"


def product_gid_from_payload(payload: dict[str, Any]) -> str | None:
    """Extract the product global id from a webhook payload.

    Payloads carry the REST numeric ``id`` and usually
    ``admin_graphql_api_id`` too.
    """
    if gid := payload.get("admin_graphql_api_id"):
        return str(gid)
    if rest_id := payload.get("id"):
        return to_gid_product_id(rest_id)
    return None


def verify_webhook_hmac(body: bytes, signature: str | None, secret: str) -> bool:
    """Check the base64 HMAC-SHA256 signature of a webhook body."""
    if not signature or not secret:
        return False
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature.strip())


class WebhookService:
    """Applies product and app lifecycle webhooks to stored bundles."""

    def __init__(self, session: Session) -> None:
        """Initialize with database session.

        Args:
            session: SQLAlchemy session instance.
        """
        self._repo = BundleRepository(session)

    def handle(self, topic: str, shop: str, payload: dict[str, Any]) -> int:
        """Dispatch a webhook by topic.

        Args:
            topic: Webhook topic, in either header or enum spelling.
            shop: Shop domain the webhook is for.
            payload: Decoded JSON body.

        Returns:
            Number of bundles affected. Unknown topics affect none.
        """
        topic = normalize_topic(topic)

        if topic == TOPIC_PRODUCTS_DELETE:
            gid = product_gid_from_payload(payload)
            if gid is None:
                return 0
            deleted = self._repo.delete_by_parent(shop, gid)
            if deleted:
                logger.info(
                    "Deleted %d bundle(s) of %s after product %s was removed", deleted, shop, gid
                )
            return deleted

        if topic == TOPIC_PRODUCTS_UPDATE:
            gid = product_gid_from_payload(payload)
            if gid is None:
                return 0
            status = ProductStatus.parse(payload.get("status"))
            return self._repo.update_status_by_parent(shop, gid, status.value)

        if topic == TOPIC_APP_UNINSTALLED:
            deleted = self._repo.delete_for_shop(shop)
            logger.info("App uninstalled from %s, removed %d bundle(s)", shop, deleted)
            return deleted

        logger.debug("Ignoring webhook topic %s", topic)
        return 0
