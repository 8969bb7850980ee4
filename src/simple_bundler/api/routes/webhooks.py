"""Platform webhook endpoint."""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Request

from simple_bundler.api.dependencies import SettingsDep, WebhookServiceDep
from simple_bundler.api.schemas import WebhookResponse
from simple_bundler.services.webhook_service import normalize_topic, verify_webhook_hmac

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=WebhookResponse)
async def receive_webhook(
    request: Request,
    settings: SettingsDep,
    service: WebhookServiceDep,
    x_shopify_topic: Annotated[str, Header()],
    x_shopify_shop_domain: Annotated[str, Header()],
    x_shopify_hmac_sha256: Annotated[str | None, Header()] = None,
) -> WebhookResponse:
    """Verify and apply a product or app lifecycle webhook.

    Raises:
        HTTPException: 401 if the signature is invalid, 400 if the body is
            not a JSON object.
    """
    body = await request.body()
    if not verify_webhook_hmac(body, x_shopify_hmac_sha256, settings.webhook_secret):
        logger.warning("Rejected webhook %s from %s", x_shopify_topic, x_shopify_shop_domain)
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Webhook body is not JSON") from None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook body is not a JSON object")

    affected = service.handle(x_shopify_topic, x_shopify_shop_domain.strip().lower(), payload)
    return WebhookResponse(topic=normalize_topic(x_shopify_topic), affected=affected)
