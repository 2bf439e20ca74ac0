"""Commerce pass-through endpoints — products and orders.

Requests are forwarded to the upstream platform as-is and its JSON is
returned unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from otp_auth.api.deps import get_commerce_client
from otp_auth.errors import UpstreamError
from otp_auth.services.commerce_client import CommerceClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["commerce"])


def _upstream_error(exc: UpstreamError) -> JSONResponse:
    # Client errors from the platform are the caller's problem; anything else is a bad gateway.
    status_code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "details": exc.detail},
    )


@router.get("/products")
async def list_products(request: Request, client: CommerceClient = Depends(get_commerce_client)):
    """List products; query parameters are forwarded to the platform."""
    try:
        return await client.list_products(dict(request.query_params))
    except UpstreamError as exc:
        return _upstream_error(exc)


@router.get("/products/{product_id}")
async def get_product(product_id: str, client: CommerceClient = Depends(get_commerce_client)):
    try:
        return await client.get_product(product_id)
    except UpstreamError as exc:
        return _upstream_error(exc)


@router.get("/orders")
async def list_orders(request: Request, client: CommerceClient = Depends(get_commerce_client)):
    try:
        return await client.list_orders(dict(request.query_params))
    except UpstreamError as exc:
        return _upstream_error(exc)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, client: CommerceClient = Depends(get_commerce_client)):
    try:
        return await client.get_order(order_id)
    except UpstreamError as exc:
        return _upstream_error(exc)


@router.post("/orders")
async def create_order(
    payload: dict[str, Any] = Body(...),
    client: CommerceClient = Depends(get_commerce_client),
):
    """Place an order with the platform."""
    try:
        return await client.create_order(payload)
    except UpstreamError as exc:
        logger.warning("Order creation rejected upstream: %s", exc)
        return _upstream_error(exc)
