"""
HTTP API server for the TrendSpotter application.

This module defines the REST API using FastAPI.  It wraps the
functions in :mod:`storage` to perform all persistence operations.
The server can be run directly via uvicorn or programmatically by
calling the ``run`` function defined below.

Endpoints:

* **GET /api/products** - Listed products, most upvoted first.
  Accepts ``timeFilter`` (``day``, ``week``, ``month`` or ``all``)
  and ``tagFilter`` (case-insensitive tag substring, ``all`` for no
  filter).

* **GET /api/products/{id}** - A single product by id.

* **POST /api/products** - Submit a product.  It is stored as pending
  and unapproved until an admin reviews it.

* **POST /api/products/upvote** - Increment a product's upvotes.
  Body: ``{"productId": 1}``.

* **GET /api/featured-product** - The most upvoted listed product.

* **GET /api/admin/pending-products** - Submissions awaiting review.

* **POST /api/admin/products/approve** - Set a product's approval
  flags.  Body: ``{"id": 1, "isApproved": true, "isPending": false}``.

* **GET /api/stats** - Catalogue statistics.

* **GET /health** - Basic health status.

Error responses always have a ``message`` key.  Malformed requests
return 400 with ``message: "Validation error"`` and an ``errors``
list.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import database as db
from . import storage
from .schemas import (
    CatalogStats,
    HealthStatus,
    ProductApproval,
    ProductCreate,
    ProductOut,
    Upvote,
)
from .seed import seed_database

logger = logging.getLogger(__name__)

SERVER_NAME = "TrendSpotter"

app = FastAPI(title="TrendSpotter API", version="0.1.0")

# The Streamlit UI runs on a different port
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    """Initialise the database when the application starts.

    Tables are created if missing.  Unless ``TRENDSPOTTER_SEED`` is
    set to ``0`` the admin account and sample catalogue are seeded
    too.
    """
    if os.getenv("TRENDSPOTTER_SEED", "1") == "0":
        db.init_db()
    else:
        seed_database()
    logger.info("API server startup complete")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation errors")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


def _server_error(error: Exception, message: str) -> HTTPException:
    """Log an unexpected failure and build the 500 response for it."""
    logger.error(f"API Error: {message}: {error}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@app.get("/health", response_model=HealthStatus)
def health_check() -> Dict[str, Any]:
    """Return a basic health status for liveness checks."""
    return {"status": "healthy", "server": SERVER_NAME}


@app.get("/api/products", response_model=List[ProductOut])
def list_products(
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    tag_filter: Optional[str] = Query(None, alias="tagFilter"),
) -> List[Dict[str, Any]]:
    """List approved products, most upvoted first.

    Args:
        time_filter: Only include products launched within the last
            day, week or month (case-insensitive).  ``all``, empty or
            missing disables the cutoff.
        tag_filter: Only include products with a tag containing this
            text (case-insensitive).  ``all`` or empty disables it.
    """
    try:
        window = storage.parse_time_filter(time_filter)
    except ValueError as e:
        raise RequestValidationError([{
            "type": "value_error",
            "loc": ("query", "timeFilter"),
            "msg": str(e),
            "input": time_filter,
        }])
    try:
        return storage.get_products(window, tag_filter)
    except Exception as e:
        raise _server_error(e, "Failed to retrieve products")


@app.get("/api/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int) -> Dict[str, Any]:
    try:
        product = storage.get_product(product_id)
    except Exception as e:
        raise _server_error(e, "Failed to retrieve product")
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@app.post("/api/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate) -> Dict[str, Any]:
    """Submit a new product for review."""
    try:
        return storage.create_product(payload.to_storage())
    except Exception as e:
        raise _server_error(e, "Failed to create product")


@app.post("/api/products/upvote", response_model=ProductOut)
def upvote_product(payload: Upvote) -> Dict[str, Any]:
    try:
        product = storage.upvote_product(payload.product_id)
    except Exception as e:
        raise _server_error(e, "Failed to upvote product")
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@app.get("/api/featured-product", response_model=ProductOut)
def featured_product() -> Dict[str, Any]:
    try:
        product = storage.get_featured_product()
    except Exception as e:
        raise _server_error(e, "Failed to retrieve featured product")
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No featured product found")
    return product


@app.get("/api/admin/pending-products", response_model=List[ProductOut])
def pending_products() -> List[Dict[str, Any]]:
    try:
        return storage.get_pending_products()
    except Exception as e:
        raise _server_error(e, "Failed to retrieve pending products")


@app.post("/api/admin/products/approve", response_model=ProductOut)
def update_product_approval(payload: ProductApproval) -> Dict[str, Any]:
    """Set both approval flags of a product.

    Approving uses ``isApproved=true, isPending=false``; rejecting uses
    ``isApproved=false, isPending=false``.
    """
    try:
        product = storage.update_product_approval(payload.id, payload.is_approved, payload.is_pending)
    except Exception as e:
        raise _server_error(e, "Failed to update product approval")
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@app.get("/api/stats", response_model=CatalogStats)
def catalog_stats() -> Dict[str, Any]:
    try:
        return storage.get_catalog_stats()
    except Exception as e:
        raise _server_error(e, "Failed to compute catalogue statistics")


def run(host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    """Run the API server using uvicorn.

    The port defaults to ``TRENDSPOTTER_API_PORT`` or 8001.
    """
    import uvicorn  # type: ignore

    port = port or int(os.getenv("TRENDSPOTTER_API_PORT", "8001"))
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "trendspotter.backend.api_server:app",
        host=host,
        port=port,
        log_level="info",
        reload=False,
    )
