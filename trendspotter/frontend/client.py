"""
HTTP client for the TrendSpotter API.

The Streamlit UI uses :class:`TrendSpotterClient` for every call.
Error responses are raised as :class:`ApiError`.  Lookups that can
legitimately miss (a product, the featured product, an upvote target)
return ``None`` on 404 instead.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

DEFAULT_API_URL = "http://localhost:8001"


class ApiError(Exception):
    """An error response from the TrendSpotter API."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class TrendSpotterClient:
    """Thin wrapper over the TrendSpotter HTTP API.

    ``session`` may be any object with requests-style ``get``/``post``
    methods; it defaults to a new ``requests.Session``.
    """

    def __init__(self, base_url: Optional[str] = None, session: Any = None, timeout: float = 20):
        self.base_url = (base_url or os.getenv("TRENDSPOTTER_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        r = getattr(self.session, method)(url, timeout=self.timeout, **kwargs)
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ApiError(r.status_code, message or r.text or "Request failed", errors)
        return r.json()

    def _get_or_none(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return self._request("get", path)
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    # ----- public helpers -----
    def health(self) -> Dict[str, Any]:
        return self._request("get", "/health")

    def list_products(self, time_filter: str = "all", tag_filter: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"timeFilter": time_filter}
        if tag_filter and tag_filter.lower() != "all":
            params["tagFilter"] = tag_filter
        return self._request("get", "/api/products", params=params)

    def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        return self._get_or_none(f"/api/products/{product_id}")

    def featured_product(self) -> Optional[Dict[str, Any]]:
        return self._get_or_none("/api/featured-product")

    def submit_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a camelCase product payload (see ``ProductSubmissionForm.to_payload``)."""
        return self._request("post", "/api/products", json=payload)

    def upvote(self, product_id: int) -> Optional[Dict[str, Any]]:
        try:
            return self._request("post", "/api/products/upvote", json={"productId": product_id})
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def pending_products(self) -> List[Dict[str, Any]]:
        return self._request("get", "/api/admin/pending-products")

    def set_approval(self, product_id: int, is_approved: bool, is_pending: bool) -> Dict[str, Any]:
        return self._request(
            "post",
            "/api/admin/products/approve",
            json={"id": product_id, "isApproved": is_approved, "isPending": is_pending},
        )

    def approve(self, product_id: int) -> Dict[str, Any]:
        return self.set_approval(product_id, is_approved=True, is_pending=False)

    def reject(self, product_id: int) -> Dict[str, Any]:
        return self.set_approval(product_id, is_approved=False, is_pending=False)

    def stats(self) -> Dict[str, Any]:
        return self._request("get", "/api/stats")
