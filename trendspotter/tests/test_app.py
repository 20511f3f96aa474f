"""
Tests for the Streamlit UI's error handling around API calls.
"""

from __future__ import annotations

import requests
from fastapi.testclient import TestClient

from trendspotter.backend.api_server import app
from trendspotter.frontend.app import _load_product, _review_product
from trendspotter.frontend.client import TrendSpotterClient


class UnreachableSession:
    """A session whose every request fails to connect."""

    def get(self, url, **kwargs):
        raise requests.ConnectionError(f"cannot reach {url}")

    def post(self, url, **kwargs):
        raise requests.ConnectionError(f"cannot reach {url}")


def _api_client() -> TrendSpotterClient:
    return TrendSpotterClient(base_url='http://testserver', session=TestClient(app))


def test_load_product(add_product) -> None:
    product = add_product(name='Shown')
    loaded, error = _load_product(_api_client(), product['id'])
    assert error is None
    assert loaded['name'] == 'Shown'
    assert _load_product(_api_client(), 9999) == (None, 'Product not found')


def test_load_product_reports_unreachable_api() -> None:
    client = TrendSpotterClient(base_url='http://nowhere', session=UnreachableSession())
    product, error = _load_product(client, 1)
    assert product is None
    assert error.startswith('API unreachable')


def test_review_product(add_product) -> None:
    pending = add_product(is_approved=False, is_pending=True)
    assert _review_product(_api_client(), pending['id'], approve=True) is None
    assert _review_product(_api_client(), 9999, approve=False) == 'Failed to update product: Product not found'
    client = TrendSpotterClient(base_url='http://nowhere', session=UnreachableSession())
    assert _review_product(client, pending['id'], approve=True).startswith('API unreachable')
