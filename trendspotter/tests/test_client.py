"""
Tests for the HTTP client used by the Streamlit UI.

FastAPI's TestClient stands in for the requests session, so the
client is exercised against the real application without a server.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from trendspotter.backend import database as db
from trendspotter.backend.api_server import app
from trendspotter.frontend.client import ApiError, TrendSpotterClient


@pytest.fixture
def client() -> TrendSpotterClient:
    return TrendSpotterClient(base_url='http://testserver/', session=TestClient(app))


def _payload(**overrides):
    payload = {
        'name': 'Notewise',
        'description': 'Summarises every meeting automatically.',
        'logoUrl': 'https://notewise.ai/logo.png',
        'websiteUrl': 'https://notewise.ai',
        'launchDate': '2024-01-10T00:00:00',
        'tags': ['Meeting Assistants'],
        'maker': 'Notewise',
        'makerRole': 'Company',
        'makerEmail': 'hello@notewise.ai',
    }
    payload.update(overrides)
    return payload


def test_base_url_from_environment(monkeypatch) -> None:
    monkeypatch.setenv('TRENDSPOTTER_API_URL', 'http://api.internal:9000/')
    assert TrendSpotterClient().base_url == 'http://api.internal:9000'


def test_health(client) -> None:
    assert client.health()['status'] == 'healthy'


def test_list_products_with_filters(client, add_product) -> None:
    add_product(name='Recent', tags=['Meeting Assistants'], launch_date=db.utcnow())
    add_product(name='Ancient', tags=['Project Management'], launch_date=db.utcnow() - timedelta(days=900))
    assert [p['name'] for p in client.list_products('week')] == ['Recent']
    assert [p['name'] for p in client.list_products('all', 'project')] == ['Ancient']
    assert len(client.list_products('all', 'all')) == 2


def test_missing_resources_return_none(client) -> None:
    assert client.get_product(321) is None
    assert client.featured_product() is None
    assert client.upvote(321) is None


def test_submit_approve_and_upvote(client) -> None:
    created = client.submit_product(_payload())
    assert created['isPending'] is True
    assert [p['id'] for p in client.pending_products()] == [created['id']]
    approved = client.approve(created['id'])
    assert approved['isApproved'] is True and approved['isPending'] is False
    assert client.upvote(created['id'])['upvotes'] == 1
    assert client.featured_product()['id'] == created['id']
    assert client.get_product(created['id'])['upvotes'] == 1
    assert client.stats()['listedProducts'] == 1


def test_reject(client) -> None:
    created = client.submit_product(_payload())
    rejected = client.reject(created['id'])
    assert rejected['isApproved'] is False
    assert client.pending_products() == []
    assert client.list_products() == []


def test_validation_errors_raise_api_error(client) -> None:
    with pytest.raises(ApiError) as excinfo:
        client.submit_product(_payload(tags=[]))
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == 'Validation error'
    assert excinfo.value.errors
    with pytest.raises(ApiError) as excinfo:
        client.list_products('fortnight')
    assert excinfo.value.status_code == 400
