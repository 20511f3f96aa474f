"""
Tests for the FastAPI application endpoints.

The application is exercised through FastAPI's TestClient without
running startup events, so the in-memory tables created by the
fixtures are used as they are.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from fastapi.testclient import TestClient

from trendspotter.backend import database as db
from trendspotter.backend.api_server import app

client = TestClient(app)


def _submission(**overrides: Any) -> Dict[str, Any]:
    payload = {
        'name': 'PromptPal',
        'description': 'Keeps your prompts organised and versioned.',
        'logoUrl': 'https://promptpal.dev/logo.png',
        'websiteUrl': 'https://promptpal.dev',
        'launchDate': '2024-05-01T00:00:00Z',
        'tags': ['LLM', 'Coding'],
        'maker': 'Sam Lee',
        'makerRole': 'Founder',
        'makerEmail': 'sam@promptpal.dev',
        'pricing': 'Free',
        'category': 'Coding',
    }
    payload.update(overrides)
    return payload


def test_health_endpoint() -> None:
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'healthy', 'server': 'TrendSpotter'}


def test_list_products_uses_camel_case(add_product) -> None:
    add_product(name='Listed', upvotes=7, featured_tweet='Love it')
    response = client.get('/api/products')
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    product = data[0]
    assert product['name'] == 'Listed'
    assert product['upvotes'] == 7
    assert product['isApproved'] is True
    assert product['isPending'] is False
    assert product['featuredTweet'] == 'Love it'
    assert 'logoUrl' in product and 'makerEmail' in product and 'launchDate' in product


def test_list_products_filters(add_product) -> None:
    now = db.utcnow()
    add_product(name='Fresh', tags=['Video Generation'], launch_date=now)
    add_product(name='Old', tags=['Voice and Music'], launch_date=now - timedelta(days=60))
    def names(response: Any) -> list:
        return [p['name'] for p in response.json()]

    assert names(client.get('/api/products?timeFilter=week')) == ['Fresh']
    assert sorted(names(client.get('/api/products?timeFilter=all'))) == ['Fresh', 'Old']
    assert names(client.get('/api/products?tagFilter=music')) == ['Old']
    assert len(client.get('/api/products?tagFilter=all').json()) == 2


def test_invalid_time_filter_is_rejected() -> None:
    response = client.get('/api/products?timeFilter=year')
    assert response.status_code == 400
    data = response.json()
    assert data['message'] == 'Validation error'
    assert data['errors'][0]['loc'] == ['query', 'timeFilter']


def test_time_filter_defaults_to_all_and_ignores_case(add_product) -> None:
    now = db.utcnow()
    add_product(name='Fresh', launch_date=now)
    add_product(name='Old', launch_date=now - timedelta(days=60))
    empty = client.get('/api/products?timeFilter=')
    assert empty.status_code == 200
    assert len(empty.json()) == 2
    mixed = client.get('/api/products?timeFilter=Week')
    assert mixed.status_code == 200
    assert [p['name'] for p in mixed.json()] == ['Fresh']


def test_get_product_and_not_found(add_product) -> None:
    product = add_product(name='Single')
    response = client.get(f"/api/products/{product['id']}")
    assert response.status_code == 200
    assert response.json()['name'] == 'Single'
    missing = client.get('/api/products/9999')
    assert missing.status_code == 404
    assert missing.json() == {'message': 'Product not found'}


def test_non_numeric_product_id_is_a_validation_error() -> None:
    response = client.get('/api/products/abc')
    assert response.status_code == 400
    assert response.json()['message'] == 'Validation error'


def test_submit_product_creates_pending_listing() -> None:
    response = client.post('/api/products', json=_submission(upvotes=500, isApproved=True, isPending=False))
    assert response.status_code == 201
    created = response.json()
    assert created['upvotes'] == 0
    assert created['isApproved'] is False
    assert created['isPending'] is True
    assert created['launchDate'].startswith('2024-05-01T00:00:00')
    # Not publicly listed until approved
    assert client.get('/api/products').json() == []
    pending = client.get('/api/admin/pending-products').json()
    assert [p['id'] for p in pending] == [created['id']]


def test_submit_product_validation_errors() -> None:
    cases = [
        _submission(name='X'),
        _submission(description='short'),
        _submission(websiteUrl='not a url'),
        _submission(tags=[]),
        _submission(tags=['A', 'B', 'C', 'D']),
        _submission(makerEmail='nobody'),
        _submission(maker='J'),
    ]
    for payload in cases:
        response = client.post('/api/products', json=payload)
        assert response.status_code == 400, payload
        assert response.json()['message'] == 'Validation error'
    missing_field = _submission()
    del missing_field['launchDate']
    assert client.post('/api/products', json=missing_field).status_code == 400


def test_upvote_endpoint(add_product) -> None:
    product = add_product(upvotes=1)
    response = client.post('/api/products/upvote', json={'productId': product['id']})
    assert response.status_code == 200
    assert response.json()['upvotes'] == 2
    missing = client.post('/api/products/upvote', json={'productId': 999})
    assert missing.status_code == 404
    assert missing.json()['message'] == 'Product not found'
    bad = client.post('/api/products/upvote', json={})
    assert bad.status_code == 400


def test_featured_product_endpoint(add_product) -> None:
    empty = client.get('/api/featured-product')
    assert empty.status_code == 404
    assert empty.json() == {'message': 'No featured product found'}
    add_product(name='Runner up', upvotes=10)
    add_product(name='Winner', upvotes=20)
    response = client.get('/api/featured-product')
    assert response.status_code == 200
    assert response.json()['name'] == 'Winner'


def test_approval_workflow_end_to_end() -> None:
    created = client.post('/api/products', json=_submission()).json()
    response = client.post(
        '/api/admin/products/approve',
        json={'id': created['id'], 'isApproved': True, 'isPending': False},
    )
    assert response.status_code == 200
    assert response.json()['isApproved'] is True
    listed = client.get('/api/products').json()
    assert [p['id'] for p in listed] == [created['id']]
    assert client.get('/api/admin/pending-products').json() == []
    client.post('/api/products/upvote', json={'productId': created['id']})
    assert client.get('/api/featured-product').json()['upvotes'] == 1


def test_reject_hides_product() -> None:
    created = client.post('/api/products', json=_submission()).json()
    response = client.post(
        '/api/admin/products/approve',
        json={'id': created['id'], 'isApproved': False, 'isPending': False},
    )
    assert response.status_code == 200
    assert client.get('/api/products').json() == []
    assert client.get('/api/admin/pending-products').json() == []


def test_approve_missing_product() -> None:
    response = client.post('/api/admin/products/approve', json={'id': 4242, 'isApproved': True, 'isPending': False})
    assert response.status_code == 404
    assert response.json() == {'message': 'Product not found'}


def test_stats_endpoint(add_product) -> None:
    add_product(tags=['LLM'])
    add_product(tags=['LLM', 'Agent'], is_approved=False, is_pending=True)
    data = client.get('/api/stats').json()
    assert data['totalProducts'] == 2
    assert data['listedProducts'] == 1
    assert data['pendingProducts'] == 1
    assert data['tagDistribution'] == [{'tag': 'LLM', 'count': 1}]
