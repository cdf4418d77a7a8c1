import pytest
import requests

from attrconfig.errors import ExternalWriteFailed, NotFound
from attrconfig.shopify_hlpr import ShopifyConnection, ShopifyRequestError


class FakeResponse:
    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._body


def _connection() -> ShopifyConnection:
    return ShopifyConnection(
        shop_domain="demo.myshopify.com",
        access_token="shpat_test",
        api_version="2024-10",
        timeout=5,
    )


def _patch_post(monkeypatch, responses):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return responses.pop(0)

    monkeypatch.setattr("attrconfig.shopify_hlpr.requests.post", fake_post)
    return calls


def test_get_product_by_handle(monkeypatch):
    calls = _patch_post(monkeypatch, [FakeResponse({
        "data": {
            "productByHandle": {
                "id": "gid://shopify/Product/1",
                "handle": "desk",
                "title": "Desk",
                "metafield": {"id": "gid://shopify/Metafield/9", "value": '{"Size": {"Width": "10cm"}}'},
            }
        }
    })])

    product = _connection().get_product_by_handle("desk")

    assert product.id == "gid://shopify/Product/1"
    assert product.attribute_config == '{"Size": {"Width": "10cm"}}'
    assert calls[0]["url"] == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
    assert calls[0]["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert calls[0]["json"]["variables"] == {
        "handle": "desk", "namespace": "custom", "key": "attribute_config",
    }


def test_get_product_without_metafield(monkeypatch):
    _patch_post(monkeypatch, [FakeResponse({
        "data": {"productByHandle": {"id": "gid://shopify/Product/1", "handle": "desk", "title": "Desk", "metafield": None}}
    })])
    assert _connection().get_product_by_handle("desk").attribute_config is None


def test_missing_product_raises_not_found(monkeypatch):
    _patch_post(monkeypatch, [FakeResponse({"data": {"productByHandle": None}})])
    with pytest.raises(NotFound):
        _connection().get_product_by_handle("nope")


def test_graphql_errors_raise(monkeypatch):
    _patch_post(monkeypatch, [FakeResponse({"errors": [{"message": "Throttled"}]})])
    with pytest.raises(ShopifyRequestError, match="Throttled"):
        _connection().get_product_by_handle("desk")


def test_unconfigured_connection_raises():
    with pytest.raises(ShopifyRequestError):
        ShopifyConnection(shop_domain="", access_token="").graphql("{ shop { name } }")


def test_list_products_follows_pagination(monkeypatch):
    page_one = {"data": {"products": {
        "edges": [{"cursor": "c1", "node": {"id": "p1", "title": "Desk", "handle": "desk", "status": "ACTIVE", "featuredImage": {"url": "http://img/1"}}}],
        "pageInfo": {"hasNextPage": True, "endCursor": "c1"},
    }}}
    page_two = {"data": {"products": {
        "edges": [{"cursor": "c2", "node": {"id": "p2", "title": "Chair", "handle": "chair", "status": "DRAFT", "featuredImage": None}}],
        "pageInfo": {"hasNextPage": False, "endCursor": "c2"},
    }}}
    calls = _patch_post(monkeypatch, [FakeResponse(page_one), FakeResponse(page_two)])

    products = _connection().list_products()

    assert [p.handle for p in products] == ["desk", "chair"]
    assert products[0].image_url == "http://img/1"
    assert products[1].image_url is None
    assert calls[0]["json"]["variables"] == {"first": 100, "after": None}
    assert calls[1]["json"]["variables"] == {"first": 100, "after": "c1"}


def test_set_attribute_config_success(monkeypatch):
    calls = _patch_post(monkeypatch, [FakeResponse({
        "data": {"metafieldsSet": {"metafields": [{"id": "m1"}], "userErrors": []}}
    })])

    errors = _connection().set_attribute_config("gid://shopify/Product/1", '{"Size": {"Width": "10cm"}}')

    assert errors == []
    metafield = calls[0]["json"]["variables"]["metafields"][0]
    assert metafield == {
        "namespace": "custom",
        "key": "attribute_config",
        "type": "json",
        "value": '{"Size": {"Width": "10cm"}}',
        "ownerId": "gid://shopify/Product/1",
    }


def test_set_attribute_config_returns_user_errors(monkeypatch):
    _patch_post(monkeypatch, [FakeResponse({
        "data": {"metafieldsSet": {"metafields": [], "userErrors": [
            {"field": ["metafields", "0", "value"], "message": "Value is invalid JSON"},
        ]}}
    })])

    errors = _connection().set_attribute_config("gid://shopify/Product/1", "{}")
    assert errors == ["metafields.0.value: Value is invalid JSON"]


def test_set_attribute_config_transport_failure(monkeypatch):
    _patch_post(monkeypatch, [FakeResponse({}, status_code=503)])
    with pytest.raises(ExternalWriteFailed):
        _connection().set_attribute_config("gid://shopify/Product/1", "{}")
