import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from attrconfig.errors import AttrConfigError, ExternalWriteFailed, NotFound

load_dotenv()

logger = logging.getLogger("attrconfig_backend")

# --- Configuration ---
SHOPIFY_SHOP_DOMAIN  = os.getenv("SHOPIFY_SHOP_DOMAIN", "")
SHOPIFY_ACCESS_TOKEN = os.getenv("SHOPIFY_ACCESS_TOKEN", "")
SHOPIFY_API_VERSION  = os.getenv("SHOPIFY_API_VERSION", "2024-10")
SHOPIFY_TIMEOUT      = float(os.getenv("SHOPIFY_TIMEOUT", "10"))

METAFIELD_NAMESPACE = "custom"
METAFIELD_KEY = "attribute_config"
PRODUCTS_PAGE_SIZE = 100


PRODUCT_BY_HANDLE_QUERY = """
query ProductByHandle($handle: String!, $namespace: String!, $key: String!) {
  productByHandle(handle: $handle) {
    id
    handle
    title
    metafield(namespace: $namespace, key: $key) {
      id
      value
    }
  }
}
"""

PRODUCTS_QUERY = """
query Products($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        title
        handle
        status
        featuredImage {
          url
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

METAFIELDS_SET_MUTATION = """
mutation SetAttributeConfig($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields {
      id
      key
      value
    }
    userErrors {
      field
      message
    }
  }
}
"""


class ShopifyRequestError(AttrConfigError):
    pass


@dataclass
class ProductRecord:
    id: str
    handle: str
    title: str
    status: Optional[str] = None
    image_url: Optional[str] = None
    # raw metafield value as stored, None when the product has none
    attribute_config: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "handle": self.handle,
            "title": self.title,
            "status": self.status,
            "image_url": self.image_url,
        }


class ShopifyConnection:
    def __init__(
        self,
        shop_domain: str = SHOPIFY_SHOP_DOMAIN,
        access_token: str = SHOPIFY_ACCESS_TOKEN,
        api_version: str = SHOPIFY_API_VERSION,
        timeout: float = SHOPIFY_TIMEOUT,
    ) -> None:
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    # -------- Raw GraphQL call --------
    def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.shop_domain or not self.access_token:
            raise ShopifyRequestError("SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN must be configured")

        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
        }
        try:
            response = requests.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Shopify GraphQL request failed: {e}")
            raise ShopifyRequestError(str(e)) from e
        except ValueError as e:
            raise ShopifyRequestError(f"Shopify returned a non-JSON response: {e}") from e

        errors = body.get("errors")
        if errors:
            messages = [err.get("message", str(err)) if isinstance(err, dict) else str(err) for err in errors]
            logger.error(f"Shopify GraphQL errors: {messages}")
            raise ShopifyRequestError("; ".join(messages))
        return body.get("data") or {}

    # -------- Products --------
    def get_product_by_handle(self, handle: str) -> ProductRecord:
        data = self.graphql(
            PRODUCT_BY_HANDLE_QUERY,
            {"handle": handle, "namespace": METAFIELD_NAMESPACE, "key": METAFIELD_KEY},
        )
        product = data.get("productByHandle")
        if not product:
            raise NotFound("Product", handle)

        metafield = product.get("metafield") or {}
        return ProductRecord(
            id=product["id"],
            handle=product.get("handle") or handle,
            title=product.get("title") or "",
            attribute_config=metafield.get("value"),
        )

    def list_products(self) -> List[ProductRecord]:
        products: List[ProductRecord] = []
        cursor: Optional[str] = None
        has_next_page = True

        while has_next_page:
            data = self.graphql(PRODUCTS_QUERY, {"first": PRODUCTS_PAGE_SIZE, "after": cursor})
            page = data.get("products")
            if not page:
                break

            for edge in page.get("edges") or []:
                node = edge.get("node") or {}
                image = node.get("featuredImage") or {}
                products.append(
                    ProductRecord(
                        id=node.get("id", ""),
                        handle=node.get("handle", ""),
                        title=node.get("title", ""),
                        status=node.get("status"),
                        image_url=image.get("url"),
                    )
                )

            page_info = page.get("pageInfo") or {}
            has_next_page = bool(page_info.get("hasNextPage"))
            cursor = page_info.get("endCursor")

        logger.info(f"Fetched {len(products)} products from {self.shop_domain}")
        return products

    # -------- Metafield write --------
    def set_attribute_config(self, product_id: str, raw_document: str) -> List[str]:
        """
        Overwrites the product's attribute configuration metafield.
        Returns Shopify's user error messages (empty on success).
        """
        variables = {
            "metafields": [
                {
                    "namespace": METAFIELD_NAMESPACE,
                    "key": METAFIELD_KEY,
                    "type": "json",
                    "value": raw_document,
                    "ownerId": product_id,
                }
            ]
        }
        try:
            data = self.graphql(METAFIELDS_SET_MUTATION, variables)
        except ShopifyRequestError as e:
            raise ExternalWriteFailed([str(e)]) from e

        user_errors = (data.get("metafieldsSet") or {}).get("userErrors") or []
        messages = []
        for err in user_errors:
            field = ".".join(str(f) for f in (err.get("field") or []))
            message = err.get("message", "")
            messages.append(f"{field}: {message}" if field else message)
        if messages:
            logger.error(f"Metafield save errors: {messages}")
        return messages
