# attrconfig/backend.py

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from attrconfig.catalog_store import CatalogStore
from attrconfig.db_hlpr import create_session_factory
from attrconfig.editing_session import EditingSession, load_session
from attrconfig.errors import NotFound
from attrconfig.session_cache import SessionCache
from attrconfig.shopify_hlpr import ShopifyConnection

logger = logging.getLogger("attrconfig_backend")


def _preview(data: Any) -> str:
    try:
        return json.dumps(data, indent=2, default=str)
    except Exception:
        return str(data)


class Backend:
    """
    Operations exposed to the HTTP layer. Every call is scoped by the
    caller's shop domain; results are plain JSON-ready dicts.
    """

    def __init__(
        self,
        catalog: Optional[CatalogStore] = None,
        shopify: Optional[ShopifyConnection] = None,
        sessions: Optional[SessionCache] = None,
    ):
        self.catalog = catalog or CatalogStore(create_session_factory())
        self.shopify = shopify or ShopifyConnection()
        self.sessions = sessions or SessionCache()

    # -----------------------
    # Groups
    # -----------------------

    def list_groups(self, shop: str) -> List[dict]:
        return [g.to_dict() for g in self.catalog.list_groups(shop)]

    def create_group(self, shop: str, name: Optional[str]) -> dict:
        return self.catalog.create_group(shop, name).to_dict()

    def update_group(self, shop: str, group_id: str, name: Optional[str]) -> dict:
        return self.catalog.update_group(shop, group_id, name).to_dict()

    def delete_group(self, shop: str, group_id: str) -> None:
        self.catalog.delete_group(shop, group_id)

    # -----------------------
    # Attributes
    # -----------------------

    def list_attributes(self, shop: str) -> List[dict]:
        return [a.to_dict() for a in self.catalog.list_attributes(shop)]

    def create_attribute(self, shop: str, name: Optional[str], group_ids: Iterable[str] = ()) -> dict:
        return self.catalog.create_attribute(shop, name, group_ids).to_dict()

    def update_attribute(
        self, shop: str, attribute_id: str, name: Optional[str], group_ids: Iterable[str] = ()
    ) -> dict:
        return self.catalog.update_attribute(shop, attribute_id, name, group_ids).to_dict()

    def delete_attribute(self, shop: str, attribute_id: str) -> None:
        self.catalog.delete_attribute(shop, attribute_id)

    # -----------------------
    # Products
    # -----------------------

    def list_products(self) -> List[dict]:
        return [p.to_dict() for p in self.shopify.list_products()]

    # -----------------------
    # Editing sessions
    # -----------------------

    def open_session(self, shop: str, handle: str) -> dict:
        self.sessions.sweep_expired()
        session = load_session(self.catalog, self.shopify, shop, handle)
        self.sessions.put(session)
        return session.to_dict()

    def _session(self, shop: str, session_id: str) -> EditingSession:
        return self.sessions.get(shop, session_id)

    def get_session(self, shop: str, session_id: str) -> dict:
        return self._session(shop, session_id).to_dict()

    def close_session(self, shop: str, session_id: str) -> None:
        self.sessions.remove(shop, session_id)

    def toggle_group(self, shop: str, session_id: str, group_id: str) -> dict:
        session = self._session(shop, session_id)
        if not session.lookups.has_group(group_id):
            raise NotFound("Group", group_id)
        session.toggle_group(group_id)
        return session.to_dict()

    def set_selected_groups(self, shop: str, session_id: str, group_ids: Iterable[str]) -> dict:
        session = self._session(shop, session_id)
        group_ids = list(group_ids)
        for gid in group_ids:
            if not session.lookups.has_group(gid):
                raise NotFound("Group", gid)
        session.set_selected_groups(group_ids)
        return session.to_dict()

    def set_value(self, shop: str, session_id: str, attribute_id: str, value: str) -> dict:
        session = self._session(shop, session_id)
        if session.lookups.id_to_attribute_name(attribute_id) is None:
            raise NotFound("Attribute", attribute_id)
        session.set_value(attribute_id, value)
        return session.to_dict()

    def edit_document(self, shop: str, session_id: str, raw_text: str) -> dict:
        session = self._session(shop, session_id)
        notice = session.edit_raw_text(raw_text)
        if notice is not None:
            logger.info(f"edit_document({session_id}): kept previous state: {notice}")
        return session.to_dict()

    def save(self, shop: str, session_id: str) -> Dict[str, Any]:
        session = self._session(shop, session_id)
        logger.debug(f"save request session={session_id} product={session.product.id}")
        outcome = session.save(self.shopify.set_attribute_config)
        response = {"saved": outcome.to_dict(), "session": session.to_dict()}
        logger.debug(f"save response {_preview(response['saved'])}")
        return response
