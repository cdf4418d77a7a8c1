# attrconfig/editing_session.py

import logging
from typing import Dict, Iterable, Optional
from uuid import uuid4

from attrconfig.catalog_store import CatalogStore
from attrconfig.document_codec import deserialize, load_document
from attrconfig.errors import ParseError, SaveInProgress
from attrconfig.lookups import CatalogLookups
from attrconfig.persistence_gate import DocumentWriter, PersistenceGate, SaveOutcome
from attrconfig.selection_store import SelectionStore
from attrconfig.shopify_hlpr import ProductRecord, ShopifyConnection
from attrconfig.validator import validate

logger = logging.getLogger("attrconfig_backend")


class EditingSession:
    """
    One operator editing one product's configuration.

    Owns the selection store and the persistence gate; the baseline is taken
    from the values parsed at load time. Edits are refused while a save is in
    flight.

    The lookups are loaded once when the session opens. Group and attribute
    changes made in the catalog afterwards (renames, membership) show up only
    in sessions opened after them.
    """

    def __init__(
        self,
        shop: str,
        product: ProductRecord,
        lookups: CatalogLookups,
        store: SelectionStore,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or str(uuid4())
        self.shop = shop
        self.product = product
        self.lookups = lookups
        self.store = store
        self.gate = PersistenceGate(store.snapshot())
        self.notice: Optional[ParseError] = None

    def _check_not_saving(self) -> None:
        if self.gate.saving:
            logger.warning(f"session {self.session_id}: edit rejected, save in flight")
            raise SaveInProgress()

    def toggle_group(self, group_id: str) -> bool:
        self._check_not_saving()
        self.notice = None
        return self.store.toggle_group(group_id)

    def set_selected_groups(self, group_ids: Iterable[str]) -> None:
        self._check_not_saving()
        self.notice = None
        self.store.set_selected_groups(group_ids)

    def set_value(self, attribute_id: str, value: str) -> None:
        self._check_not_saving()
        self.notice = None
        self.store.set_value(attribute_id, value)

    def edit_raw_text(self, raw_text: str) -> Optional[ParseError]:
        self._check_not_saving()
        self.notice = self.store.apply_raw_text(raw_text)
        return self.notice

    def validation_errors(self) -> Dict[str, str]:
        return validate(self.store.selected_group_ids, self.store.attribute_values, self.lookups)

    def has_changes(self) -> bool:
        return self.gate.has_changes(self.store)

    def save(self, writer: DocumentWriter) -> SaveOutcome:
        return self.gate.save(self.product.id, self.store, writer)

    def to_dict(self) -> dict:
        state = self.store.to_dict()
        state.update({
            "session_id": self.session_id,
            "product": self.product.to_dict(),
            "lookups": self.lookups.to_dict(),
            "errors": self.validation_errors(),
            "has_changes": self.has_changes(),
            "saving": self.gate.saving,
            "notice": self.notice.to_dict() if self.notice else None,
        })
        return state


def load_session(
    catalog: CatalogStore,
    shopify: ShopifyConnection,
    shop: str,
    handle: str,
) -> EditingSession:
    """
    Opens an editing session for the product with the given handle: fetches the
    product and its stored configuration, loads the shop's lookups and reverse
    parses the stored document into the initial editing state.
    """
    product = shopify.get_product_by_handle(handle)
    lookups = catalog.load_lookups(shop)

    parsed = deserialize(load_document(product.attribute_config), lookups)
    if not parsed.ok:
        # load_document only hands back mappings, so this is unexpected
        logger.warning(f"load_session({handle}): stored configuration ignored: {parsed.error}")
    elif parsed.dropped_group_names or parsed.dropped_attribute_names:
        logger.info(
            f"load_session({handle}): dropped stale references "
            f"groups={parsed.dropped_group_names} attributes={parsed.dropped_attribute_names}"
        )

    store = SelectionStore.from_parsed(lookups, parsed)
    session = EditingSession(shop, product, lookups, store)
    logger.info(
        f"load_session({handle}): session {session.session_id} opened with "
        f"{len(store.selected_group_ids)} group(s)"
    )
    return session
