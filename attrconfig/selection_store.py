# attrconfig/selection_store.py

import logging
from typing import Callable, Dict, Iterable, List, Optional

from attrconfig.document_codec import Document, ParseResult, deserialize, dump_document, serialize
from attrconfig.errors import ParseError
from attrconfig.lookups import CatalogLookups

logger = logging.getLogger("attrconfig_backend")

Listener = Callable[["SelectionStore"], None]


class SelectionStore:
    """
    Editing state of one product's attribute configuration.

    - selected_group_ids: ordered, no duplicates.
    - attribute_values: attribute id -> raw string as typed (never trimmed here).

    All mutation goes through the methods below so the removal cascade is
    applied the same way for the group picker, the per-group remove action and
    raw document edits. Each mutation bumps `version` and notifies listeners.
    """

    def __init__(
        self,
        lookups: CatalogLookups,
        selected_group_ids: Optional[Iterable[str]] = None,
        attribute_values: Optional[Dict[str, str]] = None,
    ) -> None:
        self.lookups = lookups
        self.selected_group_ids: List[str] = []
        for gid in selected_group_ids or []:
            if gid not in self.selected_group_ids:
                self.selected_group_ids.append(gid)
        self.attribute_values: Dict[str, str] = dict(attribute_values or {})
        self.version = 0
        self._listeners: List[Listener] = []

    @classmethod
    def from_parsed(cls, lookups: CatalogLookups, parsed: ParseResult) -> "SelectionStore":
        return cls(
            lookups,
            selected_group_ids=parsed.selected_group_ids,
            attribute_values=parsed.attribute_values,
        )

    # -----------------------
    # Listeners
    # -----------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)

    # -----------------------
    # Mutations
    # -----------------------

    def _drop_group(self, group_id: str) -> None:
        self.selected_group_ids.remove(group_id)
        remaining = set(self.selected_group_ids)
        for attr in self.lookups.attributes_of_group(group_id):
            if remaining.intersection(self.lookups.groups_of_attribute(attr.id)):
                continue
            self.attribute_values.pop(attr.id, None)

    def toggle_group(self, group_id: str) -> bool:
        """
        Adds the group when absent, removes it when present.
        Returns True when the group is selected afterwards.
        """
        if group_id in self.selected_group_ids:
            self._drop_group(group_id)
            selected = False
        else:
            self.selected_group_ids.append(group_id)
            selected = True
        self._changed()
        return selected

    def set_selected_groups(self, group_ids: Iterable[str]) -> None:
        target: List[str] = []
        for gid in group_ids:
            if gid not in target:
                target.append(gid)

        for gid in [g for g in self.selected_group_ids if g not in target]:
            self._drop_group(gid)
        for gid in target:
            if gid not in self.selected_group_ids:
                self.selected_group_ids.append(gid)
        self._changed()

    def set_value(self, attribute_id: str, value: str) -> None:
        self.attribute_values[attribute_id] = value
        self._changed()

    def apply_parsed_state(self, parsed: ParseResult) -> None:
        if not parsed.ok:
            raise parsed.error

        for name in parsed.empty_group_names:
            gid = self.lookups.name_to_group_id(name)
            if gid in self.selected_group_ids:
                self._drop_group(gid)

        for gid in parsed.selected_group_ids:
            if gid not in self.selected_group_ids:
                self.selected_group_ids.append(gid)

        self.attribute_values.update(parsed.attribute_values)
        self._changed()

    def apply_raw_text(self, raw_text: str) -> Optional[ParseError]:
        """
        Applies a raw document edit. Returns the ParseError when the text does
        not decode; the store is then left exactly as it was.
        """
        parsed = deserialize(raw_text, self.lookups)
        if not parsed.ok:
            logger.debug(f"apply_raw_text: ignoring unparseable edit: {parsed.error}")
            return parsed.error
        self.apply_parsed_state(parsed)
        return None

    # -----------------------
    # Derived views
    # -----------------------

    def document(self) -> Document:
        return serialize(self.selected_group_ids, self.attribute_values, self.lookups)

    def raw_text(self) -> str:
        return dump_document(self.document())

    def snapshot(self) -> Dict[str, str]:
        return dict(self.attribute_values)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "selected_group_ids": list(self.selected_group_ids),
            "attribute_values": dict(self.attribute_values),
            "document": self.document(),
            "raw_text": self.raw_text(),
        }
