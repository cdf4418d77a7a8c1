# attrconfig/persistence_gate.py

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping

from attrconfig.document_codec import Document, dump_document, serialize
from attrconfig.errors import ExternalWriteFailed, SaveInProgress, ValidationFailed
from attrconfig.selection_store import SelectionStore
from attrconfig.validator import validate

logger = logging.getLogger("attrconfig_backend")

# (item id, serialized document) -> remote user error messages, empty on success
DocumentWriter = Callable[[str, str], List[str]]


def has_changes(attribute_values: Mapping[str, str], baseline: Mapping[str, str]) -> bool:
    for key in set(attribute_values) | set(baseline):
        if (attribute_values.get(key) or "") != (baseline.get(key) or ""):
            return True
    return False


@dataclass
class SaveOutcome:
    written: bool
    document: Document = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"written": self.written, "document": self.document}


class PersistenceGate:
    """
    Decides whether the current editing state may be saved and drives the
    single-attempt write.

    - The baseline is the attribute values as last loaded or saved; it only
      moves after the writer reports success.
    - One save at a time: a save requested while another is in flight is
      rejected with SaveInProgress rather than queued.
    """

    def __init__(self, baseline: Mapping[str, str]) -> None:
        self._lock = threading.Lock()
        self._baseline: Dict[str, str] = dict(baseline)

    @property
    def baseline(self) -> Dict[str, str]:
        return dict(self._baseline)

    @property
    def saving(self) -> bool:
        return self._lock.locked()

    def has_changes(self, store: SelectionStore) -> bool:
        return has_changes(store.attribute_values, self._baseline)

    def save(self, item_id: str, store: SelectionStore, writer: DocumentWriter) -> SaveOutcome:
        if not self._lock.acquire(blocking=False):
            logger.warning(f"save({item_id}): rejected, another save is in flight")
            raise SaveInProgress()
        try:
            # the written document and the new baseline come from the same copy
            snapshot = store.snapshot()
            selected = list(store.selected_group_ids)

            errors = validate(selected, snapshot, store.lookups)
            if errors:
                raise ValidationFailed(errors)

            document = serialize(selected, snapshot, store.lookups)
            if not has_changes(snapshot, self._baseline):
                logger.info(f"save({item_id}): no changes since last save, skipping write")
                return SaveOutcome(written=False, document=document)

            try:
                user_errors = writer(item_id, dump_document(document))
            except ExternalWriteFailed:
                raise
            except Exception as e:
                logger.info(f"save({item_id}): writer raised: {e}")
                raise ExternalWriteFailed([str(e)]) from e

            if user_errors:
                logger.info(f"save({item_id}): remote rejected the write: {user_errors}")
                raise ExternalWriteFailed(user_errors)

            self._baseline = snapshot
            logger.info(f"save({item_id}): configuration written")
            return SaveOutcome(written=True, document=document)
        finally:
            self._lock.release()
