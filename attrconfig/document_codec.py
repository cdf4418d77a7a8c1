# attrconfig/document_codec.py
"""
Conversion between the editing state and the attribute configuration document.

The document is the JSON object stored on the product:

    {"<group name>": {"<attribute name>": "<value>", ...}, ...}

It stores names rather than ids so it stays readable and editable by hand.
`serialize` is the canonical direction: blank values and groups left with no
value are never written. `deserialize` is the tolerant direction: anything
it cannot resolve is dropped and reported, and only text that does not
decode at all is an error.
"""

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import commentjson
import yaml

from attrconfig.errors import ParseError
from attrconfig.lookups import CatalogLookups

logger = logging.getLogger("attrconfig_backend")

Document = Dict[str, Dict[str, str]]


@dataclass
class ParseResult:
    selected_group_ids: List[str] = field(default_factory=list)
    attribute_values: Dict[str, str] = field(default_factory=dict)
    empty_group_names: List[str] = field(default_factory=list)
    dropped_group_names: List[str] = field(default_factory=list)
    dropped_attribute_names: List[str] = field(default_factory=list)
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "selected_group_ids": list(self.selected_group_ids),
            "attribute_values": dict(self.attribute_values),
            "empty_group_names": list(self.empty_group_names),
            "dropped_group_names": list(self.dropped_group_names),
            "dropped_attribute_names": list(self.dropped_attribute_names),
            "error": self.error.to_dict() if self.error else None,
        }


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def serialize(
    selected_group_ids: Sequence[str],
    attribute_values: Mapping[str, str],
    lookups: CatalogLookups,
) -> Document:
    document: Document = OrderedDict()
    for group_id in selected_group_ids:
        group_name = lookups.id_to_group_name(group_id)
        if group_name is None:
            continue

        entry: Dict[str, str] = OrderedDict()
        for attr in lookups.attributes_of_group(group_id):
            value = attribute_values.get(attr.id)
            if _is_filled(value):
                entry[attr.name] = value

        if entry:
            document[group_name] = entry
    return document


def dump_document(document: Mapping[str, Mapping[str, str]]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def _decode_text(raw_text: str) -> Any:
    """
    Decodes raw editor text. Strict JSON (with comments) first, YAML flow
    syntax second. Raises ParseError when neither produces a value.
    """
    err, line = "", None
    try:
        return commentjson.loads(raw_text, object_pairs_hook=OrderedDict)
    except Exception as e:
        err = str(e)

    # safe_load also raises ValueError on impossible timestamps (2020-13-45)
    # and RecursionError on deep nesting
    try:
        data = yaml.safe_load(raw_text)
    except Exception as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 1
        raise ParseError(f"Document is not valid JSON: {err}", line=line) from e

    if isinstance(data, str) or data is None:
        raise ParseError(f"Document is not valid JSON: {err}")
    return data


def deserialize(raw: Any, lookups: CatalogLookups) -> ParseResult:
    """
    Reverse-parses a configuration document (text or an already-decoded
    mapping) against the shop's lookups.

    Never raises. An unparseable document comes back as a result whose
    `error` is set and whose state fields are empty; callers must then keep
    their previous state untouched.
    """
    if isinstance(raw, (str, bytes)):
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        if not text.strip():
            return ParseResult()
        try:
            data = _decode_text(text)
        except ParseError as e:
            return ParseResult(error=e)
    else:
        data = raw

    if data is None:
        return ParseResult()
    if not isinstance(data, Mapping):
        return ParseResult(
            error=ParseError(f"Document root must be an object, got {type(data).__name__}")
        )

    result = ParseResult()
    for group_name, group_attrs in data.items():
        group_id = lookups.name_to_group_id(group_name) if isinstance(group_name, str) else None
        if group_id is None or not isinstance(group_attrs, Mapping):
            result.dropped_group_names.append(str(group_name))
            continue

        if len(group_attrs) == 0:
            result.empty_group_names.append(group_name)
        elif group_id not in result.selected_group_ids:
            result.selected_group_ids.append(group_id)

        for attr_name, value in group_attrs.items():
            attr_id = lookups.name_to_attribute_id(attr_name) if isinstance(attr_name, str) else None
            # bool is excluded along with numbers, arrays and nested objects
            if attr_id is None or not isinstance(value, str):
                result.dropped_attribute_names.append(f"{group_name}.{attr_name}")
                continue
            result.attribute_values[attr_id] = value

    if result.dropped_group_names or result.dropped_attribute_names:
        logger.debug(
            "deserialize dropped groups=%s attributes=%s",
            result.dropped_group_names,
            result.dropped_attribute_names,
        )
    return result


def load_document(stored: Any) -> Dict[str, Any]:
    """
    Decodes the value stored on the product. A missing or unreadable stored
    value loads as an empty document.
    """
    if stored is None or stored == "":
        return {}
    if isinstance(stored, Mapping):
        return dict(stored)
    try:
        data = json.loads(stored, object_pairs_hook=OrderedDict)
    except (TypeError, ValueError) as e:
        logger.warning(f"load_document: stored configuration is not valid JSON: {e}")
        return {}
    if isinstance(data, str):
        # older writes stored the document JSON-encoded twice
        return load_document(data)
    if not isinstance(data, Mapping):
        logger.warning("load_document: stored configuration is not a JSON object")
        return {}
    return data
