# attrconfig/lookups.py

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class GroupRecord:
    id: str
    name: str
    shop: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "shop": self.shop}


@dataclass(frozen=True)
class AttributeRecord:
    id: str
    name: str
    shop: str
    group_ids: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "shop": self.shop,
            "group_ids": list(self.group_ids),
        }


class CatalogLookups:
    """
    Read-only name <-> id tables for one shop's groups and attributes.

    Every lookup answers None for unknown keys: the configuration document
    may reference groups or attributes that were renamed or deleted since it
    was written, and those references are dropped rather than treated as errors.
    """

    def __init__(self, groups: Iterable[GroupRecord], attributes: Iterable[AttributeRecord]):
        self.groups: List[GroupRecord] = list(groups)
        self.attributes: List[AttributeRecord] = list(attributes)

        self._group_by_id: Dict[str, GroupRecord] = {g.id: g for g in self.groups}
        self._group_id_by_name: Dict[str, str] = {g.name: g.id for g in self.groups}
        self._attr_by_id: Dict[str, AttributeRecord] = {a.id: a for a in self.attributes}
        self._attr_id_by_name: Dict[str, str] = {a.name: a.id for a in self.attributes}

        # group id -> attributes in catalog order
        self._attrs_by_group: Dict[str, List[AttributeRecord]] = {}
        for attr in self.attributes:
            for gid in attr.group_ids:
                self._attrs_by_group.setdefault(gid, []).append(attr)

    def name_to_group_id(self, name: str) -> Optional[str]:
        return self._group_id_by_name.get(name)

    def name_to_attribute_id(self, name: str) -> Optional[str]:
        return self._attr_id_by_name.get(name)

    def id_to_group_name(self, group_id: str) -> Optional[str]:
        group = self._group_by_id.get(group_id)
        return group.name if group else None

    def id_to_attribute_name(self, attribute_id: str) -> Optional[str]:
        attr = self._attr_by_id.get(attribute_id)
        return attr.name if attr else None

    def attributes_of_group(self, group_id: str) -> List[AttributeRecord]:
        return list(self._attrs_by_group.get(group_id, []))

    def groups_of_attribute(self, attribute_id: str) -> Tuple[str, ...]:
        attr = self._attr_by_id.get(attribute_id)
        return attr.group_ids if attr else ()

    def has_group(self, group_id: str) -> bool:
        return group_id in self._group_by_id

    def to_dict(self) -> dict:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "attributes": [a.to_dict() for a in self.attributes],
        }
