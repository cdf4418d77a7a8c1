# attrconfig/catalog_store.py

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload, sessionmaker

from attrconfig.entities import Attribute, Group
from attrconfig.errors import InvalidRequest, Unauthorized
from attrconfig.lookups import AttributeRecord, CatalogLookups, GroupRecord

logger = logging.getLogger("attrconfig_backend")


def _group_record(group: Group) -> GroupRecord:
    return GroupRecord(id=group.id, name=group.name, shop=group.shop)


def _attribute_record(attr: Attribute, shop: str) -> AttributeRecord:
    return AttributeRecord(
        id=attr.id,
        name=attr.name,
        shop=attr.shop,
        group_ids=tuple(g.id for g in attr.groups if g.shop == shop),
    )


def _clean_name(name: Optional[str], entity: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidRequest(f"{entity} name is required")
    return name


class CatalogStore:
    """
    Shop-scoped storage of attribute groups and attributes.

    Every read filters by shop. Updates and deletes first look the row up by
    (id, shop); a row that is missing or owned by another shop is reported as
    Unauthorized and nothing is changed.
    """

    def __init__(self, session_factory: sessionmaker):
        self.SessionFactory = session_factory

    # -----------------------
    # Reads
    # -----------------------

    def list_groups(self, shop: str) -> List[GroupRecord]:
        session: Session = self.SessionFactory()
        try:
            rows = (
                session.query(Group)
                    .filter(Group.shop == shop)
                    .order_by(Group.created_at, Group.name)
                    .all()
            )
            return [_group_record(g) for g in rows]
        finally:
            session.close()

    def list_attributes(self, shop: str) -> List[AttributeRecord]:
        session: Session = self.SessionFactory()
        try:
            rows = (
                session.query(Attribute)
                    .options(selectinload(Attribute.groups))
                    .filter(Attribute.shop == shop)
                    .order_by(Attribute.created_at, Attribute.name)
                    .all()
            )
            # materialize before closing session
            return [_attribute_record(a, shop) for a in rows]
        finally:
            session.close()

    def load_lookups(self, shop: str) -> CatalogLookups:
        return CatalogLookups(self.list_groups(shop), self.list_attributes(shop))

    # -----------------------
    # Groups
    # -----------------------

    def _owned_group(self, session: Session, shop: str, group_id: str) -> Group:
        group = (
            session.query(Group)
                .filter(Group.id == str(group_id), Group.shop == shop)
                .one_or_none()
        )
        if group is None:
            logger.warning(f"[catalog] group {group_id} is not owned by {shop}")
            raise Unauthorized("Group", str(group_id))
        return group

    def create_group(self, shop: str, name: Optional[str]) -> GroupRecord:
        name = _clean_name(name, "Group")
        session: Session = self.SessionFactory()
        try:
            group = Group(name=name, shop=shop)
            session.add(group)
            session.commit()
            logger.info(f"[catalog] created group '{name}' ({group.id}) for {shop}")
            return _group_record(group)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def update_group(self, shop: str, group_id: str, name: Optional[str]) -> GroupRecord:
        name = _clean_name(name, "Group")
        session: Session = self.SessionFactory()
        try:
            group = self._owned_group(session, shop, group_id)
            group.name = name
            session.commit()
            return _group_record(group)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete_group(self, shop: str, group_id: str) -> None:
        session: Session = self.SessionFactory()
        try:
            group = self._owned_group(session, shop, group_id)
            # attributes survive; only their membership in this group goes
            group.attributes.clear()
            session.delete(group)
            session.commit()
            logger.info(f"[catalog] deleted group {group_id} for {shop}")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -----------------------
    # Attributes
    # -----------------------

    def _owned_attribute(self, session: Session, shop: str, attribute_id: str) -> Attribute:
        attr = (
            session.query(Attribute)
                .filter(Attribute.id == str(attribute_id), Attribute.shop == shop)
                .one_or_none()
        )
        if attr is None:
            logger.warning(f"[catalog] attribute {attribute_id} is not owned by {shop}")
            raise Unauthorized("Attribute", str(attribute_id))
        return attr

    def _shop_groups(self, session: Session, shop: str, group_ids: Iterable[str]) -> List[Group]:
        wanted = [str(g) for g in (group_ids or [])]
        if not wanted:
            return []
        rows = (
            session.query(Group)
                .filter(Group.id.in_(wanted), Group.shop == shop)
                .all()
        )
        by_id = {g.id: g for g in rows}
        ignored = [g for g in wanted if g not in by_id]
        if ignored:
            logger.warning(f"[catalog] ignoring groups outside {shop}: {ignored}")
        # keep caller order, drop duplicates
        ordered: List[Group] = []
        for gid in wanted:
            group = by_id.get(gid)
            if group is not None and group not in ordered:
                ordered.append(group)
        return ordered

    def create_attribute(
        self, shop: str, name: Optional[str], group_ids: Iterable[str] = ()
    ) -> AttributeRecord:
        name = _clean_name(name, "Attribute")
        session: Session = self.SessionFactory()
        try:
            attr = Attribute(name=name, shop=shop)
            attr.groups = self._shop_groups(session, shop, group_ids)
            session.add(attr)
            session.commit()
            logger.info(f"[catalog] created attribute '{name}' ({attr.id}) for {shop}")
            return _attribute_record(attr, shop)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def update_attribute(
        self,
        shop: str,
        attribute_id: str,
        name: Optional[str],
        group_ids: Iterable[str] = (),
    ) -> AttributeRecord:
        name = _clean_name(name, "Attribute")
        session: Session = self.SessionFactory()
        try:
            attr = self._owned_attribute(session, shop, attribute_id)
            attr.name = name
            # membership is replaced, not merged
            attr.groups = self._shop_groups(session, shop, group_ids)
            session.commit()
            return _attribute_record(attr, shop)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete_attribute(self, shop: str, attribute_id: str) -> None:
        session: Session = self.SessionFactory()
        try:
            attr = self._owned_attribute(session, shop, attribute_id)
            attr.groups = []
            session.delete(attr)
            session.commit()
            logger.info(f"[catalog] deleted attribute {attribute_id} for {shop}")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
