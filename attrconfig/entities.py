# attrconfig/entities.py
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Table, func
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

from typing import TypeAlias
UUID: TypeAlias = str
ShopDomain: TypeAlias = str

Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


# Many-to-many between attributes and groups; rows go away with either side.
attribute_group = Table(
    "attribute_group_member",
    Base.metadata,
    Column(
        "attribute_id",
        String(36),
        ForeignKey("attribute.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "group_id",
        String(36),
        ForeignKey("attr_group.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Group(Base, TimestampMixin):
    # "group" is reserved in most SQL dialects
    __tablename__ = "attr_group"

    id: Mapped[UUID] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    shop: Mapped[ShopDomain] = mapped_column(String(255), nullable=False)

    attributes = relationship(
        "Attribute",
        secondary=attribute_group,
        back_populates="groups",
    )

    __table_args__ = (
        Index("ix_attr_group_shop", "shop"),
    )


class Attribute(Base, TimestampMixin):
    __tablename__ = "attribute"

    id: Mapped[UUID] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    shop: Mapped[ShopDomain] = mapped_column(String(255), nullable=False)

    groups = relationship(
        "Group",
        secondary=attribute_group,
        back_populates="attributes",
    )

    __table_args__ = (
        Index("ix_attribute_shop", "shop"),
    )
