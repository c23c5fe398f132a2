"""Portable SQL types that work across PostgreSQL and SQLite."""

from enum import StrEnum

import sqlalchemy as sa


def StrEnumType(enum_cls: type[StrEnum], length: int = 20) -> sa.Enum:
    """``VARCHAR`` column that stores a :class:`StrEnum` by value.

    Native database enums are avoided so new members do not need an
    ``ALTER TYPE`` migration, and SQLite behaves the same as PostgreSQL.
    Rows load back as enum members, not plain strings.
    """
    return sa.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
