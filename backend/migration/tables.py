"""
Table Migration Specs

Declarative list of the tables, primary keys and fields this migration
touches. Adding a table or field is a change to MIGRATION_TABLES only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


class FieldKind(str, Enum):
    """How a field holds image references."""
    URL = "url"    # The whole value is a single image URL
    HTML = "html"  # Rich text embedding zero or more image URLs


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.URL


@dataclass(frozen=True)
class TableMigrationSpec:
    """
    One table to scan.

    table_name is unprefixed; the configured TABLE_PREFIX is prepended
    when the table is queried.
    """
    table_name: str
    primary_key: str
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def qualified_name(self, prefix: str) -> str:
        return f"{prefix}{self.table_name}"


MIGRATION_TABLES: tuple[TableMigrationSpec, ...] = (
    TableMigrationSpec("ad", "id", (FieldSpec("image_url"),)),
    TableMigrationSpec("category", "id", (FieldSpec("icon_url"), FieldSpec("img_url"))),
    TableMigrationSpec(
        "goods",
        "id",
        (
            FieldSpec("list_pic_url"),
            FieldSpec("https_pic_url"),
            FieldSpec("goods_desc", FieldKind.HTML),
        ),
    ),
    TableMigrationSpec("goods_gallery", "id", (FieldSpec("img_url"),)),
    TableMigrationSpec("cart", "id", (FieldSpec("list_pic_url"),)),
    TableMigrationSpec("order_goods", "id", (FieldSpec("list_pic_url"),)),
    TableMigrationSpec("user", "id", (FieldSpec("avatar"),)),
)


def select_tables(
    only: Optional[Sequence[str]] = None,
    tables: Sequence[TableMigrationSpec] = MIGRATION_TABLES,
) -> List[TableMigrationSpec]:
    """Restrict tables to the given names (empty/None keeps all), preserving config order."""
    if not only:
        return list(tables)
    wanted = set(only)
    return [t for t in tables if t.table_name in wanted]
