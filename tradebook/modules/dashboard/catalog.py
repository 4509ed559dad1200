"""Catalog item identity shared by order items and invoice items."""

from typing import Any, NamedTuple

CATALOG_FIELDS = ("project_no", "part_no", "material_no", "description", "uom")


class CatalogKey(NamedTuple):
    """
    (project_no, part_no, material_no, description, uom) with None stored as "".

    Two lines are the same catalog item iff all five fields are equal. No
    trimming or case folding: "ABC" and "abc " are different items.
    """

    project_no: str
    part_no: str
    material_no: str
    description: str
    uom: str

    @classmethod
    def from_item(cls, item: Any) -> "CatalogKey":
        """Build the key from any object (or mapping) exposing the five fields."""
        if isinstance(item, dict):
            values = (item.get(field) for field in CATALOG_FIELDS)
        else:
            values = (getattr(item, field, None) for field in CATALOG_FIELDS)
        return cls(*("" if value is None else str(value) for value in values))

    def display(self) -> dict[str, str | None]:
        """Fields for output, with empty values shown as None."""
        return {field: (value or None) for field, value in zip(CATALOG_FIELDS, self)}


def catalog_key(item: Any) -> CatalogKey:
    return CatalogKey.from_item(item)
