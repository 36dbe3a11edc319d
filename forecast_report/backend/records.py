"""
Structured inventory records: validation, row conversion, summary statistics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import pandas as pd

# Upstream payload keys (camelCase) required on every inventory item.
REQUIRED_FIELDS: List[str] = [
    "name",
    "sku",
    "tagId",
    "description",
    "category",
    "quantity",
    "threshold",
    "warehouseId",
    "zoneId",
    "shelfId",
    "binId",
    "status",
    "inventoryStatus",
    "costPrice",
    "retailPrice",
]

STRUCTURED_HEADER: List[str] = [
    "name",
    "sku",
    "category",
    "quantity",
    "threshold",
    "cost_price",
    "retail_price",
    "status",
    "location",
]

LOCATION_SEPARATOR = "/"


def _to_snake(key: str) -> str:
    out = []
    for char in key:
        if char.isupper():
            out.append("_" + char.lower())
        else:
            out.append(char)
    return "".join(out)


def _format_currency(value: float) -> str:
    return f"{value:.2f}"


@dataclass
class InventoryRecord:
    """One inventory item as sent by the inventory service."""
    name: str
    sku: str
    category: str
    quantity: int
    threshold: int
    cost_price: float
    retail_price: float
    status: str = ""
    tag_id: str = ""
    description: str = ""
    warehouse_id: str = ""
    zone_id: str = ""
    shelf_id: str = ""
    bin_id: str = ""
    inventory_status: str = ""

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> "InventoryRecord":
        """Build from a camelCase or snake_case mapping."""
        values = {_to_snake(str(k)): v for k, v in dict(item).items()}
        missing = [k for k in ("name", "sku", "category", "quantity", "threshold", "cost_price", "retail_price")
                   if k not in values]
        if missing:
            raise ValueError(f"Inventory item missing fields: {', '.join(missing)}")

        try:
            quantity = int(float(values["quantity"]))
            threshold = int(float(values["threshold"]))
            cost_price = float(values["cost_price"])
            retail_price = float(values["retail_price"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Inventory item {values.get('sku', '?')} has non-numeric values: {str(e)}")

        return cls(
            name=str(values["name"]),
            sku=str(values["sku"]),
            category=str(values["category"]),
            quantity=quantity,
            threshold=threshold,
            cost_price=cost_price,
            retail_price=retail_price,
            status=str(values.get("status", "")),
            tag_id=str(values.get("tag_id", "")),
            description=str(values.get("description", "")),
            warehouse_id=str(values.get("warehouse_id", "")),
            zone_id=str(values.get("zone_id", "")),
            shelf_id=str(values.get("shelf_id", "")),
            bin_id=str(values.get("bin_id", "")),
            inventory_status=str(values.get("inventory_status", "")),
        )

    @property
    def location(self) -> str:
        return LOCATION_SEPARATOR.join([self.warehouse_id, self.zone_id, self.shelf_id, self.bin_id])

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.threshold

    def to_row(self) -> List[str]:
        """Serialize in ``STRUCTURED_HEADER`` order."""
        return [
            self.name,
            self.sku,
            self.category,
            str(self.quantity),
            str(self.threshold),
            _format_currency(self.cost_price),
            _format_currency(self.retail_price),
            self.status,
            self.location,
        ]


def validate_inventory(items: Iterable[Mapping[str, Any]]) -> List[str]:
    """Return one message per item that lacks required fields."""
    errors = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            errors.append(f"Item {index + 1} is not an object")
            continue
        missing = [f for f in REQUIRED_FIELDS if f not in item]
        if missing:
            errors.append(f"Item {index + 1} missing fields: {', '.join(missing)}")
    return errors


def coerce_records(rows: Iterable[Any]) -> List[InventoryRecord]:
    """Accept InventoryRecord instances or mappings."""
    records = []
    for index, row in enumerate(rows):
        if isinstance(row, InventoryRecord):
            records.append(row)
        elif isinstance(row, Mapping):
            records.append(InventoryRecord.from_mapping(row))
        else:
            raise ValueError(f"Row {index + 1} is not an inventory record: {type(row).__name__}")
    return records


def records_to_rows(records: Iterable[Any]) -> Tuple[List[str], List[List[str]]]:
    """Convert structured records to the fixed header and string rows."""
    return list(STRUCTURED_HEADER), [record.to_row() for record in coerce_records(records)]


@dataclass
class InventorySummary:
    """Aggregate view of an inventory snapshot."""
    total_items: int = 0
    total_quantity: int = 0
    total_value: float = 0.0
    categories: Dict[str, Dict[str, float]] = field(default_factory=dict)
    low_stock: List[Dict[str, Any]] = field(default_factory=list)

    def summary_lines(self) -> List[str]:
        """Narrative lines for the report."""
        lines = [
            f"Total Items: {self.total_items}",
            f"Total Quantity: {self.total_quantity}",
            f"Total Inventory Value: ${self.total_value:,.2f}",
            f"Categories: {', '.join(self.categories) if self.categories else 'none'}",
            "",
            "Category Analysis:",
        ]
        for category, stats in self.categories.items():
            lines.append(
                f"- {category}: {int(stats['count'])} items, {int(stats['quantity'])} units, "
                f"${stats['value']:,.2f} value"
            )
        lines.append("")
        lines.append("Low Stock Alerts:")
        if self.low_stock:
            for item in self.low_stock:
                lines.append(
                    f"- {item['name']} ({item['sku']}): {item['quantity']} units "
                    f"(threshold: {item['threshold']})"
                )
        else:
            lines.append("- No items below threshold")
        return lines


def summarize_inventory(records: Iterable[Any]) -> InventorySummary:
    """Totals, per-category breakdown and low-stock items."""
    items = coerce_records(records)
    if not items:
        return InventorySummary()

    df = pd.DataFrame(
        [
            {
                "name": r.name,
                "sku": r.sku,
                "category": r.category,
                "quantity": r.quantity,
                "threshold": r.threshold,
                "value": r.cost_price * r.quantity,
            }
            for r in items
        ]
    )

    grouped = df.groupby("category", sort=False).agg(
        count=("sku", "size"),
        quantity=("quantity", "sum"),
        value=("value", "sum"),
    )
    categories = {
        str(category): {
            "count": int(row["count"]),
            "quantity": int(row["quantity"]),
            "value": float(row["value"]),
        }
        for category, row in grouped.iterrows()
    }

    low = df[df["quantity"] <= df["threshold"]]
    low_stock = low[["name", "sku", "quantity", "threshold"]].to_dict("records")

    return InventorySummary(
        total_items=len(df),
        total_quantity=int(df["quantity"].sum()),
        total_value=float(df["value"].sum()),
        categories=categories,
        low_stock=[{k: (int(v) if k in ("quantity", "threshold") else v) for k, v in item.items()}
                   for item in low_stock],
    )
