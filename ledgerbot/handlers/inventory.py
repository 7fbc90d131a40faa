"""Stock summary handler."""

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, first_rows, row_value
from ledgerbot.parsing import parse_amount
from ledgerbot.query.models import InventoryResult, StockItem

STOCK_QUERIES = [
    "SELECT $Name, $Parent, $ClosingBalance, $BaseUnits FROM StockItem",
    "SELECT $Name, $StockGroup, $ClosingBalance, $BaseUnits FROM ListofStockItems",
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger WHERE $Parent LIKE '%Stock%'",
]

TOP_ITEMS = 10


def _quantity(value: float) -> str:
    return f"{value:,.2f}".rstrip("0").rstrip(".")


async def stock_summary(ctx: HandlerContext, query: str) -> HandlerResult:
    rows = await first_rows(ctx.source, STOCK_QUERIES)
    if not rows:
        return failure("No inventory data found")

    items = []
    groups = {}
    for row in rows:
        quantity = parse_amount(row_value(row, "ClosingBalance"))
        if quantity == 0:
            continue
        name = str(row_value(row, "Name", default="Unknown"))
        unit = str(row_value(row, "BaseUnits", default="Units"))
        items.append(StockItem(name=name, quantity=abs(quantity), unit=unit))
        groups[name] = row_value(row, "Parent", "StockGroup", default="Unknown")

    if not items:
        return failure("No inventory data found")

    items.sort(key=lambda item: item.quantity, reverse=True)
    total_quantity = sum(item.quantity for item in items)

    lines = [f"📦 **Stock Status (Top {TOP_ITEMS} by Quantity):**", ""]
    for i, item in enumerate(items[:TOP_ITEMS], 1):
        lines.append(f"{i}. **{item.name}** ({groups[item.name]})")
        lines.append(f"   Quantity: {_quantity(item.quantity)} {item.unit}")
        lines.append("")
    lines += [
        "📊 **Summary:**",
        f"• Showing top {min(TOP_ITEMS, len(items))} of {len(items)} items",
        f"• Total quantity (all items): {_quantity(total_quantity)}",
    ]

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=InventoryResult(items=items),
    )
