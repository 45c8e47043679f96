import csv
import io
from dataclasses import dataclass
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter


@dataclass(frozen=True)
class ExportColumn:
    header: str
    key: str
    width: int = 15
    number_format: str | None = None


MONEY_FMT = '#,##0.00'

FORWARD_AUCTION_COLUMNS = [
    ExportColumn("Product", "productname", 30),
    ExportColumn("Subtype", "auctionsubtype", 12),
    ExportColumn("Category", "category_name", 18),
    ExportColumn("Seller", "seller_name", 20),
    ExportColumn("Status", "status", 11),
    ExportColumn("Start", "scheduledstart", 20),
    ExportColumn("Currency", "currency", 9),
    ExportColumn("Start Price", "startprice", 13, MONEY_FMT),
    ExportColumn("Highest Bid", "highest_bid", 13, MONEY_FMT),
    ExportColumn("Bids", "total_bids", 7),
    ExportColumn("Last Bid", "last_bid_time", 20),
]

REVERSE_AUCTION_COLUMNS = [
    ExportColumn("Auction", "auction_name", 30),
    ExportColumn("Subtype", "auctionsubtype", 12),
    ExportColumn("Category", "categoryid", 18),
    ExportColumn("Buyer", "buyer_name", 20),
    ExportColumn("Status", "status", 11),
    ExportColumn("Start", "scheduledstart", 20),
    ExportColumn("Currency", "currency", 9),
    ExportColumn("Target Price", "targetprice", 13, MONEY_FMT),
    ExportColumn("Lowest Bid", "lowest_bid", 13, MONEY_FMT),
    ExportColumn("Bids", "total_bids", 7),
    ExportColumn("Last Bid", "last_bid_time", 20),
]

WINNER_COLUMNS = [
    ExportColumn("Auction", "auction_name", 30),
    ExportColumn("Type", "auction_type", 10),
    ExportColumn("Winner", "winner_name", 22),
    ExportColumn("Location", "winner_location", 18),
    ExportColumn("Winning Bid", "winning_bid", 14, MONEY_FMT),
    ExportColumn("Currency", "currency", 9),
    ExportColumn("Closed At", "closed_at", 22),
]

BID_COLUMNS = [
    ExportColumn("Auction", "auction_title", 30),
    ExportColumn("Type", "auction_type", 10),
    ExportColumn("Bidder", "user_name", 22),
    ExportColumn("Location", "location", 18),
    ExportColumn("Amount", "amount", 13, MONEY_FMT),
    ExportColumn("Placed At", "created_at", 22),
    ExportColumn("Auction Creator", "creator_name", 22),
]

BUY_NOW_COLUMNS = [
    ExportColumn("Product", "productname", 30),
    ExportColumn("Category", "categoryid", 18),
    ExportColumn("Purchaser", "purchaser_name", 22),
    ExportColumn("Price", "buy_now_price", 13, MONEY_FMT),
    ExportColumn("Currency", "currency", 9),
]

PROFILE_COLUMNS = [
    ExportColumn("First Name", "fname", 16),
    ExportColumn("Last Name", "lname", 16),
    ExportColumn("Email", "email", 28),
    ExportColumn("Location", "location", 18),
    ExportColumn("Phone", "phone", 16),
    ExportColumn("Joining Date", "created_at", 20),
    ExportColumn("Verified", "verified", 9),
]


def _cell_value(value):
    if isinstance(value, datetime):
        # Excel cannot store timezone-aware datetimes
        return value.replace(tzinfo=None)
    if isinstance(value, (list, dict)):
        return str(value)
    return value


def export_rows_to_excel(
    rows: list[dict],
    columns: list[ExportColumn],
    sheet_title: str,
    stats: dict | None = None,
) -> io.BytesIO:
    """Generate an Excel workbook with one data sheet and an optional stats sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]

    # Header style
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="2C3E50", end_color="2C3E50", fill_type="solid")
    header_align = Alignment(horizontal="center", vertical="center")
    thin_border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    for col, column in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col, value=column.header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align
        cell.border = thin_border

    light_fill = PatternFill(start_color="F2F3F4", end_color="F2F3F4", fill_type="solid")
    for row_idx, row in enumerate(rows, 2):
        for col, column in enumerate(columns, 1):
            cell = ws.cell(row=row_idx, column=col, value=_cell_value(row.get(column.key)))
            if column.number_format:
                cell.number_format = column.number_format
            if row_idx % 2 == 0:
                cell.fill = light_fill

    for i, column in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(i)].width = column.width

    if stats:
        ws_stats = wb.create_sheet("Statistics")
        ws_stats.cell(row=1, column=1, value="Metric").font = Font(bold=True)
        ws_stats.cell(row=1, column=2, value="Value").font = Font(bold=True)
        for i, (key, value) in enumerate(_flatten(stats).items(), 2):
            ws_stats.cell(row=i, column=1, value=key)
            ws_stats.cell(row=i, column=2, value=_cell_value(value))
        ws_stats.column_dimensions["A"].width = 30
        ws_stats.column_dimensions["B"].width = 15

    ws.freeze_panes = "A2"
    ws.auto_filter.ref = f"A1:{get_column_letter(len(columns))}1"

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def export_rows_to_csv(rows: list[dict], columns: list[ExportColumn]) -> io.BytesIO:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow([c.header for c in columns])
    for row in rows:
        writer.writerow(["" if row.get(c.key) is None else row.get(c.key) for c in columns])
    return io.BytesIO(buffer.getvalue().encode("utf-8"))


def _flatten(stats: dict, prefix: str = "") -> dict:
    flat = {}
    for key, value in stats.items():
        label = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{label} / "))
        else:
            flat[label] = value
    return flat
