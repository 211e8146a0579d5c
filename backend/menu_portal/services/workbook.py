# menu_portal/services/workbook.py
"""Spreadsheet rendering for the final package (openpyxl)."""
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from menu_portal.catalog import WEEK_DAYS

MENU_SHEET = "Menu"
LOCATION_SHEET = "Location_WorkingHours"

# (header, item key, column width)
MENU_COLUMNS = [
    ("Item Name (EN)", "item_name_en", 25),
    ("Item Name (AR)", "item_name_ar", 25),
    ("Description (EN)", "description_en", 35),
    ("Description (AR)", "description_ar", 35),
    ("Price (QAR)", "price", 12),
    ("Category", "category", 18),
    ("Barcode", "barcode", 18),
    ("Image Filename", "image_filename", 30),
]

_HEADER_FONT = Font(bold=True, color="FFFFFFFF")
_HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF4472C4")

def _text(value) -> str:
    return "" if value is None else str(value)

def _style_header(sheet, widths):
    for idx, width in enumerate(widths, start=1):
        cell = sheet.cell(row=1, column=idx)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        sheet.column_dimensions[get_column_letter(idx)].width = width

def max_addon_count(items: list) -> int:
    return max((len(item.get("addons") or []) for item in items), default=0)

def menu_headers(addon_slots: int) -> list[str]:
    headers = [header for header, _, _ in MENU_COLUMNS]
    for i in range(1, addon_slots + 1):
        headers += [f"Option {i} (EN)", f"Option {i} (AR)", f"Option {i} Price"]
    return headers

def menu_row(item: dict, rename_map: dict, addon_slots: int) -> list[str]:
    """One spreadsheet row; add-ons are flattened into repeated (EN, AR, Price) groups."""
    image = item.get("image") or ""
    values = {
        "item_name_en": item.get("item_name_en"),
        "item_name_ar": item.get("item_name_ar"),
        "description_en": item.get("description_en"),
        "description_ar": item.get("description_ar"),
        "price": item.get("price"),
        "category": item.get("category"),
        "barcode": item.get("barcode"),
        "image_filename": rename_map.get(image, image),
    }
    row = [_text(values[key]) for _, key, _ in MENU_COLUMNS]
    addons = item.get("addons") or []
    for i in range(addon_slots):
        addon = addons[i] if i < len(addons) else {}
        row += [_text(addon.get("name_en")), _text(addon.get("name_ar")), _text(addon.get("price"))]
    return row

def _clock(point) -> str:
    if not isinstance(point, dict):
        return ""
    minutes = point.get("m", "00")
    if isinstance(minutes, int):
        minutes = f"{minutes:02d}"
    return f"{_text(point.get('h'))}:{_text(minutes)} {_text(point.get('p'))}".strip()

def format_day(day_data) -> str:
    """'Closed', 'Open 24 Hours' or e.g. '9:00 AM - 11:00 PM'."""
    if not isinstance(day_data, dict) or day_data.get("closed"):
        return "Closed"
    if day_data.get("open24"):
        return "Open 24 Hours"
    return f"{_clock(day_data.get('from'))} - {_clock(day_data.get('to'))}"

def location_rows(location: dict | None) -> list[tuple[str, str]]:
    if not location:
        return [("Notice", "No location details provided.")]
    schedule = location.get("schedule")
    if not isinstance(schedule, dict):
        schedule = {}
    rows = [(f"Working Hours ({day})", format_day(schedule.get(day.lower()))) for day in WEEK_DAYS]
    rows.append(("Pickup Location (Google Maps)", _text(location.get("pickupLocation")) or "None provided"))
    rows.append(("Operational Phone Number", _text(location.get("operationalPhone")) or "None provided"))
    return rows

def build_menu_workbook(items: list, rename_map: dict, location: dict | None) -> Workbook:
    wb = Workbook()

    menu = wb.active
    menu.title = MENU_SHEET
    slots = max_addon_count(items)
    menu.append(menu_headers(slots))
    _style_header(menu, [w for _, _, w in MENU_COLUMNS] + [20, 20, 15] * slots)
    for item in items:
        menu.append(menu_row(item, rename_map, slots))

    loc = wb.create_sheet(LOCATION_SHEET)
    loc.append(["Field", "Value"])
    _style_header(loc, [30, 60])
    for field, value in location_rows(location):
        loc.append([field, value])

    return wb
