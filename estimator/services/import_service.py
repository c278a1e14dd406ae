"""
Bulk import - header aliases and spreadsheet readers.

Records are plain dicts keyed by whatever headers the source file used.
FIELD_ALIASES decides which header feeds which line item field; the first
match wins, in the order listed.
"""
import csv
import io
import logging
import os
from typing import Any, Dict, IO, List, Optional, Sequence, Tuple

from openpyxl import load_workbook

from estimator.exceptions import ValidationError
from estimator.services.row_model import RowDefaults, NUMERIC_FIELDS, DEFAULT_UNIT
from estimator.utils.number_format import parse_amount

logger = logging.getLogger(__name__)

# (canonical field, [aliases]) in priority order
FIELD_ALIASES: List[Tuple[str, List[str]]] = [
    ('description', ['item_name', 'item', 'name', 'Description', 'Item', 'Item Name']),
    ('category', ['Category', 'group', 'trade']),
    ('quantity', ['qty', 'Qty', 'Quantity', 'count']),
    ('unit', ['uom', 'UOM', 'Unit', 'units']),
    ('material_cost', ['unit_cost', 'cost', 'price', 'Material Cost', 'Unit Cost', 'Price']),
    ('material_markup_pct', ['material_markup', 'Material Markup', 'Material Markup %']),
    ('labor_hours', ['typical_labor_hours', 'hours', 'Labor Hours', 'Hours']),
    ('labor_rate', ['rate', 'Labor Rate', 'Rate']),
    ('labor_markup_pct', ['labor_markup', 'Labor Markup', 'Labor Markup %']),
    ('overhead_pct', ['overhead', 'Overhead', 'Overhead %']),
    ('profit_pct', ['profit', 'Profit', 'Profit %']),
    ('spec_url', ['url', 'spec', 'Spec URL', 'link']),
    ('notes', ['note', 'comments', 'Notes']),
]

# Fields that fall back to project / company defaults when absent
_DEFAULTED_FIELDS = (
    'category', 'quantity', 'unit', 'labor_rate',
    'material_markup_pct', 'labor_markup_pct', 'overhead_pct', 'profit_pct',
)

# Last resort when neither the record nor the defaults provide a value
HARD_DEFAULTS: Dict[str, Any] = {
    'category': '',
    'quantity': 1,
    'unit': DEFAULT_UNIT,
    'material_cost': 0,
    'labor_hours': 0,
    'labor_rate': 75,
    'material_markup_pct': 0,
    'labor_markup_pct': 0,
    'overhead_pct': 10,
    'profit_pct': 10,
    'spec_url': '',
    'notes': '',
}


def _normalize(header: Any) -> str:
    return ''.join(ch for ch in str(header).lower() if ch.isalnum())


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def resolve_field(record: Dict[str, Any], field: str, aliases: Sequence[str]) -> Optional[Any]:
    """
    Value for one field: exact primary name, then each alias, then a loose
    (case and punctuation insensitive) header match. None when nothing matches.
    """
    if _present(record.get(field)):
        return record[field]
    for alias in aliases:
        if _present(record.get(alias)):
            return record[alias]

    wanted = {_normalize(field)} | {_normalize(a) for a in aliases}
    for header, value in record.items():
        if header is not None and _normalize(header) in wanted and _present(value):
            return value
    return None


def map_record(record: Dict[str, Any], defaults: Optional[RowDefaults] = None) -> Optional[Dict[str, Any]]:
    """
    Map one source record to line item fields.

    Returns None when the record has no usable description; such records are
    skipped by the caller, never treated as errors.
    """
    defaults = defaults or RowDefaults()
    mapped: Dict[str, Any] = {}

    for field, aliases in FIELD_ALIASES:
        value = resolve_field(record, field, aliases)
        if value is None and field in _DEFAULTED_FIELDS:
            value = getattr(defaults, field, None)
            if isinstance(value, str) and not value:
                value = None
        if value is None:
            value = HARD_DEFAULTS.get(field)

        if field in NUMERIC_FIELDS:
            mapped[field] = float(parse_amount(value))
        else:
            mapped[field] = '' if value is None else str(value).strip()

    if not mapped.get('description'):
        return None
    if not mapped.get('unit'):
        mapped['unit'] = DEFAULT_UNIT
    return mapped


# ========== Readers ==========

def read_csv(stream: IO) -> List[Dict[str, Any]]:
    """Read a CSV file (text or binary stream) into a list of dicts."""
    data = stream.read()
    if isinstance(data, bytes):
        data = data.decode('utf-8-sig')
    reader = csv.DictReader(io.StringIO(data))
    return [dict(row) for row in reader]


def read_xlsx(stream: IO) -> List[Dict[str, Any]]:
    """Read the first worksheet; the first row holds the headers."""
    workbook = load_workbook(stream, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        headers = next(rows, None)
        if not headers:
            return []
        headers = [str(h).strip() if h is not None else None for h in headers]

        records = []
        for values in rows:
            if values is None or all(v is None for v in values):
                continue
            record = {}
            for header, value in zip(headers, values):
                if header:
                    record[header] = value
            records.append(record)
        return records
    finally:
        workbook.close()


def read_records(filename: str, stream: IO, allowed_extensions=('csv', 'xlsx')) -> List[Dict[str, Any]]:
    """Dispatch on the file extension."""
    extension = os.path.splitext(filename or '')[1].lower().lstrip('.')
    if extension not in allowed_extensions:
        raise ValidationError(
            f"Unsupported import file type '{extension or filename}'.",
            payload={'allowed': sorted(allowed_extensions)},
        )

    if extension == 'csv':
        records = read_csv(stream)
    else:
        records = read_xlsx(stream)
    logger.info(f"[IMPORT] Read {len(records)} record(s) from {filename}")
    return records
