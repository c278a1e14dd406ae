"""
Row model for the estimate grid.

An EditableRow is an immutable snapshot of one line item as the grid sees it.
Rows start life as placeholders (Unsaved identity) and become Saved once the
store confirms a write; nothing turns a Saved row back into an Unsaved one.
"""
import uuid
from dataclasses import dataclass, replace, fields as dc_fields
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Union

from estimator.exceptions import ValidationError
from estimator.utils.number_format import parse_amount, to_decimal

FALLBACK_LABOR_RATE = Decimal('75')
FALLBACK_OVERHEAD_PCT = Decimal('10')
FALLBACK_PROFIT_PCT = Decimal('10')
FALLBACK_MARKUP_PCT = Decimal('0')
DEFAULT_UNIT = 'EA'

UNITS = ('EA', 'FT', 'LF', 'SF', 'SY', 'HR', 'DAY', 'LS', 'BOX', 'SPL', 'RL', 'PK')

NUMERIC_FIELDS = (
    'quantity', 'material_cost', 'labor_hours', 'labor_rate',
    'material_markup_pct', 'labor_markup_pct', 'overhead_pct', 'profit_pct',
)
TEXT_FIELDS = ('category', 'description', 'unit', 'spec_url', 'notes')
EDITABLE_FIELDS = NUMERIC_FIELDS + TEXT_FIELDS


@dataclass(frozen=True)
class Unsaved:
    """Placeholder identity; token only keys the row on screen."""
    token: str


@dataclass(frozen=True)
class Saved:
    """Identity of a row the store has confirmed."""
    id: int


RowIdentity = Union[Unsaved, Saved]


@dataclass(frozen=True)
class RowDefaults:
    """Initial values for a fresh row."""
    category: str = ''
    unit: str = DEFAULT_UNIT
    quantity: Decimal = Decimal('1')
    labor_rate: Decimal = FALLBACK_LABOR_RATE
    material_markup_pct: Decimal = FALLBACK_MARKUP_PCT
    labor_markup_pct: Decimal = FALLBACK_MARKUP_PCT
    overhead_pct: Decimal = FALLBACK_OVERHEAD_PCT
    profit_pct: Decimal = FALLBACK_PROFIT_PCT

    @classmethod
    def from_settings(cls, settings=None, categories: Iterable = ()) -> 'RowDefaults':
        """
        Build defaults from company settings and the category list.

        Missing settings (or a missing settings row) fall back to the
        hard-coded constants.
        """
        def pick(attr, fallback):
            value = getattr(settings, attr, None) if settings is not None else None
            if value is None:
                return fallback
            return parse_amount(value)

        first_category = ''
        for category in categories:
            first_category = getattr(category, 'name', category) or ''
            break

        return cls(
            category=first_category,
            labor_rate=pick('default_labor_rate', FALLBACK_LABOR_RATE),
            material_markup_pct=pick('default_material_markup_pct', FALLBACK_MARKUP_PCT),
            labor_markup_pct=pick('default_labor_markup_pct', FALLBACK_MARKUP_PCT),
            overhead_pct=pick('default_overhead_pct', FALLBACK_OVERHEAD_PCT),
            profit_pct=pick('default_profit_pct', FALLBACK_PROFIT_PCT),
        )


@dataclass(frozen=True)
class EditableRow:
    identity: RowIdentity
    project_id: Optional[int] = None
    category: str = ''
    description: str = ''
    quantity: Decimal = Decimal('1')
    unit: str = DEFAULT_UNIT
    material_cost: Decimal = Decimal('0')
    material_markup_pct: Decimal = FALLBACK_MARKUP_PCT
    labor_hours: Decimal = Decimal('0')
    labor_rate: Decimal = FALLBACK_LABOR_RATE
    labor_markup_pct: Decimal = FALLBACK_MARKUP_PCT
    overhead_pct: Decimal = FALLBACK_OVERHEAD_PCT
    profit_pct: Decimal = FALLBACK_PROFIT_PCT
    spec_url: str = ''
    notes: str = ''
    sort_order: int = 0

    @property
    def is_new(self) -> bool:
        return isinstance(self.identity, Unsaved)

    @property
    def id(self) -> Optional[int]:
        if isinstance(self.identity, Saved):
            return self.identity.id
        return None

    @property
    def key(self) -> str:
        """Stable display key for either identity."""
        if isinstance(self.identity, Saved):
            return f"item-{self.identity.id}"
        return self.identity.token

    @property
    def has_description(self) -> bool:
        return bool(self.description and self.description.strip())

    @property
    def is_placeholder(self) -> bool:
        return self.is_new and not self.has_description

    def to_fields(self) -> Dict[str, Any]:
        """Full field set as sent to the store (floats for the REAL columns)."""
        data = {
            'project_id': self.project_id,
            'sort_order': self.sort_order,
            'category': self.category or None,
            'description': self.description,
            'unit': self.unit or DEFAULT_UNIT,
            'spec_url': self.spec_url or None,
            'notes': self.notes or None,
        }
        for name in NUMERIC_FIELDS:
            data[name] = float(getattr(self, name))
        return data

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_fields()
        data.update({
            'id': self.id,
            'key': self.key,
            'is_new': self.is_new,
            'category': self.category,
            'spec_url': self.spec_url,
            'notes': self.notes,
        })
        return data


def new_token() -> str:
    return f"temp-{uuid.uuid4().hex[:12]}"


def create_empty_row(defaults: Optional[RowDefaults] = None, project_id: Optional[int] = None,
                     token: Optional[str] = None) -> EditableRow:
    """Return a placeholder row seeded from defaults. Touches nothing else."""
    defaults = defaults or RowDefaults()
    return EditableRow(
        identity=Unsaved(token or new_token()),
        project_id=project_id,
        category=defaults.category,
        quantity=defaults.quantity,
        unit=defaults.unit,
        labor_rate=defaults.labor_rate,
        material_markup_pct=defaults.material_markup_pct,
        labor_markup_pct=defaults.labor_markup_pct,
        overhead_pct=defaults.overhead_pct,
        profit_pct=defaults.profit_pct,
    )


def set_field(row: EditableRow, key: str, raw_value: Any) -> EditableRow:
    """
    Return a copy of row with one field changed.

    Numeric fields are coerced to a finite, non-negative Decimal (bad input
    becomes 0). Text fields are stored as given. Keys that are not editable
    row fields leave the row as it was. Never raises.
    """
    if key in NUMERIC_FIELDS:
        return replace(row, **{key: parse_amount(raw_value)})
    if key in TEXT_FIELDS:
        return replace(row, **{key: '' if raw_value is None else str(raw_value)})
    return row


def mark_saved(row: EditableRow, item_id: int, sort_order: Optional[int] = None) -> EditableRow:
    """Swap a placeholder identity for the persisted id."""
    if not row.is_new:
        raise ValidationError('Row is already saved.', payload={'id': row.id})
    changes = {'identity': Saved(int(item_id))}
    if sort_order is not None:
        changes['sort_order'] = sort_order
    return replace(row, **changes)


def duplicate_row(row: EditableRow) -> EditableRow:
    """Copy of every field under a fresh placeholder identity."""
    return replace(row, identity=Unsaved(new_token()))


def apply_material(row: EditableRow, material) -> EditableRow:
    """Seed a row from a catalog entry (quick insert)."""
    updated = row
    updated = set_field(updated, 'category', _read(material, 'category') or row.category)
    updated = set_field(updated, 'description', _read(material, 'item_name') or _read(material, 'description') or '')
    updated = set_field(updated, 'unit', _read(material, 'unit') or DEFAULT_UNIT)
    updated = set_field(updated, 'material_cost', _read(material, 'material_cost'))
    updated = set_field(updated, 'labor_hours', _read(material, 'typical_labor_hours'))
    return updated


def row_from_record(record, identity: Optional[RowIdentity] = None) -> EditableRow:
    """Build a row from a persisted LineItem (ORM object or dict)."""
    if identity is None:
        identity = Saved(int(_read(record, 'id')))

    values = {}
    for f in dc_fields(EditableRow):
        if f.name in ('identity',):
            continue
        value = _read(record, f.name)
        if f.name in NUMERIC_FIELDS:
            values[f.name] = parse_amount(value) if value is not None else f.default
        elif f.name in TEXT_FIELDS:
            values[f.name] = '' if value is None else str(value)
        elif f.name == 'sort_order':
            values[f.name] = int(to_decimal(value))
        elif value is not None:
            values[f.name] = value
    return EditableRow(identity=identity, **values)


def _read(source, name):
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)
