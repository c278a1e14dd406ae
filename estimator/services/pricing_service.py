"""
Pricing engine - per-item totals and project rollup.

Pure functions, no I/O. Every numeric field is read defensively: missing,
None or unparseable values count as 0, so rows may be editor rows, ORM
LineItems or plain dicts from an import or a legacy record.
"""
from dataclasses import dataclass, asdict
from decimal import Context, Decimal, localcontext
from typing import Any, Dict, Iterable, List, Tuple

from estimator.utils.number_format import to_decimal

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def _read(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _num(row, name) -> Decimal:
    return to_decimal(_read(row, name))


def _finite(value: Decimal) -> Decimal:
    return value if value.is_finite() else ZERO


# No traps: overflow gives Infinity or NaN, which _finite reads as 0
PRICING_CONTEXT = Context(traps=[])


def is_priced(row) -> bool:
    """Only rows with a description take part in totals."""
    description = _read(row, 'description')
    return bool(description and str(description).strip())


def priced_rows(rows: Iterable) -> List:
    return [row for row in rows if is_priced(row)]


@dataclass(frozen=True)
class ItemBreakdown:
    quantity: Decimal
    material_base: Decimal
    material_markup: Decimal
    material_subtotal: Decimal
    labor_base: Decimal
    labor_markup: Decimal
    labor_subtotal: Decimal
    subtotal: Decimal
    overhead: Decimal
    profit: Decimal
    total: Decimal

    @property
    def unit_price(self) -> Decimal:
        """Total per unit; 0 when quantity is 0."""
        if self.quantity == 0:
            return ZERO
        return self.total / self.quantity


def compute_item_breakdown(row) -> ItemBreakdown:
    """
    Run the fixed ten-step calculation for one row.

    A row whose figures overflow prices at 0 throughout.
    """
    quantity = _num(row, 'quantity')

    with localcontext(PRICING_CONTEXT):
        material_base = quantity * _num(row, 'material_cost')
        material_markup = material_base * (_num(row, 'material_markup_pct') / HUNDRED)
        material_subtotal = material_base + material_markup

        labor_base = quantity * _num(row, 'labor_hours') * _num(row, 'labor_rate')
        labor_markup = labor_base * (_num(row, 'labor_markup_pct') / HUNDRED)
        labor_subtotal = labor_base + labor_markup

        subtotal = material_subtotal + labor_subtotal
        overhead = subtotal * (_num(row, 'overhead_pct') / HUNDRED)
        profit = (subtotal + overhead) * (_num(row, 'profit_pct') / HUNDRED)
        total = subtotal + overhead + profit

    figures = (material_base, material_markup, material_subtotal, labor_base,
               labor_markup, labor_subtotal, subtotal, overhead, profit, total)
    if not all(value.is_finite() for value in figures):
        figures = (ZERO,) * len(figures)

    return ItemBreakdown(quantity, *figures)


def compute_item_total(row) -> Decimal:
    return compute_item_breakdown(row).total


def unit_price(row) -> Decimal:
    return compute_item_breakdown(row).unit_price


# (key, label) in display order
ROLLUP_COMPONENTS: Tuple[Tuple[str, str], ...] = (
    ('material_base', 'Material'),
    ('material_markup', 'Material Markup'),
    ('material_tax', 'Material Tax'),
    ('labor_base', 'Labor'),
    ('labor_markup', 'Labor Markup'),
    ('overhead', 'Overhead'),
    ('profit', 'Profit'),
    ('contingency', 'Contingency'),
)


@dataclass(frozen=True)
class Rollup:
    material_base: Decimal = ZERO
    material_markup: Decimal = ZERO
    material_subtotal: Decimal = ZERO
    material_tax: Decimal = ZERO
    labor_base: Decimal = ZERO
    labor_markup: Decimal = ZERO
    overhead: Decimal = ZERO
    profit: Decimal = ZERO
    subtotal: Decimal = ZERO
    pre_contingency: Decimal = ZERO
    contingency: Decimal = ZERO
    grand_total: Decimal = ZERO
    material_tax_rate_pct: Decimal = ZERO
    contingency_pct: Decimal = ZERO
    item_count: int = 0

    def components(self, include_zero: bool = False) -> List[Tuple[str, str, Decimal]]:
        """
        Breakdown lines for rendering.

        Zero lines are dropped unless include_zero is set; the grand total
        always includes them.
        """
        lines = []
        for key, label in ROLLUP_COMPONENTS:
            amount = getattr(self, key)
            if amount == 0 and not include_zero:
                continue
            if key == 'material_tax':
                label = f"{label} ({_pct_label(self.material_tax_rate_pct)})"
            elif key == 'contingency':
                label = f"{label} ({_pct_label(self.contingency_pct)})"
            lines.append((key, label, amount))
        return lines

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Decimal):
                data[key] = float(value)
        return data


def _pct_label(value: Decimal) -> str:
    text = f"{value:f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return f"{text}%"


def compute_rollup(rows: Iterable, project=None, material_tax_rate_pct=None,
                   contingency_pct=None) -> Rollup:
    """
    Aggregate every priced row, then apply material tax and contingency.

    Rates come from the explicit arguments when given, else from project
    (object or dict), else 0.
    """
    if material_tax_rate_pct is None:
        material_tax_rate_pct = _read(project, 'material_tax_rate_pct') if project is not None else None
    if contingency_pct is None:
        contingency_pct = _read(project, 'contingency_pct') if project is not None else None
    tax_rate = to_decimal(material_tax_rate_pct)
    contingency_rate = to_decimal(contingency_pct)

    totals = {
        'material_base': ZERO,
        'material_markup': ZERO,
        'material_subtotal': ZERO,
        'labor_base': ZERO,
        'labor_markup': ZERO,
        'overhead': ZERO,
        'profit': ZERO,
        'subtotal': ZERO,
    }
    count = 0

    with localcontext(PRICING_CONTEXT):
        for row in rows:
            if not is_priced(row):
                continue
            item = compute_item_breakdown(row)
            totals['material_base'] += item.material_base
            totals['material_markup'] += item.material_markup
            totals['material_subtotal'] += item.material_subtotal
            totals['labor_base'] += item.labor_base
            totals['labor_markup'] += item.labor_markup
            totals['overhead'] += item.overhead
            totals['profit'] += item.profit
            totals['subtotal'] += item.total
            count += 1

        for key, value in totals.items():
            totals[key] = _finite(value)
        material_tax = _finite(totals['material_subtotal'] * (tax_rate / HUNDRED))
        pre_contingency = _finite(totals['subtotal'] + material_tax)
        contingency = _finite(pre_contingency * (contingency_rate / HUNDRED))
        grand_total = _finite(pre_contingency + contingency)

    return Rollup(
        material_tax=material_tax,
        pre_contingency=pre_contingency,
        contingency=contingency,
        grand_total=grand_total,
        material_tax_rate_pct=tax_rate,
        contingency_pct=contingency_rate,
        item_count=count,
        **totals,
    )

