"""
Unit tests for the pricing engine.
"""

import itertools
import pytest
from decimal import Decimal

from estimator.services.pricing_service import (
    compute_item_breakdown, compute_item_total, compute_rollup, unit_price,
)
from estimator.services.row_model import create_empty_row, set_field


def make_row(**values):
    row = create_empty_row()
    for key, value in values.items():
        row = set_field(row, key, value)
    return row


SAMPLE = {
    'description': 'Dome camera',
    'quantity': 2,
    'material_cost': 10,
    'material_markup_pct': 10,
    'labor_hours': 0.5,
    'labor_rate': 50,
    'labor_markup_pct': 0,
    'overhead_pct': 10,
    'profit_pct': 10,
}


class TestItemTotal:
    """Tests for the per-item calculation."""

    def test_sample_item_steps(self):
        item = compute_item_breakdown(SAMPLE)

        assert item.material_base == Decimal('20')
        assert item.material_markup == Decimal('2')
        assert item.material_subtotal == Decimal('22')
        assert item.labor_base == Decimal('50')
        assert item.labor_markup == Decimal('0')
        assert item.labor_subtotal == Decimal('50')
        assert item.subtotal == Decimal('72')
        assert item.overhead == Decimal('7.2')
        assert item.profit == Decimal('7.92')
        assert item.total == Decimal('87.12')

    def test_labor_base_multiplies_quantity_hours_and_rate(self):
        row = dict(SAMPLE, labor_hours=1, overhead_pct=0, profit_pct=0, material_cost=0)

        assert compute_item_breakdown(row).labor_base == Decimal('100')

    def test_editor_row_matches_dict(self):
        row = make_row(**{k: str(v) for k, v in SAMPLE.items()})

        assert compute_item_total(row) == Decimal('87.12')

    def test_missing_and_invalid_fields_read_as_zero(self):
        assert compute_item_total({'description': 'x'}) == 0
        assert compute_item_total({'description': 'x', 'quantity': 'abc', 'material_cost': None}) == 0

    @pytest.mark.parametrize('quantity, cost, mm, hours, rate, lm, oh, pr', list(itertools.product(
        [0, 1, 2.5], [0, 19.99], [0, 35], [0, 1.25], [0, 85], [0, 20], [0, 10], [0, 15],
    ))[::7])
    def test_total_never_below_base(self, quantity, cost, mm, hours, rate, lm, oh, pr):
        row = {
            'description': 'x', 'quantity': quantity, 'material_cost': cost,
            'material_markup_pct': mm, 'labor_hours': hours, 'labor_rate': rate,
            'labor_markup_pct': lm, 'overhead_pct': oh, 'profit_pct': pr,
        }
        item = compute_item_breakdown(row)

        assert item.total >= item.material_base + item.labor_base
        assert item.total >= 0

    def test_zero_percentages_give_plain_cost(self):
        row = {
            'description': 'Cable', 'quantity': 3, 'material_cost': 1.1,
            'labor_hours': 0.2, 'labor_rate': 65,
            'material_markup_pct': 0, 'labor_markup_pct': 0, 'overhead_pct': 0, 'profit_pct': 0,
        }
        expected = Decimal('3') * Decimal('1.1') + Decimal('3') * Decimal('0.2') * Decimal('65')

        assert compute_item_total(row) == expected

    def test_unit_price_zero_quantity(self):
        assert unit_price(dict(SAMPLE, quantity=0)) == 0

    def test_unit_price(self):
        assert unit_price(SAMPLE) == Decimal('43.56')


class TestRollup:
    """Tests for the project rollup."""

    def test_project_scenario(self):
        rollup = compute_rollup([SAMPLE], {'material_tax_rate_pct': 8, 'contingency_pct': 5})

        assert rollup.subtotal == Decimal('87.12')
        assert rollup.material_tax == Decimal('1.76')
        assert rollup.pre_contingency == Decimal('88.88')
        assert rollup.contingency == Decimal('4.444')
        assert rollup.grand_total == Decimal('93.324')
        assert rollup.item_count == 1

    def test_blank_description_rows_excluded(self):
        blank = dict(SAMPLE, description='   ')
        no_description = {k: v for k, v in SAMPLE.items() if k != 'description'}

        rollup = compute_rollup([SAMPLE, blank, no_description])

        assert rollup.subtotal == Decimal('87.12')
        assert rollup.item_count == 1

    def test_subtotal_is_sum_of_item_totals(self):
        rows = [
            SAMPLE,
            dict(SAMPLE, description='Bullet camera', quantity=3, material_cost=140),
            dict(SAMPLE, description='Labor only', material_cost=0, labor_hours=8, labor_markup_pct=25),
        ]
        rollup = compute_rollup(rows)

        assert rollup.subtotal == sum(compute_item_total(r) for r in rows)
        assert rollup.grand_total == rollup.subtotal

    def test_material_tax_ignores_labor(self):
        project = {'material_tax_rate_pct': 8}
        before = compute_rollup([SAMPLE], project)
        after = compute_rollup([dict(SAMPLE, labor_rate=500)], project)

        assert before.material_tax == after.material_tax
        assert after.grand_total > before.grand_total

    def test_explicit_rates_override_project(self):
        rollup = compute_rollup([SAMPLE], {'material_tax_rate_pct': 8}, material_tax_rate_pct=0)

        assert rollup.material_tax == 0

    def test_empty_rollup(self):
        rollup = compute_rollup([])

        assert rollup.grand_total == 0
        assert rollup.components() == []
        assert len(rollup.components(include_zero=True)) == 8

    def test_components_labels(self):
        rollup = compute_rollup([SAMPLE], {'material_tax_rate_pct': 8, 'contingency_pct': 5})
        labels = {key: label for key, label, _ in rollup.components()}

        assert labels['material_tax'] == 'Material Tax (8%)'
        assert labels['contingency'] == 'Contingency (5%)'
        assert 'labor_markup' not in labels

    def test_to_dict_uses_floats(self):
        data = compute_rollup([SAMPLE]).to_dict()

        assert data['subtotal'] == pytest.approx(87.12)
        assert isinstance(data['grand_total'], float)
        assert data['item_count'] == 1


class TestOutOfRangeInput:

    def test_huge_literals_price_at_zero(self):
        row = make_row(description='Runaway entry', quantity='9e999999', labor_hours='9e999999')

        rollup = compute_rollup([row, SAMPLE])

        assert compute_item_total(row) == 0
        assert rollup.grand_total == Decimal('87.12')

    def test_raw_dict_with_huge_decimals(self):
        row = dict(SAMPLE, quantity=Decimal('9e999999'), labor_hours=Decimal('9e999999'))

        rollup = compute_rollup([row], {'material_tax_rate_pct': '1e400', 'contingency_pct': 5})

        assert rollup.to_dict()['grand_total'] == 0
        assert rollup.material_tax_rate_pct == 0

    def test_large_but_valid_totals_stay_finite(self):
        row = make_row(description='Bulk cable', quantity='1e15', material_cost='1e15',
                       labor_hours='1e15', labor_rate='1e15', material_markup_pct='1e15')

        total = compute_item_total(row)

        assert total.is_finite()
        assert total > 0
