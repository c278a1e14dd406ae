"""
Integration tests for the estimate editing session.
"""

import pytest
from decimal import Decimal

from estimator.exceptions import BatchPartialFailure, PersistenceError, ValidationError
from estimator.services.estimate_session import EstimateSession, SessionRegistry


def fill_row(session, index, fields):
    """Type a row in the order a user would: description first."""
    row = session.set_cell(index, 'description', fields['description'])
    for key, value in fields.items():
        if key != 'description':
            row = session.set_cell(index, key, value)
    return row


class CountingStore:
    """Wraps store.update_line_item to count calls."""

    def __init__(self, store, monkeypatch):
        self.updates = []
        original = store.update_line_item

        def update_line_item(item_id, fields):
            self.updates.append((item_id, dict(fields)))
            return original(item_id, fields)

        monkeypatch.setattr(store, 'update_line_item', update_line_item)


class TestLoad:

    def test_empty_project_gets_twenty_placeholders(self, estimate_session):
        rows = estimate_session.rows

        assert len(rows) == 20
        assert all(r.is_new for r in rows)
        assert len({r.key for r in rows}) == 20

    def test_placeholders_use_first_category(self, estimate_session, store):
        assert estimate_session.rows[0].category == store.get_categories()[0].name

    def test_never_truncates(self, store, project):
        for i in range(25):
            store.create_line_item({'project_id': project.id, 'description': f'Item {i}', 'sort_order': i})

        session = EstimateSession(store, project.id, debounce_seconds=0).load()

        assert len(session) == 25
        assert all(not r.is_new for r in session.rows)
        assert session.rows[24].description == 'Item 24'

    def test_persisted_rows_then_placeholders(self, store, project):
        store.create_line_item({'project_id': project.id, 'description': 'Saved'})

        session = EstimateSession(store, project.id, debounce_seconds=0).load()

        assert len(session) == 20
        assert session.rows[0].description == 'Saved'
        assert all(r.is_new for r in session.rows[1:])


class TestSetCell:

    def test_description_creates_item(self, estimate_session, store, project):
        row = estimate_session.set_cell(3, 'description', 'Dome camera')

        assert row.is_new is False
        items = store.get_line_items(project.id)
        assert [i.id for i in items] == [row.id]
        assert items[0].description == 'Dome camera'

    def test_numeric_edit_on_placeholder_stays_local(self, estimate_session, store, project):
        row = estimate_session.set_cell(0, 'quantity', '5')

        assert row.is_new is True
        assert row.quantity == Decimal('5')
        assert store.get_line_items(project.id) == []

    def test_blank_description_does_not_create(self, estimate_session, store, project):
        estimate_session.set_cell(0, 'description', '   ')

        assert estimate_session.row(0).is_new is True
        assert store.get_line_items(project.id) == []

    def test_sample_scenario_updates_cached_total(self, estimate_session, store, project, sample_row_fields):
        fill_row(estimate_session, 0, sample_row_fields)

        rollup = estimate_session.rollup()
        assert rollup.subtotal == Decimal('87.12')
        assert rollup.material_tax == Decimal('1.76')
        assert rollup.grand_total == Decimal('93.324')
        assert store.get_project(project.id).total_amount == pytest.approx(93.324)

    def test_update_sends_full_field_set(self, estimate_session, store, monkeypatch):
        row = estimate_session.set_cell(0, 'description', 'NVR')
        counter = CountingStore(store, monkeypatch)

        estimate_session.set_cell(0, 'material_cost', '899')

        item_id, fields = counter.updates[-1]
        assert item_id == row.id
        assert fields['material_cost'] == 899.0
        assert fields['description'] == 'NVR'
        assert fields['labor_rate'] == 75.0

    def test_is_new_never_reverts(self, estimate_session, store):
        row = estimate_session.set_cell(0, 'description', 'Keypad')
        item_id = row.id

        for key, value in [('description', ''), ('quantity', 'abc'), ('description', 'Keypad v2')]:
            row = estimate_session.set_cell(0, key, value)
            assert row.is_new is False
            assert row.id == item_id

        assert len(store.get_line_items(row.project_id)) == 1

    def test_create_failure_leaves_row_unsaved(self, estimate_session, store, monkeypatch):
        def fail(fields):
            raise PersistenceError('database is locked', operation='create_line_item')

        monkeypatch.setattr(store, 'create_line_item', fail)

        with pytest.raises(PersistenceError):
            estimate_session.set_cell(0, 'description', 'Motion sensor')

        row = estimate_session.row(0)
        assert row.is_new is True
        assert row.description == 'Motion sensor'

    def test_index_out_of_range(self, estimate_session):
        with pytest.raises(ValidationError):
            estimate_session.set_cell(20, 'quantity', '1')
        with pytest.raises(ValidationError):
            estimate_session.set_cell(-1, 'quantity', '1')

    def test_unknown_field_rejected(self, estimate_session):
        with pytest.raises(ValidationError):
            estimate_session.set_cell(0, 'sort_order', '5')

        assert estimate_session.row(0).sort_order == 0

    def test_apply_material(self, estimate_session, store, project):
        material = store.search_materials_catalog('Cat6')[0]

        row = estimate_session.apply_material(2, material)

        assert row.is_new is False
        assert row.description == material.item_name
        assert row.material_cost == Decimal(str(material.material_cost))
        assert store.get_line_item(row.id).labor_hours == material.typical_labor_hours


class TestDebounce:

    def test_rapid_edits_coalesce_into_one_write(self, store, project, monkeypatch):
        session = EstimateSession(store, project.id, debounce_seconds=60).load()
        row = session.set_cell(0, 'description', 'Bullet camera')
        counter = CountingStore(store, monkeypatch)

        for value in ('1', '2', '3', '4'):
            session.set_cell(0, 'quantity', value)

        assert counter.updates == []
        assert session.pending_writes() == [row.id]
        assert store.get_line_item(row.id).quantity == 1.0

        assert session.flush() == 1
        assert len(counter.updates) == 1
        assert store.get_line_item(row.id).quantity == 4.0
        assert session.pending_writes() == []
        session.close()

    def test_delete_cancels_pending_write(self, store, project, monkeypatch):
        session = EstimateSession(store, project.id, debounce_seconds=60).load()
        session.set_cell(0, 'description', 'Siren')
        counter = CountingStore(store, monkeypatch)
        session.set_cell(0, 'quantity', '2')

        session.delete_row(0)

        assert session.pending_writes() == []
        assert session.flush() == 0
        assert counter.updates == []
        session.close()

    def test_close_flushes(self, store, project):
        session = EstimateSession(store, project.id, debounce_seconds=60).load()
        row = session.set_cell(0, 'description', 'Strobe')
        session.set_cell(0, 'quantity', '7')

        session.close()

        assert store.get_line_item(row.id).quantity == 7.0

    def test_failed_write_is_reported(self, estimate_session, store, monkeypatch):
        estimate_session.set_cell(0, 'description', 'Horn')

        def fail(item_id, fields):
            raise PersistenceError('disk I/O error', operation='update_line_item')

        monkeypatch.setattr(store, 'update_line_item', fail)
        estimate_session.set_cell(0, 'quantity', '3')

        errors = estimate_session.pop_errors()
        assert len(errors) == 1
        assert errors[0].operation == 'update_line_item'
        assert estimate_session.pop_errors() == []


class TestDeleteAndDuplicate:

    def test_delete_persisted_row_keeps_floor(self, store, project):
        for i in range(20):
            store.create_line_item({'project_id': project.id, 'description': f'Item {i}', 'sort_order': i})
        session = EstimateSession(store, project.id, debounce_seconds=0).load()
        assert len(session) == 20

        removed = session.delete_row(19)

        assert removed.description == 'Item 19'
        assert len(session) == 20
        assert session.rows[-1].is_new is True
        assert len(store.get_line_items(project.id)) == 19

    def test_delete_above_floor_shrinks(self, estimate_session):
        estimate_session.add_rows(10)
        assert len(estimate_session) == 30

        estimate_session.delete_row(0)

        assert len(estimate_session) == 29

    def test_delete_refreshes_total(self, estimate_session, store, project, sample_row_fields):
        fill_row(estimate_session, 0, sample_row_fields)

        estimate_session.delete_row(0)

        assert store.get_project(project.id).total_amount == 0
        assert estimate_session.rollup().grand_total == 0

    def test_duplicate_persisted_row(self, estimate_session, store, project, sample_row_fields):
        fill_row(estimate_session, 0, sample_row_fields)
        estimate_session.set_cell(1, 'description', 'Second')

        copy = estimate_session.duplicate_row(0)

        assert copy.is_new is False
        assert estimate_session.row(1).id == copy.id
        assert estimate_session.row(2).description == 'Second'
        items = store.get_line_items(project.id)
        assert [i.description for i in items] == ['Dome camera', 'Dome camera', 'Second']
        assert [i.sort_order for i in items] == [0, 1, 2]
        assert store.get_project(project.id).total_amount == pytest.approx(93.324 * 2)

    def test_duplicate_placeholder_is_not_persisted(self, estimate_session, store, project):
        estimate_session.set_cell(0, 'quantity', '3')

        copy = estimate_session.duplicate_row(0)

        assert copy.is_new is True
        assert copy.quantity == Decimal('3')
        assert len(estimate_session) == 21
        assert store.get_line_items(project.id) == []


class TestClearAll:

    def test_requires_confirmation(self, estimate_session, store, project):
        estimate_session.set_cell(0, 'description', 'Keep me')

        with pytest.raises(ValidationError):
            estimate_session.clear_all()
        with pytest.raises(ValidationError):
            estimate_session.clear_all(confirm='yes')

        assert len(store.get_line_items(project.id)) == 1

    def test_clears_everything(self, estimate_session, store, project):
        estimate_session.add_rows(10)
        for i in range(25):
            estimate_session.set_cell(i, 'description', f'Item {i}')

        result = estimate_session.clear_all(confirm=True)

        assert result.attempted == 25
        assert result.succeeded == 25
        assert result.ok
        assert len(estimate_session) == 20
        assert all(r.is_new for r in estimate_session.rows)
        assert store.get_line_items(project.id) == []
        assert store.get_project(project.id).total_amount == 0

    def test_partial_failure_reports_removed_vs_attempted(self, estimate_session, store, project, monkeypatch):
        ids = [estimate_session.set_cell(i, 'description', f'Item {i}').id for i in range(3)]
        original = store.delete_line_item

        def flaky(item_id):
            if item_id == ids[1]:
                raise PersistenceError('database is locked', operation='delete_line_item')
            return original(item_id)

        monkeypatch.setattr(store, 'delete_line_item', flaky)

        result = estimate_session.clear_all(confirm=True)

        assert result.attempted == 3
        assert result.succeeded == 2
        assert result.failed == 1
        assert estimate_session.row(0).id == ids[1]
        assert len(estimate_session) == 20
        with pytest.raises(BatchPartialFailure) as exc:
            result.raise_for_failures()
        assert exc.value.status_code == 207


class TestBulkImport:

    def test_skips_records_without_description(self, estimate_session, store, project):
        records = [
            {'description': 'Card reader', 'qty': '2', 'cost': '125'},
            {'qty': '5', 'cost': '10'},
            {'Item Name': 'Door contact', 'Quantity': '8', 'Unit Cost': '12.50'},
        ]

        result = estimate_session.bulk_import(records)

        assert result.succeeded == 2
        assert result.skipped == 1
        assert result.failed == 0
        items = store.get_line_items(project.id)
        assert [i.description for i in items] == ['Card reader', 'Door contact']
        assert items[1].material_cost == 12.5
        assert items[0].labor_rate == 75.0

    def test_non_object_records_are_skipped(self, estimate_session, store, project):
        result = estimate_session.bulk_import([{'description': 'Keypad'}, 'junk', None, 42, {'description': 'Siren'}])

        assert result.succeeded == 2
        assert result.skipped == 3
        assert result.failed == 0
        assert [i.description for i in store.get_line_items(project.id)] == ['Keypad', 'Siren']

    def test_rows_land_after_saved_rows(self, estimate_session):
        estimate_session.set_cell(0, 'description', 'Existing')

        estimate_session.bulk_import([{'description': f'New {i}'} for i in range(3)])

        descriptions = [r.description for r in estimate_session.rows[:4]]
        assert descriptions == ['Existing', 'New 0', 'New 1', 'New 2']
        assert len(estimate_session) == 20

    def test_large_import_grows_working_set(self, estimate_session):
        estimate_session.bulk_import([{'description': f'Item {i}'} for i in range(30)])

        assert len(estimate_session) == 30
        assert all(not r.is_new for r in estimate_session.rows)

    def test_failure_does_not_abort_batch(self, estimate_session, store, project, monkeypatch):
        original = store.create_line_item

        def flaky(fields):
            if fields['description'] == 'Bad':
                raise PersistenceError('constraint failed', operation='create_line_item')
            return original(fields)

        monkeypatch.setattr(store, 'create_line_item', flaky)

        result = estimate_session.bulk_import([
            {'description': 'Good 1'}, {'description': 'Bad'}, {'description': 'Good 2'},
        ])

        assert result.attempted == 3
        assert result.succeeded == 2
        assert result.failed == 1
        assert [i.description for i in store.get_line_items(project.id)] == ['Good 1', 'Good 2']

    def test_import_updates_cached_total(self, estimate_session, store, project):
        estimate_session.bulk_import([{
            'description': 'Dome camera', 'quantity': 2, 'material_cost': 10,
            'material_markup_pct': 10, 'labor_hours': 0.5, 'labor_rate': 50,
            'overhead_pct': 10, 'profit_pct': 10,
        }])

        assert store.get_project(project.id).total_amount == pytest.approx(93.324)


class TestSaveAndExport:

    def test_save_applies_project_rates(self, estimate_session, store, project, sample_row_fields):
        fill_row(estimate_session, 0, sample_row_fields)

        rollup = estimate_session.save({'material_tax_rate_pct': 0, 'contingency_pct': 0})

        assert rollup.grand_total == Decimal('87.12')
        assert store.get_project(project.id).total_amount == pytest.approx(87.12)

    def test_export_payload_skips_placeholders(self, estimate_session, sample_row_fields):
        fill_row(estimate_session, 0, sample_row_fields)

        payload = estimate_session.export_payload()

        assert len(payload['rows']) == 1
        assert payload['rollup'].grand_total == Decimal('93.324')
        assert payload['project'].name == 'Lobby Camera Upgrade'


class TestSessionRegistry:

    def test_one_session_per_project(self, store, project):
        registry = SessionRegistry(store, debounce_seconds=0)

        assert registry.get(project.id) is registry.get(project.id)

        registry.discard(project.id)
        registry.close_all()
