"""
Estimate editing session.

Keeps the editable working set of one project (persisted rows followed by
placeholders, never fewer than MIN_VISIBLE_ROWS) in step with the store, and
rewrites the project's cached total after every persisted change.

Placeholder rows become line items the moment they get a description; later
edits to a persisted row go through the debounced writer, one pending write
per row.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from flask import Flask, current_app

from estimator.exceptions import (
    BatchPartialFailure, EstimatorError, PersistenceError, ValidationError,
)
from estimator.services import row_model
from estimator.services.autosave import DebouncedWriter
from estimator.services.import_service import map_record
from estimator.services.pricing_service import compute_item_breakdown, compute_rollup, priced_rows
from estimator.services.row_model import EditableRow, RowDefaults, Saved
from estimator.services.store_service import EstimateStore

logger = logging.getLogger(__name__)

MIN_VISIBLE_ROWS = 20
ADD_ROWS_BATCH = 10


@dataclass
class BatchResult:
    """Outcome of a batch operation; every item succeeds or fails on its own."""
    operation: str
    attempted: int = 0
    succeeded: int = 0
    skipped: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise BatchPartialFailure(self.operation, self.succeeded, self.attempted, self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'attempted': self.attempted,
            'succeeded': self.succeeded,
            'skipped': self.skipped,
            'failed': self.failed,
            'failures': list(self.failures),
        }


class EstimateSession:
    """
    Working set of rows for one project.

    Usage:
        session = EstimateSession(store, project_id).load()
        session.set_cell(0, 'description', 'Dome camera')   # creates the line item
        session.set_cell(0, 'quantity', '4')                # debounced update
        session.rollup().grand_total
    """

    def __init__(self, store: EstimateStore, project_id: int, min_rows: int = MIN_VISIBLE_ROWS,
                 debounce_seconds: float = 0.5):
        self.store = store
        self.project_id = project_id
        self.min_rows = min_rows
        self.project = None
        self.defaults = RowDefaults()
        self._rows: List[EditableRow] = []
        self._errors: List[EstimatorError] = []
        self._lock = threading.RLock()
        self._writer = DebouncedWriter(debounce_seconds, on_error=self._record_error)

    # ========== Loading ==========

    def load(self) -> 'EstimateSession':
        """Read the project and its persisted rows, then pad with placeholders."""
        project = self.store.get_project(self.project_id)
        settings = self.store.get_company_settings()
        categories = self.store.get_categories()
        items = self.store.get_line_items(self.project_id)

        with self._lock:
            self._writer.cancel_all()
            self.project = project
            self.defaults = RowDefaults.from_settings(settings, categories)
            self._rows = [row_model.row_from_record(item) for item in items]
            self._pad()

        logger.info(f"[SESSION] Loaded project {self.project_id}: {len(items)} item(s), {len(self._rows)} row(s)")
        return self

    @property
    def rows(self) -> List[EditableRow]:
        with self._lock:
            return list(self._rows)

    def row(self, index: int) -> EditableRow:
        with self._lock:
            return self._row_at(index)

    def __len__(self):
        return len(self._rows)

    # ========== Editing ==========

    def set_cell(self, index: int, key: str, value: Any) -> EditableRow:
        """
        Change one field.

        A placeholder that now has a description is created in the store
        immediately; a persisted row gets a debounced update.
        """
        if key not in row_model.EDITABLE_FIELDS:
            raise ValidationError(f"Field '{key}' cannot be edited.", payload={'field': key})
        with self._lock:
            row = self._row_at(index)
            updated = row_model.set_field(row, key, value)
            return self._commit_edit(index, updated)

    def apply_material(self, index: int, material) -> EditableRow:
        """Quick insert from the catalog; persists like a cell edit."""
        with self._lock:
            row = self._row_at(index)
            updated = row_model.apply_material(row, material)
            return self._commit_edit(index, updated)

    def delete_row(self, index: int) -> EditableRow:
        """Delete now (not debounced), then keep the working set at its floor."""
        with self._lock:
            row = self._row_at(index)
            if not row.is_new:
                self.store.delete_line_item(row.id)
                self._writer.cancel(row.id)
                self._refresh_total()

            del self._rows[index]
            if len(self._rows) < self.min_rows:
                self._rows.append(self._placeholder())
            return row

    def duplicate_row(self, index: int) -> EditableRow:
        """
        Insert a copy right after the source row.

        When the source is persisted and described, the copy is persisted
        too, taking the next sort position.
        """
        with self._lock:
            source = self._row_at(index)
            copy = row_model.duplicate_row(source)

            if not source.is_new and source.has_description:
                sort_order = source.sort_order + 1
                self.store.shift_sort_orders(self.project_id, sort_order)
                self._rows = [
                    replace(r, sort_order=r.sort_order + 1) if (not r.is_new and r.sort_order >= sort_order) else r
                    for r in self._rows
                ]
                fields = copy.to_fields()
                fields.update({'project_id': self.project_id, 'sort_order': sort_order})
                item_id = self.store.create_line_item(fields)
                copy = row_model.mark_saved(copy, item_id, sort_order)
                self._refresh_total()

            self._rows.insert(index + 1, copy)
            return copy

    def add_rows(self, count: int = ADD_ROWS_BATCH) -> int:
        with self._lock:
            for _ in range(max(0, int(count))):
                self._rows.append(self._placeholder())
            return len(self._rows)

    def clear_all(self, confirm: bool = False) -> BatchResult:
        """
        Delete every persisted line item of the project and reset the grid.

        Irreversible, so the caller must pass confirm=True. Rows whose delete
        fails are kept; the result says how many were removed out of how many
        were attempted.
        """
        if confirm is not True:
            raise ValidationError('Clearing all line items requires confirmation.',
                                  payload={'operation': 'clear_all'})

        with self._lock:
            self._writer.cancel_all()
            items = self.store.get_line_items(self.project_id)
            result = BatchResult(operation='clear_all', attempted=len(items))
            kept: List[EditableRow] = []

            for position, item in enumerate(items):
                try:
                    self.store.delete_line_item(item.id)
                    result.succeeded += 1
                except PersistenceError as e:
                    logger.warning(f"[SESSION] clear_all: item {position} (id={item.id}) not removed: {e.message}")
                    result.failures.append(f"item {item.id}: {e.message}")
                    kept.append(row_model.row_from_record(item))

            self._rows = kept
            self._pad()
            self._refresh_total()

        logger.info(f"[SESSION] Cleared project {self.project_id}: removed {result.succeeded} of {result.attempted}")
        return result

    def bulk_import(self, records) -> BatchResult:
        """
        Create one line item per usable record.

        Records without a description are skipped. A failed create is logged
        and counted; the rest of the batch carries on.
        """
        records = list(records or [])
        result = BatchResult(operation='bulk_import')

        with self._lock:
            created: List[EditableRow] = []
            next_sort = self._next_sort_order()

            for position, record in enumerate(records):
                if not isinstance(record, dict):
                    logger.warning(f"[IMPORT] Record {position} skipped: not an object")
                    result.skipped += 1
                    continue
                fields = map_record(record, self.defaults)
                if fields is None:
                    result.skipped += 1
                    continue

                result.attempted += 1
                fields.update({'project_id': self.project_id, 'sort_order': next_sort})
                try:
                    item_id = self.store.create_line_item(fields)
                except PersistenceError as e:
                    logger.warning(f"[IMPORT] Record {position} failed: {e.message}")
                    result.failures.append(f"record {position}: {e.message}")
                    continue

                created.append(row_model.row_from_record(fields, identity=Saved(item_id)))
                result.succeeded += 1
                next_sort += 1

            if created:
                insert_at = self._last_saved_index() + 1
                self._rows[insert_at:insert_at] = created
                self._trim_placeholders()
                self._refresh_total()

        logger.info(
            f"[IMPORT] Project {self.project_id}: {result.succeeded} created, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    # ========== Totals & saving ==========

    def rollup(self):
        with self._lock:
            return compute_rollup(self._rows, self.project)

    def save(self, fields: Optional[Dict[str, Any]] = None):
        """Flush pending writes, apply project field changes and refresh the total."""
        self.flush()
        if fields:
            self.store.update_project(self.project_id, fields)
        self.store.recalculate_project_total(self.project_id)
        with self._lock:
            self.project = self.store.get_project(self.project_id)
            return compute_rollup(self._rows, self.project)

    def flush(self) -> int:
        """Run every pending debounced write now."""
        return self._writer.flush()

    def pending_writes(self) -> List[int]:
        return self._writer.pending_keys()

    def pop_errors(self) -> List[EstimatorError]:
        """Errors from background writes since the last call."""
        with self._lock:
            errors, self._errors = self._errors, []
        return errors

    def export_payload(self) -> Dict[str, Any]:
        """Project, rollup and described rows, as handed to the document exporters."""
        self.flush()
        with self._lock:
            rows = priced_rows(self._rows)
            return {
                'project': self.project,
                'rollup': compute_rollup(rows, self.project),
                'rows': rows,
            }

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            rows = []
            for row in self._rows:
                data = row.to_dict()
                item = compute_item_breakdown(row)
                data['total'] = float(item.total) if row.has_description else 0.0
                data['unit_price'] = float(item.unit_price) if row.has_description else 0.0
                rows.append(data)
            return {
                'project': self.project.to_dict() if self.project is not None else None,
                'rows': rows,
                'rollup': compute_rollup(self._rows, self.project).to_dict(),
                'pending_writes': self.pending_writes(),
            }

    def close(self) -> None:
        self._writer.shutdown(flush=True)

    # ========== Internals ==========

    def _row_at(self, index: int) -> EditableRow:
        if not isinstance(index, int) or index < 0 or index >= len(self._rows):
            raise ValidationError(f'Row {index} is out of range.',
                                  payload={'row': index, 'row_count': len(self._rows)})
        return self._rows[index]

    def _commit_edit(self, index: int, updated: EditableRow) -> EditableRow:
        if updated.is_new:
            if updated.has_description:
                fields = updated.to_fields()
                sort_order = self._next_sort_order()
                fields.update({'project_id': self.project_id, 'sort_order': sort_order})
                try:
                    item_id = self.store.create_line_item(fields)
                except PersistenceError:
                    # keep the typed value; the row stays unsaved
                    self._rows[index] = updated
                    raise
                updated = row_model.mark_saved(updated, item_id, sort_order)
                self._rows[index] = updated
                logger.debug(f"[SESSION] Row {index} saved as item {item_id}")
                self._refresh_total()
            else:
                self._rows[index] = updated
            return updated

        self._rows[index] = updated
        item_id = updated.id
        self._writer.schedule(item_id, lambda: self._write_row(item_id))
        return updated

    def _write_row(self, item_id: int) -> None:
        """Debounced update: send the row's full current field set."""
        with self._lock:
            row = next((r for r in self._rows if r.id == item_id), None)
        if row is None:
            return
        fields = row.to_fields()
        fields['project_id'] = self.project_id
        self.store.update_line_item(item_id, fields)
        self._refresh_total()

    def _refresh_total(self) -> None:
        total = self.store.recalculate_project_total(self.project_id)
        if self.project is not None:
            self.project.total_amount = float(total)

    def _record_error(self, key, error: BaseException) -> None:
        if not isinstance(error, EstimatorError):
            error = PersistenceError(str(error), operation='update_line_item')
        with self._lock:
            self._errors.append(error)

    def _placeholder(self) -> EditableRow:
        return row_model.create_empty_row(self.defaults, project_id=self.project_id)

    def _pad(self) -> None:
        while len(self._rows) < self.min_rows:
            self._rows.append(self._placeholder())

    def _next_sort_order(self) -> int:
        saved = [r.sort_order for r in self._rows if not r.is_new]
        return max(saved) + 1 if saved else 0

    def _last_saved_index(self) -> int:
        for position in range(len(self._rows) - 1, -1, -1):
            if not self._rows[position].is_new:
                return position
        return -1

    def _trim_placeholders(self) -> None:
        while len(self._rows) > self.min_rows and self._rows[-1].is_placeholder:
            self._rows.pop()


class SessionRegistry:
    """One editing session per project, created on first use."""

    def __init__(self, store: EstimateStore, min_rows: int = MIN_VISIBLE_ROWS,
                 debounce_seconds: float = 0.5):
        self.store = store
        self.min_rows = min_rows
        self.debounce_seconds = debounce_seconds
        self._sessions: Dict[int, EstimateSession] = {}
        self._lock = threading.Lock()

    def get(self, project_id: int) -> EstimateSession:
        with self._lock:
            session = self._sessions.get(project_id)
            if session is None:
                session = EstimateSession(
                    self.store, project_id,
                    min_rows=self.min_rows,
                    debounce_seconds=self.debounce_seconds,
                ).load()
                self._sessions[project_id] = session
            return session

    def discard(self, project_id: int) -> None:
        with self._lock:
            session = self._sessions.pop(project_id, None)
        if session is not None:
            session.close()

    def flush_all(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
        return sum(session.flush() for session in sessions)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()


def init_sessions(app: Flask, store: EstimateStore) -> SessionRegistry:
    """Attach the session registry to the app."""
    registry = SessionRegistry(
        store,
        min_rows=app.config.get('MIN_VISIBLE_ROWS', MIN_VISIBLE_ROWS),
        debounce_seconds=app.config.get('AUTOSAVE_DEBOUNCE_MS', 500) / 1000.0,
    )
    app.extensions['sessions'] = registry
    return registry


def get_sessions(app: Optional[Flask] = None) -> SessionRegistry:
    app = app or current_app
    registry = app.extensions.get('sessions')
    if registry is None:
        raise RuntimeError("Session registry not initialized.")
    return registry


def get_session(project_id: int) -> EstimateSession:
    """Session for a project of the current app; NotFoundError for unknown projects."""
    return get_sessions().get(project_id)
