"""
Estimate store - persistence adapter over the SQLite database.

Every call opens its own short-lived session so it can be used from the
request thread and from autosave timers alike. Writes are serialized on the
database write lock; SQLAlchemy failures surface as PersistenceError.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.exc import SQLAlchemyError
from flask import Flask, current_app

from estimator.database import Database
from estimator.exceptions import EstimatorError, NotFoundError, PersistenceError
from estimator.models import (
    Project, ProjectStatus, LineItem, MaterialCatalogEntry, Category, CompanySettings,
)
from estimator.services.pricing_service import compute_rollup
from estimator.seed_data import CATEGORIES, MATERIALS
from estimator.utils.number_format import parse_amount

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


class EstimateStore:
    """
    CRUD for projects, line items, the materials catalog and settings.

    Usage:
        store = EstimateStore(database)
        project_id = store.create_project({'name': 'Lobby cameras'})
        item_id = store.create_line_item({'project_id': project_id, 'description': 'Dome camera'})
    """

    def __init__(self, database: Database):
        self.database = database

    # ========== Plumbing ==========

    @contextmanager
    def _write(self, operation: str):
        """Serialized write transaction; errors become PersistenceError."""
        with self.database.write_lock:
            session = self.database.new_session()
            try:
                yield session
                session.commit()
            except EstimatorError:
                session.rollback()
                raise
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"[STORE] {operation} failed: {e}")
                raise PersistenceError(f"{operation} failed: {e.__class__.__name__}", operation=operation) from e
            finally:
                session.close()

    @contextmanager
    def _read(self):
        session = self.database.new_session()
        try:
            yield session
        finally:
            session.close()

    # ========== Projects ==========

    def create_project(self, fields: Dict[str, Any]) -> int:
        name = (fields.get('name') or '').strip()
        if not name:
            raise PersistenceError('Project name is required.', operation='create_project')

        with self._write('create_project') as session:
            settings = self._settings_row(session)
            project = Project(
                name=name,
                status=fields.get('status') or ProjectStatus.DRAFT.value,
                material_tax_rate_pct=settings.tax_rate or 0,
                contingency_pct=settings.default_contingency_pct or 0,
                total_amount=0,
            )
            self._apply_project_fields(project, fields)
            if not project.project_number:
                project.project_number = self._next_project_number(session)
            session.add(project)
            session.flush()
            project_id = project.id

        logger.info(f"[STORE] Created project {project_id}")
        return project_id

    def list_projects(self) -> List[Project]:
        with self._read() as session:
            return session.query(Project).order_by(Project.date_created.desc(), Project.id.desc()).all()

    def get_project(self, project_id: int) -> Project:
        with self._read() as session:
            project = session.get(Project, project_id)
            if not project:
                raise NotFoundError(f'Project {project_id} not found.')
            return project

    def update_project(self, project_id: int, fields: Dict[str, Any]) -> Project:
        with self._write('update_project') as session:
            project = session.get(Project, project_id)
            if not project:
                raise NotFoundError(f'Project {project_id} not found.')
            if 'name' in fields and not (fields.get('name') or '').strip():
                raise PersistenceError('Project name is required.', operation='update_project')
            self._apply_project_fields(project, fields)
            project.date_modified = datetime.now()
        return project

    def update_project_total(self, project_id: int, amount) -> None:
        with self._write('update_project_total') as session:
            project = session.get(Project, project_id)
            if not project:
                raise NotFoundError(f'Project {project_id} not found.')
            project.total_amount = float(amount)

    def delete_project(self, project_id: int) -> None:
        with self._write('delete_project') as session:
            project = session.get(Project, project_id)
            if not project:
                raise NotFoundError(f'Project {project_id} not found.')
            session.query(LineItem).filter(LineItem.project_id == project_id).delete(synchronize_session=False)
            session.delete(project)
        logger.info(f"[STORE] Deleted project {project_id}")

    def recalculate_project_total(self, project_id: int) -> Decimal:
        """Recompute the cached total from the persisted rows and store it."""
        with self._write('recalculate_project_total') as session:
            project = session.get(Project, project_id)
            if not project:
                raise NotFoundError(f'Project {project_id} not found.')
            items = self._line_item_query(session, project_id).all()
            total = compute_rollup(items, project).grand_total
            project.total_amount = float(total)
        return total

    @staticmethod
    def _apply_project_fields(project: Project, fields: Dict[str, Any]) -> None:
        for name in Project.EDITABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name in ('material_tax_rate_pct', 'contingency_pct'):
                value = float(parse_amount(value))
            elif name == 'status':
                valid = {s.value for s in ProjectStatus}
                value = value if value in valid else ProjectStatus.DRAFT.value
            elif isinstance(value, str):
                value = value.strip() or None
                if name == 'name' and value is None:
                    continue
            setattr(project, name, value)

    @staticmethod
    def _next_project_number(session) -> str:
        """EST-YYYYMM-NNN, sequential within the month."""
        prefix = f"EST-{datetime.now().strftime('%Y%m')}-"
        count = session.query(Project).filter(Project.project_number.like(f"{prefix}%")).count()
        sequence = count + 1
        while True:
            candidate = f"{prefix}{str(sequence).zfill(3)}"
            exists = session.query(Project.id).filter(Project.project_number == candidate).first()
            if not exists:
                return candidate
            sequence += 1

    # ========== Line Items ==========

    def create_line_item(self, fields: Dict[str, Any]) -> int:
        description = (fields.get('description') or '').strip()
        if not description:
            raise PersistenceError('Line item description is required.', operation='create_line_item')

        project_id = fields.get('project_id')
        with self._write('create_line_item') as session:
            if project_id is None or not session.get(Project, project_id):
                raise PersistenceError(f'Invalid project {project_id}.', operation='create_line_item')

            sort_order = fields.get('sort_order')
            if sort_order is None:
                current = session.query(func.max(LineItem.sort_order)).filter(
                    LineItem.project_id == project_id
                ).scalar()
                sort_order = 0 if current is None else current + 1

            item = LineItem(project_id=project_id, sort_order=int(sort_order))
            self._apply_line_item_fields(item, fields)
            item.description = fields['description']
            session.add(item)
            session.flush()
            item_id = item.id

        logger.debug(f"[STORE] Created line item {item_id} in project {project_id}")
        return item_id

    def get_line_items(self, project_id: int) -> List[LineItem]:
        with self._read() as session:
            return self._line_item_query(session, project_id).all()

    def get_line_item(self, item_id: int) -> LineItem:
        with self._read() as session:
            item = session.get(LineItem, item_id)
            if not item:
                raise NotFoundError(f'Line item {item_id} not found.')
            return item

    def update_line_item(self, item_id: int, fields: Dict[str, Any]) -> bool:
        with self._write('update_line_item') as session:
            item = session.get(LineItem, item_id)
            if not item:
                raise PersistenceError(f'Line item {item_id} no longer exists.', operation='update_line_item')
            self._apply_line_item_fields(item, fields)
        return True

    def delete_line_item(self, item_id: int) -> bool:
        with self._write('delete_line_item') as session:
            deleted = session.query(LineItem).filter(LineItem.id == item_id).delete(synchronize_session=False)
            if not deleted:
                raise PersistenceError(f'Line item {item_id} no longer exists.', operation='delete_line_item')
        return True

    def shift_sort_orders(self, project_id: int, starting_at: int, by: int = 1) -> int:
        """Open a gap in the ordering: every row at or after starting_at moves down."""
        with self._write('shift_sort_orders') as session:
            return session.query(LineItem).filter(
                LineItem.project_id == project_id,
                LineItem.sort_order >= starting_at,
            ).update({LineItem.sort_order: LineItem.sort_order + by}, synchronize_session=False)

    @staticmethod
    def _line_item_query(session, project_id: int):
        return session.query(LineItem).filter(
            LineItem.project_id == project_id
        ).order_by(LineItem.sort_order, LineItem.id)

    @staticmethod
    def _apply_line_item_fields(item: LineItem, fields: Dict[str, Any]) -> None:
        for name in LineItem.FIELDS:
            if name in fields and fields[name] is not None:
                setattr(item, name, fields[name])
            elif name in fields and name in ('spec_url', 'notes', 'category'):
                setattr(item, name, None)

    # ========== Materials Catalog ==========

    def add_material(self, fields: Dict[str, Any]) -> int:
        item_name = (fields.get('item_name') or '').strip()
        if not item_name:
            raise PersistenceError('Material name is required.', operation='add_material')

        with self._write('add_material') as session:
            entry = MaterialCatalogEntry(
                category=fields.get('category') or None,
                item_name=item_name,
                description=fields.get('description') or None,
                unit=fields.get('unit') or 'EA',
                material_cost=float(fields.get('material_cost') or 0),
                typical_labor_hours=float(fields.get('typical_labor_hours') or 0),
                manufacturer=fields.get('manufacturer') or None,
                part_number=fields.get('part_number') or None,
            )
            session.add(entry)
            session.flush()
            return entry.id

    def get_material(self, material_id: int) -> MaterialCatalogEntry:
        with self._read() as session:
            entry = session.get(MaterialCatalogEntry, material_id)
            if not entry:
                raise NotFoundError(f'Material {material_id} not found.')
            return entry

    def get_materials_catalog(self, category: Optional[str] = None) -> List[MaterialCatalogEntry]:
        with self._read() as session:
            query = session.query(MaterialCatalogEntry)
            if category:
                return query.filter(MaterialCatalogEntry.category == category).order_by(
                    MaterialCatalogEntry.item_name
                ).all()
            return query.order_by(MaterialCatalogEntry.category, MaterialCatalogEntry.item_name).all()

    def search_materials_catalog(self, query_text: str, limit: int = SEARCH_LIMIT) -> List[MaterialCatalogEntry]:
        """Substring search; item names that start with the query come first."""
        query_text = (query_text or '').strip()
        if not query_text:
            return self.get_materials_catalog()[:limit]

        term = f"%{query_text}%"
        with self._read() as session:
            prefix_rank = case(
                (MaterialCatalogEntry.item_name.ilike(f"{query_text}%"), 0),
                else_=1,
            )
            return session.query(MaterialCatalogEntry).filter(
                or_(
                    MaterialCatalogEntry.item_name.ilike(term),
                    MaterialCatalogEntry.description.ilike(term),
                    MaterialCatalogEntry.category.ilike(term),
                )
            ).order_by(prefix_rank, MaterialCatalogEntry.item_name).limit(limit).all()

    # ========== Categories ==========

    def get_categories(self) -> List[Category]:
        with self._read() as session:
            return session.query(Category).order_by(Category.sort_order, Category.id).all()

    # ========== Company Settings ==========

    def get_company_settings(self) -> CompanySettings:
        with self._read() as session:
            settings = session.get(CompanySettings, 1)
            if settings:
                return settings
        with self._write('get_company_settings') as session:
            return self._settings_row(session)

    def update_company_settings(self, fields: Dict[str, Any]) -> CompanySettings:
        numeric = {
            'default_labor_rate', 'default_material_markup_pct', 'default_labor_markup_pct',
            'default_overhead_pct', 'default_profit_pct', 'tax_rate', 'default_contingency_pct',
        }

        with self._write('update_company_settings') as session:
            settings = self._settings_row(session)
            for name in CompanySettings.EDITABLE_FIELDS:
                if name not in fields:
                    continue
                value = fields[name]
                if name in numeric:
                    value = float(parse_amount(value))
                elif isinstance(value, str):
                    value = value.strip()
                setattr(settings, name, value)
        return settings

    @staticmethod
    def _settings_row(session) -> CompanySettings:
        settings = session.get(CompanySettings, 1)
        if not settings:
            settings = CompanySettings(id=1)
            session.add(settings)
            session.flush()
        return settings

    # ========== Seeding ==========

    def seed_defaults(self, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """Insert categories, catalog and settings when the tables are empty."""
        counts = {'categories': 0, 'materials': 0, 'settings': 0}
        with self._write('seed_defaults') as session:
            if session.query(Category).count() == 0:
                for name, sort_order in CATEGORIES:
                    session.add(Category(name=name, sort_order=sort_order))
                    counts['categories'] += 1

            if session.query(MaterialCatalogEntry).count() == 0:
                for category, item_name, description, unit, cost, hours in MATERIALS:
                    session.add(MaterialCatalogEntry(
                        category=category, item_name=item_name, description=description,
                        unit=unit, material_cost=cost, typical_labor_hours=hours,
                    ))
                    counts['materials'] += 1

            if not session.get(CompanySettings, 1):
                settings = CompanySettings(id=1)
                for name, value in (defaults or {}).items():
                    if name in CompanySettings.EDITABLE_FIELDS and value is not None:
                        setattr(settings, name, value)
                session.add(settings)
                counts['settings'] = 1

        logger.info(f"[STORE] Seeded {counts}")
        return counts

    def project_ids(self) -> Iterable[int]:
        with self._read() as session:
            return [row[0] for row in session.query(Project.id).order_by(Project.id).all()]


def init_store(app: Flask, database: Database) -> EstimateStore:
    """Create the store, seed lookup tables and attach it to the app."""
    store = EstimateStore(database)
    store.seed_defaults({
        'company_name': app.config.get('BUSINESS_NAME'),
        'address': app.config.get('BUSINESS_ADDRESS') or None,
        'phone': app.config.get('BUSINESS_PHONE') or None,
        'email': app.config.get('BUSINESS_EMAIL') or None,
        'default_labor_rate': app.config.get('DEFAULT_LABOR_RATE'),
        'default_material_markup_pct': app.config.get('DEFAULT_MARKUP_PCT'),
        'default_labor_markup_pct': app.config.get('DEFAULT_MARKUP_PCT'),
        'default_overhead_pct': app.config.get('DEFAULT_OVERHEAD_PCT'),
        'default_profit_pct': app.config.get('DEFAULT_PROFIT_PCT'),
    })
    app.extensions['store'] = store
    return store


def get_store(app: Optional[Flask] = None) -> EstimateStore:
    app = app or current_app
    store = app.extensions.get('store')
    if store is None:
        raise RuntimeError("Estimate store not initialized.")
    return store
