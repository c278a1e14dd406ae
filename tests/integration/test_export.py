"""
Integration tests for proposal exports.
"""

import io
import pytest
from decimal import Decimal

from docx import Document
from openpyxl import load_workbook

from estimator.exceptions import ValidationError
from estimator.services.export_service import (
    build_line_table, business_info_from, export_document, generate_estimate_xlsx, generate_proposal_docx,
    generate_proposal_pdf,
)


@pytest.fixture
def filled_session(estimate_session, sample_row_fields):
    estimate_session.set_cell(0, 'description', sample_row_fields['description'])
    for key, value in sample_row_fields.items():
        estimate_session.set_cell(0, key, value)
    estimate_session.set_cell(1, 'description', 'Site survey')
    estimate_session.set_cell(1, 'quantity', '0')
    return estimate_session


class TestLineTable:

    def test_zero_quantity_unit_price(self, filled_session):
        lines = build_line_table(filled_session.rows)

        assert len(lines) == 2
        assert lines[0]['unit_price'] == Decimal('43.56')
        assert lines[0]['total'] == Decimal('87.12')
        assert lines[1]['unit_price'] == 0
        assert lines[1]['total'] == 0


class TestDocuments:

    def test_pdf(self, filled_session, store, app):
        payload = filled_session.export_payload()
        info = business_info_from(store.get_company_settings(), app.config)

        buffer = generate_proposal_pdf(payload['project'], payload['rows'], info, payload['rollup'])

        assert buffer.getvalue().startswith(b'%PDF')

    def test_xlsx_contents(self, filled_session, store, app):
        payload = filled_session.export_payload()
        info = business_info_from(store.get_company_settings(), app.config)

        buffer = generate_estimate_xlsx(payload['project'], payload['rows'], info)
        wb = load_workbook(buffer)

        items = wb['Line Items']
        assert items['C6'].value == 'Dome camera'
        assert items['H6'].value == pytest.approx(43.56)
        assert items['I6'].value == pytest.approx(87.12)
        assert items['H7'].value == 0

        summary = wb['Summary']
        labels = [summary.cell(row=r, column=1).value for r in range(3, 13)]
        assert 'Material Tax (8%)' in labels
        assert 'Contingency (5%)' in labels
        assert 'GRAND TOTAL' in labels
        total_row = labels.index('GRAND TOTAL') + 3
        assert summary.cell(row=total_row, column=2).value == pytest.approx(93.324)

    def test_docx_contents(self, filled_session, store, app):
        payload = filled_session.export_payload()
        info = business_info_from(store.get_company_settings(), app.config)

        buffer = generate_proposal_docx(payload['project'], payload['rows'], info, payload['rollup'])
        document = Document(buffer)

        text = '\n'.join(p.text for p in document.paragraphs)
        assert 'PROPOSAL' in text

        info_table, items, breakdown = document.tables
        assert 'Lobby Camera Upgrade' in info_table.cell(0, 0).text
        assert 'Jane Client' in info_table.cell(0, 1).text

        assert [c.text for c in items.rows[0].cells] == ['Description', 'Qty', 'Unit', 'Unit Price', 'Total']
        assert [c.text for c in items.rows[1].cells] == ['Dome camera', '2', 'EA', '$43.56', '$87.12']
        assert items.rows[2].cells[3].text == '$0.00'

        labels = [row.cells[0].text for row in breakdown.rows]
        assert 'Material Tax (8%)' in labels
        assert labels[-1] == 'TOTAL:'
        assert breakdown.rows[-1].cells[1].text == '$93.32'

    def test_unknown_format(self, filled_session):
        payload = filled_session.export_payload()

        with pytest.raises(ValidationError):
            export_document('odt', payload['project'], payload['rows'], {})

    def test_business_info_prefers_settings(self, store, app):
        store.update_company_settings({'company_name': 'Bright Wire LLC', 'phone': ''})
        info = business_info_from(store.get_company_settings(), {'BUSINESS_PHONE': '555-0100'})

        assert info['name'] == 'Bright Wire LLC'
        assert info['phone'] == '555-0100'


class TestExportEndpoint:

    def test_download_pdf(self, client, project, store):
        store.create_line_item({'project_id': project.id, 'description': 'Cat6 drop', 'material_cost': 35.0})

        response = client.get(f'/projects/{project.id}/export/pdf')

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'attachment' in response.headers['Content-Disposition']
        assert project.project_number in response.headers['Content-Disposition']

    def test_download_docx(self, client, project):
        response = client.get(f'/projects/{project.id}/export/docx')

        assert response.status_code == 200
        assert response.mimetype == 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'
        assert '.docx' in response.headers['Content-Disposition']
        assert len(Document(io.BytesIO(response.data)).tables) == 3

    def test_download_xlsx(self, client, project):
        response = client.get(f'/projects/{project.id}/export/xlsx')

        assert response.status_code == 200
        wb = load_workbook(io.BytesIO(response.data))
        assert wb.sheetnames == ['Line Items', 'Summary']

    def test_unknown_format(self, client, project):
        assert client.get(f'/projects/{project.id}/export/odt').status_code == 400
