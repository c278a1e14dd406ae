"""Proposal exports - PDF (reportlab), Word (python-docx) and Excel (openpyxl)."""
import logging
from datetime import datetime, timedelta
from io import BytesIO
from typing import Any, Dict, List, Optional

from reportlab.lib.pagesizes import LETTER
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER
from xml.sax.saxutils import escape

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from estimator.exceptions import ValidationError
from estimator.services.pricing_service import Rollup, compute_item_breakdown, compute_rollup, priced_rows
from estimator.utils.formatters import money, num, date_us

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    'pdf': 'application/pdf',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


def _read(source, name, default=None):
    if source is None:
        return default
    if isinstance(source, dict):
        return source.get(name, default)
    return getattr(source, name, default)


def build_line_table(rows) -> List[Dict[str, Any]]:
    """Described rows with their unit price and total, in display order."""
    lines = []
    for row in priced_rows(rows):
        item = compute_item_breakdown(row)
        lines.append({
            'category': _read(row, 'category') or '',
            'description': _read(row, 'description'),
            'quantity': item.quantity,
            'unit': _read(row, 'unit') or 'EA',
            'material': item.material_subtotal,
            'labor': item.labor_subtotal,
            'unit_price': item.unit_price,
            'total': item.total,
        })
    return lines


def business_info_from(settings=None, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Company block for the document header; settings win over config."""
    config = config or {}
    return {
        'name': _read(settings, 'company_name') or config.get('BUSINESS_NAME', ''),
        'address': _read(settings, 'address') or config.get('BUSINESS_ADDRESS', ''),
        'phone': _read(settings, 'phone') or config.get('BUSINESS_PHONE', ''),
        'email': _read(settings, 'email') or config.get('BUSINESS_EMAIL', ''),
        'website': _read(settings, 'website') or '',
        'terms': _read(settings, 'proposal_terms') or '',
        'valid_days': config.get('ESTIMATE_VALID_DAYS', 30),
    }


def generate_proposal_pdf(project, rows, business_info: Dict[str, Any],
                          rollup: Optional[Rollup] = None) -> BytesIO:
    """
    Render a client proposal.

    Sections: company header, project/client block, line table (unit price
    is zero guarded), cost breakdown with every non-zero rollup component,
    grand total, terms.
    """
    rows = priced_rows(rows)
    rollup = rollup or compute_rollup(rows, project)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        title=f"Proposal {_read(project, 'project_number') or ''}".strip(),
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ProposalTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'ProposalHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9, leading=11)

    # 1. Company header
    elements.append(Paragraph("PROPOSAL", title_style))

    if business_info.get('name'):
        elements.append(Paragraph(f"<b>{escape(business_info['name'])}</b>", header_style))

    if business_info.get('address'):
        elements.append(Paragraph(escape(business_info['address']), header_style))

    contact_parts = []
    if business_info.get('phone'):
        contact_parts.append(f"Tel: {business_info['phone']}")
    if business_info.get('email'):
        contact_parts.append(f"Email: {business_info['email']}")
    if business_info.get('website'):
        contact_parts.append(business_info['website'])

    if contact_parts:
        elements.append(Paragraph(escape(" | ".join(contact_parts)), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Project / client block
    issued = datetime.now()
    valid_days = business_info.get('valid_days', 30)

    info_data = [
        ['Proposal No.:', _read(project, 'project_number') or '-'],
        ['Project:', Paragraph(escape(_read(project, 'name') or ''), cell_style)],
        ['Date:', date_us(issued)],
        ['Valid Until:', date_us(issued + timedelta(days=valid_days))],
    ]
    for label, attr in (('Client:', 'client_name'), ('Company:', 'client_company'),
                        ('Phone:', 'client_phone'), ('Email:', 'client_email'),
                        ('Address:', 'client_address')):
        value = _read(project, attr)
        if value:
            info_data.append([label, Paragraph(escape(value), cell_style)])

    info_table = Table(info_data, colWidths=[1.5*inch, 4.5*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))

    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    if _read(project, 'description'):
        elements.append(Paragraph(escape(_read(project, 'description')), styles['Normal']))
        elements.append(Spacer(1, 0.2*inch))

    # 3. Line items
    table_data = [['Description', 'Qty', 'Unit', 'Unit Price', 'Total']]
    for line in build_line_table(rows):
        table_data.append([
            Paragraph(escape(line['description']), cell_style),
            num(line['quantity']),
            line['unit'],
            money(line['unit_price']),
            money(line['total']),
        ])

    items_table = Table(table_data, colWidths=[3.3*inch, 0.6*inch, 0.6*inch, 1*inch, 1.1*inch], repeatRows=1)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (1, 1), (1, -1), 'CENTER'),
        ('ALIGN', (2, 1), (2, -1), 'CENTER'),
        ('ALIGN', (3, 1), (3, -1), 'RIGHT'),
        ('ALIGN', (4, 1), (4, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))

    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Cost breakdown and total
    breakdown_data = [[label, money(amount)] for _, label, amount in rollup.components()]
    if breakdown_data:
        breakdown_table = Table(breakdown_data, colWidths=[5.5*inch, 1.1*inch])
        breakdown_table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
        ]))
        elements.append(breakdown_table)
        elements.append(Spacer(1, 0.1*inch))

    total_table = Table([['TOTAL:', money(rollup.grand_total)]], colWidths=[5.5*inch, 1.1*inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, 0), 'RIGHT'),
        ('ALIGN', (1, 0), (1, 0), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 14),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#E8F8F5')),
        ('BOX', (0, 0), (-1, -1), 2, colors.HexColor('#27AE60')),
    ]))

    elements.append(total_table)
    elements.append(Spacer(1, 0.4*inch))

    # 5. Terms
    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9,
                                  textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    footer_text = f"This proposal is valid for {valid_days} days."
    if business_info.get('terms'):
        footer_text += f"<br/><br/><b>Terms:</b> {escape(business_info['terms'])}"
    if _read(project, 'notes'):
        footer_text += f"<br/><br/><b>Notes:</b> {escape(_read(project, 'notes'))}"

    elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    logger.info(f"[EXPORT] PDF proposal for project {_read(project, 'id')}: {len(rows)} item(s)")
    return buffer


def generate_proposal_docx(project, rows, business_info: Dict[str, Any],
                           rollup: Optional[Rollup] = None) -> BytesIO:
    """Word version of the proposal: same sections as the PDF."""
    rows = priced_rows(rows)
    rollup = rollup or compute_rollup(rows, project)
    issued = datetime.now()
    valid_days = business_info.get('valid_days', 30)

    document = Document()

    # 1. Company header
    document.add_heading(business_info.get('name') or 'Proposal', level=1)
    for line in (business_info.get('address'),
                 f"Phone: {business_info['phone']}" if business_info.get('phone') else None,
                 f"Email: {business_info['email']}" if business_info.get('email') else None,
                 business_info.get('website')):
        if line:
            document.add_paragraph(line)

    title = document.add_heading('PROPOSAL', level=2)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    # 2. Project / client block
    info = document.add_table(rows=1, cols=2)
    project_cell, client_cell = info.rows[0].cells
    project_cell.paragraphs[0].add_run('Project Information').bold = True
    project_cell.add_paragraph(f"Project: {_read(project, 'name') or ''}")
    project_cell.add_paragraph(f"Number: {_read(project, 'project_number') or '-'}")
    project_cell.add_paragraph(f"Date: {date_us(issued)}")
    project_cell.add_paragraph(f"Valid Until: {date_us(issued + timedelta(days=valid_days))}")
    client_cell.paragraphs[0].add_run('Prepared For').bold = True
    for attr in ('client_name', 'client_company', 'client_phone', 'client_email', 'client_address'):
        if _read(project, attr):
            client_cell.add_paragraph(_read(project, attr))

    if _read(project, 'description'):
        document.add_paragraph().add_run('Project Description:').bold = True
        document.add_paragraph(_read(project, 'description'))

    # 3. Line items
    headers = ('Description', 'Qty', 'Unit', 'Unit Price', 'Total')
    items = document.add_table(rows=1, cols=len(headers))
    items.style = 'Table Grid'
    for cell, header in zip(items.rows[0].cells, headers):
        cell.paragraphs[0].add_run(header).bold = True
    for line in build_line_table(rows):
        cells = items.add_row().cells
        cells[0].text = line['description']
        cells[1].text = num(line['quantity'])
        cells[2].text = line['unit']
        cells[3].text = money(line['unit_price'])
        cells[4].text = money(line['total'])
        for cell in cells[3:]:
            cell.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.RIGHT

    # 4. Cost breakdown and total
    document.add_paragraph()
    breakdown = document.add_table(rows=0, cols=2)
    breakdown.alignment = WD_TABLE_ALIGNMENT.RIGHT
    for _, label, amount in rollup.components():
        cells = breakdown.add_row().cells
        cells[0].text = label
        cells[1].text = money(amount)
        cells[1].paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.RIGHT
    cells = breakdown.add_row().cells
    cells[0].paragraphs[0].add_run('TOTAL:').bold = True
    cells[1].paragraphs[0].add_run(money(rollup.grand_total)).bold = True
    cells[1].paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.RIGHT

    # 5. Terms
    if business_info.get('terms'):
        document.add_paragraph().add_run('Terms & Conditions').bold = True
        document.add_paragraph(business_info['terms'])
    if _read(project, 'notes'):
        document.add_paragraph().add_run('Notes').bold = True
        document.add_paragraph(_read(project, 'notes'))

    footer = document.add_paragraph(f"This proposal is valid for {valid_days} days.")
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    footer.runs[0].font.size = Pt(9)
    footer.runs[0].font.color.rgb = RGBColor(0x95, 0xA5, 0xA6)

    buffer = BytesIO()
    document.save(buffer)
    buffer.seek(0)
    logger.info(f"[EXPORT] Word proposal for project {_read(project, 'id')}: {len(rows)} item(s)")
    return buffer


class EstimateWorkbook:
    """Excel workbook with a line item sheet and a summary sheet."""

    HEADERS = ('#', 'Category', 'Description', 'Qty', 'Unit', 'Material', 'Labor', 'Unit Price', 'Total')
    WIDTHS = (5, 18, 45, 8, 8, 14, 14, 14, 16)
    MONEY_FORMAT = '"$"#,##0.00'

    def __init__(self):
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.title_font = Font(bold=True, size=16)
        self.bold_font = Font(bold=True, size=10)
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def build(self, project, rows, business_info: Dict[str, Any], rollup: Optional[Rollup] = None) -> BytesIO:
        rows = priced_rows(rows)
        rollup = rollup or compute_rollup(rows, project)

        wb = Workbook()
        items_sheet = wb.active
        items_sheet.title = "Line Items"
        self._write_items(items_sheet, project, rows, business_info)

        summary_sheet = wb.create_sheet("Summary")
        self._write_summary(summary_sheet, project, rollup)

        buffer = BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        logger.info(f"[EXPORT] Excel estimate for project {_read(project, 'id')}: {len(rows)} item(s)")
        return buffer

    def _write_items(self, ws, project, rows, business_info):
        ws['A1'] = business_info.get('name') or 'Estimate'
        ws['A1'].font = self.title_font
        ws['A2'] = f"{_read(project, 'project_number') or ''} {_read(project, 'name') or ''}".strip()
        ws['A2'].font = self.bold_font
        if _read(project, 'client_name'):
            ws['A3'] = f"Client: {_read(project, 'client_name')}"

        header_row = 5
        for col, header in enumerate(self.HEADERS, start=1):
            cell = ws.cell(row=header_row, column=col, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = self.border

        row_num = header_row + 1
        for number, line in enumerate(build_line_table(rows), start=1):
            values = (
                number, line['category'], line['description'], float(line['quantity']), line['unit'],
                float(line['material']), float(line['labor']), float(line['unit_price']), float(line['total']),
            )
            for col, value in enumerate(values, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = self.border
                if col >= 6:
                    cell.number_format = self.MONEY_FORMAT
                    cell.alignment = Alignment(horizontal='right')
                elif col == 3:
                    cell.alignment = Alignment(wrap_text=True, vertical='top')
            row_num += 1

        for col, width in enumerate(self.WIDTHS, start=1):
            ws.column_dimensions[get_column_letter(col)].width = width
        ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    def _write_summary(self, ws, project, rollup: Rollup):
        ws['A1'] = "Cost Summary"
        ws['A1'].font = self.title_font

        row_num = 3
        for _, label, amount in rollup.components(include_zero=True):
            ws.cell(row=row_num, column=1, value=label)
            cell = ws.cell(row=row_num, column=2, value=float(amount))
            cell.number_format = self.MONEY_FORMAT
            row_num += 1

        ws.cell(row=row_num, column=1, value='Subtotal').font = self.bold_font
        cell = ws.cell(row=row_num, column=2, value=float(rollup.subtotal))
        cell.number_format = self.MONEY_FORMAT
        row_num += 1

        label_cell = ws.cell(row=row_num, column=1, value='GRAND TOTAL')
        label_cell.font = Font(bold=True, size=12)
        total_cell = ws.cell(row=row_num, column=2, value=float(rollup.grand_total))
        total_cell.font = Font(bold=True, size=12)
        total_cell.number_format = self.MONEY_FORMAT
        total_cell.border = self.border

        ws.column_dimensions['A'].width = 30
        ws.column_dimensions['B'].width = 18


def generate_estimate_xlsx(project, rows, business_info: Dict[str, Any],
                           rollup: Optional[Rollup] = None) -> BytesIO:
    return EstimateWorkbook().build(project, rows, business_info, rollup)


def export_document(fmt: str, project, rows, business_info: Dict[str, Any],
                    rollup: Optional[Rollup] = None) -> BytesIO:
    """Render in the requested format ('pdf', 'docx' or 'xlsx')."""
    fmt = (fmt or '').lower()
    if fmt == 'pdf':
        return generate_proposal_pdf(project, rows, business_info, rollup)
    if fmt == 'docx':
        return generate_proposal_docx(project, rows, business_info, rollup)
    if fmt == 'xlsx':
        return generate_estimate_xlsx(project, rows, business_info, rollup)
    raise ValidationError(f"Unknown export format '{fmt}'.", payload={'allowed': sorted(EXPORT_FORMATS)})
