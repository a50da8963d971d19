"""Quote PDF rendering (reportlab platypus, A4)."""
import re
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from rebath.services.pricing import ITEM_TYPE_FIXTURE, ITEM_TYPE_LABOR
from rebath.utils.formatters import format_currency, format_date, humanize

MARGIN = 20 * mm
BRAND_COLOR = colors.HexColor('#1F4E79')
MUTED_COLOR = colors.HexColor('#7F8C8D')
GRID_COLOR = colors.HexColor('#BDC3C7')
STRIPE_COLOR = colors.HexColor('#ECF0F1')

ITEM_COLUMNS = ['#', 'Item', 'Brand/Model', 'Qty', 'Unit Price', 'Total']
LABOR_COLUMNS = ['#', 'Item', 'Description', 'Qty', 'Unit Price', 'Total']
ITEM_COL_WIDTHS = [10 * mm, 50 * mm, 45 * mm, 15 * mm, 25 * mm, 25 * mm]

FOOTER_LINES = (
    'Thank you for choosing {name} for your renovation needs.',
    'This quote is valid until the date specified above.',
)


def quote_pdf_filename(quote, project) -> str:
    """``Quote-<number>-<Client-Name>.pdf`` (spaces become dashes)."""
    client = re.sub(r'\s+', '-', (project.client_name or 'Client').strip())
    client = re.sub(r'[^A-Za-z0-9_.-]', '', client) or 'Client'
    return f"Quote-{quote.quote_number}-{client}.pdf"


def _styles() -> Dict[str, ParagraphStyle]:
    styles = getSampleStyleSheet()
    return {
        'brand': ParagraphStyle(
            'Brand',
            parent=styles['Heading1'],
            fontSize=22,
            textColor=BRAND_COLOR,
            spaceAfter=2,
            fontName='Helvetica-Bold'
        ),
        'contact': ParagraphStyle(
            'Contact',
            parent=styles['Normal'],
            fontSize=9,
            textColor=MUTED_COLOR,
        ),
        'title': ParagraphStyle(
            'QuoteTitle',
            parent=styles['Heading2'],
            fontSize=16,
            spaceBefore=6,
            spaceAfter=6,
        ),
        'section': ParagraphStyle(
            'Section',
            parent=styles['Heading3'],
            fontSize=12,
            textColor=BRAND_COLOR,
            spaceBefore=8,
            spaceAfter=4,
        ),
        'body': ParagraphStyle('Body', parent=styles['Normal'], fontSize=10, leading=13),
        'cell': ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9, leading=11),
    }


def _key_value_table(rows: List[List[str]]) -> Table:
    table = Table(rows, colWidths=[35 * mm, 135 * mm], hAlign='LEFT')
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ('TOPPADDING', (0, 0), (-1, -1), 2),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
    ]))
    return table


def _items_table(header: List[str], rows: List[List[Any]]) -> Table:
    table = Table([header] + rows, colWidths=ITEM_COL_WIDTHS, repeatRows=1, hAlign='LEFT')
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('ALIGN', (0, 1), (0, -1), 'CENTER'),
        ('ALIGN', (3, 1), (3, -1), 'CENTER'),
        ('ALIGN', (4, 1), (5, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, STRIPE_COLOR]),
    ]))
    return table


def _item_rows(items, start_index: int, styles) -> List[List[Any]]:
    rows = []
    for offset, item in enumerate(items):
        if item.type == ITEM_TYPE_FIXTURE:
            detail = ' '.join(part for part in (item.brand, item.model) if part)
            unit = item.unit_price + (item.installation_cost or Decimal('0'))
        else:
            detail = item.description or ''
            unit = item.unit_price
        rows.append([
            str(start_index + offset),
            Paragraph(escape(item.name), styles['cell']),
            Paragraph(escape(detail), styles['cell']),
            str(item.quantity),
            format_currency(unit),
            format_currency(item.total_price),
        ])
    return rows


def _summary_table(quote) -> Table:
    rows = [['Subtotal:', format_currency(quote.subtotal)]]
    if quote.discount_amount and quote.discount_amount > 0:
        pct = Decimal(str(quote.discount_percentage)) * 100
        rows.append([f'Discount ({pct:.2f}%):', f'-{format_currency(quote.discount_amount)}'])
    tax_pct = Decimal(str(quote.tax_rate)) * 100
    rows.append([f'Tax ({tax_pct:.2f}%):', format_currency(quote.tax_amount)])
    rows.append(['Total:', format_currency(quote.total)])

    table = Table(rows, colWidths=[140 * mm, 30 * mm], hAlign='LEFT')
    table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 12),
        ('TEXTCOLOR', (0, -1), (-1, -1), BRAND_COLOR),
        ('LINEABOVE', (0, -1), (-1, -1), 1, BRAND_COLOR),
    ]))
    return table


def generate_quote_pdf(quote, project, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render a quote as a PDF.

    Layout: business header, quote number and dates, bill-to block, project
    details, fixture and labor tables, summary (discount only when non-zero),
    notes, and a footer on every page. Long item lists flow onto further
    pages; table headers repeat.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=MARGIN,
        leftMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=f"Quote {quote.quote_number}",
        author=business_info.get('name') or 'ReBath Pro',
    )
    styles = _styles()
    business_name = business_info.get('name') or 'ReBath Pro'
    elements = []

    # 1. Business header
    elements.append(Paragraph(escape(business_name), styles['brand']))
    contact_parts = [business_info.get(key) for key in ('address', 'phone', 'email') if business_info.get(key)]
    if contact_parts:
        elements.append(Paragraph(escape(' | '.join(contact_parts)), styles['contact']))

    # 2. Quote metadata
    elements.append(Paragraph(f"Quote {escape(quote.quote_number)}", styles['title']))
    elements.append(_key_value_table([
        ['Created:', format_date(quote.created_at)],
        ['Valid Until:', format_date(quote.valid_until)],
        ['Status:', humanize(quote.effective_status())],
    ]))

    # 3. Bill to
    elements.append(Paragraph('Bill To:', styles['section']))
    bill_to = [escape(project.client_name)]
    for value in (project.client_email, project.client_phone, project.address):
        if value:
            bill_to.append(escape(value))
    elements.append(Paragraph('<br/>'.join(bill_to), styles['body']))

    # 4. Project details
    elements.append(Paragraph('Project Details:', styles['section']))
    elements.append(_key_value_table([
        ['Project Type:', humanize(project.project_type)],
        ['Project Status:', humanize(project.status)],
        ['Priority:', humanize(project.priority)],
    ]))

    # 5. Items
    items = quote.line_items
    fixtures = [item for item in items if item.type == ITEM_TYPE_FIXTURE]
    labor = [item for item in items if item.type == ITEM_TYPE_LABOR]

    elements.append(Paragraph('Quote Items:', styles['section']))
    if fixtures:
        elements.append(Paragraph('<b>Fixture Items</b>', styles['body']))
        elements.append(Spacer(1, 2 * mm))
        elements.append(_items_table(ITEM_COLUMNS, _item_rows(fixtures, 1, styles)))
        elements.append(Spacer(1, 4 * mm))
    if labor:
        elements.append(Paragraph('<b>Labor Items</b>', styles['body']))
        elements.append(Spacer(1, 2 * mm))
        elements.append(_items_table(LABOR_COLUMNS, _item_rows(labor, len(fixtures) + 1, styles)))
        elements.append(Spacer(1, 4 * mm))

    # 6. Summary
    elements.append(Paragraph('Quote Summary', styles['section']))
    elements.append(_summary_table(quote))

    # 7. Notes
    if quote.notes:
        elements.append(Paragraph('Notes:', styles['section']))
        elements.append(Paragraph(escape(quote.notes).replace('\n', '<br/>'), styles['body']))

    footer_lines = [line.format(name=business_name) for line in FOOTER_LINES]

    def draw_footer(canvas, document):
        canvas.saveState()
        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(MUTED_COLOR)
        width = document.pagesize[0]
        y = MARGIN / 2 + 4 * mm
        for line in footer_lines:
            canvas.drawCentredString(width / 2, y, line)
            y -= 4 * mm
        canvas.drawRightString(width - MARGIN, MARGIN / 2 - 4 * mm, f"Page {document.page}")
        canvas.restoreState()

    doc.build(elements, onFirstPage=draw_footer, onLaterPages=draw_footer)
    buffer.seek(0)
    return buffer
