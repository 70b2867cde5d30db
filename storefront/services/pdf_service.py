"""
PDF Invoice Generation Service
Renders an InvoiceDocument with reportlab and stores the downloadable copy.
"""
import logging
from io import BytesIO
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from storefront.core.config import settings
from storefront.services.invoice_service import InvoiceDocument, format_money

logger = logging.getLogger(__name__)


def _money(amount) -> str:
    return format_money(amount, symbol=settings.PDF_CURRENCY_SYMBOL)


def render_invoice_pdf(document: InvoiceDocument) -> BytesIO:
    """
    Generate the PDF for an invoice document.

    Returns:
        BytesIO buffer containing PDF data, positioned at the start
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.5*inch,
        bottomMargin=0.5*inch,
        title=f"Invoice {document.invoice_number}",
        author=document.business_name,
        invariant=1,  # byte-stable output for the same document
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#1f2937'),
        alignment=TA_CENTER,
        spaceAfter=12
    )

    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )

    normal_style = ParagraphStyle(
        'InvoiceNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("INVOICE", title_style))
    elements.append(Spacer(1, 0.3*inch))

    # Business and invoice info
    business_lines = [f"<b>{escape(document.business_name)}</b>", escape(document.business_address)]
    if document.business_phone:
        business_lines.append(f"Phone: {escape(document.business_phone)}")
    info_data = [
        [
            Paragraph("<br/>".join(business_lines), normal_style),
            Paragraph(f"<b>Invoice #:</b> {document.invoice_number}<br/>"
                      f"<b>Date:</b> {document.date}<br/>"
                      f"<b>Time:</b> {document.time}<br/>"
                      f"<b>Payment:</b> {escape(document.payment_method)}", normal_style)
        ]
    ]

    info_table = Table(info_data, colWidths=[3.5*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # Customer
    elements.append(Paragraph("<b>Bill To:</b>", heading_style))
    customer_info = f"<b>{escape(document.bill_to.name)}</b>"
    if document.bill_to.phone:
        customer_info += f"<br/>Phone: {escape(document.bill_to.phone)}"
    if document.bill_to.email:
        customer_info += f"<br/>Email: {escape(document.bill_to.email)}"
    elements.append(Paragraph(customer_info, normal_style))
    elements.append(Spacer(1, 0.3*inch))

    # Line items
    items_data = [[
        Paragraph("<b>Product</b>", normal_style),
        Paragraph("<b>Qty</b>", normal_style),
        Paragraph("<b>Unit Price</b>", normal_style),
        Paragraph("<b>Subtotal</b>", normal_style),
    ]]
    for line in document.lines:
        items_data.append([
            Paragraph(escape(line.name), normal_style),
            str(line.quantity),
            _money(line.unit_price),
            _money(line.subtotal),
        ])

    items_table = Table(items_data, colWidths=[3*inch, 0.8*inch, 1.3*inch, 1.4*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    total_table = Table(
        [['', '', Paragraph("<b>TOTAL:</b>", heading_style), Paragraph(f"<b>{_money(document.total)}</b>", heading_style)]],
        colWidths=[3*inch, 0.8*inch, 1.3*inch, 1.4*inch],
    )
    total_table.setStyle(TableStyle([
        ('ALIGN', (2, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (2, 0), (-1, 0), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(total_table)

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.5*inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))

    doc.build(elements)

    buffer.seek(0)
    return buffer


def save_invoice_pdf(document: InvoiceDocument, directory: str | None = None) -> Path:
    """Write the invoice PDF as ``invoice-<NUMBER>.pdf``, replacing any earlier copy."""
    target_dir = Path(directory or settings.INVOICE_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / document.filename
    path.write_bytes(render_invoice_pdf(document).getvalue())
    logger.info(f"[Invoice] Saved {path}")
    return path
