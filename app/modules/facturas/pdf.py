"""
PDF rendering of a single factura with reportlab.
"""
import io
import re
from urllib.parse import quote
from uuid import UUID

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from app.modules.facturas.models import Factura


def _format_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "N/A"


def pdf_filename(factura: Factura) -> str:
    # ASCII only: headers are encoded as latin-1
    safe_label = re.sub(r"[^A-Za-z0-9.\- _]", "_", factura.label).strip() or str(factura.id)
    return f"factura_{safe_label}.pdf"


def content_disposition(factura: Factura) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 label (RFC 5987)."""
    utf8_name = quote(f"factura_{factura.label.strip()}.pdf", safe="")
    return f"attachment; filename=\"{pdf_filename(factura)}\"; filename*=UTF-8''{utf8_name}"


def render_factura_pdf(factura: Factura, owner_id: UUID) -> bytes:
    """Render the factura as a one-page A4 PDF and return its bytes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    page_w, page_h = A4
    margin = 20 * mm
    ink = colors.HexColor("#0f172a")
    muted = colors.HexColor("#475569")

    c.setTitle(f"Factura {factura.label}")

    # Header
    c.setFillColor(ink)
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(page_w / 2, page_h - 30 * mm, "INVOICE / FACTURA")

    y = page_h - 45 * mm
    c.setFont("Helvetica", 12)
    c.drawString(margin, y, f"Invoice ID: {factura.id}")
    y -= 7 * mm
    c.drawString(margin, y, f"Client/Concept: {factura.label[:80]}")
    y -= 6 * mm

    c.setStrokeColor(muted)
    c.line(margin, y, page_w - margin, y)
    y -= 10 * mm

    # Amount and status
    c.setFont("Helvetica-Bold", 14)
    c.drawString(margin, y, f"Total Amount: ${factura.amount:.2f}")
    y -= 8 * mm
    status = factura.status.value if hasattr(factura.status, "value") else str(factura.status)
    c.drawString(margin, y, f"Status: {status.upper()}")
    y -= 12 * mm

    # Dates
    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Due Date: {_format_date(factura.due_date)}")
    y -= 6 * mm
    c.drawString(margin, y, f"Paid Date: {_format_date(factura.paid_date)}")
    y -= 12 * mm

    # Footer
    c.line(margin, y, page_w - margin, y)
    y -= 8 * mm
    c.setFillColor(muted)
    c.setFont("Helvetica", 10)
    c.drawCentredString(page_w / 2, y, f"Generated by PayControl System - User ID: {owner_id}")

    c.showPage()
    c.save()
    return buf.getvalue()
