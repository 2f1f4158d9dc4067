"""Receipts for committed sales.

``render_receipt`` is pure: it turns a sale into a ``ReceiptDocument``.
``generate_pdf_receipt`` lays that document out on 80 mm thermal paper and
``save_receipt`` writes it next to the other receipts.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Iterable
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import HRFlowable

from app.trimtime.schemas.catalog import Customer, Staff
from app.trimtime.schemas.sales import Sale
from app.trimtime.schemas.settings import ShopSettings

RECEIPT_WIDTH = 80 * mm
RECEIPT_HEIGHT = 200 * mm
RECEIPT_MARGIN = 5 * mm
ITEM_NAME_WIDTH = 25
TEXT_WIDTH = 42

GUEST_NAME = "Guest Walk-in"
THANK_YOU = "Thank you for your visit!"


def money(currency: str, amount: Decimal) -> str:
    return f"{currency}{amount:.2f}"


def _format_rate(rate: Decimal) -> str:
    return f"{rate.normalize():f}"


@dataclass(frozen=True)
class ReceiptItem:
    name: str
    quantity: int
    amount: str


@dataclass(frozen=True)
class ReceiptDocument:
    sale_id: str
    shop_name: str
    header: tuple[str, ...]
    items: tuple[ReceiptItem, ...]
    totals: tuple[tuple[str, str], ...]
    notes: tuple[str, ...] = ()
    footer: tuple[str, ...] = field(default_factory=tuple)

    @property
    def filename(self) -> str:
        return f"Receipt-{self.sale_id}.pdf"

    def lines(self, width: int = TEXT_WIDTH) -> list[str]:
        """Plain fixed-width rendering, for printers that take text."""
        rule = "-" * width
        out = ["OFFICIAL RECEIPT".center(width), self.shop_name.upper().center(width), rule]
        out.extend(self.header)
        out.append(rule)
        out.append(f"{'DESCRIPTION':<{ITEM_NAME_WIDTH}} {'QTY':>4} {'AMOUNT':>{width - ITEM_NAME_WIDTH - 6}}")
        for item in self.items:
            out.append(f"{item.name:<{ITEM_NAME_WIDTH}} {item.quantity:>4} {item.amount:>{width - ITEM_NAME_WIDTH - 6}}")
        out.append(rule)
        for label, value in self.totals:
            out.append(f"{label}{value:>{width - len(label)}}")
        out.extend(self.notes)
        out.append(rule)
        out.extend(line.center(width) for line in self.footer)
        return out

    def text(self, width: int = TEXT_WIDTH) -> str:
        return "\n".join(self.lines(width))


def render_receipt(
    sale: Sale,
    shop: ShopSettings,
    staff: Iterable[Staff] = (),
    customers: Iterable[Customer] = (),
) -> ReceiptDocument:
    currency = shop.currency
    barber = next((s.name for s in staff if s.id == sale.staff_id), "N/A")
    client = next((c.name for c in customers if c.id == sale.customer_id), GUEST_NAME)

    header = (
        f"Transaction ID: #{sale.id}",
        f"Date & Time: {sale.created_at:%Y-%m-%d %H:%M}",
        f"Professional: {barber}",
        f"Client: {client}",
    )
    items = tuple(
        ReceiptItem(
            name=line.name[:ITEM_NAME_WIDTH],
            quantity=line.quantity,
            amount=money(currency, line.line_total),
        )
        for line in sale.lines
    )

    totals: list[tuple[str, str]] = [("SUBTOTAL:", money(currency, sale.subtotal))]
    notes: list[str] = []
    if sale.discount > 0:
        totals.append((f"DISCOUNT ({sale.discount_code or 'Applied'}):", f"-{money(currency, sale.discount)}"))
    rate = _format_rate(shop.tax_rate)
    if sale.tax_mode == "excluded":
        totals.append((f"TAX ({rate}%):", money(currency, sale.tax)))
    else:
        notes.append(f"Includes {rate}% tax of {money(currency, sale.tax)}")
    totals.append(("TOTAL PAID:", money(currency, sale.total)))

    footer = tuple(line for line in (shop.receipt_footer, THANK_YOU) if line)
    return ReceiptDocument(
        sale_id=sale.id,
        shop_name=shop.shop_name,
        header=header,
        items=items,
        totals=tuple(totals),
        notes=tuple(notes),
        footer=footer,
    )


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "banner": ParagraphStyle(
            "Banner", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=10, alignment=1,
            textColor=colors.HexColor("#f59e0b"), backColor=colors.HexColor("#0f172a"),
        ),
        "shop": ParagraphStyle("Shop", parent=base["Heading1"], fontSize=16, alignment=1, spaceAfter=2),
        "meta": ParagraphStyle(
            "Meta", parent=base["Normal"], fontSize=7, leading=9, textColor=colors.HexColor("#64748b")
        ),
        "note": ParagraphStyle(
            "Note", parent=base["Normal"], fontSize=6, textColor=colors.HexColor("#94a3b8")
        ),
        "footer": ParagraphStyle(
            "Footer", parent=base["Normal"], fontName="Helvetica-Oblique", fontSize=7, alignment=1,
            textColor=colors.HexColor("#94a3b8"),
        ),
    }


def generate_pdf_receipt(document: ReceiptDocument) -> bytes:
    styles = _styles()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=(RECEIPT_WIDTH, RECEIPT_HEIGHT),
        rightMargin=RECEIPT_MARGIN,
        leftMargin=RECEIPT_MARGIN,
        topMargin=RECEIPT_MARGIN,
        bottomMargin=RECEIPT_MARGIN,
        title=f"{document.shop_name} Receipt",
    )
    story = [
        Paragraph("OFFICIAL RECEIPT", styles["banner"]),
        Spacer(1, 4 * mm),
        Paragraph(escape(document.shop_name.upper()), styles["shop"]),
        HRFlowable(width="100%", thickness=0.3, color=colors.HexColor("#e2e8f0")),
    ]
    story.extend(Paragraph(escape(line), styles["meta"]) for line in document.header)
    story.append(HRFlowable(width="100%", thickness=0.3, color=colors.HexColor("#e2e8f0")))

    rows = [["DESCRIPTION", "QTY", "AMOUNT"]]
    rows.extend([item.name, str(item.quantity), item.amount] for item in document.items)
    items = Table(rows, colWidths=[44 * mm, 10 * mm, 16 * mm])
    items.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 8),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 1), (-1, -1), 7),
                ("ALIGN", (1, 0), (1, -1), "CENTER"),
                ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                ("LINEBELOW", (0, 0), (-1, 0), 0.3, colors.HexColor("#e2e8f0")),
                ("LINEBELOW", (0, -1), (-1, -1), 0.3, colors.HexColor("#0f172a")),
            ]
        )
    )
    story.append(items)

    totals = Table([list(row) for row in document.totals], colWidths=[45 * mm, 25 * mm])
    totals.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, -2), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -2), 7),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, -1), (-1, -1), 10),
                ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#f8fafc")),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ]
        )
    )
    story.append(totals)
    story.extend(Paragraph(escape(note), styles["note"]) for note in document.notes)
    story.append(Spacer(1, 4 * mm))
    story.extend(Paragraph(escape(line), styles["footer"]) for line in document.footer)

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes


def save_receipt(document: ReceiptDocument, directory: str | Path = ".") -> Path:
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / document.filename
    path.write_bytes(generate_pdf_receipt(document))
    return path
