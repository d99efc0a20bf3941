from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .periods import as_utc, format_reset_stamp

LOGGER = logging.getLogger(__name__)

PDF_FONT_FAMILY = "Helvetica"


def _format_hours(value: Any) -> str:
    try:
        return f"{float(value):.2f} h"
    except (TypeError, ValueError):
        return "N/A"


def _format_km(value: Any) -> str:
    try:
        return f"{int(value)} km"
    except (TypeError, ValueError):
        return "N/A"


def _line(pdf: FPDF, width: float, height: float, text: str) -> None:
    pdf.cell(width, height, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_period_summary_pdf(summary: Any, owner: str | None = None, generated_at: datetime | None = None) -> bytes:
    """Render a one-page PDF of an archived period for invoicing."""

    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    effective_width = pdf.w - pdf.l_margin - pdf.r_margin

    pdf.set_font(PDF_FONT_FAMILY, "B", 16)
    _line(pdf, effective_width, 10, "Work Period Summary")

    stamp = as_utc(generated_at) or datetime.now(timezone.utc)
    pdf.set_font(PDF_FONT_FAMILY, size=10)
    _line(pdf, effective_width, 5, f"Generated: {format_reset_stamp(stamp)} UTC")
    if owner:
        _line(pdf, effective_width, 5, f"Prepared for: {owner}")
    pdf.ln(4)

    label_width = effective_width * 0.4
    rows = [
        ("Period start", summary.start_date),
        ("Period end", summary.end_date),
        ("Closed on", summary.reset_date),
        ("Total hours", _format_hours(summary.total_hours)),
        ("Total kilometers", _format_km(summary.total_kilometers)),
    ]
    for label, value in rows:
        pdf.set_font(PDF_FONT_FAMILY, "B", 11)
        pdf.cell(label_width, 7, label, border=1)
        pdf.set_font(PDF_FONT_FAMILY, "", 11)
        pdf.cell(effective_width - label_width, 7, str(value), border=1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.ln(4)
    pdf.set_font(PDF_FONT_FAMILY, "I", 9)
    _line(pdf, effective_width, 5, f"Summary reference: {summary.id}")

    LOGGER.info("period summary %s rendered to PDF", summary.id)
    output = pdf.output()
    if isinstance(output, str):
        return output.encode("latin1")
    return bytes(output)
