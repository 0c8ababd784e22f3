from __future__ import annotations

import io

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from .db import now_iso


def build_reports_pdf(reports: list[dict]) -> bytes:
    """One boxed entry per report, newest first, paginated on letter paper."""
    buff = io.BytesIO()
    pdf = canvas.Canvas(buff, pagesize=letter)
    width, height = letter

    y = height - 40
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(40, y, "CaminoSeguro Incident Reports Summary")
    y -= 18
    pdf.setFont("Helvetica", 10)
    pdf.drawString(40, y, f"Generated: {now_iso()}  |  Reports: {len(reports)}")
    y -= 20

    for r in reports:
        if y < 100:
            pdf.showPage()
            y = height - 40

        pdf.setStrokeColor(colors.darkblue)
        pdf.rect(35, y - 70, width - 70, 65, stroke=1, fill=0)
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(45, y - 15, f"{r['incident_type']} | {r['severity']} | {r['status']}")
        pdf.setFont("Helvetica", 9)
        pdf.drawString(45, y - 30, f"Reporter: {r.get('reporter_name') or 'Anonymous'}  |  Views: {r['views_count']}")
        pdf.drawString(45, y - 43, f"Location: {r['latitude']}, {r['longitude']}  {r.get('address') or ''}")
        pdf.drawString(45, y - 56, f"Created: {r['created_at']}  |  Ref: {r['uuid']}")

        y -= 80

    pdf.save()
    buff.seek(0)
    return buff.read()
