"""PDF rendering for the administrative reports.

The report rows arrive already computed; this module only lays them out.
Every text value goes through ``_text`` before it is placed in a Paragraph,
so names like "O'Neil <temp>" cannot break the markup.
"""
import io
import os
from datetime import date, datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

REPORT_FONT = 'ReportFont'

PATIENT_DIAGNOSIS_LIMIT = 40
DIAGNOSIS_REPORT_LIMIT = 80


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit - 3] + '...'
    return text


def _text(value) -> str:
    if value is None:
        return ''
    return escape(str(value))


def _font_names(font_path: str | None):
    """Register a TTF for Cyrillic text when configured, else use Helvetica."""
    if font_path and os.path.exists(font_path):
        if REPORT_FONT not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(REPORT_FONT, font_path))
        return REPORT_FONT, REPORT_FONT
    return 'Helvetica', 'Helvetica-Bold'


def _styles(font: str, bold: str):
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name='ReportTitle', fontSize=16, spaceAfter=12, alignment=1, fontName=bold))
    styles.add(ParagraphStyle(name='ReportMeta', fontSize=10, spaceAfter=4, fontName=font))
    styles.add(ParagraphStyle(name='Cell', fontSize=8, leading=10, fontName=font))
    styles.add(ParagraphStyle(name='HeadCell', fontSize=8, leading=10, fontName=bold, textColor=colors.white))
    return styles


def _build(title: str, meta_lines: list[str], header: list[str], rows: list[list], col_widths: list[float],
           font_path: str | None = None, row_colors: list | None = None, pagesize=A4) -> io.BytesIO:
    font, bold = _font_names(font_path)
    styles = _styles(font, bold)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=pagesize, rightMargin=1.5*cm, leftMargin=1.5*cm,
                            topMargin=1.5*cm, bottomMargin=1.5*cm, title=title)

    elements = [Paragraph(_text(title), styles['ReportTitle'])]
    elements.append(Paragraph(_text(f'Generated: {datetime.now():%d.%m.%Y %H:%M}'), styles['ReportMeta']))
    for line in meta_lines:
        elements.append(Paragraph(_text(line), styles['ReportMeta']))
    elements.append(Spacer(1, 0.4*cm))

    data = [[Paragraph(_text(h), styles['HeadCell']) for h in header]]
    for row in rows:
        data.append([Paragraph(_text(cell), styles['Cell']) for cell in row])

    table = Table(data, colWidths=col_widths, repeatRows=1)
    table_style = [
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1565C0')),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]
    for index, color in enumerate(row_colors or [], start=1):
        table_style.append(('BACKGROUND', (-1, index), (-1, index), colors.HexColor(color)))
    table.setStyle(TableStyle(table_style))
    elements.append(table)

    if not rows:
        elements.append(Spacer(1, 0.3*cm))
        elements.append(Paragraph('No data', styles['ReportMeta']))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def current_patients_pdf(rows: list[dict], statistics: dict, font_path: str | None = None) -> io.BytesIO:
    header = ['Card', 'Full name', 'Age', 'Diagnosis', 'Ward', 'Admitted', 'Days']
    body = [
        [
            r['card_number'],
            r['full_name'],
            r['age'],
            truncate(r['diagnosis'], PATIENT_DIAGNOSIS_LIMIT),
            r['ward_number'],
            _display_date(r['admission_date']),
            r['days_in_hospital'],
        ]
        for r in rows
    ]
    meta = [
        f"Current patients: {statistics['current_patients']}",
        f"Beds occupied: {statistics['occupied_beds']} of {statistics['total_beds']} "
        f"({statistics['occupancy_rate']:.1f}%)",
    ]
    widths = [2.4*cm, 4.2*cm, 1.2*cm, 4.6*cm, 1.6*cm, 2.2*cm, 1.4*cm]
    return _build('Current patients', meta, header, body, widths, font_path)


def ward_occupancy_pdf(rows: list[dict], font_path: str | None = None) -> io.BytesIO:
    header = ['Department', 'Ward', 'Beds', 'Occupied', 'Free', 'Occupancy', 'Status']
    body = [
        [
            r['department'],
            r['ward_number'],
            r['total_beds'],
            r['occupied_beds'],
            r['available_beds'],
            f"{r['occupancy_rate']:.1f}%",
            r['status'],
        ]
        for r in rows
    ]
    widths = [5*cm, 2*cm, 1.8*cm, 2*cm, 1.6*cm, 2.2*cm, 3*cm]
    legend = ['Full: no free beds; Almost full: 80% and above; Half full: 50% and above']
    return _build('Ward occupancy', legend, header, body, widths, font_path,
                  row_colors=[r['status_color'] for r in rows])


def diagnosis_statistics_pdf(rows: list[dict], date_from: date | None = None, date_to: date | None = None,
                             font_path: str | None = None) -> io.BytesIO:
    header = ['Diagnosis', 'Patients', 'Average stay']
    body = [
        [truncate(r['diagnosis'], DIAGNOSIS_REPORT_LIMIT), r['patient_count'], f"{r['average_duration']} d."]
        for r in rows
    ]
    meta = []
    period = period_label(date_from, date_to)
    if period:
        meta.append(period)
    widths = [11*cm, 2.5*cm, 3*cm]
    return _build('Diagnosis statistics', meta, header, body, widths, font_path)


def period_label(date_from: date | None, date_to: date | None) -> str | None:
    if date_from and date_to:
        return f'Period: {date_from:%d.%m.%Y} - {date_to:%d.%m.%Y}'
    if date_from:
        return f'Period: from {date_from:%d.%m.%Y}'
    if date_to:
        return f'Period: until {date_to:%d.%m.%Y}'
    return None


def _display_date(value) -> str:
    if isinstance(value, (date, datetime)):
        return f'{value:%d.%m.%Y}'
    return str(value or '')
