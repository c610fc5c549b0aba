"""
Team performance exports: ledger spreadsheet (Excel) and coaching letters (PDF).
"""
from io import BytesIO
from xml.sax.saxutils import escape

from django.utils import timezone

from core.utils import humanize

LEDGER_HEADERS = [
    "Date", "Team Member", "Tier", "Type", "Entry", "Points", "Running Balance", "Notes",
]
COACHING_CHECKLIST = (
    ('conversation_scheduled', 'Conversation scheduled'),
    ('barriers_discussed', 'Barriers discussed'),
    ('resources_identified', 'Resources identified'),
    ('strategy_developed', 'Strategy developed'),
)
STAGE_TITLES = {
    1: 'Stage 1: Informal Conversation',
    2: 'Stage 2: Documented Conversation',
    3: 'Stage 3: Written Warning',
    4: 'Stage 4: Final Written Warning',
    5: 'Stage 5: Employment Review',
}


def export_ledger_excel(rows, title="Points Ledger"):
    import openpyxl
    from openpyxl.styles import Font, PatternFill

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(LEDGER_HEADERS)
    for h in range(1, len(LEDGER_HEADERS) + 1):
        cell = ws.cell(row=1, column=h)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="4472C4")
    for r in rows:
        ws.append([
            r["event_date"].isoformat(),
            r["team_member_name"],
            r["tier"],
            humanize(r["entry_type"]),
            r["label"],
            r["points"],
            r.get("running_balance"),
            r["notes"],
        ])
    for column, width in zip("ABCDEFGH", (12, 24, 6, 12, 30, 8, 16, 48)):
        ws.column_dimensions[column].width = width
    ws.freeze_panes = "A2"

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def coaching_letter_pdf(record, organization_name=""):
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import LETTER
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import inch
    from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

    member = record.team_member
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=LETTER, rightMargin=inch, leftMargin=inch, topMargin=inch, bottomMargin=inch)
    styles = getSampleStyleSheet()
    story = []
    if organization_name:
        story.append(Paragraph(organization_name, styles["Heading3"]))
    story.append(Paragraph(f"<b>Attendance Coaching: {STAGE_TITLES.get(record.stage, f'Stage {record.stage}')}</b>",
                           styles["Title"]))
    story.append(Spacer(1, 12))

    triggered = timezone.localtime(record.triggered_at).date() if record.triggered_at else None
    summary = [
        ["Team Member", member.full_name],
        ["Date", timezone.localdate().isoformat()],
        ["Stage", str(record.stage)],
        ["Points at Trigger", str(record.triggered_points)],
        ["Triggered On", triggered.isoformat() if triggered else ""],
        ["Conversation Date", record.conversation_date.isoformat() if record.conversation_date else "Not scheduled"],
    ]
    t = Table(summary, colWidths=[2 * inch, 4 * inch])
    t.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#EEF2F8")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    story.append(t)
    story.append(Spacer(1, 16))

    story.append(Paragraph("<b>Coaching Checklist</b>", styles["Heading4"]))
    checklist = [["[x]" if getattr(record, field) else "[ ]", label] for field, label in COACHING_CHECKLIST]
    story.append(Table(checklist, colWidths=[0.5 * inch, 5.5 * inch]))
    story.append(Spacer(1, 16))

    story.append(Paragraph("<b>Notes</b>", styles["Heading4"]))
    story.append(Paragraph(escape(record.notes or "No notes recorded."), styles["Normal"]))
    story.append(Spacer(1, 36))

    signatures = [["Team Member Signature", "Date"], ["", ""], ["Manager Signature", "Date"], ["", ""]]
    s = Table(signatures, colWidths=[4 * inch, 2 * inch], rowHeights=[14, 28, 14, 28])
    s.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("LINEBELOW", (0, 1), (-1, 1), 0.5, colors.black),
        ("LINEBELOW", (0, 3), (-1, 3), 0.5, colors.black),
    ]))
    story.append(s)

    doc.build(story)
    buf.seek(0)
    return buf.getvalue()
