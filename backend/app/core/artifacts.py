# backend/app/core/artifacts.py

from typing import List
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, ListFlowable, Table, TableStyle
from reportlab.lib import colors
import datetime

from backend.app.models.batch_models import BatchReport, MatchResult, MatchStatus

STATUS_COLORS = {
    MatchStatus.APPROVED: colors.HexColor("#198038"),
    MatchStatus.NEEDS_IMPROVEMENT: colors.HexColor("#b28600"),
    MatchStatus.NOT_A_MATCH: colors.HexColor("#da1e28"),
    MatchStatus.ERROR: colors.grey,
}


def generated_stamp() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def markdown_for_batch(report: BatchReport) -> str:
    """Ranked batch report as Markdown."""
    title = report.job_title or report.job_id or "Job"
    md = f"# Resume Screening Report: {title}\n\n_Generated: {generated_stamp()}_\n\n"
    md += f"**Batch:** `{report.batch_id}`  \n"
    md += f"**Resumes processed:** {report.total_processed}  \n"
    avg = "N/A" if report.average_score is None else f"{report.average_score:g}%"
    md += f"**Average score:** {avg}\n\n"

    md += "## Ranking\n\n| # | File | Score | Status |\n|---|------|-------|--------|\n"
    for rank, r in enumerate(report.results, start=1):
        md += f"| {rank} | {r.file_name} | {r.match_score}% | {r.status.value} |\n"

    for rank, r in enumerate(report.results, start=1):
        md += f"\n## {rank}. {r.file_name} ({r.match_score}%, {r.status.value})\n\n"
        if r.score_rationale:
            md += f"{r.score_rationale}\n\n"
        md += "**Matching skills:** " + (", ".join(r.matching_skills) or "_None_") + "\n\n"
        md += "**Missing skills:** " + (", ".join(r.missing_skills) or "_None_") + "\n\n"
        if r.implied_skills:
            md += f"**Implied skills:** {r.implied_skills}\n\n"
        if r.recommendations:
            md += "**Recommendations:**\n" + "\n".join(f"- {x}" for x in r.recommendations) + "\n"
    return md


class ReportRenderer:
    """Render a completed batch as a ranked PDF report using ReportLab."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            name="TitleCentered",
            parent=styles["Title"],
            alignment=TA_CENTER,
            spaceAfter=12,
        )
        self.h2 = styles["Heading2"]
        self.h3 = styles["Heading3"]
        self.body = styles["BodyText"]

    def build_batch_pdf(self, path: str, report: BatchReport) -> None:
        doc = SimpleDocTemplate(
            path, pagesize=A4,
            topMargin=2 * cm, bottomMargin=2 * cm,
            leftMargin=2 * cm, rightMargin=2 * cm
        )
        title = report.job_title or report.job_id or "Job"
        flow: List = self._header(f"Resume Screening Report: {title}")

        avg = "N/A" if report.average_score is None else f"{report.average_score:g}%"
        flow.append(Paragraph(
            f"Resumes processed: <b>{report.total_processed}</b> &nbsp;&nbsp; Average score: <b>{avg}</b>",
            self.body,
        ))
        flow.append(Spacer(1, 0.4 * cm))

        flow.append(Paragraph("Ranking", self.h2))
        flow.append(self._ranking_table(report.results))

        for rank, result in enumerate(report.results, start=1):
            flow += self._candidate_section(rank, result)

        doc.build(flow)

    # ---------- Section Builders ----------
    def _header(self, title: str) -> List:
        return [
            Paragraph(self._escape_html(title), self.title_style),
            Paragraph(f"<font size=9 color=grey>Generated: {generated_stamp()}</font>", self.body),
            Spacer(1, 0.5 * cm),
        ]

    def _ranking_table(self, results: List[MatchResult]) -> Table:
        rows = [["#", "File", "Score", "Status"]]
        for rank, r in enumerate(results, start=1):
            rows.append([str(rank), Paragraph(self._escape_html(r.file_name), self.body),
                         f"{r.match_score}%", r.status.value])
        table = Table(rows, colWidths=[1 * cm, 9 * cm, 2 * cm, 4 * cm], repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0f62fe")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for row, r in enumerate(results, start=1):
            style.append(("TEXTCOLOR", (3, row), (3, row), STATUS_COLORS[r.status]))
        table.setStyle(TableStyle(style))
        return table

    def _candidate_section(self, rank: int, r: MatchResult) -> List:
        flow: List = [
            Spacer(1, 0.4 * cm),
            Paragraph(self._escape_html(f"{rank}. {r.file_name} ({r.match_score}%, {r.status.value})"), self.h3),
        ]
        if r.score_rationale:
            flow.append(Paragraph(self._escape_html(r.score_rationale), self.body))
        flow.append(Paragraph("<b>Matching skills</b>", self.body))
        flow += self._bullet_list(r.matching_skills)
        flow.append(Paragraph("<b>Missing skills</b>", self.body))
        flow += self._bullet_list(r.missing_skills)
        if r.implied_skills:
            flow.append(Paragraph("<b>Implied skills</b>", self.body))
            flow.append(Paragraph(self._escape_html(r.implied_skills), self.body))
        flow.append(Paragraph("<b>Recommendations</b>", self.body))
        flow += self._bullet_list(r.recommendations)
        return flow

    def _bullet_list(self, items: List[str]) -> List:
        if not items:
            return [Paragraph("<i>None</i>", self.body)]
        paras = [Paragraph(self._escape_html(x), self.body) for x in items]
        return [ListFlowable(
            paras,
            bulletType="bullet",
            leftIndent=10,
            bulletColor=colors.black,
        )]

    @staticmethod
    def _escape_html(text: str) -> str:
        """Minimal XML/HTML escaping for ReportLab Paragraph."""
        return (
            text.replace("&", "&amp;")
                .replace("<", "&lt;")
                .replace(">", "&gt;")
        )
