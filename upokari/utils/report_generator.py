"""
Excel export of the institute leaderboard.

Generates an XLSX file with one sheet per grade band:
  Lower Band — ranked institutes of grades 3-5
  Upper Band — ranked institutes of the remaining grades
Each sheet carries a bar chart of the top institutes' final scores.
"""

import io
from typing import Any, Dict

from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from upokari.utils.logger import get_logger

log = get_logger(__name__)

# ---------------------------------------------------------------------------
# Style constants
# ---------------------------------------------------------------------------
_HEADER_FONT = Font(bold=True, color="FFFFFF", size=12)
_HEADER_FILL = PatternFill("solid", fgColor="2F5496")
_UNQUALIFIED_FILL = PatternFill("solid", fgColor="D9D9D9")
_CENTER = Alignment(horizontal="center", vertical="center")

_CHART_TOP_N = 10

_COLUMNS = (
    ("Rank", "rank"),
    ("Institute", "institute"),
    ("Applications", "applicationCount"),
    ("Present", "presentCount"),
    ("Results Added", "resultAddedCount"),
    ("Passed", "passCount"),
    ("High Marks", "got70Count"),
    ("Average Marks", "averageMarks"),
    ("Attendance (%)", "attendanceRate"),
    ("High Score (%)", "highScoreRate"),
    ("Final Score", "finalScore"),
    ("Qualified", "qualified"),
)


def _style_header_row(ws, col_count: int) -> None:
    """Apply header styling to the first row of *ws*."""
    for col in range(1, col_count + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _CENTER


def _auto_width(ws) -> None:
    """Set each column width to fit the widest cell (max 50 chars)."""
    for col_cells in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col_cells)
        col_letter = get_column_letter(col_cells[0].column)
        ws.column_dimensions[col_letter].width = min(max_len + 4, 50)


def _write_band_sheet(ws, title: str, band_report: Dict[str, Any]) -> None:
    ws.title = title
    ws.append([label for label, _ in _COLUMNS])
    _style_header_row(ws, len(_COLUMNS))

    institutes = band_report.get("institutes", [])
    for entry in institutes:
        ws.append([
            ("yes" if entry.get(key) else "no") if key == "qualified" else entry.get(key)
            for _, key in _COLUMNS
        ])
        if not entry.get("qualified"):
            for cell in ws[ws.max_row]:
                cell.fill = _UNQUALIFIED_FILL

    summary_row = ws.max_row + 2
    ws.cell(row=summary_row, column=1, value="Total Applications")
    ws.cell(row=summary_row, column=2, value=band_report.get("totalApplications", 0))
    ws.cell(row=summary_row + 1, column=1, value="Institutions")
    ws.cell(row=summary_row + 1, column=2, value=band_report.get("totalNumberOfInstitutions", 0))

    if institutes:
        last_row = 1 + min(len(institutes), _CHART_TOP_N)
        chart = BarChart()
        chart.type = "bar"
        chart.title = f"{title} — Top Final Scores"
        chart.x_axis.title = "Institute"
        chart.y_axis.title = "Final Score"
        score_col = [key for _, key in _COLUMNS].index("finalScore") + 1
        cats = Reference(ws, min_col=2, min_row=2, max_row=last_row)
        data = Reference(ws, min_col=score_col, min_row=1, max_row=last_row)
        chart.add_data(data, titles_from_data=True)
        chart.set_categories(cats)
        ws.add_chart(chart, f"{get_column_letter(len(_COLUMNS) + 2)}2")

    _auto_width(ws)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_institute_workbook(report: Dict[str, Any]) -> io.BytesIO:
    """
    Build the leaderboard workbook.

    Args:
        report: Output of ``build_institute_wise_report``.

    Returns:
        :class:`io.BytesIO` containing the XLSX data.
    """
    wb = Workbook()
    _write_band_sheet(wb.active, "Lower Band", report.get("lowerBand", {}))
    _write_band_sheet(wb.create_sheet(), "Upper Band", report.get("upperBand", {}))

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    log.info(
        "Generated institute workbook (%d lower, %d upper)",
        report.get("lowerBand", {}).get("totalNumberOfInstitutions", 0),
        report.get("upperBand", {}).get("totalNumberOfInstitutions", 0),
    )
    return output
