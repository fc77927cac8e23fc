"""
Savings Tracker - Excel Report Generation Module.

This module exports savings reports to Excel. The workbook opens on a
Savings Summary tab (totals and the rolling savings history) followed by
a Plan Details tab with one row per plan.

Formatting:
    - Peso currency formatting (₱#,##0.00)
    - Penalty debt and negative savings highlighted

Classes:
    ExcelReporter: Generates Excel workbooks from portfolio reports.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from savings_tracker import __version__
from savings_tracker.schema import PlanReport, PortfolioReport


class ExcelReporter:
    """
    Generates Excel reports for savings plans.

    Attributes:
        PHP_FORMAT: Excel number format for peso amounts.
        PERCENTAGE_FORMAT: Excel number format for percentages.

    Example:
        >>> reporter = ExcelReporter()
        >>> reporter.generate_report(portfolio, "savings_report.xlsx")
    """

    # Excel number formats
    PHP_FORMAT = '"₱"#,##0.00'
    PERCENTAGE_FORMAT = '0.00%'
    DATE_FORMAT = 'yyyy-mm-dd'

    # Conditional formatting colours
    DEBT_FILL = PatternFill(
        start_color="FFC7CE",
        end_color="FFC7CE",
        fill_type="solid"
    )
    COMPLETE_FILL = PatternFill(
        start_color="C6EFCE",
        end_color="C6EFCE",
        fill_type="solid"
    )

    # Header styling
    HEADER_FONT = Font(bold=True, color="FFFFFF")
    HEADER_FILL = PatternFill(
        start_color="2E7D32",
        end_color="2E7D32",
        fill_type="solid"
    )
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

    # Border styling
    THIN_BORDER = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin")
    )

    DETAIL_HEADERS = [
        "Plan",
        "Goal",
        "Total Saved",
        "Total Spent",
        "Penalty Debt",
        "Progress %",
        "Days Left",
        "Business Days Left",
        "Today's Target",
        "Projected Completion",
    ]

    def generate_report(
        self,
        portfolio: PortfolioReport,
        output_path: Union[str, Path]
    ) -> None:
        """
        Generates a complete Excel report from a portfolio report.

        Creates a workbook with two sheets:
        1. Savings Summary - Totals and savings history
        2. Plan Details - One row per plan

        Args:
            portfolio: Portfolio report to export.
            output_path: Path for the output .xlsx file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        workbook = Workbook()
        workbook.remove(workbook.active)

        self._create_summary_sheet(workbook, portfolio)
        self._create_detail_sheet(workbook, portfolio)

        workbook.save(output_path)

    def _create_summary_sheet(
        self,
        workbook: Workbook,
        portfolio: PortfolioReport
    ) -> None:
        """
        Creates the Savings Summary sheet.

        Args:
            workbook: Target workbook.
            portfolio: Report data.
        """
        ws = workbook.create_sheet("Savings Summary")

        ws["A1"] = "Savings Tracker - Savings Summary"
        ws["A1"].font = Font(bold=True, size=16)
        ws.merge_cells("A1:C1")

        ws["A3"] = "Report Generated:"
        ws["B3"] = datetime.now().strftime("%Y-%m-%d %H:%M")
        ws["A4"] = "Report Date:"
        ws["B4"] = portfolio.generated_on.isoformat()
        ws["A5"] = "Version:"
        ws["B5"] = __version__

        metrics = [
            ("Total Savings", portfolio.total_savings),
            ("Total Spent", sum(p.total_spent for p in portfolio.plans)),
            ("Total Penalty Debt", sum(p.penalty_debt for p in portfolio.plans)),
        ]

        row = 7
        for label, value in metrics:
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = float(value)
            ws[f"B{row}"].number_format = self.PHP_FORMAT
            row += 1

        ws[f"A{row}"] = "Plans:"
        ws[f"A{row}"].font = Font(bold=True)
        ws[f"B{row}"] = len(portfolio.plans)

        row += 2
        ws[f"A{row}"] = "SAVINGS HISTORY"
        ws[f"A{row}"].font = Font(bold=True, size=14)

        row += 1
        self._write_header(ws, row, ["Date", "Savings"])
        for entry in portfolio.history:
            row += 1
            date_cell = ws.cell(row=row, column=1, value=entry.date)
            date_cell.number_format = self.DATE_FORMAT
            date_cell.border = self.THIN_BORDER
            amount_cell = ws.cell(row=row, column=2, value=float(entry.savings))
            amount_cell.number_format = self.PHP_FORMAT
            amount_cell.border = self.THIN_BORDER

        self._auto_adjust_columns(ws)

    def _create_detail_sheet(
        self,
        workbook: Workbook,
        portfolio: PortfolioReport
    ) -> None:
        """
        Creates the Plan Details sheet with per-plan data.

        Args:
            workbook: Target workbook.
            portfolio: Report data.
        """
        ws = workbook.create_sheet("Plan Details")
        self._write_header(ws, 1, self.DETAIL_HEADERS)

        for row_idx, report in enumerate(portfolio.plans, start=2):
            row_data = [
                report.name,
                float(report.goal),
                float(report.total_saved),
                float(report.total_spent),
                float(report.penalty_debt),
                float(report.progress_percentage) / 100,
                report.calendar_days_left,
                report.qualifying_days_left,
                None if report.todays_target is None else float(report.todays_target),
                report.projection,
            ]

            for col_idx, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.THIN_BORDER

                if col_idx in [2, 3, 4, 5, 9]:  # Currency columns
                    cell.number_format = self.PHP_FORMAT
                elif col_idx == 6:
                    cell.number_format = self.PERCENTAGE_FORMAT
                elif col_idx == 10 and isinstance(value, date):
                    cell.number_format = self.DATE_FORMAT

            fill = self._get_plan_fill(report)
            if fill:
                for col_idx in range(1, len(self.DETAIL_HEADERS) + 1):
                    ws.cell(row=row_idx, column=col_idx).fill = fill

        self._auto_adjust_columns(ws)

    def _write_header(self, worksheet: Worksheet, row: int, headers) -> None:
        for col, header in enumerate(headers, start=1):
            cell = worksheet.cell(row=row, column=col, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.THIN_BORDER

    def _get_plan_fill(self, report: PlanReport) -> Optional[PatternFill]:
        """
        Returns the fill colour for a plan row.

        Args:
            report: Plan report.

        Returns:
            DEBT_FILL for plans with penalty debt or negative savings,
            COMPLETE_FILL for reached goals, otherwise None.
        """
        if report.penalty_debt > 0 or report.total_saved < 0:
            return self.DEBT_FILL
        if report.goal > 0 and report.total_saved >= report.goal:
            return self.COMPLETE_FILL
        return None

    def _auto_adjust_columns(self, worksheet: Worksheet) -> None:
        """
        Auto-adjusts column widths based on content.

        Args:
            worksheet: Target worksheet.
        """
        for col_idx in range(1, worksheet.max_column + 1):
            column_letter = get_column_letter(col_idx)
            max_length = 0

            for row_idx in range(1, worksheet.max_row + 1):
                value = worksheet.cell(row=row_idx, column=col_idx).value
                if value is not None:
                    max_length = max(max_length, len(str(value)))

            worksheet.column_dimensions[column_letter].width = max(max_length + 2, 10)

    def generate_filename(self, prefix: str = "savings_report") -> str:
        """
        Generates a timestamped filename for reports.

        Args:
            prefix: Filename prefix. Defaults to "savings_report".

        Returns:
            Filename like "savings_report_2024-12-18_143052.xlsx".
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        return f"{prefix}_{timestamp}.xlsx"
