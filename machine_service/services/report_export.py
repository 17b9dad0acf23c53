"""Excel service report built from machine journeys.

Produces a workbook with ``Summary``, ``Detailed Records`` and
``Task Completion`` sheets, plus an optional ``Machine Journey`` sheet that
walks each machine through its stations in order.
"""

import io
import logging
from collections.abc import Sequence
from datetime import datetime

import pandas as pd
from openpyxl.utils import get_column_letter

from machine_service.core.workstations import WORKSTATION_COUNT
from machine_service.schemas.journey import MachineJourney

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUMMARY_COLUMNS = [
    "Barcode ID",
    "Start Time",
    "End Time",
    "Total Duration",
    "Total Wait Time",
    "Completed Workstations",
    "Progress",
    "Current Workstation",
    "Status",
]
DETAILED_COLUMNS = [
    "Barcode ID",
    "Workstation",
    "Operator Name",
    "Operator EPF",
    "Check-in Time",
    "Check-out Time",
    "Duration",
    "Processing Time (mins)",
    "Wait Time",
    "Tasks Completed",
    "Total Tasks",
    "Completion Rate",
]
TASK_COLUMNS = ["Barcode ID", "Workstation", "Operator", "Task ID", "Completed On", "Note"]
JOURNEY_COLUMNS = [
    "Barcode ID",
    "Journey Step",
    "Date",
    "Check-in Time",
    "Check-out Time",
    "Duration",
    "Operator",
    "Tasks Done",
    "Status",
]

# Barcode, timestamps, other fields, durations, workstations, operators
COLUMN_WIDTHS = [15, 20, 20, 15, 15, 15]

IN_PROGRESS = "In progress"


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(start: datetime, end: datetime | None) -> str:
    """Render an interval as ``Hh Mm Ss``."""
    if end is None:
        return IN_PROGRESS
    total_seconds = int((end - start).total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h {minutes}m {seconds}s"


def format_wait_time(wait_ms: int | None) -> str:
    if wait_ms is None:
        return "No wait"
    return f"{wait_ms // 60000} minutes"


def _minutes_between(start: datetime, end: datetime) -> int:
    return _round_half_up((end - start).total_seconds() / 60)


def build_summary_rows(journeys: Sequence[MachineJourney]) -> list[dict]:
    rows = []
    for journey in journeys:
        total_wait = sum(r.wait_time or 0 for r in journey.records)
        completion_pct = len(journey.completed_workstations) / WORKSTATION_COUNT * 100
        rows.append({
            "Barcode ID": journey.barcode_id,
            "Start Time": format_timestamp(journey.start_time),
            "End Time": format_timestamp(journey.end_time) if journey.end_time else IN_PROGRESS,
            "Total Duration": format_duration(journey.start_time, journey.end_time),
            "Total Wait Time": f"{total_wait // 60000} minutes" if total_wait > 0 else "No wait",
            "Completed Workstations": len(journey.completed_workstations),
            "Progress": f"{_round_half_up(completion_pct)}%",
            "Current Workstation": journey.current_workstation or "Completed",
            "Status": "Completed" if journey.is_complete else "In Progress",
        })
    return rows


def build_detailed_rows(journeys: Sequence[MachineJourney]) -> list[dict]:
    rows = []
    for journey in journeys:
        for record in journey.records:
            if record.checkout_time is not None:
                processing = _minutes_between(record.checkin_time, record.checkout_time)
            else:
                processing = "N/A"
            if record.total_tasks > 0:
                rate = f"{_round_half_up(len(record.tasks_completed) / record.total_tasks * 100)}%"
            else:
                rate = "N/A"
            rows.append({
                "Barcode ID": journey.barcode_id,
                "Workstation": record.workstation,
                "Operator Name": record.operator.name,
                "Operator EPF": record.operator.epf,
                "Check-in Time": format_timestamp(record.checkin_time),
                "Check-out Time": (
                    format_timestamp(record.checkout_time) if record.checkout_time else IN_PROGRESS
                ),
                "Duration": format_duration(record.checkin_time, record.checkout_time),
                "Processing Time (mins)": processing,
                "Wait Time": format_wait_time(record.wait_time),
                "Tasks Completed": len(record.tasks_completed),
                "Total Tasks": record.total_tasks,
                "Completion Rate": rate,
            })
    return rows


def build_task_rows(journeys: Sequence[MachineJourney]) -> list[dict]:
    """One row per completed task; checked-out visits with no tasks get a note row."""
    rows = []
    for journey in journeys:
        for record in journey.records:
            operator = f"{record.operator.name} ({record.operator.epf})"
            completed_on = (
                format_timestamp(record.checkout_time) if record.checkout_time else IN_PROGRESS
            )
            if record.tasks_completed:
                for task_id in record.tasks_completed:
                    rows.append({
                        "Barcode ID": journey.barcode_id,
                        "Workstation": record.workstation,
                        "Operator": operator,
                        "Task ID": task_id,
                        "Completed On": completed_on,
                    })
            elif record.checkout_time is not None:
                rows.append({
                    "Barcode ID": journey.barcode_id,
                    "Workstation": record.workstation,
                    "Operator": operator,
                    "Task ID": "None completed",
                    "Completed On": completed_on,
                    "Note": "Machine processed with no tasks marked as complete",
                })
    return rows


def build_journey_rows(journeys: Sequence[MachineJourney], now: datetime | None = None) -> list[dict]:
    rows = []
    now = now or datetime.now()
    for journey in journeys:
        for record in sorted(journey.records, key=lambda r: r.workstation):
            checkout = record.checkout_time
            rows.append({
                "Barcode ID": journey.barcode_id,
                "Journey Step": f"Workstation {record.workstation}",
                "Date": record.checkin_time.strftime("%Y-%m-%d"),
                "Check-in Time": record.checkin_time.strftime("%H:%M:%S"),
                "Check-out Time": checkout.strftime("%H:%M:%S") if checkout else IN_PROGRESS,
                "Duration": (
                    f"{_minutes_between(record.checkin_time, checkout)} mins" if checkout else IN_PROGRESS
                ),
                "Operator": record.operator.name,
                "Tasks Done": f"{len(record.tasks_completed)} of {record.total_tasks}",
                "Status": "Completed" if checkout else "In Progress",
            })

        end = journey.end_time
        rows.append({
            "Barcode ID": journey.barcode_id,
            "Journey Step": "Final Status",
            "Date": (end or now).strftime("%Y-%m-%d"),
            "Check-in Time": "-",
            "Check-out Time": end.strftime("%H:%M:%S") if end else "-",
            "Duration": "Total: " + (
                f"{_minutes_between(journey.start_time, end)} mins" if end else IN_PROGRESS
            ),
            "Operator": "-",
            "Tasks Done": f"{len(journey.completed_workstations)} of {WORKSTATION_COUNT} workstations",
            "Status": (
                "Process Complete" if end else f"At Workstation {journey.current_workstation or '?'}"
            ),
        })
    return rows


def report_filename(date_range: str) -> str:
    return f"Machine_Service_Report_{date_range}.xlsx"


def date_range_label(start: datetime, end: datetime) -> str:
    return f"{start.strftime('%Y-%m-%d')}_to_{end.strftime('%Y-%m-%d')}"


def export_workbook(
    journeys: Sequence[MachineJourney],
    include_journey_sheet: bool = True,
) -> bytes:
    """Render the report workbook and return the ``.xlsx`` bytes."""
    sheets = [
        ("Summary", build_summary_rows(journeys), SUMMARY_COLUMNS),
        ("Detailed Records", build_detailed_rows(journeys), DETAILED_COLUMNS),
        ("Task Completion", build_task_rows(journeys), TASK_COLUMNS),
    ]
    if include_journey_sheet:
        sheets.append(("Machine Journey", build_journey_rows(journeys), JOURNEY_COLUMNS))

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, rows, columns in sheets:
            pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name=sheet_name, index=False)
            worksheet = writer.sheets[sheet_name]
            for index, width in enumerate(COLUMN_WIDTHS, start=1):
                worksheet.column_dimensions[get_column_letter(index)].width = width

    logger.info("Exported report for %s machines (%s sheets)", len(journeys), len(sheets))
    return buffer.getvalue()
