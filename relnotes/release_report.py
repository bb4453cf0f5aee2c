#!/usr/bin/env python3
"""
Jira Release Notes

Builds a release-note document from a Jira issue export (CSV, Excel or
"HTML (Current fields)").

Generates:
1. release_notes.html - the release document (version info, requests grouped
   by epic, completed defects, free-text and package placeholders), ready to
   paste into an e-mail
2. release_tasks.xlsx - the annotated task list behind the document

Usage:
    relnotes export.html -c release_notes_config.yaml -o output
    relnotes export.csv --cutoff "28/Kas/25 3:39 ÖS"
"""

import argparse
import html
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from relnotes.config import ReleaseSettings, load_config, settings_from_config
from relnotes.jira.dates import JiraDateParser, format_instant
from relnotes.jira.exceptions import ReleaseNotesError, UnrecognizedDate
from relnotes.jira.extract import load_tasks
from relnotes.jira.filtering import ReleaseSession, epic_span
from relnotes.jira.models import NO_REFERENCE, Task

logger = logging.getLogger(__name__)

BORDER = (
    "border: 1px solid black; border-collapse: collapse; padding: 5px; "
    "font-family: Calibri, sans-serif; font-size: 11pt; vertical-align: top;"
)
HEADER_BLUE = "background-color: #0052cc; color: white; font-weight: bold; vertical-align: middle;"
BG_GRAY = "background-color: #f2f2f2; font-weight: bold; vertical-align: middle;"
ACTIVE_CELL = "background-color: #ffffff; color: #000000;"
HIDDEN_CELL = "background-color: #cbd5e1; color: #334155; font-style: italic;"
SPACER_ROW = '<tr><td colspan="3" style="height: 5px; border: none;"></td></tr>'

CUTOFF_NOTE = (
    "Aşağıda testi yeni tamamlanan kayıtlar beyaz, önceki paketler ile "
    "iletilmiş olanlar gri olarak belirtilmiştir."
)


def build_session(tasks: Sequence[Task], settings: ReleaseSettings) -> ReleaseSession:
    """Create a session wired to the configured statuses, prefixes and locale table."""
    return ReleaseSession.from_tasks(
        tasks,
        approved_statuses=tuple(settings.approved_statuses),
        android_key_prefix=settings.android_key_prefix,
        ios_key_prefix=settings.ios_key_prefix,
        date_parser=JiraDateParser(settings.date_translations).parse,
    )


# ============================================================================
# Document rendering
# ============================================================================

def _link(issue_id: str, browse_url: str) -> str:
    if issue_id == NO_REFERENCE:
        return NO_REFERENCE
    url = html.escape(f"{browse_url}{issue_id}", quote=True)
    return f'<a href="{url}" style="color: blue; text-decoration: underline;">{html.escape(issue_id)}</a>'


def _empty_rows(count: int) -> str:
    row = (
        f'<tr><td style="{BORDER} height: 20px;">&nbsp;</td>'
        f'<td colspan="2" style="{BORDER}">&nbsp;</td></tr>'
    )
    return row * count


def _request_rows(session: ReleaseSession, browse_url: str) -> str:
    requests = session.request_tasks()
    if not requests:
        return _empty_rows(1)

    rows = []
    for index, task in enumerate(requests):
        style = HIDDEN_CELL if session.is_hidden(task) else ACTIVE_CELL
        span = epic_span(requests, index)
        epic_cell = ""
        if span > 0:
            epic_cell = (
                f'<td rowspan="{span}" style="{BORDER} vertical-align: middle; {style}">'
                f"{html.escape(task.epic_name)}</td>"
            )
        rows.append(
            f'<tr><td style="{BORDER} {style}">{_link(task.backlog_id, browse_url)}</td>'
            f"{epic_cell}"
            f'<td style="{BORDER} {style}">{html.escape(task.summary)}</td></tr>'
        )
    return "".join(rows)


def _defect_rows(session: ReleaseSession, browse_url: str) -> str:
    defects = session.defect_tasks()
    if not defects:
        return _empty_rows(3)

    rows = []
    for task in defects:
        style = HIDDEN_CELL if session.is_hidden(task) else ACTIVE_CELL
        rows.append(
            f'<tr><td style="{BORDER} {style}">{_link(task.external_id, browse_url)}</td>'
            f'<td colspan="2" style="{BORDER} {style}">{html.escape(task.summary)}</td></tr>'
        )
    return "".join(rows)


def _section_header(left: str, right: str) -> str:
    return (
        f'<tr><td style="{BORDER} {HEADER_BLUE}">{left}</td>'
        f'<td colspan="2" style="{BORDER} {HEADER_BLUE}">{right}</td></tr>'
    )


def _banner(title: str) -> str:
    return f'<tr><td colspan="3" style="{BORDER} {HEADER_BLUE} text-align: center;">{title}</td></tr>'


def _info_row(label: str, value: str, first: str = "&nbsp;", first_style: str = "") -> str:
    return (
        f'<tr><td style="{BORDER} {first_style}">{first}</td>'
        f'<td style="{BORDER} {BG_GRAY}">{label}</td>'
        f'<td style="{BORDER}">{html.escape(value)}</td></tr>'
    )


def _free_text_section(title: str) -> str:
    return (
        f'<tr><td colspan="3" style="{BORDER} {BG_GRAY}">{title}</td></tr>'
        f'<tr><td colspan="3" style="{BORDER}"><ul><li>&nbsp;</li></ul></td></tr>'
    )


def render_release_html(
    session: ReleaseSession,
    settings: Optional[ReleaseSettings] = None,
    today: Optional[datetime] = None,
) -> str:
    """
    Render the release-note document as a single HTML table.

    Args:
        session: Session with tasks and the active cutoff
        settings: Project name and issue browse URL
        today: Date printed in the document (defaults to now)

    Returns:
        HTML fragment suitable for a rich-text clipboard or e-mail body
    """
    settings = settings or ReleaseSettings()
    today = today or datetime.now()
    platform = session.platform.value
    version = session.display_version

    parts = [
        '<table style="width: 100%; border-collapse: collapse; font-family: Calibri; table-layout: fixed;">',
        '<colgroup><col style="width: 15%"><col style="width: 20%"><col style="width: 65%"></colgroup>',
        _section_header("KISIM A", "Sürüm Bilgileri"),
        _info_row("Tarih:", today.strftime("%d.%m.%Y"), first="1 - Proje Bilgileri", first_style=BG_GRAY),
        _info_row("Proje Bilgisi:", settings.project_name),
        _info_row("Sürüm Bilgisi:", version),
        _info_row("Platform:", platform),
        SPACER_ROW,
    ]

    if session.cutoff is not None:
        parts.append(
            '<tr><td colspan="3" style="border: none; font-family: Calibri; font-size: 10.5pt; '
            f'font-weight: bold; font-style: italic; color: #ea580c;">{CUTOFF_NOTE}</td></tr>'
        )

    parts += [
        _banner("Talepler"),
        f'<tr><td style="{BORDER} {BG_GRAY}">Backlog ID</td>'
        f'<td style="{BORDER} {BG_GRAY}">Epic Name</td>'
        f'<td style="{BORDER} {BG_GRAY}">Açıklama</td></tr>',
        _request_rows(session, settings.browse_url),
        SPACER_ROW,
        _banner("Tamamlanan Kayıtlar"),
        f'<tr><td style="{BORDER} {BG_GRAY}">Defect ID</td>'
        f'<td colspan="2" style="{BORDER} {BG_GRAY}">Açıklama</td></tr>',
        _defect_rows(session, settings.browse_url),
        SPACER_ROW,
        _section_header("KISIM B", "Sürüm Detayları"),
        _free_text_section("1. Belirtilmesi Gerekenler"),
        _free_text_section("2. Bilinen Durumlar:"),
        SPACER_ROW,
        _section_header("KISIM C", "Paket Detayları"),
        f'<tr><td colspan="3" style="{BORDER}">Dokümanda iletilen geliştirmeleri test edebileceğiniz '
        f"{platform} paketini aşağıdaki link üzerinden indirebilirsiniz.<br/><br/>"
        f"<strong>{platform} Platform Paket Bilgileri:</strong></td></tr>",
        f'<tr><td style="{BORDER} color: blue; text-decoration: underline;">Paket URL</td>'
        f'<td style="{BORDER}">Created</td><td style="{BORDER}">Revision</td></tr>',
        "</table>",
    ]
    return "".join(parts)


# ============================================================================
# Task table export
# ============================================================================

def build_task_table(session: ReleaseSession) -> pd.DataFrame:
    """
    Tabulate the report rows in document order with their grouping metadata.

    Returns:
        DataFrame with one row per approved task
    """
    visible = session.visible_list()
    records = []
    for index, task in enumerate(visible):
        records.append({
            'Backlog ID': task.backlog_id,
            'External ID': task.external_id,
            'Issue Key': task.original_key,
            'Category': task.issue_category.value,
            'Epic Name': task.epic_name,
            'Epic Span': epic_span(visible, index),
            'Summary': task.summary,
            'Status': task.status,
            'Fix Version': task.fix_version,
            'Fix Build': task.fix_build,
            'Status Changed': task.status_changed_at,
            'Hidden': session.is_hidden(task),
        })
    return pd.DataFrame(records, columns=[
        'Backlog ID', 'External ID', 'Issue Key', 'Category', 'Epic Name',
        'Epic Span', 'Summary', 'Status', 'Fix Version', 'Fix Build',
        'Status Changed', 'Hidden',
    ])


def save_task_table(df: pd.DataFrame, output_path: Path) -> None:
    """Write the task table as CSV or, for any other suffix, Excel."""
    logger.info(f"Saving task table to {output_path}")
    if output_path.suffix.lower() == ".csv":
        df.to_csv(output_path, index=False)
    else:
        df.to_excel(output_path, index=False, engine='openpyxl')
    logger.info("Task table saved successfully")


def log_history(session: ReleaseSession) -> None:
    """Log approved tasks newest first, the dates a cutoff can be picked from."""
    history = session.history_list()
    if not any(task.status_changed_at for task in history):
        return

    logger.info("Status change history (pass one of these dates as --cutoff):")
    for task in history:
        marker = " (hidden)" if session.is_hidden(task) else ""
        logger.info(
            f"  {task.status_changed_at or '-':<22} {task.backlog_id:<14} "
            f"{task.summary[:60]}{marker}"
        )


# ============================================================================
# Main Execution
# ============================================================================

def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Build a release-note document from a Jira issue export',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'export_file',
        help='Jira export file (.csv, .xlsx, .html or .htm)'
    )

    parser.add_argument(
        '-c', '--config',
        default='release_notes_config.yaml',
        help='Path to configuration YAML file (default: release_notes_config.yaml)'
    )

    parser.add_argument(
        '-o', '--output-dir',
        default=None,
        help='Output directory for generated files (default: from config, else output)'
    )

    parser.add_argument(
        '--cutoff',
        default=None,
        help='Status change date of the last reported task; it and older tasks are grayed out'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function."""
    args = parse_arguments(argv)
    setup_logging(args.log_level)

    logger.info("Starting release notes generation")

    try:
        settings = settings_from_config(load_config(args.config))
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        tasks = load_tasks(
            args.export_file,
            backlog_id_pattern=settings.backlog_id_pattern,
            external_id_pattern=settings.external_id_pattern,
        )
    except ReleaseNotesError as e:
        logger.error(str(e))
        return 1

    session = build_session(tasks, settings)

    if args.cutoff:
        try:
            instant = session.cutoff_from_text(args.cutoff)
        except UnrecognizedDate as e:
            logger.error(str(e))
            return 1
        hidden_count = session.newly_hidden_count(instant)
        session = session.with_cutoff(instant)
        logger.info(
            f"{hidden_count} tasks changed on or before {format_instant(instant)} "
            "are marked as already reported"
        )

    approved = session.approved_tasks()
    if not approved:
        logger.warning("No approved tasks found in the export")

    log_history(session)

    output_dir = Path(args.output_dir or settings.output_directory)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Output directory: {output_dir}")

    document_path = output_dir / "release_notes.html"
    document_path.write_text(render_release_html(session, settings), encoding="utf-8")

    table_path = output_dir / "release_tasks.xlsx"
    save_task_table(build_task_table(session), table_path)

    logger.info("Release notes complete! Summary:")
    logger.info(f"  Tasks in export: {len(session.tasks)}")
    logger.info(f"  Approved tasks: {len(approved)}")
    logger.info(f"  Active tasks: {len(session.active_tasks())}")
    logger.info(f"  Version: {session.display_version}")
    logger.info(f"  Platform: {session.platform.value}")
    logger.info(f"  Document: {document_path}")
    logger.info(f"  Task table: {table_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
