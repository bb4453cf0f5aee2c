"""
Jira Export Extraction

Turns a Jira issue export into canonical Task records. Two export shapes are
supported:

- spreadsheets (CSV/XLSX) with one named column per field
- HTML pages ("HTML (Current fields)", or the "Excel" export, which is HTML
  saved as .xls) holding a single issue table whose cells carry Jira field
  class names

Binary .xls workbooks are rejected with a hint to re-export.

Column names differ between Jira versions and UI languages, so every
canonical field is resolved from an ordered list of candidate columns; the
first non-empty one wins and a sentinel is used when none matches.

Cross-reference ids are looked up in two tiers. The dedicated "linked
issues" column is read first. Because exports place link data
inconsistently, the whole row text is then scanned as a fallback.
"""

import logging
import re
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from bs4 import BeautifulSoup
from openpyxl.utils.exceptions import InvalidFileException

from relnotes.jira.classify import classify_issue_type
from relnotes.jira.exceptions import MalformedInput, ReadFailure
from relnotes.jira.models import (
    GENERAL_BUILD,
    NO_EPIC,
    NO_REFERENCE,
    NOT_AVAILABLE,
    UNKNOWN_STATUS,
    UNSCHEDULED,
    Task,
)

logger = logging.getLogger(__name__)

BACKLOG_ID_PATTERN = r"CCRSP-\d+"
EXTERNAL_ID_PATTERN = r"ISCEPEXTRC-\d+"

HTML_SUFFIXES = (".html", ".htm")
CSV_SUFFIXES = (".csv", ".txt")
LEGACY_EXCEL_SUFFIXES = (".xls",)

SPREADSHEET_HINT = (
    "Could not parse the file. Please upload a valid Excel or CSV file "
    "exported from Jira."
)
XLS_HINT = (
    "Binary .xls workbooks are not supported. Save the file as .xlsx or "
    "export it from Jira as 'Excel', 'CSV' or 'HTML (Current fields)'."
)
NO_TABLE_HINT = (
    "No issue table found in the HTML file. Make sure the export was made "
    "with Jira's 'HTML (Current fields)' option."
)
NO_ROWS_HINT = (
    "The issue table has no data rows. Export the filter again with "
    "Jira's 'HTML (Current fields)', 'Excel' or 'CSV' option."
)

# Spreadsheet columns per canonical field, in priority order. Jira repeats
# link columns; pandas suffixes duplicates with ".1", other tools with "_1".
FIELD_COLUMNS: Dict[str, List[str]] = {
    "original_key": [
        "Inward issue link (Relates)_1",
        "Inward issue link (Relates).1",
        "Inward issue link (Relates)",
        "Issue key",
        "Key",
        "Anahtar",
    ],
    "linked_issues": [
        "Linked Issues",
        "Linked issues",
        "Bağlı Kayıtlar",
        "Outward issue link (Relates)",
        "Outward issue link (Relates).1",
        "Outward issue link (Relates)_1",
    ],
    "summary": ["Summary", "Özet"],
    "epic_name": [
        "Parent summary",
        "Parent Summary",
        "Custom field (Epic Name)",
        "Epic Link",
        "Epic Name",
    ],
    "fix_version": ["Fix Version/s", "Fix version/s", "Fix versions", "Sürüm"],
    "fix_build": ["Custom field (Fix Build)", "Fix Build", "Build"],
    "status": ["Status", "Durum"],
    "issue_type": ["Issue Type", "Issue type", "Kayıt Türü", "Kayıt Tipi"],
    "status_changed_at": [
        "Status Category Changed",
        "Statü Değişim Tarihi",
        "Updated",
        "Güncellendi",
    ],
}

# HTML lookups per canonical field, in priority order. ".name" reads the cell
# with that Jira field class, anything else is a header keyword whose column
# index is used.
HTML_FIELD_LOOKUPS: Dict[str, List[str]] = {
    "original_key": [".issuekey", ".key", "key"],
    "linked_issues": ["linked issues", "bağlı kayıtlar", "linked"],
    "summary": [".summary", "summary", "özet"],
    "epic_name": [".parent", ".customfield_10006", ".customfield_epic_link"],
    "fix_version": [".fixVersions"],
    "fix_build": [".customfield_10097", ".fixBuild"],
    "status": [".status", "status", "durum"],
    "issue_type": [".issuetype", "issue type", "kayıt türü"],
    "status_changed_at": [
        "status category changed",
        "category changed",
        "statü değişim tarihi",
        ".updated",
    ],
}

FIELD_DEFAULTS: Dict[str, str] = {
    "original_key": NOT_AVAILABLE,
    "linked_issues": "",
    "summary": NOT_AVAILABLE,
    "epic_name": NO_EPIC,
    "fix_version": UNSCHEDULED,
    "fix_build": GENERAL_BUILD,
    "status": UNKNOWN_STATUS,
    "issue_type": "",
    "status_changed_at": "",
}


def clean_str(value) -> str:
    """Stringify a cell value, mapping None/NaN to an empty string."""
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def resolve_field(row: Mapping, candidates: Sequence[str], default: str = "") -> str:
    """
    Return the first non-empty value among candidate columns.

    Args:
        row: Mapping of column name to cell value
        candidates: Column names in priority order
        default: Value used when every candidate is missing or empty

    Returns:
        The resolved, stripped value
    """
    for name in candidates:
        value = clean_str(row.get(name))
        if value:
            return value
    return default


def find_reference(pattern: str, *texts: str) -> str:
    """Return the first match of pattern, searching texts in order, or '-'."""
    for text in texts:
        if not text:
            continue
        match = re.search(pattern, text)
        if match:
            return match.group(0)
    return NO_REFERENCE


def build_task(
    values: Mapping[str, str],
    row_text: str,
    backlog_id_pattern: str = BACKLOG_ID_PATTERN,
    external_id_pattern: str = EXTERNAL_ID_PATTERN,
) -> Task:
    """
    Build a Task from resolved field values.

    Missing fields fall back to their sentinel. Reference ids come from the
    linked issues value first and from the full row text otherwise.
    """
    def value_of(name: str) -> str:
        return values.get(name) or FIELD_DEFAULTS[name]

    linked = values.get("linked_issues", "")

    return Task(
        backlog_id=find_reference(backlog_id_pattern, linked, row_text),
        external_id=find_reference(external_id_pattern, linked, row_text),
        summary=value_of("summary"),
        epic_name=value_of("epic_name"),
        fix_version=value_of("fix_version"),
        fix_build=value_of("fix_build"),
        status=value_of("status"),
        issue_category=classify_issue_type(values.get("issue_type")),
        original_key=value_of("original_key"),
        status_changed_at=value_of("status_changed_at"),
    )


# ============================================================================
# Spreadsheet exports
# ============================================================================

def extract_from_rows(
    rows: Iterable[Mapping],
    backlog_id_pattern: str = BACKLOG_ID_PATTERN,
    external_id_pattern: str = EXTERNAL_ID_PATTERN,
) -> List[Task]:
    """
    Build tasks from spreadsheet rows keyed by column name.

    Raises:
        MalformedInput: If there is no non-blank row
    """
    tasks = []
    for row in rows:
        cells = [clean_str(value) for value in row.values()]
        if not any(cells):
            continue

        values = {
            field: resolve_field(row, candidates)
            for field, candidates in FIELD_COLUMNS.items()
        }
        tasks.append(
            build_task(
                values,
                " ".join(cells),
                backlog_id_pattern=backlog_id_pattern,
                external_id_pattern=external_id_pattern,
            )
        )

    if not tasks:
        raise MalformedInput(SPREADSHEET_HINT)

    logger.info(f"Extracted {len(tasks)} tasks from spreadsheet rows")
    return tasks


def read_spreadsheet(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a CSV or Excel export with every cell as text.

    Raises:
        ReadFailure: If the file cannot be opened
        MalformedInput: If the content is not a readable table
    """
    path = Path(path)
    logger.info(f"Reading spreadsheet export {path}")

    try:
        if path.suffix.lower() in CSV_SUFFIXES:
            df = pd.read_csv(
                path, dtype=str, keep_default_na=False, encoding="utf-8-sig"
            )
        elif path.suffix.lower() in LEGACY_EXCEL_SUFFIXES:
            path.stat()
            logger.error(f"Legacy Excel workbook {path} is not supported")
            raise MalformedInput(XLS_HINT)
        else:
            df = pd.read_excel(path, dtype=str, keep_default_na=False)
    except OSError as e:
        raise ReadFailure(path, e) from e
    except ImportError as e:
        # pandas needs xlrd for legacy workbook content under another extension
        logger.error(f"No reader available for {path}: {e}")
        raise MalformedInput(XLS_HINT) from e
    except (ValueError, InvalidFileException, zipfile.BadZipFile) as e:
        logger.error(f"Failed to parse {path}: {e}")
        raise MalformedInput(SPREADSHEET_HINT) from e

    df.columns = [str(column).strip() for column in df.columns]
    logger.debug(f"Columns: {list(df.columns)}")
    return df


def load_spreadsheet(
    path: Union[str, Path],
    backlog_id_pattern: str = BACKLOG_ID_PATTERN,
    external_id_pattern: str = EXTERNAL_ID_PATTERN,
) -> List[Task]:
    """
    Build tasks from a CSV or Excel export.

    Args:
        path: Export file
        backlog_id_pattern: Regex for backlog ids
        external_id_pattern: Regex for external defect ids

    Raises:
        ReadFailure: If the file cannot be opened
        MalformedInput: If the file holds no readable rows
    """
    df = read_spreadsheet(path)
    return extract_from_rows(
        df.to_dict(orient="records"),
        backlog_id_pattern=backlog_id_pattern,
        external_id_pattern=external_id_pattern,
    )


# ============================================================================
# HTML exports
# ============================================================================

def _cell_text(cell) -> str:
    text = cell.get_text(" ", strip=True)
    if text:
        return text
    # Issue type and priority cells often hold only an icon
    icon = cell.find("img")
    if icon is not None:
        return (icon.get("alt") or icon.get("title") or "").strip()
    return ""


def _find_issue_table(soup):
    return (
        soup.find(id="issuetable")
        or soup.select_one("table.aui")
        or soup.find("table")
    )


def _header_texts(table) -> List[str]:
    headers = table.select("thead tr th")
    if not headers:
        first_row = table.find("tr")
        if first_row is not None:
            headers = first_row.find_all("th") or first_row.select("td.searcherHeader")
    return [h.get_text(" ", strip=True).lower() for h in headers]


def _header_index(headers: Sequence[str], keyword: str) -> int:
    for i, header in enumerate(headers):
        if keyword in header:
            return i
    return -1


def _resolve_html_field(row, cells, headers: Sequence[str], lookups: Sequence[str]) -> str:
    for lookup in lookups:
        if lookup.startswith("."):
            cell = row.find(class_=lookup[1:])
        else:
            index = _header_index(headers, lookup)
            cell = cells[index] if 0 <= index < len(cells) else None

        if cell is not None:
            text = _cell_text(cell)
            if text:
                return text
    return ""


def extract_from_html(
    markup: str,
    backlog_id_pattern: str = BACKLOG_ID_PATTERN,
    external_id_pattern: str = EXTERNAL_ID_PATTERN,
) -> List[Task]:
    """
    Build tasks from a Jira HTML export.

    Raises:
        MalformedInput: If no table or no data rows are found
    """
    soup = BeautifulSoup(markup, "lxml")

    table = _find_issue_table(soup)
    if table is None:
        raise MalformedInput(NO_TABLE_HINT)

    headers = _header_texts(table)
    if not headers:
        logger.warning("Issue table has no header row, using cell classes only")

    rows = [tr for tr in table.find_all("tr") if tr.find("td") and not tr.find("th")]
    if not rows:
        raise MalformedInput(NO_ROWS_HINT)

    tasks = []
    for row in rows:
        cells = row.find_all("td", recursive=False)
        values = {
            field: _resolve_html_field(row, cells, headers, lookups)
            for field, lookups in HTML_FIELD_LOOKUPS.items()
        }
        tasks.append(
            build_task(
                values,
                row.get_text(" ", strip=True),
                backlog_id_pattern=backlog_id_pattern,
                external_id_pattern=external_id_pattern,
            )
        )

    logger.info(f"Extracted {len(tasks)} tasks from HTML table")
    return tasks


def load_html(
    path: Union[str, Path],
    backlog_id_pattern: str = BACKLOG_ID_PATTERN,
    external_id_pattern: str = EXTERNAL_ID_PATTERN,
) -> List[Task]:
    """
    Build tasks from an HTML export on disk.

    Args:
        path: Export file, HTML regardless of its extension
        backlog_id_pattern: Regex for backlog ids
        external_id_pattern: Regex for external defect ids

    Raises:
        ReadFailure: If the file cannot be read
        MalformedInput: If no issue table or no data rows are found
    """
    path = Path(path)
    logger.info(f"Reading HTML export {path}")
    try:
        markup = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReadFailure(path, e) from e
    return extract_from_html(
        markup,
        backlog_id_pattern=backlog_id_pattern,
        external_id_pattern=external_id_pattern,
    )


def looks_like_html(path: Union[str, Path]) -> bool:
    """
    Check whether a file starts with markup.

    Jira's "Excel" export is an HTML table saved with an .xls extension.

    Raises:
        ReadFailure: If the file cannot be opened
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            head = f.read(512)
    except OSError as e:
        raise ReadFailure(path, e) from e
    return head.lstrip(b"\xef\xbb\xbf \t\r\n").startswith(b"<")


def load_tasks(
    path: Union[str, Path],
    backlog_id_pattern: Optional[str] = None,
    external_id_pattern: Optional[str] = None,
) -> List[Task]:
    """
    Load tasks from an export, choosing the reader by extension and content.

    Args:
        path: Export file; .html/.htm, or any file starting with markup
            (Jira's "Excel" .xls export), is read as HTML, anything else
            as a spreadsheet
        backlog_id_pattern: Regex for backlog ids (default CCRSP-<n>)
        external_id_pattern: Regex for external defect ids
            (default ISCEPEXTRC-<n>)

    Returns:
        Tasks in export order

    Raises:
        ReadFailure: If the file cannot be read
        MalformedInput: If the file holds no usable issue table
    """
    path = Path(path)
    patterns = {
        "backlog_id_pattern": backlog_id_pattern or BACKLOG_ID_PATTERN,
        "external_id_pattern": external_id_pattern or EXTERNAL_ID_PATTERN,
    }
    if path.suffix.lower() in HTML_SUFFIXES or looks_like_html(path):
        return load_html(path, **patterns)
    return load_spreadsheet(path, **patterns)
