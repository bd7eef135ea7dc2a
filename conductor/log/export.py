import logging
import pandas as pd
from typing import Any, Optional
from pathlib import Path
from openpyxl.styles import PatternFill, Font
from openpyxl.styles.numbers import BUILTIN_FORMATS

from conductor.log.notifications import parse_line, TIMESTAMP_FORMAT

log = logging.getLogger(__name__)

COLUMNS = ['Timestamp', 'Level', 'Source', 'Message']

# Define styles as constants for reuse
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
YELLOW_FILL = PatternFill(start_color="FFFFA0", end_color="FFFFA0", fill_type="solid")
RED_FILL = PatternFill(start_color="FF9696", end_color="FF9696", fill_type="solid")
TEXT_FORMAT = BUILTIN_FORMATS[49]  # '@' (Text format)


def escape_formula(value: Any) -> Any:
    """
    Prepends a single quote to a string if it starts with a character
    that Excel might interpret as a formula, to prevent formula injection.

    :param value: The value to check and potentially escape.
    :return: The escaped string or the original value if no escape was needed.
    """
    if isinstance(value, str) and value.startswith(('=', '-', '+', '@')):
        return f"'{value}"
    return value

def read_notifications(log_path: Path) -> Optional[pd.DataFrame]:
    """
    Reads the durable notification log into a DataFrame, oldest first.
    Malformed lines are skipped.

    :param log_path: The notifications.txt file.
    :return: DataFrame with one row per entry, or None if the file cannot be read.
    """
    log.debug(f"Reading notification log: {log_path}")
    try:
        with log_path.open("r", encoding="utf-8", errors="replace") as f:
            entries = [entry for entry in map(parse_line, f) if entry is not None]
    except OSError as e:
        log.error(f"An error occurred while reading the notification log: {e}")
        return None

    rows = [
        (e.timestamp.strftime(TIMESTAMP_FORMAT), e.level.upper(), e.source, e.message)
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=COLUMNS)
    log.info(f"Read {len(df)} notifications from the log.")
    return df

def sanitize_notifications(df: pd.DataFrame) -> pd.DataFrame:
    """Sanitize free-text columns to prevent Excel formula injection."""
    log.debug("Sanitizing data to prevent Excel formula errors...")
    for col in ['Source', 'Message']:
        df[col] = df[col].apply(escape_formula)
    return df

def style_header(ws):
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

def apply_row_styling(ws, level_col_idx: int):
    """
    Apply row fills based on notification level.

    :param ws: Excel worksheet.
    :param level_col_idx: 1-based index of the level column.
    """
    fill_map = {
        'WARNING': YELLOW_FILL,
        'ERROR': RED_FILL,
    }

    for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
        fill_to_apply = fill_map.get(row[level_col_idx - 1].value)
        if fill_to_apply:
            for cell in row:
                cell.fill = fill_to_apply

        # Apply text format to all but the timestamp column
        for cell in row[1:]:
            cell.number_format = TEXT_FORMAT

def adjust_column_widths(ws):
    column_widths = {}
    for row in ws.iter_rows():
        for i, cell in enumerate(row):
            if cell.value:
                column_widths[i] = max(column_widths.get(i, 0), len(str(cell.value)))

    for i, width in column_widths.items():
        ws.column_dimensions[ws.cell(row=1, column=i + 1).column_letter].width = width + 2

def write_to_excel(df: pd.DataFrame, output_path: Path) -> bool:
    """
    Write notifications to Excel with styling.

    :return: True if successful, False otherwise.
    """
    log.info(f"Writing notifications to Excel file: {output_path}")
    try:
        with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Notifications')
            ws = writer.sheets['Notifications']

            style_header(ws)
            apply_row_styling(ws, df.columns.get_loc('Level') + 1)
            adjust_column_widths(ws)

        log.info(f"Export successful. File saved to: {output_path.resolve()}")
        return True
    except Exception as e:
        log.error(f"An error occurred while writing or styling the Excel file: {e}")
        return False

def export_notifications_to_excel(log_path: Path, output_path: Path) -> bool:
    """
    Exports the durable notification log to a styled Excel file.

    Features include auto-sized columns, row coloring by level and
    protection against Excel formula injection.

    :param log_path: The notifications.txt file.
    :param output_path: The file path where the Excel file will be saved.
    :return: True if a file was written.
    """
    if not log_path.exists():
        log.error(f"Error: Notification log not found at '{log_path}'")
        return False

    df = read_notifications(log_path)
    if df is None:
        return False

    if df.empty:
        log.warning("No notifications to export.")
        return False

    df = sanitize_notifications(df)
    return write_to_excel(df, output_path)
