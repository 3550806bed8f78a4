import csv
from typing import Optional

from tessera.config import settings
from tessera.core.session import EditingSession
from tessera.core.transform import table_to_json
from tessera.models import Table
from tessera.utils.exceptions import AppException
from tessera.utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_FORMATS = ("csv", "json")


def to_csv_text(table: Table, delimiter: Optional[str] = None) -> str:
    """
    Serialize the table as delimited text with a header line.

    Fields holding the delimiter, a quote or a line break are quoted and embedded
    quotes are doubled. Empty cells are written as empty fields.
    """
    delimiter = settings.CSV_DELIMITER if delimiter is None else delimiter
    if not table.columns:
        return ""

    df = table.to_dataframe()
    if settings.TRIM_WHITESPACE:
        df = df.map(lambda v: v.strip() if isinstance(v, str) else v)

    return df.to_csv(
        sep=delimiter,
        index=False,
        na_rep="",
        quoting=csv.QUOTE_MINIMAL,
        doublequote=True,
        lineterminator="\n",
    )


def to_json_text(session: EditingSession) -> str:
    """Rebuild the JSON projection from the current table and pretty-print it."""
    return table_to_json(session.table, session.schema).dumps(indent=2)


def export_session(session: EditingSession, fmt: str = "csv") -> str:
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise AppException(f"Unsupported export format '{fmt}'. Use one of {EXPORT_FORMATS}.", status_code=400)

    logger.info(f"Exporting {session.table.row_count} rows as {fmt}.")
    if fmt == "csv":
        return to_csv_text(session.table)
    return to_json_text(session)
