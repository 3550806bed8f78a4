import csv
import io
from datetime import date, timedelta
from typing import List, Optional

import pandas as pd

from tessera.config import settings
from tessera.core.inference import infer_schema, infer_schema_from_json
from tessera.core.session import EditingSession
from tessera.core.transform import json_to_table
from tessera.core.validation import check_layout, parse_json_document
from tessera.models import ColumnSchema, DataType, JsonArray, JsonDocument, JsonNull, Schema, Table
from tessera.utils.exceptions import FileProcessingError, JsonSyntaxError, SchemaMismatchError
from tessera.utils.logger import get_logger
from tessera.utils.parsing import format_bool, format_date, is_empty

logger = get_logger(__name__)

CANDIDATE_DELIMITERS = ",;\t|"


def _check_size(file_content: bytes) -> None:
    size_mb = len(file_content) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_SIZE_MB:
        raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")


def _decode(file_content: bytes) -> str:
    try:
        return file_content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileProcessingError(f"File is not valid UTF-8: {e}") from e


def detect_delimiter(text: str) -> str:
    """Pick the delimiter among comma, semicolon, tab and pipe."""
    sample = text[:1024]
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        # Sniffer needs at least two consistent lines; fall back to the header line
        header = sample.splitlines()[0] if sample.strip() else ""
        counts = {d: header.count(d) for d in CANDIDATE_DELIMITERS}
        best = max(counts, key=counts.get)
        return best if counts[best] > 0 else ","


def _clean_cell(value: str) -> Optional[str]:
    if is_empty(value):
        return None
    return value.strip() if settings.TRIM_WHITESPACE else value


def _without_bounds(schema: Schema) -> Schema:
    """Observed min/max describe the loaded data; they are not limits for later edits."""
    return Schema(columns=[c.model_copy(update={"min": None, "max": None}) for c in schema.columns])


def load_delimited(file_content: bytes, filename: str) -> EditingSession:
    """
    Load delimited text into a new session with an inferred schema.

    Raises:
        FileProcessingError: Size limit, encoding, empty input or unparseable text.
    """
    logger.info(f"Starting ingestion for file: {filename}")
    _check_size(file_content)
    text = _decode(file_content)
    if not text.strip():
        raise FileProcessingError("The uploaded file contains no data.")

    delimiter = detect_delimiter(text)
    logger.info(f"Detected delimiter: {delimiter!r}")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            on_bad_lines="warn",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Error during ingestion: {str(e)}")
        raise FileProcessingError(f"Failed to parse {filename}: {str(e)}") from e

    if len(df.columns) == 0:
        raise FileProcessingError("The uploaded file contains no columns.")

    columns = [str(c).strip() for c in df.columns]
    rows = [[_clean_cell(v) for v in record] for record in df.itertuples(index=False, name=None)]
    table = Table(columns=columns, rows=rows)
    schema = _without_bounds(infer_schema(table))

    logger.info(f"Ingestion successful. Shape: ({table.row_count}, {table.column_count})")
    return EditingSession(table, schema)


def _fill_missing_keys(document: JsonDocument, schema: Schema) -> JsonDocument:
    records = []
    for record in document.records:
        filled = dict(record)
        for name in schema.names():
            filled.setdefault(name, JsonNull())
        records.append(filled)
    return JsonDocument(records=records)


def _widen_array_columns(document: JsonDocument, schema: Schema) -> Schema:
    """Single-line mode joins arrays into one cell, which only a String column can hold."""
    columns: List[ColumnSchema] = []
    for column in schema.columns:
        has_array = any(isinstance(r.get(column.name), JsonArray) for r in document.records)
        if has_array and column.type != DataType.STRING:
            column = column.model_copy(update={"type": DataType.STRING})
        columns.append(column)
    return Schema(columns=columns)


def _array_column_first(document: JsonDocument, schema: Schema) -> Schema:
    """
    Move the first column holding a multi-item array to the front, since only
    the first table column can spread a record over several rows.
    """
    for index, column in enumerate(schema.columns):
        if any(
            isinstance(r.get(column.name), JsonArray) and len(r[column.name].items) > 1
            for r in document.records
        ):
            if index > 0:
                logger.info(f"Moving array column '{column.name}' to the front.")
                return Schema(columns=[column] + schema.columns[:index] + schema.columns[index + 1:])
            break
    return schema


def load_json(file_content: bytes, filename: str, multiline: Optional[bool] = None) -> EditingSession:
    """
    Load a JSON array of objects into a new session.

    The schema is inferred from the typed values and the table is produced by
    ungrouping the records. In multi-line mode the loaded document, with absent
    keys filled with null, becomes the session's JSON view; in single-line mode
    the view is projected from the table so it matches the widened schema.

    Raises:
        FileProcessingError: Size limit, malformed JSON, or records the table
            cannot hold one row group each (several array columns, or a record
            with only its first column filled).
    """
    logger.info(f"Starting JSON ingestion for file: {filename}")
    _check_size(file_content)
    multiline = settings.ARRAY_DISPLAY_MULTILINE if multiline is None else multiline

    try:
        document = parse_json_document(_decode(file_content))
    except (JsonSyntaxError, SchemaMismatchError) as e:
        logger.error(f"Error during JSON ingestion: {e.message}")
        raise FileProcessingError(f"Failed to parse {filename}: {e.message}") from e

    schema = infer_schema_from_json(document)
    if multiline:
        schema = _array_column_first(document, schema)
    else:
        schema = _widen_array_columns(document, schema)
    document = _fill_missing_keys(document, schema)

    layout_errors = check_layout(document, schema, multiline)
    if layout_errors:
        logger.error(f"Error during JSON ingestion: {layout_errors[0].message}")
        raise FileProcessingError(f"Failed to load {filename}: {layout_errors[0].message}")

    table = json_to_table(document, schema, multiline=multiline)

    logger.info(f"JSON ingestion successful. {len(document.records)} records, {table.row_count} rows.")
    return EditingSession(table, schema, json=document if multiline else None, multiline=multiline)


def load_file(file_content: bytes, filename: str) -> EditingSession:
    """Dispatch on the .json extension or on content that opens like JSON."""
    head = file_content[:64].decode("utf-8-sig", errors="ignore").lstrip()
    if filename.lower().endswith(".json") or head.startswith(("[", "{")):
        return load_json(file_content, filename)
    return load_delimited(file_content, filename)


# ---------------------------------------------------------------------------
# WORKSPACE FACTORIES
# ---------------------------------------------------------------------------

def create_empty_workspace() -> EditingSession:
    return EditingSession(Table(), Schema())


def build_sample_schema() -> Schema:
    return Schema(columns=[
        ColumnSchema(name="Name", type=DataType.STRING, nullable=False),
        ColumnSchema(name="Active", type=DataType.BOOL, nullable=False),
        ColumnSchema(name="Score", type=DataType.INT, nullable=False, min=0, max=5000),
        ColumnSchema(name="Date", type=DataType.DATE, nullable=False),
    ])


def create_sample_workspace(row_count: int = 50) -> EditingSession:
    schema = build_sample_schema()
    base = date(2024, 1, 1)
    rows = [
        [f"Row {i}", format_bool(i % 2 == 0), str(i * 10), format_date(base + timedelta(days=i))]
        for i in range(row_count)
    ]
    return EditingSession(Table(columns=schema.names(), rows=rows), schema)
