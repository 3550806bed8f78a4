from tessera.core.validation import (
    check_layout,
    validate_cell,
    validate_cell_in_row,
    validate_column,
    validate_json,
    validate_json_text,
)
from tessera.models import ColumnSchema, DataType, JsonDocument, JsonErrorKind, Schema, Table


def person_schema() -> Schema:
    return Schema(columns=[
        ColumnSchema(name="Name", type=DataType.STRING, nullable=False),
        ColumnSchema(name="Active", type=DataType.BOOL),
    ])

# --- Tests for Cell Validation ---

def test_float_in_range_is_normalized():
    """Test that Score: Float 0..100 accepts "10" and "20.5" in canonical form."""
    score = ColumnSchema(name="Score", type=DataType.FLOAT, min=0, max=100)
    assert validate_cell(score, "10").normalized_value == "10"
    assert validate_cell(score, "20.5").normalized_value == "20.5"
    assert validate_cell(score, "10.0").normalized_value == "10"


def test_out_of_range_value_rejected():
    score = ColumnSchema(name="Score", type=DataType.FLOAT, min=0, max=100)
    result = validate_cell(score, "150")
    assert not result.is_valid
    assert result.error_kind == "RangeError"
    assert "between 0 and 100" in result.message


def test_one_sided_bound_message():
    column = ColumnSchema(name="Qty", type=DataType.INT, min=1)
    result = validate_cell(column, "0")
    assert result.error_kind == "RangeError"
    assert "at least 1" in result.message

def test_max_only_bound_message():
    column = ColumnSchema(name="Qty", type=DataType.INT, max=10)
    result = validate_cell(column, "11")
    assert result.error_kind == "RangeError"
    assert "at most 10" in result.message
    assert validate_cell(column, "-5").is_valid



def test_bool_is_normalized():
    column = ColumnSchema(name="Flag", type=DataType.BOOL)
    assert validate_cell(column, "true").normalized_value == "True"


def test_date_is_normalized_to_iso():
    column = ColumnSchema(name="When", type=DataType.DATE)
    assert validate_cell(column, "03/05/2024").normalized_value == "2024-03-05"


def test_empty_value_in_non_nullable_column():
    column = ColumnSchema(name="Name", nullable=False)
    result = validate_cell(column, "  ")
    assert not result.is_valid
    assert result.error_kind == "NullabilityError"


def test_empty_value_in_nullable_column_is_none():
    column = ColumnSchema(name="Note", type=DataType.INT)
    result = validate_cell(column, "")
    assert result.is_valid
    assert result.normalized_value is None


def test_parse_error_names_the_column():
    column = ColumnSchema(name="Count", type=DataType.INT)
    result = validate_cell(column, "abc")
    assert result.error_kind == "ParseError"
    assert result.message.startswith("Count:")

# --- Tests for Column Validation ---

def test_validate_column_reports_every_failing_row():
    """Test that a candidate schema is checked against all rows, not just the first."""
    table = Table(columns=["Flag"], rows=[["yes"], ["true"], ["no"]])
    report = validate_column(table, 0, ColumnSchema(name="Flag", type=DataType.BOOL))
    assert not report.is_valid
    assert [e.row_index for e in report.row_errors] == [0, 2]


def test_validate_column_returns_normalized_values():
    table = Table(columns=["Flag"], rows=[["TRUE"], [None]])
    report = validate_column(table, 0, ColumnSchema(name="Flag", type=DataType.BOOL))
    assert report.is_valid
    assert report.normalized_values == ["True", None]


def test_empty_cell_on_continuation_row_passes_non_nullable_column():
    """Test that Owner: String non-nullable accepts the empty Owner of a continuation row."""
    owner = ColumnSchema(name="Owner", nullable=False)
    assert validate_cell_in_row(owner, None, ["green", None], 1).is_valid
    assert not validate_cell_in_row(owner, None, ["green", None], 0).is_valid
    assert not validate_cell_in_row(owner, None, [None, None, "x"], 1).is_valid


def test_validate_column_allows_non_nullable_over_continuation_rows():
    table = Table(columns=["Tags", "Owner"], rows=[["red", "alice"], ["green", None]])
    report = validate_column(table, 1, ColumnSchema(name="Owner", nullable=False))
    assert report.is_valid
    assert report.normalized_values == ["alice", None]

# --- Tests for JSON Validation ---

def test_valid_document_passes():
    document = JsonDocument.from_python([{"Name": "Bob", "Active": False}])
    assert validate_json(document, person_schema()).is_valid


def test_missing_key():
    document = JsonDocument.from_python([{"Name": "Bob"}])
    result = validate_json(document, person_schema())
    assert [e.kind for e in result.errors] == [JsonErrorKind.MISSING_KEY]
    assert result.errors[0].key == "Active"


def test_null_in_non_nullable_column():
    document = JsonDocument.from_python([{"Name": None, "Active": True}])
    result = validate_json(document, person_schema())
    assert [e.kind for e in result.errors] == [JsonErrorKind.NULL_NOT_ALLOWED]


def test_type_mismatch_and_unknown_key():
    document = JsonDocument.from_python([{"Name": "Bob", "Active": "yes", "Age": 3}])
    kinds = [e.kind for e in validate_json(document, person_schema()).errors]
    assert kinds == [JsonErrorKind.TYPE_MISMATCH, JsonErrorKind.UNKNOWN_KEY]


def test_int_column_accepts_whole_floats_only():
    schema = Schema(columns=[ColumnSchema(name="N", type=DataType.INT)])
    assert validate_json(JsonDocument.from_python([{"N": 2.0}]), schema).is_valid
    assert not validate_json(JsonDocument.from_python([{"N": 2.5}]), schema).is_valid


def test_array_elements_checked_individually():
    schema = Schema(columns=[ColumnSchema(name="N", type=DataType.INT), ColumnSchema(name="Label")])
    assert validate_json(JsonDocument.from_python([{"N": [1, 2, 3], "Label": "a"}]), schema).is_valid
    result = validate_json(JsonDocument.from_python([{"N": [1, "x"], "Label": "a"}]), schema)
    assert result.errors[0].kind == JsonErrorKind.TYPE_MISMATCH


def test_out_of_range_json_value():
    schema = Schema(columns=[ColumnSchema(name="N", type=DataType.INT, min=0, max=10)])
    result = validate_json(JsonDocument.from_python([{"N": 11}]), schema)
    assert not result.is_valid
    assert "between 0 and 10" in result.errors[0].message

# --- Tests for JSON Text ---

def test_syntax_error_carries_line_number():
    result = validate_json_text('[\n  {"Name": }\n]', person_schema())
    assert result.errors[0].kind == JsonErrorKind.SYNTAX
    assert result.errors[0].line_number == 2


def test_non_array_root_is_structure_error():
    result = validate_json_text('{"Name": "Bob"}', person_schema())
    assert result.errors[0].kind == JsonErrorKind.STRUCTURE


def test_non_object_entry_is_structure_error():
    result = validate_json_text("[1]", person_schema())
    assert result.errors[0].kind == JsonErrorKind.STRUCTURE


def test_nan_literal_rejected():
    result = validate_json_text('[{"Name": "a", "Active": NaN}]', person_schema())
    assert result.errors[0].kind == JsonErrorKind.SYNTAX

# --- Tests for Record Layout ---

def tags_schema() -> Schema:
    return Schema(columns=[
        ColumnSchema(name="Tags", nullable=False),
        ColumnSchema(name="Owner", nullable=False),
    ])


def test_array_in_first_column_fits_layout():
    document = JsonDocument.from_python([{"Tags": ["red", "green"], "Owner": "alice"}])
    assert check_layout(document, tags_schema()) == []
    assert validate_json(document, tags_schema()).is_valid


def test_array_outside_first_column_is_structure_error():
    """Test that Owner ["a", "b"] would split the record, so it is named in the error."""
    document = JsonDocument.from_python([{"Tags": "red", "Owner": ["alice", "bob"]}])
    result = validate_json(document, tags_schema())
    assert [e.kind for e in result.errors] == [JsonErrorKind.STRUCTURE]
    assert result.errors[0].key == "Owner"
    assert "'Owner'" in result.errors[0].message


def test_record_with_only_first_column_would_merge():
    schema = Schema(columns=[ColumnSchema(name="Tags"), ColumnSchema(name="Owner")])
    document = JsonDocument.from_python([
        {"Tags": "red", "Owner": "alice"},
        {"Tags": "blue", "Owner": None},
    ])
    result = validate_json(document, schema)
    assert result.errors[0].kind == JsonErrorKind.STRUCTURE
    assert result.errors[0].record_index == 1


def test_single_column_array_is_structure_error():
    schema = Schema(columns=[ColumnSchema(name="N", type=DataType.INT)])
    result = validate_json(JsonDocument.from_python([{"N": [1, 2]}]), schema)
    assert result.errors[0].kind == JsonErrorKind.STRUCTURE
    assert result.errors[0].key == "N"


def test_single_line_typed_array_is_type_mismatch():
    """Test that N: Int [1, 2] cannot be joined into one cell in single-line display."""
    schema = Schema(columns=[ColumnSchema(name="Id"), ColumnSchema(name="N", type=DataType.INT)])
    document = JsonDocument.from_python([{"Id": "a", "N": [1, 2]}])

    result = validate_json(document, schema, multiline=False)
    assert [e.kind for e in result.errors] == [JsonErrorKind.TYPE_MISMATCH]
    assert result.errors[0].key == "N"

    text_items = JsonDocument.from_python([{"Id": "a", "N": ["1", "2"]}])
    widened = Schema(columns=[ColumnSchema(name="Id"), ColumnSchema(name="N")])
    assert validate_json(text_items, widened, multiline=False).is_valid


def test_single_line_text_validation_uses_display_mode():
    schema = Schema(columns=[ColumnSchema(name="Id"), ColumnSchema(name="N", type=DataType.INT)])
    result = validate_json_text('[{"Id": "a", "N": [1, 2]}]', schema, multiline=False)
    assert result.errors[0].kind == JsonErrorKind.TYPE_MISMATCH
