from tessera.core.inference import infer_column, infer_schema, infer_schema_from_json
from tessera.models import DataType, JsonDocument, Table

# --- Tests for Column Inference ---

def test_whole_numbers_infer_int():
    """Test that ["10", "20"] infers Int with bounds taken from the data."""
    column = infer_column("A", ["10", "20"])
    assert column.type == DataType.INT
    assert column.nullable is False
    assert column.min == 10
    assert column.max == 20


def test_mixed_values_widen_to_string():
    column = infer_column("A", ["1", "abc"])
    assert column.type == DataType.STRING
    assert column.min is None


def test_dates_infer_date():
    assert infer_column("When", ["2024-01-01", "02/01/2024"]).type == DataType.DATE


def test_all_empty_column_is_nullable_string():
    """Test that a column with no values is String and nullable with one distinct bucket."""
    column = infer_column("Empty", [None, "", "  "])
    assert column.type == DataType.STRING
    assert column.nullable is True
    assert column.distinct_count == 1
    assert column.sample_values == []


def test_statistics_count_empties_once():
    column = infer_column("A", [None, "", "a", "a", "b"])
    assert column.distinct_count == 3
    assert column.sample_values == ["a", "a", "b"]


def test_sample_values_are_capped():
    column = infer_column("A", [str(i) for i in range(10)])
    assert column.sample_values == ["0", "1", "2", "3", "4"]

# --- Tests for Table Inference ---

def test_infer_schema_for_mixed_table():
    """Test the Id/Value/Flag example: Int, nullable Float and Bool."""
    table = Table(
        columns=["Id", "Value", "Flag"],
        rows=[["1", "1.5", "true"], ["2", None, "false"], ["3", "2", "True"]],
    )
    schema = infer_schema(table)
    assert [c.type for c in schema.columns] == [DataType.INT, DataType.FLOAT, DataType.BOOL]
    assert [c.nullable for c in schema.columns] == [False, True, False]
    assert schema.columns[1].min == 1.5
    assert schema.columns[1].max == 2

# --- Tests for JSON Inference ---

def test_infer_schema_from_json_keeps_key_order():
    document = JsonDocument.from_python([
        {"Id": 1, "Tags": ["a", "b"]},
        {"Id": 2, "Score": 1.5},
    ])
    schema = infer_schema_from_json(document)
    assert schema.names() == ["Id", "Tags", "Score"]
    assert [c.type for c in schema.columns] == [DataType.INT, DataType.STRING, DataType.FLOAT]
    assert all(c.nullable for c in schema.columns)


def test_json_ints_and_floats_infer_float():
    document = JsonDocument.from_python([{"X": 1}, {"X": 2.5}, {"X": None}])
    assert infer_schema_from_json(document).columns[0].type == DataType.FLOAT


def test_json_objects_infer_string():
    """Test that nested objects force a String column."""
    document = JsonDocument.from_python([{"Meta": {"a": 1}}])
    assert infer_schema_from_json(document).columns[0].type == DataType.STRING


def test_json_numeric_text_stays_string():
    document = JsonDocument.from_python([{"Code": "10"}])
    assert infer_schema_from_json(document).columns[0].type == DataType.STRING
