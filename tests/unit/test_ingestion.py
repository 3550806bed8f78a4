import pytest

from tessera.config import settings
from tessera.core.ingestion import (
    create_empty_workspace,
    create_sample_workspace,
    detect_delimiter,
    load_delimited,
    load_file,
    load_json,
)
from tessera.models import DataType
from tessera.utils.exceptions import FileProcessingError

# --- Tests for Delimited Text ---

def test_load_valid_csv():
    """Test that a valid CSV is parsed, typed and normalized."""
    content = b"Id,Value,Flag\n1,1.5,true\n2,,false\n"
    session = load_delimited(content, "test.csv")

    assert session.table.columns == ["Id", "Value", "Flag"]
    assert [c.type for c in session.schema.columns] == [DataType.INT, DataType.FLOAT, DataType.BOOL]
    assert session.schema.columns[1].nullable
    assert session.table.rows == [["1", "1.5", "True"], ["2", None, "False"]]


def test_observed_range_does_not_limit_edits():
    """Test that Age 30, 25 loads without bounds so 31 is still accepted."""
    session = load_delimited(b"Age\n30\n25\n", "ages.csv")
    assert session.schema.columns[0].min is None
    assert session.schema.columns[0].max is None
    assert session.update_cell(0, 0, "31").is_valid


def test_load_semicolon_file():
    session = load_delimited(b"A;B\n1;x\n2;y\n", "semi.csv")
    assert session.table.columns == ["A", "B"]
    assert session.table.rows[1] == ["2", "y"]


def test_detect_tab_delimiter():
    assert detect_delimiter("Name\tScore\nAna\t3\nBo\t4\n") == "\t"


def test_bom_and_header_padding_are_stripped():
    session = load_delimited("\ufeff A , B\n1,2\n".encode("utf-8"), "bom.csv")
    assert session.table.columns == ["A", "B"]


def test_load_empty_csv():
    """Test that an empty file raises an error."""
    with pytest.raises(FileProcessingError):
        load_delimited(b"", "empty.csv")


def test_invalid_utf8_rejected():
    with pytest.raises(FileProcessingError):
        load_delimited(b"A,B\n\xff\xfe,1\n", "bad.csv")


def test_size_limit(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)
    with pytest.raises(FileProcessingError):
        load_delimited(b"A\n1\n", "big.csv")

# --- Tests for JSON ---

def test_load_json_ungroups_arrays():
    content = b'[{"Tags": ["red", "green"], "Owner": "alice"}]'
    session = load_json(content, "tags.json")

    assert session.table.columns == ["Tags", "Owner"]
    assert session.table.rows == [["red", "alice"], ["green", None]]
    assert session.json.to_python() == [{"Tags": ["red", "green"], "Owner": "alice"}]


def test_load_json_fills_missing_keys():
    session = load_json(b'[{"A": 1}, {"B": true}]', "sparse.json")
    assert session.json.to_python() == [{"A": 1, "B": None}, {"A": None, "B": True}]
    assert [c.type for c in session.schema.columns] == [DataType.INT, DataType.BOOL]


def test_single_line_json_widens_array_columns():
    session = load_json(b'[{"Id": "a", "N": [1, 2]}]', "n.json", multiline=False)
    assert session.schema.columns[1].type == DataType.STRING
    assert session.table.rows == [["a", "1, 2"]]


def test_array_column_moved_first():
    """Test that Owner then Tags loads as Tags, Owner and the JSON view survives a cell edit."""
    session = load_json(b'[{"Owner": "alice", "Tags": ["red", "green"]}]', "tags.json")
    assert session.table.columns == ["Tags", "Owner"]
    assert session.table.rows == [["red", "alice"], ["green", None]]

    assert session.update_cell(0, 1, "bob").is_valid
    assert session.json.to_python() == [{"Tags": ["red", "green"], "Owner": "bob"}]


def test_two_array_columns_rejected():
    content = b'[{"Tags": ["red", "green"], "Owners": ["alice", "bob"]}]'
    with pytest.raises(FileProcessingError, match="Owners"):
        load_json(content, "tags.json")


def test_record_that_would_merge_rejected_on_load():
    content = b'[{"Tags": "red", "Owner": "alice"}, {"Tags": "blue"}]'
    with pytest.raises(FileProcessingError):
        load_json(content, "tags.json")


def test_load_invalid_json():
    with pytest.raises(FileProcessingError):
        load_json(b'{"not": "an array"}', "obj.json")


def test_load_file_dispatches_on_content():
    session = load_file(b'[{"A": 1}]', "data.txt")
    assert session.schema.columns[0].type == DataType.INT
    assert load_file(b"A,B\n1,2\n", "data.csv").table.row_count == 1

# --- Tests for Workspace Factories ---

def test_empty_workspace():
    session = create_empty_workspace()
    assert session.table.row_count == 0
    assert session.json.records == []


def test_sample_workspace():
    session = create_sample_workspace(10)
    assert session.table.row_count == 10
    assert session.schema.names() == ["Name", "Active", "Score", "Date"]
    assert session.schema.columns[2].max == 5000
    assert session.table.rows[1] == ["Row 1", "False", "10", "2024-01-02"]
