from tessera.core.history import HistoryLog
from tessera.core.session import EditingSession
from tessera.models import CellChange, ColumnSchema, DataType, Schema, Table


def score_session() -> EditingSession:
    schema = Schema(columns=[ColumnSchema(name="Score", type=DataType.INT)])
    return EditingSession(Table(columns=["Score"], rows=[["1"], ["2"]]), schema)

# --- Tests for Undo / Redo ---

def test_undo_then_redo_restores_values():
    session = score_session()
    session.update_cell(0, 0, "5")

    assert session.undo().ok
    assert session.table.rows[0][0] == "1"
    assert session.history.can_redo

    assert session.redo().ok
    assert session.table.rows[0][0] == "5"
    assert session.history.can_undo and not session.history.can_redo


def test_new_edit_clears_redo():
    """Test that history stays linear: editing after an undo drops the redo branch."""
    session = score_session()
    session.update_cell(0, 0, "5")
    session.undo()
    session.update_cell(0, 0, "7")
    assert not session.history.can_redo
    assert session.history.undo_depth == 1


def test_unchanged_value_not_recorded():
    session = score_session()
    session.update_cell(0, 0, "1")
    assert not session.history.can_undo


def test_replay_is_not_recorded_again():
    session = score_session()
    session.update_cell(0, 0, "5")
    session.update_cell(1, 0, "6")
    session.undo()
    assert session.history.undo_depth == 1
    assert session.history.redo_depth == 1


def test_failed_undo_leaves_stacks_unchanged():
    """Test that an undo whose old value no longer validates keeps both stacks as they were."""
    schema = Schema(columns=[ColumnSchema(name="Note")])
    session = EditingSession(Table(columns=["Note"], rows=[["abc"]]), schema)
    session.update_cell(0, 0, "12")
    assert session.update_schema(0, ColumnSchema(name="Note", type=DataType.INT)).is_valid

    result = session.undo()

    assert not result.ok
    assert result.change.old_value == "abc"
    assert session.history.undo_depth == 1
    assert session.history.redo_depth == 0
    assert session.table.rows[0][0] == "12"


def test_empty_history():
    session = score_session()
    assert session.undo().message == "Nothing to undo."
    assert session.redo().message == "Nothing to redo."

# --- Tests for the Log Itself ---

def test_clear_empties_both_stacks():
    log = HistoryLog()
    log.record(CellChange(row=0, col=0, old_value="a", new_value="b"))
    log.clear()
    assert not log.can_undo and not log.can_redo
