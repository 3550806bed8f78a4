from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from tessera.config import settings
from tessera.core.export import export_session
from tessera.core.ingestion import create_sample_workspace, load_file
from tessera.core.session import EditingSession
from tessera.models import ColumnSchema
from tessera.utils.exceptions import AppException, NoActiveSessionError
from tessera.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs"
)

# The editing session lives on app.state; None until a file is uploaded.
app.state.session = None

# Parsed documents are left out of JSON edit responses.
ECHOED_DOCUMENT = {"validation": {"document"}}


# --- Request Bodies ---

class CellEdit(BaseModel):
    row: int
    col: int
    value: Optional[str] = None


class RenameRequest(BaseModel):
    name: str


class JsonText(BaseModel):
    text: str


# --- Helpers ---

def get_session(request: Request) -> EditingSession:
    session = request.app.state.session
    if session is None:
        raise NoActiveSessionError()
    return session


def describe_session(session: EditingSession) -> dict:
    return {
        "rows": session.table.row_count,
        "headers": session.table.columns,
        "columns": session.schema.model_dump(mode="json")["columns"],
        "table": session.table.rows,
        "json": session.json.to_python(),
        "can_undo": session.history.can_undo,
        "can_redo": session.history.can_redo,
    }


def result_response(result: BaseModel, ok: bool, exclude: Optional[dict] = None) -> JSONResponse:
    """Rejected mutations answer 422 with the full result so clients can show every error."""
    return JSONResponse(status_code=200 if ok else 422, content=result.model_dump(mode="json", exclude=exclude))


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "detail": exc.message})


# --- Endpoints ---

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "message": f"{settings.APP_NAME} API is running"}


@app.post("/upload")
async def upload_file(request: Request, file: UploadFile = File(...)):
    """
    Uploads a delimited text or JSON file and starts a new editing session.
    """
    logger.info(f"Received file upload: {file.filename}")
    content = await file.read()

    session = load_file(content, file.filename or "upload.csv")
    request.app.state.session = session

    return {
        "message": "File uploaded and processed successfully.",
        "filename": file.filename,
        **describe_session(session),
    }


@app.post("/sample")
async def load_sample(request: Request, rows: int = 50):
    """Replaces the current session with the generated sample workspace."""
    request.app.state.session = create_sample_workspace(rows)
    return describe_session(request.app.state.session)


@app.get("/session")
async def read_session(request: Request):
    return describe_session(get_session(request))


@app.patch("/cells")
async def edit_cell(request: Request, edit: CellEdit):
    result = get_session(request).update_cell(edit.row, edit.col, edit.value)
    return result_response(result, result.is_valid)


@app.put("/schema/{col}")
async def change_column_schema(request: Request, col: int, candidate: ColumnSchema):
    report = get_session(request).update_schema(col, candidate)
    return result_response(report, report.is_valid)


@app.post("/columns/{col}/rename")
async def rename_column(request: Request, col: int, body: RenameRequest):
    if not get_session(request).rename_column(col, body.name):
        raise AppException("Column index is out of range.", status_code=404)
    return {"col": col, "name": body.name}


@app.post("/json/validate")
async def validate_json_text(request: Request, body: JsonText):
    """
    Validates edited JSON and returns the diff against the current data
    without applying anything.
    """
    result = get_session(request).preview_json_text(body.text)
    return result.model_dump(mode="json", exclude=ECHOED_DOCUMENT)


@app.post("/json/commit")
async def commit_json_text(request: Request, body: JsonText):
    result = get_session(request).apply_json_text(body.text)
    return result_response(result, result.applied, exclude=ECHOED_DOCUMENT)


@app.post("/undo")
async def undo(request: Request):
    result = get_session(request).undo()
    return result_response(result, result.ok)


@app.post("/redo")
async def redo(request: Request):
    result = get_session(request).redo()
    return result_response(result, result.ok)


@app.get("/export")
async def export(request: Request, format: str = "csv"):
    text = export_session(get_session(request), format)
    media_type = "application/json" if format.lower() == "json" else "text/csv"
    return PlainTextResponse(text, media_type=media_type)
