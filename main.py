from fastapi import FastAPI, Depends, File, Request, UploadFile
import html
import os
import logging
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from spreadsheet_processor import build_sample_workbook
from upload_controller import DisplayTarget, UploadController


# Create logs directory if it doesn't exist
LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# File picker filter and sample download
ACCEPTED_EXTENSIONS = ".xlsx,.xls"
SAMPLE_FILE_NAME = "sample-data.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file
log_file_path = os.path.join(LOG_DIR, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
logger.addHandler(file_handler)


class UploadResponse(BaseModel):
    """
    JSON view of the display after an upload.

    Attributes:
        success: Whether the latest upload produced a table
        status_code: HTTP status code of the response
        status: HTTP status description
        state: Controller state (idle, loading, error)
        headers: Column headers of the displayed table
        rows: 2D array of displayed cell strings
        total_rows: Number of displayed rows
        error: Error message if unsuccessful
        superseded: True when a newer upload replaced this request's result on the display
    """
    success: bool
    status_code: Optional[int] = 200
    status: Optional[str] = "OK"
    state: str
    headers: List[str] = []
    rows: List[List[str]] = []
    total_rows: int = 0
    error: Optional[str] = None
    superseded: bool = False


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Excel Data Viewer",
    description="Upload a spreadsheet and view its first sheet as a table",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One controller for the lifetime of the app; handlers receive it via get_controller.
# The viewer is a single-session tool: every client shares this display, so concurrent
# users see each other's uploads.
app.state.controller = UploadController(DisplayTarget())


def get_controller(request: Request) -> UploadController:
    """
    Return the app-wide controller.

    There is one display per app, not per client; two users uploading at the
    same time replace each other's table.
    """
    return request.app.state.controller


def build_upload_response(controller: UploadController, superseded: bool = False) -> UploadResponse:
    """
    Describe what the controller currently displays.

    Args:
        controller: Controller whose displayed Result is reported
        superseded: Whether the calling request's own upload was replaced by a newer one

    Returns:
        UploadResponse: Status, table and error all taken from the displayed upload
    """
    shown = controller.result
    if shown is None:
        # Nothing uploaded yet, or a newer upload is still loading
        return UploadResponse(success=True, state=controller.state.value, superseded=superseded)

    body = shown.to_dict()
    body.pop("data", None)
    grid = shown.unwrap()
    return UploadResponse(
        **body,
        state=controller.state.value,
        headers=grid.headers if grid else [],
        rows=grid.rows if grid else [],
        total_rows=grid.total_rows if grid else 0,
        superseded=superseded,
    )


def render_page(controller: UploadController) -> str:
    """
    Render the viewer page around the controller's current display.

    Args:
        controller: Controller whose DisplayTarget supplies the table/error and loading state

    Returns:
        str: Full HTML document
    """
    target = controller.target
    loading_style = "block" if target.loading_visible else "none"
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Excel Data Viewer</title>
</head>
<body>
<div id="app">
<h1>Excel Data Viewer</h1>
<form action="/upload" method="post" enctype="multipart/form-data">
<input type="file" id="excel-upload" name="file" accept="{html.escape(ACCEPTED_EXTENSIONS)}" style="margin-bottom: 20px" onchange="document.getElementById('loading').style.display='block'; this.form.submit()">
</form>
<p id="loading" style="display: {loading_style}">Loading data...</p>
<div id="table-container">{target.container_html}</div>
<a href="/{SAMPLE_FILE_NAME}" style="display: block; margin-top: 10px">Download Sample Excel File</a>
</div>
</body>
</html>"""


# API Endpoints
@app.get("/", response_class=HTMLResponse, tags=["Viewer"])
async def index(controller: UploadController = Depends(get_controller)):
    """Serve the viewer page with whatever the last upload displayed."""
    return render_page(controller)


@app.post("/upload", response_class=HTMLResponse, tags=["Viewer"])
async def upload_page(
    file: Optional[UploadFile] = File(None),
    controller: UploadController = Depends(get_controller)
):
    """
    Handle a file picked on the page and return the updated page.

    A submission without a file leaves the display as it was.
    """
    await controller.handle_upload(file)
    return render_page(controller)


@app.post("/api/upload", response_model=UploadResponse, tags=["Excel Processing"])
async def upload_api(
    file: Optional[UploadFile] = File(None),
    controller: UploadController = Depends(get_controller)
):
    """
    Process an uploaded spreadsheet and return the displayed table as JSON.

    Returns:
        UploadResponse with the table on success, or the error message with
        400 (unreadable file), 422 (not a spreadsheet) or 500 (unexpected error).
    """
    result = await controller.handle_upload(file)
    if result is None:
        logger.info("Upload API called without a file")
    superseded = result is not None and result is not controller.result
    if superseded:
        logger.info("Upload was superseded, reporting the displayed upload instead")

    response = build_upload_response(controller, superseded=superseded)
    return JSONResponse(status_code=response.status_code, content=response.model_dump())


@app.get("/api/state", tags=["Viewer"])
async def get_state(controller: UploadController = Depends(get_controller)):
    """Current controller state, loading flag and displayed table summary."""
    return controller.snapshot()


@app.get(f"/{SAMPLE_FILE_NAME}", tags=["Viewer"])
async def download_sample():
    """Download a small workbook with Name, Age and City columns."""
    logger.info("Serving sample workbook")
    return Response(
        content=build_sample_workbook(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{SAMPLE_FILE_NAME}"'}
    )


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Excel Data Viewer in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
