import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import UploadFile

from spreadsheet_processor import SpreadsheetProcessor, select_file
from table_renderer import DisplayGrid, build_grid, render_error, render_table
from utils.result import Result

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class DisplayTarget:
    """The table container and loading indicator shown on the page."""

    def __init__(self, container_html: str = "", loading_visible: bool = False):
        self.container_html = container_html
        self.loading_visible = loading_visible

    def show_loading(self) -> None:
        self.loading_visible = True

    def hide_loading(self) -> None:
        self.loading_visible = False

    def replace(self, content: str) -> None:
        self.container_html = content

    def clear(self) -> None:
        self.container_html = ""


class UploadController:
    """
    Drives one upload through read, decode, derive and render.

    The controller owns the DisplayTarget it draws into and can be reused
    for any number of uploads. Every selection bumps the generation; only
    the result of the latest generation reaches the display, so a slow
    earlier upload can never overwrite a newer one.

    States: IDLE -> LOADING -> IDLE (table shown) or ERROR (message shown).
    `result` is the Result behind the current display, None while loading.
    """

    def __init__(self, target: Optional[DisplayTarget] = None):
        self.target = target or DisplayTarget()
        self.state = UploadState.IDLE
        self.generation = 0
        self.grid: Optional[DisplayGrid] = None
        self.error: Optional[str] = None
        self.result: Optional[Result[DisplayGrid]] = None

    async def handle_upload(self, upload: Optional[UploadFile]) -> Optional[Result[DisplayGrid]]:
        """
        Process a file selection.

        Args:
            upload: The selected file, or None when nothing was selected

        Returns:
            The pipeline Result, or None when there was nothing to do
        """
        selected = select_file(upload)
        if selected is None:
            logger.info("No file selected, display unchanged")
            return None

        self.generation += 1
        generation = self.generation
        request_id = str(uuid.uuid4())[:8]
        logger.info(
            "Upload started",
            extra={"request_id": request_id, "file_name": selected.filename, "generation": generation}
        )
        self._enter_loading()

        try:
            try:
                result = await self._run_pipeline(selected, request_id)
            except Exception as e:
                logger.exception("Unexpected error while handling upload", extra={"request_id": request_id})
                result = Result.server_error(f"Processing error: {str(e)}")

            if generation != self.generation:
                logger.info(
                    "Discarding result of superseded upload",
                    extra={"request_id": request_id, "generation": generation, "latest_generation": self.generation}
                )
                return result

            self.result = result
            result.on_success(self._show_grid).on_failure(self._show_error)
            return result
        finally:
            if generation == self.generation:
                self.target.hide_loading()

    async def _run_pipeline(self, upload: UploadFile, request_id: str) -> Result[DisplayGrid]:
        acquired = await SpreadsheetProcessor.acquire(upload, request_id=request_id)
        return acquired.and_then(
            lambda buffer: SpreadsheetProcessor.process_buffer(buffer, request_id=request_id)
        ).map(build_grid)

    def _enter_loading(self) -> None:
        self.state = UploadState.LOADING
        self.grid = None
        self.error = None
        self.result = None
        self.target.show_loading()
        self.target.clear()

    def _show_grid(self, grid: DisplayGrid) -> None:
        self.state = UploadState.IDLE
        self.grid = grid
        self.error = None
        self.target.replace(render_table(grid))

    def _show_error(self, message: str) -> None:
        self.state = UploadState.ERROR
        self.grid = None
        self.error = message
        self.target.replace(render_error(message))

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "loading": self.target.loading_visible,
            "generation": self.generation,
            "headers": self.grid.headers if self.grid else [],
            "total_rows": self.grid.total_rows if self.grid else 0,
            "error": self.error,
        }
