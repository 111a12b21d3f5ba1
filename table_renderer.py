import html
import logging
from typing import Any, List

from pydantic import BaseModel

from spreadsheet_processor import RecordSet

logger = logging.getLogger(__name__)


class DisplayGrid(BaseModel):
    """
    Header and stringified body cells ready for display.

    Attributes:
        headers: Column names in display order
        rows: One list of cell strings per record, each as long as headers
    """
    headers: List[str] = []
    rows: List[List[str]] = []

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def build_grid(record_set: RecordSet) -> DisplayGrid:
    """
    Project a RecordSet onto a DisplayGrid.

    Records missing a column get an empty cell so every row lines up with
    the header.
    """
    headers = record_set.columns
    rows = [[format_cell(record.get(col)) for col in headers] for record in record_set]
    return DisplayGrid(headers=headers, rows=rows)


def render_table(grid: DisplayGrid) -> str:
    header_cells = "".join(f"<th>{html.escape(col)}</th>" for col in grid.headers)
    body_rows = [
        "<tr>" + "".join(f"<td>{html.escape(cell)}</td>" for cell in row) + "</tr>"
        for row in grid.rows
    ]
    logger.debug("Rendering table", extra={"column_count": len(grid.headers), "row_count": grid.total_rows})
    return (
        "<table>\n"
        f"\t<thead>\n\t<tr>{header_cells}</tr>\n\t</thead>\n"
        "\t<tbody>\n" + "\n".join(f"\t{row}" for row in body_rows) + "\n\t</tbody>\n"
        "</table>"
    )


def render_error(message: str) -> str:
    return f'<p class="error">Error: {html.escape(message)}</p>'
