import io
import logging
import time
import uuid
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd
from fastapi import UploadFile

from utils.result import Result

logger = logging.getLogger(__name__)

AGE_COLUMN = "Age"
AGE_GROUP_COLUMN = "AgeGroup"
AGE_THRESHOLD = 30
AGE_GROUP_SENIOR = "30+"
AGE_GROUP_JUNIOR = "Under 30"


class SpreadsheetError(Exception):
    """Base class for errors raised while turning an upload into records."""


class ReadError(SpreadsheetError):
    """The uploaded file could not be read or was empty."""


class DecodeError(SpreadsheetError):
    """The uploaded bytes are not a workbook the decoder understands."""


class LogContext:
    """Context manager for tracking and logging pipeline step timings"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.pop('request_id', None) or str(uuid.uuid4())[:8]
        self.extra = kwargs

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": duration, **self.extra},
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            logger.info(
                f"Completed {self.operation_name} in {duration:.2f}s",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )


class RecordSet:
    """
    Ordered rows decoded from one sheet.

    Each record maps column name to value; empty cells are simply missing
    from the record. The set is treated as immutable: transformations
    return a new RecordSet.
    """

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        self._records: List[Dict[str, Any]] = [dict(record) for record in records or []]

    @property
    def columns(self) -> List[str]:
        """Column names in the order they are first seen across the records."""
        seen: Dict[str, None] = {}
        for record in self._records:
            for name in record:
                seen.setdefault(name, None)
        return list(seen)

    def with_column(self, name: str, values: Sequence[Any]) -> "RecordSet":
        """Return a copy with one value per record stored under `name`."""
        if len(values) != len(self._records):
            raise ValueError(f"Expected {len(self._records)} values for column {name!r}, got {len(values)}")
        return RecordSet({**record, name: value} for record, value in zip(self._records, values))

    def to_list(self) -> List[Dict[str, Any]]:
        return [dict(record) for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self._records[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RecordSet):
            return NotImplemented
        return self._records == other._records and self.columns == other.columns

    def __repr__(self) -> str:
        return f"RecordSet(columns={self.columns!r}, rows={len(self)})"


def select_file(upload: Optional[UploadFile]) -> Optional[UploadFile]:
    """Return the selected upload, or None when the picker was cancelled."""
    if upload is None or not upload.filename:
        return None
    return upload


async def read_upload(upload: UploadFile) -> bytes:
    """
    Read the whole uploaded file into memory.

    Raises:
        ReadError: if reading fails or the file has no content
    """
    try:
        buffer = await upload.read()
    except Exception as e:
        logger.error("Upload read failed", extra={"file_name": upload.filename, "error": str(e)})
        raise ReadError("Failed to read file") from e
    finally:
        await upload.close()

    if not buffer:
        raise ReadError("Failed to read file content")
    return buffer


def _normalize_value(value: Any) -> Any:
    # Spreadsheet numbers are doubles; whole values are shown without ".0"
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def decode_workbook(buffer: bytes) -> RecordSet:
    """
    Decode the first sheet of a workbook into a RecordSet.

    The first row is used as the header. Only truly empty cells are
    treated as missing, so text such as "NA" survives as-is.

    Args:
        buffer: Raw bytes of an .xlsx or .xls file

    Returns:
        RecordSet with one record per data row

    Raises:
        DecodeError: if the bytes are not a recognized spreadsheet
    """
    try:
        df = pd.read_excel(
            io.BytesIO(buffer),
            sheet_name=0,
            header=0,
            keep_default_na=False,
            na_values=[""],
        )
    except Exception as e:
        raise DecodeError(str(e) or type(e).__name__) from e

    columns = [str(col) for col in df.columns]
    records = []
    for row in df.itertuples(index=False, name=None):
        record = {
            name: _normalize_value(value)
            for name, value in zip(columns, row)
            if not pd.isna(value)
        }
        # Blank rows are not data rows
        if record:
            records.append(record)

    logger.info(
        "Decoded first sheet",
        extra={"row_count": len(records), "column_count": len(columns)}
    )
    return RecordSet(records)


def derive_age_group(record_set: RecordSet) -> RecordSet:
    """
    Add an "AgeGroup" column when the records carry an "Age" column.

    Age is coerced to a number; missing or non-numeric ages count as
    "Under 30".
    """
    if AGE_COLUMN not in record_set.columns:
        return record_set

    ages = pd.to_numeric(
        pd.Series([record.get(AGE_COLUMN) for record in record_set], dtype=object),
        errors="coerce",
    )
    groups = np.where(ages >= AGE_THRESHOLD, AGE_GROUP_SENIOR, AGE_GROUP_JUNIOR).tolist()
    return record_set.with_column(AGE_GROUP_COLUMN, groups)


def build_sample_workbook() -> bytes:
    """Build the small workbook offered as a download on the page."""
    df = pd.DataFrame({
        "Name": ["Ann", "Bo", "Carla", "Dev"],
        "Age": [25, 41, 30, 19],
        "City": ["Lisbon", "Oslo", "Lima", "Pune"],
    })
    output = io.BytesIO()
    df.to_excel(output, index=False, sheet_name="People", engine="openpyxl")
    return output.getvalue()


class SpreadsheetProcessor:
    """
    Runs the upload pipeline steps and reports each outcome as a Result.

    - acquire: read the uploaded bytes
    - process_buffer: decode the first sheet and derive computed columns
    """

    @staticmethod
    async def acquire(upload: UploadFile, request_id: Optional[str] = None) -> Result[bytes]:
        log_context = {"request_id": request_id, "file_name": upload.filename}
        try:
            with LogContext("file read", **log_context):
                buffer = await read_upload(upload)
        except ReadError as e:
            logger.warning(f"File read failed: {e}", extra={"file_name": upload.filename})
            return Result.read_error(str(e))
        return Result.ok(buffer)

    @staticmethod
    def process_buffer(buffer: bytes, request_id: Optional[str] = None) -> Result[RecordSet]:
        """
        Decode a workbook buffer and apply the column derivation.

        Args:
            buffer: Raw workbook bytes
            request_id: Identifier used to correlate log lines

        Returns:
            Result[RecordSet]: the derived records, or a decode/server error
        """
        log_context = {"request_id": request_id, "byte_count": len(buffer)}
        try:
            with LogContext("workbook decode", **log_context):
                record_set = decode_workbook(buffer)
            with LogContext("column derivation", **log_context):
                record_set = derive_age_group(record_set)
        except DecodeError as e:
            logger.warning(f"Workbook decode failed: {e}", extra={"byte_count": len(buffer)})
            return Result.decode_error(str(e))
        except Exception as e:
            logger.exception("Unexpected error during workbook processing", extra={"error": str(e)})
            return Result.server_error(f"Processing error: {str(e)}")

        logger.info(
            f"Processed workbook with {len(record_set)} rows",
            extra={"columns": record_set.columns}
        )
        return Result.ok(record_set)
