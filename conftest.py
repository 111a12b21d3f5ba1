"""
Pytest configuration file.

Puts the project root on the Python path so the flat modules
(main, upload_controller, spreadsheet_processor, ...) import the same way
in tests as they do when the app runs, and provides the workbook factory
shared by the test modules.
"""
import io
import os
import sys

import pandas as pd
import pytest

sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))


@pytest.fixture
def make_workbook():
    """
    Fixture returning a factory that writes DataFrames to .xlsx bytes.

    Pass one DataFrame for a single-sheet workbook, or a dict of
    sheet name -> DataFrame for several sheets (in insertion order).
    """
    def _make(frames, sheet_name="Sheet1"):
        if isinstance(frames, pd.DataFrame):
            frames = {sheet_name: frames}
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            for name, df in frames.items():
                df.to_excel(writer, sheet_name=name, index=False)
        return output.getvalue()
    return _make
