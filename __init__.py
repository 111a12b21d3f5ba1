"""
Excel Data Viewer

This package serves a small web page that reads an uploaded spreadsheet,
turns its first sheet into records, adds an AgeGroup column when an Age
column is present and shows the result as an HTML table.

Key modules:
- main.py: FastAPI application with the page and API endpoints
- upload_controller.py: Upload state machine owning the displayed content
- spreadsheet_processor.py: Reading, decoding and column derivation
- table_renderer.py: DisplayGrid construction and HTML rendering
- utils/result.py: Result pattern implementation for error handling
"""
