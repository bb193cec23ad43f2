"""
config.py

Configuration module for the DocScan pipeline.

Purpose:
--------
Contains all constants and settings used across the package, including
the recognition service endpoint, preprocessing limits, throttling,
aggregation markers, document styling and security limits.

Design Principle:
-----------------
Configuration is isolated from business logic.
Changing limits, markers or styling should not require editing
core pipeline code. Deployment-specific values come from the environment.
"""

import os

# -----------------------------
# Recognition service
# -----------------------------
API_BASE_URL = os.getenv("OCR_API_BASE_URL", "https://api.openai.com/v1/")
API_KEY = os.getenv("OCR_API_KEY")
MODEL_NAME = os.getenv("OCR_MODEL_NAME", "gpt-4o-mini")
REQUEST_TIMEOUT = float(os.getenv("OCR_REQUEST_TIMEOUT", "120"))
OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", "Bengali")
MAX_TOKENS = 4096
TEMPERATURE = 0.0

RECOGNITION_PROMPT = (
    "Extract all {language} and English text from this image exactly as it appears. "
    "Preserve the reading order and line breaks. "
    "Render every table as a Markdown pipe table: one header row, then a "
    "separator row such as |---|---|, then one line per table row. "
    "Mark section titles with ## (use ### for sub-sections). "
    "Return only the extracted text, with no commentary and no code fences."
)

# HTTP statuses compared exactly against the status of a failed call.
RATE_LIMIT_STATUS_CODES = [429]
QUOTA_STATUS_CODES = [402]

# Substrings looked up (case-sensitive) in the error text of a failed call.
# Quota is checked first: some services report exhausted credits as 429.
RATE_LIMIT_MARKERS = ["Rate limit", "rate limit", "rate_limit", "Too Many Requests"]
QUOTA_MARKERS = [
    "insufficient_quota",
    "Payment required",
    "Payment Required",
    "Insufficient credits",
    "insufficient credits",
    "Not enough credits",
    "not enough credits",
]

# -----------------------------
# Rasterization
# -----------------------------
TARGET_DPI = 200

# -----------------------------
# Preprocessing
# -----------------------------
MAX_IMAGE_DIMENSION = 1600
IMAGE_QUALITY = 0.85

# -----------------------------
# Orchestration
# -----------------------------
INTER_PAGE_DELAY_SECONDS = 2.0
SINGLE_ABORT_SCOPE = "page"  # page | item
BATCH_ABORT_SCOPE = "item"  # page | item

PAGE_BREAK_MARKER = "--- Page Break ---"
PAGE_SEPARATOR = "\n\n" + PAGE_BREAK_MARKER + "\n\n"
FAILED_PAGE_TEMPLATE = "[Page {page} failed to process]"
NO_TEXT_MESSAGE = "No text found"
CANCELLED_MESSAGE = "Cancelled"

# -----------------------------
# Document export
# -----------------------------
DOCUMENT_EXTENSION = ".docx"
DOCUMENT_FONT = os.getenv("DOCSCAN_FONT", "Nirmala UI")

# Sizes are in half-points (24 == 12pt)
BODY_FONT_SIZE = 24
TABLE_HEADER_FONT_SIZE = 24
TABLE_BODY_FONT_SIZE = 22
HEADER_PRIMARY_FONT_SIZE = 32
HEADER_SECONDARY_FONT_SIZE = 28

# Spacing is in twips (20 == 1pt)
PARAGRAPH_SPACING_AFTER = 200
HEADER_SPACING_BEFORE = 240
HEADER_SPACING_AFTER = 120
TABLE_SPACING_AFTER = 200

EMPTY_PARAGRAPH_PLACEHOLDER = " "

# -----------------------------
# Archive
# -----------------------------
ARCHIVE_NAME = "extracted-documents.zip"

# -----------------------------
# Security
# -----------------------------
MAX_FILE_SIZE_MB = 50
IMAGE_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tiff", ".tif", ".bmp", ".webp", ".gif"]
PDF_EXTENSIONS = [".pdf"]
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS + PDF_EXTENSIONS
