import io
import os
import re

import pandas as pd
import requests

from surveillance_models import CSV_COLUMNS, Record, RecordSet

# Configuration
ENCODINGS = ['utf-8-sig', 'utf-8', 'latin1', 'iso-8859-1', 'cp1252', 'windows-1252', 'mac_roman']
DEFAULT_DATA_FILE = "df_cleaned.csv"
HTTP_TIMEOUT = float(os.environ.get("COVBOARD_HTTP_TIMEOUT", "30"))

# === ERRORS ==================================================================
class DashboardDataError(Exception):
    """Fatal data failure; the dashboard shows ``message`` instead of tabs."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class LoadError(DashboardDataError):
    """The CSV could not be fetched (missing file, network error, non-2xx)."""


class ParseError(DashboardDataError):
    """The CSV was fetched but is not a readable CSV document."""


# === DATA LOADING ============================================================
# Pre-compile regex patterns
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")
BOOLEAN_VALUES = {"true": True, "false": False, "TRUE": True, "FALSE": False, "True": True, "False": False}

# Get the data directory path
def get_data_path(file_name):
    """Get absolute path to data file"""
    current_dir = os.path.dirname(os.path.abspath(__file__))
    data_dir = os.path.join(current_dir, 'data')
    return os.path.join(data_dir, file_name)

def default_source():
    return os.environ.get("COVBOARD_DATA_SOURCE") or get_data_path(DEFAULT_DATA_FILE)

def is_url(source) -> bool:
    return str(source).lower().startswith(("http://", "https://"))

def coerce_cell(value):
    """Dynamic typing for cells outside the record schema."""
    if not isinstance(value, str):
        return None if pd.isna(value) else value
    text = value.strip()
    if not text:
        return None
    if text in BOOLEAN_VALUES:
        return BOOLEAN_VALUES[text]
    if INTEGER_PATTERN.match(text):
        return int(text)
    if FLOAT_PATTERN.match(text):
        return float(text)
    return value

def fetch_csv_text(url, timeout=HTTP_TIMEOUT) -> str:
    """Download CSV text over HTTP(S)."""
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise LoadError(f"Failed to load CSV file: {e}") from e
    if not 200 <= response.status_code < 300:
        raise LoadError(f"Failed to load CSV file: HTTP error! Status: {response.status_code}")
    return response.text

def read_with_encoding(file_path) -> str:
    """Read a local file with encoding fallback"""
    if not os.path.exists(file_path):
        raise LoadError(f"Failed to load CSV file: file not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise LoadError(f"Failed to load CSV file: {e}") from e

    for encoding in ENCODINGS:
        try:
            text = raw.decode(encoding)
            print(f"✅ Successfully read {os.path.basename(file_path)} with {encoding} encoding")
            return text
        except UnicodeDecodeError as e:
            print(f"Failed with encoding {encoding} for {file_path}: {e}")
            continue

    raise ParseError(f"Could not decode {file_path} with any encoding")

def parse_csv_text(text, source=None) -> RecordSet:
    """Parse CSV text (header row required) into a RecordSet.

    Rows with the wrong number of fields are skipped, not reported.
    """
    if not text or not text.strip():
        raise ParseError("Failed to parse CSV data: document is empty (a header row is required)")

    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False,
                         skip_blank_lines=True, on_bad_lines='skip')
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise ParseError(f"Failed to parse CSV data: {e}") from e

    declared = set(CSV_COLUMNS.values())
    missing = sorted(declared - set(df.columns))
    if missing:
        print(f"⚠️  Columns not found in {source or 'CSV'}: {', '.join(missing)}")

    records = []
    for row in df.to_dict("records"):
        extras = {k: coerce_cell(v) for k, v in row.items() if k not in declared}
        records.append(Record.from_row(row, extras=extras))

    skipped_fields = sum(1 for r in records if r.unparsed)
    if skipped_fields:
        print(f"⚠️  {skipped_fields} records have fields that could not be parsed")

    return RecordSet(records, source=source)

def load_records(source=None) -> RecordSet:
    """Load the surveillance CSV from a local path or an http(s) URL.

    Raises LoadError when the document cannot be fetched and ParseError when
    it cannot be read as CSV.
    """
    source = source or default_source()
    print(f"📥 Loading data from {source}...")
    text = fetch_csv_text(source) if is_url(source) else read_with_encoding(source)
    records = parse_csv_text(text, source=str(source))
    print(f"✅ Loaded {len(records):,} records")
    return records

def load_and_preprocess_data(source=None):
    """Build the dashboard data store; a failed load is recorded, not raised."""
    try:
        records = load_records(source)
        return {'records': records, 'error': None}
    except DashboardDataError as e:
        print(f"❌ Critical error loading data: {e.message}")
        return {'records': RecordSet(), 'error': e.message}

# Initialize data store (will be loaded on first access)
data_store = None

def get_data_store():
    """Helper function to access the global data store"""
    global data_store
    if data_store is None:
        data_store = load_and_preprocess_data()
    return data_store
