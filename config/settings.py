import os
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Data files
DATA_DIR = PROJECT_ROOT / "data"
EXCEL_FILE = Path(os.getenv("EMI_TRACKER_DATA_FILE", str(DATA_DIR / "emi_tracker.xlsx")))
BACKUP_KEEP = 5

# Logging
LOG_LEVEL = os.getenv("EMI_TRACKER_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("EMI_TRACKER_LOG_FORMAT", "standard")

# Loan input limits
MAX_INTEREST_RATE = 100.0
DEFAULT_INTEREST_RATE = 8.5
DEFAULT_TENURE_MONTHS = 240

# Currency
CURRENCY_SYMBOL = "₹"
AMOUNT_PRECISION = 2

# Page configuration
PAGE_TITLE = "EMI Tracker"
PAGE_ICON = "💳"
LAYOUT = "wide"

# Chart colours
COLORS = {
    "primary": "#1f77b4",
    "principal": "#1f77b4",
    "interest": "#ff7f0e",
    "outstanding": "#2ca02c",
    "paid": "#2ca02c",
    "upcoming": "#17becf",
    "pending": "#bcbd22",
    "modified": "#d62728",
}
