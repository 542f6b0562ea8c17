import os
from pathlib import Path

from .constants import DATA_DIR, DB_FILE_NAME, LOGO_FILE, RECEIPT_TEMPLATE, WARRANTY_TERMS_FILE

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR

# Environment overrides let a shop point at a shared database or its own artwork.
DB_PATH = Path(os.environ.get("RETAIL_MANAGER_DB") or DATA_PATH / DB_FILE_NAME)
LOGO_PATH = Path(os.environ.get("RETAIL_MANAGER_LOGO") or BASE_DIR / LOGO_FILE)
WARRANTY_TERMS_PATH = Path(
    os.environ.get("RETAIL_MANAGER_WARRANTY_TERMS") or BASE_DIR / WARRANTY_TERMS_FILE
)
RECEIPT_TEMPLATE_PATH = BASE_DIR / RECEIPT_TEMPLATE

# ensure data dir exists early
DB_PATH.parent.mkdir(parents=True, exist_ok=True)
