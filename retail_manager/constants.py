APP_NAME = "Retail Manager"

DATA_DIR = "data"
DB_FILE_NAME = "retail.db"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.0.0"

# ---- Domain vocabularies ----
PAYMENT_METHODS = ("Cash", "Credit Card", "Debit Card", "PIX")
UNSPECIFIED_PAYMENT_METHOD = "Not specified"

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_SELLER = "seller"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_SELLER)

CONDITION_NEW = "new"
CONDITION_USED = "used"
ITEM_CONDITIONS = (CONDITION_NEW, CONDITION_USED)

REMOVED_PRODUCT_LABEL = "Removed product"
TOP_PRODUCTS_LIMIT = 10
DEFAULT_WARRANTY_WATCH_DAYS = 14

# ---- Printed documents ----
RECEIPT_TEMPLATE = "resources/templates/receipts/receipt.html"
WARRANTY_TERMS_FILE = "resources/templates/receipts/warranty_terms.html"
LOGO_FILE = "resources/images/logo.svg"

COMPANY_INFO = {
    "name": "True Iphones",
    "cnpj": "45.272.057/0001-88",
    "address": "Rua Bom Pastor, 2100 - Ipiranga",
    "city": "São Paulo - SP",
    "phone": "(11) 97851-3496",
}
