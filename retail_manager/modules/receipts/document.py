# retail_manager/modules/receipts/document.py
"""
Printable receipt: a Jinja2 HTML template rendered to PDF by WeasyPrint,
followed by every page of the store's warranty terms.

The warranty terms are mandatory. They are either an HTML document rendered
with the receipt's page setup, or a ready-made PDF whose pages are copied in
as they are. If they cannot be read, nothing is produced.
The logo is optional. If it cannot be read, the receipt is laid out as text only.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
import io
import logging
import mimetypes
from pathlib import Path
import re
import sqlite3
from typing import Iterable, Optional, Union

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from ... import config
from ...constants import COMPANY_INFO, REMOVED_PRODUCT_LABEL
from ...database.repositories.customers_repo import Customer
from ...database.repositories.employees_repo import Employee
from ...database.repositories.receipt_numbers_repo import ReceiptNumbersRepo
from ...database.repositories.receipts_repo import ReceiptHeader, ReceiptItem
from ...utils.helpers import fmt_date, fmt_money, to_date
from .calculations import line_total

_log = logging.getLogger(__name__)

# Characters Windows/macOS/Linux refuse in file names, plus control chars.
_RESERVED_RX = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class DocumentError(Exception):
    """Base class for receipt document failures."""


class WarrantyTermsUnavailableError(DocumentError):
    pass


class TemplateUnavailableError(DocumentError):
    pass


class PdfEngineUnavailableError(DocumentError):
    pass


@dataclass
class ComposedDocument:
    filename: str
    content: bytes
    receipt_number: int

    def save(self, directory: str | Path) -> Path:
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.filename
        path.write_bytes(self.content)
        return path


def receipt_filename(customer_name: str, sale_date) -> str:
    """'receipt <customer> <dd-mm-yyyy>.pdf' with reserved characters removed."""
    name = _RESERVED_RX.sub("", customer_name or "").strip()
    name = re.sub(r"\s+", " ", name) or "customer"
    return f"receipt {name} {to_date(sale_date).strftime('%d-%m-%Y')}.pdf"


def _read_logo_uri(path: Optional[Path]) -> Optional[str]:
    """Logo as a data: URI, or None (with a warning) when it cannot be read."""
    if path is None:
        return None
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        _log.warning("logo %s unavailable, using text-only layout: %s", path, e)
        return None
    if not data:
        _log.warning("logo %s is empty, using text-only layout", path)
        return None
    mime = mimetypes.guess_type(str(path))[0] or "image/png"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _append_pdf(first: bytes, extra: bytes) -> tuple[bytes, int]:
    """Pages of `first` followed by every page of `extra`; returns (pdf, pages added)."""
    writer = PdfWriter()
    for page in PdfReader(io.BytesIO(first)).pages:
        writer.add_page(page)
    added = PdfReader(io.BytesIO(extra)).pages
    for page in added:
        writer.add_page(page)
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue(), len(added)


class ReceiptDocumentComposer:
    # Page setup shared by the receipt and the warranty terms
    _RECEIPT_PDF_CSS = '''
        @page {
            margin: 12mm;
            size: A4;
        }
        body {
            margin: 0 !important;
            padding: 0 !important;
            width: 100% !important;
        }
    '''

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        template_path: str | Path | None = None,
        logo_path: str | Path | None = None,
        warranty_terms_path: str | Path | None = None,
    ):
        self.numbers = ReceiptNumbersRepo(conn)
        self.template_path = Path(template_path or config.RECEIPT_TEMPLATE_PATH)
        self.logo_path = Path(logo_path) if logo_path is not None else config.LOGO_PATH
        self.warranty_terms_path = Path(warranty_terms_path or config.WARRANTY_TERMS_PATH)

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #
    def _load_template(self):
        from jinja2 import Template, TemplateSyntaxError

        try:
            content = self.template_path.read_text(encoding="utf-8")
        except OSError as e:
            _log.error("receipt template missing at %s", self.template_path)
            raise TemplateUnavailableError(
                f"Receipt template not found at: {self.template_path}"
            ) from e
        try:
            return Template(content, autoescape=True)
        except TemplateSyntaxError as e:
            raise TemplateUnavailableError(f"Receipt template is invalid: {e}") from e

    def _load_warranty_terms(self) -> Union[str, bytes]:
        """HTML text, or the raw bytes of a .pdf terms file."""
        path = self.warranty_terms_path
        is_pdf = path.suffix.lower() == ".pdf"
        try:
            content = path.read_bytes() if is_pdf else path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _log.error("warranty terms missing at %s", path)
            raise WarrantyTermsUnavailableError(
                "Could not load the warranty terms document; the receipt was not generated."
            ) from e
        if not content.strip():
            raise WarrantyTermsUnavailableError(
                "The warranty terms document is empty; the receipt was not generated."
            )
        if is_pdf:
            try:
                pages = len(PdfReader(io.BytesIO(content)).pages)
            except (PdfReadError, ValueError) as e:
                _log.error("warranty terms at %s are not a readable PDF: %s", path, e)
                raise WarrantyTermsUnavailableError(
                    "The warranty terms PDF could not be read; the receipt was not generated."
                ) from e
            if not pages:
                raise WarrantyTermsUnavailableError(
                    "The warranty terms PDF has no pages; the receipt was not generated."
                )
        return content

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #
    @staticmethod
    def build_context(
        receipt: ReceiptHeader,
        customer: Customer,
        items: Iterable[ReceiptItem],
        employee: Employee | None,
        *,
        receipt_number: int,
        logo_uri: Optional[str] = None,
    ) -> dict:
        lines = [
            {
                "name": it.product_name or REMOVED_PRODUCT_LABEL,
                "imei": it.imei or "",
                "quantity": it.quantity,
                "unit_price": fmt_money(it.price),
                "line_total": fmt_money(line_total(it)),
            }
            for it in items
        ]
        installments = int(receipt.installments or 1)
        months = receipt.warranty_duration_months or 0
        warranty = None
        if months > 0:
            warranty = {
                "months": months,
                "expires_at": fmt_date(receipt.warranty_expires_at) if receipt.warranty_expires_at else "",
            }
        return {
            "company": COMPANY_INFO,
            "logo_uri": logo_uri,
            "receipt_number": receipt_number,
            "customer": {"name": customer.full_name, "cpf": customer.cpf or ""},
            "date": fmt_date(receipt.created_at),
            "employee_name": employee.full_name if employee else "",
            "items": lines,
            "payment_method": receipt.payment_method,
            "installments": (
                f"{installments} x of {fmt_money(receipt.installment_value)}" if installments > 1 else None
            ),
            "total": fmt_money(receipt.total_amount),
            "warranty": warranty,
        }

    def render_html(self, context: dict) -> str:
        return self._load_template().render(**context)

    def _pdf_engine(self):
        try:
            from weasyprint import CSS, HTML
        except (ImportError, OSError) as e:
            # OSError: native libraries (pango/cairo) missing
            raise PdfEngineUnavailableError(
                "WeasyPrint is not available. Please install WeasyPrint: pip install weasyprint"
            ) from e
        return HTML, CSS

    def compose(
        self,
        receipt: ReceiptHeader,
        customer: Customer,
        items: Iterable[ReceiptItem],
        employee: Employee | None,
    ) -> ComposedDocument:
        items = list(items)
        # Everything that can fail is loaded before a number is taken.
        terms = self._load_warranty_terms()
        template = self._load_template()
        HTML, CSS = self._pdf_engine()

        number = self.numbers.next_number()
        context = self.build_context(
            receipt,
            customer,
            items,
            employee,
            receipt_number=number,
            logo_uri=_read_logo_uri(self.logo_path),
        )
        html_content = template.render(**context)

        page_css = CSS(string=self._RECEIPT_PDF_CSS)
        receipt_doc = HTML(string=html_content, base_url=str(self.template_path.parent)).render(
            stylesheets=[page_css]
        )
        if isinstance(terms, bytes):
            content, terms_pages = _append_pdf(receipt_doc.write_pdf(), terms)
        else:
            terms_doc = HTML(string=terms, base_url=str(self.warranty_terms_path.parent)).render(
                stylesheets=[page_css]
            )
            merged = receipt_doc.copy([page for doc in (receipt_doc, terms_doc) for page in doc.pages])
            content, terms_pages = merged.write_pdf(), len(terms_doc.pages)

        _log.info(
            "receipt %s composed as no. %d (%d + %d page(s))",
            receipt.receipt_id, number, len(receipt_doc.pages), terms_pages,
        )
        return ComposedDocument(
            filename=receipt_filename(customer.full_name, receipt.created_at),
            content=content,
            receipt_number=number,
        )
