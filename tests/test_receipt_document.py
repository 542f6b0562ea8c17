"""
Receipt document composer.

Context building and HTML rendering only need Jinja2. Tests that produce an
actual PDF are skipped when WeasyPrint (or pango/cairo) is missing.
"""
import io
import logging

import pytest
from pypdf import PdfReader, PdfWriter

from retail_manager.database.repositories import (
    CustomersRepo,
    EmployeesRepo,
    ProductsRepo,
    ReceiptNumbersRepo,
    ReceiptsRepo,
)
from retail_manager.modules.receipts.document import (
    ReceiptDocumentComposer,
    WarrantyTermsUnavailableError,
    _read_logo_uri,
    receipt_filename,
)


def _weasyprint_available() -> bool:
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


needs_weasyprint = pytest.mark.skipif(
    not _weasyprint_available(), reason="WeasyPrint or its native libraries are not installed"
)


@pytest.fixture()
def sale(conn, seed, make_item):
    cid = seed.customer("Lucas Ferreira", cpf="98765432100")
    eid = seed.employee("Ana Seller")
    phone = seed.product(name="iPhone 14", default_price=3000.0)
    case = seed.product(name="Case", default_price=20.0)
    rid = seed.receipt(
        [make_item(phone, 1, 4500.0, imei="356789-10-123456-7"), make_item(case, 2, 50.0)],
        customer_id=cid,
        employee_id=eid,
        payment_method="Credit Card",
        installments=10,
        warranty_duration_months=6,
        created_at="2024-02-15 14:00:00",
    )
    receipt = ReceiptsRepo(conn).get_with_items(rid)
    return (
        receipt.header,
        CustomersRepo(conn).get(cid),
        receipt.items,
        EmployeesRepo(conn).get(eid),
    )


def test_filename_from_customer_and_date():
    assert receipt_filename("Lucas Ferreira", "2024-02-15 14:00:00") == "receipt Lucas Ferreira 15-02-2024.pdf"
    assert receipt_filename('A/B: "C"?', "2024-02-15") == "receipt AB C 15-02-2024.pdf"


def test_context_holds_every_section(conn, sale):
    header, customer, items, employee = sale
    ctx = ReceiptDocumentComposer.build_context(header, customer, items, employee, receipt_number=7)

    assert ctx["receipt_number"] == 7
    assert ctx["customer"] == {"name": "Lucas Ferreira", "cpf": "987.654.321-00"}
    assert ctx["date"] == "15/02/2024"
    assert ctx["employee_name"] == "Ana Seller"
    assert [i["name"] for i in ctx["items"]] == ["iPhone 14", "Case"]
    assert ctx["items"][0]["imei"] == "356789-10-123456-7"
    assert ctx["items"][1]["line_total"] == "R$ 100,00"
    assert ctx["total"] == "R$ 4.600,00"
    assert ctx["installments"] == "10 x of R$ 460,00"
    assert ctx["warranty"] == {"months": 6, "expires_at": "15/08/2024"}
    assert ctx["logo_uri"] is None


def test_single_payment_and_no_warranty(conn, sale):
    header, customer, items, employee = sale
    header.installments = 1
    header.warranty_duration_months = None
    ctx = ReceiptDocumentComposer.build_context(header, customer, items, employee, receipt_number=1)
    assert ctx["installments"] is None
    assert ctx["warranty"] is None


def test_removed_product_is_printed_with_placeholder(conn, sale):
    header, customer, items, employee = sale
    ProductsRepo(conn).delete(items[1].product_id)
    items = ReceiptsRepo(conn).list_items(header.receipt_id)
    ctx = ReceiptDocumentComposer.build_context(header, customer, items, employee, receipt_number=1)
    assert ctx["items"][1]["name"] == "Removed product"


def test_rendered_html_without_logo_is_text_only(conn, sale):
    header, customer, items, employee = sale
    composer = ReceiptDocumentComposer(conn)
    html = composer.render_html(
        composer.build_context(header, customer, items, employee, receipt_number=3)
    )
    assert "Sales Receipt" in html
    assert "Lucas Ferreira" in html
    assert "356789-10-123456-7" in html
    assert "Warranty Information" in html
    assert "Customer&#39;s signature" in html or "Customer's signature" in html
    assert "<img" not in html


def test_rendered_html_with_logo_uses_watermark(conn, sale):
    header, customer, items, employee = sale
    composer = ReceiptDocumentComposer(conn)
    uri = _read_logo_uri(composer.logo_path)
    assert uri.startswith("data:image/svg+xml;base64,")
    html = composer.render_html(
        composer.build_context(header, customer, items, employee, receipt_number=3, logo_uri=uri)
    )
    assert 'class="watermark"' in html
    assert 'class="logo"' in html


def test_missing_logo_falls_back_with_warning(tmp_path, caplog):
    with caplog.at_level(logging.WARNING):
        assert _read_logo_uri(tmp_path / "missing.png") is None
    assert "text-only" in caplog.text


def test_missing_warranty_terms_aborts_without_taking_a_number(conn, sale, tmp_path):
    header, customer, items, employee = sale
    composer = ReceiptDocumentComposer(conn, warranty_terms_path=tmp_path / "missing.html")
    with pytest.raises(WarrantyTermsUnavailableError):
        composer.compose(header, customer, items, employee)
    assert ReceiptNumbersRepo(conn).peek() == 0


@pytest.fixture()
def pdf_terms(tmp_path):
    writer = PdfWriter()
    for _ in range(2):
        writer.add_blank_page(width=200, height=300)
    path = tmp_path / "terms.pdf"
    with open(path, "wb") as fh:
        writer.write(fh)
    return path


@pytest.mark.parametrize("content", [b"", b"not a pdf at all"])
def test_unreadable_pdf_terms_abort_without_taking_a_number(conn, sale, tmp_path, content):
    header, customer, items, employee = sale
    bad = tmp_path / "terms.pdf"
    bad.write_bytes(content)
    composer = ReceiptDocumentComposer(conn, warranty_terms_path=bad)
    with pytest.raises(WarrantyTermsUnavailableError):
        composer.compose(header, customer, items, employee)
    assert ReceiptNumbersRepo(conn).peek() == 0


def test_receipt_numbers_strictly_increase(conn):
    numbers = ReceiptNumbersRepo(conn)
    assert numbers.peek() == 0
    got = [numbers.next_number() for _ in range(3)]
    assert got == [1, 2, 3]
    assert numbers.peek() == 3


@needs_weasyprint
def test_compose_produces_pdf_with_terms_pages(conn, sale, tmp_path):
    header, customer, items, employee = sale
    composer = ReceiptDocumentComposer(conn)

    first = composer.compose(header, customer, items, employee)
    second = composer.compose(header, customer, items, employee)

    assert first.content.startswith(b"%PDF")
    assert first.filename == "receipt Lucas Ferreira 15-02-2024.pdf"
    assert second.receipt_number == first.receipt_number + 1

    path = first.save(tmp_path)
    assert path.read_bytes() == first.content


@needs_weasyprint
def test_compose_without_logo_still_produces_pdf(conn, sale, tmp_path):
    header, customer, items, employee = sale
    composer = ReceiptDocumentComposer(conn, logo_path=tmp_path / "no-logo.png")
    doc = composer.compose(header, customer, items, employee)
    assert doc.content.startswith(b"%PDF")


@needs_weasyprint
def test_pdf_terms_pages_are_appended_after_the_receipt(conn, sale, pdf_terms):
    header, customer, items, employee = sale
    doc = ReceiptDocumentComposer(conn, warranty_terms_path=pdf_terms).compose(
        header, customer, items, employee
    )
    pages = PdfReader(io.BytesIO(doc.content)).pages
    assert len(pages) >= 3
    assert [float(p.mediabox.width) for p in pages[-2:]] == [200.0, 200.0]
    assert float(pages[0].mediabox.width) != 200.0
