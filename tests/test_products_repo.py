import pytest

from retail_manager.database.repositories.products_repo import ProductsRepo
from retail_manager.database.repositories.errors import DomainError


def test_create_and_get(conn):
    repo = ProductsRepo(conn)
    pid = repo.create(" iPhone 13 ", "IP13-128-BLU", 3200, memory="128GB", color="Blue")
    p = repo.get(pid)
    assert p.name == "iPhone 13"
    assert p.default_price == pytest.approx(3200.0)
    assert p.display_name == "iPhone 13 128GB Blue"


def test_duplicate_code_blocked(conn):
    repo = ProductsRepo(conn)
    repo.create("A", "CODE-1", 10)
    with pytest.raises(DomainError):
        repo.create("B", "CODE-1", 20)


def test_negative_price_and_missing_fields_rejected(conn):
    repo = ProductsRepo(conn)
    with pytest.raises(DomainError):
        repo.create("A", "C-1", -1)
    with pytest.raises(DomainError):
        repo.create("", "C-2", 1)
    with pytest.raises(DomainError):
        repo.create("A", "  ", 1)
    assert repo.list_products() == []


def test_update_allows_same_code_on_same_product(conn):
    repo = ProductsRepo(conn)
    pid = repo.create("A", "C-1", 10)
    repo.update(pid, "A2", "C-1", 15, color="Black")
    p = repo.get(pid)
    assert (p.name, p.default_price, p.color) == ("A2", 15.0, "Black")


def test_search_by_name_or_code(conn):
    repo = ProductsRepo(conn)
    repo.create("iPhone 12", "IP12", 1)
    repo.create("Charger", "CHG-20W", 1)
    assert [p.name for p in repo.search("iphone")] == ["iPhone 12"]
    assert [p.name for p in repo.search("chg")] == ["Charger"]


def test_hard_delete_keeps_sold_items(conn, seed, make_item):
    repo = ProductsRepo(conn)
    pid = repo.create("Old Model", "OLD-1", 500)
    seed.receipt([make_item(pid, price=800)])
    assert repo.is_sold(pid)

    repo.delete(pid)

    assert repo.get(pid) is None
    row = conn.execute("SELECT COUNT(*) FROM receipt_items WHERE product_id=?", (pid,)).fetchone()
    assert row[0] == 1


def test_sold_between_only_returns_products_on_receipts_in_window(conn, seed, make_item):
    repo = ProductsRepo(conn)
    inside, outside, unsold = seed.product(), seed.product(), seed.product()
    seed.receipt([make_item(inside)], created_at="2024-01-10 10:00:00")
    seed.receipt([make_item(outside)], created_at="2024-02-01 00:00:00")
    gone = seed.product()
    seed.receipt([make_item(gone)], created_at="2024-01-20 10:00:00")
    repo.delete(gone)

    found = repo.sold_between("2024-01-01 00:00:00", "2024-02-01 00:00:00")
    assert set(found) == {inside}
    assert unsold not in found
