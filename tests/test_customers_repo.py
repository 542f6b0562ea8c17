import pytest

from retail_manager.database.repositories.customers_repo import CustomersRepo, Customer
from retail_manager.database.repositories.errors import CustomerHasReceiptsError, DomainError


def test_create_normalizes_email_and_masks_cpf(conn):
    repo = CustomersRepo(conn)
    cid = repo.create("  Maria Souza ", email=" Maria@Example.COM ", phone="11 98888-7777", cpf="12345678901")

    c = repo.get(cid)
    assert isinstance(c, Customer)
    assert c.full_name == "Maria Souza"
    assert c.email == "maria@example.com"
    assert c.cpf == "123.456.789-01"
    assert c.created_at is not None


def test_name_is_required(conn):
    repo = CustomersRepo(conn)
    with pytest.raises(DomainError):
        repo.create("   ")


def test_duplicate_email_rejected_and_nothing_written(conn):
    repo = CustomersRepo(conn)
    repo.create("First", email="same@example.com")
    with pytest.raises(DomainError):
        repo.create("Second", email="SAME@example.com")
    assert [c.full_name for c in repo.list_customers()] == ["First"]


def test_customers_without_email_do_not_collide(conn):
    repo = CustomersRepo(conn)
    repo.create("A")
    repo.create("B")
    assert len(repo.list_customers()) == 2


def test_malformed_cpf_rejected(conn):
    repo = CustomersRepo(conn)
    with pytest.raises(DomainError):
        repo.create("Bad CPF", cpf="123.456")


def test_update_keeps_own_email(conn):
    repo = CustomersRepo(conn)
    cid = repo.create("Joao", email="joao@example.com")
    repo.update(cid, "Joao Silva", email="joao@example.com", phone="1199")
    c = repo.get(cid)
    assert c.full_name == "Joao Silva"
    assert c.phone == "1199"


def test_update_missing_customer(conn):
    with pytest.raises(DomainError):
        CustomersRepo(conn).update(999, "Nobody")


def test_search_matches_name_email_phone_and_cpf(conn):
    repo = CustomersRepo(conn)
    repo.create("Carla Dias", email="carla@shop.com", phone="11 91234-5678", cpf="111.222.333-44")
    repo.create("Pedro Lima")

    assert [c.full_name for c in repo.search("carla")] == ["Carla Dias"]
    assert [c.full_name for c in repo.search("SHOP.COM")] == ["Carla Dias"]
    assert [c.full_name for c in repo.search("91234")] == ["Carla Dias"]
    assert [c.full_name for c in repo.search("222.333")] == ["Carla Dias"]
    assert len(repo.search("")) == 2


def test_delete_with_receipt_fails_with_specific_error(conn, seed, make_item):
    cid = seed.customer("Has Receipt")
    seed.receipt([make_item(seed.product())], customer_id=cid)

    repo = CustomersRepo(conn)
    with pytest.raises(CustomerHasReceiptsError) as exc:
        repo.delete(cid)
    assert exc.value.customer_id == cid
    assert exc.value.receipt_count == 1
    assert "receipts" in str(exc.value)
    assert repo.get(cid) is not None


def test_delete_without_receipts_removes_customer(conn):
    repo = CustomersRepo(conn)
    cid = repo.create("No Receipts")
    repo.delete(cid)
    assert repo.get(cid) is None
    assert all(c.customer_id != cid for c in repo.list_customers())
