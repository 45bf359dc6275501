import pytest

from bankdash.audit.normalizer import (
    normalize_service,
    normalize_services,
    normalize_transactions,
    response_total,
)

A = {"transactionid": "a", "transtype": "AM"}
B = {"transactionid": "b", "transtype": "MA"}


@pytest.mark.parametrize(
    "raw",
    [
        [A, B],
        {"data": [A, B]},
        {"transactions": [A, B]},
        {"results": [A, B]},
    ],
)
def test_accepted_shapes(raw):
    assert normalize_transactions(raw) == [A, B]


def test_key_priority():
    raw = {"results": [B], "transactions": [A, B], "data": [A]}
    assert normalize_transactions(raw) == [A]
    assert normalize_transactions({"results": [B], "transactions": [A]}) == [A]


def test_non_list_value_under_a_key_is_skipped():
    assert normalize_transactions({"data": {"rows": [A]}, "results": [B]}) == [B]


@pytest.mark.parametrize("raw", [{}, None, "oops", 42, {"data": None}, {"items": [A]}, {1: "x", "a": "y"}])
def test_unrecognized_shapes_degrade_to_empty(raw):
    assert normalize_transactions(raw) == []


def test_returns_a_new_list():
    raw = [A]
    out = normalize_transactions(raw)
    out.append(B)
    assert raw == [A]


def test_response_total_prefers_envelope_count():
    records = [A, B]
    assert response_total({"data": records, "total": 120}, records) == 120
    assert response_total({"data": records, "count": "7"}, records) == 7
    assert response_total(records, records) == 2
    assert response_total({"data": records, "total": 0}, records) == 2


def test_services_are_deduplicated_by_id_or_name():
    raw = {
        "data": [
            {"id": 1, "name": "Airtime"},
            {"id": 2, "name": "AIRTIME"},
            {"id": 1, "name": "Wallet to Account"},
            {"id": 3, "name": "Bill Payment"},
            "junk",
        ]
    }
    assert [s["id"] for s in normalize_services(raw)] == [1, 3]


def test_services_envelope_keys():
    assert normalize_services({"services": [{"id": 5}]}) == [{"id": 5}]
    assert normalize_services({"unexpected": True}) == []


def test_single_service_unwrap():
    assert normalize_service({"data": {"id": 5, "name": "Airtime"}}) == {"id": 5, "name": "Airtime"}
    assert normalize_service({"id": 6}) == {"id": 6}
    assert normalize_service({"status": "ok"}) is None
    assert normalize_service([{"id": 5}]) is None
