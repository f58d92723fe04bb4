"""
Tests for member balance calculation.
"""
from decimal import Decimal

from gastos.services.balance_service import compute_balances

MEMBERS = ["A", "B", "C"]
NAMES = {"A": "Ana", "B": "Bruno", "C": "Carla"}


def _nets(balances):
    return {b.member_id: b.net for b in balances}


def test_single_payer_scenario(make_expense):
    """A pays 300 for three people: A is owed 200, B and C owe 100 each."""
    balances = compute_balances(MEMBERS, [make_expense("A", 300, MEMBERS)], names=NAMES)

    assert _nets(balances) == {"A": Decimal("200"), "B": Decimal("-100"), "C": Decimal("-100")}
    a = balances[0]
    assert a.member_name == "Ana"
    assert a.total_paid == Decimal("300.00")
    assert a.total_share == Decimal("100.00")


def test_two_payers_scenario(make_expense):
    expenses = [make_expense("A", 100, MEMBERS), make_expense("B", 100, MEMBERS)]
    balances = compute_balances(MEMBERS, expenses)

    assert [b.total_share for b in balances] == [Decimal("66.67")] * 3
    assert _nets(balances) == {
        "A": Decimal("33.33"),
        "B": Decimal("33.33"),
        "C": Decimal("-66.67"),
    }


def test_balances_follow_member_order(make_expense):
    balances = compute_balances(["C", "A", "B"], [make_expense("A", 30)])
    assert [b.member_id for b in balances] == ["C", "A", "B"]


def test_zero_members():
    assert compute_balances([], []) == []


def test_zero_expenses_gives_zero_balances():
    balances = compute_balances(MEMBERS, [])
    assert len(balances) == 3
    for balance in balances:
        assert balance.total_paid == 0
        assert balance.total_share == 0
        assert balance.net == 0


def test_unresolved_member_gets_placeholder_name(make_expense):
    balances = compute_balances(["A", "Z"], [make_expense("A", 10)], names={"A": "Ana"})
    assert balances[1].member_name == "Unknown"


def test_group_model_ignores_expense_participants(make_expense):
    """The whole spend is shared by every member, whoever took part."""
    balances = compute_balances(MEMBERS, [make_expense("A", 90, participants=["A", "B"])])
    assert _nets(balances) == {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}


def test_participants_model_splits_each_expense(make_expense):
    expenses = [make_expense("A", 90, participants=["A", "B"])]
    balances = compute_balances(MEMBERS, expenses, share_model="participants")
    assert _nets(balances) == {"A": Decimal("45"), "B": Decimal("-45"), "C": Decimal("0")}


def test_balance_conservation(make_expense):
    """Nets sum to zero within rounding tolerance."""
    members = ["A", "B", "C", "D", "E", "F", "G"]
    expenses = [
        make_expense("A", "10.01"),
        make_expense("B", "333.33"),
        make_expense("C", "0.07"),
        make_expense("A", "1234.56"),
        make_expense("G", "99.99"),
    ]
    for model in ("group", "participants"):
        balances = compute_balances(members, expenses, share_model=model)
        total = sum(b.net for b in balances)
        assert abs(total) <= Decimal("0.01") * len(members)


def test_accumulation_is_not_rounded_per_expense(make_expense):
    """Many small expenses do not compound rounding error."""
    expenses = [make_expense("A", "0.333") for _ in range(300)]
    balances = compute_balances(["A", "B"], expenses)
    assert balances[0].total_paid == Decimal("99.90")
    assert balances[0].net == Decimal("49.95")
    assert balances[1].net == Decimal("-49.95")


def test_compute_balances_is_idempotent(make_expense):
    expenses = [make_expense("A", 100), make_expense("C", "45.5")]
    assert compute_balances(MEMBERS, expenses, NAMES) == compute_balances(MEMBERS, expenses, NAMES)
