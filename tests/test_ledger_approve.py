import pytest

from tokenledger.ledger import OperationRejected, deploy
from tokenledger.ledger.accounts import ZERO_ADDRESS
from tokenledger.ledger.units import tokens


def test_approve_sets_allowance(approved, deployer, exchange):
    assert approved.allowance(deployer, exchange) == tokens(100)


def test_approve_emits_event(token, deployer, exchange):
    receipt = token.connect(deployer).approve(exchange, tokens(100))
    ev = receipt.events[0]
    assert ev.event_type == "Approval"
    assert ev.owner == deployer
    assert ev.spender == exchange
    assert ev.value == tokens(100)
    assert receipt.caller == deployer


def test_approve_overwrites(approved, deployer, exchange):
    approved.approve(deployer, exchange, tokens(5))
    assert approved.allowance(deployer, exchange) == tokens(5)
    approved.approve(deployer, exchange, 0)
    assert approved.allowance(deployer, exchange) == 0


def test_approve_does_not_move_balances(approved, deployer):
    assert approved.balance_of(deployer) == approved.total_supply


def test_rejects_invalid_spender(token, deployer):
    with pytest.raises(OperationRejected) as exc:
        token.connect(deployer).approve(ZERO_ADDRESS, tokens(100))
    assert exc.value.reason == "invalid_spender"
    assert token.events == []


def test_rejects_approval_above_supply(approved, deployer, exchange):
    with pytest.raises(OperationRejected) as exc:
        approved.connect(deployer).approve(exchange, tokens(100_000_000))
    assert exc.value.reason == "approval_exceeds_supply"
    # previous allowance untouched
    assert approved.allowance(deployer, exchange) == tokens(100)


def test_approval_equal_to_supply_allowed(token, deployer, exchange):
    token.approve(deployer, exchange, token.total_supply)
    assert token.allowance(deployer, exchange) == token.total_supply


def test_uncapped_policy_accepts_large_approval(deployer, exchange):
    t = deploy("My Unstable Token", "MUTKN", 1_000_000, deployer, approval_cap="none")
    t.approve(deployer, exchange, tokens(100_000_000))
    assert t.allowance(deployer, exchange) == tokens(100_000_000)
    with pytest.raises(OperationRejected):
        t.approve(deployer, exchange, 2**256)


def test_approve_from_account_without_balance(token, receiver, exchange):
    # allowance is not bounded by the owner's own balance
    token.approve(receiver, exchange, tokens(1))
    assert token.allowance(receiver, exchange) == tokens(1)
