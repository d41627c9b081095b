from pathlib import Path

import pytest

from tokenledger.ledger import deploy
from tokenledger.ledger.units import tokens
from tokenledger.scenario.runner import ScenarioRunner, load_scenario

SCENARIO = Path(__file__).resolve().parent.parent / "scenarios" / "token.yaml"


def _runner(token, receiver, exchange):
    return ScenarioRunner(token, {"receiver": receiver, "exchange": exchange})


def test_bundled_scenario_passes(token, receiver, exchange):
    result = _runner(token, receiver, exchange).run(load_scenario(str(SCENARIO)))
    assert result.ok, [f.message for f in result.failures]
    reverted = [s.reason for s in result.steps if s.reverted]
    assert reverted == [
        "insufficient_balance",
        "invalid_recipient",
        "invalid_spender",
        "approval_exceeds_supply",
        "insufficient_allowance",
    ]
    assert [r.method for r in result.receipts] == ["transfer", "approve", "transferFrom"]
    assert token.balance_of(receiver) == tokens(200)


def test_unexpected_revert_marks_step_failed(token, receiver, exchange):
    steps = [
        {"call": "transfer", "from": "receiver", "to": "exchange", "amount": 1},
        {"call": "transfer", "from": "deployer", "to": "exchange", "amount": "0.5"},
    ]
    result = _runner(token, receiver, exchange).run(steps)
    assert not result.ok
    assert result.failures[0].index == 0
    assert result.failures[0].reason == "insufficient_balance"
    # later steps still run
    assert result.steps[1].ok
    assert token.balance_of(exchange) == tokens("0.5")


def test_expected_revert_that_succeeds_fails(token, receiver, exchange):
    steps = [{"call": "approve", "from": "deployer", "spender": "exchange", "raw_amount": 1, "expect": "revert"}]
    result = _runner(token, receiver, exchange).run(steps)
    assert not result.ok
    assert result.failures[0].message == "expected revert, call succeeded"


def test_expectation_mismatch(token, receiver, exchange):
    steps = [
        {"call": "expect_balance", "account": "receiver", "amount": 1},
        {"call": "expect_allowance", "owner": "deployer", "spender": "exchange", "raw_amount": 0},
        {"call": "mint", "amount": 1},
    ]
    result = _runner(token, receiver, exchange).run(steps)
    assert [s.ok for s in result.steps] == [False, True, False]
    assert "unknown call" in result.steps[2].message


def test_uncapped_policy_changes_scenario_outcome(deployer, receiver, exchange):
    t = deploy("My Unstable Token", "MUTKN", 1_000_000, deployer, approval_cap="none")
    result = _runner(t, receiver, exchange).run(load_scenario(str(SCENARIO)))
    assert not result.ok
    # the oversized approval goes through and every later check drifts
    assert result.failures[0].call == "approve"
    assert result.failures[0].index == 9


def test_load_scenario_plain_list(tmp_path):
    p = tmp_path / "s.yaml"
    p.write_text("- call: expect_balance\n  account: deployer\n  amount: 0\n")
    assert load_scenario(str(p))[0]["call"] == "expect_balance"
    p.write_text("steps: 3\n")
    with pytest.raises(ValueError):
        load_scenario(str(p))


def test_malformed_step_fails_without_aborting_replay(token, receiver, exchange):
    steps = [
        {"call": "transfer", "from": "deployer", "to": "reciever", "amount": 1},
        {"call": "transfer", "from": "deployer", "amount": 1},
        {"call": "expect_balance", "amount": 0},
        {"call": "transfer", "from": "deployer", "to": "receiver", "amount": 1},
    ]
    result = _runner(token, receiver, exchange).run(steps)
    assert [s.ok for s in result.steps] == [False, False, False, True]
    assert all(s.message.startswith("malformed step") for s in result.steps[:3])
    assert not any(s.reverted for s in result.steps)
    assert token.balance_of(receiver) == tokens(1)


@pytest.mark.parametrize("raw", [1.9, True, "5"])
def test_raw_amount_must_be_integer(token, receiver, exchange, raw):
    steps = [{"call": "transfer", "from": "deployer", "to": "receiver", "raw_amount": raw}]
    result = _runner(token, receiver, exchange).run(steps)
    assert not result.ok
    assert "raw_amount must be an integer" in result.steps[0].message
    assert token.balance_of(receiver) == 0
    assert token.events == []
