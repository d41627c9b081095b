import pandas as pd

from tokenledger.ledger.units import tokens
from tokenledger.reports.generate import render_holders_report


def test_write_parquet_snapshots(tmp_path, approved, deployer, receiver, exchange):
    approved.transfer(deployer, receiver, tokens(100))
    approved.transfer_from(exchange, deployer, receiver, tokens(100))
    approved.write_parquet(str(tmp_path))

    balances = pd.read_parquet(tmp_path / "balances.parquet")
    assert list(balances["address"]) == [deployer, receiver]
    assert list(balances["balance"]) == [str(tokens(999_800)), str(tokens(200))]

    events = pd.read_parquet(tmp_path / "events.parquet")
    assert list(events["event_type"]) == ["Approval", "Transfer", "Transfer"]
    assert events["value"].iloc[-1] == str(tokens(100))


def test_holders_report(tmp_path, token, deployer, receiver):
    token.transfer(deployer, receiver, tokens("0.5"))
    out = render_holders_report(token, str(tmp_path / "reports"))
    html = open(out, encoding="utf-8").read()
    assert "My Unstable Token (MUTKN)" in html
    assert "999999.5" in html
    assert receiver in html
    assert "1000000 MUTKN" in html
