"""
Render an HTML holders report for a ledger.

Usage (venv):
  REPORT_DIR=reports python -m tokenledger.main
"""

from __future__ import annotations

import os
from datetime import datetime, timezone

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..ledger.ledger import TokenLedger
from ..ledger.units import format_units


def _template_env(template_dir: str) -> Environment:
    return Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_holders_report(ledger: TokenLedger, out_dir: str = "reports") -> str:
    """Write `holders.html` into out_dir and return its path."""
    os.makedirs(out_dir, exist_ok=True)
    supply = ledger.total_supply
    entries = []
    for row in ledger.holders():
        share = (row.balance / supply * 100.0) if supply else 0.0
        entries.append({
            "address": row.address,
            "balance": format_units(row.balance, ledger.decimals),
            "share": f"{share:.4f}",
        })

    template_dir = os.path.join(os.path.dirname(__file__), "templates")
    tpl = _template_env(template_dir).get_template("report.html.j2")
    html = tpl.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        name=ledger.name,
        symbol=ledger.symbol,
        decimals=ledger.decimals,
        total_supply=format_units(supply, ledger.decimals),
        transactions=len(ledger.receipts),
        entries=entries,
    )
    out_html = os.path.join(out_dir, "holders.html")
    with open(out_html, "w", encoding="utf-8") as f:
        f.write(html)
    return out_html
