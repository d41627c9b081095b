"""
Main entrypoint for tokenledger.

What it does:
- Loads settings from `config/config.yaml` plus `TOKEN_*` environment overrides.
- Starts the Prometheus exporter (`PROMETHEUS_PORT` overrides the configured port).
- Deploys the token, minting the whole supply to the configured deployer.
- Optionally publishes every ledger event to Redis Streams (`PUBLISH_EVENTS=1`).
- Optionally replays a scenario file (`SCENARIO_PATH`), appending each receipt
  to the operation log.
- Writes parquet snapshots (`DATA_DIR`) and the holders report (`REPORT_DIR`).

Exit status is 1 when a scenario step fails, 0 otherwise.

Invoked by `python -m tokenledger.main` or the `tokenledger` console script.
"""
import logging
import os
import sys

from tokenledger.config.loader import load_settings
from tokenledger.events.bus import publish as publish_event
from tokenledger.ledger import deploy
from tokenledger.ledger.accounts import signer_accounts
from tokenledger.logs.operation_log import append_jsonl
from tokenledger.metrics.core import resolve_port, start_server_safe
from tokenledger.reports.generate import render_holders_report
from tokenledger.scenario.runner import ScenarioRunner, load_scenario

# Signer slots used by scenario aliases
ACCOUNT_ALIASES = ("deployer", "receiver", "exchange")


def main() -> int:
    settings = load_settings(os.getenv("CONFIG_PATH", "config/config.yaml"))
    logging.basicConfig(level=settings.log.level, format="%(asctime)s %(levelname)s %(message)s")

    start_server_safe(resolve_port(settings.metrics.port))

    publisher = publish_event if os.getenv("PUBLISH_EVENTS", "0") == "1" else None
    deployer = settings.token.deployer_address()
    ledger = deploy(
        settings.token.name,
        settings.token.symbol,
        settings.token.initial_supply,
        deployer,
        approval_cap=settings.approval_cap,
        publisher=publisher,
    )
    logging.info(f"Deployed {ledger.symbol}: total supply {ledger.total_supply} to {deployer}")

    exit_code = 0
    scenario_path = os.getenv("SCENARIO_PATH")
    if scenario_path:
        signers = signer_accounts(len(ACCOUNT_ALIASES))
        accounts = dict(zip(ACCOUNT_ALIASES, signers))
        accounts["deployer"] = deployer
        result = ScenarioRunner(ledger, accounts).run(load_scenario(scenario_path))
        for receipt in result.receipts:
            append_jsonl(settings.log.path, receipt.to_record())
        logging.info(f"Scenario {scenario_path}: {len(result.steps)} steps, {len(result.failures)} failed")
        for failure in result.failures:
            logging.error(f"step {failure.index} {failure.call}: {failure.message}")
        if not result.ok:
            exit_code = 1

    ledger.write_parquet(os.getenv("DATA_DIR", "data"))
    out_html = render_holders_report(ledger, os.getenv("REPORT_DIR", "reports"))
    logging.info(f"Report written to: {out_html}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
