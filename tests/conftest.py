import pytest

from tokenledger.ledger import deploy
from tokenledger.ledger.accounts import signer_accounts
from tokenledger.ledger.units import tokens

NAME = "My Unstable Token"
SYMBOL = "MUTKN"
SUPPLY = 1_000_000


@pytest.fixture
def accounts():
    return signer_accounts(5)


@pytest.fixture
def deployer(accounts):
    return accounts[0]


@pytest.fixture
def receiver(accounts):
    return accounts[1]


@pytest.fixture
def exchange(accounts):
    return accounts[2]


@pytest.fixture
def token(deployer):
    return deploy(NAME, SYMBOL, SUPPLY, deployer)


@pytest.fixture
def approved(token, deployer, exchange):
    """Token where the deployer has approved the exchange for 100 tokens."""
    token.connect(deployer).approve(exchange, tokens(100))
    return token
