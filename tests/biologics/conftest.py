import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def biologics_bed():
    from biologics.domain import biologics

    bed = DomainFixture(biologics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(biologics_bed):
    with biologics_bed.domain_context():
        yield


@pytest.fixture()
def store():
    """The configured ledger store, fresh for every test."""
    from biologics.ledger import get_ledger_store

    return get_ledger_store()
