import pytest
from sqlmodel import Session, SQLModel

from ..core.config import Settings
from ..core.db import create_engine_for_url
from ..services import LedgerRepository, LedgerService
from ..services.accounts import account_to_model, fallback_accounts


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(database_url=f"sqlite:///{tmp_path / 'test.db'}", _env_file=None)


@pytest.fixture
def engine(settings):
    engine = create_engine_for_url(settings.database_url)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    def _factory() -> Session:
        return Session(engine)

    return _factory


@pytest.fixture
def seeded_store(session_factory) -> None:
    with session_factory() as session:
        repository = LedgerRepository(session)
        for account in fallback_accounts():
            repository.add_account(account_to_model(account))
        repository.commit()


@pytest.fixture
def ledger(seeded_store, session_factory, settings) -> LedgerService:
    service = LedgerService(session_factory, settings)
    service.load_accounts()
    return service


@pytest.fixture
def john(ledger):
    return ledger.accounts.by_account_number("1234567890")


@pytest.fixture
def jane(ledger):
    return ledger.accounts.by_account_number("1111222233")
