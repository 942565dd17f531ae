import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from .core.config import Settings, get_settings
from .core.db import create_engine_for_url, create_session_factory, init_db
from .core.errors import StoreError
from .services import LedgerRepository, LedgerService
from .services.accounts import account_to_model, fallback_accounts
from .services.ledger import SessionFactory

logger = logging.getLogger(__name__)


def seed_empty_store(session_factory: SessionFactory) -> int:
    """Insert the demo accounts when the store holds none. Returns rows added."""
    with session_factory() as session:
        repository = LedgerRepository(session)
        if repository.load_all_accounts():
            return 0
        seeds = fallback_accounts()
        for account in seeds:
            repository.add_account(account_to_model(account))
        repository.commit()
    logger.info("startup.store_seeded", extra={"accounts": len(seeds)})
    return len(seeds)


def build_ledger(settings: Optional[Settings] = None) -> LedgerService:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    engine = create_engine_for_url(settings.database_url)
    session_factory = create_session_factory(engine)

    try:
        init_db(engine)
        if settings.seed_demo_accounts:
            seed_empty_store(session_factory)
    except (SQLAlchemyError, StoreError) as exc:
        logger.warning("startup.store_unreachable", extra={"error": str(exc)})

    ledger = LedgerService(session_factory, settings)
    ledger.load_accounts()
    return ledger
