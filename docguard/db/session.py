from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from docguard.core.config import get_settings
from docguard.db.base import Base

settings = get_settings()

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create all tables. Production deployments manage schema separately."""
    import docguard.db.models  # noqa: F401  (register models on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
