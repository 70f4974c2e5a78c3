from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.config import Settings

Base = declarative_base()


def create_db_engine(settings: Settings):
    url = settings.database_url
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {}
    )


def create_session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
