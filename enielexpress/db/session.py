from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from enielexpress.core.config import settings

class Base(DeclarativeBase): pass
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
