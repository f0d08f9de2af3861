from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from adrewards.config import DATABASE_URL

# Allow overriding database via environment (see adrewards.config).
# Default remains a lightweight local sqlite DB.
SQLALCHEMY_DATABASE_URL = DATABASE_URL

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class Base(DeclarativeBase):
	pass
