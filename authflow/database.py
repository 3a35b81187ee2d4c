## Setup Libraries
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_URL
from .models import Base

## Initiate Connection
# connect_args is only needed for SQLite, which refuses cross-thread use by default
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


## Get the Database Conection
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


## Create all Database Tables
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
