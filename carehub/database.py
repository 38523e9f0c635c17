"""
Database engine initialisation and table definitions.
"""

import sys
import threading

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.pool import StaticPool

from carehub.config import get_env

metadata = MetaData()

roles = Table(
    "roles", metadata,
    Column("identity", String(255), primary_key=True),
    Column("role", String(16), nullable=False),
)

profiles = Table(
    "profiles", metadata,
    Column("owner_id", String(255), primary_key=True),
    Column("name", Text, nullable=False),
    Column("age", Integer, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("preferences", Text, nullable=False, default=""),
    Column("is_vip", Boolean, nullable=False, default=False),
)

# `seq` fixes list order: assigned on insert, never changed afterwards.
providers = Table(
    "providers", metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(255), nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("specialization", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("online", Boolean, nullable=False),
)

fitness_listings = Table(
    "fitness_listings", metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(255), nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("type_of_class", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("online", Boolean, nullable=False),
    Column("cost", Float, nullable=False),
    Column("duration", Float, nullable=False),
)

membership_plans = Table(
    "membership_plans", metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(255), nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("price", Float, nullable=False),
    Column("duration", Float, nullable=False),
)

consultations = Table(
    "consultations", metadata,
    Column("seq", Integer, primary_key=True, autoincrement=False),
    Column("id", String(64), nullable=False, unique=True),
    Column("patient_id", String(255), nullable=False, index=True),
    Column("provider_id", String(255), nullable=False),
    Column("time", BigInteger, nullable=False),
    Column("modality", Text, nullable=False),
    Column("notes", Text, nullable=False),
    Column("status", String(16), nullable=False),
)


IN_MEMORY_URIS = ("sqlite://", "sqlite:///:memory:")


def build_engine(db_uri: str):
    """Create an engine; in-memory SQLite is shared across threads."""
    if db_uri in IN_MEMORY_URIS:
        return create_engine(
            db_uri,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_uri, echo=False, future=True)


def shares_connection(engine) -> bool:
    """True when every checkout hands back the same DBAPI connection."""
    return isinstance(engine.pool, StaticPool)


def connection_lock(engine):
    """One lock for every store on a shared connection, else None.

    A rollback on the shared connection discards whatever transaction is
    open on it, so stores must not interleave there.
    """
    if shares_connection(engine):
        return threading.RLock()
    return None


def create_schema(engine) -> None:
    """Create every table the stores use (no-op for existing tables)."""
    metadata.create_all(engine)


def init_engine(db_uri: str = None):
    """Create a SQLAlchemy engine, verify the connection and create the schema."""
    db_uri = db_uri or get_env("DB_URI")
    if db_uri in IN_MEMORY_URIS:
        print("[WARN] DB_URI is in-memory; data is lost when the process exits.",
              file=sys.stderr)
    engine = build_engine(db_uri)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        create_schema(engine)
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine
