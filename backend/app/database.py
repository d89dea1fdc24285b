"""
Connexion à la base de données (PostgreSQL en production, SQLite accepté en développement).
SQLAlchemy avec un moteur synchrone ; le verrouillage des campagnes (FOR UPDATE)
n'est effectif que sur PostgreSQL.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings


def _connect_args(url: str) -> dict:
    # SQLite : la session FastAPI peut changer de thread entre deux requêtes
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : ouvre une session par requête et la ferme après la réponse."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
