"""SQLAlchemy storage for the swipe log and match table."""

from datetime import datetime
from typing import Any, List, Optional, Tuple

import sentry_sdk
from sqlalchemy import DateTime, Index, Integer, String, create_engine, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from golfmatch.models.match import Match, Swipe, SwipeDirection, make_pair_id
from golfmatch.utils.errors import DatabaseError
from golfmatch.utils.helpers import utcnow
from golfmatch.utils.logging import get_logger, log_error

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class SwipeDB(Base):
    """Swipe database model. Rows are never updated."""

    __tablename__ = "swipes"
    __table_args__ = (Index("ix_swipes_actor_target", "actor_id", "target_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(50), index=True)
    target_id: Mapped[str] = mapped_column(String(50), index=True)
    direction: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class MatchDB(Base):
    """Match database model. The primary key is the pair id, so a pair holds at most one row."""

    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(101), primary_key=True)
    user1_id: Mapped[str] = mapped_column(String(50), index=True)
    user2_id: Mapped[str] = mapped_column(String(50), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Database:
    """Singleton database connection manager."""

    _engine = None
    _session_factory = None

    @classmethod
    def get_engine(cls) -> Any:
        """Get or create the database engine."""
        if cls._engine is None:
            from golfmatch.config import get_settings

            settings = get_settings()
            database_url = settings.DATABASE_URL

            if not database_url:
                raise DatabaseError("DATABASE_URL is not configured")

            # SQLAlchemy 1.4+ requires postgresql:// instead of postgres://
            if database_url.startswith("postgres://"):
                database_url = database_url.replace("postgres://", "postgresql://", 1)

            try:
                cls._engine = create_database_engine(database_url, echo=settings.DEBUG)
                logger.info("Database engine created")
            except SQLAlchemyError as e:
                logger.error("Failed to create database engine", error=str(e))
                raise DatabaseError("Failed to connect to database", details={"error": str(e)}) from e
        return cls._engine

    @classmethod
    def get_session_factory(cls) -> Any:
        """Get or create the session factory."""
        if cls._session_factory is None:
            cls._session_factory = sessionmaker(bind=cls.get_engine(), expire_on_commit=False)
        return cls._session_factory

    @classmethod
    def create_tables(cls) -> None:
        """Create all database tables."""
        Base.metadata.create_all(cls.get_engine())
        logger.info("Database tables created")

    @classmethod
    def reset(cls) -> None:
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._session_factory = None


def create_database_engine(database_url: str, echo: bool = False) -> Any:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_recycle=300, pool_pre_ping=True, echo=echo)


def init_database() -> None:
    """Initialize the database and create tables."""
    Database.create_tables()


def _to_swipe(row: SwipeDB) -> Swipe:
    return Swipe(
        actor_id=row.actor_id,
        target_id=row.target_id,
        direction=SwipeDirection(row.direction),
        created_at=row.created_at,
    )


def _to_match(row: MatchDB) -> Match:
    return Match(id=row.id, user1_id=row.user1_id, user2_id=row.user2_id, created_at=row.created_at)


class SqlAlchemyLedger:
    """
    Swipe/match ledger backed by a relational database.

    Match creation checks for an existing row first and relies on the pair-id
    primary key when two instances race on the same pair.
    """

    def __init__(self, session_factory: Optional[Any] = None) -> None:
        self._session_factory = session_factory or Database.get_session_factory()

    def _session(self) -> Session:
        return self._session_factory()

    def record_swipe(self, swipe: Swipe) -> None:
        with sentry_sdk.start_span(op="db.insert", name="swipes"):
            try:
                with self._session() as session, session.begin():
                    session.add(
                        SwipeDB(
                            actor_id=swipe.actor_id,
                            target_id=swipe.target_id,
                            direction=swipe.direction.value,
                            created_at=swipe.created_at,
                        )
                    )
            except SQLAlchemyError as e:
                log_error(logger, e, "Failed to record swipe", {"actor": swipe.actor_id, "target": swipe.target_id})
                raise DatabaseError("Failed to record swipe", details={"error": str(e)}) from e

    def has_liked(self, actor_id: str, target_id: str) -> bool:
        query = (
            select(SwipeDB.id)
            .where(
                SwipeDB.actor_id == actor_id,
                SwipeDB.target_id == target_id,
                SwipeDB.direction == SwipeDirection.LIKE.value,
            )
            .limit(1)
        )
        try:
            with self._session() as session:
                return session.execute(query).first() is not None
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to look up like", details={"error": str(e)}) from e

    def get_match(self, pair_id: str) -> Optional[Match]:
        try:
            with self._session() as session:
                row = session.get(MatchDB, pair_id)
                return _to_match(row) if row is not None else None
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load match", details={"error": str(e)}) from e

    def get_or_create_match(self, user_a: str, user_b: str) -> Tuple[Match, bool]:
        pair_id = make_pair_id(user_a, user_b)
        existing = self.get_match(pair_id)
        if existing is not None:
            return existing, False

        match = Match.for_pair(user_a, user_b, created_at=utcnow())
        with sentry_sdk.start_span(op="db.insert", name="matches"):
            try:
                with self._session() as session, session.begin():
                    session.add(
                        MatchDB(
                            id=match.id,
                            user1_id=match.user1_id,
                            user2_id=match.user2_id,
                            created_at=match.created_at,
                        )
                    )
            except IntegrityError:
                # Another instance inserted the same pair first
                existing = self.get_match(pair_id)
                if existing is None:
                    raise DatabaseError("Match insert conflicted but no match exists", details={"match_id": pair_id})
                return existing, False
            except SQLAlchemyError as e:
                log_error(logger, e, "Failed to create match", {"match_id": pair_id})
                raise DatabaseError("Failed to create match", details={"error": str(e)}) from e
        return match, True

    def get_user_matches(self, user_id: str) -> List[Match]:
        query = (
            select(MatchDB)
            .where(or_(MatchDB.user1_id == user_id, MatchDB.user2_id == user_id))
            .order_by(MatchDB.created_at.desc())
        )
        try:
            with self._session() as session:
                return [_to_match(row) for row in session.scalars(query)]
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load matches", details={"error": str(e)}) from e

    def get_incoming_likes(self, user_id: str) -> List[Swipe]:
        """Latest like from every user who liked `user_id`, newest first."""
        query = (
            select(SwipeDB)
            .where(SwipeDB.target_id == user_id, SwipeDB.direction == SwipeDirection.LIKE.value)
            .order_by(SwipeDB.created_at, SwipeDB.id)
        )
        try:
            with self._session() as session:
                latest = {row.actor_id: _to_swipe(row) for row in session.scalars(query)}
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load incoming likes", details={"error": str(e)}) from e
        return sorted(latest.values(), key=lambda s: s.created_at, reverse=True)
