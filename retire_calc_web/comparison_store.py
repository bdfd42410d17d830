"""Saved comparisons for the calculator page.

The page keeps its working state in the address bar. Saving a comparison
records that query string under a name chosen by the user, along with the
per-scenario summaries computed at save time, so the list of saved links can
show what each one contains without re-projecting it.

Rows belong to an anonymous user token held in the Flask session. Any
SQLAlchemy URL works; the default is a local SQLite file.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DATABASE_URL = "sqlite:///comparison_data.sqlite3"

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SavedComparisonModel(Base):
    """One named set of scenarios, stored as the query string that rebuilds it."""

    __tablename__ = "saved_comparisons"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    query_string = Column(Text, nullable=False)
    summaries_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "query": self.query_string,
            "summaries": json.loads(self.summaries_json),
            "created_at": self.created_at.isoformat(),
        }


class ComparisonStore:
    """Saved comparisons per user token, capped at ``max_per_user`` (newest kept).

    Calls with an empty token are ignored: a visitor without a session has
    nothing saved.
    """

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._sessions = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def _owned_by(self, user_token: str):
        return select(SavedComparisonModel).where(SavedComparisonModel.user_token == user_token)

    def list_comparisons(self, user_token: str) -> List[Dict[str, Any]]:
        """Return a user's saved comparisons, oldest first."""
        if not user_token:
            return []
        query = self._owned_by(user_token).order_by(
            SavedComparisonModel.created_at.asc(), SavedComparisonModel.id.asc()
        )
        with self._sessions() as session:
            return [row.to_dict() for row in session.execute(query).scalars()]

    def add_comparison(
        self,
        user_token: str,
        comparison_id: str,
        name: str,
        query_string: str,
        summaries: List[Dict[str, Any]],
    ) -> None:
        """Save a comparison, then drop the user's oldest ones over the cap."""
        if not user_token:
            return
        with self._sessions() as session:
            session.add(
                SavedComparisonModel(
                    id=comparison_id,
                    user_token=user_token,
                    name=name,
                    query_string=query_string,
                    summaries_json=json.dumps(summaries, allow_nan=False),
                )
            )
            session.commit()
        self._enforce_cap(user_token)

    def remove_comparison(self, user_token: str, comparison_id: str) -> None:
        """Delete one comparison if it belongs to ``user_token``."""
        if not user_token:
            return
        with self._sessions() as session:
            row = session.get(SavedComparisonModel, comparison_id)
            if row is None or row.user_token != user_token:
                return
            session.delete(row)
            session.commit()

    def clear_comparisons(self, user_token: str) -> None:
        if not user_token:
            return
        with self._sessions() as session:
            session.execute(
                SavedComparisonModel.__table__.delete().where(
                    SavedComparisonModel.user_token == user_token
                )
            )
            session.commit()

    def _enforce_cap(self, user_token: str) -> None:
        if self._max_per_user is None or self._max_per_user <= 0:
            return
        surplus = (
            self._owned_by(user_token)
            .order_by(SavedComparisonModel.created_at.desc(), SavedComparisonModel.id.desc())
            .offset(self._max_per_user)
        )
        with self._sessions() as session:
            rows = session.execute(surplus).scalars().all()
            for row in rows:
                session.delete(row)
            if rows:
                session.commit()


def create_store_from_env(url: str | None) -> ComparisonStore:
    return ComparisonStore(url or DEFAULT_DATABASE_URL)
