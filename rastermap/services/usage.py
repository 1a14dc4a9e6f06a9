from __future__ import annotations

from datetime import UTC, datetime
from typing import Dict, List

from sqlmodel import Session, select

from .. import config
from ..database import init_db, session_scope
from ..models import ApiUsageStat


_usage_initialized_for: str | None = None


def _ensure_usage_table() -> None:
    global _usage_initialized_for

    url = config.database_url()
    if _usage_initialized_for != url:
        init_db()
        _usage_initialized_for = url


def record_api_usage(provider: str, *, increment: int = 1) -> None:
    """Increment the network tile request counter for the given provider."""

    if increment <= 0:
        return

    _ensure_usage_table()

    with session_scope() as session:
        statement = select(ApiUsageStat).where(ApiUsageStat.provider == provider)
        usage = session.exec(statement).one_or_none()
        now = datetime.now(UTC)
        if usage is None:
            usage = ApiUsageStat(provider=provider, request_count=increment, last_used_at=now)
            session.add(usage)
        else:
            usage.request_count += increment
            usage.last_used_at = now
        session.commit()


def usage_summary(session: Session) -> List[Dict[str, object]]:
    statement = select(ApiUsageStat).order_by(ApiUsageStat.provider)
    stats = session.exec(statement).all()
    return [
        {
            "provider": stat.provider,
            "request_count": stat.request_count,
            "last_used_at": stat.last_used_at,
        }
        for stat in stats
    ]
