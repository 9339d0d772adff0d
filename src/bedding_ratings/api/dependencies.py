"""FastAPI dependency injection providers.

Provides:

    get_source_address     : network origin of the request (abuse control)
    get_submission_service : SubmissionService bound to the request's
                              database session

The service dependency is the seam tests override to run routes against an
in-memory repository::

    app.dependency_overrides[get_submission_service] = lambda: service
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bedding_ratings.config.settings import get_settings
from bedding_ratings.core.database import get_db
from bedding_ratings.core.rate_limiter import SubmissionRateLimiter
from bedding_ratings.core.records import SOURCE_ADDRESS_MAX_LENGTH
from bedding_ratings.core.repository import SqlAlchemyRatingRepository
from bedding_ratings.core.submission_service import SubmissionService

_FALLBACK_ADDRESS = "127.0.0.1"


def get_source_address(request: Request) -> str:
    """Return the network origin of *request*.

    Resolution order:

    1. Last entry of ``X-Forwarded-For``, the one appended by the trusted
       proxy (only when ``settings.trust_forwarded_for`` is enabled).  Blank
       or over-long entries are skipped.
    2. The socket peer address, cut to the stored width.
    3. ``127.0.0.1``.

    Also used as the slowapi key function, so it must accept a bare
    ``Request``.
    """
    if get_settings().trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        last = forwarded.split(",")[-1].strip()
        if last and len(last) <= SOURCE_ADDRESS_MAX_LENGTH:
            return last
    if request.client and request.client.host:
        return request.client.host[:SOURCE_ADDRESS_MAX_LENGTH]
    return _FALLBACK_ADDRESS


async def get_submission_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SubmissionService:
    """Build a :class:`SubmissionService` for the current request.

    One repository wraps the request's session, so the rating insert and the
    window upserts share a single transaction.
    """
    repository = SqlAlchemyRatingRepository(db)
    limiter = SubmissionRateLimiter(repository, window=get_settings().rating_window)
    return SubmissionService(repository, limiter)
