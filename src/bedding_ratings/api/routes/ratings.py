"""Rating route handlers.

Endpoints:

    POST /ratings                          submit one rating
    GET  /ratings?locationKey=             list ratings for a location
    GET  /ratings/summary/{location_key}   top-2 summary for a location
    GET  /ratings/vocabulary               categories, values and labels

Handlers translate :class:`~bedding_ratings.core.submission_service.SubmissionResult`
outcomes and core exceptions into HTTP responses.  No business rule lives
here.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from bedding_ratings.api.dependencies import get_source_address, get_submission_service
from bedding_ratings.api.limiter import limiter
from bedding_ratings.api.metrics import rating_submissions_total, rating_summaries_total
from bedding_ratings.config.settings import get_settings
from bedding_ratings.config.vocabulary import (
    ALL_CATEGORIES,
    CATEGORY_LABELS,
    MULTI_VALUE_CATEGORIES,
    VALUE_LABELS,
    value_tone,
    vocabulary_for,
)
from bedding_ratings.core.exceptions import (
    AggregationError,
    RatingValidationError,
    StoreUnavailableError,
)
from bedding_ratings.core.schemas.ratings import (
    RatingCreate,
    RatingCreated,
    RatingRead,
    VocabularyCategory,
)
from bedding_ratings.core.submission_service import SubmissionOutcome, SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()

_INTERNAL_ERROR_BODY = {
    "error": "internal_error",
    "message": "Failed to process request",
}


def _internal_error() -> JSONResponse:
    return JSONResponse(_INTERNAL_ERROR_BODY, status_code=500)


# ---------------------------------------------------------------------------
# POST /ratings
# ---------------------------------------------------------------------------


@router.post(
    "",
    status_code=201,
    response_model=RatingCreated,
    responses={400: {}, 429: {}, 500: {}},
)
@limiter.limit(lambda: get_settings().submission_rate_limit)
async def submit_rating(
    request: Request,
    payload: RatingCreate,
    service: Annotated[SubmissionService, Depends(get_submission_service)],
) -> JSONResponse:
    """Submit one bedding rating for a location.

    The network origin is read from the request, never from the body.

    Returns:
        ``201`` with the public view of the stored rating, ``400`` with a
        stable reason code for invalid input, ``429`` when either weekly
        window is still open, ``500`` when the store failed.
    """
    result = await service.submit(payload.to_draft(), get_source_address(request))
    rating_submissions_total.labels(outcome=result.outcome.value).inc()

    if result.outcome is SubmissionOutcome.REJECTED and result.error is not None:
        return JSONResponse(result.error.to_dict(), status_code=400)

    if result.outcome is SubmissionOutcome.THROTTLED and result.decision is not None:
        decision = result.decision
        headers = {}
        if decision.retry_after is not None:
            headers["Retry-After"] = str(int(decision.retry_after.total_seconds()))
        return JSONResponse(
            {
                "error": "rate_limited",
                "reason": decision.kind.value if decision.kind else None,
                "message": decision.message,
                "retryAfter": decision.retry_after_text,
            },
            status_code=429,
            headers=headers,
        )

    if result.outcome is SubmissionOutcome.PERSISTED and result.rating is not None:
        return JSONResponse(
            {
                "message": "Rating submitted successfully",
                "rating": result.rating.to_public_dict(),
            },
            status_code=201,
        )

    return _internal_error()


# ---------------------------------------------------------------------------
# GET /ratings
# ---------------------------------------------------------------------------


@router.get("", response_model=list[RatingRead], responses={400: {}, 500: {}})
async def list_ratings(
    service: Annotated[SubmissionService, Depends(get_submission_service)],
    location_key: Annotated[Optional[str], Query(alias="locationKey")] = None,
) -> JSONResponse:
    """Return every rating for a location, newest first."""
    try:
        ratings = await service.list_ratings(location_key)
    except RatingValidationError as exc:
        return JSONResponse(exc.to_dict(), status_code=400)
    except StoreUnavailableError:
        return _internal_error()
    return JSONResponse([rating.to_public_dict() for rating in ratings])


# ---------------------------------------------------------------------------
# GET /ratings/summary/{location_key}
# ---------------------------------------------------------------------------


@router.get("/summary/{location_key:path}", responses={400: {}, 500: {}})
async def get_summary(
    location_key: str,
    service: Annotated[SubmissionService, Depends(get_submission_service)],
) -> JSONResponse:
    """Return the top-2 summary for a location.

    The body carries ``locationKey``, ``totalRatings`` and one
    ``{"total", "top2"}`` object per category.  A location with no ratings
    yields zeros rather than ``404``.  The key may contain slashes; a blank
    key is a ``400``.
    """
    try:
        summary = await service.summarize(location_key)
    except RatingValidationError as exc:
        return JSONResponse(exc.to_dict(), status_code=400)
    except AggregationError as exc:
        logger.error(
            "Summary aggregation failed",
            extra={"category": exc.category, "location_key": location_key},
        )
        return _internal_error()
    except StoreUnavailableError:
        return _internal_error()
    rating_summaries_total.inc()
    return JSONResponse(summary)


# ---------------------------------------------------------------------------
# GET /ratings/vocabulary
# ---------------------------------------------------------------------------


@router.get("/vocabulary", response_model=list[VocabularyCategory])
async def get_vocabulary() -> JSONResponse:
    """Return every category with its allowed values and display metadata."""
    payload = [
        {
            "category": category,
            "label": CATEGORY_LABELS[category],
            "multiValued": category in MULTI_VALUE_CATEGORIES,
            "values": [
                {
                    "value": value,
                    "label": VALUE_LABELS.get(value, value),
                    "tone": value_tone(value),
                }
                for value in vocabulary_for(category)
            ],
        }
        for category in ALL_CATEGORIES
    ]
    return JSONResponse(payload)
