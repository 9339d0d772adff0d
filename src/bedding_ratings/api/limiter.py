"""Shared slowapi request-throttling singleton.

This is HTTP-level flood protection (requests per minute per address).  It
is independent of the one-rating-per-week submission rules enforced by
:mod:`bedding_ratings.core.rate_limiter`, which live in the database.

Keeping the ``Limiter`` instance in its own module breaks the circular
import that would arise if route modules imported directly from ``main.py``
(which itself imports every route module).

Usage in route modules::

    from bedding_ratings.api.limiter import limiter

    @router.post("")
    @limiter.limit(get_settings().submission_rate_limit)
    async def submit_rating(request: Request, ...):
        ...

The ``request`` parameter **must** be present in the route function
signature for slowapi to resolve the rate-limit key.

The ``Limiter`` is wired into the application in ``main.create_app()``,
where it is attached to ``app.state`` and the ``SlowAPIMiddleware`` is
registered.
"""

from __future__ import annotations

from slowapi import Limiter

from bedding_ratings.api.dependencies import get_source_address
from bedding_ratings.config.settings import get_settings

_settings = get_settings()

limiter: Limiter = Limiter(
    key_func=get_source_address,
    default_limits=[_settings.default_rate_limit],
    storage_uri=_settings.rate_limit_storage_uri,
)
"""Global rate-limiter instance.

Keyed by the same source address the submission rules use, so a client
behind a trusted proxy is throttled by its forwarded address.
"""
