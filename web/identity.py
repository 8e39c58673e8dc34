"""
Current-user resolution.

There is no authentication in CivicEye. Attribution of a request to a user is
delegated to a resolver so a real session layer can replace it later. The
default resolver trusts an X-User-Id header and otherwise falls back to a
configured default reporter, or to an anonymous submission.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Request

from core.errors import NotFoundError, ValidationError
from core.store import EntityStore


logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"

CurrentUserResolver = Callable[[Request], Optional[int]]


class HeaderUserResolver:
    """
    Resolve the submitting user from the X-User-Id header.

    - Header present: must name an existing user (ValidationError if not an
      integer, NotFoundError if unknown).
    - Header absent: the default user if configured and present, else None.
    """

    def __init__(self, store: EntityStore, default_user_id: Optional[int] = None):
        self._store = store
        self._default_user_id = default_user_id

    def __call__(self, request: Request) -> Optional[int]:
        raw = request.headers.get(USER_ID_HEADER)
        if raw is not None and raw.strip():
            try:
                user_id = int(raw.strip())
            except ValueError:
                raise ValidationError({USER_ID_HEADER: "Must be an integer user id"})
            self._store.get_user(user_id)
            return user_id

        if self._default_user_id is None:
            return None
        try:
            self._store.get_user(self._default_user_id)
        except NotFoundError:
            logger.debug("Default user %d not found, submitting anonymously", self._default_user_id)
            return None
        return self._default_user_id


def current_user_id(request: Request) -> Optional[int]:
    """FastAPI dependency: the resolver installed on the app."""
    resolver: CurrentUserResolver = request.app.state.current_user_resolver
    return resolver(request)
