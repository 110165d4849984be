"""Coarse page gate evaluated before routing.

Only the session cookie is consulted and no database lookup is made. API
routes do their own fine-grained check through ``require_auth``.
"""

import logging
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from bnoverseas.auth.policies import PAGE_POLICIES, policy_for
from bnoverseas.auth.resolvers import SessionCookieResolver
from bnoverseas.core import config

logger = logging.getLogger(__name__)


class EdgeAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, policies=PAGE_POLICIES):
        super().__init__(app)
        self.policies = policies
        self.resolver = SessionCookieResolver()

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        policy = policy_for(path, self.policies)
        if policy is None:
            return await call_next(request)

        claims = self.resolver.claims(request)
        if claims is None:
            query = urlencode({'callbackUrl': path})
            return RedirectResponse(url=f'{config.LOGIN_PAGE_PATH}?{query}')

        if not policy.allows(claims.get('role')):
            logger.info('Role %s refused for %s', claims.get('role'), path)
            return RedirectResponse(url=f"/?{urlencode({'error': 'unauthorized'})}")

        return await call_next(request)
