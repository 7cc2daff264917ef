"""Bearer-token identity resolution.

Submission routes use soft auth: no ``Authorization`` header means an
anonymous caller. A header that is present must carry a valid Firebase ID
token. ``require_auth`` guards routes that need an identity.
"""

import logging
from collections import namedtuple
from functools import wraps

from flask import current_app, g, request
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from .errors import AuthenticationError

logger = logging.getLogger(__name__)

Identity = namedtuple('Identity', ['uid', 'email'])

FIREBASE_ISSUER = 'https://securetoken.google.com/{project_id}'


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens against Google's published certificates."""

    def __init__(self, project_id, transport=None):
        self.project_id = project_id
        self.transport = transport or google_requests.Request()

    def verify(self, token):
        if not self.project_id:
            raise AuthenticationError('Unauthorized: token verification is not configured',
                                      details='FIREBASE_PROJECT_ID is not set')
        try:
            claims = id_token.verify_firebase_token(token, self.transport, audience=self.project_id)
        except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
            logger.warning(f"Rejected ID token: {e}")
            raise AuthenticationError('Unauthorized: Invalid token', details=str(e))

        if claims.get('iss') != FIREBASE_ISSUER.format(project_id=self.project_id):
            raise AuthenticationError('Unauthorized: Invalid token', details='Unexpected token issuer')

        uid = claims.get('user_id') or claims.get('sub')
        if not uid:
            raise AuthenticationError('Unauthorized: Invalid token', details='Token has no subject')
        return Identity(uid=uid, email=claims.get('email'))


def bearer_token():
    """Return the bearer token from the request, or None when no header is sent."""
    header = request.headers.get('Authorization')
    if not header:
        return None
    scheme, _, token = header.partition(' ')
    if scheme != 'Bearer' or not token.strip():
        raise AuthenticationError('Unauthorized: No Bearer token')
    return token.strip()


def current_identity():
    """Resolve the caller once per request; anonymous callers resolve to None."""
    if 'identity' not in g:
        token = bearer_token()
        verifier = current_app.extensions['pishield']['token_verifier']
        g.identity = verifier.verify(token) if token else None
    return g.identity


def current_user_id():
    identity = current_identity()
    return identity.uid if identity else None


def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not request.headers.get('Authorization'):
            raise AuthenticationError('Unauthorized: No Authorization header')
        if current_identity() is None:
            raise AuthenticationError('Authentication required')
        return view(*args, **kwargs)
    return wrapper
