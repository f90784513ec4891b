"""
Bearer-token authentication for JSON views.
"""
from functools import wraps

from app.core.exceptions import Unauthenticated
from accounts.models import User
from accounts.tokens import read_token


def get_user_from_request(request) -> User:
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise Unauthenticated('Not authorized, no token')

    payload = read_token(token.strip())
    user = User.objects.filter(pk=payload.get('user_id')).first()
    if user is None:
        raise Unauthenticated('User not found')
    if not user.is_active:
        raise Unauthenticated('Account is deactivated')
    return user


def token_required(view_func):
    """
    Resolve the bearer token into request.user.
    Must be wrapped by @api_view so Unauthenticated turns into a 401 response.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        request.user = get_user_from_request(request)
        return view_func(request, *args, **kwargs)
    return _wrapped
