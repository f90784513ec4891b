"""
Bearer tokens: signed, timestamped payload {user_id, email, role}.
"""
from django.conf import settings
from django.core import signing

from app.core.exceptions import Unauthenticated


def issue_token(user) -> str:
    payload = {'user_id': user.id, 'email': user.email, 'role': user.role}
    return signing.dumps(payload, salt=settings.TOKEN_SALT)


def read_token(token: str) -> dict:
    """Проверяет подпись и срок жизни токена, возвращает payload."""
    try:
        return signing.loads(token, salt=settings.TOKEN_SALT, max_age=settings.TOKEN_MAX_AGE)
    except signing.SignatureExpired:
        raise Unauthenticated('Token expired')
    except signing.BadSignature:
        raise Unauthenticated('Invalid token')
