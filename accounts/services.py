from django.utils import timezone
from loguru import logger

from app.core.exceptions import BadRequest, Unauthenticated
from accounts.models import User, UserRole
from accounts.tokens import issue_token

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def _clean_name(name) -> str:
    name = (name or '').strip()
    if not (NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH):
        raise BadRequest(f'Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters')
    return name


def _check_password(password) -> str:
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        raise BadRequest(f'Password must be at least {PASSWORD_MIN_LENGTH} characters')
    return password


class AuthService:
    @staticmethod
    def register(name, email, password, role=None) -> tuple[User, str]:
        email = (email or '').strip().lower()
        if not email or '@' not in email:
            raise BadRequest('A valid email is required')
        name = _clean_name(name)
        _check_password(password)
        role = role or UserRole.MEMBER
        if role not in UserRole.values:
            raise BadRequest(f'Invalid role: {role}')
        if User.objects.filter(email=email).exists():
            raise BadRequest('User with this email already exists')

        user = User.objects.create_user(email=email, password=password, name=name, role=role)
        logger.info(f"Registered user {user.id} ({email})")
        return user, issue_token(user)

    @staticmethod
    def login(email, password) -> tuple[User, str]:
        email = (email or '').strip().lower()
        user = User.objects.filter(email=email).first()
        if user is None:
            raise Unauthenticated('Invalid email or password')
        if not user.is_active:
            raise Unauthenticated('Account is deactivated')
        if not user.check_password(password or ''):
            raise Unauthenticated('Invalid email or password')

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return user, issue_token(user)

    @staticmethod
    def update_profile(user: User, data: dict) -> User:
        fields = []
        if data.get('name'):
            user.name = _clean_name(data['name'])
            fields.append('name')
        if 'avatar' in data:
            user.avatar = data.get('avatar') or ''
            fields.append('avatar')
        if fields:
            user.save(update_fields=fields + ['updated_at'])
        return user

    @staticmethod
    def change_password(user: User, current_password, new_password) -> None:
        if not user.check_password(current_password or ''):
            raise Unauthenticated('Current password is incorrect')
        user.set_password(_check_password(new_password))
        user.save(update_fields=['password', 'updated_at'])
        logger.info(f"User {user.id} changed password")
