"""
Auth API: регистрация, вход, профиль.
"""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from app.utils.responses import api_created, api_success, api_view, parse_json_body
from accounts.decorators import token_required
from accounts.services import AuthService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
@api_view
def register(request):
    data = parse_json_body(request)
    user, token = AuthService.register(
        name=data.get('name'),
        email=data.get('email'),
        password=data.get('password'),
        role=data.get('role'),
    )
    return api_created({'user': user.to_dict(), 'token': token}, message='User registered successfully')


@csrf_exempt
@require_http_methods(["POST"])
@api_view
def login(request):
    data = parse_json_body(request)
    user, token = AuthService.login(data.get('email'), data.get('password'))
    return api_success({'user': user.to_dict(), 'token': token}, message='Login successful')


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH"])
@api_view
@token_required
def me(request):
    user = request.user
    if request.method != "GET":
        user = AuthService.update_profile(user, parse_json_body(request))
        return api_success({'user': user.to_dict()}, message='Profile updated successfully')

    payload = user.to_dict()
    payload['teams'] = [
        {'id': m.team_id, 'name': m.team.name, 'role': m.role}
        for m in user.team_memberships.filter(team__is_active=True).select_related('team')
    ]
    return api_success({'user': payload})


@csrf_exempt
@require_http_methods(["POST"])
@api_view
@token_required
def change_password(request):
    data = parse_json_body(request)
    AuthService.change_password(request.user, data.get('currentPassword'), data.get('newPassword'))
    logger.info("Password changed for user %s", request.user.id)
    return api_success(message='Password changed successfully')
