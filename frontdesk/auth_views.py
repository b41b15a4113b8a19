"""
Authentication views.

Front-desk operators log in with their email (or username) and a
password and receive both a DRF token and a JWT pair.  Refresh and logout
operate on the JWT pair; ``me`` returns the current profile.
"""
from __future__ import annotations

import structlog
from django.contrib.auth import authenticate
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from frontdesk.models import User
from frontdesk.serializers.auth import LoginSerializer, user_payload
from frontdesk.services.audit import log_action

logger = structlog.get_logger(__name__)


def _resolve_username(account: str) -> str:
    if '@' in account:
        user = User.objects.filter(email__iexact=account).only('username').first()
        if user:
            return user.username
    return account


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login with email (or username) and password.
    Accepts fields:
      - email or username
      - password
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    account = s.validated_data['account']
    password = s.validated_data['password']
    ip = request.META.get('REMOTE_ADDR')

    username = _resolve_username(account)
    candidate = User.objects.filter(username=username).first()
    if candidate and not candidate.is_active and candidate.check_password(password):
        logger.warning("login_failed", account=account, reason="inactive")
        log_action(user=None, action='login', object_type='user', object_id=candidate.pk,
                   detail={'result': 'inactive', 'ip': ip})
        return Response({'success': False, 'message': 'Account is deactivated'}, status=401)

    user = authenticate(request, username=username, password=password)
    if not user:
        # 审计失败尝试（仅记录账号）
        logger.warning("login_failed", account=account, reason="bad_credentials")
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'account': account, 'ip': ip})
        return Response({'success': False, 'message': 'Invalid email or password'}, status=401)

    log_action(user=user, action='login', object_type='user', object_id=user.pk,
               detail={'result': 'ok', 'ip': ip})
    logger.info("login_succeeded", user_id=user.pk)

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'success': True,
        'message': 'Login successful',
        'data': {
            'token': token_obj.key,
            'accessToken': str(refresh.access_token),
            'refreshToken': str(refresh),
            'user': user_payload(user),
        },
    }, status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'success': True, 'data': user_payload(request.user)})


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    data = {'refresh': request.data.get('refresh') or request.data.get('refreshToken')}
    serializer = TokenRefreshSerializer(data=data)
    try:
        serializer.is_valid(raise_exception=True)
    except TokenError as e:
        return Response({'success': False, 'message': str(e)}, status=401)
    return Response({'success': True, 'data': {'accessToken': serializer.validated_data['access']}})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the user's outstanding ones."""
    refresh = request.data.get('refresh') or request.data.get('refreshToken')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'success': False, 'message': str(e)}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.pk,
               detail={'blacklisted': count})
    return Response({'success': True, 'message': 'Logged out', 'data': {'blacklisted': count}})
