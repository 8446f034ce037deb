import logging
from django.utils.deprecation import MiddlewareMixin

from .jwt_auth import ACCESS_TOKEN_COOKIE, get_user_id_from_token

logger = logging.getLogger(__name__)


class JWTAuthenticationMiddleware(MiddlewareMixin):
    """
    Resolves request.user from a JWT access token.

    Runs after Django's AuthenticationMiddleware so session logins (admin,
    tests using force_login) keep working. The token is read from the
    ``Authorization: Bearer <token>`` header first, then from the
    ``access_token`` cookie.
    """

    def process_request(self, request):
        if hasattr(request, 'user') and request.user.is_authenticated:
            return

        token = self._get_token(request)
        if not token:
            return

        user_id = get_user_id_from_token(token)
        if not user_id:
            logger.debug("Ignoring invalid or expired access token")
            return

        from .models import User
        user = User.objects.filter(id=user_id, is_active=True).first()
        if user:
            request.user = user

    @staticmethod
    def _get_token(request):
        header = request.headers.get('Authorization', '')
        if header.startswith('Bearer '):
            return header[len('Bearer '):].strip()
        return request.COOKIES.get(ACCESS_TOKEN_COOKIE)
