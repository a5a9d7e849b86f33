from flask import g, request
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request

from access_policy import Actor
from errors import InvalidCredentialsError
from extensions import bcrypt
from models import Role
import logging

logger = logging.getLogger(__name__)

# ============================================
# 密碼雜湊
# ============================================


class PasswordHasher:
    """包裝 flask_bcrypt,只暴露 hash / verify"""

    def __init__(self, backend=None):
        self.backend = backend or bcrypt

    def hash(self, plaintext):
        return self.backend.generate_password_hash(plaintext).decode('utf-8')

    def verify(self, digest, plaintext):
        return self.backend.check_password_hash(digest, plaintext)


# ============================================
# 帳號密碼驗證
# ============================================

class PasswordAuthenticator:

    def __init__(self, users, hasher):
        self.users = users
        self.hasher = hasher

    def authenticate(self, identifier, secret):
        """
        驗證 email + 密碼

        不區分是 email 錯還是 password 錯,避免帳號枚舉攻擊

        Returns:
            User: 驗證成功的使用者
        Raises:
            InvalidCredentialsError
        """
        user = self.users.find_by_email(identifier)
        if not user or not self.hasher.verify(user.password_hash, secret):
            logger.warning(f"Failed login attempt for email: {identifier}")
            raise InvalidCredentialsError()
        return user


# ============================================
# JWT 簽發
# ============================================

class TokenIssuer:

    def issue(self, user):
        """Token 內含 user id (identity)、role 和 email,過期時間由 JWT_ACCESS_TOKEN_EXPIRES 決定"""
        return create_access_token(
            identity=str(user.id),
            additional_claims={
                'role': Role.parse(user.role).value,
                'email': user.email
            }
        )


# ============================================
# Bearer token middleware
# ============================================

def load_actor():
    """
    before_request hook: 解析 Authorization header,
    把 Actor(id, role) 放到 g.actor

    token 無效時 flask_jwt_extended 會丟例外,由 app 的 JWT loaders 回 401
    """
    if request.method == 'OPTIONS':
        return None

    verify_jwt_in_request()
    claims = get_jwt()
    g.actor = Actor(
        id=int(get_jwt_identity()),
        role=Role.parse(claims.get('role', Role.USER.value))
    )
    return None


def current_actor():
    return g.actor
