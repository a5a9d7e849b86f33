from errors import UserAlreadyExistsError
from models import User, Role
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    註冊與登入

    密碼雜湊、帳密驗證、token 簽發都由外部傳入的元件負責
    """

    def __init__(self, users, hasher, authenticator, issuer):
        self.users = users
        self.hasher = hasher
        self.authenticator = authenticator
        self.issuer = issuer

    def register(self, credentials):
        """
        使用者註冊

        註冊一律建立 USER,ADMIN 只能用 CLI 建立

        Returns:
            dict: {'token': ...}
        """
        if self.users.find_by_email(credentials['email']):
            raise UserAlreadyExistsError()

        user = User(
            email=credentials['email'],
            password_hash=self.hasher.hash(credentials['password']),
            first_name=credentials['first_name'],
            last_name=credentials['last_name'],
            role=Role.USER
        )
        self.users.save(user)

        logger.info(f"New user registered: {user.email}")

        return {'token': self.issuer.issue(user)}

    def login(self, credentials):
        user = self.authenticator.authenticate(credentials['email'], credentials['password'])

        logger.info(f"User logged in: {user.email}")

        return {'token': self.issuer.issue(user)}
