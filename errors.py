from flask import jsonify
import logging

logger = logging.getLogger(__name__)

# ============================================
# 錯誤分類
# ============================================


class TaskForgeError(Exception):
    """
    所有業務錯誤的基底類別

    每個子類別帶有 HTTP status code 和固定的 error code,
    由 register_error_handlers 統一轉成 JSON 回應
    """
    status_code = 500
    error = 'error'
    message = 'An error occurred'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {
            'error': self.error,
            'message': self.message,
            'status': self.status_code
        }


class NotFoundError(TaskForgeError):
    status_code = 404
    error = 'not_found'
    message = 'The requested resource does not exist'


class CommentNotFoundError(NotFoundError):
    message = 'Comment not found'


class TaskNotFoundError(NotFoundError):
    message = 'Task not found'


class UserNotFoundError(NotFoundError):
    error = 'user_not_found'
    message = 'User not found'


class AccessDeniedError(TaskForgeError):
    status_code = 403
    error = 'access_denied'
    message = 'You do not have permission to perform this action'


class AlreadyExistsError(TaskForgeError):
    status_code = 409
    error = 'already_exists'
    message = 'Resource already exists'


class UserAlreadyExistsError(AlreadyExistsError):
    message = 'A user with this email already exists'


class UserAlreadyHasTaskError(AlreadyExistsError):
    message = 'User is already an executor of this task'


class InvalidCredentialsError(TaskForgeError):
    status_code = 401
    error = 'invalid_credentials'
    message = 'Invalid credentials'


class InvalidEnumValueError(TaskForgeError, ValueError):
    status_code = 400
    error = 'invalid_value'
    message = 'Unrecognized value'


# ============================================
# Flask 錯誤處理
# ============================================

def register_error_handlers(app):
    """把業務錯誤轉成 {error, message, status} 格式"""

    @app.errorhandler(TaskForgeError)
    def handle_taskforge_error(error):
        if error.status_code >= 500:
            logger.error(f"Unhandled domain error: {error.message}", exc_info=True)
        return jsonify(error.to_dict()), error.status_code
