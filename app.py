from flask import Flask, request, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from config import get_config
from errors import register_error_handlers
from extensions import bcrypt, cors, jwt, limiter
from models import db, utcnow
import logging
from logging.handlers import RotatingFileHandler
import os

LOG_FORMAT = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 10

# code -> (error, message)
HTTP_ERRORS = {
    400: ('bad_request', 'The request is malformed or invalid'),
    404: ('not_found', 'The requested resource does not exist'),
    405: ('method_not_allowed', 'The HTTP method is not allowed for this endpoint'),
    429: ('rate_limit_exceeded', 'Too many requests. Please try again later.'),
    500: ('internal_server_error', 'An internal error occurred. Our team has been notified.'),
}


# ============================================
# Logging 設定
# ============================================

def _rotating_handler(path, level):
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    handler = RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _has_file_handler(logger, path):
    target = os.path.abspath(path)
    return any(getattr(handler, 'baseFilename', None) == target for handler in logger.handlers)


def setup_logging(app):
    """
    一般 log 和 error log 分開寫檔,debug / testing 模式不寫檔

    handler 只掛在 root logger,app.logger 和各模組的 logger 都會 propagate 上去;
    同一個 process 建第二個 app 時不重複掛 handler
    """
    if app.debug or app.testing:
        return

    root = logging.getLogger()
    level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    root.setLevel(level)
    app.logger.setLevel(level)

    if _has_file_handler(root, app.config['LOG_FILE']):
        return

    root.addHandler(_rotating_handler(app.config['LOG_FILE'], logging.INFO))
    root.addHandler(_rotating_handler(app.config['ERROR_LOG_FILE'], logging.ERROR))

    app.logger.info('TaskForge startup')


# ============================================
# JWT 錯誤處理 (一律回 401)
# ============================================

def _token_error(error, message):
    current_app.logger.warning(f"Rejected token ({error}) from: {request.remote_addr}")
    return jsonify({'error': error, 'message': message, 'status': 401}), 401


def register_jwt_handlers():

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return _token_error('token_expired', 'The token has expired. Please login again.')

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return _token_error('invalid_token', 'Token validation failed. Please provide a valid token.')

    @jwt.unauthorized_loader
    def unauthorized_callback(reason):
        return _token_error(
            'authorization_required',
            'Access token is required. Please provide an authorization token.'
        )

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return _token_error('token_revoked', 'The token has been revoked. Please login again.')


# ============================================
# HTTP 錯誤處理
# ============================================

def _http_error_body(code):
    error, message = HTTP_ERRORS[code]
    return jsonify({'error': error, 'message': message, 'status': code}), code


def register_http_error_handlers(app):

    def handle_http_error(error):
        if error.code == 429:
            app.logger.warning(f"Rate limit exceeded from: {request.remote_addr}")
        elif error.code == 500:
            db.session.rollback()
            app.logger.error(f"Internal server error: {error}", exc_info=True)
        return _http_error_body(error.code)

    for code in HTTP_ERRORS:
        app.register_error_handler(code, handle_http_error)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """沒有專屬 handler 的例外;HTTP 錯誤 (例如 415) 原樣回傳"""
        if isinstance(error, HTTPException):
            return error

        db.session.rollback()
        app.logger.error(f"Unexpected error: {error}", exc_info=True)
        return _http_error_body(500)


# ============================================
# 建立 Flask App
# ============================================

def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or get_config())

    # 由環境變數決定設定時才檢查 production 必要設定
    if config_class is None:
        get_config().validate()

    cors.init_app(
        app,
        supports_credentials=True,
        origins=app.config['CORS_ORIGINS'],
        methods=['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization']
    )

    db.init_app(app)
    jwt.init_app(app)
    bcrypt.init_app(app)
    limiter.init_app(app)

    setup_logging(app)

    with app.app_context():
        db.create_all()

    from auth import auth_bp
    from comments import comments_bp
    from tasks import tasks_bp
    from users import users_bp

    for blueprint, prefix in (
        (auth_bp, 'auth'),
        (comments_bp, 'comments'),
        (tasks_bp, 'tasks'),
        (users_bp, 'users'),
    ):
        app.register_blueprint(blueprint, url_prefix=f'/api/v1/{prefix}')

    register_jwt_handlers()
    register_error_handlers(app)
    register_http_error_handlers(app)

    from commands import register_commands
    register_commands(app)

    @app.before_request
    def log_request():
        if not app.debug:
            app.logger.info(f"Request: {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def finalize_response(response):
        if not app.debug:
            app.logger.info(f"Response: {response.status_code} for {request.method} {request.path}")

        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        return response

    @app.route('/health', methods=['GET'])
    def health_check():
        """資料庫可以連線回 200,否則 503"""
        try:
            db.session.execute(text('SELECT 1'))
        except SQLAlchemyError as e:
            app.logger.error(f"Health check failed: {e}")
            return jsonify({
                'status': 'unhealthy',
                'database': 'disconnected',
                'timestamp': utcnow().isoformat()
            }), 503

        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'timestamp': utcnow().isoformat()
        }), 200

    @app.route('/')
    @limiter.limit("10 per minute")
    def home():
        """API 首頁,依 blueprint 列出所有路由"""
        endpoints = {}
        for rule in app.url_map.iter_rules():
            if '.' not in rule.endpoint:
                continue
            blueprint_name = rule.endpoint.split('.', 1)[0]
            endpoints.setdefault(blueprint_name, []).append({
                'path': str(rule),
                'methods': sorted(rule.methods - {'HEAD', 'OPTIONS'})
            })

        return jsonify({
            'message': 'TaskForge API',
            'version': app.config['API_VERSION'],
            'endpoints': endpoints
        })

    return app


# production 用 gunicorn "app:create_app()",不要用內建 server
if __name__ == '__main__':
    create_app().run(
        debug=os.getenv('FLASK_DEBUG', 'False').lower() == 'true',
        port=int(os.getenv('FLASK_PORT', 8888)),
        host='0.0.0.0'
    )
