from flask import Blueprint, request, jsonify
from marshmallow import Schema, fields, validate

from auth_service import AuthService
from extensions import limiter
from models import db
from repositories import UserRepository
from schemas import validate_request_data
from security import PasswordHasher, PasswordAuthenticator, TokenIssuer

auth_bp = Blueprint('auth', __name__)

# ============================================
# Input Validation Schemas (用 marshmallow)
# ============================================


class RegisterSchema(Schema):
    """註冊輸入驗證"""
    email = fields.Email(required=True, error_messages={
        'required': 'Email is required',
        'invalid': 'Invalid email format'
    })
    # bcrypt 只處理前 72 bytes
    password = fields.Str(
        required=True,
        validate=validate.Length(min=8, max=72, error='Password must be 8-72 characters'),
        error_messages={'required': 'Password is required'}
    )
    first_name = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=100, error='First name must be 1-100 characters'),
        error_messages={'required': 'First name is required'}
    )
    last_name = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=100, error='Last name must be 1-100 characters'),
        error_messages={'required': 'Last name is required'}
    )


class LoginSchema(Schema):
    """登入輸入驗證"""
    email = fields.Email(required=True)
    password = fields.Str(required=True)


# ============================================
# Helper Functions
# ============================================

def get_auth_service():
    """每個 request 組一次 service,collaborators 全部用建構子傳入"""
    users = UserRepository(db.session)
    hasher = PasswordHasher()
    return AuthService(users, hasher, PasswordAuthenticator(users, hasher), TokenIssuer())


# ============================================
# 註冊 API
# ============================================

@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per hour")
def register():
    """
    使用者註冊

    成功回傳 201 和 access token,email 重複回 409
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(RegisterSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    response = get_auth_service().register(result)

    return jsonify(response), 201


# ============================================
# 登入 API
# ============================================

@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """
    使用者登入

    錯誤訊息不區分 email/password 錯誤,避免帳號枚舉攻擊
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(LoginSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    response = get_auth_service().login(result)

    return jsonify(response), 200
