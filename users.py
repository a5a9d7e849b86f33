from flask import Blueprint, request, jsonify, current_app
from marshmallow import Schema, fields, validate

from access_policy import AccessPolicy
from models import db
from repositories import UserRepository
from schemas import ID_CONVERTER, load_pagination, validate_request_data
from security import load_actor, current_actor
from user_service import UserService

users_bp = Blueprint('users', __name__)
users_bp.before_request(load_actor)


class UpdateUserSchema(Schema):
    """個人資料更新驗證 (role 不開放修改)"""
    email = fields.Email()
    first_name = fields.Str(validate=validate.Length(min=1, max=100))
    last_name = fields.Str(validate=validate.Length(min=1, max=100))


def get_user_service():
    return UserService(UserRepository(db.session), AccessPolicy())


@users_bp.route('', methods=['GET'])
def get_users():
    is_valid, pagination = load_pagination(
        request.args,
        current_app.config['DEFAULT_PAGE_SIZE'],
        current_app.config['MAX_PAGE_SIZE']
    )
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': pagination}), 400

    service = get_user_service()
    if pagination['page'] is None:
        users = service.get_all_users()
    else:
        users = service.get_users_with_pagination(pagination['page'], pagination['limit'])

    return jsonify(users), 200


@users_bp.route('/me', methods=['GET'])
def get_me():
    """取得當前登入使用者的資訊"""
    return jsonify(get_user_service().get_user_by_id(current_actor().id)), 200


@users_bp.route(f'/<{ID_CONVERTER}:user_id>', methods=['GET'])
def get_user(user_id):
    return jsonify(get_user_service().get_user_by_id(user_id)), 200


@users_bp.route(f'/<{ID_CONVERTER}:user_id>', methods=['PATCH'])
def update_user(user_id):
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(UpdateUserSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    user = get_user_service().update_user(user_id, result, current_actor().id)

    return jsonify({
        'message': 'Profile updated successfully',
        'user': user
    }), 200


@users_bp.route(f'/<{ID_CONVERTER}:user_id>', methods=['DELETE'])
def delete_user(user_id):
    get_user_service().delete_user(user_id, current_actor().id)

    return jsonify({'message': 'User deleted successfully'}), 200
