from flask import Blueprint, request, jsonify, current_app
from marshmallow import Schema, fields, validate

from access_policy import AccessPolicy
from comment_service import CommentService, CommentUpdate
from models import db
from repositories import CommentRepository, TaskRepository, UserRepository
from schemas import ID_CONVERTER, db_id, load_pagination, validate_request_data
from security import load_actor, current_actor

comments_bp = Blueprint('comments', __name__)

# 這個 blueprint 的所有路由都需要登入
comments_bp.before_request(load_actor)

# ============================================
# Input Validation Schemas
# ============================================


class CreateCommentSchema(Schema):
    """評論驗證"""
    task_id = db_id(required=True, error_messages={'required': 'task_id is required'})
    text = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=2000),
        error_messages={'required': 'Comment text is required'}
    )
    author_id = db_id()


class UpdateCommentSchema(Schema):
    """更新評論驗證 (沒帶的欄位表示不變更)"""
    text = fields.Str(validate=validate.Length(min=1, max=2000))
    author_id = db_id()


# ============================================
# 輔助函數
# ============================================

def get_comment_service():
    session = db.session
    return CommentService(
        CommentRepository(session),
        UserRepository(session),
        TaskRepository(session),
        AccessPolicy()
    )


# ============================================
# 查詢評論
# ============================================

@comments_bp.route('', methods=['GET'])
def get_comments():
    """
    查詢評論列表

    沒帶 page 時回傳全部,否則依 page (從 0 開始) 和 limit 分頁
    """
    is_valid, pagination = load_pagination(
        request.args,
        current_app.config['DEFAULT_PAGE_SIZE'],
        current_app.config['MAX_PAGE_SIZE']
    )
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': pagination}), 400

    service = get_comment_service()
    if pagination['page'] is None:
        comments = service.get_all_comments()
    else:
        comments = service.get_comments_with_pagination(pagination['page'], pagination['limit'])

    return jsonify(comments), 200


@comments_bp.route(f'/<{ID_CONVERTER}:comment_id>', methods=['GET'])
def get_comment(comment_id):
    return jsonify(get_comment_service().get_comment_by_id(comment_id)), 200


@comments_bp.route(f'/task/<{ID_CONVERTER}:task_id>', methods=['GET'])
def get_task_comments(task_id):
    return jsonify(get_comment_service().get_comments_by_task_id(task_id)), 200


@comments_bp.route(f'/user/<{ID_CONVERTER}:user_id>', methods=['GET'])
def get_user_comments(user_id):
    return jsonify(get_comment_service().get_comments_by_user_id(user_id)), 200


# ============================================
# 新增評論
# ============================================

@comments_bp.route('', methods=['POST'])
def create_comment():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(CreateCommentSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    comment = get_comment_service().add_comment(
        task_id=result['task_id'],
        text=result['text'],
        actor_id=current_actor().id,
        author_id=result.get('author_id')
    )

    return jsonify({
        'message': 'Comment added successfully',
        'comment': comment
    }), 201


# ============================================
# 更新評論
# ============================================

@comments_bp.route(f'/<{ID_CONVERTER}:comment_id>', methods=['PATCH'])
def update_comment(comment_id):
    """
    更新評論

    作者或 ADMIN 可以改內容;只有 ADMIN 可以改作者
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(UpdateCommentSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    update = CommentUpdate(
        comment_id=comment_id,
        text=result.get('text'),
        author_id=result.get('author_id')
    )
    get_comment_service().update_comment(update, current_actor().id)

    return jsonify({'message': 'Comment updated successfully'}), 200


# ============================================
# 刪除評論
# ============================================

@comments_bp.route(f'/<{ID_CONVERTER}:comment_id>', methods=['DELETE'])
def delete_comment(comment_id):
    """只有作者或 ADMIN 可以刪除"""
    get_comment_service().delete_comment(comment_id, current_actor().id)

    return jsonify({'message': 'Comment deleted successfully'}), 200
