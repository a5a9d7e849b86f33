from flask import Blueprint, request, jsonify, current_app
from marshmallow import Schema, fields, validate

from models import db
from repositories import TaskRepository, UserRepository
from schemas import ID_CONVERTER, load_pagination, validate_request_data
from security import load_actor
from task_service import TaskService

tasks_bp = Blueprint('tasks', __name__)
tasks_bp.before_request(load_actor)

# ============================================
# Input Validation Schemas
# ============================================
# status / priority 用字串接收,由 Status.parse / Priority.parse 不分大小寫解析


class CreateTaskSchema(Schema):
    """建立任務驗證"""
    title = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=100),
        error_messages={'required': 'Task title is required'}
    )
    description = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=500),
        error_messages={'required': 'Task description is required'}
    )
    status = fields.Str()
    priority = fields.Str()


class UpdateTaskSchema(Schema):
    """更新任務驗證"""
    title = fields.Str(validate=validate.Length(min=1, max=100))
    description = fields.Str(validate=validate.Length(min=1, max=500))
    status = fields.Str()
    priority = fields.Str()


# ============================================
# 輔助函數
# ============================================

def get_task_service():
    return TaskService(TaskRepository(db.session), UserRepository(db.session))


# ============================================
# 查詢任務
# ============================================

@tasks_bp.route('', methods=['GET'])
def get_tasks():
    """
    查詢任務列表

    篩選: title (子字串)、status、priority
    分頁: page (從 0 開始)、limit
    """
    is_valid, pagination = load_pagination(
        request.args,
        current_app.config['DEFAULT_PAGE_SIZE'],
        current_app.config['MAX_PAGE_SIZE']
    )
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': pagination}), 400

    title = request.args.get('title')
    status = request.args.get('status')
    priority = request.args.get('priority')
    filtered = any([title, status, priority])
    page = pagination['page']

    service = get_task_service()
    if page is None and not filtered:
        tasks = service.get_all_tasks()
    elif page is None:
        tasks = service.get_tasks_with_filtration(title, status, priority)
    elif not filtered:
        tasks = service.get_tasks_with_pagination(page, pagination['limit'])
    else:
        tasks = service.get_tasks_with_pagination_and_filtration(
            page, pagination['limit'], title, status, priority
        )

    return jsonify(tasks), 200


@tasks_bp.route(f'/<{ID_CONVERTER}:task_id>', methods=['GET'])
def get_task(task_id):
    return jsonify(get_task_service().get_task_by_id(task_id)), 200


@tasks_bp.route('/title/<string:title>', methods=['GET'])
def get_task_by_title(title):
    return jsonify(get_task_service().get_task_by_title(title)), 200


# ============================================
# 建立任務
# ============================================

@tasks_bp.route('', methods=['POST'])
def create_task():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(CreateTaskSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    task = get_task_service().add_task(result)

    return jsonify({
        'message': 'Task created successfully',
        'task': task
    }), 201


# ============================================
# 更新任務
# ============================================

@tasks_bp.route(f'/<{ID_CONVERTER}:task_id>', methods=['PATCH'])
def update_task(task_id):
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Request body must be JSON'}), 400

    is_valid, result = validate_request_data(UpdateTaskSchema, data)
    if not is_valid:
        return jsonify({'error': 'Validation failed', 'details': result}), 400

    task = get_task_service().update_task(result, task_id)

    return jsonify({
        'message': 'Task updated successfully',
        'task': task
    }), 200


# ============================================
# 刪除任務
# ============================================

@tasks_bp.route(f'/<{ID_CONVERTER}:task_id>', methods=['DELETE'])
def delete_task(task_id):
    """刪除任務 (評論和執行者關聯一併刪除)"""
    get_task_service().delete_task(task_id)

    return jsonify({'message': 'Task deleted successfully'}), 200


# ============================================
# 指派執行者
# ============================================

@tasks_bp.route(f'/<{ID_CONVERTER}:task_id>/executors/<{ID_CONVERTER}:user_id>', methods=['POST'])
def assign_task(task_id, user_id):
    get_task_service().assign_task_to_user(user_id, task_id)

    return jsonify({'message': 'User assigned to task successfully'}), 200
