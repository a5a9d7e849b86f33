from marshmallow import EXCLUDE, Schema, fields, validate, ValidationError

from models import Role, Status, Priority

# ============================================
# 對外輸出格式 (entity -> JSON)
# ============================================


class CommentSchema(Schema):
    id = fields.Int()
    text = fields.Str()
    author_id = fields.Int()
    task_id = fields.Int()
    created_at = fields.DateTime()
    updated_at = fields.DateTime(allow_none=True)


class TaskSchema(Schema):
    id = fields.Int()
    title = fields.Str()
    description = fields.Str()
    status = fields.Enum(Status)
    priority = fields.Enum(Priority)
    created_at = fields.DateTime()


class UserSchema(Schema):
    """不輸出 password_hash"""
    id = fields.Int()
    email = fields.Email()
    first_name = fields.Str()
    last_name = fields.Str()
    role = fields.Enum(Role)
    created_at = fields.DateTime()


comment_schema = CommentSchema()
task_schema = TaskSchema()
user_schema = UserSchema()


# ============================================
# 共用的輸入驗證
# ============================================

# SQLite / PostgreSQL 的 64-bit 整數上限,超過會在 driver 層 overflow
MAX_DB_INT = 2 ** 63 - 1

# 路由用的 id converter,超過上限直接 404
ID_CONVERTER = f'int(max={MAX_DB_INT})'


def db_id(**kwargs):
    """marshmallow id 欄位 (1 ~ MAX_DB_INT)"""
    return fields.Int(validate=validate.Range(min=1, max=MAX_DB_INT), **kwargs)


class PaginationSchema(Schema):
    """分頁參數 (page 從 0 開始)"""
    page = fields.Int(validate=validate.Range(min=0, error='page must be >= 0'))
    limit = fields.Int(validate=validate.Range(min=1, error='limit must be >= 1'))


def load_pagination(args, default_limit, max_limit):
    """
    從 query string 讀取分頁參數

    Returns:
        tuple: (is_valid, {'page': int|None, 'limit': int} 或 errors)
        page 為 None 表示不分頁
    """
    try:
        result = PaginationSchema().load(args, unknown=EXCLUDE)
    except ValidationError as err:
        return False, err.messages

    limit = result.get('limit', default_limit)
    if limit > max_limit:
        return False, {'limit': [f'limit must be <= {max_limit}']}

    page = result.get('page')
    if page is not None and page * limit > MAX_DB_INT:
        return False, {'page': ['page is out of range']}

    return True, {'page': page, 'limit': limit}


def validate_request_data(schema_class, data):
    """
    統一的輸入驗證函數

    Returns:
        tuple: (is_valid, data_or_errors)
    """
    schema = schema_class()
    try:
        validated_data = schema.load(data)
        return True, validated_data
    except ValidationError as err:
        return False, err.messages
