import enum
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

from errors import InvalidEnumValueError

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


# ============================================
# 列舉 (封閉集合,不認得的值直接報錯)
# ============================================

class ParsableEnum(enum.Enum):

    @classmethod
    def parse(cls, value):
        """不分大小寫解析字串,不認得的值丟 InvalidEnumValueError (不回傳 None)"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidEnumValueError(f"{cls.__name__} value must be a non-empty string")
        try:
            return cls[value.strip().upper()]
        except KeyError:
            allowed = ', '.join(member.name for member in cls)
            raise InvalidEnumValueError(
                f"Unknown {cls.__name__.lower()} '{value}', expected one of: {allowed}"
            ) from None


class Role(ParsableEnum):
    USER = 'USER'
    ADMIN = 'ADMIN'


class Status(ParsableEnum):
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'


class Priority(ParsableEnum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'


# ============================================
# 1. User 模型
# ============================================
class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.Enum(Role), nullable=False, default=Role.USER)
    created_at = db.Column(db.DateTime, default=utcnow)


# ============================================
# 2. 多對多關聯表：任務與執行者
# ============================================
# 關聯只用 id 表示,查詢交給 repository
task_user = db.Table('task_user',
    db.Column('task_id', db.Integer, db.ForeignKey('task.id'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('user.id'), primary_key=True)
)


# ============================================
# 3. Task 模型
# ============================================
class Task(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False, index=True)
    description = db.Column(db.String(500), nullable=False)
    status = db.Column(db.Enum(Status), nullable=False, default=Status.PENDING)
    priority = db.Column(db.Enum(Priority), nullable=False, default=Priority.MEDIUM)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.Index('idx_task_status_priority', 'status', 'priority'),
    )


# ============================================
# 4. Comment 模型
# ============================================
class Comment(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey('task.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, onupdate=utcnow)
