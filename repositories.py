from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from models import User, Task, Comment, task_user
import logging

logger = logging.getLogger(__name__)

# ============================================
# Identity Store
# ============================================
# 每個 repository 都由呼叫端傳入 session,不依賴全域狀態


class BaseRepository:
    model = None

    def __init__(self, session):
        self.session = session

    def find_by_id(self, entity_id):
        return self.session.get(self.model, entity_id)

    def find_all(self):
        return self.session.query(self.model).order_by(self.model.id).all()

    def find_page(self, offset, limit):
        """依 id 排序後取 [offset, offset + limit) 的視窗"""
        return (
            self.session.query(self.model)
            .order_by(self.model.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def save(self, entity):
        try:
            self.session.add(entity)
            self.session.commit()
            return entity
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to save {self.model.__name__}: {str(e)}", exc_info=True)
            raise

    def delete_by_id(self, entity_id):
        try:
            self._delete_dependents(entity_id)
            self.session.query(self.model).filter_by(id=entity_id).delete()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {entity_id}: {str(e)}", exc_info=True)
            raise

    def _delete_dependents(self, entity_id):
        """子類別覆寫,在同一個 transaction 裡刪除關聯資料"""


class UserRepository(BaseRepository):
    model = User

    def find_by_email(self, email):
        return self.session.query(User).filter_by(email=email).first()

    def _delete_dependents(self, user_id):
        self.session.execute(task_user.delete().where(task_user.c.user_id == user_id))
        self.session.query(Comment).filter_by(author_id=user_id).delete()


class TaskRepository(BaseRepository):
    model = Task

    def find_by_title(self, title):
        return self.session.query(Task).filter_by(title=title).order_by(Task.id).first()

    def find_filtered(self, title=None, status=None, priority=None, offset=None, limit=None):
        """
        依條件篩選任務

        title 用子字串比對,每個條件都是可選的 (None 表示不篩選)
        """
        query = self.session.query(Task)

        if title:
            query = query.filter(Task.title.contains(title))
        if status is not None:
            query = query.filter(Task.status == status)
        if priority is not None:
            query = query.filter(Task.priority == priority)

        query = query.order_by(Task.id)

        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return query.all()

    def find_executor_ids(self, task_id):
        stmt = (
            select(task_user.c.user_id)
            .where(task_user.c.task_id == task_id)
            .order_by(task_user.c.user_id)
        )
        return list(self.session.execute(stmt).scalars())

    def find_executor_map(self, task_ids):
        """一次查出多個任務的執行者,避免 N+1"""
        executors = {task_id: [] for task_id in task_ids}
        if not executors:
            return executors

        stmt = (
            select(task_user.c.task_id, task_user.c.user_id)
            .where(task_user.c.task_id.in_(list(executors)))
            .order_by(task_user.c.task_id, task_user.c.user_id)
        )
        for task_id, user_id in self.session.execute(stmt):
            executors[task_id].append(user_id)
        return executors

    def has_executor(self, task_id, user_id):
        stmt = select(task_user.c.task_id).where(
            task_user.c.task_id == task_id,
            task_user.c.user_id == user_id
        )
        return self.session.execute(stmt).first() is not None

    def add_executor(self, task_id, user_id):
        try:
            self.session.execute(task_user.insert().values(task_id=task_id, user_id=user_id))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to assign user {user_id} to task {task_id}: {str(e)}", exc_info=True)
            raise

    def _delete_dependents(self, task_id):
        # 刪除任務時一併刪除評論和執行者關聯
        self.session.execute(task_user.delete().where(task_user.c.task_id == task_id))
        self.session.query(Comment).filter_by(task_id=task_id).delete()


class CommentRepository(BaseRepository):
    model = Comment

    def find_by_task_id(self, task_id):
        return self.session.query(Comment).filter_by(task_id=task_id).order_by(Comment.id).all()

    def find_by_author_id(self, author_id):
        return self.session.query(Comment).filter_by(author_id=author_id).order_by(Comment.id).all()
