from errors import TaskNotFoundError, UserNotFoundError, UserAlreadyHasTaskError
from models import Task, Status, Priority
from schemas import task_schema
import logging

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('title', 'description', 'status', 'priority')


class TaskService:
    """任務的 CRUD、篩選和指派執行者"""

    def __init__(self, tasks, users):
        self.tasks = tasks
        self.users = users

    # ============================================
    # 查詢
    # ============================================

    def get_all_tasks(self):
        return self._map_many(self.tasks.find_all())

    def get_tasks_with_pagination(self, page, limit):
        return self._map_many(self.tasks.find_page(page * limit, limit))

    def get_tasks_with_filtration(self, title=None, status=None, priority=None):
        return self._map_many(self.tasks.find_filtered(
            title=title,
            status=self._parse_optional(Status, status),
            priority=self._parse_optional(Priority, priority)
        ))

    def get_tasks_with_pagination_and_filtration(self, page, limit, title=None, status=None, priority=None):
        return self._map_many(self.tasks.find_filtered(
            title=title,
            status=self._parse_optional(Status, status),
            priority=self._parse_optional(Priority, priority),
            offset=page * limit,
            limit=limit
        ))

    def get_task_by_id(self, task_id):
        return self._map(self._get_task(task_id))

    def get_task_by_title(self, title):
        task = self.tasks.find_by_title(title)
        if not task:
            raise TaskNotFoundError(f"Task '{title}' not found")
        return self._map(task)

    # ============================================
    # 新增 / 更新 / 刪除
    # ============================================

    def add_task(self, payload):
        task = Task(
            title=payload['title'],
            description=payload['description'],
            status=Status.parse(payload.get('status', Status.PENDING)),
            priority=Priority.parse(payload.get('priority', Priority.MEDIUM))
        )
        self.tasks.save(task)

        logger.info(f"Task created: {task.id} '{task.title}'")

        return self._map(task)

    def update_task(self, payload, task_id):
        """部分更新,只有實際變動才寫入"""
        task = self._get_task(task_id)

        values = dict(payload)
        if 'status' in values:
            values['status'] = Status.parse(values['status'])
        if 'priority' in values:
            values['priority'] = Priority.parse(values['priority'])

        changes = {}
        for field in UPDATABLE_FIELDS:
            if field in values and values[field] is not None:
                old_value = getattr(task, field)
                new_value = values[field]
                if old_value != new_value:
                    changes[field] = {'old': str(old_value), 'new': str(new_value)}
                    setattr(task, field, new_value)

        if changes:
            self.tasks.save(task)
            logger.info(f"Task {task_id} updated: {sorted(changes)}")

        return self._map(task)

    def delete_task(self, task_id):
        task = self._get_task(task_id)
        # 評論和執行者關聯由 repository 一併刪除
        self.tasks.delete_by_id(task.id)
        logger.info(f"Task deleted: {task_id}")

    def assign_task_to_user(self, user_id, task_id):
        task = self._get_task(task_id)

        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()

        if self.tasks.has_executor(task.id, user.id):
            raise UserAlreadyHasTaskError()

        self.tasks.add_executor(task.id, user.id)
        logger.info(f"User {user.id} assigned to task {task.id}")

    # ============================================
    # 輔助函數
    # ============================================

    def _get_task(self, task_id):
        task = self.tasks.find_by_id(task_id)
        if not task:
            raise TaskNotFoundError()
        return task

    def _parse_optional(self, enum_class, value):
        if value is None or value == '':
            return None
        return enum_class.parse(value)

    def _map(self, task):
        data = task_schema.dump(task)
        data['executors'] = self.tasks.find_executor_ids(task.id)
        return data

    def _map_many(self, tasks):
        executors = self.tasks.find_executor_map([task.id for task in tasks])
        result = []
        for task in tasks:
            data = task_schema.dump(task)
            data['executors'] = executors.get(task.id, [])
            result.append(data)
        return result
