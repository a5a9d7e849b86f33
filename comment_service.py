"""
評論服務

讀取不做權限檢查;新增、更新、刪除都透過 AccessPolicy 判斷,
判斷結果為 False 時在這裡轉成 AccessDeniedError。
每個寫入操作最多只有一次 persistence write,而且一定在所有檢查之後。
"""
from collections import namedtuple

from access_policy import actor_from_user
from errors import AccessDeniedError, CommentNotFoundError, TaskNotFoundError, UserNotFoundError
from models import Comment
from schemas import comment_schema
import logging

logger = logging.getLogger(__name__)

# 部分更新的內容,None 表示「不變更」
CommentUpdate = namedtuple('CommentUpdate', ['comment_id', 'text', 'author_id'], defaults=(None, None))


class CommentService:

    def __init__(self, comments, users, tasks, policy):
        self.comments = comments
        self.users = users
        self.tasks = tasks
        self.policy = policy

    # ============================================
    # 查詢
    # ============================================

    def get_all_comments(self):
        return [self._map(comment) for comment in self.comments.find_all()]

    def get_comments_with_pagination(self, page, limit):
        """page 從 0 開始;參數由呼叫端驗證 (page >= 0, limit >= 1)"""
        return [self._map(comment) for comment in self.comments.find_page(page * limit, limit)]

    def get_comment_by_id(self, comment_id):
        return self._map(self._get_comment(comment_id))

    def get_comments_by_task_id(self, task_id):
        return [self._map(comment) for comment in self.comments.find_by_task_id(task_id)]

    def get_comments_by_user_id(self, author_id):
        return [self._map(comment) for comment in self.comments.find_by_author_id(author_id)]

    # ============================================
    # 新增
    # ============================================

    def add_comment(self, task_id, text, actor_id, author_id=None):
        """
        新增評論

        作者預設是目前使用者;指定 author_id 視同指定作者,只有 ADMIN 可以
        """
        task = self.tasks.find_by_id(task_id)
        if not task:
            raise TaskNotFoundError()

        acting_user = self._get_acting_user(actor_id)
        actor = actor_from_user(acting_user)

        resolved_author_id = acting_user.id
        if author_id is not None:
            if not self.policy.can_modify_author(actor):
                logger.warning(f"User {actor.id} tried to create a comment on behalf of user {author_id}")
                raise AccessDeniedError('Only an administrator can set the comment author')
            resolved_author_id = self._get_user(author_id).id

        comment = Comment(text=text, author_id=resolved_author_id, task_id=task.id)
        self.comments.save(comment)

        logger.info(f"Comment {comment.id} added to task {task.id} by user {actor.id}")

        return self._map(comment)

    # ============================================
    # 更新
    # ============================================

    def update_comment(self, request, actor_id):
        """
        更新評論

        流程:
        1. 評論不存在 -> CommentNotFoundError
        2. 使用者不存在 -> UserNotFoundError
        3. 有帶 author_id 但不是 ADMIN -> 整筆拒絕 (就算值跟原本一樣)
        4. 不是作者也不是 ADMIN -> AccessDeniedError
        5. 套用變更,有實際變動才寫入
        """
        comment = self._get_comment(request.comment_id)
        acting_user = self._get_acting_user(actor_id)
        actor = actor_from_user(acting_user)

        if request.author_id is not None and not self.policy.can_modify_author(actor):
            logger.warning(f"User {actor.id} tried to change the author of comment {comment.id}")
            raise AccessDeniedError('Only an administrator can change the comment author')

        if not self.policy.can_edit(actor, comment.author_id):
            logger.warning(f"User {actor.id} denied editing comment {comment.id}")
            raise AccessDeniedError('You do not have permission to edit this comment')

        # 先驗證新作者,確定不會失敗後才修改 entity
        new_author_id = None
        if request.author_id is not None and request.author_id != comment.author_id:
            new_author_id = self._get_user(request.author_id).id

        changes = {}
        if new_author_id is not None:
            changes['author_id'] = {'old': comment.author_id, 'new': new_author_id}
            comment.author_id = new_author_id

        if request.text is not None and request.text != comment.text:
            changes['text'] = {'old': comment.text, 'new': request.text}
            comment.text = request.text

        if not changes:
            return

        self.comments.save(comment)
        logger.info(f"Comment {comment.id} updated by user {actor.id}: {sorted(changes)}")

    # ============================================
    # 刪除
    # ============================================

    def delete_comment(self, comment_id, actor_id):
        comment = self._get_comment(comment_id)
        acting_user = self._get_acting_user(actor_id)
        actor = actor_from_user(acting_user)

        if not self.policy.can_delete(actor, comment.author_id):
            logger.warning(f"User {actor.id} denied deleting comment {comment.id}")
            raise AccessDeniedError('You do not have permission to delete this comment')

        self.comments.delete_by_id(comment.id)
        logger.info(f"Comment {comment_id} deleted by user {actor.id}")

    # ============================================
    # 輔助函數
    # ============================================

    def _get_comment(self, comment_id):
        comment = self.comments.find_by_id(comment_id)
        if not comment:
            raise CommentNotFoundError()
        return comment

    def _get_acting_user(self, actor_id):
        user = self.users.find_by_id(actor_id)
        if not user:
            raise UserNotFoundError('Acting user not found')
        return user

    def _get_user(self, user_id):
        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    def _map(self, comment):
        return comment_schema.dump(comment)
