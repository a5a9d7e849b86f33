"""
權限判斷

只做純粹的判斷,不查資料庫也不丟例外。
回傳 False 時由呼叫端決定要不要轉成 AccessDeniedError。
"""
from collections import namedtuple

from models import Role

# 執行操作的使用者 (id + role)
Actor = namedtuple('Actor', ['id', 'role'])


def actor_from_user(user):
    return Actor(id=user.id, role=Role.parse(user.role))


class AccessPolicy:
    """
    評論 / 使用者等資源的編輯與刪除權限

    規則:
    1. ADMIN 可以操作任何資源
    2. 一般使用者只能操作自己擁有的資源
    3. 只有 ADMIN 可以更換資源的作者
    """

    def is_admin(self, actor):
        return actor.role == Role.ADMIN

    def can_modify_author(self, actor):
        return self.is_admin(actor)

    def can_edit(self, actor, resource_owner_id):
        return self.is_admin(actor) or actor.id == resource_owner_id

    def can_delete(self, actor, resource_owner_id):
        # 目前跟 can_edit 相同,兩個呼叫點各自獨立
        return self.is_admin(actor) or actor.id == resource_owner_id
