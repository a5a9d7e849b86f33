from access_policy import actor_from_user
from errors import AccessDeniedError, UserAlreadyExistsError, UserNotFoundError
from schemas import user_schema
import logging

logger = logging.getLogger(__name__)

# role 不能透過這裡修改
PROFILE_FIELDS = ('email', 'first_name', 'last_name')


class UserService:

    def __init__(self, users, policy):
        self.users = users
        self.policy = policy

    def get_all_users(self):
        return [user_schema.dump(user) for user in self.users.find_all()]

    def get_users_with_pagination(self, page, limit):
        return [user_schema.dump(user) for user in self.users.find_page(page * limit, limit)]

    def get_user_by_id(self, user_id):
        return user_schema.dump(self._get_user(user_id))

    def update_user(self, user_id, payload, actor_id):
        """使用者只能改自己的資料,ADMIN 可以改任何人"""
        user = self._get_user(user_id)
        actor = actor_from_user(self._get_user(actor_id))

        if not self.policy.can_edit(actor, user.id):
            logger.warning(f"User {actor.id} denied editing user {user.id}")
            raise AccessDeniedError('You do not have permission to edit this user')

        new_email = payload.get('email')
        if new_email and new_email != user.email:
            existing = self.users.find_by_email(new_email)
            if existing and existing.id != user.id:
                raise UserAlreadyExistsError()

        changed = False
        for field in PROFILE_FIELDS:
            if field in payload and payload[field] is not None and getattr(user, field) != payload[field]:
                setattr(user, field, payload[field])
                changed = True

        if changed:
            self.users.save(user)
            logger.info(f"User {user.id} updated by user {actor.id}")

        return user_schema.dump(user)

    def delete_user(self, user_id, actor_id):
        user = self._get_user(user_id)
        actor = actor_from_user(self._get_user(actor_id))

        if not self.policy.can_delete(actor, user.id):
            logger.warning(f"User {actor.id} denied deleting user {user.id}")
            raise AccessDeniedError('You do not have permission to delete this user')

        self.users.delete_by_id(user.id)
        logger.info(f"User {user_id} deleted by user {actor.id}")

    def _get_user(self, user_id):
        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user
