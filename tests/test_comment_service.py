"""Unit tests for comment_service.CommentService with in-memory repositories."""

import pytest

from access_policy import AccessPolicy
from comment_service import CommentService, CommentUpdate
from errors import AccessDeniedError, CommentNotFoundError, TaskNotFoundError, UserNotFoundError
from models import Comment, Priority, Role, Status, Task

from .fakes import FakeCommentRepository, FakeTaskRepository, FakeUserRepository, make_user


@pytest.fixture()
def users():
    return FakeUserRepository([
        make_user(3, role=Role.ADMIN),
        make_user(5),
        make_user(7),
        make_user(9),
    ])


@pytest.fixture()
def tasks():
    return FakeTaskRepository([
        Task(id=1, title='Task 1', description='first', status=Status.PENDING, priority=Priority.LOW),
        Task(id=2, title='Task 2', description='second', status=Status.PENDING, priority=Priority.HIGH),
    ])


@pytest.fixture()
def comments():
    return FakeCommentRepository([
        Comment(id=1, text='existing comment', author_id=7, task_id=1),
        Comment(id=2, text='by five', author_id=5, task_id=1),
        Comment(id=3, text='other task', author_id=7, task_id=2),
    ])


@pytest.fixture()
def service(comments, users, tasks):
    return CommentService(comments, users, tasks, AccessPolicy())


class TestReads:

    def test_get_all_comments_in_id_order(self, service):
        result = service.get_all_comments()
        assert [c['id'] for c in result] == [1, 2, 3]
        assert result[0]['text'] == 'existing comment'
        assert result[0]['author_id'] == 7
        assert result[0]['task_id'] == 1

    def test_pagination_uses_zero_based_pages(self, service):
        assert [c['id'] for c in service.get_comments_with_pagination(0, 2)] == [1, 2]
        assert [c['id'] for c in service.get_comments_with_pagination(1, 2)] == [3]

    def test_pagination_past_the_end_is_empty(self, service):
        assert service.get_comments_with_pagination(5, 2) == []

    def test_get_comment_by_id(self, service):
        assert service.get_comment_by_id(2)['text'] == 'by five'

    def test_get_missing_comment_raises_not_found(self, service):
        with pytest.raises(CommentNotFoundError):
            service.get_comment_by_id(999)

    def test_comments_by_task(self, service):
        assert [c['id'] for c in service.get_comments_by_task_id(1)] == [1, 2]

    def test_comments_by_user(self, service):
        assert [c['id'] for c in service.get_comments_by_user_id(7)] == [1, 3]

    def test_list_lookups_return_empty_list_when_nothing_matches(self, service):
        assert service.get_comments_by_task_id(42) == []
        assert service.get_comments_by_user_id(42) == []


class TestAddComment:

    def test_author_is_the_actor(self, service, comments):
        result = service.add_comment(task_id=2, text='hello', actor_id=9)
        assert result['author_id'] == 9
        assert result['task_id'] == 2
        assert comments.find_by_id(result['id']).text == 'hello'

    def test_missing_task_raises(self, service, comments):
        with pytest.raises(TaskNotFoundError):
            service.add_comment(task_id=404, text='hello', actor_id=9)
        assert comments.saved == []

    def test_missing_actor_raises(self, service):
        with pytest.raises(UserNotFoundError):
            service.add_comment(task_id=1, text='hello', actor_id=404)

    def test_user_cannot_post_on_behalf_of_someone_else(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.add_comment(task_id=1, text='hello', actor_id=7, author_id=9)
        assert comments.saved == []

    def test_admin_can_post_on_behalf_of_someone_else(self, service):
        result = service.add_comment(task_id=1, text='hello', actor_id=3, author_id=9)
        assert result['author_id'] == 9

    def test_admin_named_author_must_exist(self, service):
        with pytest.raises(UserNotFoundError):
            service.add_comment(task_id=1, text='hello', actor_id=3, author_id=404)


class TestUpdateComment:

    def test_author_updates_text(self, service, comments):
        service.update_comment(CommentUpdate(comment_id=1, text='updated comment'), actor_id=7)

        assert comments.find_by_id(1).text == 'updated comment'
        assert len(comments.saved) == 1

    def test_user_changing_author_is_denied_and_nothing_applied(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.update_comment(CommentUpdate(comment_id=1, author_id=9), actor_id=7)

        stored = comments.find_by_id(1)
        assert stored.author_id == 7
        assert stored.text == 'existing comment'
        assert comments.saved == []

    def test_author_change_vetoes_text_change_too(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.update_comment(
                CommentUpdate(comment_id=1, text='sneaky edit', author_id=9), actor_id=7
            )
        assert comments.find_by_id(1).text == 'existing comment'
        assert comments.saved == []

    def test_setting_author_to_current_value_still_requires_admin(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.update_comment(CommentUpdate(comment_id=1, author_id=7), actor_id=7)
        assert comments.saved == []

    def test_non_author_cannot_edit(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.update_comment(CommentUpdate(comment_id=1, text='not mine'), actor_id=9)
        assert comments.find_by_id(1).text == 'existing comment'

    def test_admin_can_edit_any_comment(self, service, comments):
        service.update_comment(CommentUpdate(comment_id=2, text='moderated'), actor_id=3)
        assert comments.find_by_id(2).text == 'moderated'

    def test_admin_can_change_author(self, service, comments):
        service.update_comment(CommentUpdate(comment_id=1, author_id=9), actor_id=3)
        assert comments.find_by_id(1).author_id == 9
        assert len(comments.saved) == 1

    def test_admin_changing_author_to_unknown_user_fails_without_changes(self, service, comments):
        with pytest.raises(UserNotFoundError):
            service.update_comment(
                CommentUpdate(comment_id=1, text='new text', author_id=404), actor_id=3
            )
        stored = comments.find_by_id(1)
        assert stored.author_id == 7
        assert stored.text == 'existing comment'

    def test_empty_update_does_not_write(self, service, comments):
        service.update_comment(CommentUpdate(comment_id=1), actor_id=7)
        assert comments.saved == []

    def test_identical_text_does_not_write(self, service, comments):
        service.update_comment(CommentUpdate(comment_id=1, text='existing comment'), actor_id=7)
        assert comments.saved == []

    def test_missing_comment_checked_before_actor(self, service):
        with pytest.raises(CommentNotFoundError):
            service.update_comment(CommentUpdate(comment_id=999, text='x'), actor_id=404)

    def test_missing_actor_raises_user_not_found(self, service):
        with pytest.raises(UserNotFoundError):
            service.update_comment(CommentUpdate(comment_id=1, text='x'), actor_id=404)


class TestDeleteComment:

    def test_author_can_delete(self, service, comments):
        service.delete_comment(1, actor_id=7)
        assert comments.deleted == [1]
        assert comments.find_by_id(1) is None

    def test_admin_deletes_any_comment(self, service, comments):
        service.delete_comment(2, actor_id=3)
        assert comments.deleted == [2]

    def test_stranger_is_denied_and_comment_remains(self, service, comments):
        with pytest.raises(AccessDeniedError):
            service.delete_comment(2, actor_id=9)

        assert comments.deleted == []
        assert service.get_comment_by_id(2)['text'] == 'by five'

    def test_missing_comment_raises(self, service):
        with pytest.raises(CommentNotFoundError):
            service.delete_comment(999, actor_id=3)

    def test_missing_actor_raises(self, service, comments):
        with pytest.raises(UserNotFoundError):
            service.delete_comment(1, actor_id=404)
        assert comments.deleted == []
