# tests/conftest.py

import pytest

from app import create_app
from config import TestingConfig
from models import db, Comment, Priority, Role, Status, Task, User
from security import PasswordHasher, TokenIssuer


@pytest.fixture()
def app():
    """Fresh app with its own in-memory database per test."""
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def create_user(app):
    def _create_user(email='john@example.com', password='password123', role=Role.USER,
                     first_name='John', last_name='Doe'):
        with app.app_context():
            user = User(
                email=email,
                password_hash=PasswordHasher().hash(password),
                first_name=first_name,
                last_name=last_name,
                role=role
            )
            db.session.add(user)
            db.session.commit()
            return user.id
    return _create_user


@pytest.fixture()
def create_task(app):
    def _create_task(title='Write docs', description='Document the API',
                     status=Status.PENDING, priority=Priority.MEDIUM):
        with app.app_context():
            task = Task(title=title, description=description, status=status, priority=priority)
            db.session.add(task)
            db.session.commit()
            return task.id
    return _create_task


@pytest.fixture()
def create_comment(app):
    def _create_comment(task_id, author_id, text='existing comment'):
        with app.app_context():
            comment = Comment(text=text, task_id=task_id, author_id=author_id)
            db.session.add(comment)
            db.session.commit()
            return comment.id
    return _create_comment


@pytest.fixture()
def auth_headers(app):
    """Bearer header for an existing user id."""
    def _auth_headers(user_id):
        with app.app_context():
            token = TokenIssuer().issue(db.session.get(User, user_id))
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers
