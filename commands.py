import click

from models import db, Role, User, Task, Comment
from repositories import UserRepository, TaskRepository
from security import PasswordHasher


def register_commands(app):

    @app.cli.command('create-admin')
    @click.option('--email', required=True)
    @click.option('--password', required=True, prompt=True, hide_input=True)
    @click.option('--first-name', default='Admin')
    @click.option('--last-name', default='User')
    def create_admin(email, password, first_name, last_name):
        """建立 ADMIN 帳號,email 已存在時把該帳號升級為 ADMIN"""
        users = UserRepository(db.session)
        user = users.find_by_email(email)

        if user:
            user.role = Role.ADMIN
            users.save(user)
            click.echo(f"User {email} promoted to ADMIN")
            return

        user = User(
            email=email,
            password_hash=PasswordHasher().hash(password),
            first_name=first_name,
            last_name=last_name,
            role=Role.ADMIN
        )
        users.save(user)
        click.echo(f"Admin {email} created with id {user.id}")

    @app.cli.command('show-db')
    def show_db():
        """印出資料庫內容"""
        tasks_repo = TaskRepository(db.session)

        click.echo("\n" + "=" * 60)
        click.echo("資料庫內容")
        click.echo("=" * 60)

        # 使用者
        users = db.session.query(User).order_by(User.id).all()
        click.echo(f"\n【使用者】共 {len(users)} 筆:")
        for u in users:
            click.echo(f"  ID: {u.id}, Email: {u.email}, Name: {u.first_name} {u.last_name}, Role: {u.role.value}")

        # 任務
        tasks = db.session.query(Task).order_by(Task.id).all()
        executors = tasks_repo.find_executor_map([t.id for t in tasks])
        click.echo(f"\n【任務】共 {len(tasks)} 筆:")
        for t in tasks:
            click.echo(
                f"  ID: {t.id}, Title: {t.title}, Status: {t.status.value}, "
                f"Priority: {t.priority.value}, Executors: {executors[t.id]}"
            )

        # 評論
        comments = db.session.query(Comment).order_by(Comment.id).all()
        click.echo(f"\n【評論】共 {len(comments)} 筆:")
        for c in comments:
            click.echo(f"  ID: {c.id}, Task: {c.task_id}, Author: {c.author_id}, Text: {c.text[:50]}")

        click.echo("\n" + "=" * 60)
