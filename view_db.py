import click
from models import db, User, Team, Project, Task


def print_database():
    """印出資料庫內容 (需要 app context)"""
    click.echo("\n" + "=" * 60)
    click.echo("資料庫內容")
    click.echo("=" * 60)

    # 使用者
    users = User.query.order_by(User.id).all()
    click.echo(f"\n【使用者】共 {len(users)} 筆:")
    for u in users:
        click.echo(f"  ID: {u.id}, Email: {u.email}, Name: {u.name}")

    # 團隊
    teams = Team.query.order_by(Team.id).all()
    click.echo(f"\n【團隊】共 {len(teams)} 筆:")
    for t in teams:
        member_names = ', '.join(m.name for m in t.members) or '-'
        click.echo(f"  ID: {t.id}, Name: {t.name}, Owner: {t.owner.name}, Members: {member_names}")

    # 專案
    projects = Project.query.order_by(Project.id).all()
    click.echo(f"\n【專案】共 {len(projects)} 筆:")
    for p in projects:
        click.echo(f"  ID: {p.id}, Name: {p.name}, Team: {p.team.name}, Owner: {p.owner.name}")

    # 任務
    tasks = Task.query.order_by(Task.id).all()
    click.echo(f"\n【任務】共 {len(tasks)} 筆:")
    for t in tasks:
        click.echo(f"  ID: {t.id}, Title: {t.title}, Status: {t.status}, Priority: {t.priority}")

    click.echo("\n" + "=" * 60)


def register_commands(app):
    """flask init-db / flask view-db"""

    @app.cli.command('init-db')
    def init_db_command():
        """建立所有資料表"""
        db.create_all()
        click.echo('Database tables created')

    @app.cli.command('view-db')
    def view_db_command():
        """印出 users / teams / projects / tasks"""
        print_database()
