"""
Data factories for test data generation (factory_boy + Flask-SQLAlchemy session).

Usage:
    from tests.factories import UserFactory, TeamFactory

    user = UserFactory(email='custom@example.com')
    team = TeamFactory(owner=user, members=[user])
"""

import factory

from auth import hash_password
from models import db, User, Team, Project, Task

DEFAULT_PASSWORD = 'password123'


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = db.session
        sqlalchemy_session_persistence = 'commit'


class UserFactory(BaseFactory):
    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    email = factory.Sequence(lambda n: f'user{n}@example.com')
    name = factory.Faker('name')
    password_hash = factory.LazyAttribute(lambda o: hash_password(o.password))


class TeamFactory(BaseFactory):
    """Owner is NOT added to members unless passed explicitly."""

    class Meta:
        model = Team

    name = factory.Sequence(lambda n: f'Team {n}')
    description = factory.Faker('catch_phrase')
    owner = factory.SubFactory(UserFactory)

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if extracted:
            for member in extracted:
                self.members.append(member)


class ProjectFactory(BaseFactory):
    class Meta:
        model = Project

    name = factory.Sequence(lambda n: f'Project {n}')
    description = factory.Faker('sentence')
    team = factory.SubFactory(TeamFactory)
    owner = factory.SelfAttribute('team.owner')


class TaskFactory(BaseFactory):
    class Meta:
        model = Task

    title = factory.Sequence(lambda n: f'Task {n}')
    description = factory.Faker('sentence')
    status = 'todo'
    priority = 'medium'
    project = factory.SubFactory(ProjectFactory)
    creator = factory.SelfAttribute('project.owner')
    assignee = factory.SelfAttribute('creator')
