from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates
from datetime import datetime
from errors import ValidationError

db = SQLAlchemy()

TASK_STATUSES = ('todo', 'in-progress', 'done')
TASK_PRIORITIES = ('low', 'medium', 'high')

# ============================================
# 1. User 模型
# ============================================
class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(225), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # 關聯
    owned_teams = db.relationship('Team', backref='owner', lazy=True)
    owned_projects = db.relationship('Project', backref='owner', lazy=True)
    tasks_assigned = db.relationship('Task', foreign_keys='Task.assigned_to', backref='assignee', lazy=True)
    tasks_created = db.relationship('Task', foreign_keys='Task.created_by', backref='creator', lazy=True)

    def __repr__(self):
        return f'<User {self.email}>'

# ============================================
# 2. 多對多關聯表：團隊與成員
# ============================================
team_members = db.Table('team_members',
    db.Column('team_id', db.Integer, db.ForeignKey('team.id'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('user.id'), primary_key=True),
    db.Column('created_at', db.DateTime, default=datetime.utcnow)
)

# ============================================
# 3. Team 模型
# ============================================
class Team(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    # owner 不一定在 members 裡,權限判斷時視為成員
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 關聯
    members = db.relationship('User', secondary=team_members, lazy='selectin',
                              backref=db.backref('teams', lazy=True))
    projects = db.relationship('Project', backref='team', lazy=True)

    __table_args__ = (
        db.Index('idx_team_owner', 'owner_id'),
    )

    @validates('name')
    def validate_name(self, key, value):
        if not value:
            raise ValidationError('Team name is required')
        return value

# ============================================
# 4. Project 模型
# ============================================
class Project(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 關聯 (刪除 team 時不會連帶刪除 project)
    tasks = db.relationship('Task', backref='project', lazy=True)

    # 索引
    __table_args__ = (
        db.Index('idx_project_team', 'team_id'),
        db.Index('idx_project_owner', 'owner_id'),
    )

    @validates('name')
    def validate_name(self, key, value):
        if not value:
            raise ValidationError('Project name is required')
        return value

# ============================================
# 5. Task 模型
# ============================================
class Task(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True, default='')
    status = db.Column(db.String(20), nullable=False, default='todo')  # todo, in-progress, done
    priority = db.Column(db.String(20), nullable=False, default='medium')  # low, medium, high

    # 關聯欄位
    project_id = db.Column(db.Integer, db.ForeignKey('project.id'), nullable=False)
    assigned_to = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)

    # 時間欄位
    due_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 索引
    __table_args__ = (
        db.Index('idx_task_project_status', 'project_id', 'status'),
        db.Index('idx_task_assigned_status', 'assigned_to', 'status'),
        db.Index('idx_task_created_at', 'created_at'),
    )

    @validates('title')
    def validate_title(self, key, value):
        if not value:
            raise ValidationError('Task title is required')
        return value

    @validates('status')
    def validate_status(self, key, value):
        if value not in TASK_STATUSES:
            raise ValidationError(
                f"Invalid status '{value}'. Must be one of: {', '.join(TASK_STATUSES)}"
            )
        return value

    @validates('priority')
    def validate_priority(self, key, value):
        if value not in TASK_PRIORITIES:
            raise ValidationError(
                f"Invalid priority '{value}'. Must be one of: {', '.join(TASK_PRIORITIES)}"
            )
        return value
