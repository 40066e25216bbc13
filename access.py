from flask import current_app
from sqlalchemy import or_, select
from sqlalchemy.orm import joinedload
from models import db, User, Team, Project, Task
from errors import ValidationError, AuthorizationError, NotFoundError
import logging

logger = logging.getLogger(__name__)

# ============================================
# 權限判斷
# ============================================
#
# 所有 team / project / task 的可見性都從 team 推導:
#   team    : owner 是自己,或自己在 members 裡
#   project : 所屬 team 可見
#   task    : 所屬 project 的 team 可見


def visible_teams_filter(user):
    """Team 可見條件 (SQL expression)"""
    return or_(
        Team.owner_id == user.id,
        Team.members.any(User.id == user.id)
    )


def is_team_visible(team, user):
    """同一個條件,用在已經載入的 Team 物件上"""
    if team is None or user is None:
        return False
    if team.owner_id == user.id:
        return True
    return any(member.id == user.id for member in team.members)


def visible_team_ids(user):
    return select(Team.id).where(visible_teams_filter(user))


def visible_project_ids(user):
    return select(Project.id).where(Project.team_id.in_(visible_team_ids(user)))


def find_visible_team(team_id, user):
    """查詢 team,不存在和沒權限都回傳 None"""
    return Team.query.filter(
        Team.id == team_id,
        visible_teams_filter(user)
    ).first()


def _require_task_visibility(task, user):
    if user is None or not is_team_visible(task.project.team, user):
        raise AuthorizationError('Access denied')


def _task_query():
    return Task.query.options(
        joinedload(Task.assignee),
        joinedload(Task.project)
    )

# ============================================
# Teams
# ============================================

def list_teams_for(user):
    return Team.query.options(
        joinedload(Team.owner)
    ).filter(
        visible_teams_filter(user)
    ).order_by(Team.created_at.asc(), Team.id.asc()).all()


def create_team(user, name, description=None):
    """建立 team,建立者同時是 owner 和第一個 member"""
    if not name:
        raise ValidationError('Team name is required')

    team = Team(
        name=name,
        description=description or '',
        owner_id=user.id,
        members=[user]
    )
    db.session.add(team)
    db.session.commit()

    logger.info(f"Team created: {team.name} by user {user.email}")
    return team

# ============================================
# Projects
# ============================================

def list_projects_for(user):
    return Project.query.options(
        joinedload(Project.team)
    ).filter(
        Project.team_id.in_(visible_team_ids(user))
    ).order_by(Project.created_at.asc(), Project.id.asc()).all()


def create_project(user, name, description, team_id):
    """
    在 team 底下建立 project

    Raises:
        ValidationError: 缺少 name 或 team_id
        AuthorizationError: team 不存在或不可見 (兩種情況回一樣的錯誤)
    """
    if not name or not team_id:
        raise ValidationError('Project name and team are required')

    team = find_visible_team(team_id, user)
    if not team:
        logger.warning(f"Project creation denied for user {user.email} on team {team_id}")
        raise AuthorizationError('Team not found or access denied')

    project = Project(
        name=name,
        description=description or '',
        team_id=team.id,
        owner_id=user.id
    )
    db.session.add(project)
    db.session.commit()

    logger.info(f"Project created: {project.name} in team {team.id} by user {user.email}")
    return project

# ============================================
# Tasks
# ============================================

def list_tasks_for(user, project_id=None):
    """
    列出任務,新建立的排前面

    有指定 project_id 時只看該 project;
    沒指定時走 team -> project -> task 三層查詢
    """
    query = _task_query()

    if project_id is not None:
        if current_app.config.get('TASK_LIST_REQUIRES_MEMBERSHIP'):
            project = db.session.get(Project, project_id)
            if project is not None and not is_team_visible(project.team, user):
                raise AuthorizationError('Access denied')
        query = query.filter(Task.project_id == project_id)
    else:
        query = query.filter(Task.project_id.in_(visible_project_ids(user)))

    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def create_task(user, title, project_id, description=None, priority=None,
                due_date=None, status=None):
    """
    在 project 底下建立任務,建立者同時是負責人

    Raises:
        ValidationError: 缺少 title / project_id,或 status / priority 不合法
        NotFoundError: project 不存在
        AuthorizationError: project 所屬 team 不可見
    """
    if not title or not project_id:
        raise ValidationError('Title and project are required')

    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError('Project not found')

    if not find_visible_team(project.team_id, user):
        logger.warning(f"Task creation denied for user {user.email} on project {project_id}")
        raise AuthorizationError('Access denied')

    task = Task(
        title=title,
        description=description or '',
        priority=priority or 'medium',
        status=status or 'todo',
        due_date=due_date,
        project_id=project.id,
        created_by=user.id,
        assigned_to=user.id
    )
    db.session.add(task)
    db.session.commit()

    logger.info(f"Task created: {task.title} in project {project.id} by user {user.email}")
    return _task_query().filter(Task.id == task.id).one()


def update_task(task_id, patch, user=None):
    """
    部分更新: 只套用 patch 裡出現的欄位,其他欄位保持原值

    patch 的 key: title, description, status, priority, due_date, assigned_to
    """
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFoundError('Task not found')

    if current_app.config.get('TASK_MUTATION_REQUIRES_MEMBERSHIP'):
        _require_task_visibility(task, user)

    try:
        if 'title' in patch:
            task.title = patch['title']
        if 'description' in patch:
            task.description = patch['description']
        if 'status' in patch:
            task.status = patch['status']
        if 'priority' in patch:
            task.priority = patch['priority']
        if 'due_date' in patch:
            task.due_date = patch['due_date']
        if 'assigned_to' in patch:
            assignee_id = patch['assigned_to']
            if assignee_id is not None and db.session.get(User, assignee_id) is None:
                raise ValidationError('Assigned user not found')
            task.assigned_to = assignee_id
    except ValidationError:
        db.session.rollback()
        raise

    db.session.commit()

    logger.info(f"Task {task_id} updated: {', '.join(sorted(patch)) or 'no fields'}")
    return _task_query().filter(Task.id == task_id).one()


def delete_task(task_id, user=None):
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFoundError('Task not found')

    if current_app.config.get('TASK_MUTATION_REQUIRES_MEMBERSHIP'):
        _require_task_visibility(task, user)

    db.session.delete(task)
    db.session.commit()

    logger.info(f"Task deleted: {task_id}")
