from datetime import datetime, timedelta
from models import db, Team, Project, Task
import logging

logger = logging.getLogger(__name__)

# ============================================
# 新使用者的範例資料
# ============================================

SAMPLE_TEAM = {
    'name': 'My First Team',
    'description': 'Welcome to TaskFlow! This is your sample team.'
}

SAMPLE_PROJECT = {
    'name': 'Sample Project',
    'description': 'Get started with this sample project'
}

# (title, description, status, priority, 到期日相對今天的天數)
SAMPLE_TASKS = [
    ('Review project requirements',
     'Go through all the requirements and make sure everything is clear',
     'todo', 'high', 2),
    ('Set up development environment',
     'Install all necessary tools and dependencies',
     'todo', 'high', 3),
    ('Create wireframes',
     'Design initial wireframes for the main pages',
     'todo', 'medium', 5),
    ('Design database schema',
     'Create the database structure and relationships',
     'in-progress', 'high', 1),
    ('Implement authentication',
     'Build login and signup functionality with JWT',
     'in-progress', 'high', 4),
    ('Set up project repository',
     'Initialize Git repository and set up version control',
     'done', 'medium', -1),
    ('Define project goals',
     'Document main objectives and success criteria',
     'done', 'high', -2),
    ('Research best practices',
     'Study industry standards and best practices for task management',
     'done', 'low', -3),
]


def seed_onboarding_content(user, now=None):
    """
    幫剛註冊的使用者建立一個 team、一個 project 和八個任務

    使用者必須已經 commit。這裡的任何錯誤都只記 log 不往外丟,
    註冊本身不受影響

    Returns:
        Team: 建立好的範例 team,失敗時回傳 None
    """
    now = now or datetime.utcnow()
    user_id = user.id

    try:
        team = Team(
            name=SAMPLE_TEAM['name'],
            description=SAMPLE_TEAM['description'],
            owner_id=user_id,
            members=[user]
        )
        db.session.add(team)
        db.session.flush()

        project = Project(
            name=SAMPLE_PROJECT['name'],
            description=SAMPLE_PROJECT['description'],
            team_id=team.id,
            owner_id=user_id
        )
        db.session.add(project)
        db.session.flush()

        for title, description, status, priority, due_in_days in SAMPLE_TASKS:
            db.session.add(Task(
                title=title,
                description=description,
                status=status,
                priority=priority,
                due_date=now + timedelta(days=due_in_days),
                project_id=project.id,
                created_by=user_id,
                assigned_to=user_id
            ))

        db.session.commit()

        logger.info(f"Onboarding content created for user {user_id}")
        return team

    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating sample data for user {user_id}: {str(e)}", exc_info=True)
        return None
