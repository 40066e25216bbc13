from flask import Blueprint, jsonify
from marshmallow import Schema, fields, validate, EXCLUDE
from auth import auth_required, get_current_user, get_json_body
import access

projects_bp = Blueprint('projects', __name__)

# ============================================
# Input Validation Schemas
# ============================================

class CreateProjectSchema(Schema):
    """建立專案驗證"""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(max=255))
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    team_id = fields.Int(data_key='teamId', allow_none=True)


def serialize_project(project):
    return {
        'id': project.id,
        'name': project.name,
        'description': project.description,
        'team': {
            'id': project.team.id,
            'name': project.team.name
        } if project.team else None,
        'owner': project.owner_id,
        'createdAt': project.created_at.isoformat() if project.created_at else None,
        'updatedAt': project.updated_at.isoformat() if project.updated_at else None
    }

# ============================================
# 查詢我的所有專案
# ============================================

@projects_bp.route('', methods=['GET'])
@auth_required
def get_my_projects():
    """查詢我能看到的 team 底下的所有專案"""
    projects = access.list_projects_for(get_current_user())
    return jsonify({'projects': [serialize_project(p) for p in projects]}), 200

# ============================================
# 建立專案
# ============================================

@projects_bp.route('', methods=['POST'])
@auth_required
def create_project():
    result = CreateProjectSchema().load(get_json_body())

    project = access.create_project(
        get_current_user(),
        result.get('name'),
        result.get('description'),
        result.get('team_id')
    )
    return jsonify({'project': serialize_project(project)}), 200
