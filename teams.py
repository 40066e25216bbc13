from flask import Blueprint, jsonify
from marshmallow import Schema, fields, validate, EXCLUDE
from auth import auth_required, get_current_user, get_json_body, serialize_user
import access

teams_bp = Blueprint('teams', __name__)


class CreateTeamSchema(Schema):
    """建立團隊驗證 (name 是否存在由 access.create_team 檢查)"""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(max=255))
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))


def serialize_team(team):
    return {
        'id': team.id,
        'name': team.name,
        'description': team.description,
        'owner': serialize_user(team.owner),
        'members': [member.id for member in team.members],
        'createdAt': team.created_at.isoformat() if team.created_at else None,
        'updatedAt': team.updated_at.isoformat() if team.updated_at else None
    }


@teams_bp.route('', methods=['GET'])
@auth_required
def get_my_teams():
    """查詢我擁有或參與的所有團隊"""
    teams = access.list_teams_for(get_current_user())
    return jsonify({'teams': [serialize_team(team) for team in teams]}), 200


@teams_bp.route('', methods=['POST'])
@auth_required
def create_team():
    result = CreateTeamSchema().load(get_json_body())

    team = access.create_team(
        get_current_user(),
        result.get('name'),
        result.get('description')
    )
    return jsonify({'team': serialize_team(team)}), 200
