from flask import Blueprint, request, jsonify
from marshmallow import Schema, fields, validate, EXCLUDE, ValidationError
from datetime import datetime, time, timezone
from auth import auth_required, get_current_user, get_json_body, serialize_user
import access

tasks_bp = Blueprint('tasks', __name__)

# ============================================
# Input Validation Schemas
# ============================================

class DueDateField(fields.DateTime):
    """
    接受 ISO datetime 或只有日期 (例如 <input type="date"> 送來的 '2024-05-01')

    空字串視為沒有到期日,有時區的值一律轉成 UTC naive datetime 存進資料庫
    """

    def _deserialize(self, value, attr, data, **kwargs):
        if value in ('', None):
            return None
        try:
            parsed = super()._deserialize(value, attr, data, **kwargs)
        except ValidationError:
            day = fields.Date()._deserialize(value, attr, data, **kwargs)
            parsed = datetime.combine(day, time.min)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed


class CreateTaskSchema(Schema):
    """建立任務驗證 (status / priority 的合法值由 model 檢查)"""
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(validate=validate.Length(max=255))
    description = fields.Str(allow_none=True, validate=validate.Length(max=5000))
    status = fields.Str(allow_none=True)
    priority = fields.Str(allow_none=True)
    due_date = DueDateField(data_key='dueDate', allow_none=True)
    project_id = fields.Int(data_key='projectId', allow_none=True)


class UpdateTaskSchema(Schema):
    """
    部分更新驗證

    所有欄位都是選填, load 之後只會留下 request 裡真的有送的欄位
    """
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(validate=validate.Length(min=1, max=255))
    description = fields.Str(allow_none=True, validate=validate.Length(max=5000))
    status = fields.Str()
    priority = fields.Str()
    due_date = DueDateField(data_key='dueDate', allow_none=True)
    assigned_to = fields.Int(data_key='assignedTo', allow_none=True)


class TaskQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    project_id = fields.Int(data_key='projectId')


def serialize_task(task):
    return {
        'id': task.id,
        'title': task.title,
        'description': task.description,
        'status': task.status,
        'priority': task.priority,
        'dueDate': task.due_date.isoformat() if task.due_date else None,
        'project': {
            'id': task.project.id,
            'name': task.project.name
        } if task.project else None,
        'createdBy': task.created_by,
        'assignedTo': serialize_user(task.assignee) if task.assigned_to else None,
        'createdAt': task.created_at.isoformat() if task.created_at else None,
        'updatedAt': task.updated_at.isoformat() if task.updated_at else None
    }

# ============================================
# 查詢任務
# ============================================

@tasks_bp.route('', methods=['GET'])
@auth_required
def get_tasks():
    """
    查詢任務列表

    ?projectId= 只看單一專案,沒帶的話回傳所有可見專案的任務
    """
    args = {key: value for key, value in request.args.items() if value}
    result = TaskQuerySchema().load(args)

    tasks = access.list_tasks_for(get_current_user(), result.get('project_id'))
    return jsonify({'tasks': [serialize_task(task) for task in tasks]}), 200

# ============================================
# 建立任務
# ============================================

@tasks_bp.route('', methods=['POST'])
@auth_required
def create_task():
    result = CreateTaskSchema().load(get_json_body())

    task = access.create_task(
        get_current_user(),
        title=result.get('title'),
        project_id=result.get('project_id'),
        description=result.get('description'),
        priority=result.get('priority'),
        due_date=result.get('due_date'),
        status=result.get('status')
    )
    return jsonify({'task': serialize_task(task)}), 200

# ============================================
# 更新任務
# ============================================

@tasks_bp.route('/<int:task_id>', methods=['PUT'])
@auth_required
def update_task(task_id):
    """看板拖拉時前端只會送 {status}"""
    patch = UpdateTaskSchema().load(get_json_body())

    task = access.update_task(task_id, patch, user=get_current_user())
    return jsonify({'task': serialize_task(task)}), 200

# ============================================
# 刪除任務
# ============================================

@tasks_bp.route('/<int:task_id>', methods=['DELETE'])
@auth_required
def delete_task(task_id):
    access.delete_task(task_id, user=get_current_user())
    return jsonify({'message': 'Task deleted successfully'}), 200
