from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import Schema, fields, validate, EXCLUDE
from functools import wraps
from sqlalchemy.exc import SQLAlchemyError
from models import db, User
from errors import ValidationError, AuthenticationError
from tokens import issue_token, verify_token, identity_from_claims
from seeding import seed_onboarding_content
import logging

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


# ============================================
# Input Validation Schemas (用 marshmallow)
# ============================================

class SignupSchema(Schema):
    """註冊輸入驗證"""
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={
        'required': 'Email is required',
        'invalid': 'Invalid email format'
    })
    password = fields.Str(
        required=True,
        error_messages={'required': 'Password is required'}
    )
    name = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=100, error='Name must be 1-100 characters'),
        error_messages={'required': 'Name is required'}
    )


class LoginSchema(Schema):
    """登入輸入驗證"""
    class Meta:
        unknown = EXCLUDE

    email = fields.Str(required=True)
    password = fields.Str(required=True)

# ============================================
# Helper Functions
# ============================================

def get_bcrypt():
    """從 Flask app extensions 取得 bcrypt 實例 (不用 global variable)"""
    return current_app.extensions['bcrypt']


def hash_password(password):
    return get_bcrypt().generate_password_hash(password).decode('utf-8')


def check_password(user, password):
    return get_bcrypt().check_password_hash(user.password_hash, password)


def get_json_body():
    """取得 JSON body,不是 JSON 的話回 400"""
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')
    return data


def serialize_user(user):
    """使用者的公開資訊 (不包含密碼)"""
    if user is None:
        return None
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name
    }

# ============================================
# Authentication Middleware
# ============================================

def extract_bearer_token(req):
    parts = req.headers.get('Authorization', '').split()
    if not parts:
        return None
    if parts[0].lower() == 'bearer':
        return parts[1] if len(parts) > 1 else None
    return parts[0]


def authenticate_request(req=None):
    """
    檢查 request 的 Authorization header

    Returns:
        dict: {'authenticated': True, 'user': User}
              或 {'authenticated': False, 'error': 原因}
    """
    req = req if req is not None else request

    token = extract_bearer_token(req)
    if not token:
        return {'authenticated': False, 'error': 'No token provided'}

    claims = verify_token(token)
    user_id = identity_from_claims(claims)
    if user_id is None:
        return {'authenticated': False, 'error': 'Invalid token'}

    try:
        user = db.session.get(User, user_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"User lookup failed during authentication: {str(e)}", exc_info=True)
        return {'authenticated': False, 'error': 'Authentication failed'}

    if not user:
        logger.warning(f"Token valid but user not found: {user_id}")
        return {'authenticated': False, 'error': 'User not found'}

    return {'authenticated': True, 'user': user}


def auth_required(fn):
    """需要登入的 endpoint 都要加上這個 decorator"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        auth = authenticate_request()
        if not auth['authenticated']:
            logger.warning(
                f"Unauthorized access attempt from: {request.remote_addr}, error: {auth['error']}"
            )
            raise AuthenticationError(auth['error'])
        g.current_user = auth['user']
        return fn(*args, **kwargs)
    return wrapper


def get_current_user():
    """取得當前登入的使用者 (只能在 auth_required 的 endpoint 裡使用)"""
    return g.get('current_user')

# ============================================
# 註冊 API
# ============================================

@auth_bp.route('/signup', methods=['POST'])
def signup():
    """
    使用者註冊

    建立使用者後回傳 token,接著建立範例資料 (失敗也不影響註冊)
    """
    data = get_json_body()

    if not data.get('email') or not data.get('password') or not data.get('name'):
        raise ValidationError('Missing required fields')

    result = SignupSchema().load(data)

    # 檢查 email 是否已存在
    if User.query.filter_by(email=result['email']).first():
        raise ValidationError('User already exists')

    user = User(
        email=result['email'],
        name=result['name'],
        password_hash=hash_password(result['password'])
    )

    db.session.add(user)
    db.session.commit()

    logger.info(f"New user registered: {user.email}")

    token = issue_token(user.id)

    if current_app.config.get('SEED_ONBOARDING_CONTENT', True):
        seed_onboarding_content(user)

    return jsonify({
        'token': token,
        'user': serialize_user(user)
    }), 200

# ============================================
# 登入 API
# ============================================

@auth_bp.route('/login', methods=['POST'])
def login():
    """
    使用者登入

    不區分是 email 錯還是 password 錯,避免帳號枚舉攻擊
    """
    data = get_json_body()

    if not data.get('email') or not data.get('password'):
        raise ValidationError('Missing email or password')

    result = LoginSchema().load(data)

    user = User.query.filter_by(email=result['email']).first()

    if not user or not check_password(user, result['password']):
        logger.warning(f"Failed login attempt for email: {result['email']}")
        raise AuthenticationError('Invalid credentials')

    logger.info(f"User logged in: {user.email}")

    return jsonify({
        'token': issue_token(user.id),
        'user': serialize_user(user)
    }), 200

# ============================================
# 取得當前使用者資訊
# ============================================

@auth_bp.route('/me', methods=['GET'])
@auth_required
def get_me():
    return jsonify({'user': serialize_user(get_current_user())}), 200
