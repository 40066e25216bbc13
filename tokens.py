from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
import logging

logger = logging.getLogger(__name__)

# ============================================
# Token Service
# ============================================
#
# 簽章和有效期限都來自 app config:
#   JWT_SECRET_KEY
#   JWT_ACCESS_TOKEN_EXPIRES (預設 7 天)
# 兩個函數都需要在 app context 裡呼叫


def issue_token(user_id):
    """產生包含 user id 的 access token"""
    return create_access_token(
        identity=str(user_id),
        additional_claims={'userId': str(user_id)}
    )


def verify_token(token):
    """
    驗證 token

    Returns:
        dict: 解碼後的 claims, token 過期、格式錯誤或簽章不符時回傳 None
    """
    if not token:
        return None

    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        logger.debug(f"Token verification failed: {str(e)}")
        return None

    if claims.get('type') != 'access':
        return None

    return claims


def identity_from_claims(claims):
    """從 claims 取出 user id (int),取不到就回傳 None"""
    if not claims:
        return None
    try:
        return int(claims.get('sub'))
    except (TypeError, ValueError):
        return None
