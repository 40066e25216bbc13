from flask import jsonify, current_app, request
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException
import logging

logger = logging.getLogger(__name__)

# ============================================
# 錯誤類型
# ============================================


class ApiError(Exception):
    """所有會轉成 HTTP 回應的錯誤的基底類別"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify({'error': self.message}), self.status_code


class ValidationError(ApiError):
    """輸入缺少或格式錯誤"""
    status_code = 400


class AuthenticationError(ApiError):
    """缺少 token、token 無效或帳密錯誤"""
    status_code = 401


class AuthorizationError(ApiError):
    """已登入但沒有權限"""
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


# ============================================
# 全域錯誤處理
# ============================================

def register_error_handlers(app):
    """把所有錯誤統一轉成 {'error': ...} 格式的 JSON"""
    from models import db

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            db.session.rollback()
        return error.to_response()

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error):
        """marshmallow 驗證失敗"""
        return jsonify({
            'error': 'Validation failed',
            'details': error.messages
        }), 400

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'error': 'The request is malformed or invalid'}), 400

    # 找不到的路徑和不支援的 method 都回 404
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """
        最後的防線,捕捉所有沒被處理的 exception

        PROPAGATE_ERROR_MESSAGES 打開時會把原始訊息回給前端
        """
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description}), error.code

        db.session.rollback()

        logger.error(
            f"Unhandled error on {request.method} {request.path}: {str(error)}",
            exc_info=True
        )

        if current_app.config.get('PROPAGATE_ERROR_MESSAGES', True):
            message = str(error) or error.__class__.__name__
        else:
            message = 'An unexpected error occurred. Please try again later.'

        return jsonify({'error': message}), 500
