from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_bcrypt import Bcrypt
from config import get_config
from models import db
from errors import register_error_handlers
from sqlalchemy import text
from datetime import datetime
import logging
from logging.handlers import RotatingFileHandler
import os

# ============================================
# Logging 設定
# ============================================

def setup_logging(app):
    """
    info 和 error 分開寫到兩個 RotatingFileHandler

    debug / testing 模式不寫檔,交給 Flask 預設的 console logging
    """
    if app.debug or app.testing:
        return

    log_dir = app.config.get('LOG_DIR', 'logs')
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )

    # Info log handler (記錄一般資訊)
    info_handler = RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        maxBytes=10240000,  # 10MB
        backupCount=10
    )
    info_handler.setLevel(logging.INFO)
    info_handler.setFormatter(formatter)

    # Error log handler (只記錄錯誤)
    error_handler = RotatingFileHandler(
        os.path.join(log_dir, 'error.log'),
        maxBytes=10240000,  # 10MB
        backupCount=10
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    # 各模組用 logging.getLogger(__name__),所以掛在 root logger 上
    # create_app() 可能被呼叫多次,同一個檔案只掛一次
    root_logger = logging.getLogger()
    existing = {
        getattr(h, 'baseFilename', None) for h in root_logger.handlers
    }
    for handler in (info_handler, error_handler):
        if handler.baseFilename in existing:
            handler.close()
        else:
            root_logger.addHandler(handler)
    root_logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    app.logger.info('Application startup')

# ============================================
# 初始化 Flask App
# ============================================

def create_app(config_object=None):
    app = Flask(__name__)
    config_object = config_object or get_config()
    app.config.from_object(config_object)

    if not app.testing:
        config_object.validate()

    # CORS: 只允許設定好的前端來源
    CORS(app,
         supports_credentials=True,
         origins=app.config['CORS_ORIGINS'],
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'])

    # 擴展初始化
    db.init_app(app)
    JWTManager(app)
    app.extensions['bcrypt'] = Bcrypt(app)

    setup_logging(app)

    with app.app_context():
        db.create_all()
        app.logger.info('Database tables created')

    # 註冊 Blueprints
    from auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')

    from teams import teams_bp
    app.register_blueprint(teams_bp, url_prefix='/teams')

    from projects import projects_bp
    app.register_blueprint(projects_bp, url_prefix='/projects')

    from tasks import tasks_bp
    app.register_blueprint(tasks_bp, url_prefix='/tasks')

    register_error_handlers(app)
    register_request_hooks(app)
    register_health_check(app)

    from view_db import register_commands
    register_commands(app)

    return app

# ============================================
# Request/Response Logging
# ============================================

def register_request_hooks(app):

    @app.before_request
    def log_request():
        app.logger.info(f"Request: {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def log_response(response):
        app.logger.info(f"Response: {response.status_code} for {request.method} {request.path}")

        # 加上 security headers
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'

        return response

# ============================================
# Health Check Endpoint
# ============================================

def register_health_check(app):

    @app.route('/health', methods=['GET'])
    def health_check():
        """給 load balancer 或監控系統檢查服務是否正常"""
        try:
            db.session.execute(text('SELECT 1'))

            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'version': app.config.get('API_VERSION'),
                'timestamp': datetime.utcnow().isoformat()
            }), 200
        except Exception as e:
            app.logger.error(f"Health check failed: {str(e)}")
            return jsonify({
                'status': 'unhealthy',
                'database': 'disconnected',
                'error': 'Database connection failed'
            }), 503

# ============================================
# 啟動應用
# ============================================

if __name__ == '__main__':
    # 在 production 環境不要用 Flask 內建的 server
    # 應該用 gunicorn: gunicorn "app:create_app()"
    debug_mode = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    port = int(os.getenv('FLASK_PORT', 8888))

    create_app().run(
        debug=debug_mode,
        port=port,
        host='0.0.0.0'
    )
