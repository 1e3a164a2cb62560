from flask import Flask, request, jsonify, redirect, url_for
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
import logging

from rimappa.config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def configure_logging(app):
    """Send the app logger (and every rimappa.* module logger) to stderr."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.setLevel(level)
    if not any(getattr(h, '_rimappa', False) for h in app.logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        handler._rimappa = True
        app.logger.addHandler(handler)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Sessions are meaningless without a secret, and redirects need the public URL
    missing = [key for key in ('SECRET_KEY', 'BASE_URL') if not app.config.get(key)]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Create tables
    with app.app_context():
        from rimappa import models  # noqa: F401
        db.create_all()

    # Configure login manager
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    from rimappa.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Authentication required'}), 401
        return redirect(url_for('auth.login', next=request.path))

    # Register blueprints
    from rimappa.routes import main_bp, auth_bp, api_bp
    from rimappa.routes import main, auth, api  # noqa: F401

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(api_bp, url_prefix='/api')

    from rimappa.cli import register_commands
    register_commands(app)

    return app
