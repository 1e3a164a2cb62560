from rimappa import create_app, db
from rimappa.cli import seed_admin
import os

app = create_app()


def init_db():
    """Make sure the administrator account exists (idempotent)."""
    email = os.environ.get('ADMIN_EMAIL', 'admin@rimappa.app')
    password = os.environ.get('ADMIN_PASSWORD', 'admin123')
    _, created = seed_admin(email, password)
    if created:
        app.logger.info(f"Admin user created: {email}")


# Also runs under Gunicorn, which imports this module
with app.app_context():
    db.create_all()
    init_db()


if __name__ == "__main__":
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=os.environ.get('FLASK_DEBUG') == '1')
