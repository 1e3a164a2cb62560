from flask import render_template, request, flash, redirect, url_for, current_app
from flask_login import login_user, logout_user, login_required, current_user
from rimappa.routes import auth_bp
from rimappa.models import User, UserRole
from rimappa import db

# Administrators are created from the command line, never through the form
REGISTRABLE_ROLES = (UserRole.ORGANIZER.value, UserRole.COMPETITOR.value)


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        name = (request.form.get('name') or '').strip()
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password')
        confirm_password = request.form.get('confirm_password')
        role = request.form.get('role', UserRole.COMPETITOR.value)

        # Validation
        if not all([name, email, password, confirm_password]):
            flash('Please fill in all required fields.', 'error')
            return render_template('auth/register.html'), 400

        if password != confirm_password:
            flash('Passwords do not match.', 'error')
            return render_template('auth/register.html'), 400

        if role not in REGISTRABLE_ROLES:
            flash('Choose organizer or competitor.', 'error')
            return render_template('auth/register.html'), 400

        if User.query.filter_by(email=email).first():
            flash('Email already registered.', 'error')
            return render_template('auth/register.html'), 400

        user = User(name=name, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"Registered {role.lower()} {email}")

        flash('Registration successful! You can now log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/register.html')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''

        if not email or not password:
            flash('Email and password are required.', 'error')
            return render_template('auth/login.html'), 400

        user = User.query.filter_by(email=email).first()

        if user and user.check_password(password):
            login_user(user)
            next_page = request.args.get('next')
            # only follow local redirects
            if next_page and next_page.startswith('/') and not next_page.startswith('//'):
                return redirect(next_page)
            return redirect(url_for('main.dashboard'))

        current_app.logger.info(f"Failed login for {email}")
        flash('Invalid email or password.', 'error')
        return render_template('auth/login.html'), 401

    return render_template('auth/login.html')


@auth_bp.route('/logout')
@login_required
def logout():
    logout_user()
    flash('You have been logged out.', 'info')
    return redirect(url_for('main.index'))
