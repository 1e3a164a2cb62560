from flask import render_template, redirect, url_for, current_app, abort
from flask_login import login_required, current_user
from rimappa.routes import main_bp
from rimappa.models import UserRole
from rimappa.activity import dashboard_stats, recent_activity
from rimappa import db


@main_bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))
    return render_template('index.html')


@main_bp.route('/dashboard')
@login_required
def dashboard():
    is_organizer = current_user.role == UserRole.ORGANIZER.value
    try:
        stats = dashboard_stats(db.session, current_user)
        activities = recent_activity(db.session, current_user, limit=5)
    except Exception:
        current_app.logger.exception("Error loading dashboard")
        stats = {'activeCompetitions': 0, 'participants': 0, 'upcomingCompetitions': 0}
        activities = []

    return render_template('dashboard/index.html',
                           stats=stats,
                           activities=activities,
                           is_organizer=is_organizer)


@main_bp.route('/competitions')
@login_required
def competitions():
    lat, lon = current_app.config['MAP_CENTER']
    return render_template('competitions.html',
                           map_center={'latitude': lat, 'longitude': lon},
                           map_zoom=current_app.config['MAP_ZOOM'],
                           maptiler_key=current_app.config.get('MAPTILER_API_KEY') or '',
                           is_organizer=current_user.role == UserRole.ORGANIZER.value,
                           is_competitor=current_user.role == UserRole.COMPETITOR.value)


@main_bp.route('/dashboard/competitions/new')
@login_required
def new_competition():
    if current_user.role != UserRole.ORGANIZER.value:
        abort(403)
    return render_template('dashboard/new_competition.html')


@main_bp.route('/dashboard/profile')
@login_required
def profile():
    return render_template('dashboard/profile.html', user=current_user)
