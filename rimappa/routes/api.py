import csv
import os
from datetime import datetime

from flask import current_app, jsonify, request, Response
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from rimappa import db
from rimappa.activity import record_activity
from rimappa.errors import ConflictError, NotFoundError, RecordValidationError, RimappaError
from rimappa.geocoding import Geocoder
from rimappa.importer import export_csv, import_csv
from rimappa.models import ActivityType, CompetitionStatus, User
from rimappa.participations import list_participations, request_participation
from rimappa.policy import requires
from rimappa.routes import api_bp
from rimappa.schemas import CompetitionCreate, ParticipationCreate, ProfileUpdate, validate_payload
from rimappa.store import CompetitionStore


def get_geocoder():
    geocoder = current_app.extensions.get('rimappa.geocoder')
    if geocoder is None:
        geocoder = Geocoder.from_config(current_app.config)
        current_app.extensions['rimappa.geocoder'] = geocoder
    return geocoder


@api_bp.errorhandler(RimappaError)
def handle_domain_error(e):
    db.session.rollback()
    return jsonify(e.to_dict()), e.status_code


@api_bp.errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify({'error': e.description}), e.code


@api_bp.errorhandler(Exception)
def handle_unexpected_error(e):
    db.session.rollback()
    current_app.logger.exception(f"Unhandled error on {request.method} {request.path}")
    return jsonify({'error': 'Internal server error'}), 500


# Competitions

@api_bp.route('/competitions', methods=['POST'])
@requires('create', 'competition')
def create_competition():
    data = validate_payload(CompetitionCreate, request.get_json(silent=True))
    data = data.model_copy(update={'status': CompetitionStatus.OPEN.value})

    if not data.has_coordinates():
        coordinates = get_geocoder().lookup(data.location)
        if coordinates:
            data = data.model_copy(update={'latitude': coordinates.latitude, 'longitude': coordinates.longitude})

    store = CompetitionStore(db.session)
    competition = store.create(data, organizer_id=current_user.id)
    record_activity(
        db.session,
        ActivityType.COMPETITION_CREATED,
        title=f'New competition: {competition.title}',
        description=f'{competition.location}, {competition.date:%d/%m/%Y %H:%M}',
        user_id=current_user.id,
        competition_id=competition.id,
    )
    db.session.commit()

    current_app.logger.info(f"Competition {competition.slug} created by {current_user.id}")
    return jsonify(competition.to_dict()), 201


@api_bp.route('/competitions', methods=['GET'])
@requires('list', 'competition')
def list_competitions():
    status = request.args.get('status') or None
    organizer_id = request.args.get('organizerId') or None

    if status and status not in {s.value for s in CompetitionStatus}:
        raise RecordValidationError('status', RecordValidationError.OUT_OF_RANGE,
                                    f"Status must be one of {', '.join(s.value for s in CompetitionStatus)}")

    competitions = CompetitionStore(db.session).find_many(status=status, organizer_id=organizer_id)
    return jsonify([c.to_dict() for c in competitions])


@api_bp.route('/competitions/import', methods=['POST'])
@requires('import', 'competition')
def import_competitions():
    upload = request.files.get('file')
    if upload and upload.filename:
        try:
            text = upload.read().decode('utf-8-sig')
        except UnicodeDecodeError:
            raise RecordValidationError('file', RecordValidationError.WRONG_TYPE, 'File must be UTF-8 encoded CSV')
        source = upload.filename
    else:
        path = current_app.config['IMPORT_CSV_PATH']
        if not os.path.exists(path):
            raise NotFoundError('No file uploaded and no CSV found on disk')
        with open(path, encoding='utf-8-sig') as f:
            text = f.read()
        source = path

    default_organizer_id = request.form.get('defaultOrganizerId') or None
    current_app.logger.info(f"Importing competitions from {source} (requested by {current_user.id})")
    try:
        report = import_csv(text, CompetitionStore(db.session), get_geocoder(),
                            default_organizer_id=default_organizer_id)
    except (ValueError, csv.Error) as e:
        raise RecordValidationError('file', RecordValidationError.WRONG_TYPE, str(e))

    return jsonify(report.to_dict())


@api_bp.route('/competitions/export', methods=['GET'])
@requires('export', 'competition')
def export_competitions():
    competitions = CompetitionStore(db.session).find_many(status=request.args.get('status') or None)
    return Response(
        export_csv(competitions),
        mimetype='text/csv',
        headers={
            'Content-Disposition': f'attachment; filename=competitions_{datetime.now().strftime("%Y%m%d_%H%M%S")}.csv'
        }
    )


# Participations

@api_bp.route('/participations', methods=['POST'])
@requires('create', 'participation')
def create_participation():
    data = validate_payload(ParticipationCreate, request.get_json(silent=True))
    participation = request_participation(db.session, current_user, data.competition_id)
    return jsonify(participation.to_dict()), 201


@api_bp.route('/participations', methods=['GET'])
@requires('list', 'participation')
def get_participations():
    participations = list_participations(
        db.session,
        competition_id=request.args.get('competitionId') or None,
        user_id=request.args.get('userId') or None,
    )
    return jsonify([p.to_dict() for p in participations])


# Profile

@api_bp.route('/profile/update', methods=['PUT'])
@requires('update', 'profile')
def update_profile():
    data = validate_payload(ProfileUpdate, request.get_json(silent=True))

    email = data.email.lower()
    taken = User.query.filter(User.email == email, User.id != current_user.id).first()
    if taken:
        raise ConflictError('Email already in use')

    user = db.session.get(User, current_user.id)
    user.name = data.name
    user.email = email
    db.session.commit()
    return jsonify(user.to_dict())
