"""Attendance API endpoints: sessions, check-in and timetable."""
from datetime import timedelta

from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from planora import db, limiter
from planora.models.attendance import AttendanceRecord
from planora.models.attendance_session import AttendanceSession
from planora.models.course import Course
from planora.services.attendance_service import (
    AttendanceVerifier, is_session_open, merge_into_timetable, next_class, open_sessions
)
from planora.services.checkin_flow import CheckInFlow, CheckInState
from planora.services.qr_service import QRService
from planora.services.stores import SQLAlchemyAttendanceStore
from planora.utils.conference_links import detect_links
from planora.utils.decorators import student_required, teacher_required
from planora.utils.errors import ValidationError
from planora.utils.helpers import (
    error_response, get_clock, isoformat, parse_datetime, success_response
)
from planora.utils.validators import Validator, ensure_valid

attendance_bp = Blueprint('attendance', __name__)

def _session_payload(session: AttendanceSession, now) -> dict:
    data = session.to_dict()
    data['is_open'] = is_session_open(session, now)
    data['links'] = [link.to_dict() for link in detect_links(session.room)]
    return data

def _check_in_flow(session: AttendanceSession) -> CheckInFlow:
    """Build a flow for the current student with the app's clock and policy."""
    verifier = AttendanceVerifier(
        SQLAlchemyAttendanceStore(),
        student_id=int(get_jwt_identity()),
        clock=get_clock(),
        allow_early_check_in=current_app.config.get('ATTENDANCE_ALLOW_EARLY_CHECKIN', False)
    )

    def on_success(checked_session):
        current_app.logger.info(
            'Student %s checked into session %s', verifier.student_id, checked_session.id
        )

    return CheckInFlow(session, verifier, on_success=on_success)

def _check_in_result(flow: CheckInFlow, method: str):
    if not flow.succeeded:
        return error_response("Check-in failed. Please try again.", 400)

    return success_response(
        data={
            'session_id': flow.session.id,
            'checked_in': True,
            'method': method
        },
        message="Your attendance has been recorded"
    )

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/sessions', methods=['POST'])
@jwt_required()
@teacher_required
def create_session():
    """Schedule an attendance session."""
    data = request.get_json(silent=True) or {}

    start = parse_datetime(data.get('start'), 'start')
    end = parse_datetime(data.get('end'), 'end')
    ensure_valid(Validator.validate_session_window(start, end))

    requires_passcode = bool(data.get('requires_passcode', False))
    passcode = (data.get('passcode') or '').strip() or None
    if requires_passcode and not passcode:
        raise ValidationError("A passcode is required when the session requires one")

    course_id = data.get('course_id')
    if course_id is not None and db.session.get(Course, course_id) is None:
        return error_response("Course not found", 404)

    session = AttendanceSession(
        course_id=course_id,
        start=start,
        end=end,
        room=data.get('room'),
        requires_passcode=requires_passcode,
        passcode=passcode,
        status=data.get('status') or 'Open',
        created_by=int(get_jwt_identity())
    )
    session.save()

    payload = session.to_dict()
    payload['qr_payload'] = QRService.encode_payload(session.id, passcode)
    return success_response(data=payload, message="Session created", status_code=201)

@attendance_bp.route('/sessions/<int:session_id>/qr', methods=['GET'])
@jwt_required()
@teacher_required
@limiter.limit("30 per hour")
def session_qr(session_id):
    """QR code students scan to check into a session."""
    session = AttendanceSession.get_or_404(session_id)
    payload = QRService.encode_payload(session.id, session.passcode)

    return success_response(data={
        'session_id': session.id,
        'qr_payload': payload,
        'qr_image': QRService.generate_qr_image(
            payload,
            box_size=current_app.config.get('QR_BOX_SIZE', 10),
            border=current_app.config.get('QR_BORDER', 4)
        )
    })

@attendance_bp.route('/sessions/open', methods=['GET'])
@jwt_required()
def get_open_sessions():
    """Sessions open for check-in right now."""
    now = get_clock()()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    store = SQLAlchemyAttendanceStore()

    sessions = open_sessions(store.list_sessions(day_start, day_start + timedelta(days=1)), now)
    return success_response(data={
        'sessions': [_session_payload(session, now) for session in sessions],
        'total': len(sessions)
    })

@attendance_bp.route('/sessions/next', methods=['GET'])
@jwt_required()
def get_next_class():
    """Next session starting within the coming day."""
    now = get_clock()()
    store = SQLAlchemyAttendanceStore()

    upcoming = next_class(store.list_sessions(now, now + timedelta(days=1)), now)
    if upcoming is None:
        return success_response(data=None, message="No upcoming class")

    session, seconds = upcoming
    return success_response(data={
        'session': _session_payload(session, now),
        'starts_in_seconds': int(seconds)
    })

@attendance_bp.route('/timetable', methods=['GET'])
@jwt_required()
def get_timetable():
    """Week timetable built from attendance sessions."""
    now = get_clock()()
    week_start = parse_datetime(request.args.get('week_start'), 'week_start')
    if week_start is None:
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=7)

    sessions = SQLAlchemyAttendanceStore().list_sessions(week_start, week_end)
    course_ids = {s.course_id for s in sessions if s.course_id is not None}
    titles = {
        course.id: course.name
        for course in Course.query.filter(Course.id.in_(course_ids)).all()
    } if course_ids else {}

    blocks = merge_into_timetable(sessions, titles, now)
    return success_response(data={
        'week_start': isoformat(week_start),
        'blocks': [block.to_dict() for block in blocks]
    })

@attendance_bp.route('/sessions/<int:session_id>/checkin', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
def check_in(session_id):
    """Check in with a manually entered passcode."""
    session = AttendanceSession.get_or_404(session_id)
    data = request.get_json(silent=True) or {}

    flow = _check_in_flow(session)
    flow.submit(data.get('passcode'))
    return _check_in_result(flow, 'passcode')

@attendance_bp.route('/sessions/<int:session_id>/scan', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
def scan_check_in(session_id):
    """Check in with a scanned QR code, optionally completed by a typed passcode."""
    session = AttendanceSession.get_or_404(session_id)
    data = request.get_json(silent=True) or {}

    if 'qr_data' not in data:
        raise ValidationError("QR data is required")

    flow = _check_in_flow(session)
    flow.handle_scan(data['qr_data'])

    if flow.state == CheckInState.IDLE:
        # The code carried no passcode for a session that needs one
        flow.submit(data.get('passcode'), method='scan')
    return _check_in_result(flow, 'scan')

@attendance_bp.route('/my-records', methods=['GET'])
@jwt_required()
@student_required
def get_my_attendance():
    """Student's attendance records."""
    current_user_id = int(get_jwt_identity())

    records = (
        AttendanceRecord.query
        .filter_by(student_id=current_user_id)
        .order_by(AttendanceRecord.checked_in_at.desc())
        .all()
    )

    return success_response(data={
        'records': [
            {
                'id': record.id,
                'session_id': record.session_id,
                'room': record.session.room,
                'method': record.method,
                'checked_in_at': isoformat(record.checked_in_at)
            }
            for record in records
        ],
        'total': len(records)
    })
