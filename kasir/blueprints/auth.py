"""
Authentication blueprint.
Handles registration, login, logout, session status and profile updates.
"""
import logging

from flask import Blueprint, session, g
from flask_wtf.csrf import generate_csrf

from kasir.database import get_session
from kasir.forms.pos_forms import LoginForm, RegisterForm, load_json_form
from kasir.middleware import require_login
from kasir.services import auth_service
from kasir.utils.responses import success, json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _start_session(user):
    session.clear()
    session['user_id'] = user.id
    session.permanent = True


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account and log it in."""
    payload = json_body()
    form = load_json_form(RegisterForm, payload)
    user = auth_service.register_user(
        get_session(),
        email=form.email.data,
        password=form.password.data,
        full_name=form.full_name.data,
        business_name=form.business_name.data,
    )
    _start_session(user)
    return success(user.to_dict(), 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    form = load_json_form(LoginForm, json_body())
    user = auth_service.authenticate(get_session(), form.email.data, form.password.data)
    _start_session(user)
    logger.info(f"User logged in: id={user.id}")
    return success(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return success({'message': 'Berhasil logout'})


@auth_bp.route('/session', methods=['GET'])
def current_session():
    """Session status; never fails for anonymous callers."""
    user = g.get('user')
    return success({
        'authenticated': user is not None,
        'user': user.to_dict() if user else None,
    })


@auth_bp.route('/refresh', methods=['POST'])
@require_login
def refresh():
    """Re-issue the session cookie for the logged-in user."""
    _start_session(g.user)
    return success(g.user.to_dict())


@auth_bp.route('/profile', methods=['PUT'])
@require_login
def update_profile():
    user = auth_service.update_profile(get_session(), g.user, json_body())
    return success(user.to_dict())


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token for the X-CSRFToken header of state-changing requests."""
    return success({'csrf_token': generate_csrf()})
