from flask import Blueprint
from psyhospital import limiter
from psyhospital.controllers.auth_controller import login, logout, me

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit('5 per minute; 25 per hour')
def login_route():
    return login()


@auth_bp.route('/logout', methods=['POST'])
def logout_route():
    return logout()


@auth_bp.route('/me', methods=['GET'])
def me_route():
    return me()
