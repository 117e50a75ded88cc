"""
Authentication is delegated to an external identity provider.

The identity proxy in front of the API authenticates the caller and forwards
the subject in ``X-User-Id`` (plus optional ``X-User-Email`` and
``X-User-Name``). Users are upserted on first sight.
"""
import logging

from flask import current_app, jsonify
from flask_login import LoginManager
from sqlalchemy.exc import IntegrityError

from .models import db, User

logger = logging.getLogger(__name__)

login_manager = LoginManager()


@login_manager.request_loader
def load_user_from_request(request):
    user_id = request.headers.get('X-User-Id')
    if not user_id:
        return None
    return upsert_user(
        user_id,
        email=request.headers.get('X-User-Email'),
        username=request.headers.get('X-User-Name')
    )


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def upsert_user(user_id: str, email: str = None, username: str = None) -> User:
    """
    Create the user on first sight, refresh profile fields afterwards.

    Display names are not unique. An email already held by another user is
    not copied, so the caller still gets in.
    """
    admin_ids = current_app.config.get('ADMIN_USER_IDS', set())
    if email and _email_taken(email, user_id):
        logger.warning(f"Email of user {user_id} belongs to another user, not storing it")
        email = None

    user = db.session.get(User, user_id)
    if user is None:
        user = User(id=user_id, email=email, username=username, is_admin=user_id in admin_ids)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # Another request registered the same subject first
            db.session.rollback()
            user = db.session.get(User, user_id)
            if user is None:
                raise
            return user
        logger.info(f"Registered user {user_id} from identity provider")
        return user

    changed = False
    if email and user.email != email:
        user.email = email
        changed = True
    if username and user.username != username:
        user.username = username
        changed = True
    if user_id in admin_ids and not user.is_admin:
        user.is_admin = True
        changed = True
    if changed:
        db.session.commit()
    return user


def _email_taken(email: str, user_id: str) -> bool:
    return db.session.query(User.id).filter(
        User.email == email, User.id != user_id
    ).first() is not None
