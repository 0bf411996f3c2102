from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy import or_

from api.pagination import parse_pagination, parse_choice_arg, paginate
from api.rate_limit import limiter, STANDARD
from models import storage
from models.schemas.common import normalize_email
from models.schemas.user import (
    PasswordChangeSchema,
    UserCreateSchema,
    UserOutSchema,
    UserUpdateSchema,
)
from models.user import Role, User, UserStatus
from services.errors import NotFound
from utils.decorators import is_admin, jwt_required, roles_required
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
password_change_schema = PasswordChangeSchema()
user_out_schema = UserOutSchema()
users_out_schema = UserOutSchema(many=True)

ROLE_CHOICES = [r.value for r in Role]
STATUS_CHOICES = [s.value for s in UserStatus]


def _email_taken(email: str, exclude_id: str | None = None) -> bool:
    # Soft-deleted accounts keep their address reserved
    query = storage.get_session().query(User).filter(User.email == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _get_user_or_404(user_id: str, include_deleted: bool = False) -> User:
    user = storage.get(User, user_id)
    if user is None or (user.is_deleted and not include_deleted):
        raise NotFound("Usuario no encontrado")
    return user


def _reject_self(user_id: str):
    if user_id == g.current_user["id"]:
        abort(400, description="No puedes eliminar tu propia cuenta")


@bp.post("/users")
@limiter.limit(STANDARD)
@roles_required(["admin"])
def create_user():
    """
    Create a user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string }
            password: { type: string }
            first_name: { type: string }
            last_name: { type: string }
            role: { type: string, enum: [admin, student] }
            status: { type: string, enum: [active, inactive, pending] }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Email already registered }
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    if _email_taken(data["email"]):
        abort(409, description="El email ya está registrado")

    user = User(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        role=data.get("role", Role.STUDENT),
        status=data.get("status", UserStatus.ACTIVE),
    )
    user.save()
    logger.info("Admin %s created user %s", g.current_user["id"], user.id)
    return jsonify({"message": "Usuario creado exitosamente", "data": user_out_schema.dump(user)}), 201


@bp.get("/users")
@limiter.limit(STANDARD)
@roles_required(["admin"])
def list_users():
    """
    List users (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: search, type: string }
      - { in: query, name: role, type: string, enum: [admin, student] }
      - { in: query, name: status, type: string, enum: [active, inactive, pending] }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    role = parse_choice_arg("role", ROLE_CHOICES)
    status = parse_choice_arg("status", STATUS_CHOICES)
    search = (request.args.get("search") or "").strip()

    query = storage.get_session().query(User).filter(User.deleted_at.is_(None))
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(User.first_name.ilike(like), User.last_name.ilike(like), User.email.ilike(like))
        )
    if role:
        query = query.filter(User.role == Role(role))
    if status:
        query = query.filter(User.status == UserStatus(status))

    rows, meta = paginate(query, [User.created_at.desc()], page, limit)
    return jsonify({"data": users_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/users/<user_id>")
@limiter.limit(STANDARD)
@jwt_required()
def get_user(user_id: str):
    """
    Get one user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = _get_user_or_404(user_id, include_deleted=is_admin())
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.put("/users/<user_id>")
@limiter.limit(STANDARD)
@jwt_required()
def update_user(user_id: str):
    """
    Update a user (self or admin). Role and status changes are admin-only.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            first_name: { type: string }
            last_name: { type: string }
            role: { type: string }
            status: { type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      409: { description: Email already registered }
    """
    if user_id != g.current_user["id"] and not is_admin():
        abort(403, description="No tienes permisos para actualizar este usuario")

    user = _get_user_or_404(user_id)
    payload = request.get_json(silent=True) or {}
    data = user_update_schema.load(payload)

    if ("role" in data or "status" in data) and not is_admin():
        abort(403, description="Solo un administrador puede cambiar el rol o el estado")

    if "email" in data:
        email = normalize_email(data["email"])
        if email != user.email and _email_taken(email, exclude_id=user.id):
            abort(409, description="El email ya está registrado")
        user.email = email
    if "password" in data:
        user.password_hash = hash_password(data.pop("password"))
    for key in ("first_name", "last_name", "role", "status"):
        if key in data:
            setattr(user, key, data[key])

    storage.save()
    return jsonify({"message": "Usuario actualizado exitosamente", "data": user_out_schema.dump(user)}), 200


@bp.patch("/users/me/password")
@limiter.limit(STANDARD)
@jwt_required()
def change_password():
    """
    Change the caller's password
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [current_password, new_password]
          properties:
            current_password: { type: string }
            new_password: { type: string }
    responses:
      200: { description: Password changed }
      400: { description: Current password is wrong }
    """
    payload = request.get_json(silent=True) or {}
    data = password_change_schema.load(payload)

    user = _get_user_or_404(g.current_user["id"])
    if not verify_password(data["current_password"], user.password_hash):
        abort(400, description="La contraseña actual es incorrecta")

    user.password_hash = hash_password(data["new_password"])
    storage.save()
    logger.info("User %s changed their password", user.id)
    return jsonify({"message": "Contraseña actualizada exitosamente"}), 200


@bp.delete("/users/<user_id>/soft")
@limiter.limit(STANDARD)
@roles_required(["admin"])
def soft_delete_user(user_id: str):
    """
    Soft delete a user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      400: { description: Cannot delete yourself }
      404: { description: Not found }
    """
    _reject_self(user_id)
    user = _get_user_or_404(user_id)
    user.soft_delete()
    logger.info("Admin %s soft-deleted user %s", g.current_user["id"], user_id)
    return jsonify({"message": "Usuario eliminado exitosamente"}), 200


@bp.delete("/users/<user_id>/hard")
@limiter.limit(STANDARD)
@roles_required(["admin"])
def hard_delete_user(user_id: str):
    """
    Permanently delete a user with their tokens, posts, answers and likes (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      400: { description: Cannot delete yourself }
      404: { description: Not found }
    """
    _reject_self(user_id)
    user = _get_user_or_404(user_id, include_deleted=True)

    # Counters on other users' posts lose this user's answers and likes
    for answer in user.answers:
        if not answer.is_deleted and answer.post.author_id != user.id:
            answer.post.answers_count = max(answer.post.answers_count - 1, 0)
    for like in user.likes:
        if like.post is not None and like.post.author_id != user.id:
            like.post.likes_count = max(like.post.likes_count - 1, 0)

    storage.delete(user)
    storage.save()
    logger.info("Admin %s hard-deleted user %s", g.current_user["id"], user_id)
    return jsonify({"message": "Usuario eliminado permanentemente"}), 200


@bp.post("/users/<user_id>/restore")
@limiter.limit(STANDARD)
@roles_required(["admin"])
def restore_user(user_id: str):
    """
    Restore a soft-deleted user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: Restored }
      400: { description: User is not deleted }
      404: { description: Not found }
    """
    user = _get_user_or_404(user_id, include_deleted=True)
    if not user.is_deleted:
        abort(400, description="El usuario no está eliminado")
    user.restore()
    return jsonify({"message": "Usuario restaurado exitosamente", "data": user_out_schema.dump(user)}), 200
