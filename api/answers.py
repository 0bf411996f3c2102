from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy.orm import joinedload

from api.pagination import parse_pagination, paginate
from api.rate_limit import limiter, PUBLIC_READ, STANDARD, WRITE
from models import storage
from models.answer import Answer
from models.like import Like
from models.post import Post, PostStatus
from models.schemas.answer import AnswerCreateSchema, AnswerUpdateSchema, AnswerOutSchema
from services.errors import NotFound
from utils.decorators import is_admin, jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("answers", __name__)

answer_create_schema = AnswerCreateSchema()
answer_update_schema = AnswerUpdateSchema()
answer_out_schema = AnswerOutSchema()
answers_out_schema = AnswerOutSchema(many=True)


def _answers_query():
    return (
        storage.get_session()
        .query(Answer)
        .options(joinedload(Answer.author), joinedload(Answer.post))
        .filter(Answer.deleted_at.is_(None))
    )


def _get_answer_or_404(answer_id: str, include_deleted: bool = False) -> Answer:
    answer = storage.get(Answer, answer_id)
    if answer is None or (answer.is_deleted and not include_deleted):
        raise NotFound("Respuesta no encontrada")
    return answer


def _get_post_or_404(post_id: str) -> Post:
    post = storage.get(Post, post_id)
    if post is None or post.is_deleted:
        raise NotFound("Post no encontrado")
    return post


def _adjust_answers_count(post: Post, delta: int):
    post.answers_count = max((post.answers_count or 0) + delta, 0)


def _find_like(answer_id: str, user_id: str) -> Like | None:
    return (
        storage.get_session()
        .query(Like)
        .filter(Like.answer_id == answer_id, Like.user_id == user_id)
        .first()
    )


def _can_remove(answer: Answer) -> bool:
    """The answer's author, the post's author and admins may delete."""
    user_id = g.current_user["id"]
    return answer.author_id == user_id or answer.post.author_id == user_id or is_admin()


@bp.get("/answers")
@limiter.limit(PUBLIC_READ)
def list_answers():
    """
    List answers
    ---
    tags:
      - Answers
    parameters:
      - { in: query, name: post_id, type: string }
      - { in: query, name: author_id, type: string }
      - { in: query, name: search, type: string }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    post_id = request.args.get("post_id")
    author_id = request.args.get("author_id")
    search = (request.args.get("search") or "").strip()

    query = _answers_query()
    if post_id:
        query = query.filter(Answer.post_id == post_id)
    if author_id:
        query = query.filter(Answer.author_id == author_id)
    if search:
        query = query.filter(Answer.content.ilike(f"%{search}%"))

    rows, meta = paginate(query, [Answer.created_at.desc()], page, limit)
    return jsonify({"data": answers_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/answers/my/answers")
@limiter.limit(STANDARD)
@jwt_required()
def my_answers():
    """
    Answers written by the caller
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    query = _answers_query().filter(Answer.author_id == g.current_user["id"])
    rows, meta = paginate(query, [Answer.created_at.desc()], page, limit)
    return jsonify({"data": answers_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/answers/post/<post_id>")
@limiter.limit(PUBLIC_READ)
def answers_for_post(post_id: str):
    """
    Answers of one post, oldest first
    ---
    tags:
      - Answers
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Post not found }
    """
    _get_post_or_404(post_id)
    page, limit = parse_pagination()
    query = _answers_query().filter(Answer.post_id == post_id)
    rows, meta = paginate(query, [Answer.created_at.asc()], page, limit)
    return jsonify({"data": answers_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/answers/<answer_id>")
@limiter.limit(PUBLIC_READ)
def get_answer(answer_id: str):
    """
    Get one answer
    ---
    tags:
      - Answers
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    answer = _get_answer_or_404(answer_id)
    return jsonify({"data": answer_out_schema.dump(answer)}), 200


@bp.post("/answers")
@limiter.limit(WRITE)
@jwt_required()
def create_answer():
    """
    Answer a post
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [content, post_id]
          properties:
            content: { type: string, minLength: 10 }
            post_id: { type: string, format: uuid }
    responses:
      201: { description: Created }
      400: { description: Validation error or closed post }
      404: { description: Post not found }
    """
    payload = request.get_json(silent=True) or {}
    data = answer_create_schema.load(payload)

    post = _get_post_or_404(str(data["post_id"]))
    if post.status == PostStatus.CLOSED:
        abort(400, description="No se pueden agregar respuestas a un post cerrado")

    answer = Answer(content=data["content"], post_id=post.id, author_id=g.current_user["id"])
    storage.new(answer)
    _adjust_answers_count(post, +1)
    storage.save()
    logger.info("User %s answered post %s", answer.author_id, post.id)
    return jsonify({"message": "Respuesta creada exitosamente", "data": answer_out_schema.dump(answer)}), 201


@bp.put("/answers/<answer_id>")
@limiter.limit(WRITE)
@jwt_required()
def update_answer(answer_id: str):
    """
    Edit an answer (author or admin)
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          required: [content]
          properties:
            content: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error or closed post }
      403: { description: Forbidden }
    """
    answer = _get_answer_or_404(answer_id)
    admin = is_admin()
    if answer.author_id != g.current_user["id"] and not admin:
        abort(403, description="No tienes permisos para editar esta respuesta")
    if answer.post.status == PostStatus.CLOSED and not admin:
        abort(400, description="No se pueden editar respuestas de un post cerrado")

    payload = request.get_json(silent=True) or {}
    data = answer_update_schema.load(payload)
    answer.content = data["content"]
    storage.save()
    return jsonify({"message": "Respuesta actualizada exitosamente", "data": answer_out_schema.dump(answer)}), 200


@bp.delete("/answers/<answer_id>/soft")
@limiter.limit(WRITE)
@jwt_required()
def soft_delete_answer(answer_id: str):
    """
    Soft delete an answer (author, post author or admin)
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    answer = _get_answer_or_404(answer_id)
    if not _can_remove(answer):
        abort(403, description="No tienes permisos para eliminar esta respuesta")

    _adjust_answers_count(answer.post, -1)
    answer.soft_delete()
    return jsonify({"message": "Respuesta eliminada exitosamente"}), 200


@bp.delete("/answers/<answer_id>/hard")
@limiter.limit(WRITE)
@jwt_required()
def hard_delete_answer(answer_id: str):
    """
    Permanently delete an answer (author, post author or admin)
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    answer = _get_answer_or_404(answer_id, include_deleted=True)
    if not _can_remove(answer):
        abort(403, description="No tienes permisos para eliminar esta respuesta")

    # A soft-deleted answer was already taken off the counter
    if not answer.is_deleted:
        _adjust_answers_count(answer.post, -1)
    storage.delete(answer)
    storage.save()
    logger.info("User %s hard-deleted answer %s", g.current_user["id"], answer_id)
    return jsonify({"message": "Respuesta eliminada permanentemente"}), 200


@bp.post("/answers/<answer_id>/restore")
@limiter.limit(WRITE)
@jwt_required()
def restore_answer(answer_id: str):
    """
    Restore a soft-deleted answer (author or admin)
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: Restored }
      400: { description: Answer is not deleted }
      403: { description: Forbidden }
    """
    answer = _get_answer_or_404(answer_id, include_deleted=True)
    if answer.author_id != g.current_user["id"] and not is_admin():
        abort(403, description="No tienes permisos para restaurar esta respuesta")
    if not answer.is_deleted:
        abort(400, description="La respuesta no está eliminada")

    _adjust_answers_count(answer.post, +1)
    answer.restore()
    return jsonify({"message": "Respuesta restaurada exitosamente", "data": answer_out_schema.dump(answer)}), 200


@bp.post("/answers/<answer_id>/like")
@limiter.limit(WRITE)
@jwt_required()
def toggle_answer_like(answer_id: str):
    """
    Like or unlike an answer
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: New like state }
    """
    answer = _get_answer_or_404(answer_id)
    user_id = g.current_user["id"]

    existing = _find_like(answer.id, user_id)
    if existing is not None:
        storage.delete(existing)
        is_liked = False
    else:
        storage.new(Like(user_id=user_id, answer_id=answer.id))
        is_liked = True

    storage.save()
    likes_count = storage.get_session().query(Like).filter(Like.answer_id == answer.id).count()
    return jsonify({"data": {"likes_count": likes_count, "is_liked": is_liked}}), 200


@bp.get("/answers/<answer_id>/check-like")
@limiter.limit(STANDARD)
@jwt_required()
def check_answer_like(answer_id: str):
    """
    Whether the caller likes an answer
    ---
    tags:
      - Answers
    security:
      - Bearer: []
    parameters:
      - { in: path, name: answer_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    answer = _get_answer_or_404(answer_id)
    like = _find_like(answer.id, g.current_user["id"])
    return jsonify({"data": {"has_liked": like is not None, "like_id": like.id if like else None}}), 200
