from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from api.pagination import parse_pagination, parse_bool_arg, parse_choice_arg, paginate
from api.rate_limit import limiter, PUBLIC_READ, STANDARD, WRITE
from models import storage
from models.like import Like
from models.post import Post, PostStatus
from models.schemas.post import PostCreateSchema, PostUpdateSchema, PostOutSchema
from services.errors import NotFound
from utils.decorators import is_admin, jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("posts", __name__)

post_create_schema = PostCreateSchema()
post_update_schema = PostUpdateSchema()
post_out_schema = PostOutSchema()
posts_out_schema = PostOutSchema(many=True)

STATUS_CHOICES = [s.value for s in PostStatus]


def _posts_query():
    return (
        storage.get_session()
        .query(Post)
        .options(joinedload(Post.author))
        .filter(Post.deleted_at.is_(None))
    )


def _get_post_or_404(post_id: str) -> Post:
    post = storage.get(Post, post_id)
    if post is None or post.is_deleted:
        raise NotFound("Post no encontrado")
    return post


def _ensure_owner_or_admin(post: Post):
    if post.author_id != g.current_user["id"] and not is_admin():
        abort(403, description="No tienes permisos para modificar este post")


def _find_like(post_id: str, user_id: str) -> Like | None:
    return (
        storage.get_session()
        .query(Like)
        .filter(Like.post_id == post_id, Like.user_id == user_id)
        .first()
    )


@bp.get("/posts")
@limiter.limit(PUBLIC_READ)
def list_posts():
    """
    List posts
    ---
    tags:
      - Posts
    parameters:
      - { in: query, name: search, type: string, description: "Matches title or description" }
      - { in: query, name: status, type: string, enum: [active, closed, deleted] }
      - { in: query, name: is_solved, type: boolean }
      - { in: query, name: author_id, type: string }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    status = parse_choice_arg("status", STATUS_CHOICES)
    is_solved = parse_bool_arg("is_solved")
    author_id = request.args.get("author_id")
    search = (request.args.get("search") or "").strip()

    query = _posts_query()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Post.title.ilike(like), Post.description.ilike(like)))
    if status:
        query = query.filter(Post.status == PostStatus(status))
    if is_solved is not None:
        query = query.filter(Post.is_solved.is_(is_solved))
    if author_id:
        query = query.filter(Post.author_id == author_id)

    rows, meta = paginate(query, [Post.created_at.desc()], page, limit)
    return jsonify({"data": posts_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/posts/my/posts")
@limiter.limit(STANDARD)
@jwt_required()
def my_posts():
    """
    Posts written by the caller
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    query = _posts_query().filter(Post.author_id == g.current_user["id"])
    rows, meta = paginate(query, [Post.created_at.desc()], page, limit)
    return jsonify({"data": posts_out_schema.dump(rows), "meta": meta}), 200


@bp.get("/posts/<post_id>")
@limiter.limit(PUBLIC_READ)
def get_post(post_id: str):
    """
    Get one post (counts a view when the post is active)
    ---
    tags:
      - Posts
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    post = _get_post_or_404(post_id)
    if post.status == PostStatus.ACTIVE:
        post.views = (post.views or 0) + 1
        storage.save()
    return jsonify({"data": post_out_schema.dump(post)}), 200


@bp.post("/posts")
@limiter.limit(WRITE)
@jwt_required()
def create_post():
    """
    Create a post
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [title, description]
          properties:
            title: { type: string, minLength: 10, maxLength: 255 }
            description: { type: string }
    responses:
      201: { description: Created }
      400: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = post_create_schema.load(payload)

    post = Post(
        title=data["title"],
        description=data["description"],
        author_id=g.current_user["id"],
        status=PostStatus.ACTIVE,
    )
    post.save()
    logger.info("User %s created post %s", post.author_id, post.id)
    return jsonify({"message": "Post creado exitosamente", "data": post_out_schema.dump(post)}), 201


@bp.put("/posts/<post_id>")
@limiter.limit(WRITE)
@jwt_required()
def update_post(post_id: str):
    """
    Update a post (author or admin)
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: post_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            title: { type: string }
            description: { type: string }
            status: { type: string, enum: [active, closed, deleted] }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    post = _get_post_or_404(post_id)
    _ensure_owner_or_admin(post)

    payload = request.get_json(silent=True) or {}
    data = post_update_schema.load(payload)
    for key, value in data.items():
        setattr(post, key, value)

    storage.save()
    return jsonify({"message": "Post actualizado exitosamente", "data": post_out_schema.dump(post)}), 200


@bp.delete("/posts/<post_id>/soft")
@limiter.limit(WRITE)
@jwt_required()
def soft_delete_post(post_id: str):
    """
    Soft delete a post (author or admin)
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    post = _get_post_or_404(post_id)
    _ensure_owner_or_admin(post)
    post.soft_delete()
    return jsonify({"message": "Post eliminado exitosamente"}), 200


@bp.delete("/posts/<post_id>/hard")
@limiter.limit(WRITE)
@jwt_required()
def hard_delete_post(post_id: str):
    """
    Permanently delete a post with its answers and likes (author or admin)
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    post = storage.get(Post, post_id)
    if post is None:
        raise NotFound("Post no encontrado")
    _ensure_owner_or_admin(post)
    storage.delete(post)
    storage.save()
    logger.info("User %s hard-deleted post %s", g.current_user["id"], post_id)
    return jsonify({"message": "Post eliminado permanentemente"}), 200


@bp.post("/posts/<post_id>/like")
@limiter.limit(WRITE)
@jwt_required()
def toggle_like(post_id: str):
    """
    Like or unlike a post
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200:
        description: New like state
        schema:
          type: object
          properties:
            likes_count: { type: integer }
            is_liked: { type: boolean }
    """
    post = _get_post_or_404(post_id)
    user_id = g.current_user["id"]

    existing = _find_like(post.id, user_id)
    if existing is not None:
        storage.delete(existing)
        post.likes_count = max((post.likes_count or 0) - 1, 0)
        is_liked = False
    else:
        storage.new(Like(user_id=user_id, post_id=post.id))
        post.likes_count = (post.likes_count or 0) + 1
        is_liked = True

    storage.save()
    return jsonify({"data": {"likes_count": post.likes_count, "is_liked": is_liked}}), 200


@bp.get("/posts/<post_id>/check-like")
@limiter.limit(STANDARD)
@jwt_required()
def check_like(post_id: str):
    """
    Whether the caller likes a post
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    post = _get_post_or_404(post_id)
    like = _find_like(post.id, g.current_user["id"])
    return jsonify({"data": {"has_liked": like is not None, "like_id": like.id if like else None}}), 200


@bp.patch("/posts/<post_id>/solved")
@limiter.limit(WRITE)
@jwt_required()
def toggle_solved(post_id: str):
    """
    Toggle the solved flag (author only)
    ---
    tags:
      - Posts
    security:
      - Bearer: []
    parameters:
      - { in: path, name: post_id, type: string, required: true }
    responses:
      200: { description: OK }
      403: { description: Only the author can mark a post as solved }
    """
    post = _get_post_or_404(post_id)
    if post.author_id != g.current_user["id"]:
        abort(403, description="Solo el autor puede marcar el post como resuelto")
    post.is_solved = not post.is_solved
    storage.save()
    return jsonify({"message": "Estado actualizado", "data": post_out_schema.dump(post)}), 200
