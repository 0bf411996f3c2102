from marshmallow import Schema, fields, pre_load, validate

from models.post import PostStatus
from models.schemas.common import strip_strings
from models.schemas.user import AuthorOutSchema


class AnswerCreateSchema(Schema):
    content = fields.String(
        required=True,
        validate=validate.Length(min=10, max=10000, error="El contenido debe tener entre 10 y 10000 caracteres"),
    )
    post_id = fields.UUID(required=True)

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_strings(data, "content")


class AnswerUpdateSchema(Schema):
    content = fields.String(
        required=True,
        validate=validate.Length(min=10, max=10000, error="El contenido debe tener entre 10 y 10000 caracteres"),
    )

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_strings(data, "content")


class AnswerPostSchema(Schema):
    id = fields.String()
    title = fields.String()
    status = fields.Enum(PostStatus, by_value=True)
    author_id = fields.String()


class AnswerOutSchema(Schema):
    id = fields.String()
    content = fields.String()
    post_id = fields.String()
    author_id = fields.String()
    likes_count = fields.Integer()
    author = fields.Nested(AuthorOutSchema, allow_none=True)
    post = fields.Nested(AnswerPostSchema, allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    deleted_at = fields.DateTime(allow_none=True)
