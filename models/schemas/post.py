from marshmallow import Schema, fields, pre_load, validate

from models.post import PostStatus
from models.schemas.common import strip_strings
from models.schemas.user import AuthorOutSchema

_title_rules = validate.Length(min=10, max=255, error="El título debe tener entre 10 y 255 caracteres")
_description_rules = validate.Length(min=1, error="La descripción es requerida")


class PostCreateSchema(Schema):
    title = fields.String(required=True, validate=_title_rules)
    description = fields.String(required=True, validate=_description_rules)

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_strings(data, "title")


class PostUpdateSchema(Schema):
    # All optional, but validate if present
    title = fields.String(validate=_title_rules)
    description = fields.String(validate=_description_rules)
    status = fields.Enum(PostStatus, by_value=True)

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_strings(data, "title")


class PostOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    description = fields.String()
    views = fields.Integer()
    likes_count = fields.Integer()
    answers_count = fields.Integer()
    is_solved = fields.Boolean()
    status = fields.Enum(PostStatus, by_value=True)
    author_id = fields.String()
    author = fields.Nested(AuthorOutSchema, allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    deleted_at = fields.DateTime(allow_none=True)
