from marshmallow import Schema, fields, pre_load, validate

from models.schemas.common import NAME_PATTERN, PASSWORD_PATTERN, normalize_email
from models.user import Role, UserStatus

_name_rules = [
    validate.Length(min=2, max=50, error="Debe tener entre 2 y 50 caracteres"),
    validate.Regexp(NAME_PATTERN, error="Solo puede contener letras y espacios"),
]
_password_rules = [
    validate.Length(min=8, max=100, error="La contraseña debe tener entre 8 y 100 caracteres"),
    validate.Regexp(
        PASSWORD_PATTERN,
        error="La contraseña debe contener al menos una mayúscula, una minúscula y un número",
    ),
]


class _EmailNormalizingSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and data.get("email") is not None:
            data = dict(data, email=normalize_email(data["email"]))
        return data


class UserCreateSchema(_EmailNormalizingSchema):
    first_name = fields.String(allow_none=True, validate=_name_rules)
    last_name = fields.String(allow_none=True, validate=_name_rules)
    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=_password_rules)
    role = fields.Enum(Role, by_value=True)
    status = fields.Enum(UserStatus, by_value=True)


class UserUpdateSchema(_EmailNormalizingSchema):
    first_name = fields.String(allow_none=True, validate=_name_rules)
    last_name = fields.String(allow_none=True, validate=_name_rules)
    email = fields.Email(validate=validate.Length(max=100))
    password = fields.String(load_only=True, validate=_password_rules)
    role = fields.Enum(Role, by_value=True)
    status = fields.Enum(UserStatus, by_value=True)


class PasswordChangeSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True, validate=_password_rules)


class UserOutSchema(Schema):
    id = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    email = fields.String()
    role = fields.Enum(Role, by_value=True)
    status = fields.Enum(UserStatus, by_value=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    deleted_at = fields.DateTime(allow_none=True)


class AuthorOutSchema(Schema):
    """Public projection of a user embedded in posts and answers."""
    id = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    email = fields.String()
