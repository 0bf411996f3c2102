from marshmallow import Schema, fields, pre_load, validates, validate

from models.schemas.common import NAME_PATTERN, normalize_email, validate_email_domain


class LoginSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1, max=255))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=normalize_email(data["email"]))
        return data


class RegisterSchema(LoginSchema):
    """Login fields plus optional names; the email must be institutional."""

    first_name = fields.String(
        allow_none=True,
        validate=[validate.Length(min=2, max=50), validate.Regexp(NAME_PATTERN)],
    )
    last_name = fields.String(
        allow_none=True,
        validate=[validate.Length(min=2, max=50), validate.Regexp(NAME_PATTERN)],
    )

    def __init__(self, *, allowed_domains=(), **kwargs):
        super().__init__(**kwargs)
        self.allowed_domains = tuple(allowed_domains)

    @validates("email")
    def validate_domain(self, value, **kwargs):
        if self.allowed_domains:
            validate_email_domain(value, self.allowed_domains)
