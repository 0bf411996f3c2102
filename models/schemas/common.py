from marshmallow import ValidationError

NAME_PATTERN = r"^[a-zA-ZÀ-ÿ\s]+$"
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)"


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


def strip_strings(data: dict, *keys: str) -> dict:
    """Return a copy of data with the given string fields stripped."""
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for key in keys:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data


def validate_email_domain(email: str, allowed_domains) -> None:
    """Reject addresses outside the institutional allow-list."""
    email = normalize_email(email) or ""
    if not any(email.endswith(f"@{domain.lower()}") for domain in allowed_domains):
        allowed = ", ".join(f"@{d}" for d in allowed_domains)
        raise ValidationError(f"Solo se permiten correos con {allowed}")
