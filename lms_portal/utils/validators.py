from flask import request
from ..errors import ValidationError
from .dates import parse_datetime
import re

def validate_username(username):
    """Validate username format and requirements"""
    if not username or len(username) < 2 or len(username) > 30:
        return "Username must be between 2 and 30 characters long."
    if not re.match(r'^[\w.-]+$', username):
        return "Username can only contain letters, numbers, dots, hyphens and underscores."
    return None

def validate_email(email):
    """Validate email format"""
    if not email or not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', email):
        return "Please enter a valid email address."
    return None

def validate_password(password, min_length):
    """Validate password requirements"""
    if not password or len(password) < min_length:
        return f"Password must be at least {min_length} characters long."
    return None

def validate_choice(value, choices, field):
    if value not in choices:
        return f"{field} must be one of: {', '.join(choices)}."
    return None

def check(*messages):
    """Raise the first non-empty validation message"""
    for message in messages:
        if message:
            raise ValidationError(message)

def get_json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data

def require_fields(data, *fields):
    missing = [field for field in fields if data.get(field) in (None, '')]
    if missing:
        raise ValidationError(f"Please provide all required fields: {', '.join(missing)}")

def get_int(data, field, required=True):
    """Read an integer field, accepting numeric strings the way form posts send them"""
    value = data.get(field)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} is required')
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r'-?\d+', value.strip()):
        return int(value)
    raise ValidationError(f'{field} must be an integer')

def get_str(data, field, required=True, max_length=None):
    """Read a text field; anything but a JSON string is rejected"""
    value = data.get(field)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} is required')
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    value = value.strip()
    if required and not value:
        raise ValidationError(f'{field} is required')
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f'{field} must be at most {max_length} characters')
    return value

def get_bool(data, field, default=None):
    value = data.get(field)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if value in ('true', 'false'):
        return value == 'true'
    raise ValidationError(f'{field} must be true or false')

def get_datetime(data, field, required=True):
    value = data.get(field)
    if value in (None, ''):
        if required:
            raise ValidationError(f'{field} is required')
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError(f'{field} must be an ISO-8601 date')
    return parsed
