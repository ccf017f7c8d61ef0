"""
Shared helpers: email validation, text sanitizing, integer coercion and
client address resolution.
"""

import math
import re

from flask import request, has_request_context

# Email validation regex: rejects consecutive dots, leading/trailing dots
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

_TAG_RE = re.compile(r'<[^>]*>')
_OCTET_RE = re.compile(r'%[a-fA-F0-9]{2}')
_WHITESPACE_RE = re.compile(r'[\r\n\t ]+')
_EMAIL_INVALID_CHARS = re.compile(r'[^a-zA-Z0-9!#$%&\'*+/=?^_`{|}~.@-]')

DEFAULT_IP = '127.0.0.1'


def is_email(value):
    """Validate email format"""
    if not isinstance(value, str):
        return False
    value = value.strip()
    if not value or len(value) > 255:
        return False
    return EMAIL_REGEX.match(value) is not None


def sanitize_email(value):
    """Strip characters not allowed in an address; '' if what remains is invalid"""
    if value is None:
        return ''
    cleaned = _EMAIL_INVALID_CHARS.sub('', str(value).strip())
    return cleaned if is_email(cleaned) else ''


def sanitize_text_field(value):
    """
    Sanitize a single-line string: strip tags and percent-encoded octets,
    collapse line breaks, tabs and runs of spaces, trim.
    """
    if value is None:
        return ''
    text = str(value)
    text = _TAG_RE.sub('', text)
    text = _OCTET_RE.sub('', text)
    text = _WHITESPACE_RE.sub(' ', text)
    return text.strip()


def is_numeric(value):
    """True for ints, finite floats and strings that parse as a number (not bools)"""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value.strip()))
        except ValueError:
            return False
    return False


def intval(value):
    """Integer value of a number or numeric string, 0 for anything else"""
    if not is_numeric(value):
        return 0
    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value)
        except ValueError:
            return int(float(value))
    return int(value)


def absint(value):
    return abs(intval(value))


def get_client_ip():
    """Get client IP address from the current request, DEFAULT_IP outside one"""
    if not has_request_context():
        return DEFAULT_IP
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    else:
        return request.remote_addr or DEFAULT_IP
