"""
SnipBin Backend — Request Field Validation
===========================================

What:  Field rules for every request variant, reported all at once.
How:   One validator function per variant, registered in `_VALIDATORS`
       under the variant's `kind` tag. `validate_body()` is the only dispatch
       point; it raises ValidationFailedError listing every violated field.

Rules:
    create  content   required, length 2..max_size
    signin  username  required
            password  required, length 16..128
    signup  (same as signin)

Length rules only apply to non-empty values: an empty field is reported as
"cannot be blank" and nothing else.
"""

from typing import Callable, Dict, Optional

from snipbin.exceptions import ValidationFailedError
from snipbin.schemas.requests import (
    CreateRequest,
    RequestBody,
    SigninRequest,
    SignupRequest,
)

PASSWORD_MIN_LENGTH = 16
PASSWORD_MAX_LENGTH = 128
CONTENT_MIN_LENGTH = 2

Errors = Dict[str, str]


def _required(value: str) -> Optional[str]:
    if not value:
        return "cannot be blank"
    return None


def _length(value: str, low: int, high: int) -> Optional[str]:
    if value and not low <= len(value) <= high:
        return f"the length must be between {low} and {high}"
    return None


def _check(errors: Errors, field: str, value: str, *rules: Callable[[str], Optional[str]]) -> None:
    """Apply rules in order and record the first violation for `field`."""
    for rule in rules:
        message = rule(value)
        if message:
            errors[field] = message
            return


def validate_create(body: CreateRequest, max_size: int) -> Errors:
    errors: Errors = {}
    _check(
        errors, "content", body.content,
        _required,
        lambda v: _length(v, CONTENT_MIN_LENGTH, max_size),
    )
    return errors


def _validate_credentials(body: SigninRequest | SignupRequest, max_size: int) -> Errors:
    errors: Errors = {}
    _check(errors, "username", body.username, _required)
    _check(
        errors, "password", body.password,
        _required,
        lambda v: _length(v, PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH),
    )
    return errors


def validate_signin(body: SigninRequest, max_size: int) -> Errors:
    return _validate_credentials(body, max_size)


def validate_signup(body: SignupRequest, max_size: int) -> Errors:
    return _validate_credentials(body, max_size)


_VALIDATORS: Dict[str, Callable[[RequestBody, int], Errors]] = {
    "create": validate_create,
    "signin": validate_signin,
    "signup": validate_signup,
}


def validate_body(body: RequestBody, max_size: int) -> None:
    """
    Validate any request variant.

    Raises:
        ValidationFailedError: one or more fields violate their rules, or the
            body is not a known request variant
    """
    validator = _VALIDATORS.get(getattr(body, "kind", None))
    if validator is None:
        raise ValidationFailedError({"body": "unsupported request type"})

    errors = validator(body, max_size)
    if errors:
        raise ValidationFailedError(errors)
