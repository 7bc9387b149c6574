"""
SnipBin Backend — Request Variants
===================================

What:  The request bodies the service accepts, as a tagged union.
How:   Every variant carries a literal `kind` tag. `RequestBody` is the
       discriminated union of all variants; the field validator dispatches on
       `kind` through one table (see `snipbin.services.validation`).

Variants:
    create  → CreateRequest(content)
    signin  → SigninRequest(username, password)
    signup  → SignupRequest(username, password)

These models carry no field constraints of their own: decoding never fails
on a short password or empty content. Rules live in the validator so that
all violations are reported together, after decoding.
"""

from dataclasses import dataclass
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class CreateRequest(BaseModel):
    """A request to store a new document."""
    kind: Literal["create"] = "create"
    content: str = ""


class SigninRequest(BaseModel):
    """A request to authenticate an account."""
    kind: Literal["signin"] = "signin"
    username: str = ""
    password: str = ""


class SignupRequest(BaseModel):
    """A request to register an account."""
    kind: Literal["signup"] = "signup"
    username: str = ""
    password: str = ""


RequestBody = Annotated[
    Union[CreateRequest, SigninRequest, SignupRequest],
    Field(discriminator="kind"),
]


@dataclass(frozen=True)
class Token:
    """Opaque authentication credential record."""
    version: str
    public: str
    secret: str
    salt: str
