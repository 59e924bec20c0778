"""
schemas/company.py
------------------
Pydantic models for company registration, login, and responses.

Inbound models accept snake_case, camelCase and the field names used by the
Portuguese HTML forms (nome, cnpj, box, email, senha), so the same pages keep
working.

Security note:
  - password_hash is NEVER included in any response schema.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CompanyRegister(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("name", "nome"),
        examples=["Hortifruti Silva Ltda"],
    )
    registration_number: str = Field(
        ...,
        min_length=1,
        max_length=32,
        validation_alias=AliasChoices(
            "registration_number", "registrationNumber", "cnpj"
        ),
        description="Business registration number; also the storage namespace",
    )
    location: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("location", "box"),
    )
    login_id: str = Field(
        ...,
        min_length=1,
        max_length=320,
        validation_alias=AliasChoices("login_id", "loginId", "email", "username"),
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=72,
        validation_alias=AliasChoices("password", "senha"),
    )

    @field_validator("name", "login_id", "location", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    @field_validator("registration_number")
    @classmethod
    def check_registration_number(cls, v: str) -> str:
        v = v.strip()
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("registration number cannot be used as a storage prefix")
        return v


class LoginRequest(BaseModel):
    """Login by login id or, in the CNPJ-login variant, by registration number."""

    login_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("login_id", "loginId", "email", "username"),
    )
    registration_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "registration_number", "registrationNumber", "cnpj"
        ),
    )
    password: str = Field(..., validation_alias=AliasChoices("password", "senha"))

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.login_id or self.registration_number):
            raise ValueError("loginId or registrationNumber is required")
        return self


class CompanyRead(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: int
    name: str
    registration_number: str
    location: Optional[str] = None
    login_id: str


class IdentityRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_admin: bool
    company: Optional[CompanyRead] = None


class DeleteResult(BaseModel):
    message: str
    warning: Optional[str] = None
