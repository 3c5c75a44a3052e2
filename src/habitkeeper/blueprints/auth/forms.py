"""Signup and login payload validation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...services.auth import PASSWORD_MIN, USERNAME_MAX, USERNAME_MIN


class LoginForm(BaseModel):
    """Credentials submitted to ``/login``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = ""
    password: str = ""

    @model_validator(mode="after")
    def require_credentials(self) -> "LoginForm":
        if not self.username or not self.password:
            raise ValueError("Username and password are required")
        return self


class SignupForm(BaseModel):
    """Payload for creating an account."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = ""
    password: str = ""
    confirm_password: str = Field(default="", alias="confirmPassword")

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def check_rules(self) -> "SignupForm":
        """Apply the signup rules in the order users see them."""

        if not self.username or not self.password or not self.confirm_password:
            raise ValueError("Username, password, and confirmPassword are required")
        if len(self.username) < USERNAME_MIN:
            raise ValueError(f"Username must be at least {USERNAME_MIN} characters long")
        if len(self.username) > USERNAME_MAX:
            raise ValueError(f"Username must be less than {USERNAME_MAX} characters")
        if len(self.password) < PASSWORD_MIN:
            raise ValueError(f"Password must be at least {PASSWORD_MIN} characters long")
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


__all__ = ["LoginForm", "SignupForm"]
