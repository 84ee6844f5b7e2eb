"""
User and Authentication Pydantic Schemas

Schemas:
- SignupRequest: Registration data (username, email, password)
- LoginRequest: Credentials for login
- SignupResponse / TokenResponse: Response payloads
- TokenIdentity: The verified identity carried by an identity token

Required-field checks run in model validators so a request missing any
field gets one message naming all of them, as the API has always reported.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class SignupRequest(BaseModel):
    """
    Schema for user registration.

    Example request body:
    {
        "username": "johndoe",
        "email": "john@example.com",
        "password": "SecurePass123"
    }
    """

    username: str | None = Field(
        default=None,
        max_length=50,
        description="Unique username (used for login)",
        examples=["johndoe"],
    )

    email: EmailStr | None = Field(
        default=None,
        description="User's email address",
        examples=["john@example.com"],
    )

    # bcrypt only looks at the first 72 bytes
    password: str | None = Field(
        default=None,
        max_length=72,
        description="Password (stored only as a bcrypt hash)",
        examples=["SecurePass123"],
    )

    @model_validator(mode="after")
    def require_all_fields(self) -> "SignupRequest":
        if not (self.username and self.email and self.password):
            raise ValueError("Please provide username, email and password")
        return self


class LoginRequest(BaseModel):
    """
    Schema for login requests.

    Example request body:
    {
        "username": "johndoe",
        "password": "SecurePass123"
    }
    """

    username: str | None = Field(default=None, description="Username")
    password: str | None = Field(default=None, description="Password")

    @model_validator(mode="after")
    def require_credentials(self) -> "LoginRequest":
        if not (self.username and self.password):
            raise ValueError("Please provide username and password")
        return self


class SignupResponse(BaseModel):
    """Returned after a successful registration."""

    message: str = Field(default="User created successfully")
    user_id: int = Field(..., serialization_alias="userId", description="New user's ID")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"message": "User created successfully", "userId": 1}
        },
    )


class TokenResponse(BaseModel):
    """
    Returned after a successful login.

    Send the token back as: Authorization: Bearer <token>
    """

    token: str = Field(..., description="Signed identity token (valid 24 hours)")


class TokenIdentity(BaseModel):
    """Verified identity decoded from an identity token."""

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")

    model_config = ConfigDict(frozen=True)
