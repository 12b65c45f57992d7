from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    # Plain str: a malformed email should get the same answer as a wrong password
    email: str
    password: str


class SignupResponse(BaseModel):
    message: str
    user_id: int


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class IdentityResponse(BaseModel):
    user_id: int
    email: str
