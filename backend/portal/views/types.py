"""Request bodies accepted by the portal JSON API."""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    full_name: str
    email: str
    is_student: bool


class SignInRequest(BaseModel):
    email: str


class VerifyCodeRequest(BaseModel):
    account_id: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=16)


class AddFileRequest(BaseModel):
    name: str
    size: int = Field(ge=0)
    url: str = ""


class RenameFileRequest(BaseModel):
    name: str


class UnlockAdminRequest(BaseModel):
    passkey: str


class DashboardAccessRequest(BaseModel):
    granted: bool


class FileAccessKeywordRequest(BaseModel):
    keyword: str = ""
