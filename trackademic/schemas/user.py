from typing import Optional

from pydantic import BaseModel


class CurrentUser(BaseModel):
    id: str
    role: Optional[str] = None  # "student", "parent" или "instructor"
    full_name: Optional[str] = None
    email: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    full_name: Optional[str] = None
    role: Optional[str] = None
