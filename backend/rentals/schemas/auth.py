# rentals/schemas/auth.py
from typing import Optional
from pydantic import BaseModel

from rentals.schemas.user import UserOut


class Token(BaseModel):
    message: Optional[str] = None
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[UserOut] = None

    model_config = {"from_attributes": True}


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None
    refresh: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self.refresh_token or self.refresh
