from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional


class RegistrationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    full_name: str = Field(alias="fullName", min_length=1)
    email: Optional[EmailStr] = None
    distance: str
