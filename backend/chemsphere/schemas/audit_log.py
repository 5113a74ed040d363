from datetime import datetime

from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: str
    type: str
    action: str
    user_id: str | None
    user_name: str
    user_role: str
    item_name: str | None
    details: dict | None
    timestamp: datetime

    model_config = {"from_attributes": True}
