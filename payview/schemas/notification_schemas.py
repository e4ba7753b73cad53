from pydantic import BaseModel, ConfigDict, Field


class PurchaseNotificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: int = Field(alias="fileId")
    buyer_id: str = Field(alias="buyerId", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)
