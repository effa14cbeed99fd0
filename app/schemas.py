"""
Request bodies for the HTTP surface.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class JoinCollabRequest(BaseModel):
    template_id: str
    mode: Literal["community", "local", "private"] = "community"
    invitees: list[str] = Field(default_factory=list)
    is_private: Optional[bool] = None


class SaveSelectionsRequest(BaseModel):
    creator_ids: list[str] = Field(default_factory=list)
    sponsor_ids: list[str] = Field(default_factory=list)
    collab_ids: list[str] = Field(default_factory=list)
    communications_included: bool = False


class RandomSelectionRequest(BaseModel):
    cap: Optional[int] = Field(None, ge=1)
    category: Literal["communications", "collaborations"] = "communications"


class CommunicationDraft(BaseModel):
    recipient_id: str
    subject: str
    content: str
    image_url: Optional[str] = None


class SelectCommunicationsRequest(BaseModel):
    method: Literal["all", "random", "select"]
    communication_ids: list[str] = Field(default_factory=list)
    cap: Optional[int] = Field(None, ge=1)
