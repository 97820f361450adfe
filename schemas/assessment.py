from typing import Optional

from pydantic import BaseModel, Field

from schemas.lookup import RatingInfo


class AssessmentFileInfo(BaseModel):
    file_name: str = Field(..., alias="fileName")
    uploaded: int

    model_config = {"populate_by_name": True}


class AssessmentSummary(BaseModel):
    reference: str
    updated: int
    status: int
    rating: int = 0


class AssessmentInfo(BaseModel):
    """Full assessment view. Reference and upload URL are present only when requested/open."""

    reference: Optional[str] = None
    registered: int
    updated: int
    status: int
    rating: int = 0
    upload_url: Optional[str] = Field(None, alias="uploadUrl")
    rating_info: Optional[RatingInfo] = Field(None, alias="ratingInfo")
    files: list[AssessmentFileInfo] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
