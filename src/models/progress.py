"""Progress record data model."""

from pydantic import BaseModel, Field


class ProgressRecord(BaseModel):
    """Resume point of a translation job: the next chapter to process."""

    document_name: str
    next_chapter_index: int = Field(default=0, ge=0)
