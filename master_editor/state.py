"""
State carried through one generation cycle
"""

from typing import Optional
from pydantic import BaseModel

from master_editor.model import ChapterRequest, ChapterResponse


class ChapterState(BaseModel):
    request: ChapterRequest

    # text phase
    raw_chapter: Optional[str] = None
    text_data: Optional[ChapterResponse] = None

    # image phase
    image_url: Optional[str] = None

    # outcome
    history_id: Optional[str] = None
    error: Optional[str] = None
