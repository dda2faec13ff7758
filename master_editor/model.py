import itertools
import secrets
import time
from enum import Enum
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AspectRatio(str, Enum):
    WIDESCREEN = "16:9"
    PORTRAIT = "3:4"
    SQUARE = "1:1"
    MOBILE = "9:16"


# Options offered by the request form
WRITING_STYLES = [
    "Standard (Balanced)",
    "Poetic and Lyrical",
    "Direct and Hardboiled (Noir)",
    "Dark and Melancholic",
    "Technical and Detailed (Hard Sci-Fi)",
    "Humorous and Satirical",
    "Gothic and Atmospheric",
    "Introspective and Psychological",
]

LENGTH_OPTIONS = [
    "Short and Punchy (800 words)",
    "Standard (1500 words)",
    "Epic and Dense (2500+ words)",
    "Magnum Opus (4000+ words)",
]

ART_STYLES = [
    "Cinematic (Default)",
    "Digital Oil Painting",
    "Watercolor and Ink",
    "Fantasy Art Illustration",
    "Cyberpunk / Neon",
    "Noir / Black and White",
    "Surrealist",
    "Sketch",
    "Photorealistic",
    "Pixel Art",
]


# A single chapter generation ask, as filled in on the form
class ChapterRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    book_title: str = ""
    genre: str = ""
    chapter_name: str = ""
    plot_summary: str = ""
    main_characters: str = ""          # optional roster kept consistent across the chapter
    dialogue_enhancement: str = ""     # optional dialogue style guidance
    length_constraint: str = "About 1500 words, dense and detailed."
    writing_style: str = WRITING_STYLES[0]
    image_aspect_ratio: AspectRatio = AspectRatio.WIDESCREEN
    image_art_style: str = ART_STYLES[0]
    image_custom_topic: str = ""       # optional override of the illustration subject

    REQUIRED_FIELDS: ClassVar[tuple] = (
        "book_title",
        "genre",
        "chapter_name",
        "plot_summary",
        "length_constraint",
        "writing_style",
        "image_art_style",
    )

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name).strip()]

    @property
    def visual_subject(self) -> str:
        """Custom visual topic when given, otherwise the chapter name."""
        if self.image_custom_topic.strip():
            return self.image_custom_topic
        return self.chapter_name


DEFAULT_REQUEST = ChapterRequest()


# Outcome of the text generation phase
class ChapterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)            # chapter body in markdown
    editor_analysis: str = Field(min_length=1)
    image_prompt: str = Field(min_length=1)

    @field_validator("title", "content", "editor_analysis", "image_prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def with_title(self, title: str) -> "ChapterResponse":
        return self.model_validate({**self.model_dump(), "title": title})


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text_data: Optional[ChapterResponse] = None
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def _image_requires_text(self) -> "GenerationResult":
        if self.image_url is not None and self.text_data is None:
            raise ValueError("an image cannot exist without chapter text")
        return self

    @property
    def has_text(self) -> bool:
        return self.text_data is not None

    @property
    def is_complete(self) -> bool:
        return self.text_data is not None and self.image_url is not None


_sequence = itertools.count(1)


def new_history_id() -> str:
    """Epoch milliseconds, a session counter and a random suffix."""
    return f"{int(time.time() * 1000)}-{next(_sequence)}-{secrets.token_hex(3)}"


class HistoryItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int           # epoch milliseconds
    request: ChapterRequest
    result: GenerationResult

    @classmethod
    def create(cls, request: ChapterRequest, result: GenerationResult) -> "HistoryItem":
        if not result.is_complete:
            raise ValueError("only complete generation results can be recorded")
        return cls(
            id=new_history_id(),
            timestamp=int(time.time() * 1000),
            request=request,
            result=result,
        )


class AppStatus(str, Enum):
    IDLE = "IDLE"
    WRITING_TEXT = "WRITING_TEXT"
    GENERATING_IMAGE = "GENERATING_IMAGE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_active(self) -> bool:
        return self in (AppStatus.WRITING_TEXT, AppStatus.GENERATING_IMAGE)

    def can_transition_to(self, target: "AppStatus") -> bool:
        return target in _TRANSITIONS[self]


# COMPLETED is also entered from a resting state when a history item is shown
_TRANSITIONS = {
    AppStatus.IDLE: {AppStatus.WRITING_TEXT, AppStatus.COMPLETED},
    AppStatus.WRITING_TEXT: {AppStatus.GENERATING_IMAGE, AppStatus.FAILED},
    AppStatus.GENERATING_IMAGE: {AppStatus.COMPLETED, AppStatus.FAILED},
    AppStatus.COMPLETED: {AppStatus.WRITING_TEXT, AppStatus.COMPLETED},
    AppStatus.FAILED: {AppStatus.WRITING_TEXT, AppStatus.COMPLETED},
}


class StatusUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: AppStatus
    result: GenerationResult
    error: Optional[str] = None
