from master_editor.prompt import (
    SYSTEM_INSTRUCTION,
    CHAPTER_PROMPT,
    CHARACTERS_SECTION,
    DIALOGUE_SECTION,
)
from master_editor.model import AspectRatio, ChapterRequest
from master_editor.model_manager import ModelManager
from master_editor.config_loader import BaseConfig, ImageConfig
from master_editor.log_config import loggers

logger = loggers['agent']


def build_chapter_prompt(request: ChapterRequest) -> str:
    characters_section = ""
    if request.main_characters.strip():
        characters_section = CHARACTERS_SECTION.format(main_characters=request.main_characters)
    dialogue_section = ""
    if request.dialogue_enhancement.strip():
        dialogue_section = DIALOGUE_SECTION.format(dialogue_enhancement=request.dialogue_enhancement)

    return CHAPTER_PROMPT.format(
        book_title=request.book_title,
        genre=request.genre,
        chapter_name=request.chapter_name,
        writing_style=request.writing_style,
        plot_summary=request.plot_summary,
        length_constraint=request.length_constraint,
        characters_section=characters_section,
        dialogue_section=dialogue_section,
        visual_subject=request.visual_subject,
        image_art_style=request.image_art_style,
        image_aspect_ratio=request.image_aspect_ratio.value,
    )


# Writer agent - chapter text, editor analysis and the illustration prompt
class ChapterWriterAgent:
    def __init__(self, model_manager: ModelManager, config: BaseConfig):
        self.model_manager = model_manager
        self.config = config

    async def write_chapter(self, request: ChapterRequest) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_INSTRUCTION},
            {"role": "user", "content": build_chapter_prompt(request)}
        ]
        logger.info(f"Writing chapter '{request.chapter_name}' with {self.config.model_name}")
        response = await self.model_manager.generate(messages, self.config)
        logger.debug(f"Writer reply ({len(response)} chars)")
        return response


# Illustrator agent - renders the prompt produced by the writer
class IllustratorAgent:
    def __init__(self, model_manager: ModelManager, config: ImageConfig):
        self.model_manager = model_manager
        self.config = config

    async def illustrate(self, image_prompt: str, aspect_ratio: AspectRatio) -> str:
        logger.info(f"Generating {AspectRatio(aspect_ratio).value} illustration with {self.config.model_name}")
        return await self.model_manager.generate_image(image_prompt, aspect_ratio, self.config)
