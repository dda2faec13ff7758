import json
from typing import TYPE_CHECKING, Literal

import pydantic

from master_editor.agent import ChapterWriterAgent, IllustratorAgent
from master_editor.errors import GenerationError
from master_editor.log_config import loggers
from master_editor.model import AppStatus, ChapterResponse, GenerationResult, HistoryItem
from master_editor.state import ChapterState
from master_editor.storage import HistoryStore
from master_editor.tool import extract_json

if TYPE_CHECKING:
    from master_editor.orchestrator import GenerationOrchestrator

logger = loggers['node']


# -------------------- text -------------------- [write -> validate -> check]
async def write_chapter_node(state: ChapterState, writer_agent: ChapterWriterAgent) -> dict:
    logger.info(f"Writing chapter '{state.request.chapter_name}' of '{state.request.book_title}'")
    try:
        raw_chapter = await writer_agent.write_chapter(state.request)
    except GenerationError as e:
        logger.info(f"[text] provider failed: {e}")
        return {"error": str(e)}
    return {"raw_chapter": raw_chapter}


async def validate_chapter_node(state: ChapterState, reporter: "GenerationOrchestrator") -> dict:
    if state.error:
        return {"error": state.error}
    try:
        data = json.loads(extract_json(state.raw_chapter) or "")
        text_data = ChapterResponse.model_validate(data)
    except json.JSONDecodeError as e:
        logger.info(f"[text] reply is not JSON: {e}")
        return {"error": f"The chapter reply was not valid JSON: {e}"}
    except pydantic.ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        logger.info(f"[text] reply rejected, bad fields: {fields}")
        return {"error": f"The chapter reply is missing required fields: {', '.join(fields) or 'all'}"}

    logger.info(f"[text] chapter '{text_data.title}' accepted")
    # the text is visible before the image phase starts
    reporter.publish_text(text_data)
    return {"text_data": text_data}


def check_chapter_node(state: ChapterState) -> Literal["success", "failure"]:
    if state.error is None and state.text_data is not None:
        logger.info("[text] success: moving to illustrate")
        return "success"
    logger.info("[text] failure: moving to failure")
    return "failure"


# -------------------- image -------------------- [illustrate -> check]
async def illustrate_node(state: ChapterState, illustrator_agent: IllustratorAgent,
                          reporter: "GenerationOrchestrator") -> dict:
    reporter.advance(AppStatus.GENERATING_IMAGE)
    try:
        image_url = await illustrator_agent.illustrate(
            state.text_data.image_prompt,
            state.request.image_aspect_ratio
        )
    except GenerationError as e:
        logger.info(f"[image] provider failed: {e}")
        return {"error": str(e)}
    return {"image_url": image_url}


def check_image_node(state: ChapterState) -> Literal["success", "failure"]:
    if state.error is None and state.image_url:
        logger.info("[image] success: moving to commit")
        return "success"
    logger.info("[image] failure: moving to failure")
    return "failure"


# -------------------- outcome --------------------
async def commit_node(state: ChapterState, history_store: HistoryStore,
                      reporter: "GenerationOrchestrator") -> dict:
    result = GenerationResult(text_data=state.text_data, image_url=state.image_url)
    item = HistoryItem.create(state.request, result)
    history_store.add(item)
    reporter.complete(result)
    return {"history_id": item.id}


async def failure_node(state: ChapterState, reporter: "GenerationOrchestrator") -> dict:
    reporter.fail(state.error or "Unknown error during generation.")
    return {"error": state.error}
