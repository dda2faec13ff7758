"""
Generation cycle graph: chapter text first, then its illustration
"""
from typing import TYPE_CHECKING

from langgraph.graph import StateGraph, END

from master_editor.agent import ChapterWriterAgent, IllustratorAgent
from master_editor.node import (
    write_chapter_node,
    validate_chapter_node,
    check_chapter_node,
    illustrate_node,
    check_image_node,
    commit_node,
    failure_node,
)
from master_editor.state import ChapterState
from master_editor.storage import HistoryStore
from master_editor.log_config import loggers

if TYPE_CHECKING:
    from master_editor.orchestrator import GenerationOrchestrator

logger = loggers['workflow']


def create_workflow(writer_agent: ChapterWriterAgent,
                    illustrator_agent: IllustratorAgent,
                    history_store: HistoryStore,
                    reporter: "GenerationOrchestrator"):
    """Compile the write -> validate -> illustrate -> commit graph."""
    workflow = StateGraph(ChapterState)

    # -------------------- nodes --------------------
    async def write_chapter(state: ChapterState):
        return await write_chapter_node(state, writer_agent)

    async def validate_chapter(state: ChapterState):
        return await validate_chapter_node(state, reporter)

    async def illustrate(state: ChapterState):
        return await illustrate_node(state, illustrator_agent, reporter)

    async def commit(state: ChapterState):
        return await commit_node(state, history_store, reporter)

    async def failure(state: ChapterState):
        return await failure_node(state, reporter)

    workflow.add_node("write_chapter", write_chapter)
    workflow.add_node("validate_chapter", validate_chapter)
    workflow.add_node("illustrate", illustrate)
    workflow.add_node("commit", commit)
    workflow.add_node("failure", failure)

    # -------------------- edges --------------------
    workflow.set_entry_point("write_chapter")
    workflow.add_edge("write_chapter", "validate_chapter")
    workflow.add_conditional_edges(
        "validate_chapter",
        check_chapter_node,
        {
            "success": "illustrate",
            "failure": "failure"
        }
    )
    workflow.add_conditional_edges(
        "illustrate",
        check_image_node,
        {
            "success": "commit",
            "failure": "failure"
        }
    )
    workflow.add_edge("commit", END)
    workflow.add_edge("failure", END)

    logger.info("Generation graph built, compiling")
    return workflow.compile()
