"""
Generation orchestrator: runs one text-then-image cycle at a time and reports its status.

Listeners registered with `subscribe` receive a StatusUpdate on every change:
status transitions, the text-only partial result and the final result.
"""
import asyncio
from typing import Callable, List, Optional

from master_editor.agent import ChapterWriterAgent, IllustratorAgent
from master_editor.config_loader import BaseConfig, ImageConfig, ModelConfig, WriterConfig, IllustratorConfig
from master_editor.errors import GenerationInProgressError, StatusTransitionError, ValidationError
from master_editor.log_config import loggers
from master_editor.model import (
    AppStatus,
    ChapterRequest,
    ChapterResponse,
    GenerationResult,
    HistoryItem,
    StatusUpdate,
)
from master_editor.model_manager import APIModelManager
from master_editor.storage import HistoryStore
from master_editor.workflow import create_workflow

logger = loggers['orchestrator']

Listener = Callable[[StatusUpdate], None]


class GenerationOrchestrator:
    def __init__(self, writer_agent: ChapterWriterAgent, illustrator_agent: IllustratorAgent,
                 history_store: HistoryStore):
        self.history_store = history_store
        self.status = AppStatus.IDLE
        self.result = GenerationResult()
        self.error: Optional[str] = None
        self._listeners: List[Listener] = []
        self._running = False
        self.workflow = create_workflow(writer_agent, illustrator_agent, history_store, self)

    @property
    def busy(self) -> bool:
        return self._running

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        update = StatusUpdate(status=self.status, result=self.result, error=self.error)
        for listener in list(self._listeners):
            listener(update)

    def _move(self, status: AppStatus, result: Optional[GenerationResult] = None, error: Optional[str] = None):
        if not self.status.can_transition_to(status):
            raise StatusTransitionError(f"Illegal status change {self.status.value} -> {status.value}")
        logger.info(f"Status {self.status.value} -> {status.value}")
        self.status = status
        if result is not None:
            self.result = result
        self.error = error
        self._notify()

    # -------------------- called by the workflow nodes --------------------
    def publish_text(self, text_data: ChapterResponse):
        self.result = GenerationResult(text_data=text_data)
        self._notify()

    def advance(self, status: AppStatus):
        self._move(status)

    def complete(self, result: GenerationResult):
        self._move(AppStatus.COMPLETED, result)

    def fail(self, error: str):
        # whatever text already arrived stays in self.result
        logger.info(f"Generation failed: {error}")
        self._move(AppStatus.FAILED, error=error)

    # -------------------- public operations --------------------
    async def submit(self, request: ChapterRequest) -> GenerationResult:
        """Run one full generation cycle and return its (possibly partial) result."""
        if self._running:
            logger.warning("Submit rejected: a generation cycle is already running")
            raise GenerationInProgressError("A chapter is already being generated.")
        missing = request.missing_fields()
        if missing:
            logger.info(f"Submit rejected, missing fields: {missing}")
            raise ValidationError(missing)

        self._running = True
        try:
            self._move(AppStatus.WRITING_TEXT, GenerationResult())
            await self.workflow.ainvoke({"request": request})
        except asyncio.CancelledError:
            logger.warning("Generation cycle cancelled")
            if self.status.is_active:
                self.fail("Generation was cancelled.")
            raise
        except Exception as e:
            logger.exception(f"Generation cycle aborted: {e}")
            if self.status.is_active:
                self.fail(f"Unexpected error during generation: {e}")
            raise
        finally:
            self._running = False
        return self.result

    def show(self, item: HistoryItem) -> GenerationResult:
        """Display a stored chapter as the current result."""
        if self._running:
            raise GenerationInProgressError("Cannot open a saved chapter while generating.")
        self._move(AppStatus.COMPLETED, item.result)
        return self.result

    def rename(self, title: str) -> GenerationResult:
        """Replace the current chapter title; stored history entries are untouched.

        A blank title is ignored and the current one kept.
        """
        if self._running:
            raise GenerationInProgressError("Cannot edit the title while generating.")
        if not self.result.has_text or not title.strip():
            return self.result
        self.result = GenerationResult(
            text_data=self.result.text_data.with_title(title),
            image_url=self.result.image_url,
        )
        self._notify()
        return self.result


def create_orchestrator(model_config: ModelConfig, history_store: HistoryStore,
                        writer_config: BaseConfig = WriterConfig,
                        illustrator_config: ImageConfig = IllustratorConfig) -> GenerationOrchestrator:
    model_manager = APIModelManager(
        model_config.api_url,
        model_config.api_key,
        timeout=model_config.timeout
    )
    logger.info(f"Provider ready (text: {writer_config.model_name}, image: {illustrator_config.model_name})")
    return GenerationOrchestrator(
        ChapterWriterAgent(model_manager, writer_config),
        IllustratorAgent(model_manager, illustrator_config),
        history_store,
    )
