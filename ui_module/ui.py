import asyncio
import os
import tempfile
from datetime import datetime
from typing import Optional

import gradio as gr

from master_editor.config_loader import config, StorageSettings
from master_editor.errors import ExportError, GenerationInProgressError, ValidationError
from master_editor.export import ExportFormat, export, image_artifact, write_artifact
from master_editor.log_config import loggers
from master_editor.model import (
    ART_STYLES,
    LENGTH_OPTIONS,
    WRITING_STYLES,
    AppStatus,
    AspectRatio,
    ChapterRequest,
    GenerationResult,
    StatusUpdate,
)
from master_editor.orchestrator import create_orchestrator
from master_editor.render import render_chapter
from master_editor.storage import open_stores

logger = loggers['ui']

from dotenv import load_dotenv
load_dotenv(override=True)
api_key = os.getenv("API_KEY")
base_url = os.getenv("BASE_URL")

# order of the form inputs passed to every handler
FORM_FIELDS = [
    "book_title",
    "genre",
    "chapter_name",
    "plot_summary",
    "main_characters",
    "writing_style",
    "length_constraint",
    "dialogue_enhancement",
    "image_custom_topic",
    "image_art_style",
    "image_aspect_ratio",
]

STATUS_MESSAGES = {
    AppStatus.IDLE: "Fill in the form to start writing your masterpiece.",
    AppStatus.WRITING_TEXT: "⏳ The Master Editor is writing... building arcs, characters and thematic depth.",
    AppStatus.GENERATING_IMAGE: "🎨 The illustrator is painting the scene...",
    AppStatus.COMPLETED: "✅ Chapter complete.",
    AppStatus.FAILED: "❌ Generation failed",
}


class MasterEditorUI:
    """Gradio front end for the chapter generator"""

    def __init__(self):
        self.history, self.defaults = open_stores(StorageSettings)
        model_config = config.model_config.model_copy(update={
            "api_key": api_key,
            "api_url": base_url,
        })
        self.orchestrator = create_orchestrator(model_config, self.history)
        self.export_dir = tempfile.mkdtemp(prefix="master_editor_")

    def _request_from_form(self, *values) -> ChapterRequest:
        fields = {name: (value or "") for name, value in zip(FORM_FIELDS, values)}
        fields["image_aspect_ratio"] = fields["image_aspect_ratio"] or AspectRatio.WIDESCREEN.value
        return ChapterRequest.model_validate(fields)

    def _history_choices(self):
        choices = []
        for item in self.history.list():
            when = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
            choices.append((f"{item.request.chapter_name} · {item.request.book_title} · {when}", item.id))
        return choices

    def _history_dropdown(self, value: Optional[str] = None):
        return gr.update(choices=self._history_choices(), value=value)

    def _format_status(self, status: AppStatus, error: Optional[str] = None) -> str:
        message = STATUS_MESSAGES[status]
        if error:
            message = f"{message}: {error}"
        if self.history.warning:
            message = f"{message}\n\n⚠️ {self.history.warning}"
        return message

    def _format_result(self, result: GenerationResult):
        """Chapter html, editor analysis, image prompt and editable title."""
        if not result.has_text:
            return "", "", "", ""
        text = result.text_data
        return (
            render_chapter(text.title, text.content, result.image_url),
            f"> {text.editor_analysis}",
            text.image_prompt,
            text.title,
        )

    def _render_update(self, update: StatusUpdate):
        return (self._format_status(update.status, update.error), *self._format_result(update.result))

    async def _generate(self, *form_values):
        """Run a generation cycle, streaming every status change to the page."""
        try:
            request = self._request_from_form(*form_values)
        except ValueError as e:
            yield (f"❌ Invalid form: {e}", gr.update(), gr.update(), gr.update(), gr.update(), gr.update())
            return

        updates: asyncio.Queue = asyncio.Queue()
        unsubscribe = self.orchestrator.subscribe(updates.put_nowait)
        task = asyncio.create_task(self.orchestrator.submit(request))
        try:
            while True:
                getter = asyncio.ensure_future(updates.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield (*self._render_update(getter.result()), gr.update())
                    continue
                getter.cancel()
                break
            while not updates.empty():
                yield (*self._render_update(updates.get_nowait()), gr.update())
            await task
        except ValidationError as e:
            yield (f"❌ Please fill in: {', '.join(e.missing_fields)}",
                   gr.update(), gr.update(), gr.update(), gr.update(), gr.update())
            return
        except GenerationInProgressError as e:
            yield (f"⏳ {e}", gr.update(), gr.update(), gr.update(), gr.update(), gr.update())
            return
        except Exception as e:
            logger.error(f"Generation aborted: {e}")
            yield (self._format_status(AppStatus.FAILED, str(e)),
                   gr.update(), gr.update(), gr.update(), gr.update(), gr.update())
            return
        finally:
            unsubscribe()

        yield (self._format_status(self.orchestrator.status, self.orchestrator.error),
               *self._format_result(self.orchestrator.result),
               self._history_dropdown())

    def _save_defaults(self, *form_values):
        try:
            request = self._request_from_form(*form_values)
        except ValueError as e:
            return f"❌ Invalid form: {e}"
        if self.defaults.save(request):
            return "💾 Defaults saved."
        return "⚠️ Defaults could not be saved."

    def _load_history(self, item_id):
        item = self.history.get(item_id) if item_id else None
        if item is None:
            return (gr.update(), gr.update(), gr.update(), gr.update(), gr.update(),
                    *[gr.update() for _ in FORM_FIELDS])
        try:
            result = self.orchestrator.show(item)
        except GenerationInProgressError as e:
            return (f"⏳ {e}", gr.update(), gr.update(), gr.update(), gr.update(),
                    *[gr.update() for _ in FORM_FIELDS])
        form_values = [getattr(item.request, name) for name in FORM_FIELDS]
        form_values[FORM_FIELDS.index("image_aspect_ratio")] = item.request.image_aspect_ratio.value
        return (self._format_status(AppStatus.COMPLETED), *self._format_result(result), *form_values)

    def _delete_history(self, item_id):
        if item_id:
            self.history.remove(item_id)
        message = "🗑️ Removed from the library." if item_id else "Select a chapter first."
        if self.history.warning:
            message = f"{message}\n\n⚠️ {self.history.warning}"
        return message, self._history_dropdown()

    def _rename(self, title):
        try:
            result = self.orchestrator.rename(title or "")
        except GenerationInProgressError:
            return gr.update()
        return self._format_result(result)[0]

    def _export(self, fmt: ExportFormat):
        result = self.orchestrator.result
        if not result.has_text:
            return None, "Nothing to export yet."
        try:
            artifact = export(fmt, result.text_data.title, result.text_data.content)
            path = write_artifact(artifact, self.export_dir)
        except ExportError as e:
            return None, f"❌ {e}"
        if fmt == ExportFormat.PRINT:
            return str(path), "🖨️ Open the downloaded page to print or save as PDF."
        return str(path), f"📥 {artifact.filename} ready."

    def _export_image(self):
        result = self.orchestrator.result
        if not result.is_complete:
            return None, "No illustration yet."
        try:
            path = write_artifact(image_artifact(result.text_data.title, result.image_url), self.export_dir)
        except ExportError as e:
            return None, f"❌ {e}"
        return str(path), "🖼️ Illustration ready."

    def create_interface(self):
        defaults = self.defaults.load()

        with gr.Blocks(title="Master Editor AI", theme=gr.themes.Soft()) as demo:
            gr.Markdown("# 🖋️ Master Editor AI\nCreative writing assistant")

            with gr.Row():
                with gr.Column(scale=1):
                    gr.Markdown("## ✍️ Chapter")
                    book_title = gr.Textbox(label="Book title", value=defaults.book_title)
                    genre = gr.Textbox(label="Genre", value=defaults.genre)
                    chapter_name = gr.Textbox(label="Chapter name", value=defaults.chapter_name)
                    plot_summary = gr.Textbox(label="Plot summary / key point", lines=4, value=defaults.plot_summary)
                    main_characters = gr.Textbox(label="Main characters (optional)", lines=3,
                                                 value=defaults.main_characters)
                    writing_style = gr.Dropdown(label="Writing style", choices=WRITING_STYLES,
                                                value=defaults.writing_style, allow_custom_value=True)
                    length_constraint = gr.Dropdown(label="Length", choices=LENGTH_OPTIONS,
                                                    value=defaults.length_constraint, allow_custom_value=True)
                    dialogue_enhancement = gr.Textbox(label="Dialogue style (optional)", lines=2,
                                                      value=defaults.dialogue_enhancement)

                    gr.Markdown("## 🎨 Illustration")
                    image_custom_topic = gr.Textbox(
                        label="Visual topic (optional)", lines=2, value=defaults.image_custom_topic,
                        placeholder="Describe a specific scene. Empty uses the chapter name."
                    )
                    image_art_style = gr.Dropdown(label="Visual style", choices=ART_STYLES,
                                                  value=defaults.image_art_style, allow_custom_value=True)
                    image_aspect_ratio = gr.Radio(label="Aspect ratio",
                                                  choices=[ratio.value for ratio in AspectRatio],
                                                  value=defaults.image_aspect_ratio.value)

                    with gr.Row():
                        generate_btn = gr.Button("🖋️ Write chapter", variant="primary")
                        save_defaults_btn = gr.Button("💾 Save as default")

                    gr.Markdown("## 📚 Library")
                    history_selector = gr.Dropdown(label="Saved chapters", choices=self._history_choices())
                    with gr.Row():
                        load_btn = gr.Button("📖 Open", size="sm")
                        delete_btn = gr.Button("🗑️ Delete", size="sm")

                with gr.Column(scale=2):
                    status_box = gr.Markdown(self._format_status(AppStatus.IDLE))
                    title_box = gr.Textbox(label="Chapter title (editable)")
                    chapter_box = gr.HTML()

                    with gr.Row():
                        txt_btn = gr.Button("📄 .txt", size="sm")
                        md_btn = gr.Button("📝 .md", size="sm")
                        docx_btn = gr.Button("📘 .docx", size="sm")
                        print_btn = gr.Button("🖨️ Print / PDF", size="sm")
                        image_btn = gr.Button("🖼️ Image", size="sm")
                    export_file = gr.File(label="Download", interactive=False)
                    export_status = gr.Markdown()

                    with gr.Row():
                        with gr.Column():
                            gr.Markdown("### 📝 Editor analysis")
                            analysis_box = gr.Markdown()
                        with gr.Column():
                            gr.Markdown("### 🎨 Visual prompt")
                            prompt_box = gr.Textbox(show_label=False, lines=6, interactive=False,
                                                    show_copy_button=True)

            form = [book_title, genre, chapter_name, plot_summary, main_characters, writing_style,
                    length_constraint, dialogue_enhancement, image_custom_topic, image_art_style,
                    image_aspect_ratio]

            generate_btn.click(
                fn=self._generate,
                inputs=form,
                outputs=[status_box, chapter_box, analysis_box, prompt_box, title_box, history_selector]
            )
            save_defaults_btn.click(fn=self._save_defaults, inputs=form, outputs=[status_box])
            load_btn.click(
                fn=self._load_history,
                inputs=[history_selector],
                outputs=[status_box, chapter_box, analysis_box, prompt_box, title_box, *form]
            )
            delete_btn.click(fn=self._delete_history, inputs=[history_selector],
                             outputs=[status_box, history_selector])
            title_box.submit(fn=self._rename, inputs=[title_box], outputs=[chapter_box])

            txt_btn.click(fn=lambda: self._export(ExportFormat.TXT), outputs=[export_file, export_status])
            md_btn.click(fn=lambda: self._export(ExportFormat.MARKDOWN), outputs=[export_file, export_status])
            docx_btn.click(fn=lambda: self._export(ExportFormat.DOCX), outputs=[export_file, export_status])
            print_btn.click(fn=lambda: self._export(ExportFormat.PRINT), outputs=[export_file, export_status])
            image_btn.click(fn=self._export_image, outputs=[export_file, export_status])

        return demo
