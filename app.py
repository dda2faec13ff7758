import os
import asyncio
import argparse
import pydantic
import yaml
from dotenv import load_dotenv

from master_editor.config_loader import config, StorageSettings
from master_editor.errors import MasterEditorError
from master_editor.export import ExportFormat, export, image_artifact, write_artifact
from master_editor.log_config import loggers
from master_editor.model import ChapterRequest, GenerationResult, StatusUpdate
from master_editor.orchestrator import create_orchestrator
from master_editor.storage import open_stores

load_dotenv(override=True)
logger = loggers['cli']

STATUS_MESSAGES = {
    "WRITING_TEXT": "The Master Editor is writing...",
    "GENERATING_IMAGE": "The illustrator is painting the scene...",
    "COMPLETED": "Chapter complete.",
    "FAILED": "Generation failed.",
}

def get_args():
    parser = argparse.ArgumentParser(description="Write a book chapter and its illustration")
    parser.add_argument("--request", type=str, help="YAML file with chapter request fields")
    parser.add_argument("--export", nargs="*", default=["md"],
                        choices=[fmt.value for fmt in ExportFormat], help="formats to export")
    parser.add_argument("--out", type=str, default="exports", help="export directory")
    parser.add_argument("--save-defaults", action="store_true", help="remember this request as form defaults")
    parser.add_argument("--history", action="store_true", help="list saved chapters and exit")
    parser.add_argument("--delete", metavar="ID", help="delete a saved chapter and exit")
    parser.add_argument("--export-item", metavar="ID", help="export a saved chapter and exit")

    return parser.parse_args()

def load_request_file(path) -> dict:
    """Field values from a YAML request file; scalars are read as text."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            fields = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise MasterEditorError(f"Cannot read request file {path}: {e}") from e
    if not isinstance(fields, dict):
        raise MasterEditorError(f"Request file {path} must map field names to values")
    # YAML turns `genre: 1984` into an int
    return {str(name): str(value) for name, value in fields.items() if value is not None}

def read_request(path, defaults: ChapterRequest) -> ChapterRequest:
    """Request fields from a YAML file, or asked one by one, over the saved defaults."""
    if path:
        fields = load_request_file(path)
    else:
        fields = {}
        for name in ChapterRequest.REQUIRED_FIELDS:
            current = getattr(defaults, name)
            answer = input(f"{name.replace('_', ' ').capitalize()} [{current}]: ").strip()
            if answer:
                fields[name] = answer
    try:
        return ChapterRequest.model_validate({**defaults.model_dump(), **fields})
    except pydantic.ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise MasterEditorError(
            f"Invalid request ({problems}). Quote aspect ratios in YAML, e.g. image_aspect_ratio: \"1:1\""
        ) from e

def export_result(result: GenerationResult, formats, out_dir):
    title, content = result.text_data.title, result.text_data.content
    for fmt in formats:
        path = write_artifact(export(ExportFormat(fmt), title, content), out_dir)
        print(f"Saved {path}")
    if result.image_url:
        path = write_artifact(image_artifact(title, result.image_url), out_dir)
        print(f"Saved {path}")

def print_update(update: StatusUpdate):
    print(f"[{update.status.value}] {STATUS_MESSAGES.get(update.status.value, '')}")

def main():
    args = get_args()
    history, defaults = open_stores(StorageSettings)
    if history.warning:
        print(f"Warning: {history.warning}")

    if args.history:
        for item in history.list():
            print(f"{item.id}  {item.request.book_title} / {item.request.chapter_name}")
        return
    if args.delete:
        history.remove(args.delete)
        print(f"Deleted {args.delete}")
        return

    model_config = config.model_config.model_copy(update={
        "api_key": os.getenv("API_KEY"),
        "api_url": os.getenv("BASE_URL"),
    })
    try:
        if args.export_item:
            item = history.get(args.export_item)
            if item is None:
                print(f"No saved chapter with id {args.export_item}")
            else:
                export_result(item.result, args.export, args.out)
            return

        request = read_request(args.request, defaults.load())
        if args.save_defaults:
            defaults.save(request)

        orchestrator = create_orchestrator(model_config, history)
        orchestrator.subscribe(print_update)
        logger.info(f"Starting chapter '{request.chapter_name}'")
        result = asyncio.run(orchestrator.submit(request))

        if orchestrator.error:
            print(f"Error: {orchestrator.error}")
        if result.has_text:
            print(f"\n{result.text_data.title}\n\nEditor analysis: {result.text_data.editor_analysis}\n")
            export_result(result, args.export, args.out)
        if history.warning:
            print(f"Warning: {history.warning}")

    except MasterEditorError as e:
        print(f"[main] {e}")

if __name__ == "__main__":

    main()
