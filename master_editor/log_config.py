import logging
import os
from datetime import datetime
from pathlib import Path

LOG_AREAS = ['orchestrator', 'workflow', 'node', 'agent', 'provider', 'storage', 'export', 'cli', 'ui']

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(module)s:%(lineno)d) %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging():
    """One log file per run under MASTER_EDITOR_LOG_DIR, mirrored to the console.

    Returns a dict of `master_editor.<area>` loggers keyed by area.
    """
    log_dir = Path(os.getenv("MASTER_EDITOR_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    run_name = datetime.now().strftime("editor_run_%Y%m%d_%H%M%S")
    level = os.getenv("MASTER_EDITOR_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / f"{run_name}.log", encoding='utf-8'),
            logging.StreamHandler()
        ]
    )

    return {area: logging.getLogger(f"master_editor.{area}") for area in LOG_AREAS}

loggers = setup_logging()
