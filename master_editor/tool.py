import json
import re
from typing import Optional

from master_editor.log_config import loggers

logger = loggers['node']


def extract_json(generated_text: str) -> Optional[str]:
    """Pull the JSON object out of a model reply, handling ```json fences and surrounding prose."""
    if not generated_text:
        return None

    # most common case: a ```json fenced block
    json_block_match = re.search(r'```(?:json)?\s*([\s\S]*?)\s*```', generated_text)
    if json_block_match:
        json_content = json_block_match.group(1).strip()
        try:
            json.loads(json_content)
            return json_content
        except json.JSONDecodeError:
            logger.info("Fenced JSON block is invalid, trying other extraction")

    # a bare object somewhere in the text
    json_obj_match = re.search(r'\{[\s\S]*\}', generated_text)
    if json_obj_match:
        json_content = json_obj_match.group(0).strip()
        try:
            json.loads(json_content)
            return json_content
        except json.JSONDecodeError:
            logger.info("JSON object in reply is invalid")

    logger.info("No valid JSON structure found, returning the raw reply")
    return generated_text.strip()
