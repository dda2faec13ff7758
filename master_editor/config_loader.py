import os
import yaml
from pydantic import BaseModel
from pathlib import Path
from typing import Dict, Any, Optional

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

class ModelConfig(BaseModel):
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 120  # seconds per provider call


class BaseConfig(BaseModel):
    model_name: str = "gpt-4o"
    max_new_tokens: int = 8192
    temperature: float = 0.9
    top_p: float = 0.95


class ImageConfig(BaseModel):
    model_name: str = "dall-e-3"
    output_mime_type: str = "image/png"
    # provider size for each aspect ratio value
    sizes: Dict[str, str] = {
        "16:9": "1792x1024",
        "3:4": "1024x1792",
        "1:1": "1024x1024",
        "9:16": "1024x1792",
    }


class StorageConfig(BaseModel):
    base_dir: str = "master_editor_storage"
    history_key: str = "master_editor_history"
    defaults_key: str = "master_editor_defaults"


class ConfigLoader:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or os.getenv("MASTER_EDITOR_CONFIG") or DEFAULT_CONFIG_PATH)
        self.config_data = self._load_config()

        self.model_config = ModelConfig(**self.config_data.get("model_config", {}))
        self.writer_config = BaseConfig(**self.config_data.get("writer_config", {}))
        self.illustrator_config = ImageConfig(**self.config_data.get("illustrator_config", {}))
        self.storage_config = StorageConfig(**self.config_data.get("storage_config", {}))

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse the YAML configuration file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML configuration: {str(e)}")

config = ConfigLoader()

WriterConfig = config.writer_config

IllustratorConfig = config.illustrator_config

StorageSettings = config.storage_config
