from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"


class Settings(BaseSettings):
    config_path: Path = DEFAULT_CONFIG_PATH
    ollama_base_url: str = "http://localhost:11434"

    class Config:
        env_file = ".env"
        env_prefix = "DRA_"


class AppConfig(BaseModel):
    persist_dir: Path
    cache_dir: Path


class VectorStoreConfig(BaseModel):
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    batch_size: int = 256


class SourceConfig(BaseModel):
    collection: str
    base_url: str
    format: str = Field(default="markdown", pattern="^(markdown|asciidoc)$")
    file_extension: str = ".md"
    link_suffix: str = ""
    split: bool = True
    index_page: Optional[str] = None
    strip_hidden_code_lines: bool = False
    archive_url: Optional[str] = None
    archive_subdir: Optional[str] = None


class CombinedSourceConfig(BaseModel):
    """Several sources ingested together into one collection."""

    collection: str
    sources: List[str] = Field(min_length=1)


class AgentYAMLConfig(BaseModel):
    name: str
    prompts: str
    collection: str
    max_source_count: int = Field(default=10, ge=1)
    similarity_threshold: float = 0.4
    rerank_limit: int = Field(default=10, ge=1)
    use_contract_template: bool = True
    use_test_template: bool = True


class LLMConfig(BaseModel):
    provider: str = "ollama"
    model_name: str = "mistral"
    temperature: float = 0.2


class GlobalYAMLConfig(BaseModel):
    app: AppConfig
    vectorstore: VectorStoreConfig
    llm_default: LLMConfig
    llm_fast: Optional[LLMConfig] = None
    sources: Dict[str, SourceConfig]
    combined_sources: Dict[str, CombinedSourceConfig] = {}
    agents: Dict[str, AgentYAMLConfig]


def load_yaml_config(path: Path = DEFAULT_CONFIG_PATH) -> GlobalYAMLConfig:
    with open(path, "r") as f:
        raw = yaml.safe_load(f)
    return GlobalYAMLConfig(**raw)


settings = Settings()
yaml_config = load_yaml_config(settings.config_path)
