from __future__ import annotations

from typing import Optional

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_huggingface.embeddings import HuggingFaceEmbeddings
from langchain_ollama import ChatOllama

from common.config import LLMConfig, settings, yaml_config
from common.logger import get_logger

log = get_logger(__name__)


def load_chat_model(config_section: str = "llm_default") -> Optional[BaseChatModel]:
    """
    Load a chat model based on config section (llm_default or llm_fast).
    Returns None when the section is absent, which puts the query processor
    into its keyword fallback mode.
    """
    cfg: Optional[LLMConfig] = getattr(yaml_config, config_section)
    if cfg is None:
        log.info("No '%s' model configured", config_section)
        return None

    if cfg.provider == "ollama":
        return ChatOllama(
            model=cfg.model_name,
            temperature=cfg.temperature,
            base_url=settings.ollama_base_url,
        )
    else:
        raise ValueError(f"Unsupported provider: {cfg.provider}")


def load_embeddings() -> Embeddings:
    return HuggingFaceEmbeddings(model_name=yaml_config.vectorstore.embedding_model)
