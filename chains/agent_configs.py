from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from chains.prompts import AGENT_PROMPTS
from chains.templates import CONTRACT_TEMPLATE, TEST_TEMPLATE
from common.config import GlobalYAMLConfig, yaml_config
from retrieval.classifier import KeywordQueryClassifier, QueryClassifier


@dataclass
class AgentConfig:
    name: str
    retriever_prompt: str
    response_prompt: str
    no_source_prompt: Optional[str] = None
    contract_template: Optional[str] = None
    test_template: Optional[str] = None
    max_source_count: int = 10
    similarity_threshold: float = 0.4
    rerank_limit: int = 10
    collection: str = "docs"
    classifier: QueryClassifier = field(default_factory=KeywordQueryClassifier)


def available_agents(cfg: GlobalYAMLConfig = yaml_config) -> List[str]:
    return sorted(cfg.agents)


def get_agent_config(
    name: str,
    cfg: GlobalYAMLConfig = yaml_config,
    classifier: Optional[QueryClassifier] = None,
) -> AgentConfig:
    """Build the agent bundle from config/config.yaml plus the prompt registry."""
    agent = cfg.agents.get(name)
    if agent is None:
        raise ValueError(f"No configuration found for agent: {name}")
    prompts = AGENT_PROMPTS.get(agent.prompts)
    if prompts is None:
        raise ValueError(f"Unknown prompt set '{agent.prompts}' for agent: {name}")

    return AgentConfig(
        name=agent.name,
        retriever_prompt=prompts.retriever,
        response_prompt=prompts.response,
        no_source_prompt=prompts.no_source,
        contract_template=CONTRACT_TEMPLATE if agent.use_contract_template else None,
        test_template=TEST_TEMPLATE if agent.use_test_template else None,
        max_source_count=agent.max_source_count,
        similarity_threshold=agent.similarity_threshold,
        rerank_limit=agent.rerank_limit,
        collection=agent.collection,
        classifier=classifier or KeywordQueryClassifier(),
    )
