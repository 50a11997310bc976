"""
LLM provider selection
"""
from enum import Enum

import boto3
from langchain_aws import ChatBedrock
from langchain_community.chat_models import ChatOllama
from langchain_core.language_models import BaseChatModel

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class LLMProvider(str, Enum):
    BEDROCK = "bedrock"
    OLLAMA = "ollama"


def get_llm() -> BaseChatModel:
    """Get the configured chat model. AI tasks here are bounded, so sampling is low-temperature."""
    provider = settings.LLM_PROVIDER
    logger.info(f"Using LLM provider: {provider}")

    if provider == LLMProvider.BEDROCK.value:
        return _get_bedrock_llm()
    return _get_ollama_llm()


def get_model_name() -> str:
    if settings.LLM_PROVIDER == LLMProvider.BEDROCK.value:
        return settings.BEDROCK_MODEL_ID
    return settings.OLLAMA_MODEL


def _get_ollama_llm() -> BaseChatModel:
    return ChatOllama(
        model=settings.OLLAMA_MODEL,
        base_url=settings.OLLAMA_BASE_URL,
        temperature=settings.AI_TEMPERATURE,
        format="json",
    )


def _get_bedrock_llm() -> BaseChatModel:
    bedrock_runtime = boto3.client(
        "bedrock-runtime",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )
    return ChatBedrock(
        client=bedrock_runtime,
        model_id=settings.BEDROCK_MODEL_ID,
        model_kwargs={"temperature": settings.AI_TEMPERATURE, "max_tokens": 2000},
    )
