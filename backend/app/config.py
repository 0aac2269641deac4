# backend/app/config.py

from pydantic import BaseModel, Field, model_validator
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    # LLM config (any OpenAI-compatible chat-completion server: LM Studio, vLLM, OpenAI...)
    LLM_PROVIDER: str = Field(default=os.getenv("LLM_PROVIDER", "openai"))
    LLM_API_KEY: str = Field(default=os.getenv("LLM_API_KEY", "lm-studio"))
    LLM_BASE_URL: str = Field(default=os.getenv("LLM_BASE_URL", "http://localhost:1234/v1"))
    LLM_MODEL_NAME: str = Field(default=os.getenv("LLM_MODEL_NAME", "qwen2.5-coder-7b-instruct"))
    LLM_TEMPERATURE: float = Field(default=float(os.getenv("LLM_TEMPERATURE", "0.3")))
    # 0 means "do not send max_tokens"
    LLM_MAX_TOKENS: int = Field(default=int(os.getenv("LLM_MAX_TOKENS", "1024")))
    # Request timeout in seconds; expiry is handled like any other oracle failure
    LLM_REQUEST_TIMEOUT: int = Field(default=int(os.getenv("LLM_REQUEST_TIMEOUT", "120")))
    LLM_NUM_RETRIES: int = Field(default=int(os.getenv("LLM_NUM_RETRIES", "0")))

    # Document classifier
    CLASSIFIER_MIN_CHARS: int = Field(default=int(os.getenv("CLASSIFIER_MIN_CHARS", "100")))
    CLASSIFIER_MIN_CATEGORIES: int = Field(default=int(os.getenv("CLASSIFIER_MIN_CATEGORIES", "2")))
    CLASSIFIER_SAMPLE_CHARS: int = Field(default=int(os.getenv("CLASSIFIER_SAMPLE_CHARS", "2000")))
    CLASSIFIER_TEMPERATURE: float = Field(default=float(os.getenv("CLASSIFIER_TEMPERATURE", "0.1")))
    CLASSIFIER_MAX_TOKENS: int = Field(default=int(os.getenv("CLASSIFIER_MAX_TOKENS", "10")))
    # true: accept the document when the oracle cannot answer; false: reject it
    CLASSIFIER_FAIL_OPEN: bool = Field(default=_env_bool("CLASSIFIER_FAIL_OPEN", "true"))

    # Status thresholds (one pair per deployment)
    STATUS_APPROVED_MIN: int = Field(default=int(os.getenv("STATUS_APPROVED_MIN", "70")))
    STATUS_REVIEW_MIN: int = Field(default=int(os.getenv("STATUS_REVIEW_MIN", "55")))

    # Extraction
    PDF_LINE_TOLERANCE: float = Field(default=float(os.getenv("PDF_LINE_TOLERANCE", "0.1")))
    RESULT_TEXT_SAMPLE_CHARS: int = Field(default=int(os.getenv("RESULT_TEXT_SAMPLE_CHARS", "5000")))

    # Batches
    MAX_BATCH_FILES: int = Field(default=int(os.getenv("MAX_BATCH_FILES", "50")))

    # Warmup
    WARMUP_ENABLED: bool = Field(default=_env_bool("WARMUP_ENABLED", "true"))
    WARMUP_PROMPT: str = Field(default=os.getenv("WARMUP_PROMPT", "Warm up. Reply with OK."))

    # Celery/Redis
    REDIS_URL: str = Field(default=os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    CELERY_SOFT_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_SOFT_TIME_LIMIT", "1800")))  # 30 min
    CELERY_HARD_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_HARD_TIME_LIMIT", "1860")))  # soft + buffer

    # Service
    BACKEND_CORS_ORIGINS: str = Field(
        default=os.getenv("BACKEND_CORS_ORIGINS", "http://localhost:8501,http://127.0.0.1:8501")
    )
    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if not 0 < self.STATUS_REVIEW_MIN < self.STATUS_APPROVED_MIN <= 100:
            raise ValueError(
                "Status thresholds must satisfy 0 < STATUS_REVIEW_MIN < STATUS_APPROVED_MIN <= 100"
            )
        return self

    def full_model_id(self) -> str:
        """
        Return provider-prefixed model id for LiteLLM, e.g.:
        - 'openai/qwen2.5-coder-7b-instruct' (LM Studio / any OpenAI-compatible server)
        - 'ollama/llama3.2'
        - 'groq/llama3-8b-8192'
        """
        provider = self.LLM_PROVIDER.strip().lower()
        # If already prefixed, keep as is
        if "/" in self.LLM_MODEL_NAME:
            return self.LLM_MODEL_NAME
        return f"{provider}/{self.LLM_MODEL_NAME}"

    def cors_origins(self) -> list:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
