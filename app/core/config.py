from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class LLMProfile(BaseModel):
    base_url: str
    model: str
    timeout: int
    temperature: float
    max_tokens: int
    stream: bool = False


class Settings(BaseSettings):
    # requirements-gathering client
    gathering_requirements_llm_url: str
    gathering_requirements_llm_model: str
    gathering_requirements_llm_timeout: int = Field(gt=0)
    gathering_requirements_llm_temperature: float
    gathering_requirements_llm_max_tokens: int
    gathering_requirements_llm_stream: bool

    # website builder client
    builder_llm_url: str
    builder_llm_model: str
    builder_llm_timeout: int = Field(gt=0)
    builder_llm_temperature: float
    builder_llm_max_tokens: int
    builder_llm_stream: bool

    # chat-completions variant, only used when both are set
    huggingface_chat_url: Optional[str] = None
    huggingface_api_key: Optional[str] = None
    huggingface_model: str = "ibm-granite/granite-3.3-8b-instruct"

    port: int = 8080
    database_url: str = "sqlite:///chat_service.db"
    sql_echo: bool = False
    backend_cors_origins: str = "*"
    log_level: str = "INFO"

    result_dir: str = "result"
    request_timeout: float = 600.0
    daily_request_limit: int = 0
    max_message_length: int = 0

    object_storage_url: str = "http://localhost:3004/api/deploy/html"
    object_storage_timeout: int = 60
    repository_push_command: str = "node index.js"
    repository_push_cwd: Optional[str] = None
    repository_push_timeout: int = 120
    repository_url: str = ""
    push_on_build: bool = True

    class Config:
        env_file = ".env"
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.backend_cors_origins.split(",") if origin.strip()]

    @property
    def requirements_llm(self) -> LLMProfile:
        return LLMProfile(
            base_url=self.gathering_requirements_llm_url,
            model=self.gathering_requirements_llm_model,
            timeout=self.gathering_requirements_llm_timeout,
            temperature=self.gathering_requirements_llm_temperature,
            max_tokens=self.gathering_requirements_llm_max_tokens,
            stream=self.gathering_requirements_llm_stream,
        )

    @property
    def builder_llm(self) -> LLMProfile:
        return LLMProfile(
            base_url=self.builder_llm_url,
            model=self.builder_llm_model,
            timeout=self.builder_llm_timeout,
            temperature=self.builder_llm_temperature,
            max_tokens=self.builder_llm_max_tokens,
            stream=self.builder_llm_stream,
        )

    @property
    def chat_completions_enabled(self) -> bool:
        return bool(self.huggingface_chat_url and self.huggingface_api_key)
