"""Think -> build -> verify chain that turns a free-form request into one HTML page."""

import logging
from typing import Callable, Optional, Type

from app.core.cancellation import CancelToken
from app.core.errors import (
    EmptyAnalysis,
    EmptyBuild,
    EmptyCompletion,
    EmptyInput,
    EmptyVerification,
    StageFailure,
    UpstreamError,
)
from app.schemas.dialog import Requirements
from app.services.html_sanitizer import extract_html_block, sanitize
from app.utils.prompt_loader import load_prompt

logger = logging.getLogger(__name__)

STAGE_ANALYZE = "analyze"
STAGE_BUILD = "build"
STAGE_VERIFY = "verify"
STAGE_SANITIZE = "sanitize"


class WebsitePipeline:
    def __init__(self, client):
        # any object with LLMClient.generate's signature
        self.client = client

    def _run_stage(
        self,
        stage: str,
        system_prompt: str,
        user_prompt: str,
        empty_error: Type[EmptyCompletion],
        cancel: Optional[CancelToken],
    ) -> str:
        logger.info("Pipeline stage %s started", stage)
        try:
            text = self.client.generate(user_prompt, system_prompt, cancel=cancel)
        except EmptyCompletion as exc:
            logger.error("Pipeline stage %s returned nothing", stage)
            raise StageFailure(stage, empty_error()) from exc
        except UpstreamError as exc:
            logger.error("Pipeline stage %s failed: %s", stage, exc)
            raise StageFailure(stage, exc) from exc
        if not text or not text.strip():
            logger.error("Pipeline stage %s returned nothing", stage)
            raise StageFailure(stage, empty_error())
        return text

    def generate_website(
        self,
        user_message: str,
        requirements: Optional[Requirements] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        if not user_message or not user_message.strip():
            raise EmptyInput()
        if requirements is not None:
            logger.info("Building website for requirements %s", requirements.model_dump())

        plan = self._run_stage(
            STAGE_ANALYZE,
            load_prompt("analyze_system.txt"),
            user_message,
            EmptyAnalysis,
            cancel,
        )
        html = self._run_stage(
            STAGE_BUILD,
            load_prompt("build_system.txt"),
            load_prompt("build_request.txt", user_message=user_message, plan=plan),
            EmptyBuild,
            cancel,
        )
        verified = self._run_stage(
            STAGE_VERIFY,
            load_prompt("verify_system.txt"),
            load_prompt("verify_request.txt", plan=plan, html=html),
            EmptyVerification,
            cancel,
        )
        return sanitize(verified)

    def generate_website_single_shot(
        self,
        user_message: str,
        requirements: Optional[Requirements] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        """Legacy variant: build stage only, then pull the ```html block out of the reply."""
        if not user_message or not user_message.strip():
            raise EmptyInput()
        html = self._run_stage(
            STAGE_BUILD,
            load_prompt("single_shot_system.txt"),
            user_message,
            EmptyBuild,
            cancel,
        )
        return extract_html_block(html)

    def generate_page(self, user_message: str, cancel: Optional[CancelToken] = None) -> str:
        """Single call from a detailed brief; the reply is sanitized like the verify output."""
        if not user_message or not user_message.strip():
            raise EmptyInput()
        html = self._run_stage(
            STAGE_BUILD,
            load_prompt("page_system.txt"),
            user_message,
            EmptyBuild,
            cancel,
        )
        return sanitize(html)


PipelineRunner = Callable[[str, Optional[Requirements], Optional[CancelToken]], str]
