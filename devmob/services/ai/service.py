"""
DevMob Onboarding Bot - Story Generator
=======================================

Turns four interview answers and the inviter's context into a biography.

DESIGN:
    generate() never raises and never retries. Every failure becomes a
    short placeholder that is stored and announced like a real story, so
    an outage at the provider does not block the role update.

    _complete() is the single provider call; it raises ProviderError or
    EmptyCompletionError and generate() maps those to placeholders.

Server: the DevMob
"""

from typing import Mapping, Optional

import openai
from openai import AsyncOpenAI

from devmob.core.config import Config
from devmob.core.constants import AI_API_TIMEOUT, STORY_MAX_TOKENS, STORY_TEMPERATURE, STORY_TITLE_MAX_LENGTH
from devmob.core.errors import EmptyCompletionError, ProviderError
from devmob.core.logger import logger

from .prompts import (
    ANSWER_KEYS,
    DEFAULT_STORY_TITLE,
    PLACEHOLDER_EMPTY,
    PLACEHOLDER_NOT_CONFIGURED,
    PLACEHOLDER_PROVIDER_ERROR,
    PLACEHOLDER_UNEXPECTED,
    STORY_PROMPT_TEMPLATE,
    STORY_SYSTEM,
)


# =============================================================================
# Story Generator
# =============================================================================

class StoryGenerator:
    """
    Biography generation through the OpenAI chat completions API.

    Attributes:
        model: Chat model name.
        calls: Number of provider calls made since start.
    """

    def __init__(self, config: Config, client: Optional[AsyncOpenAI] = None) -> None:
        self.model = config.ai_model
        self.calls = 0
        self._client: Optional[AsyncOpenAI] = client

        if self._client is None and config.openai_api_key:
            self._client = AsyncOpenAI(api_key=config.openai_api_key, timeout=AI_API_TIMEOUT)

        logger.tree("Story Generator Initialized", [
            ("Model", self.model),
            ("Enabled", "Yes" if self.enabled else "No (OPENAI_API_KEY missing)"),
        ], emoji="🤖")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    # =========================================================================
    # Prompt
    # =========================================================================

    @staticmethod
    def build_prompt(
        answers: Mapping[str, str],
        inviter_name: str = "",
        inviter_role: str = "",
        inviter_story: str = "",
    ) -> str:
        """Fill the story template. Missing answers and inviter fields render as empty."""
        fields = {key: answers.get(key, "") for key in ANSWER_KEYS}
        return STORY_PROMPT_TEMPLATE.format(
            inviter_name=inviter_name,
            inviter_role=inviter_role,
            inviter_story=inviter_story,
            **fields,
        )

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(
        self,
        answers: Mapping[str, str],
        inviter_name: str = "",
        inviter_role: str = "",
        inviter_story: str = "",
    ) -> str:
        """
        Generate a biography.

        Returns:
            The story text, or a placeholder if the provider is not
            configured, fails, or returns nothing.
        """
        if not self.enabled:
            logger.warning("Story Skipped - Provider Not Configured")
            return PLACEHOLDER_NOT_CONFIGURED

        prompt = self.build_prompt(answers, inviter_name, inviter_role, inviter_story)

        try:
            story = await self._complete(prompt)
        except EmptyCompletionError:
            logger.warning("Story Provider Returned No Content", [("Model", self.model)])
            return PLACEHOLDER_EMPTY
        except ProviderError as e:
            logger.error("Story Provider Failed", [
                ("Model", self.model),
                ("Status", str(e.status_code) if e.status_code is not None else "-"),
                ("Error", str(e)[:100]),
            ])
            status = e.status_code if e.status_code is not None else "n/a"
            return PLACEHOLDER_PROVIDER_ERROR.format(status=status)
        except Exception as e:
            logger.error("Story Generation Error", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return PLACEHOLDER_UNEXPECTED

        logger.tree("Story Generated", [
            ("Model", self.model),
            ("Inviter", inviter_name or "None"),
            ("Length", f"{len(story)} chars"),
        ], emoji="📜")
        return story

    async def _complete(self, prompt: str) -> str:
        """
        One chat completion call.

        Raises:
            ProviderError: Non-2xx status or transport failure.
            EmptyCompletionError: Response carried no text.
        """
        self.calls += 1
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": STORY_SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=STORY_MAX_TOKENS,
                temperature=STORY_TEMPERATURE,
            )
        except openai.APIStatusError as e:
            raise ProviderError(e.message, status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            raise ProviderError(f"Connection failed: {e}") from e

        content = None
        if response.choices and response.choices[0].message:
            content = response.choices[0].message.content

        if not content or not content.strip():
            raise EmptyCompletionError("Provider returned an empty completion")

        logger.debug("Story Completion", [
            ("Tokens Used", str(response.usage.total_tokens) if response.usage else "?"),
        ])
        return content.strip()


# =============================================================================
# Title Extraction
# =============================================================================

def extract_story_title(story: str) -> str:
    """
    Title for the announcement embed.

    The first line with markdown emphasis and heading marks removed, if
    that leaves between 1 and 100 characters; otherwise a default title.
    """
    first_line = story.split("\n", 1)[0].strip() if story else ""
    first_line = first_line.replace("**", "").replace("#", "").replace("*", "").strip()
    if 0 < len(first_line) <= STORY_TITLE_MAX_LENGTH:
        return first_line
    return DEFAULT_STORY_TITLE


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["StoryGenerator", "extract_story_title"]
