"""OpenAI API Client Wrapper

This module provides an OpenAIClient wrapper around the official openai Python
SDK. It is the single text-classification service used by every pipeline
stage: topic generation, relevance filtering, sentiment, topic clustering,
recommendations, content drafting and summaries all send a prompt and get
free-form text back.

One client is constructed per process and injected into each component, so
tests can substitute a fake with the same generate_text() coroutine.
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional

import openai
import structlog
from openai import APIConnectionError, InternalServerError


def _get_logger():
    """Get logger instance (allows for easier mocking in tests)."""
    return structlog.get_logger()


class AIClientNotConfiguredError(Exception):
    """Raised on every call when OPENAI_API_KEY is not configured."""
    pass


class OpenAIClient:
    """Async OpenAI chat-completions client with token cost tracking.

    A missing API key does not fail construction. Instead every call raises
    AIClientNotConfiguredError, which pipeline stages degrade exactly like
    any other call failure.

    Attributes:
        client: AsyncOpenAI SDK client instance (None when unconfigured)
        model: Default model name for completions
        monthly_prompt_tokens: Prompt tokens used in the current calendar month
        monthly_completion_tokens: Completion tokens used in the current calendar month
        current_month: Current month tuple (year, month)

    Example:
        >>> client = OpenAIClient()
        >>> text = await client.generate_text("Name three colors as a JSON array")
        >>> print(text)
        '["red", "green", "blue"]'
    """

    # Cost constants for gpt-4o-mini (per 1M tokens)
    COST_PER_1M_INPUT_TOKENS = 0.15
    COST_PER_1M_OUTPUT_TOKENS = 0.60
    MONTHLY_COST_WARNING_THRESHOLD = 60.0

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini"):
        """Initialize the client.

        Args:
            api_key: OpenAI API key (default: OPENAI_API_KEY environment variable)
            model: Default model for completions (default: gpt-4o-mini)
        """
        if api_key is None:
            api_key = os.environ.get("OPENAI_API_KEY", "")
        api_key = api_key.strip()

        self.model = model
        self.client = openai.AsyncOpenAI(api_key=api_key) if api_key else None
        self.monthly_prompt_tokens = 0
        self.monthly_completion_tokens = 0
        now = datetime.now()
        self.current_month = (now.year, now.month)

        if self.client is None:
            _get_logger().warning(
                "openai_client_unconfigured",
                reason="OPENAI_API_KEY is not set; every call will fail"
            )
        else:
            _get_logger().info("openai_client_initialized", model=model, month=f"{now.year}-{now.month:02d}")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    @property
    def monthly_tokens(self) -> int:
        return self.monthly_prompt_tokens + self.monthly_completion_tokens

    def _check_and_reset_monthly_tracking(self) -> None:
        """Reset token counters when the calendar month changes."""
        now = datetime.now()
        current_period = (now.year, now.month)

        if current_period != self.current_month:
            _get_logger().info(
                "monthly_cost_tracking_reset",
                old_month=f"{self.current_month[0]}-{self.current_month[1]:02d}",
                new_month=f"{now.year}-{now.month:02d}",
                old_tokens=self.monthly_tokens
            )
            self.monthly_prompt_tokens = 0
            self.monthly_completion_tokens = 0
            self.current_month = current_period

    def _calculate_monthly_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Add this call's usage to the monthly totals and return the estimated cost.

        Args:
            prompt_tokens: Input tokens used in the current request
            completion_tokens: Output tokens used in the current request

        Returns:
            Estimated monthly cost in USD
        """
        self._check_and_reset_monthly_tracking()

        self.monthly_prompt_tokens += prompt_tokens
        self.monthly_completion_tokens += completion_tokens

        input_cost = (self.monthly_prompt_tokens / 1_000_000) * self.COST_PER_1M_INPUT_TOKENS
        output_cost = (self.monthly_completion_tokens / 1_000_000) * self.COST_PER_1M_OUTPUT_TOKENS
        return input_cost + output_cost

    async def send_chat_completion(
        self,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> Dict[str, Any]:
        """Send a chat completion request.

        Args:
            user_prompt: User message with the actual request
            system_prompt: Optional system message
            model: Model name (default: the client's model)
            temperature: Sampling temperature (default: 0.3)
            max_tokens: Max completion tokens (default: 1000)

        Returns:
            Dictionary with:
                - content (str): Raw response content from the assistant
                - usage (dict): prompt_tokens, completion_tokens, total_tokens

        Raises:
            AIClientNotConfiguredError: OPENAI_API_KEY is not set
            APIConnectionError: Network/connection failures
            InternalServerError: 5xx server errors from OpenAI
            APIError: Other API errors (authentication, rate limits, etc.)
        """
        if self.client is None:
            raise AIClientNotConfiguredError(
                "OPENAI_API_KEY environment variable is required but not set."
            )

        model = model or self.model
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            content = response.choices[0].message.content or ""
            prompt_tokens = getattr(response.usage, "prompt_tokens", 0) or 0
            completion_tokens = getattr(response.usage, "completion_tokens", 0) or 0
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }

            monthly_cost = self._calculate_monthly_cost(prompt_tokens, completion_tokens)

            _get_logger().debug(
                "openai_chat_completion_success",
                model=model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                monthly_tokens=self.monthly_tokens,
                estimated_monthly_cost=round(monthly_cost, 2)
            )

            if monthly_cost >= self.MONTHLY_COST_WARNING_THRESHOLD:
                _get_logger().warning(
                    "monthly_cost_threshold_exceeded",
                    monthly_cost=round(monthly_cost, 2),
                    threshold=self.MONTHLY_COST_WARNING_THRESHOLD,
                    monthly_tokens=self.monthly_tokens,
                    month=f"{self.current_month[0]}-{self.current_month[1]:02d}"
                )

            return {"content": content, "usage": usage}

        except (APIConnectionError, InternalServerError) as e:
            _get_logger().error(
                "openai_api_error",
                error_type=type(e).__name__,
                error_message=str(e),
                model=model,
                user_prompt_length=len(user_prompt)
            )
            raise

        except Exception as e:
            _get_logger().error(
                "openai_api_error",
                error_type=type(e).__name__,
                error_message=str(e),
                model=model,
                user_prompt_length=len(user_prompt)
            )
            raise

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.3,
        model: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """Send a single prompt and return the response text.

        This is the interface every pipeline component depends on.
        """
        result = await self.send_chat_completion(
            user_prompt=prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return result["content"]
