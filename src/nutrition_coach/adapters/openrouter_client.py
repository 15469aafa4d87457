"""OpenRouter chat completions client via the OpenAI SDK."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_coach.services.coach import ChatClient

OPENROUTER_APP_TITLE = "Virtual Nutrition Coach"


@dataclass
class OpenRouterChatClient(ChatClient):
    """Chat client backed by OpenRouter's OpenAI-compatible API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, base_url: str, app_url: str
    ) -> "OpenRouterChatClient":
        """Create a client with OpenRouter attribution headers."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                default_headers={
                    "HTTP-Referer": app_url,
                    "X-Title": OPENROUTER_APP_TITLE,
                },
            )
        )

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the first completion's text, or an empty string."""
        completion = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not completion.choices:
            return ""
        content = completion.choices[0].message.content
        return (content or "").strip()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
