"""Food recognition through the OpenAI Responses API."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_coach.services.vision import VisionClient


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client that asks a multimodal model for schema-shaped JSON."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str, model: str, reasoning_effort: str | None, store: bool
    ) -> "OpenAIVisionClient":
        """Create a client bound to one model configuration."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def extract(
        self, *, image_data_url: str, schema: dict[str, object], prompt: str
    ) -> dict[str, object]:
        """Send the image with a strict output schema and decode the JSON reply."""
        options: dict[str, object] = {"store": self.store}
        if self.reasoning_effort:
            options["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(
            model=self.model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {
                            "type": "input_image",
                            "image_url": image_data_url,
                            "detail": "low",
                        },
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "food_detection",
                    "strict": True,
                    "schema": schema,
                }
            },
            **options,
        )
        if not response.output_text:
            raise ValueError(f"{self.model} returned no output text")
        return json.loads(response.output_text)

    async def close(self) -> None:
        """Release the SDK's HTTP connections."""
        await self.client.close()
