"""OpenAI Responses API client for nutrition estimates."""

import json
from dataclasses import dataclass

from openai import APITimeoutError, AsyncOpenAI

from nutrition_resolver.services.generative_resolver import EstimateClient


@dataclass
class OpenAIEstimateClient(EstimateClient):
    """Estimate client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIEstimateClient":
        """Create an OpenAI estimate client."""
        return cls(client=AsyncOpenAI(api_key=api_key, max_retries=0))

    async def estimate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        timeout: float,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "nutrition_estimate",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(
                **request_payload, timeout=timeout
            )
        except APITimeoutError as exc:
            raise TimeoutError("OpenAI estimate timed out") from exc
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)
