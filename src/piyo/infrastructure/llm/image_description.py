"""LLM-based image description service."""

import logging
import re

from piyo.domain.entities import ImageDescription
from piyo.infrastructure.llm.client import LLMClient
from piyo.infrastructure.llm.exceptions import LLMInvalidResponseError

logger = logging.getLogger(__name__)

DESCRIBE_IMAGE_PROMPT = """Describe this image.
Answer in exactly this format:
Title: <a short title>
<a detailed description on the following lines>"""

_TITLE_PATTERN = re.compile(r"^\s*title\s*:\s*(.*)$", re.IGNORECASE)


class LiteLLMImageDescriptionService:
    """Describes images with a vision-capable model."""

    def __init__(self, client: LLMClient) -> None:
        """Initialize the service.

        Args:
            client: LLM client configured with a vision model.
        """
        self._client = client

    async def describe(self, image_url: str) -> ImageDescription:
        """Describe the image at a URL.

        Args:
            image_url: Publicly reachable image URL.

        Returns:
            Title and description.

        Raises:
            LLMError: If the request fails.
            LLMInvalidResponseError: If the model returned nothing.
        """
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": DESCRIBE_IMAGE_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ]
        response = await self._client.complete(messages)
        logger.debug("Image description response: %s", response)
        return self._parse_response(response)

    def _parse_response(self, response: str) -> ImageDescription:
        """Split a response into title and description.

        A missing ``Title:`` line yields an empty title and the whole
        response as the description.
        """
        text = response.strip()
        if not text:
            raise LLMInvalidResponseError("Empty image description")

        first_line, _, rest = text.partition("\n")
        match = _TITLE_PATTERN.match(first_line)
        if match is None:
            return ImageDescription(title="", description=text)
        return ImageDescription(title=match.group(1).strip(), description=rest.strip())
