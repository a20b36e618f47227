"""Product description generation with the Gemini API."""

import base64
import logging
import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

DESCRIPTION_PROMPT = (
    "Describe this product image concisely and attractively for an online store. "
    "Mention visual characteristics, colors, apparent material and use."
)


class DescriptionGenerationError(Exception):
    """The AI service failed or answered without a description."""
    pass


def generate_description_from_image(image_bytes, content_type):
    """
    Generate a product description from an image.

    Args:
        image_bytes: raw image content
        content_type: MIME type of the image

    Returns:
        str: the generated description

    Raises:
        ValueError: if the image is empty
        ImproperlyConfigured: if GEMINI_API_KEY is not set
        DescriptionGenerationError: on HTTP failure or a response without text
    """
    if not image_bytes:
        raise ValueError("Image file must not be empty.")
    if not settings.GEMINI_API_KEY:
        raise ImproperlyConfigured("GEMINI_API_KEY is missing")

    payload = {
        'contents': [
            {
                'parts': [
                    {'text': DESCRIPTION_PROMPT},
                    {
                        'inlineData': {
                            'mimeType': content_type,
                            'data': base64.b64encode(image_bytes).decode('ascii'),
                        }
                    },
                ]
            }
        ]
    }

    try:
        response = requests.post(
            settings.GEMINI_API_URL,
            params={'key': settings.GEMINI_API_KEY},
            json=payload,
            timeout=settings.GEMINI_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Gemini request failed: {str(e)}")
        raise DescriptionGenerationError(f"AI service request failed: {str(e)}") from e

    if response.status_code != 200:
        logger.error(f"Gemini API error. Status: {response.status_code}, Response: {response.text}")
        raise DescriptionGenerationError(f"AI service answered HTTP {response.status_code}")

    try:
        text = response.json()['candidates'][0]['content']['parts'][0]['text']
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error(f"Gemini response has no text: {response.text}")
        raise DescriptionGenerationError("AI service response has no description")

    if not isinstance(text, str) or not text.strip():
        raise DescriptionGenerationError("AI service response has no description")

    logger.info("Product description generated")
    return text.strip()
