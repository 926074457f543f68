"""Styled image generation with Gemini."""
import asyncio
import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from stylist.config import GEMINI_API_KEY, GEMINI_IMAGE_MODEL, MAX_IMAGE_SIZE_PX
from stylist.errors import GenerationError, NoImageInResponseError, ValidationError, classify_error
from stylist.images import ImageFile, data_url_to_part, open_image, resize_image
from stylist.prompts import build_prompt

logger = logging.getLogger(__name__)


def create_client(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


def image_part(image_file: ImageFile) -> types.Part:
    return types.Part.from_bytes(data=image_file.data, mime_type=image_file.mime_type)


def mask_part(mask_data_url: str) -> types.Part:
    mime_type, data = data_url_to_part(mask_data_url)
    open_image(data)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def extract_image_data_url(response: Any) -> str:
    """Return the first inline image of the first candidate as a data URL."""
    candidates = getattr(response, "candidates", None) or []
    if candidates and candidates[0].content is not None:
        for part in candidates[0].content.parts or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data and inline_data.data:
                data = inline_data.data
                if isinstance(data, str):
                    encoded = data
                else:
                    encoded = base64.b64encode(data).decode("ascii")
                return f"data:{inline_data.mime_type or 'image/png'};base64,{encoded}"

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        raise NoImageInResponseError(f"No image was found in the AI response. Reason: {block_reason}")
    raise NoImageInResponseError()


async def generate_styled_image(
    api_key: Optional[str],
    model_image: ImageFile,
    product_image: ImageFile,
    prompt: str,
    product_mask: Optional[str] = None,
) -> str:
    """Composite the product onto the model and return the result as a data URL.

    ``product_mask`` is a PNG data URL whose white area marks the part of the
    product image to use. A missing key or unreadable mask raises
    ValidationError or ImageProcessingError; every later failure is re-raised
    as a GenerationError carrying a message fit for the user.
    """
    api_key = api_key or GEMINI_API_KEY
    if not api_key:
        raise ValidationError("Please provide your API key.")
    # Mask errors surface as input errors, not generation errors.
    product_mask_part = mask_part(product_mask) if product_mask else None

    try:
        resized_model_image, resized_product_image = await asyncio.gather(
            asyncio.to_thread(resize_image, model_image, MAX_IMAGE_SIZE_PX),
            asyncio.to_thread(resize_image, product_image, MAX_IMAGE_SIZE_PX),
        )

        parts = [image_part(resized_model_image), image_part(resized_product_image)]
        if product_mask_part is not None:
            parts.append(product_mask_part)
        parts.append(types.Part.from_text(text=build_prompt(prompt, has_mask=bool(product_mask))))

        logger.info(
            "Generating styled image with %s (mask=%s, model=%s, product=%s)",
            GEMINI_IMAGE_MODEL,
            bool(product_mask),
            model_image.filename,
            product_image.filename,
        )
        client = create_client(api_key)
        response = await client.aio.models.generate_content(
            model=GEMINI_IMAGE_MODEL,
            contents=parts,
            config=types.GenerateContentConfig(
                response_modalities=[types.Modality.IMAGE, types.Modality.TEXT],
            ),
        )
        return extract_image_data_url(response)

    except Exception as e:
        logger.exception("Error while generating the image")
        raise GenerationError(classify_error(e)) from e
