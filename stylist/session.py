"""Form state for one stylist client.

Holds what the user has entered so far, remembers their API key between
runs and drives a single generation at a time.
"""
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from stylist.config import API_KEY_STORAGE_KEY, API_KEY_STORE_PATH
from stylist.errors import StylistError
from stylist.gemini_service import generate_styled_image
from stylist.images import ImageFile

logger = logging.getLogger(__name__)

MISSING_API_KEY_MESSAGE = "Please provide your API key."
MISSING_INPUT_MESSAGE = "Please upload both images and enter a description."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."

Generator = Callable[[str, ImageFile, ImageFile, str, Optional[str]], Awaitable[str]]


class ApiKeyStore:
    """Small JSON key/value file holding the user's API key."""

    def __init__(self, path: Path = API_KEY_STORE_PATH, key: str = API_KEY_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str:
        value = self._read().get(self.key, "")
        return value if isinstance(value, str) else ""

    def save(self, api_key: str) -> None:
        data = self._read()
        data[self.key] = api_key
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)


class StylistSession:
    def __init__(self, key_store: Optional[ApiKeyStore] = None, generator: Generator = generate_styled_image):
        self.key_store = key_store
        self.generator = generator
        self.api_key: str = key_store.load() if key_store else ""
        self.model_image: Optional[ImageFile] = None
        self.product_image: Optional[ImageFile] = None
        self.product_mask: Optional[str] = None
        self.is_masker_open = False
        self.prompt = ""
        self.generated_image: Optional[str] = None
        self.is_loading = False
        self.error: Optional[str] = None

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key
        if self.key_store is not None:
            self.key_store.save(api_key)

    def select_model(self, image: ImageFile) -> None:
        self.model_image = image

    def select_product(self, image: ImageFile) -> None:
        self.product_image = image
        # A mask only makes sense for the image it was painted on.
        self.product_mask = None

    def set_prompt(self, prompt: str) -> None:
        self.prompt = prompt

    def open_masker(self) -> bool:
        if self.product_image is None:
            return False
        self.is_masker_open = True
        return True

    def close_masker(self) -> None:
        self.is_masker_open = False

    def save_mask(self, mask_data_url: str) -> None:
        self.product_mask = mask_data_url
        self.is_masker_open = False

    @property
    def is_generate_disabled(self) -> bool:
        return (
            not self.model_image
            or not self.product_image
            or not self.prompt
            or not self.api_key
            or self.is_loading
        )

    async def generate(self) -> Optional[str]:
        if not self.api_key:
            self.error = MISSING_API_KEY_MESSAGE
            return None
        if not self.model_image or not self.product_image or not self.prompt:
            self.error = MISSING_INPUT_MESSAGE
            return None

        self.is_loading = True
        self.error = None
        self.generated_image = None
        try:
            self.generated_image = await self.generator(
                self.api_key, self.model_image, self.product_image, self.prompt, self.product_mask
            )
        except StylistError as e:
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
        except Exception as e:
            logger.exception("Generation failed")
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
        finally:
            self.is_loading = False
        return self.generated_image
