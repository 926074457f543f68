"""Image helpers: uploads, resizing and base64/data-URL encoding."""
import base64
import binascii
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from stylist.config import ACCEPTED_MIME_TYPES, IMAGE_QUALITY
from stylist.errors import ImageProcessingError, ValidationError

_DATA_URL_MIME = re.compile(r":(.*?);")

# Pillow format name for each MIME type we can write back out.
_PIL_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
}
_MIME_BY_FORMAT = {fmt: mime for mime, fmt in _PIL_FORMATS.items()}


@dataclass
class ImageFile:
    """An uploaded image as it travels through the form."""

    data: bytes
    filename: str = "image.png"
    mime_type: str = "image/png"

    @property
    def preview_url(self) -> str:
        return f"data:{self.mime_type};base64,{file_to_base64(self)}"


def open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        # Pillow messages carry the BytesIO repr; keep them out of user-facing text.
        raise ImageProcessingError("Could not read the image data.") from e
    return image


def sniff_mime_type(data: bytes) -> Optional[str]:
    try:
        image = open_image(data)
    except ImageProcessingError:
        return None
    return _MIME_BY_FORMAT.get(image.format or "")


def load_upload(data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> ImageFile:
    """Validate raw upload bytes and wrap them in an ImageFile."""
    if not data:
        raise ValidationError("The uploaded file is empty.")
    if content_type in ACCEPTED_MIME_TYPES:
        open_image(data)
        mime_type = content_type
    else:
        mime_type = sniff_mime_type(data)
    if mime_type not in ACCEPTED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported image type {content_type or 'unknown'}; "
            f"accepted types are {', '.join(ACCEPTED_MIME_TYPES)}."
        )
    return ImageFile(data=data, filename=filename or "image", mime_type=mime_type)


def load_encoded(value: str, filename: str = "image") -> ImageFile:
    """Accept either a data URL or a bare base64 string."""
    if value.startswith("data:"):
        mime_type, data = data_url_to_part(value)
        return load_upload(data, filename, mime_type)
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"{filename} is not valid base64 data.") from e
    return load_upload(data, filename)


def fit_within(width: float, height: float, max_size: float) -> Tuple[int, int]:
    """Scale (width, height) so the longest edge is at most max_size."""
    if width > height:
        if width > max_size:
            height *= max_size / width
            width = max_size
    else:
        if height > max_size:
            width *= max_size / height
            height = max_size
    return max(1, round(width)), max(1, round(height))


def resize_image(image_file: ImageFile, max_size: int) -> ImageFile:
    """Return a copy of image_file no larger than max_size on its longest edge.

    The image is always re-encoded in its original MIME type, like a canvas
    export would be, so the returned bytes differ even when no scaling is needed.
    """
    image = ImageOps.exif_transpose(open_image(image_file.data))
    new_size = fit_within(image.width, image.height, max_size)
    if new_size != image.size:
        image = image.resize(new_size, Image.Resampling.LANCZOS)

    fmt = _PIL_FORMATS.get(image_file.mime_type, "PNG")
    mime_type = _MIME_BY_FORMAT[fmt]
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    buffer = BytesIO()
    save_kwargs = {"quality": IMAGE_QUALITY} if fmt in ("JPEG", "WEBP") else {}
    try:
        image.save(buffer, format=fmt, **save_kwargs)
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Could not encode {image_file.filename}: {e}") from e
    return ImageFile(data=buffer.getvalue(), filename=image_file.filename, mime_type=mime_type)


def file_to_base64(image_file: ImageFile) -> str:
    """Base64 payload without the data URL prefix."""
    return base64.b64encode(image_file.data).decode("ascii")


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_part(data_url: str) -> Tuple[str, bytes]:
    """Split a data URL into (mime_type, raw bytes); the MIME defaults to PNG."""
    header, sep, payload = data_url.partition(",")
    if not sep:
        raise ValidationError("Malformed data URL.")
    match = _DATA_URL_MIME.search(header)
    mime_type = match.group(1) if match and match.group(1) else "image/png"
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Data URL does not contain valid base64 data.") from e
    return mime_type, data
