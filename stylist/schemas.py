from typing import List, Optional

from pydantic import BaseModel, Field

from stylist.config import MAX_MASK_SIZE_PX, MAX_MASK_STROKES, MAX_STROKE_POINTS


class StylePayload(BaseModel):
    modelImage: str = Field(..., description="Model photo as a data URL or bare base64 string.")
    productImage: str = Field(..., description="Product photo as a data URL or bare base64 string.")
    prompt: str = Field(..., description="Styling instruction, e.g. 'The model wears this t-shirt'.")
    productMask: Optional[str] = Field(None, description="PNG data URL; white marks the product to keep.")
    apiKey: Optional[str] = Field(None, description="Gemini API key; falls back to the server's key.")


class StyleResponse(BaseModel):
    imageUrl: str = Field(..., description="The generated image as a data URL.")


class StrokePayload(BaseModel):
    brushSize: int = Field(40, description="Brush diameter in canvas pixels (clamped to 5-150).")
    points: List[List[float]] = Field(
        default_factory=list,
        max_length=MAX_STROKE_POINTS,
        description="[x, y] pairs in canvas coordinates.",
    )


class MaskPayload(BaseModel):
    imageWidth: int = Field(..., gt=0, le=MAX_MASK_SIZE_PX)
    imageHeight: int = Field(..., gt=0, le=MAX_MASK_SIZE_PX)
    canvasWidth: Optional[int] = Field(
        None, gt=0, le=MAX_MASK_SIZE_PX, description="Canvas size the strokes were recorded on."
    )
    canvasHeight: Optional[int] = Field(None, gt=0, le=MAX_MASK_SIZE_PX)
    viewportWidth: Optional[int] = Field(
        None, gt=0, le=MAX_MASK_SIZE_PX, description="Used to size the canvas when none is given."
    )
    viewportHeight: Optional[int] = Field(None, gt=0, le=MAX_MASK_SIZE_PX)
    strokes: List[StrokePayload] = Field(default_factory=list, max_length=MAX_MASK_STROKES)
    scaleToImage: bool = Field(False, description="Export at the product image size instead of the canvas size.")


class MaskResponse(BaseModel):
    maskDataUrl: str
    width: int
    height: int
    coverage: float = Field(..., description="Fraction of the mask painted white.")
