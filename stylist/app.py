import logging
from importlib import resources
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from stylist import __version__
from stylist.config import get_cors_origins
from stylist.errors import GenerationError, ImageProcessingError, ValidationError
from stylist.gemini_service import generate_styled_image
from stylist.images import ImageFile, load_encoded, load_upload
from stylist.logging_config import setup_logging
from stylist.masking import Stroke, fit_canvas_size, render_strokes
from stylist.schemas import MaskPayload, MaskResponse, StylePayload, StyleResponse

logger = logging.getLogger(__name__)

# --- 1. FastAPI Application Setup ---
app = FastAPI(
    title="AI Product Stylist API",
    description="Composites a product photo onto a model photo with a Gemini image model.",
    version=__version__,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- 2. Client page ---
@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    page = resources.files("stylist").joinpath("static/index.html").read_text(encoding="utf-8")
    return HTMLResponse(page)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


# --- 3. Masking ---
@app.post("/api/mask", response_model=MaskResponse)
async def render_mask(payload: MaskPayload):
    if payload.canvasWidth and payload.canvasHeight:
        canvas_size = (payload.canvasWidth, payload.canvasHeight)
    elif payload.viewportWidth and payload.viewportHeight:
        canvas_size = fit_canvas_size(
            (payload.imageWidth, payload.imageHeight),
            (payload.viewportWidth, payload.viewportHeight),
        )
    else:
        canvas_size = (payload.imageWidth, payload.imageHeight)

    strokes = []
    for index, stroke in enumerate(payload.strokes):
        if any(len(point) != 2 for point in stroke.points):
            raise HTTPException(status_code=400, detail=f"Stroke {index} has a point that is not an [x, y] pair.")
        strokes.append(Stroke(brush_size=stroke.brushSize, points=[(p[0], p[1]) for p in stroke.points]))
    canvas = render_strokes(strokes, canvas_size)

    export_size = (payload.imageWidth, payload.imageHeight) if payload.scaleToImage else canvas.size
    return MaskResponse(
        maskDataUrl=canvas.to_data_url(export_size),
        width=export_size[0],
        height=export_size[1],
        coverage=round(canvas.coverage(), 4),
    )


# --- 4. Generation ---
async def _generate(
    api_key: Optional[str],
    model_image: ImageFile,
    product_image: ImageFile,
    prompt: str,
    product_mask: Optional[str],
) -> StyleResponse:
    if not prompt.strip():
        raise HTTPException(status_code=400, detail="Please upload both images and enter a description.")
    try:
        image_url = await generate_styled_image(api_key, model_image, product_image, prompt, product_mask)
    except (ValidationError, ImageProcessingError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return StyleResponse(imageUrl=image_url)


@app.post("/api/generate", response_model=StyleResponse)
async def generate(payload: StylePayload):
    try:
        model_image = load_encoded(payload.modelImage, "model image")
        product_image = load_encoded(payload.productImage, "product image")
    except (ValidationError, ImageProcessingError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _generate(payload.apiKey, model_image, product_image, payload.prompt, payload.productMask)


@app.post("/api/generate/upload", response_model=StyleResponse)
async def generate_upload(
    model_image: UploadFile = File(..., description="Photo of the model"),
    product_image: UploadFile = File(..., description="Photo of the product"),
    prompt: str = Form(...),
    product_mask: Optional[str] = Form(None, description="PNG data URL of the product mask"),
    api_key: Optional[str] = Form(None),
):
    try:
        model_file = load_upload(await model_image.read(), model_image.filename, model_image.content_type)
        product_file = load_upload(await product_image.read(), product_image.filename, product_image.content_type)
    except (ValidationError, ImageProcessingError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _generate(api_key, model_file, product_file, prompt, product_mask or None)


# --- 5. Run the Application ---
def main(host: str = "127.0.0.1", port: int = 8000) -> None:
    setup_logging()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
