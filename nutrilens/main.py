"""Main FastAPI application."""

import asyncio
import base64
import binascii
import logging
import sys
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from nutrilens.config import ALLOW_ALL_ORIGINS, CORS_ORIGINS, LOG_LEVEL, PipelineConfig, load_config
from nutrilens.errors import InvalidRequest, NutrilensError
from nutrilens.models import ImageInput, NutritionPayload
from nutrilens.nutrition import NutritionClient
from nutrilens.services import analyze_food_image
from nutrilens.vision import VisionClient

# -----------------------------------
# Инициализация приложения
# -----------------------------------

app = FastAPI(title="nutrilens")

logging.basicConfig(
    level=LOG_LEVEL,
    stream=sys.stdout,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# -----------------------------------
# CORS
# -----------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=not ALLOW_ALL_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
DEFAULT_CONTENT_TYPE = "image/jpeg"


# -----------------------------------
# Ошибки
# -----------------------------------

@app.exception_handler(NutrilensError)
async def nutrilens_error_handler(request: Request, exc: NutrilensError):
    if exc.status_code >= 500:
        logger.error("analyze error: %s (%s)", exc.error, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        content = {"error": "Method not allowed"}
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error in %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})


# -----------------------------------
# Зависимости
# -----------------------------------

def get_config() -> PipelineConfig:
    return load_config()


def get_vision_client(config: PipelineConfig = Depends(get_config)) -> VisionClient:
    return VisionClient(config)


def get_nutrition_client(config: PipelineConfig = Depends(get_config)) -> NutritionClient:
    return NutritionClient(config)


# -----------------------------------
# Входное изображение
# -----------------------------------

def _normalize_content_type(declared) -> str:
    content_type = (declared or "").split(";")[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        return DEFAULT_CONTENT_TYPE
    if content_type == "image/jpg":
        return "image/jpeg"
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidRequest("Unsupported image format", f"{content_type} (use jpeg/png/webp/gif)")
    return content_type


def _decode_base64_image(encoded: str, declared):
    # Accept both bare base64 and data URLs ("data:image/png;base64,...")
    if encoded.startswith("data:") and "," in encoded:
        header, encoded = encoded.split(",", 1)
        declared = declared or header[len("data:"):].split(";")[0]
    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequest("Invalid base64 image", str(e)) from e
    return data, declared


async def read_image(request: Request, max_bytes: int) -> ImageInput:
    """Pull one image out of a multipart upload or a JSON base64 body."""
    header = request.headers.get("content-type", "").lower()

    if header.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("image")
        if not isinstance(upload, UploadFile):
            raise InvalidRequest("No image uploaded")
        data = await upload.read()
        declared = upload.content_type
    elif "json" in header:
        try:
            body = await request.json()
        except ValueError as e:
            raise InvalidRequest("Invalid JSON body", str(e)) from e
        encoded = body.get("imageBase64") if isinstance(body, dict) else None
        if not isinstance(encoded, str) or not encoded.strip():
            raise InvalidRequest("No image provided")
        declared = body.get("contentType") if isinstance(body.get("contentType"), str) else None
        data, declared = _decode_base64_image(encoded.strip(), declared)
    else:
        raise InvalidRequest("No image provided")

    if not data:
        raise InvalidRequest("No image provided", "Image is empty")
    if len(data) > max_bytes:
        raise InvalidRequest("Image too large", f"{len(data)} bytes > {max_bytes} bytes")

    return ImageInput(data=data, content_type=_normalize_content_type(declared))


# -----------------------------------
# Тех. эндпоинты
# -----------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


# -----------------------------------
# /analyze: фото → КБЖУ
# -----------------------------------

@app.post("/analyze", response_model=NutritionPayload)
@app.post("/api/analyze", response_model=NutritionPayload)
async def analyze_photo(
    request: Request,
    config: PipelineConfig = Depends(get_config),
    vision_client: VisionClient = Depends(get_vision_client),
    nutrition_client: NutritionClient = Depends(get_nutrition_client),
):
    total_start = time.time()
    image = await read_image(request, config.max_image_bytes)
    logger.info(
        "[PIPELINE] Starting %s: %s bytes, content_type=%s",
        request.url.path,
        len(image.data),
        image.content_type,
    )

    payload = await asyncio.to_thread(analyze_food_image, image, vision_client, nutrition_client)

    logger.info(
        "[PIPELINE] %s completed successfully, total time: %sms",
        request.url.path,
        round((time.time() - total_start) * 1000, 2),
    )
    return payload
