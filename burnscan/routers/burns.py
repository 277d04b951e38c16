import base64
import binascii
import logging
import time
from datetime import datetime

from fastapi import APIRouter, File, HTTPException, UploadFile

from burnscan.exceptions import ConfigurationError, InferenceFailure, InvalidInput
from burnscan.models import BurnClassificationRequest, BurnClassificationResponse
from burnscan.services.burn_scan_service import burn_scan_service

router = APIRouter(prefix="/api/burns", tags=["burns"])

logger = logging.getLogger(__name__)


def _decode_base64_image(payload: str) -> bytes:
    # Accept data URIs as sent by browsers ("data:image/jpeg;base64,...")
    if "," in payload:
        _, encoded = payload.split(",", 1)
    else:
        encoded = payload
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput(f"Invalid base64 image: {e}") from e


def _classify(content: bytes) -> BurnClassificationResponse:
    start_time = time.perf_counter()
    try:
        result = burn_scan_service.classify(content)
    except InvalidInput as e:
        logger.error(f"Invalid image: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except InferenceFailure as e:
        logger.error(f"Inference failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except ConfigurationError as e:
        logger.error(f"Burn model not configured: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    payload = result.to_dict()
    return BurnClassificationResponse(
        final_label=payload["final_label"],
        detected=payload["detected"],
        state=payload["state"],
        diagnostics={**payload["diagnostics"], "trace": payload["trace"]},
        analysis_date=datetime.now().isoformat(),
        execution_times={"classify": f"{(time.perf_counter() - start_time):.3f}s"},
    )


@router.post("/classify", response_model=BurnClassificationResponse)
def classify_upload(file: UploadFile = File(...)):
    """Classifies an uploaded photo."""
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return _classify(content)


@router.post("/classify/base64", response_model=BurnClassificationResponse)
def classify_base64(payload: BurnClassificationRequest):
    """Classifies a base64 (or data URI) encoded photo."""
    try:
        content = _decode_base64_image(payload.base64_image)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not content:
        raise HTTPException(status_code=400, detail="Image content is empty")
    return _classify(content)
