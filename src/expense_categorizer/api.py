"""HTTP API for expense categorization.

Routes (under ``Settings.api_prefix``, ``/api/categorize`` by default):

- ``POST {prefix}``         classify one description
- ``POST {prefix}/batch``   classify several descriptions, in order
- ``GET  {prefix}/status``  training state and model location
- ``POST {prefix}/train``   administrative (re)training trigger

Successful responses share the envelope
``{"success": true, "data": ..., "timestamp": ...}``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .classifier import CategoryClassifier
from .config import Settings
from .errors import MalformedInputError, NotTrainedError
from .models import TrainingExample
from .storage import store_from_settings
from .training_data import build_training_set

logger = logging.getLogger(__name__)

NOT_TRAINED_MESSAGE = "ML model is not trained yet. Please train the model first."


class CategorizeRequest(BaseModel):
    description: Any = None


class BatchCategorizeRequest(BaseModel):
    descriptions: Any = None


class TrainRequest(BaseModel):
    retrain: bool = True
    examples: Optional[list[Any]] = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ok(data: Any) -> dict:
    return {"success": True, "data": data, "timestamp": _timestamp()}


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body = {"error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def _not_trained() -> JSONResponse:
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "not trained", NOT_TRAINED_MESSAGE)


def get_classifier(request: Request) -> CategoryClassifier:
    return request.app.state.classifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


router = APIRouter()


@router.post("")
def categorize(body: CategorizeRequest, classifier: CategoryClassifier = Depends(get_classifier)):
    """Suggest a category for one expense description."""
    if not isinstance(body.description, str) or not body.description:
        return _error(status.HTTP_400_BAD_REQUEST, "Description is required and must be a string")

    try:
        result = classifier.classify(body.description)
    except NotTrainedError:
        return _not_trained()
    except Exception as exc:
        logger.exception("Classification error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Classification failed", str(exc))

    return _ok(result.to_dict())


@router.post("/batch")
def categorize_batch(
    body: BatchCategorizeRequest,
    classifier: CategoryClassifier = Depends(get_classifier),
):
    """Classify a list of descriptions; failed items fall back to ``Other``."""
    if not isinstance(body.descriptions, list):
        return _error(status.HTTP_400_BAD_REQUEST, "Descriptions must be an array")

    try:
        results = classifier.classify_batch(body.descriptions)
    except NotTrainedError:
        return _not_trained()
    except Exception as exc:
        logger.exception("Batch classification error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Batch classification failed", str(exc))

    return _ok([r.to_dict() for r in results])


@router.get("/status")
def model_status(classifier: CategoryClassifier = Depends(get_classifier)):
    try:
        return _ok(classifier.get_status().to_dict())
    except Exception as exc:
        logger.exception("Status check failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get model status", str(exc))


@router.post("/train")
def train_model(
    body: TrainRequest,
    classifier: CategoryClassifier = Depends(get_classifier),
    settings: Settings = Depends(get_settings),
    x_admin_token: Optional[str] = Header(default=None),
):
    """Train on supplied examples, or on the built-in catalog when none are given."""
    if settings.admin_token and x_admin_token != settings.admin_token:
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid admin token")

    try:
        if body.examples is None:
            examples = build_training_set()
        else:
            examples = [TrainingExample.from_dict(item) for item in body.examples]
    except MalformedInputError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid training data", str(exc))
    if not examples:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid training data", "No examples supplied")

    try:
        report = classifier.retrain(examples) if body.retrain else classifier.train(examples)
    except Exception as exc:
        logger.exception("Training failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Training failed", str(exc))

    return _ok(report.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    classifier: Optional[CategoryClassifier] = None,
) -> FastAPI:
    """Build the application and its classifier.

    Args:
        settings: Configuration; read from the environment when omitted.
        classifier: Pre-built classifier (tests inject one); otherwise one is
            created over the configured model store.
    """
    settings = settings or Settings.from_env()
    if classifier is None:
        classifier = CategoryClassifier(store_from_settings(settings))

    app = FastAPI(title="Expense Categorizer", version=__version__, debug=settings.debug)
    app.state.settings = settings
    app.state.classifier = classifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": app.title, "timestamp": _timestamp()}

    app.include_router(router, prefix=settings.api_prefix, tags=["Categorize"])
    return app
