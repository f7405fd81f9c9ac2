"""FastAPI application."""

import importlib
import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fieldguard.config import ValidatorSettings, forms_path
from fieldguard.forms.loader import FormLoader
from fieldguard.forms.validator import validate_forms_dir
from fieldguard.validation import (
    ConfigurationError,
    FormState,
    FormValidator,
    UploadInfo,
    register_builtin_rules,
)

logger = logging.getLogger(__name__)

# Global instances (initialized on startup)
form_loader: FormLoader | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load form definitions on startup."""
    global form_loader

    register_builtin_rules()

    # Modules that register custom rules and dependency callbacks
    for module in filter(None, os.environ.get("FIELDGUARD_FUNCTIONS", "").split(",")):
        importlib.import_module(module.strip())

    directory = forms_path()

    # Validate form YAML files against the JSON Schema (warn on errors, don't block startup)
    schema_issues = validate_forms_dir(directory)
    if schema_issues:
        for issue in schema_issues:
            if issue.severity == "error":
                logger.error("Form schema error: %s", issue)
            else:
                logger.warning("Form schema warning: %s", issue)
        logger.warning(
            "Form validation: %d issue(s). Run 'fieldguard forms check' for details.",
            len(schema_issues),
        )

    form_loader = FormLoader(directory)
    form_loader.load_all()
    logger.info("Loaded %d form(s) from %s", len(form_loader.list_forms()), directory)

    yield

    form_loader = None


app = FastAPI(title="fieldguard API", lifespan=lifespan)

# CORS for browser-side form rendering
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("FIELDGUARD_CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_form_loader() -> FormLoader:
    if form_loader is None:
        raise HTTPException(500, "Form loader not initialized")
    return form_loader


@app.get("/api/forms")
async def list_forms() -> dict[str, Any]:
    """List all loaded forms."""
    loader = _get_form_loader()
    return {
        "data": [
            {
                "name": name,
                "description": loader.forms[name].description,
                "fieldCount": len(loader.forms[name].fields),
            }
            for name in sorted(loader.list_forms())
        ]
    }


@app.get("/api/forms/{name}")
async def get_form(name: str) -> dict[str, Any]:
    """Get a form's fields and rule declarations for browser-side validation."""
    form = _get_form_loader().get_form(name)
    if not form:
        raise HTTPException(404, f"Form '{name}' not found")
    return {"data": form.to_dict()}


class UploadRequest(BaseModel):
    file_name: str = Field(alias="fileName")
    mime_type: str = Field(alias="mimeType")
    error_code: int = Field(default=0, alias="errorCode")
    byte_size: int = Field(default=0, alias="byteSize")


class ValidateRequest(BaseModel):
    values: dict[str, Any] = {}
    clicked_button: str | None = Field(default=None, alias="clickedButton")
    hidden: list[str] = []
    uploads: dict[str, UploadRequest] = {}
    validate_all: bool | None = Field(default=None, alias="validateAll")


@app.post("/api/forms/{name}/validate")
async def validate_submission(name: str, request: ValidateRequest) -> dict[str, Any]:
    """Run a server-side validation pass over a submission."""
    form = _get_form_loader().get_form(name)
    if not form:
        raise HTTPException(404, f"Form '{name}' not found")

    settings = form.settings
    if request.validate_all is not None:
        settings = ValidatorSettings.from_dict({"validateAll": request.validate_all}, base=settings)

    state = FormState(
        values=dict(request.values),
        clicked_button=request.clicked_button,
        hidden=set(request.hidden),
        uploads={
            field_id: UploadInfo(
                file_name=upload.file_name,
                mime_type=upload.mime_type,
                error_code=upload.error_code,
                byte_size=upload.byte_size,
            )
            for field_id, upload in request.uploads.items()
        },
    )

    try:
        result = await FormValidator(form, settings=settings, state=state).validate_all()
    except ConfigurationError as e:
        logger.error("Form '%s' is misconfigured: %s", name, e)
        raise HTTPException(500, str(e))

    return {"data": result.to_dict()}
