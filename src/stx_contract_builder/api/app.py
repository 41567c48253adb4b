"""FastAPI application for the STX Contract Builder.

This module exposes a small HTTP API around ContractPipeline.

Usage (from project root, after installing fastapi and uvicorn):

    uvicorn stx_contract_builder.api.app:app --reload

Configuration is read from ``STX_BUILDER_*`` environment variables.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config.config_manager import ConfigurationManager
from ..config.models import PipelineConfig
from ..generators.exceptions import GenerationError
from ..models.template import ContractTemplate
from ..pipeline import ContractPipeline, TemplateIntegrityError
from ..validation.validator import has_errors


logger = logging.getLogger(__name__)


class InterpretRequest(BaseModel):
    text: str = ""


class GenerateRequest(BaseModel):
    template_id: str
    placeholders: Dict[str, Any] = Field(default_factory=dict)


class ValidateRequest(BaseModel):
    source: Optional[str] = None
    template_id: Optional[str] = None
    placeholders: Optional[Dict[str, Any]] = None


class BuildRequest(BaseModel):
    template_id: str
    text: Optional[str] = None
    overrides: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None


def _load_config_from_env() -> PipelineConfig:
    manager = ConfigurationManager()
    manager.apply_env_overrides()
    return manager.configuration


def create_app(
    config: Optional[PipelineConfig] = None,
    pipeline: Optional[ContractPipeline] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Pipeline configuration. Read from the environment when
            neither a config nor a pipeline is given.
        pipeline: Pre-built pipeline to serve. It is closed on shutdown.
    """
    if pipeline is None:
        config = config or _load_config_from_env()
        pipeline = ContractPipeline(config=config)
    else:
        config = pipeline.config

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        pipeline.close()

    app = FastAPI(title="STX Contract Builder API", version=__version__, lifespan=lifespan)
    app.state.pipeline = pipeline

    @app.exception_handler(GenerationError)
    async def generation_error_handler(_request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=422, content=exc.to_dict())

    @app.exception_handler(TemplateIntegrityError)
    async def integrity_error_handler(_request: Request, exc: TemplateIntegrityError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.message, "integrity": exc.result.to_dict()},
        )

    def _get_template(template_id: str) -> ContractTemplate:
        try:
            return pipeline.registry.get(template_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown template: {template_id}") from exc

    def _resolve(template_id: str) -> ContractTemplate:
        _get_template(template_id)
        template, _ = pipeline.resolve_template(template_id)
        return template

    @app.post("/api/interpret")
    async def interpret(body: InterpretRequest) -> JSONResponse:
        """Interpret a natural-language request into a template intent."""
        intent = pipeline.interpret(body.text)
        return JSONResponse(status_code=200, content=intent.to_dict())

    @app.get("/api/templates")
    async def list_templates() -> JSONResponse:
        templates = [t.to_dict(include_source=False) for t in pipeline.registry]
        return JSONResponse(status_code=200, content={"templates": templates})

    @app.get("/api/templates/{template_id}")
    async def get_template(template_id: str) -> JSONResponse:
        template = _get_template(template_id)
        payload = template.to_dict()
        payload["integrity"] = pipeline.registry.verify(template).to_dict()
        return JSONResponse(status_code=200, content=payload)

    @app.post("/api/generate")
    async def generate(body: GenerateRequest) -> JSONResponse:
        """Fill a template with explicit placeholder values.

        Invalid values are rejected with 422 and the offending key.
        """
        template = _resolve(body.template_id)
        contract = pipeline.generator.generate(template, body.placeholders)
        issues = pipeline.validator.validate_source(contract.source)
        return JSONResponse(
            status_code=200,
            content={
                "contract": contract.to_dict(),
                "issues": [i.to_dict() for i in issues],
                "has_errors": has_errors(issues),
            },
        )

    @app.post("/api/validate")
    async def validate(body: ValidateRequest) -> JSONResponse:
        """Validate placeholder values, contract source, or both."""
        if body.source is None and body.template_id is None:
            raise HTTPException(status_code=400, detail="Provide 'source' and/or 'template_id'")

        issues = []
        if body.template_id is not None:
            template = _get_template(body.template_id)
            issues.extend(pipeline.validator.validate_inputs(template, body.placeholders or {}))
        if body.source is not None:
            issues.extend(pipeline.validator.validate_source(body.source))

        return JSONResponse(
            status_code=200,
            content={
                "issues": [i.to_dict() for i in issues],
                "has_errors": has_errors(issues),
            },
        )

    @app.post("/api/build")
    async def build(body: BuildRequest) -> JSONResponse:
        """Run the full interpret, verify, generate and validate flow."""
        _get_template(body.template_id)
        result = pipeline.build(
            body.template_id,
            text=body.text,
            overrides=body.overrides,
            user_id=body.user_id,
        )
        return JSONResponse(status_code=200, content=result.to_dict())

    @app.get("/api/diagnostics")
    async def diagnostics() -> JSONResponse:
        return JSONResponse(status_code=200, content=pipeline.diagnostics())

    logger.info("STX Contract Builder API created")
    return app


app = create_app()
