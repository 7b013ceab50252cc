"""Threshold configuration endpoints for reading and updating score cutoffs."""

from fastapi import APIRouter, Request

from compliance.models import ThresholdsConfig
from compliance.storage.sanctions import InMemorySanctionsCorpus

router = APIRouter(prefix="/api")


@router.get("/rules", response_model=ThresholdsConfig)
async def get_rules(request: Request) -> ThresholdsConfig:
    """Return the current thresholds configuration."""
    return request.app.state.config


@router.put("/rules", response_model=ThresholdsConfig)
async def update_rules(
    new_config: ThresholdsConfig,
    request: Request,
) -> ThresholdsConfig:
    """Update the thresholds configuration.

    Updates both the app-level config and the engine's config reference
    so that subsequent checks use the new thresholds immediately.
    """
    request.app.state.config = new_config
    engine = request.app.state.engine
    engine.config = new_config
    if isinstance(engine.lookup, InMemorySanctionsCorpus):
        engine.lookup.search_cutoff = new_config.corpus_search_cutoff
    return new_config
