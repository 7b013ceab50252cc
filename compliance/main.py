"""Entity Compliance Screening API.

Screens counterparties and their full beneficial ownership trees against
the sanctions (SDN) list and an internally curated blacklist, and keeps a
register of frequently checked entities.

Run with:
    python3 -m uvicorn compliance.main:app --host 0.0.0.0 --port 8000

Environment:
    DATA_DIR     directory holding sanctions_corpus.json, blacklist.json and
                 rules_config.json (default: ./data next to the package)
    SDN_API_URL  when set, sanctions are searched through this remote SDN
                 API instead of the local corpus file
    LOG_LEVEL    logging level (default: INFO)
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict

from fastapi import FastAPI

from compliance.models import BlacklistRecord, ThresholdsConfig
from compliance.routes import audit, blacklist, entities, rules, screening
from compliance.screening.engine import ComplianceEngine
from compliance.storage.memory import MemoryStore
from compliance.storage.sanctions import InMemorySanctionsCorpus, SdnApiLookup

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Resolve the data/ directory relative to this file so the server works
# regardless of which directory uvicorn is launched from.
DATA_DIR = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load reference data and initialize the compliance engine."""

    # Load tunable thresholds (or use defaults)
    rules_config_path = DATA_DIR / "rules_config.json"
    if rules_config_path.exists():
        with open(rules_config_path, "r") as f:
            config = ThresholdsConfig(**json.load(f))
    else:
        config = ThresholdsConfig()

    # Sanctions lookup: remote SDN API if configured, local corpus otherwise
    sdn_api_url = os.getenv("SDN_API_URL")
    if sdn_api_url:
        lookup = SdnApiLookup(sdn_api_url)
        logger.info("Using remote SDN search at %s", sdn_api_url)
    else:
        lookup = InMemorySanctionsCorpus.from_json(
            DATA_DIR / "sanctions_corpus.json",
            search_cutoff=config.corpus_search_cutoff,
        )

    # Seed the blacklist, if a seed file is present
    store = MemoryStore()
    blacklist_path = DATA_DIR / "blacklist.json"
    if blacklist_path.exists():
        with open(blacklist_path, "r", encoding="utf-8") as f:
            for record in json.load(f):
                store.add_blacklist(BlacklistRecord(**record))
        logger.info("Loaded %d blacklist records", len(store.list_blacklist()))

    engine = ComplianceEngine(lookup=lookup, store=store, config=config)

    # Attach to app state for dependency injection in routes
    app.state.engine = engine
    app.state.store = store
    app.state.config = config
    yield

    if isinstance(lookup, SdnApiLookup):
        await lookup.aclose()


app = FastAPI(
    title="Entity Compliance Screening API",
    description=(
        "Sanctions and blacklist screening of counterparties and their "
        "beneficial owners, with exact identifier matching and fuzzy name "
        "matching."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# Mount all API routers
app.include_router(screening.router)
app.include_router(blacklist.router)
app.include_router(entities.router)
app.include_router(rules.router)
app.include_router(audit.router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy"}
