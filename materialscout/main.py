import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from materialscout.api_keys import api_keys_manager
from materialscout.bibliography import search_bibliography
from materialscout.config_loader import get_config
from materialscout.database import db
from materialscout.logic.excluded_terms import ExcludedTermCache
from materialscout.models import (
    BibliographyRequest,
    BibliographyResponse,
    PropertyLookupRequest,
    PropertyLookupResult,
    SearchRequest,
    SearchResponse,
)
from materialscout.property_lookup import lookup_property
from materialscout.retriever import search_materials

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Material Scout API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One cache per process, shared by all requests
app.state.excluded_terms = ExcludedTermCache(
    db.get_excluded_terms,
    ttl_seconds=get_config().excluded_terms.ttl_seconds,
)


@app.on_event("startup")
async def startup_event():
    """Warm up connections and caches on server start."""
    print("🚀 Starting server warmup...")
    db.warmup()
    terms = app.state.excluded_terms.get_or_refresh()
    print(f"✓ Excluded terms loaded: {len(terms)}")
    llm_providers = api_keys_manager.get_configured_providers(kind="llm")
    data_providers = api_keys_manager.get_configured_providers(kind="data")
    print(f"✓ LLM providers: {', '.join(llm_providers) if llm_providers else 'none (AI steps disabled)'}")
    print(f"✓ Keyed data providers: {', '.join(data_providers) if data_providers else 'none'}")
    print("✅ Server ready!")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 with a single error message."""
    errors = exc.errors()
    if request.url.path == "/property-lookup":
        return _error(400, "Material name and property name are required")
    if request.url.path in ("/search", "/bibliography-search"):
        locations = [tuple(err.get("loc", ())) for err in errors]
        if any(loc == ("body",) or "query" in loc for loc in locations):
            return _error(400, "Query is required")
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ())[1:])
    return _error(400, f"Invalid request: {location} {first.get('msg', '')}".strip())


@app.get("/")
async def root():
    return {"message": "Material Scout API is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/search", response_model=SearchResponse)
def search(body: SearchRequest, request: Request):
    """Multi-source material search with optional requirement validation.

    Runs in FastAPI's threadpool: the pipeline fans out over blocking
    Neo4j, HTTP and LLM clients.
    """
    if not body.query.strip():
        return _error(400, "Query is required")
    try:
        return search_materials(body, request.app.state.excluded_terms)
    except Exception as e:
        logger.exception(f"[Search] Unhandled error for '{body.query}'")
        return _error(500, str(e))


@app.post("/property-lookup", response_model=PropertyLookupResult)
def property_lookup(body: PropertyLookupRequest):
    """Literature-backed value for one property of one material."""
    if not body.material_name.strip() or not body.property_name.strip():
        return _error(400, "Material name and property name are required")
    try:
        return lookup_property(body.material_name.strip(), body.property_name.strip())
    except Exception as e:
        logger.exception("[PropertyLookup] Unhandled error")
        return _error(500, str(e))


@app.post("/bibliography-search", response_model=BibliographyResponse)
def bibliography_search(body: BibliographyRequest):
    """Research articles about a material from PubMed, CrossRef and the AI step."""
    if not body.query.strip():
        return _error(400, "Query is required")
    try:
        return search_bibliography(body)
    except Exception as e:
        logger.exception(f"[Bibliography] Unhandled error for '{body.query}'")
        return _error(500, str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
