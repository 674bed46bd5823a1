"""Output Viewer API - contract-driven presentation service.

This API turns agent run outputs into presentation trees:
- View contracts per agent (sections, main-content blocks, rules)
- Rendering runs into renderer-agnostic node trees
- Markdown / HTML export of the same content
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src import __version__
from src.api.routes import contracts, render
from src.contracts.registry import get_contract_registry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Pre-load contract definitions
    logger.info("Loading view contracts...")
    contract_registry = get_contract_registry()
    logger.info(f"Loaded {contract_registry.count()} view contracts")

    logger.info("Output Viewer API ready")
    yield
    # Shutdown
    render.get_render_cache().clear()
    logger.info("Shutting down Output Viewer API")


# Create FastAPI app
app = FastAPI(
    title="Output Viewer API",
    description="""
## Contract-driven presentation service

Renders agent run outputs through per-agent view contracts so analysts
never read raw JSON. Outputs without a contract get an automatic layout.

### Key Endpoints

- `GET /v1/contracts` - List stored view contracts
- `GET /v1/contracts/{agent_id}` - Get an agent's contract
- `POST /v1/contracts/lint` - Lint a contract
- `POST /v1/render` - Render a run into a presentation tree
- `POST /v1/render/markdown` - Render a run as Markdown
""",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /v1 prefix
app.include_router(contracts.router, prefix="/v1")
app.include_router(render.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Output Viewer API",
        "version": __version__,
        "description": "Contract-driven presentation of agent outputs",
        "docs": "/docs",
        "endpoints": {
            "contracts": "/v1/contracts",
            "render": "/v1/render",
            "markdown": "/v1/render/markdown",
            "html": "/v1/render/html",
            "normalize": "/v1/render/normalize",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "contracts_loaded": get_contract_registry().count(),
        "render_cache_entries": len(render.get_render_cache()),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
    )
