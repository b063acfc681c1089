"""
Price Collector - FastAPI Application
Main entry point with REST API endpoints.
"""
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from price_collector import __version__
from price_collector.adapters.api_client import ProductApiClient, ProductApiError
from price_collector.adapters.dom import SoupDocument
from price_collector.adapters.page_fetcher import PageFetcher, PageUnavailableError
from price_collector.adapters.storage import LocalStore
from price_collector.config import config
from price_collector.extractors.selection import parse_selection
from price_collector.generators.export import CollectionExporter
from price_collector.layers.extraction import ExtractionLayer
from price_collector.layers.site_detection import SiteDetectionLayer
from price_collector.models.product import ExportFormat, ProductDraft, SelectionResult, Settings
from price_collector.utils.logger import get_logger, set_trace_id


# Initialize FastAPI app
app = FastAPI(
    title="Price Collector",
    description="Collects product title, price and image data from e-commerce pages",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize layers
site_detection = SiteDetectionLayer()
extraction_layer = ExtractionLayer()
page_fetcher = PageFetcher()
exporter = CollectionExporter()
store = LocalStore.from_config()

logger = get_logger("main")


def make_api_client(settings: Settings) -> ProductApiClient:
    return ProductApiClient(endpoint=settings.api_endpoint, api_key=settings.api_key)


# Request/Response models
class ExtractRequest(BaseModel):
    """Request model for page extraction."""
    url: str
    html: Optional[str] = None  # Page markup; fetched from url when omitted
    backfill: Optional[bool] = None  # Fill gaps from the generic extractor


class SelectionRequest(BaseModel):
    """Request model for selected-text parsing."""
    text: str
    url: Optional[str] = None


class SaveProductRequest(BaseModel):
    """Request model for adding a product to the collection."""
    product: ProductDraft
    notes: Optional[str] = None


class ProductPageResponse(BaseModel):
    """Response model for product-page recognition."""
    url: str
    family: str
    site: str
    is_product_page: bool


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/api/extract", response_model=ProductDraft)
async def extract_product(request: ExtractRequest):
    """
    Extract a product draft from a page.

    Uses the supplied HTML when present, otherwise fetches the URL.
    A page that cannot be fetched answers 502 with status ``no_response``.
    """
    trace_id = set_trace_id()

    logger.info(
        "extraction_request",
        url=request.url,
        html_supplied=request.html is not None,
        backfill=request.backfill,
        trace_id=trace_id,
    )

    if request.html is not None:
        document = SoupDocument.from_html(request.url, request.html)
    else:
        try:
            document = await page_fetcher.fetch_document(request.url)
        except PageUnavailableError as e:
            return JSONResponse(
                status_code=502,
                content={
                    "status": "no_response",
                    "url": request.url,
                    "error": e.reason,
                    "trace_id": trace_id,
                },
            )

    backfill = request.backfill
    if backfill is None:
        backfill = store.get_settings().backfill_with_generic

    return extraction_layer.extract(document, backfill_with_generic=backfill)


@app.post("/api/selection", response_model=SelectionResult)
async def parse_selected_text(request: SelectionRequest):
    """Split freeform selected text into title and price."""
    trace_id = set_trace_id()
    logger.info("selection_request", url=request.url, length=len(request.text), trace_id=trace_id)
    return parse_selection(request.text)


@app.get("/api/product-page", response_model=ProductPageResponse)
async def product_page(url: str = Query(..., description="Page URL to classify")):
    """Report the site family and whether the URL is a product page."""
    set_trace_id()
    result = site_detection.detect(url)
    return ProductPageResponse(
        url=url,
        family=result.family.value,
        site=result.label,
        is_product_page=result.is_product_page,
    )


@app.get("/api/products")
async def list_products():
    """Return the saved product collection."""
    products = store.list_products()
    return {"products": products, "count": len(products)}


@app.post("/api/products")
async def save_product(request: SaveProductRequest):
    """Append a product (with optional notes) to the collection."""
    trace_id = set_trace_id()

    draft = request.product
    if request.notes is not None:
        draft = draft.with_notes(request.notes)
    products = store.add_product(draft)

    logger.info("product_saved", site=draft.site, count=len(products), trace_id=trace_id)
    return {"success": True, "count": len(products), "product": draft}


@app.delete("/api/products")
async def clear_products():
    """Remove every saved product."""
    set_trace_id()
    store.clear_products()
    return {"success": True, "count": 0}


@app.get("/api/export")
async def export_products(
    format: Optional[ExportFormat] = Query(None, description="csv or json; defaults to the saved setting"),
):
    """Download the collection as a dated CSV or JSON file."""
    trace_id = set_trace_id()

    products = store.list_products()
    if not products:
        raise HTTPException(status_code=400, detail="No products to export")

    export_format = format or store.get_settings().export_format
    body, filename, media_type = exporter.export(products, export_format)

    logger.info("export_request", format=export_format.value, count=len(products), trace_id=trace_id)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/settings", response_model=Settings)
async def get_settings():
    return store.get_settings()


@app.put("/api/settings", response_model=Settings)
async def update_settings(settings: Settings):
    set_trace_id()
    return store.save_settings(settings)


@app.post("/api/settings/test-connection")
async def test_connection():
    """Probe the configured remote API's health endpoint."""
    trace_id = set_trace_id()

    api_client = make_api_client(store.get_settings())
    if not api_client.is_configured():
        raise HTTPException(status_code=400, detail="Please enter API endpoint and key")

    try:
        healthy = await api_client.health()
    except ProductApiError as e:
        logger.error("connection_test_error", error=str(e), trace_id=trace_id)
        raise HTTPException(status_code=502, detail=f"Cannot reach server: {str(e)}")

    return {"success": healthy}


@app.post("/api/products/sync")
async def sync_products():
    """
    Send the whole collection to the remote product API.

    Requires database export to be enabled with an endpoint and key.
    """
    trace_id = set_trace_id()

    settings = store.get_settings()
    if not settings.is_api_ready():
        raise HTTPException(status_code=400, detail="Please configure database settings first")

    products = store.list_products()
    if not products:
        raise HTTPException(status_code=400, detail="No products to export")

    logger.info("sync_request", count=len(products), trace_id=trace_id)

    try:
        inserted = await make_api_client(settings).submit_bulk(products)
    except ProductApiError as e:
        logger.error("sync_error", error=str(e), status_code=e.status_code, trace_id=trace_id)
        raise HTTPException(status_code=502, detail=f"Export failed: {str(e)}")

    return {"success": True, "insertedCount": inserted}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
