import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .config import settings
from .db import close_mongo_connection, connect_to_mongo, get_collection, get_store
from .models import SearchRequest, SearchResponse
from .routing import RequestUrlGenerator
from .search_service import search
from .store import MongoContentStore, NodeNotFoundError

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Content Search", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

templates = Jinja2Templates(directory=settings.templates_dir)


@app.on_event("startup")
async def startup_event():
    await connect_to_mongo(app)
    logger.info("Connected to MongoDB")


@app.on_event("shutdown")
async def shutdown_event():
    await close_mongo_connection(app)
    logger.info("Closed MongoDB connection")


def request_locale(request: Request) -> str:
    """Primary language of the first Accept-Language tag, else the configured default."""
    header = request.headers.get("accept-language", "")
    first = header.split(",", 1)[0].split(";", 1)[0].strip()
    if not first or first == "*":
        return settings.default_locale
    return first.split("-", 1)[0].lower()


def requested_page(request: Request) -> int:
    raw = request.query_params.get(settings.page_parameter_key)
    if raw in (None, ""):
        return 1
    try:
        return int(raw)
    except ValueError as ve:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{settings.page_parameter_key} must be an integer",
        ) from ve


def requested_query(request: Request) -> str:
    return request.query_params.get(settings.query_parameter_key, "")


async def _render_search(request: Request, store: MongoContentStore, lang: Optional[str]) -> HTMLResponse:
    page = requested_page(request)
    query = requested_query(request)
    try:
        result_page = await search(
            store,
            RequestUrlGenerator(request),
            query,
            page,
            lang,
            request_locale=request_locale(request),
        )
    except ValueError as ve:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(ve)) from ve
    except Exception:
        logger.exception("Search failed")
        raise HTTPException(status_code=500, detail="Internal search error")

    context = {
        **result_page.template_context(),
        "queryParameterKey": settings.query_parameter_key,
        "pageParameterKey": settings.page_parameter_key,
    }
    return templates.TemplateResponse(request, "search.html", context)


@app.get("/search", response_class=HTMLResponse, name="search")
async def search_page(request: Request, store: MongoContentStore = Depends(get_store)):
    return await _render_search(request, store, None)


@app.get("/search/{lang}", response_class=HTMLResponse, name="search_lang")
async def search_page_lang(lang: str, request: Request, store: MongoContentStore = Depends(get_store)):
    return await _render_search(request, store, lang)


@app.post("/api/search", response_model=SearchResponse)
async def search_api(req: SearchRequest, request: Request, store: MongoContentStore = Depends(get_store)):
    try:
        result_page = await search(
            store,
            RequestUrlGenerator(request),
            req.query,
            req.page,
            req.lang,
            request_locale=request_locale(request),
            per_page=req.per_page,
        )
    except ValueError as ve:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(ve)) from ve
    except Exception:
        logger.exception("Search failed")
        raise HTTPException(status_code=500, detail="Internal search error")

    return SearchResponse(
        results=list(result_page.search_results.values()),
        total_count=result_page.estimated,
        page=result_page.start,
        per_page=result_page.per_page,
    )


@app.get("/content/{content_id:path}", name="content_show")
async def content_show(content_id: str, store: MongoContentStore = Depends(get_store)):
    try:
        node = await store.find_by_identifier(content_id)
    except NodeNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return JSONResponse(node)


@app.get("/health")
async def health():
    try:
        coll = get_collection()
        await coll.database.list_collection_names()
        return JSONResponse({"status": "ok"})
    except Exception:
        raise HTTPException(status_code=503, detail="MongoDB unreachable")
