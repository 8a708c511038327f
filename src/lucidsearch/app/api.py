# lucidsearch/app/api.py
from __future__ import annotations

import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from lucidsearch.app.container import build_container
from lucidsearch.common import CancellationToken
from lucidsearch.common.errors import LucidSearchError, PipelineCancelled, VectorStoreError
from lucidsearch.config import GlobalConfig

app = FastAPI(title="LucidSearch API", version="0.1.0")
logger = logging.getLogger("lucidsearch.api")

DEFAULT_CONFIG_PATH = "config/config.yaml"
DISCONNECT_POLL_SECONDS = 0.5


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )


def normalize_query(raw: str | None) -> str:
    """Turn the raw ``query`` parameter into the search text (``+`` means space)."""
    if raw is None:
        return ""
    return raw.replace("+", " ").strip()


async def _cancel_on_disconnect(request: Request, token: CancellationToken) -> None:
    while not token.is_cancelled():
        if await request.is_disconnected():
            token.cancel("client disconnected")
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@app.on_event("startup")
def startup():
    # Docker passes the config location through the environment.
    cfg = GlobalConfig.load(os.environ.get("LUCIDSEARCH_CONFIG", DEFAULT_CONFIG_PATH))
    configure_logging(cfg.logging.get("level", "INFO"))
    container = build_container(cfg)
    container.startup()
    app.state.container = container


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/search", response_class=PlainTextResponse)
async def search(request: Request, query: str | None = None):
    q = normalize_query(query)
    if not q:
        raise HTTPException(status_code=400, detail="Search query must be provided")

    token = CancellationToken()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, token))
    try:
        answer = await run_in_threadpool(app.state.container.pipeline.answer, q, cancel_token=token)
    except PipelineCancelled:
        logger.info("Query %r abandoned by the client", q)
        return PlainTextResponse("", status_code=499)
    except VectorStoreError as e:
        logger.exception("Vector store failure while handling /search")
        raise HTTPException(status_code=503, detail=f"Vector store unavailable: {e.message}")
    except LucidSearchError as e:
        logger.exception("Upstream failure while handling /search")
        raise HTTPException(status_code=502, detail=f"{type(e).__name__}: {e.message}")
    except Exception as e:
        logger.exception("Error while handling /search")
        raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {e}")
    finally:
        watcher.cancel()

    return PlainTextResponse(answer)
