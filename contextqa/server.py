# contextqa/server.py
import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from contextqa.errors import ContextQAError, GatewayError
from contextqa.llm.gateway import AnswerGateway
from contextqa.rag.corpus import load_corpus
from contextqa.rag.embedder import Embedder
from contextqa.rag.index import SimilarityIndex, build_index, find_best_match
from contextqa.settings import Settings, load_settings

logger = logging.getLogger(__name__)

NO_CONTEXT_MSG = "No suitable context found for the provided query."
FAILURE_MSG = "Failed to get a response from the external API."
STARTING_MSG = "Service is starting up, please retry shortly."
UNAVAILABLE_MSG = "Service unavailable: retrieval model failed to load."


# ---------------------------
# Startup lifecycle
# ---------------------------
class ServiceState:
    """
    Owns the embedder and the similarity index.

    state: idle -> loading -> ready | failed. The index is only handed out
    once the state is "ready"; it is never rebuilt afterwards.
    """

    def __init__(self, corpus: Sequence[str], embedder_factory: Callable[[], object]):
        self.corpus: List[str] = list(corpus)
        self._factory = embedder_factory
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._index: Optional[SimilarityIndex] = None
        self.state = "idle"
        self.error = ""
        self.started_at: Optional[int] = None
        self.finished_at: Optional[int] = None

    def initialize(self) -> bool:
        """Load the model and embed the corpus. Returns True when ready."""
        with self._lock:
            if self.state != "idle":
                return self.state == "ready"
            self.state = "loading"
            self.started_at = int(time.time())

        t0 = time.time()
        try:
            embedder = self._factory()
            index = build_index(self.corpus, embedder)
        except Exception as e:
            logger.error("Startup failed, /query will not be served: %s", e)
            with self._lock:
                self.state = "failed"
                self.error = str(e)
                self.finished_at = int(time.time())
            self._done.set()
            return False

        with self._lock:
            self._index = index
            self.state = "ready"
            self.finished_at = int(time.time())
        self._done.set()
        logger.info("Model loaded and context embeddings precomputed in %.1fs", time.time() - t0)
        return True

    def start_async(self) -> bool:
        with self._lock:
            if self.state != "idle":
                return False
        t = threading.Thread(target=self.initialize, name="contextqa-startup", daemon=True)
        t.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until startup finished; True if it ended ready."""
        self._done.wait(timeout)
        return self.ready_index() is not None

    def ready_index(self) -> Optional[SimilarityIndex]:
        with self._lock:
            return self._index if self.state == "ready" else None

    def status(self) -> Dict[str, object]:
        with self._lock:
            return {
                "ready": self.state == "ready",
                "state": self.state,
                "corpus_size": len(self.corpus),
                "error": self.error,
                "started_at": self.started_at,
                "finished_at": self.finished_at,
            }


# ---------------------------
# Schemas
# ---------------------------
class QueryRequest(BaseModel):
    userString: str


# ---------------------------
# FastAPI app
# ---------------------------
def create_app(
    settings: Optional[Settings] = None,
    corpus: Optional[Sequence[str]] = None,
    embedder_factory: Optional[Callable[[], object]] = None,
    gateway: Optional[AnswerGateway] = None,
    start_loading: bool = True,
) -> FastAPI:
    settings = settings or load_settings()
    if corpus is None:
        corpus = load_corpus(settings.corpus_path)
    if embedder_factory is None:
        def embedder_factory():
            return Embedder(settings.embedder_model)
    if gateway is None:
        gateway = AnswerGateway(settings.api_url, settings.api_key, timeout=settings.api_timeout)

    service = ServiceState(corpus, embedder_factory)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if start_loading:
            service.start_async()
        yield

    app = FastAPI(
        title="Context QA",
        version="1.0.0",
        description="Picks the closest reference text for a query and asks a remote QA model.",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.gateway = gateway
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def hello():
        return {"message": "Hello from server!"}

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "embedder_model": settings.embedder_model, **service.status()}

    @app.post("/query")
    def query(req: QueryRequest):
        index = service.ready_index()
        if index is None:
            msg = UNAVAILABLE_MSG if service.state == "failed" else STARTING_MSG
            return PlainTextResponse(msg, status_code=503)

        user_query = req.userString
        try:
            match = find_best_match(user_query, index)
        except ContextQAError as e:
            logger.error("Retrieval failed: %s", e)
            return PlainTextResponse(FAILURE_MSG, status_code=500)
        except Exception:
            logger.exception("Unexpected retrieval error")
            return PlainTextResponse(FAILURE_MSG, status_code=500)

        if not match.found:
            return PlainTextResponse(NO_CONTEXT_MSG, status_code=400)

        context = index.entry(match.best_index).text
        logger.debug("Matched context #%d (score=%.4f)", match.best_index, match.best_score)
        try:
            payload = gateway.ask(context, user_query)
            return JSONResponse(content=payload)
        except GatewayError as e:
            logger.error("Error while querying the external API: %s", e)
        except ValueError as e:
            # NaN/Infinity parse fine but cannot be re-encoded
            logger.error("External API payload is not valid JSON for the response: %s", e)
        return PlainTextResponse(FAILURE_MSG, status_code=500)

    return app


def main():
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    import uvicorn

    logger.info("Server listening on %s:%d", settings.host, settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
