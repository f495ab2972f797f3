import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cms.cache import cache
from cms.config import settings
from cms.middleware import RequestLogMiddleware
from cms.routers import articles, channels, dictionaries, logs, promos, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; CacheManager.connect disables the cache when Redis is unreachable.
    await cache.connect()
    logger.info("Started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await cache.disconnect()

app = FastAPI(
    title="Multi-tenant CMS API",
    description="Site-scoped content management with a shared query and pagination engine",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(articles.router)
app.include_router(channels.router)
app.include_router(dictionaries.router)
app.include_router(promos.router)
app.include_router(users.router)
app.include_router(logs.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0", "cache": cache.stats}
