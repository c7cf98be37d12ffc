"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from mixarchive.db.engine import make_engine, init_orm
from mixarchive.repository.archive_requests import RequestsRepository
from mixarchive.repository.artifacts import ArtifactsRepository
from mixarchive.services.http_service import HttpService
from mixarchive.services.page_link_extractor import PageLinkExtractor
from mixarchive.services.renderer import PlaywrightRenderer, PlaywrightRenderOptions
from mixarchive.services.track_poller import TrackPoller
from mixarchive.services.mix_extractor import MixExtractor
from mixarchive.services.item_worker import ItemWorker
from mixarchive.services.fan_out import FanOutDispatcher
from mixarchive.services.invoker import InProcessInvoker, HttpInvoker
from mixarchive.services.pagination import PaginationCoordinator
from mixarchive.services.completion_tracker import CompletionTracker
from mixarchive.services.archive_assembler import ArchiveAssembler
from mixarchive.services.archive_request_service import ArchiveRequestService
from mixarchive.services.invocation_handlers import InvocationHandlers
from mixarchive.storage.local_store import LocalArtifactStore
from mixarchive import config as env
from sqlalchemy.orm import sessionmaker


def _make_s3_store(bucket):
    # boto3 is only needed when the s3 store is selected
    from mixarchive.storage.s3_store import S3ArtifactStore

    return S3ArtifactStore(bucket=bucket)


# Environment variables used by the container (read via `mixarchive.config` helpers).
#
# DATABASE_URL (str, default: "sqlite:///mixarchive.db")
#   SQLAlchemy URL for the request/artifact tables.
#
# USER_AGENT (str, default: "MixArchive/0.1")
#   User-Agent for listing fetches and the headless browser.
#
# HTTP_TIMEOUT (int seconds, default: 10)
#   Timeout for listing page fetches and outbound invocations.
#
# RENDER_TIMEOUT_MS / SELECTOR_TIMEOUT_MS (int ms, defaults: 10000 / 5000)
#   Page load and selector readiness limits for the headless renderer.
#
# TRACKS_MAX_ATTEMPTS / TRACKS_POLL_DELAY_MS (defaults: 5 / 90)
#   Bound and spacing of the track list polling loop.
#
# FANOUT_CONCURRENCY (int, default: 50)
#   Max in-flight item invocations per page.
#
# ITEM_SELECTOR (str, default: ".cover a.mix_url")
#   CSS selector for item links on a listing page.
#
# ARTIFACT_STORE ("local" | "s3", default: "local"), ARTIFACT_DIR, S3_BUCKET
#   Where item tracklists and archives are stored.
#
# PUBLIC_BASE_URL / SIGNING_SECRET
#   Base of signed download URLs for the local store and the HMAC key.
#
# ARCHIVE_URL_TTL_SECONDS (int, default: 3600)
#   Lifetime of signed archive URLs.
#
# INVOKER ("inprocess" | "http", default: "inprocess"), INVOKE_BASE_URL, INVOKE_TOKEN
#   How pagination and item work is submitted. INVOKE_TOKEN also guards the
#   /invocations endpoints.
ENV = {
    "DATABASE_URL": env.DATABASE_URL,
    "USER_AGENT": env.USER_AGENT,
    "HTTP_TIMEOUT": env.get_int_env("HTTP_TIMEOUT", 10),
    "RENDER_TIMEOUT_MS": env.get_int_env("RENDER_TIMEOUT_MS", 10_000),
    "SELECTOR_TIMEOUT_MS": env.get_int_env("SELECTOR_TIMEOUT_MS", 5_000),
    "TRACKS_MAX_ATTEMPTS": env.get_int_env("TRACKS_MAX_ATTEMPTS", 5),
    "TRACKS_POLL_DELAY_MS": env.get_int_env("TRACKS_POLL_DELAY_MS", 90),
    "FANOUT_CONCURRENCY": env.get_int_env("FANOUT_CONCURRENCY", 50),
    "ITEM_SELECTOR": env.get_str_env("ITEM_SELECTOR", ".cover a.mix_url"),
    "ARTIFACT_STORE": env.get_str_env("ARTIFACT_STORE", "local").strip().lower(),
    "ARTIFACT_DIR": env.get_str_env("ARTIFACT_DIR", "artifacts"),
    "S3_BUCKET": env.get_optional_str_env("S3_BUCKET"),
    "PUBLIC_BASE_URL": env.get_str_env("PUBLIC_BASE_URL", "http://localhost:8000"),
    "SIGNING_SECRET": env.get_optional_str_env("SIGNING_SECRET"),
    "ARCHIVE_URL_TTL_SECONDS": env.get_int_env("ARCHIVE_URL_TTL_SECONDS", 3600),
    "INVOKER": env.get_str_env("INVOKER", "inprocess").strip().lower(),
    "INVOKE_BASE_URL": env.get_str_env("INVOKE_BASE_URL", "http://localhost:8000"),
    "INVOKE_TOKEN": env.get_optional_str_env("INVOKE_TOKEN"),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for MixArchive."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool; tables created on first use
    db_engine = providers.Singleton(
        init_orm,
        providers.Callable(make_engine, database_url=config.DATABASE_URL),
    )
    session_factory = providers.Singleton(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    # Repositories
    requests_repository = providers.Singleton(
        RequestsRepository,
        session_factory=session_factory
    )

    artifacts_repository = providers.Singleton(
        ArtifactsRepository,
        session_factory=session_factory
    )

    # Storage
    artifact_store = providers.Selector(
        config.ARTIFACT_STORE,
        local=providers.Singleton(
            LocalArtifactStore,
            root_dir=config.ARTIFACT_DIR,
            base_url=config.PUBLIC_BASE_URL,
            signing_secret=config.SIGNING_SECRET,
        ),
        s3=providers.Singleton(_make_s3_store, config.S3_BUCKET),
    )

    # Invocation transport
    invoker = providers.Selector(
        config.INVOKER,
        inprocess=providers.Singleton(InProcessInvoker),
        http=providers.Singleton(
            HttpInvoker,
            base_url=config.INVOKE_BASE_URL,
            token=config.INVOKE_TOKEN,
            http_client=providers.Object(requests.post),
            timeout=config.HTTP_TIMEOUT.as_(int),
        ),
    )

    # Services
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int)
    )

    link_extractor = providers.Singleton(
        PageLinkExtractor,
        http_service=http_service,
    )

    renderer = providers.Singleton(
        PlaywrightRenderer,
        user_agent=config.USER_AGENT.as_(str),
        options=providers.Factory(
            PlaywrightRenderOptions,
            timeout_ms=config.RENDER_TIMEOUT_MS.as_(int),
            selector_timeout_ms=config.SELECTOR_TIMEOUT_MS.as_(int),
        ),
    )

    track_poller = providers.Singleton(
        TrackPoller,
        max_attempts=config.TRACKS_MAX_ATTEMPTS.as_(int),
        delay_seconds=providers.Callable(lambda ms: ms / 1000, config.TRACKS_POLL_DELAY_MS.as_(int)),
    )

    mix_extractor = providers.Singleton(
        MixExtractor,
        poller=track_poller,
    )

    item_worker = providers.Singleton(
        ItemWorker,
        renderer=renderer,
        extractor=mix_extractor,
        artifact_store=artifact_store,
        artifacts_repo=artifacts_repository,
    )

    dispatcher = providers.Singleton(
        FanOutDispatcher,
        concurrency_limit=config.FANOUT_CONCURRENCY.as_(int),
    )

    pagination = providers.Singleton(
        PaginationCoordinator,
        requests_repo=requests_repository,
        artifacts_repo=artifacts_repository,
        link_extractor=link_extractor,
        dispatcher=dispatcher,
        invoker=invoker,
        item_selectors=providers.Callable(
            lambda selector: {"history": selector, "collection": selector},
            config.ITEM_SELECTOR.as_(str),
        ),
    )

    completion_tracker = providers.Singleton(
        CompletionTracker,
        requests_repo=requests_repository,
        artifacts_repo=artifacts_repository,
    )

    archive_assembler = providers.Singleton(
        ArchiveAssembler,
        tracker=completion_tracker,
        artifacts_repo=artifacts_repository,
        artifact_store=artifact_store,
        url_ttl_seconds=config.ARCHIVE_URL_TTL_SECONDS.as_(int),
    )

    archive_request_service = providers.Singleton(
        ArchiveRequestService,
        requests_repo=requests_repository,
        invoker=invoker,
    )

    invocation_handlers = providers.Singleton(
        InvocationHandlers,
        pagination=pagination,
        item_worker=item_worker,
    )
