"""Application service initializer for managing startup and shutdown."""

import asyncio

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from modelviz.config import Settings
from modelviz.database.engine import create_database_engine, create_database_tables
from modelviz.log import get_logger
from modelviz.periodic_task import PeriodicTaskRunner
from modelviz.providers import ProviderAdapter, ProviderRegistry
from modelviz.services import (
    ComparisonService,
    HeuristicQualityScorer,
    MetricsAggregator,
    MetricsCleanupTask,
    ModelBlendService,
)

logger = get_logger(__name__)


class AppServiceInitializer:
    """Builds the engine, adapters and services and wires them into app.state.

    One ``MetricsAggregator`` is created per application and shared by the
    blend and comparison services.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Engine | None = None
        self.adapter: ProviderAdapter | None = None
        self.metrics_aggregator: MetricsAggregator | None = None
        self.blend_service: ModelBlendService | None = None
        self.comparison_service: ComparisonService | None = None
        self.cleanup_runner: PeriodicTaskRunner | None = None

    async def initialize_all_services(
        self,
        app: FastAPI,
        engine: Engine | None = None,
        adapter: ProviderAdapter | None = None,
    ) -> None:
        """Initialize all services and configure app.state."""
        logger.info("Initializing all application services...")

        await self.initialize_database(engine)
        self.initialize_providers(adapter)
        self.initialize_services()
        self._setup_app_state(app)

        logger.info("All application services initialized successfully")

    async def initialize_database(self, engine: Engine | None = None) -> None:
        if engine:
            self.engine = engine
        else:
            self.engine = create_database_engine(
                self.settings.environment, db_path=self.settings.db_path
            )

        create_database_tables(self.engine)
        logger.info("Database initialized successfully")

    def initialize_providers(self, adapter: ProviderAdapter | None = None) -> None:
        if adapter is not None:
            self.adapter = adapter
            return

        self.adapter = ProviderRegistry.from_settings(self.settings)

    def initialize_services(self) -> None:
        if self.engine is None or self.adapter is None:
            raise RuntimeError(
                "Database and providers must be initialized before services"
            )

        self.metrics_aggregator = MetricsAggregator(
            engine=self.engine,
            retention_days=self.settings.metrics_retention_days,
        )
        self.metrics_aggregator.load_from_store()

        self.blend_service = ModelBlendService(
            self.adapter,
            self.metrics_aggregator,
            call_timeout=self.settings.call_timeout_seconds,
        )
        self.comparison_service = ComparisonService(
            self.adapter,
            self.metrics_aggregator,
            scorer=HeuristicQualityScorer(),
            call_timeout=self.settings.call_timeout_seconds,
            quality_threshold=self.settings.quality_threshold,
            error_cost_placeholder=self.settings.error_cost_placeholder,
            engine=self.engine,
            max_saved_sessions=self.settings.max_saved_sessions,
        )

        if self.settings.metrics_cleanup_enabled:
            self.cleanup_runner = PeriodicTaskRunner(
                MetricsCleanupTask(self.metrics_aggregator),
                interval_seconds=self.settings.metrics_cleanup_interval,
            )
        else:
            logger.warning("Metrics retention cleanup is disabled")
            self.cleanup_runner = None

    async def start_all_services(self) -> None:
        """Start background maintenance."""
        if self.cleanup_runner is not None:
            await self.cleanup_runner.start()

    async def stop_all_services(self) -> None:
        """Stop background maintenance and let unfinished blend calls record."""
        logger.info("Stopping all background services...")

        if self.cleanup_runner is not None:
            await self.cleanup_runner.stop()

        if self.blend_service is not None:
            await self._drain_blend_calls(self.blend_service)

        logger.info("All background services stopped successfully")

    async def _drain_blend_calls(self, blend_service: ModelBlendService) -> None:
        """Wait for first-success stragglers; cancel any that outlive the timeout."""
        try:
            await asyncio.wait_for(
                blend_service.wait_for_pending(),
                timeout=self.settings.call_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Blend calls still running at shutdown, cancelling")
            await blend_service.cancel_pending()

    def _setup_app_state(self, app: FastAPI) -> None:
        app.state.settings = self.settings
        app.state.engine = self.engine
        app.state.provider_adapter = self.adapter
        app.state.metrics_aggregator = self.metrics_aggregator
        app.state.blend_service = self.blend_service
        app.state.comparison_service = self.comparison_service
        app.state.cleanup_runner = self.cleanup_runner
        app.state.initializer = self
