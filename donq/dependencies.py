"""DONQ — Service Wiring.

Builds the one ``DonationService`` the app and the poll job share. Routes get
it through ``Depends(get_donation_service)``; tests swap it with
``app.dependency_overrides``.
"""

from functools import lru_cache

from sqlalchemy.engine import Engine

from donq.config import Settings, settings
from donq.connectors.extralife.client import ExtraLifeClient
from donq.core.logging import get_logger
from donq.database import engine, init_db
from donq.display.hooks import build_display_hook
from donq.export.config_store import ExportConfigStore, ExportConfiguration
from donq.export.sink import ExportSink
from donq.ingestion.reconciler import IngestionAdapter
from donq.live.channel import LiveUpdateChannel
from donq.services.donation_service import DonationService
from donq.store.record_store import RecordStore

logger = get_logger("dependencies")


def build_donation_service(
    db_engine: Engine, app_settings: Settings, client: ExtraLifeClient | None = None
) -> DonationService:
    """Assemble the pipeline from explicit collaborators.

    An unreachable database does not stop the build; store calls surface
    ``StorageError`` until it comes back. Malformed export settings do.
    """
    try:
        init_db(db_engine)
    except Exception as e:
        logger.error(f"❌ Table creation failed: {e}")
    store = RecordStore(db_engine)
    config_store = ExportConfigStore(
        app_settings.export_settings_path, ExportConfiguration.defaults(app_settings)
    )
    client = client or ExtraLifeClient(
        base_url=app_settings.extra_life_base_url,
        timeout=app_settings.fetch_timeout_seconds,
    )
    return DonationService(
        store=store,
        ingestor=IngestionAdapter(client, store),
        sink=ExportSink(lambda: config_store.current),
        channel=LiveUpdateChannel(),
        display=build_display_hook(app_settings),
        config_store=config_store,
        team_id=app_settings.team_id,
        test_id_prefix=app_settings.test_id_prefix,
    )


@lru_cache
def get_donation_service() -> DonationService:
    return build_donation_service(engine, settings)
