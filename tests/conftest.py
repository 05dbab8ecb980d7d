"""Shared fixtures: a throwaway SQLite store, export settings under tmp_path,
and a scripted Extra Life API behind httpx.MockTransport."""

import os

os.environ.setdefault("DONQ_POLL_ENABLED", "false")
os.environ.setdefault("DONQ_LOG_LEVEL", "WARNING")
os.environ.setdefault("DONQ_DATABASE_URL", "sqlite://")

from pathlib import Path  # noqa: E402

import pytest  # noqa: E402

from donq.database import build_engine, init_db  # noqa: E402
from donq.export.config_store import ExportConfigStore, ExportConfiguration  # noqa: E402
from donq.export.sink import ExportSink  # noqa: E402
from donq.ingestion.reconciler import IngestionAdapter  # noqa: E402
from donq.live.channel import LiveUpdateChannel  # noqa: E402
from donq.services.donation_service import DonationService  # noqa: E402
from donq.store.record_store import RecordStore  # noqa: E402
from tests.helpers import TEAM_ID, FakeExtraLife, RecordingDisplayHook  # noqa: E402


@pytest.fixture
def engine(tmp_path: Path):
    db_engine = build_engine(f"sqlite:///{tmp_path / 'donations.db'}")
    init_db(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def store(engine) -> RecordStore:
    return RecordStore(engine)


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    return tmp_path / "exports"


@pytest.fixture
def config_store(tmp_path: Path, export_dir: Path) -> ExportConfigStore:
    return ExportConfigStore(
        tmp_path / "settings.json",
        ExportConfiguration(path=str(export_dir), name="donations", format="csv"),
    )


@pytest.fixture
def upstream() -> FakeExtraLife:
    return FakeExtraLife()


@pytest.fixture
def display() -> RecordingDisplayHook:
    return RecordingDisplayHook()


@pytest.fixture
def service(store, config_store, upstream, display) -> DonationService:
    return DonationService(
        store=store,
        ingestor=IngestionAdapter(upstream.client(), store),
        sink=ExportSink(lambda: config_store.current),
        channel=LiveUpdateChannel(),
        display=display,
        config_store=config_store,
        team_id=TEAM_ID,
        test_id_prefix="TEST",
    )
