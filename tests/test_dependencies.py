import httpx
import pytest

from donq.config import Settings
from donq.core.errors import StorageError
from donq.database import build_engine
from donq.dependencies import build_donation_service
from donq.display.hooks import LoggingDisplayHook, WebhookDisplayHook


def _settings(tmp_path, **overrides) -> Settings:
    values = {
        "export_settings_path": str(tmp_path / "settings.json"),
        "default_export_path": str(tmp_path / "exports"),
        "display_webhook_url": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_service_is_built_from_the_given_settings(engine, tmp_path):
    app_settings = _settings(
        tmp_path,
        extra_life_base_url="https://custom.test/api/",
        fetch_timeout_seconds=2.5,
        display_webhook_url="https://titler.test/hook",
        team_id="99999",
        test_id_prefix="REHEARSAL",
        default_export_name="stream",
        default_export_format="spreadsheet",
    )

    service = build_donation_service(engine, app_settings)

    client = service.ingestor.client
    assert client.base_url == "https://custom.test/api"
    assert client.timeout == 2.5
    assert isinstance(service.display, WebhookDisplayHook)
    assert service.display.url == "https://titler.test/hook"
    assert service.display._client.timeout == httpx.Timeout(2.5)
    assert service.team_id == "99999"
    assert service.test_id_prefix == "REHEARSAL"
    assert service.export_config.output_file.name == "stream.xlsx"
    await service.close()


@pytest.mark.asyncio
async def test_logging_hook_without_webhook_url(engine, tmp_path):
    service = build_donation_service(engine, _settings(tmp_path))

    assert isinstance(service.display, LoggingDisplayHook)
    await service.close()


@pytest.mark.asyncio
async def test_unreachable_database_does_not_stop_the_build(tmp_path, caplog):
    # Parent directory does not exist, so SQLite cannot open the file
    broken = build_engine(f"sqlite:///{tmp_path / 'missing' / 'donations.db'}")

    service = build_donation_service(broken, _settings(tmp_path))

    assert "Table creation failed" in caplog.text
    with pytest.raises(StorageError):
        service.stats()
    await service.close()
    broken.dispose()
