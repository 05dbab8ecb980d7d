import csv
import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from openpyxl import load_workbook

from donq.core.errors import ConfigError, ExportWriteError
from donq.export.config_store import ExportConfigStore, ExportConfiguration
from donq.export.sink import SHEET_NAME, ExportSink
from donq.models.donation_models import EXPORT_COLUMNS, DonationRecord
from tests.helpers import csv_lines


def _record(donation_id: str, message: str = "Go team!"):
    return DonationRecord(
        id=donation_id, name="Alice", recipient="Bob", amount=10.0, message=message
    )


def _sink(config: ExportConfiguration) -> ExportSink:
    return ExportSink(lambda: config)


def test_csv_appends_one_quoted_line_per_call(export_dir):
    config = ExportConfiguration(path=str(export_dir), name="feed", format="csv")
    sink = _sink(config)

    target = sink.append_approved(_record("D1", message="Hello, world"))
    sink.append_approved(_record("D2"))

    assert target == (export_dir / "feed.csv").resolve()
    with target.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0][0] == "D1"
    assert rows[0][4] == "Hello, world"
    assert [row[0] for row in rows] == ["D1", "D2"]


def test_spreadsheet_writes_header_once(export_dir):
    config = ExportConfiguration(path=str(export_dir), name="feed", format="spreadsheet")
    sink = _sink(config)

    sink.append_approved(_record("D1"))
    sink.append_approved(_record("D2"))

    sheet = load_workbook(export_dir / "feed.xlsx")[SHEET_NAME]
    rows = list(sheet.iter_rows(values_only=True))
    assert list(rows[0]) == EXPORT_COLUMNS
    assert [row[0] for row in rows[1:]] == ["D1", "D2"]
    assert rows[1][3] == 10.0


def test_concurrent_spreadsheet_appends_lose_no_rows(export_dir):
    config = ExportConfiguration(path=str(export_dir), name="feed", format="spreadsheet")
    sink = _sink(config)
    ids = [f"D{i}" for i in range(24)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: sink.append_approved(_record(i)), ids))

    sheet = load_workbook(export_dir / "feed.xlsx")[SHEET_NAME]
    exported = [row[0] for row in sheet.iter_rows(min_row=2, values_only=True)]
    assert sorted(exported) == sorted(ids)


def test_write_failure_raises_export_write_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    config = ExportConfiguration(path=str(blocker / "sub"), name="feed", format="csv")

    with pytest.raises(ExportWriteError) as exc:
        _sink(config).append_approved(_record("D1"))
    assert exc.value.path.endswith("feed.csv")


def test_corrupt_workbook_raises_export_write_error(export_dir):
    export_dir.mkdir(parents=True)
    (export_dir / "feed.xlsx").write_bytes(b"definitely not a zip")
    config = ExportConfiguration(path=str(export_dir), name="feed", format="spreadsheet")

    with pytest.raises(ExportWriteError):
        _sink(config).append_approved(_record("D1"))


def test_sink_reads_config_on_every_call(config_store, export_dir):
    sink = ExportSink(lambda: config_store.current)
    sink.append_approved(_record("D1"))

    config_store.update(str(export_dir), "second", "csv")
    sink.append_approved(_record("D2"))

    assert len(csv_lines(export_dir / "donations.csv")) == 1
    assert len(csv_lines(export_dir / "second.csv")) == 1


# ── Export settings ──


def test_config_store_uses_defaults_without_file(tmp_path):
    default = ExportConfiguration(path=str(tmp_path), name="donations", format="csv")

    store = ExportConfigStore(tmp_path / "missing.json", default)

    assert store.current == default
    assert not (tmp_path / "missing.json").exists()


def test_config_update_persists_and_reloads(tmp_path):
    settings_path = tmp_path / "conf" / "settings.json"
    default = ExportConfiguration(path=str(tmp_path), name="donations", format="csv")
    store = ExportConfigStore(settings_path, default)

    store.update(str(tmp_path / "out"), "stream", "spreadsheet")

    saved = json.loads(settings_path.read_text())
    assert saved == {
        "exportPath": str(tmp_path / "out"),
        "fileName": "stream",
        "fileFormat": "spreadsheet",
    }
    reloaded = ExportConfigStore(settings_path, default).current
    assert reloaded.format == "spreadsheet"
    assert reloaded.output_file.name == "stream.xlsx"


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"exportPath": "/tmp"}',
        '{"exportPath": "/tmp", "fileName": "x", "fileFormat": "pdf"}',
    ],
)
def test_malformed_settings_file_raises_config_error(tmp_path, content):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(content)
    default = ExportConfiguration(path=str(tmp_path), name="donations", format="csv")

    with pytest.raises(ConfigError):
        ExportConfigStore(settings_path, default)


def test_invalid_update_keeps_previous_config(config_store):
    before = config_store.current

    with pytest.raises(ConfigError):
        config_store.update("/tmp", "", "csv")
    with pytest.raises(ConfigError):
        config_store.update("/tmp", "feed", "pdf")

    assert config_store.current == before
