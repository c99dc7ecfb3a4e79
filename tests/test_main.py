"""Tests for the service controller and the command-line handlers."""

import threading
from unittest.mock import Mock

import pytest
import yaml

from photolib_edge.config import Config
from photolib_edge.errors import PhotoIdError, RenderError
from photolib_edge.imaging.yuv import renderer_for
from photolib_edge.main import COMMANDS, PhotoLibEdge, main, parse_args
from photolib_edge.store.photo_store import photo_id_for_timestamp

from conftest import make_capture

DAY = 24 * 60 * 60 * 1000
NOW = 1700000000000


@pytest.fixture
def config(tmp_path):
    return Config(
        storage_root=str(tmp_path / "photos"),
        image_width=64,
        image_height=48,
        log_file=str(tmp_path / "edge.log"),
        capture_interval=0,
        cleanup_interval=3600,
        retention_days=10,
    )


@pytest.fixture
def config_file(tmp_path, config):
    path = tmp_path / "pi.yaml"
    path.write_text(yaml.safe_dump({
        "storage_root": config.storage_root,
        "image_width": 64,
        "image_height": 48,
        "log_file": config.log_file,
        "retention_days": 10,
    }))
    return str(path)


@pytest.fixture(autouse=True)
def restore_root_logger():
    import logging
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestPhotoLibEdge:
    """Test the service controller."""

    def test_init_creates_storage(self, config, tmp_path):
        service = PhotoLibEdge(config)

        assert (tmp_path / "photos").is_dir()
        assert service.store.thumbnail_width == 320
        assert service.store.media_notifier is None

    def test_unknown_camera_backend(self, config):
        config.camera_backend = "usb"

        with pytest.raises(ValueError, match="Unknown camera backend"):
            PhotoLibEdge(config)

    def test_missing_jpeg_support(self, config, monkeypatch):
        monkeypatch.setattr("photolib_edge.capabilities.features.check_codec", lambda name: False)

        with pytest.raises(RuntimeError, match="JPEG"):
            PhotoLibEdge(config)

    def test_media_notifier_configured(self, config, monkeypatch):
        monkeypatch.setattr("photolib_edge.capabilities.shutil.which", lambda name: "/bin/" + name)
        config.media_index_command = ["indexer"]

        service = PhotoLibEdge(config)

        assert service.store.media_notifier is not None
        assert service.store.media_notifier.command == ["indexer"]

    def test_save_capture_success_callback(self, config):
        on_saved, on_failed = Mock(), Mock()
        service = PhotoLibEdge(config, on_saved=on_saved, on_failed=on_failed)
        capture = make_capture(width=64, height=48)

        result = service.save_capture(capture)

        assert result.ok
        on_saved.assert_called_once_with(result.photo_id)
        on_failed.assert_not_called()

    def test_save_capture_failure_callback(self, config, monkeypatch):
        on_saved, on_failed = Mock(), Mock()
        service = PhotoLibEdge(config, on_saved=on_saved, on_failed=on_failed)
        monkeypatch.setattr(
            "photolib_edge.main.renderer_for",
            lambda capture: Mock(side_effect=RuntimeError("boom")),
        )

        result = service.save_capture(make_capture(width=64, height=48))

        assert not result.ok
        on_saved.assert_not_called()
        on_failed.assert_called_once()
        assert isinstance(on_failed.call_args.args[0], RenderError)

    def test_cleanup_expired(self, config):
        service = PhotoLibEdge(config)
        stamps = [NOW - 30 * DAY, NOW - 11 * DAY, NOW - 9 * DAY, NOW]
        for stamp in stamps:
            capture = make_capture(width=16, height=12, timestamp_millis=stamp)
            assert service.store.save(capture, renderer_for(capture)).ok

        deleted = service.cleanup_expired(now_millis=NOW)

        assert deleted == [photo_id_for_timestamp(s) for s in stamps[:2]]
        assert service.store.photo_ids() == [photo_id_for_timestamp(s) for s in stamps[2:]]

    def test_cleanup_disabled(self, config):
        config.retention_days = 0
        service = PhotoLibEdge(config)
        capture = make_capture(width=16, height=12, timestamp_millis=NOW - 1000 * DAY)
        service.store.save(capture, renderer_for(capture))

        assert service.cleanup_expired(now_millis=NOW) == []
        assert len(service.store.photo_ids()) == 1

    def test_cleanup_sweeps_partial_records(self, config):
        service = PhotoLibEdge(config)
        old = make_capture(width=16, height=12, timestamp_millis=NOW - 20 * DAY)
        failing = Mock(side_effect=RuntimeError("boom"))
        assert not service.store.save(old, failing).ok
        orphan_id = photo_id_for_timestamp(NOW - 15 * DAY)
        (service.store.root / f"{orphan_id}.jpg").write_bytes(b"orphan")
        (service.store.thumbnail_directory / f"{orphan_id}.jpg").write_bytes(b"orphan")
        recent = make_capture(width=16, height=12, timestamp_millis=NOW - DAY)
        assert not service.store.save(recent, failing).ok

        deleted = service.cleanup_expired(now_millis=NOW)

        old_id = photo_id_for_timestamp(NOW - 20 * DAY)
        assert deleted == [old_id, orphan_id]
        assert not service.store.photo_directory(old_id).exists()
        assert not (service.store.root / f"{orphan_id}.jpg").exists()
        assert not (service.store.thumbnail_directory / f"{orphan_id}.jpg").exists()
        assert service.store.artifact_ids() == [photo_id_for_timestamp(NOW - DAY)]

    def test_unrepresentable_timestamp_reported_as_failure(self, config):
        on_saved, on_failed = Mock(), Mock()
        service = PhotoLibEdge(config, on_saved=on_saved, on_failed=on_failed)

        result = service.save_capture(make_capture(width=16, height=12, timestamp_millis=2 ** 62))

        assert not result.ok
        on_saved.assert_not_called()
        assert isinstance(on_failed.call_args.args[0], PhotoIdError)

    def test_loops_store_photos(self, config):
        saved = threading.Event()
        photo_ids = []

        def on_saved(photo_id):
            photo_ids.append(photo_id)
            saved.set()

        config.capture_interval = 0.05
        service = PhotoLibEdge(config, on_saved=on_saved)
        service.start()
        try:
            assert saved.wait(timeout=10)
        finally:
            service.stop()

        assert photo_ids
        assert set(photo_ids) <= set(service.store.photo_ids())


class TestCommandLine:
    """Test argument parsing and command handlers."""

    def test_command_table(self):
        assert set(COMMANDS) == {"run", "capture", "list", "cleanup"}

    def test_parse_args_resolves_handler(self):
        args = parse_args(["list", "--config", "pi.yaml"])

        assert args.command == "list"
        assert args.config == "pi.yaml"
        assert args.handler is COMMANDS["list"][0]

    def test_parse_args_requires_command(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_capture_then_list(self, config_file, capsys):
        assert main(["capture", "-c", config_file]) == 0
        photo_id = capsys.readouterr().out.strip().splitlines()[-1]

        assert main(["list", "-c", config_file]) == 0
        assert photo_id in capsys.readouterr().out.split()

    def test_capture_failure_exit_status(self, config_file, monkeypatch):
        monkeypatch.setattr(
            "photolib_edge.main.renderer_for",
            lambda capture: Mock(side_effect=RuntimeError("boom")),
        )

        assert main(["capture", "-c", config_file]) == 1

    def test_cleanup_command(self, config_file, capsys):
        assert main(["cleanup", "-c", config_file]) == 0
        assert "Deleted 0 photos" in capsys.readouterr().out
