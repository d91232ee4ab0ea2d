import io
import tarfile
from pathlib import Path

import pytest

from qlbuild.errors import DownloadError, ExtractionError, WorkspaceError
from qlbuild.fetch import download, fetch_boost, fetch_dependencies, fetch_quantlib


def _fail(*args, **kwargs):
    raise AssertionError("unexpected network or extraction call")


def _forbid_network(monkeypatch):
    monkeypatch.setattr("qlbuild.fetch.urlretrieve", _fail)
    monkeypatch.setattr("qlbuild.fetch.extract_7z", _fail)


def _write_tarball(path: Path, members: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for name, text in members.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))


def test_fetch_is_skipped_when_marker_exists(config, monkeypatch):
    (config.boost_root / "boost").mkdir(parents=True)
    (config.boost_root / "boost" / "version.hpp").write_text("#define BOOST_VERSION 108600\n")
    config.quantlib_root.mkdir(parents=True)
    (config.quantlib_root / "CMakeLists.txt").write_text("project(QuantLib)\n")

    _forbid_network(monkeypatch)

    assert fetch_boost(config) == config.boost_root
    assert fetch_quantlib(config) == config.quantlib_root


def test_second_fetch_performs_no_download(config, monkeypatch):
    downloads = []

    def fake_urlretrieve(url, filename):
        downloads.append(url)
        _write_tarball(Path(filename), {"QuantLib-1.34/CMakeLists.txt": "project(QuantLib)\n"})
        return filename, None

    monkeypatch.setattr("qlbuild.fetch.urlretrieve", fake_urlretrieve)

    fetch_quantlib(config)
    fetch_quantlib(config)

    assert downloads == [config.quantlib_url]
    assert (config.quantlib_root / "CMakeLists.txt").read_text() == "project(QuantLib)\n"


def test_cached_archive_is_extracted_without_download(config, monkeypatch):
    archive = config.downloads_dir / "QuantLib-1.34.tar.gz"
    _write_tarball(
        archive,
        {
            "QuantLib-1.34/CMakeLists.txt": "project(QuantLib)\n",
            "QuantLib-1.34/LICENSE.TXT": "QuantLib license\n",
        },
    )
    _forbid_network(monkeypatch)

    root = fetch_quantlib(config)

    assert (root / "LICENSE.TXT").read_text() == "QuantLib license\n"


def test_fetch_quantlib_fails_when_archive_layout_differs(config, monkeypatch):
    _write_tarball(
        config.downloads_dir / "QuantLib-1.34.tar.gz",
        {"quantlib-master/CMakeLists.txt": "project(QuantLib)\n"},
    )
    _forbid_network(monkeypatch)

    with pytest.raises(ExtractionError):
        fetch_quantlib(config)


def test_corrupt_tarball_raises_extraction_error(config, monkeypatch):
    archive = config.downloads_dir / "QuantLib-1.34.tar.gz"
    archive.parent.mkdir(parents=True)
    archive.write_bytes(b"not a tarball")
    _forbid_network(monkeypatch)

    with pytest.raises(ExtractionError):
        fetch_quantlib(config)


def test_fetch_boost_downloads_and_extracts_with_7z(config, monkeypatch):
    calls = []

    def fake_urlretrieve(url, filename):
        calls.append(("download", url))
        Path(filename).write_bytes(b"7z")
        return filename, None

    def fake_extract(seven_zip, archive, destination):
        calls.append(("extract", seven_zip, Path(archive).name, destination))
        headers = Path(destination) / "boost_1_86_0" / "boost"
        headers.mkdir(parents=True)
        (headers / "version.hpp").write_text("#define BOOST_VERSION 108600\n")

    monkeypatch.setattr("qlbuild.fetch.urlretrieve", fake_urlretrieve)
    monkeypatch.setattr("qlbuild.fetch.extract_7z", fake_extract)

    root = fetch_boost(config)

    assert root == config.work_dir / "boost_1_86_0"
    assert calls == [
        ("download", "https://archives.boost.io/release/1.86.0/source/boost_1_86_0.7z"),
        ("extract", "7z", "boost_1_86_0.7z", config.work_dir),
    ]


def test_download_failure_removes_partial_file(tmp_path, monkeypatch):
    def fake_urlretrieve(url, filename):
        Path(filename).write_bytes(b"partial")
        raise OSError("connection reset")

    monkeypatch.setattr("qlbuild.fetch.urlretrieve", fake_urlretrieve)

    try:
        download("https://example.com/archive.tar.gz", tmp_path)
    except DownloadError as exc:
        assert "connection reset" in str(exc)
    else:
        raise AssertionError("expected DownloadError to be raised")

    assert not (tmp_path / "archive.tar.gz").exists()
    assert not (tmp_path / "archive.tar.gz.part").exists()


def test_fetch_dependencies_reports_both_trees(config, monkeypatch):
    monkeypatch.setattr("qlbuild.fetch.fetch_boost", lambda cfg: cfg.boost_root)
    monkeypatch.setattr("qlbuild.fetch.fetch_quantlib", lambda cfg: cfg.quantlib_root)

    result = fetch_dependencies(config)

    assert result.stage == "fetch"
    assert [o.status for o in result.outcomes] == ["ok", "ok"]
    assert config.work_dir.is_dir()


def test_interrupted_download_is_fetched_again_on_next_run(config, monkeypatch):
    downloads = []

    def interrupted_urlretrieve(url, filename):
        downloads.append(url)
        Path(filename).write_bytes(b"\x1f\x8btruncated")
        raise KeyboardInterrupt

    monkeypatch.setattr("qlbuild.fetch.urlretrieve", interrupted_urlretrieve)

    with pytest.raises(KeyboardInterrupt):
        fetch_quantlib(config)

    assert list(config.downloads_dir.iterdir()) == []

    def complete_urlretrieve(url, filename):
        downloads.append(url)
        _write_tarball(Path(filename), {"QuantLib-1.34/CMakeLists.txt": "project(QuantLib)\n"})
        return filename, None

    monkeypatch.setattr("qlbuild.fetch.urlretrieve", complete_urlretrieve)

    root = fetch_quantlib(config)

    assert downloads == [config.quantlib_url, config.quantlib_url]
    assert (root / "CMakeLists.txt").exists()
    assert [p.name for p in config.downloads_dir.iterdir()] == ["QuantLib-1.34.tar.gz"]


def test_work_dir_that_is_a_file_raises_workspace_error(config, monkeypatch):
    config.work_dir.parent.mkdir(parents=True, exist_ok=True)
    config.work_dir.write_text("not a directory")
    _forbid_network(monkeypatch)

    try:
        fetch_dependencies(config)
    except WorkspaceError as exc:
        assert str(config.work_dir) in str(exc)
        assert exc.exit_code == 1
    else:
        raise AssertionError("expected WorkspaceError to be raised")
