"""Tests for YAML settings and batch manifests."""
from pathlib import Path

import pytest
import yaml

from conftest import FakeEngineFactory, FakeExporter
from html_pdf_generator import NA_LETTER, AssetContent, ConfigurationError, Margins, PdfGenerator, RemoteContent
from html_pdf_generator.config import GeneratorSettings, load_manifest, load_settings


def write_yaml(path: Path, data: dict) -> Path:
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f)
    return path


def test_missing_settings_file_means_defaults():
    settings = load_settings(None)

    assert settings == GeneratorSettings()
    assert settings.browser_args == ['--no-sandbox', '--disable-dev-shm-usage']


def test_settings_are_applied_to_generator(tmp_path):
    config_path = write_yaml(tmp_path / "settings.yaml", {
        "page_size": "letter",
        "landscape": True,
        "margins": {"top": 10, "bottom": 10, "left": 5, "right": 5},
        "resolution_dpi": 300,
        "timeout_ms": 5000,
        "output_dir": str(tmp_path / "out"),
    })

    generator = load_settings(config_path).apply(PdfGenerator(FakeEngineFactory(), FakeExporter()))
    request = generator.set_pdf_name("doc").set_content("x").build()

    assert request.page_size == NA_LETTER
    assert request.landscape is True
    assert request.margins == Margins(left=196, top=393, right=196, bottom=393)
    assert request.resolution_dpi == 300
    assert request.timeout_ms == 5000
    assert request.output_dir == tmp_path / "out"


def test_unknown_page_size_in_settings():
    with pytest.raises(ConfigurationError):
        GeneratorSettings(page_size="postcard").apply(PdfGenerator(FakeEngineFactory(), FakeExporter()))


def test_asset_store_from_settings(tmp_path):
    assert GeneratorSettings().asset_store() is None
    assert GeneratorSettings(asset_root=tmp_path).asset_store().root == tmp_path.resolve()


def test_manifest_jobs_use_tagged_content(tmp_path):
    manifest_path = write_yaml(tmp_path / "jobs.yaml", {
        "jobs": [
            {"name": "home", "content": {"kind": "remote", "url": "https://example.com"}},
            {"name": "invoice", "content": {"kind": "asset", "path": "invoice.html"}, "print": True},
        ],
    })

    manifest = load_manifest(manifest_path, GeneratorSettings(timeout_ms=1234))

    assert [job.name for job in manifest.jobs] == ["home", "invoice"]
    assert manifest.jobs[0].content == RemoteContent(url="https://example.com")
    assert manifest.jobs[1].content == AssetContent(path="invoice.html")
    assert manifest.jobs[1].print is True
    assert manifest.settings.timeout_ms == 1234


def test_manifest_settings_override_defaults(tmp_path):
    manifest_path = write_yaml(tmp_path / "jobs.yaml", {"settings": {"timeout_ms": 99}, "jobs": []})

    manifest = load_manifest(manifest_path, GeneratorSettings(timeout_ms=1234))

    assert manifest.settings.timeout_ms == 99
