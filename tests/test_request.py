"""Tests for request building, validation and page attributes."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from conftest import FakeEngineFactory, FakeExporter
from html_pdf_generator import (
    ISO_A4, NA_LETTER, AssetContent, ConfigurationError, GenerationRequest, InlineContent, Margins,
    PdfGenerator, RemoteContent, default_save_path, page_size_by_name,
)
from html_pdf_generator.request import default_cache_dir, normalize_pdf_name


def new_generator() -> PdfGenerator:
    return PdfGenerator(FakeEngineFactory(), FakeExporter())


@pytest.mark.parametrize("name, expected", [
    ("invoice", "invoice.pdf"),
    ("invoice.pdf", "invoice.pdf"),
    ("  report ", "report.pdf"),
    ("", ""),
    ("   ", ""),
])
def test_pdf_name_normalization(name, expected):
    assert normalize_pdf_name(name) == expected


def test_content_sources_are_mutually_exclusive():
    """The last content setter wins."""
    generator = new_generator().set_pdf_name("doc")

    generator.set_content("<p>inline</p>").set_url("https://example.com")
    assert generator.build().content == RemoteContent(url="https://example.com")

    generator.set_asset_path("page.html")
    assert generator.build().content == AssetContent(path="page.html")

    generator.set_content("<p>again</p>")
    assert generator.build().content == InlineContent(markup="<p>again</p>")


def test_base_url_applies_to_inline_content_in_either_order():
    before = new_generator().set_pdf_name("a").set_content_base_url("https://cdn/").set_content("x")
    after = new_generator().set_pdf_name("a").set_content("x").set_content_base_url("https://cdn/")

    assert before.build().content.base_url == "https://cdn/"
    assert after.build().content.base_url == "https://cdn/"


def test_build_defaults():
    request = new_generator().set_pdf_name("doc").set_content("x").build()

    assert request.name == "doc.pdf"
    assert request.output_dir == default_cache_dir()
    assert request.page_size == ISO_A4
    assert request.margins == Margins()
    assert request.resolution_dpi == 600
    assert request.timeout_ms == 30000
    assert request.print_after is False


def test_build_snapshot_is_immutable():
    request = new_generator().set_pdf_name("doc").set_content("x").set_file_path("/out").build()

    assert request.output_path == Path("/out/doc.pdf")
    with pytest.raises(ValidationError):
        request.name = "other.pdf"


@pytest.mark.parametrize("configure, message", [
    (lambda g: g.set_content("x"), "name must not be empty"),
    (lambda g: g.set_pdf_name("doc"), "content source required"),
    (lambda g: g.set_pdf_name("doc").set_content("x").set_timeout(0), "timeout must be positive"),
    (lambda g: g.set_pdf_name("doc").set_content("x").set_resolution(-1), "resolution must be positive"),
])
def test_build_rejects_invalid_configuration(configure, message):
    with pytest.raises(ConfigurationError, match=message):
        configure(new_generator()).build()


def test_margins_are_converted_from_millimeters_to_mils():
    request = new_generator().set_pdf_name("doc").set_content("x").set_margins(10, 20, 0, 5.5).build()

    assert request.margins == Margins(left=393, top=787, right=0, bottom=216)


def test_print_attributes_apply_landscape():
    request = GenerationRequest.validated(
        "doc", InlineContent(markup="x"), page_size=NA_LETTER, landscape=True, resolution_dpi=300,
    )

    attributes = request.print_attributes()

    assert attributes.media_size.width_mils == 11000
    assert attributes.media_size.height_mils == 8500
    assert attributes.resolution.horizontal_dpi == attributes.resolution.vertical_dpi == 300
    assert request.page_size == NA_LETTER


def test_landscape_and_portrait_conversions_are_stable():
    landscape = ISO_A4.as_landscape()

    assert landscape.as_landscape() == landscape
    assert landscape.as_portrait() == ISO_A4


@pytest.mark.parametrize("name", ["a4", "ISO_A4", " iso_a4 "])
def test_page_size_lookup(name):
    assert page_size_by_name(name) == ISO_A4


def test_unknown_page_size():
    with pytest.raises(ConfigurationError):
        page_size_by_name("B99")


def test_default_save_path_creates_directory(tmp_path):
    path = default_save_path(tmp_path / "files")

    assert path == tmp_path / "files" / "PDF"
    assert path.is_dir()
    assert default_save_path(tmp_path, "Reports") == tmp_path / "Reports"
