"""Page attributes handed to the document exporter.

All lengths are expressed in mils (thousandths of an inch), the native unit
of the exporter contract.
"""

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

MILS_PER_MM = 39.3701
MILS_PER_INCH = 1000


class PageSize(BaseModel):
    """Named media size."""
    model_config = ConfigDict(frozen=True)

    id: str
    width_mils: int
    height_mils: int

    @property
    def is_portrait(self) -> bool:
        return self.height_mils >= self.width_mils

    def as_landscape(self) -> 'PageSize':
        """Return this size with the long edge horizontal."""
        if not self.is_portrait:
            return self
        return PageSize(id=self.id, width_mils=self.height_mils, height_mils=self.width_mils)

    def as_portrait(self) -> 'PageSize':
        if self.is_portrait:
            return self
        return PageSize(id=self.id, width_mils=self.height_mils, height_mils=self.width_mils)


ISO_A3 = PageSize(id="ISO_A3", width_mils=11690, height_mils=16540)
ISO_A4 = PageSize(id="ISO_A4", width_mils=8270, height_mils=11690)
ISO_A5 = PageSize(id="ISO_A5", width_mils=5830, height_mils=8270)
NA_LETTER = PageSize(id="NA_LETTER", width_mils=8500, height_mils=11000)
NA_LEGAL = PageSize(id="NA_LEGAL", width_mils=8500, height_mils=14000)
NA_TABLOID = PageSize(id="NA_TABLOID", width_mils=11000, height_mils=17000)

PAGE_SIZES: dict[str, PageSize] = {
    size.id: size for size in (ISO_A3, ISO_A4, ISO_A5, NA_LETTER, NA_LEGAL, NA_TABLOID)
}


def page_size_by_name(name: str) -> PageSize:
    """Look up a page size by id, case-insensitively ("a4" and "ISO_A4" both work)."""
    key = name.strip().upper()
    if key in PAGE_SIZES:
        return PAGE_SIZES[key]
    for prefix in ("ISO_", "NA_"):
        if prefix + key in PAGE_SIZES:
            return PAGE_SIZES[prefix + key]
    raise ConfigurationError(f"Unknown page size: {name}")


class Margins(BaseModel):
    """Minimum page margins in mils."""
    model_config = ConfigDict(frozen=True)

    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    @classmethod
    def from_millimeters(cls, left: float, top: float, right: float, bottom: float) -> 'Margins':
        """Convert millimetre margins to mils, truncating like the exporter does."""
        return cls(
            left=int(left * MILS_PER_MM),
            top=int(top * MILS_PER_MM),
            right=int(right * MILS_PER_MM),
            bottom=int(bottom * MILS_PER_MM),
        )


NO_MARGINS = Margins()


class Resolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = "pdf"
    label: str = "pdf"
    horizontal_dpi: int
    vertical_dpi: int


class PrintAttributes(BaseModel):
    """Attributes for one export: landscape is already applied to ``media_size``."""
    model_config = ConfigDict(frozen=True)

    media_size: PageSize
    resolution: Resolution
    min_margins: Margins = NO_MARGINS


def mils_to_css_inches(mils: int) -> str:
    """Render a mil length as a CSS inch length (e.g. ``8.27in``)."""
    return f"{mils / MILS_PER_INCH:g}in"
