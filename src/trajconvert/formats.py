"""Registry of supported output trajectory formats.

Each format carries the capability flags the encoders and the driver loop
consult, so adding a format never touches the conversion loop.
"""

from __future__ import annotations

from dataclasses import dataclass

from trajconvert.errors import UnsupportedFormatError

ANGSTROM = "angstrom"
NANOMETER = "nanometer"


@dataclass(frozen=True)
class TrajectoryFormat:
    """Static description of a trajectory file format."""

    key: str
    name: str
    aliases: tuple[str, ...]
    suffix: str
    distance_unit: str
    # Total frame count is fixed in a header written before frame data.
    requires_frame_count_header: bool
    # Bytes for frame N are final as soon as frame N is written.
    streamable: bool
    description: str = ""

    def matches(self, name: str) -> bool:
        wanted = name.strip().lower()
        return wanted in {self.key, self.name.lower(), *self.aliases}


BIN = TrajectoryFormat(
    key="bin",
    name="BIN",
    aliases=("bin",),
    suffix=".bin",
    distance_unit=ANGSTROM,
    requires_frame_count_header=False,
    streamable=True,
    description="Headerless little-endian float32 coordinates",
)
XTC = TrajectoryFormat(
    key="xtc",
    name="XTC",
    aliases=("xtc",),
    suffix=".xtc",
    distance_unit=NANOMETER,
    requires_frame_count_header=False,
    streamable=True,
    description="GROMACS compressed trajectory",
)
TRR = TrajectoryFormat(
    key="trr",
    name="TRR",
    aliases=("trr",),
    suffix=".trr",
    distance_unit=NANOMETER,
    requires_frame_count_header=False,
    streamable=False,
    description="GROMACS full-precision trajectory",
)
NETCDF = TrajectoryFormat(
    key="netcdf",
    name="Amber NetCDF",
    aliases=("nc", "netcdf", "ncdf"),
    suffix=".nc",
    distance_unit=ANGSTROM,
    requires_frame_count_header=True,
    streamable=False,
    description="Amber NetCDF trajectory (frame count stored in the header)",
)
DCD = TrajectoryFormat(
    key="dcd",
    name="DCD",
    aliases=("dcd",),
    suffix=".dcd",
    distance_unit=ANGSTROM,
    requires_frame_count_header=True,
    streamable=False,
    description="CHARMM/NAMD binary trajectory (frame count stored in the header)",
)
MDCRD = TrajectoryFormat(
    key="mdcrd",
    name="Amber MDCRD",
    aliases=("mdcrd", "crd"),
    suffix=".mdcrd",
    distance_unit=ANGSTROM,
    requires_frame_count_header=False,
    streamable=False,
    description="Amber ASCII trajectory",
)

_REGISTRY: dict[str, TrajectoryFormat] = {
    fmt.key: fmt for fmt in (BIN, XTC, TRR, NETCDF, DCD, MDCRD)
}


def available_formats() -> list[TrajectoryFormat]:
    """Return the supported formats in declaration order."""
    return list(_REGISTRY.values())


def resolve_format(name: str) -> TrajectoryFormat:
    """Look up a format by key, canonical name, or alias (case-insensitive)."""
    for fmt in _REGISTRY.values():
        if fmt.matches(name):
            return fmt
    supported = ", ".join(fmt.name for fmt in _REGISTRY.values())
    raise UnsupportedFormatError(
        f"Unsupported output format {name!r}. Choose one of: {supported}"
    )
