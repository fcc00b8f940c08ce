"""dynatlas: stain-label lookup over embryo imaging atlases."""

__version__ = "0.1.0"
