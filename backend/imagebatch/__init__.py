"""Local batch image conversion: WebP to JPEG archives and image-to-PDF assembly."""

__version__ = "1.0.0"
