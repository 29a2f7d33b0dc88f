"""CryptoSI Images: form backend for the Hyperbolic image generation API."""

__version__ = "0.1.0"
