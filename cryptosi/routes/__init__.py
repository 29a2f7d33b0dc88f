"""
CryptoSI Images Routes

Route Modules:
- form: form transitions, image uploads and generation
- health: liveness probes

API Structure:
- /v1/form/* - form state transitions
- /v1/generate - submit the current form
"""

from . import form, health

__all__ = ["form", "health"]
