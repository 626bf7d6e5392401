"""
Signature schemes for external webhook providers (ePayco, Wompi, Meta, Evolution)
"""

from .base import SignatureScheme, signatures_match
from .epayco import (
    EpaycoSignatureScheme,
    compute_epayco_signature,
    normalize_epayco_event,
)
from .wompi import WompiSignatureScheme, compute_wompi_checksum, normalize_wompi_event
from .meta import HubSignatureScheme, compute_hub_signature, SIGNATURE_HEADER

__all__ = [
    "SignatureScheme",
    "signatures_match",
    "EpaycoSignatureScheme",
    "compute_epayco_signature",
    "normalize_epayco_event",
    "WompiSignatureScheme",
    "compute_wompi_checksum",
    "normalize_wompi_event",
    "HubSignatureScheme",
    "compute_hub_signature",
    "SIGNATURE_HEADER",
]
