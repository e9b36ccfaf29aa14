"""TLS certificate probe for the audited domain."""

import hashlib
import logging
import math
import socket
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID

from seo_audit.constants import (
    DEFAULT_CERTIFICATE_TIMEOUT_SECONDS,
    CERTIFICATE_EXPIRY_WARNING_DAYS,
    CERTIFICATE_UNKNOWN,
)
from seo_audit.models import CertificateInfo

logger = logging.getLogger(__name__)

# Format of notAfter in ssl.getpeercert()
CERT_DATE_FORMAT = "%b %d %H:%M:%S %Y %Z"


@dataclass
class PeerCertificate:
    """Raw fields read from a server certificate."""

    valid_to: Optional[str] = None
    issuer_cn: Optional[str] = None
    subject_cn: Optional[str] = None
    serial_number: Optional[str] = None
    fingerprint: Optional[str] = None
    verified: bool = True


def _common_name(rdns) -> Optional[str]:
    for rdn in rdns or ():
        for key, value in rdn:
            if key == "commonName":
                return value
    return None


def _name_cn(name: x509.Name) -> Optional[str]:
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    return str(attributes[0].value) if attributes else None


def peer_from_der(der_bytes: bytes, verified: bool = False) -> PeerCertificate:
    """Decode a DER certificate into the same fields getpeercert() reports.

    Raises:
        ValueError: The bytes are not a DER X.509 certificate
    """
    cert = x509.load_der_x509_certificate(der_bytes)
    expiry = cert.not_valid_after_utc
    serial = f"{cert.serial_number:X}"
    if len(serial) % 2:
        serial = "0" + serial
    return PeerCertificate(
        valid_to=f"{expiry:%b} {expiry.day:2d} {expiry:%H:%M:%S %Y} GMT",
        issuer_cn=_name_cn(cert.issuer),
        subject_cn=_name_cn(cert.subject),
        serial_number=serial,
        fingerprint=sha1_fingerprint(der_bytes),
        verified=verified,
    )


def sha1_fingerprint(der_bytes: bytes) -> str:
    """Colon-separated uppercase SHA-1 of a DER certificate."""
    digest = hashlib.sha1(der_bytes).hexdigest().upper()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def days_until(valid_to: str, now: Optional[datetime] = None) -> int:
    """Whole days (rounded up) until a notAfter timestamp."""
    expiry = datetime.strptime(valid_to, CERT_DATE_FORMAT).replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return math.ceil((expiry - now).total_seconds() / 86400)


class CertificateProbe:
    """Reads the certificate a host presents on port 443."""

    def __init__(self, timeout: float = DEFAULT_CERTIFICATE_TIMEOUT_SECONDS, port: int = 443):
        self.timeout = timeout
        self.port = port

    def _handshake(self, hostname: str, verify: bool) -> Tuple[dict, Optional[bytes]]:
        context = ssl.create_default_context()
        if not verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        with socket.create_connection((hostname, self.port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                return ssock.getpeercert() or {}, ssock.getpeercert(binary_form=True)

    def get_certificate(self, hostname: str) -> Optional[PeerCertificate]:
        """
        Read the peer certificate of a host.

        A certificate that fails verification is read again without
        verification. getpeercert() is empty then, so its fields are decoded
        from the DER bytes.

        Returns:
            PeerCertificate, or None if the server presented none

        Raises:
            socket.timeout: Handshake timed out
            OSError: Connection failures
        """
        try:
            cert, der = self._handshake(hostname, verify=True)
        except ssl.SSLCertVerificationError as e:
            logger.info(f"Certificate for {hostname} failed verification: {e}")
            _, der = self._handshake(hostname, verify=False)
            if not der:
                return None
            try:
                return peer_from_der(der, verified=False)
            except ValueError as decode_error:
                logger.warning(f"Could not decode certificate of {hostname}: {decode_error}")
                return PeerCertificate(fingerprint=sha1_fingerprint(der), verified=False)

        if not cert and not der:
            return None

        return PeerCertificate(
            valid_to=cert.get("notAfter"),
            issuer_cn=_common_name(cert.get("issuer")),
            subject_cn=_common_name(cert.get("subject")),
            serial_number=cert.get("serialNumber"),
            fingerprint=sha1_fingerprint(der) if der else None,
        )

    def describe(self, hostname: str) -> CertificateInfo:
        """Summarize a host's certificate; never raises."""
        try:
            peer = self.get_certificate(hostname)
        except socket.timeout:
            logger.warning(f"Certificate probe for {hostname} timed out")
            return CertificateInfo(status="timeout")
        except OSError as e:
            logger.warning(f"Certificate probe for {hostname} failed: {e}")
            return CertificateInfo(status="connection_error", error=str(e))
        except ValueError as e:
            return CertificateInfo(status="error", error=str(e))

        if peer is None:
            return CertificateInfo(status="no_certificate")

        info = CertificateInfo(
            issuer=peer.issuer_cn or CERTIFICATE_UNKNOWN,
            subject=peer.subject_cn or CERTIFICATE_UNKNOWN,
            serial_number=peer.serial_number or CERTIFICATE_UNKNOWN,
            fingerprint=peer.fingerprint or CERTIFICATE_UNKNOWN,
        )

        if not peer.valid_to:
            info.status = "no_certificate" if peer.verified else "invalid_certificate"
            return info

        try:
            remaining = days_until(peer.valid_to)
        except ValueError as e:
            info.status, info.error = "error", f"Unparseable expiry {peer.valid_to!r}: {e}"
            return info

        info.valid_until = peer.valid_to
        info.days_until_expiry = remaining

        # an unverified certificate is never valid; expiry still takes precedence
        if not peer.verified:
            info.status = "expired" if remaining <= 0 else "invalid_certificate"
            return info

        info.is_valid = remaining > 0
        if not info.is_valid:
            info.status = "expired"
        elif remaining < CERTIFICATE_EXPIRY_WARNING_DAYS:
            info.status = "expiring_soon"
        else:
            info.status = "valid"
        return info
