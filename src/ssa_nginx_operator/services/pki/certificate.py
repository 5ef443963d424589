"""Self-signed certificate authority for ingress mutual TLS.

A ``CertificateAuthority`` owns its signing key for the lifetime of a single
issuance. Nothing is cached at module level, so reconciles of different
descriptors running on different worker threads never share key material.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

CA_VALIDITY = timedelta(days=365 * 10)
LEAF_VALIDITY = timedelta(days=365 * 9)

CA_COMMON_NAME = "ca"
SERVER_COMMON_NAME = "server"
CLIENT_COMMON_NAME = "client"

ORGANIZATION = "Example Org"
ORGANIZATIONAL_UNIT = "Example Org Unit"
COUNTRY = "JP"


@dataclass(frozen=True)
class KeyPair:
    """PEM encoded certificate and private key."""

    certificate: bytes
    private_key: bytes


@dataclass(frozen=True)
class CertificateBundle:
    """CA, server and client material issued together."""

    ca: KeyPair
    server: KeyPair
    client: KeyPair
    host: str


def generate_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE)


def build_name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, COUNTRY),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, ORGANIZATION),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, ORGANIZATIONAL_UNIT),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def dump_cert_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def dump_key_pem(key: rsa.RSAPrivateKey) -> bytes:
    """Serialize a key in PKCS#1 ``RSA PRIVATE KEY`` form."""
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )


def load_cert_pem(pem: bytes | str) -> x509.Certificate:
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    return x509.load_pem_x509_certificate(pem)


def certificate_dns_names(pem: bytes | str) -> list[str]:
    """Return the DNS subject alternative names of a PEM certificate."""
    cert = load_cert_pem(pem)
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []
    return san.value.get_values_for_type(x509.DNSName)


def _key_usage(
    digital_signature: bool = False,
    key_encipherment: bool = False,
    key_cert_sign: bool = False,
    crl_sign: bool = False,
) -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=digital_signature,
        content_commitment=False,
        key_encipherment=key_encipherment,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=key_cert_sign,
        crl_sign=crl_sign,
        encipher_only=False,
        decipher_only=False,
    )


class CertificateAuthority:
    """Self-signed CA able to sign server and client leaves."""

    def __init__(self, key: rsa.RSAPrivateKey, certificate: x509.Certificate):
        self.key = key
        self.certificate = certificate

    @classmethod
    def create(cls, now: datetime | None = None) -> "CertificateAuthority":
        """Generate a fresh key pair and self-signed CA certificate."""
        now = now or datetime.now(timezone.utc)
        key = generate_private_key()
        name = build_name(CA_COMMON_NAME)

        builder = (
            x509.CertificateBuilder()
            .serial_number(x509.random_serial_number())
            .issuer_name(name)
            .subject_name(name)
            .public_key(key.public_key())
            .not_valid_before(now)
            .not_valid_after(now + CA_VALIDITY)
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .add_extension(
                _key_usage(digital_signature=True, key_cert_sign=True, crl_sign=True),
                critical=True,
            )
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        )
        certificate = builder.sign(private_key=key, algorithm=hashes.SHA256())
        return cls(key, certificate)

    @property
    def key_pair(self) -> KeyPair:
        return KeyPair(dump_cert_pem(self.certificate), dump_key_pem(self.key))

    def _issue_leaf(
        self,
        common_name: str,
        key_usage: x509.KeyUsage,
        extended_key_usage: x509.ObjectIdentifier,
        dns_names: list[str] | None = None,
        now: datetime | None = None,
    ) -> KeyPair:
        now = now or datetime.now(timezone.utc)
        key = generate_private_key()

        builder = (
            x509.CertificateBuilder()
            .serial_number(x509.random_serial_number())
            .issuer_name(self.certificate.subject)
            .subject_name(build_name(common_name))
            .public_key(key.public_key())
            .not_valid_before(now)
            .not_valid_after(now + LEAF_VALIDITY)
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(key_usage, critical=True)
            .add_extension(x509.ExtendedKeyUsage([extended_key_usage]), critical=False)
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(self.key.public_key()),
                critical=False,
            )
        )
        if dns_names:
            builder = builder.add_extension(
                x509.SubjectAlternativeName([x509.DNSName(name) for name in dns_names]),
                critical=False,
            )

        certificate = builder.sign(private_key=self.key, algorithm=hashes.SHA256())
        return KeyPair(dump_cert_pem(certificate), dump_key_pem(key))

    def issue_server(self, host: str, now: datetime | None = None) -> KeyPair:
        """Issue a server-auth leaf whose SAN is ``host``."""
        return self._issue_leaf(
            SERVER_COMMON_NAME,
            _key_usage(digital_signature=True),
            ExtendedKeyUsageOID.SERVER_AUTH,
            dns_names=[host],
            now=now,
        )

    def issue_client(self, now: datetime | None = None) -> KeyPair:
        """Issue a client-auth leaf."""
        return self._issue_leaf(
            CLIENT_COMMON_NAME,
            _key_usage(digital_signature=True, key_encipherment=True),
            ExtendedKeyUsageOID.CLIENT_AUTH,
            now=now,
        )


def issue_bundle(host: str) -> CertificateBundle:
    """Create a new CA and issue the server and client leaves it signs."""
    now = datetime.now(timezone.utc)
    authority = CertificateAuthority.create(now=now)
    return CertificateBundle(
        ca=authority.key_pair,
        server=authority.issue_server(host, now=now),
        client=authority.issue_client(now=now),
        host=host,
    )
