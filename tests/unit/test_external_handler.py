import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from keyspace.codec import TokenCodec
from keyspace.errors import (
    InvalidKeyError,
    InvalidKeyIdentifierError,
    KeyRegistryError,
)
from keyspace.handlers import ExternalKeyNamespaceHandler
from keyspace.models import NamespaceOptions, NamespaceRecord
from keyspace.persistence import InMemoryRecordStore
from keyspace.registry import InMemoryKeyRegistry, KeyStatus, RegisteredKey


class FailingRegistry:
    async def resolve(self, key_ref):
        raise KeyRegistryError("registry offline", key=key_ref)


class CountingRegistry(InMemoryKeyRegistry):
    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    async def resolve(self, key_ref):
        self.lookups += 1
        return await super().resolve(key_ref)


def _registered(key_id, status=KeyStatus.ACTIVE):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return RegisteredKey(
        id=key_id,
        material=key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ),
        public_material=key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ),
        status=status,
    )


def _options(key="k1"):
    return NamespaceOptions(
        id="svc", algorithm="RS256", token_ttl_in_secs=300, clock_tolerance_in_secs=30, key=key
    )


@pytest.mark.asyncio
async def test_create_state_stores_reference_only(clock):
    registry = InMemoryKeyRegistry()
    registry.register(_registered("k1"))
    handler = ExternalKeyNamespaceHandler(InMemoryRecordStore(), TokenCodec(clock=clock), registry)

    assert await handler.create_state(_options()) == {"key": "k1"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [KeyStatus.REVOKED, KeyStatus.UNKNOWN])
async def test_create_state_rejects_inactive_keys(clock, status):
    registry = InMemoryKeyRegistry()
    registry.register(_registered("k1", status=status))
    handler = ExternalKeyNamespaceHandler(InMemoryRecordStore(), TokenCodec(clock=clock), registry)

    with pytest.raises(InvalidKeyError):
        await handler.create_state(_options())


@pytest.mark.asyncio
async def test_create_state_rejects_missing_key_and_lookup_failures(clock):
    codec = TokenCodec(clock=clock)
    handler = ExternalKeyNamespaceHandler(InMemoryRecordStore(), codec, InMemoryKeyRegistry())
    with pytest.raises(InvalidKeyError):
        await handler.create_state(_options("absent"))

    failing = ExternalKeyNamespaceHandler(InMemoryRecordStore(), codec, FailingRegistry())
    with pytest.raises(InvalidKeyError) as excinfo:
        await failing.create_state(_options())
    assert isinstance(excinfo.value.__cause__, KeyRegistryError)


@pytest.mark.asyncio
async def test_every_resolution_consults_registry(clock):
    store = InMemoryRecordStore()
    registry = CountingRegistry()
    registry.register(_registered("k1"))
    handler = ExternalKeyNamespaceHandler(store, TokenCodec(clock=clock), registry)
    await store.insert(NamespaceRecord.from_options(_options(), await handler.create_state(_options())))

    first = await handler.get_key("svc")
    second = await handler.get_key("svc")
    assert first.id == second.id == "k1"
    assert registry.lookups == 3

    registry.revoke("k1")
    with pytest.raises(InvalidKeyError):
        await handler.get_key("svc")


@pytest.mark.asyncio
async def test_verify_checks_key_identifier(clock):
    store = InMemoryRecordStore()
    registry = InMemoryKeyRegistry()
    registry.register(_registered("k1"))
    handler = ExternalKeyNamespaceHandler(store, TokenCodec(clock=clock), registry)
    record = NamespaceRecord.from_options(_options(), await handler.create_state(_options()))
    await store.insert(record)

    token = await handler.sign(record, {"sub": "bob"})
    assert (await handler.verify(token, record, "k1"))["sub"] == "bob"
    with pytest.raises(InvalidKeyIdentifierError):
        await handler.verify(token, record, "k2")
