"""Startup connection to the record store.

The configured username and password are tried at the database scope, then
the namespace scope, then the root scope. The first scope that accepts them
wins. Only an authentication rejection moves on to the next scope; any other
failure aborts startup.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from src.shortlinks.core.services.database.memory_store import InMemoryRecordStore
from src.shortlinks.core.services.database.record_store import (
    AuthenticationFailedError,
    CredentialScope,
    Credentials,
    RecordStore,
    RecordStoreError,
)
from src.shortlinks.runtime.config.config_data import DatabaseConfig

INIT_SCRIPT_PATH = Path(__file__).with_name("init.surql")


class StartupError(RuntimeError):
    """The process cannot serve traffic because the record store is unusable."""


def credential_cascade(config: DatabaseConfig) -> list[Credentials]:
    """Credentials to try, most restrictive scope first."""
    password = config.resolved_password
    return [
        Credentials(
            scope=CredentialScope.DATABASE,
            namespace=config.namespace,
            database=config.database,
            username=config.username,
            password=password,
        ),
        Credentials(
            scope=CredentialScope.NAMESPACE,
            namespace=config.namespace,
            username=config.username,
            password=password,
        ),
        Credentials(
            scope=CredentialScope.ROOT,
            username=config.username,
            password=password,
        ),
    ]


async def sign_in_least_privileged(
    store: RecordStore, config: DatabaseConfig
) -> CredentialScope:
    """Sign in with the first scope that accepts the configured credentials.

    Returns:
        The scope that authenticated

    Raises:
        StartupError: If every scope rejects the credentials, or on any
            failure that is not an authentication rejection
    """
    for credentials in credential_cascade(config):
        logger.debug("Trying to sign in as a {} user", credentials.scope.value)
        try:
            await store.sign_in(credentials)
        except AuthenticationFailedError as e:
            logger.debug(
                "Sign-in rejected at {} scope: {}", credentials.scope.value, e
            )
            continue
        except RecordStoreError as e:
            raise StartupError(
                f"Sign-in at {credentials.scope.value} scope failed: {e}"
            ) from e

        logger.info("Signed in to record store as a {} user", credentials.scope.value)
        return credentials.scope

    raise StartupError(
        f"Record store rejected user {config.username!r} at database, namespace and root scope"
    )


def create_record_store(config: DatabaseConfig) -> RecordStore:
    """Instantiate the backend matching the configured endpoint."""
    if config.is_in_memory:
        logger.warning("Using in-memory record store; data is lost on restart")
        return InMemoryRecordStore()

    from src.shortlinks.core.services.database.surreal_store import SurrealRecordStore

    return SurrealRecordStore(config.endpoint)


async def connect_record_store(
    config: DatabaseConfig,
    store: RecordStore | None = None,
    init_script: str | None = None,
) -> RecordStore:
    """Connect, authenticate, bind and initialize the record store.

    The returned handle is shared by every request for the lifetime of the
    process.

    Raises:
        StartupError: On any failure; the caller must not start serving
    """
    store = store if store is not None else create_record_store(config)

    try:
        await store.connect()
    except RecordStoreError as e:
        raise StartupError(f"Cannot reach record store at {config.endpoint}: {e}") from e

    await sign_in_least_privileged(store, config)

    script = init_script if init_script is not None else INIT_SCRIPT_PATH.read_text()
    try:
        await store.use(config.namespace, config.database)
        await store.run_script(script)
    except RecordStoreError as e:
        raise StartupError(f"Record store initialization failed: {e}") from e

    logger.info(
        "Record store ready (namespace={}, database={})", config.namespace, config.database
    )
    return store
