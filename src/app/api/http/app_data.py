from dataclasses import dataclass

from src.app.core.services import (
    BookRegistryService,
    DbSessionService,
    JwtIdentitySource,
    build_store,
)
from src.app.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    registry_service: BookRegistryService
    identity_source: JwtIdentitySource
    database_service: DbSessionService | None = None

    @classmethod
    def from_config(cls, config: ConfigData) -> "ApplicationDependencies":
        """Build the process-wide services described by ``config``."""
        identity_source = JwtIdentitySource()
        database_service = DbSessionService(config.database) if config.registry.store == "sql" else None
        store = build_store(config.registry.store, database_service)
        return cls(
            registry_service=BookRegistryService(store, identity_source, config.registry),
            identity_source=identity_source,
            database_service=database_service,
        )

    def close(self) -> None:
        if self.database_service is not None:
            self.database_service.dispose()
