from __future__ import annotations

from dataclasses import dataclass

from assistant_relay.config.settings import Settings, get_settings


@dataclass(frozen=True)
class DatabaseConfig:
    """Database subset of the settings, used by the `db` session store backend."""

    url: str
    echo: bool
    auto_migrate: bool

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConfig:
        return cls(
            url=settings.database_url,
            echo=settings.database_echo,
            auto_migrate=settings.database_auto_migrate,
        )


def get_database_config() -> DatabaseConfig:
    return DatabaseConfig.from_settings(get_settings())
