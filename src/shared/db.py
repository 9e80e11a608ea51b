"""Database provider wiring and schema management for the protean domains."""

from protean.domain import Domain
from sqlalchemy import create_engine

from shared.config import get_settings


def configure_database(domain: Domain):
    """Point the default provider at PostgreSQL when DATABASE_URL is set.

    Must run before ``domain.init()``. Without a URL the domain keeps
    protean's in-memory provider.
    """
    database_url = get_settings().DATABASE_URL
    if database_url:
        domain.config["databases"]["default"] = {
            "provider": "postgresql",
            "database_uri": database_url,
        }


def _register_models(domain: Domain, provider):
    # Accessing _dao forces each element's model to register with the provider's metadata
    for registry in (domain.registry.aggregates, domain.registry.entities):
        for _, record in registry.items():
            if record.cls.meta_.provider == provider.name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create database tables for every relational provider of ``domain``."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                _register_models(domain, provider)
                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop the tables created by ``setup_db``."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
