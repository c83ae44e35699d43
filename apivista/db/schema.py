"""DuckDB schema definitions."""

import duckdb


def get_connection(path: str = ":memory:") -> duckdb.DuckDBPyConnection:
    """Get a DuckDB connection."""
    return duckdb.connect(path)


def create_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create DuckDB tables for catalog entities.

    There are no foreign keys: cascades and referential checks are the
    store's job. Every table carries ``seq``, drawn from one shared sequence,
    which records creation order.
    """

    conn.execute("CREATE SEQUENCE IF NOT EXISTS catalog_seq START 1")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            name VARCHAR NOT NULL,
            name_ar VARCHAR,
            description VARCHAR,
            description_ar VARCHAR,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS providers (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            name VARCHAR NOT NULL,
            short_code VARCHAR NOT NULL,
            website_url VARCHAR NOT NULL,
            description VARCHAR,
            logo_url VARCHAR,
            documentation_url VARCHAR,
            geographic_coverage VARCHAR,
            data_sources VARCHAR[],
            historical_data_available BOOLEAN DEFAULT false,
            historical_data_depth VARCHAR,
            realtime_latency VARCHAR,
            data_granularity VARCHAR,
            data_completeness VARCHAR,
            data_refresh_rate VARCHAR,
            uptime_guarantee VARCHAR,
            service_level_agreement VARCHAR,
            support_channels VARCHAR[],
            maintenance_windows VARCHAR,
            incident_response_time VARCHAR,
            pricing_model VARCHAR,
            free_tier_available BOOLEAN DEFAULT false,
            compliance_standards VARCHAR[],
            data_retention_policy VARCHAR,
            privacy_policy VARCHAR,
            terms_of_service VARCHAR,
            contact_info JSON,
            support_email VARCHAR,
            sales_contact VARCHAR,
            technical_contact VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS environments (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            provider_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            display_name VARCHAR NOT NULL,
            base_url VARCHAR NOT NULL,
            description VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS services (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            provider_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            display_name VARCHAR NOT NULL,
            description VARCHAR,
            icon VARCHAR,
            version VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    # provider_id duplicates the owning service's provider to save a join hop
    conn.execute("""
        CREATE TABLE IF NOT EXISTS apis (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            service_id VARCHAR NOT NULL,
            provider_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            display_name VARCHAR NOT NULL,
            description VARCHAR,
            version VARCHAR,
            base_path VARCHAR,
            auth_type VARCHAR,
            rate_limit VARCHAR,
            supported_formats VARCHAR[],
            api_design_style VARCHAR,
            documentation_url VARCHAR,
            swagger_url VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS endpoints (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            api_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            path VARCHAR NOT NULL,
            description VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS operations (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            endpoint_id VARCHAR NOT NULL,
            method VARCHAR NOT NULL,
            operation_id VARCHAR,
            summary VARCHAR,
            description VARCHAR,
            auth_required BOOLEAN DEFAULT true,
            scopes VARCHAR[],
            rate_limit VARCHAR,
            default_response_format VARCHAR,
            cacheable BOOLEAN DEFAULT false,
            cache_time INTEGER,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS parameters (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            operation_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            "type" VARCHAR NOT NULL,
            "location" VARCHAR NOT NULL,
            description VARCHAR,
            required BOOLEAN DEFAULT false,
            default_value VARCHAR,
            example VARCHAR,
            "format" VARCHAR,
            pattern VARCHAR,
            min_length INTEGER,
            max_length INTEGER,
            minimum INTEGER,
            maximum INTEGER,
            "enum" VARCHAR[],
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS response_schemas (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            operation_id VARCHAR NOT NULL,
            status_code INTEGER NOT NULL,
            media_type VARCHAR,
            schema_doc JSON,
            description VARCHAR,
            example JSON,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)

    # Many-to-many category tagging
    conn.execute("""
        CREATE TABLE IF NOT EXISTS provider_categories (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            provider_id VARCHAR NOT NULL,
            category_id VARCHAR NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS api_categories (
            id VARCHAR PRIMARY KEY,
            seq BIGINT NOT NULL,
            api_id VARCHAR NOT NULL,
            category_id VARCHAR NOT NULL
        )
    """)


def drop_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Drop all tables."""
    conn.execute("DROP TABLE IF EXISTS api_categories")
    conn.execute("DROP TABLE IF EXISTS provider_categories")
    conn.execute("DROP TABLE IF EXISTS response_schemas")
    conn.execute("DROP TABLE IF EXISTS parameters")
    conn.execute("DROP TABLE IF EXISTS operations")
    conn.execute("DROP TABLE IF EXISTS endpoints")
    conn.execute("DROP TABLE IF EXISTS apis")
    conn.execute("DROP TABLE IF EXISTS services")
    conn.execute("DROP TABLE IF EXISTS environments")
    conn.execute("DROP TABLE IF EXISTS providers")
    conn.execute("DROP TABLE IF EXISTS categories")
    conn.execute("DROP SEQUENCE IF EXISTS catalog_seq")
