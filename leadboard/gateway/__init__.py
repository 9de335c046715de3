"""Remote store gateways.

``build_gateway`` picks the backend named by STORE_BACKEND and hands it the
capabilities resolved from config at startup.
"""

from leadboard.gateway.base import GatewayCapabilities, RemoteStoreGateway  # noqa: F401

BACKENDS = ("sql", "supabase")


def build_gateway(config):
    """Return a gateway for the given Flask config mapping.

    Raises:
        ValueError: If STORE_BACKEND is unknown.
    """
    backend = config.get("STORE_BACKEND", "sql")
    capabilities = GatewayCapabilities.from_config(config)

    if backend == "sql":
        from leadboard.gateway.sql import SqlGateway
        return SqlGateway(capabilities)

    if backend == "supabase":
        from leadboard.gateway.supabase import SupabaseGateway
        return SupabaseGateway(
            config["SUPABASE_URL"],
            config["SUPABASE_SERVICE_KEY"],
            capabilities=capabilities,
            timeout=config.get("SUPABASE_TIMEOUT", 10),
        )

    raise ValueError(
        f"Invalid STORE_BACKEND '{backend}'. Must be one of: {', '.join(BACKENDS)}"
    )
