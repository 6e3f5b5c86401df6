"""
Structured logging and configuration from environment.

Run with e.g.:
    REQUEST_CLIENT_BASE_URL=https://httpbin.org \
    REQUEST_CLIENT_AUTH_TYPE=apikey REQUEST_CLIENT_API_KEY=demo \
    REQUEST_CLIENT_API_KEY_PLACEMENT=query \
    REQUEST_CLIENT_LOG_LEVEL=INFO REQUEST_CLIENT_LOG_FORMAT=pretty \
    python examples/03_logging_and_env.py
"""

from request_client import ClientConfig, LoggingConfig, RequestClient, load_from_env


def pretty_logging():
    """Every attempt is logged; secrets are masked, the body is hidden."""
    print("\n=== Pretty JSON logs ===")

    config = ClientConfig.create(
        base_url="https://httpbin.org",
        headers={"Authorization": "Bearer not-in-logs"},
        disable_log_body=True,
        logging=LoggingConfig.create(level="INFO", format="pretty"),
    )
    with RequestClient(config) as client:
        client.get("/get", query={"page": "1"})


def from_environment():
    """ClientConfig built from REQUEST_CLIENT_* variables and .env."""
    print("\n=== Config from environment ===")

    with RequestClient(load_from_env()) as client:
        response = client.get("/anything")
        print(f"Status: {response.status_code}")


if __name__ == "__main__":
    pretty_logging()
    from_environment()
