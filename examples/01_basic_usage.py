"""
Basic Request Client Usage Examples

Demonstrates GET with query, POST with JSON and 4xx handling.
"""

from request_client import BearerAuth, ClientConfig, RequestClient


def basic_get_request():
    """Simple GET request with query parameters."""
    print("\n=== Basic GET Request ===")

    with RequestClient(base_url="https://jsonplaceholder.typicode.com") as client:
        response = client.get("/posts", query={"userId": "1"})

        print(f"Status: {response.status_code}")
        print(f"Posts: {len(response.json())}")


def post_with_json():
    """POST request with JSON body and bearer auth."""
    print("\n=== POST with JSON ===")

    config = ClientConfig.create(
        base_url="https://jsonplaceholder.typicode.com",
        auth=BearerAuth("demo-token"),
        timeout=10,
    )
    with RequestClient(config) as client:
        response = client.post("/posts", json={"title": "My Post", "userId": 1})

        print(f"Status: {response.status_code}")
        print(f"Created: {response.json()}")


def not_found_is_a_response():
    """4xx is returned, raise_for_status() turns it into ClientError."""
    print("\n=== 404 Handling ===")

    with RequestClient(base_url="https://jsonplaceholder.typicode.com") as client:
        response = client.get("/posts/999999")
        print(f"Status: {response.status_code}, ok={response.ok}")


if __name__ == "__main__":
    basic_get_request()
    post_with_json()
    not_found_is_a_response()
