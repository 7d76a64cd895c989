"""
Basic tinyget client example.

This example demonstrates building requests, sending them and reading
the response through the different body views.
"""

import logging
import sys

import tinyget

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def simple_get_request(base_url: str):
    """Demonstrate a simple GET request."""
    logger.info("Making simple GET request...")

    response = tinyget.get(f"{base_url}/get").with_timeout(10).send()
    logger.info(f"Response status: {response.status_code} {response.reason_phrase}")
    logger.info(f"Content-Type: {response.headers.get('content-type')}")
    logger.info(f"Response body length: {len(response.as_bytes())} bytes")


def post_request_with_body(base_url: str):
    """Demonstrate a POST request with body."""
    logger.info("Making POST request with body...")

    response = (
        tinyget.post(f"{base_url}/post")
        .with_header("Content-Type", "application/json")
        .with_body('{"message": "Hello, World!"}')
        .with_timeout(10)
        .send()
    )
    logger.info(f"Response status: {response.status_code}")

    if "Hello, World!" in response.as_str():
        logger.info("Our data was received by the server")


def redirect_demo(base_url: str):
    """Demonstrate redirect following."""
    logger.info("Following redirects...")

    response = tinyget.get(f"{base_url}/redirect/3").with_timeout(10).send()
    logger.info(f"Final URL: {response.url}")
    for hop, url in enumerate(response.history, 1):
        logger.info(f"  hop {hop}: {url}")


def lines_demo(base_url: str):
    """Demonstrate iterating the body line by line."""
    logger.info("Reading a body line by line...")

    response = tinyget.get(f"{base_url}/stream/5").with_timeout(10).send()
    for number, line in enumerate(response.lines(), 1):
        logger.info(f"Line {number}: {len(line)} characters")


def main():
    """Run all examples."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://httpbin.org"
    logger.info(f"Starting tinyget examples against {base_url}...")

    try:
        simple_get_request(base_url)
        print()

        post_request_with_body(base_url)
        print()

        redirect_demo(base_url)
        print()

        lines_demo(base_url)

    except tinyget.TinygetError as e:
        logger.error(f"Example failed: {e}")
        raise

    logger.info("All examples completed successfully!")


if __name__ == "__main__":
    main()
