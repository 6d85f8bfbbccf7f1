"""Vercel serverless function for computing election results."""

import json
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urlparse

import httpx

# Add the project root to the path so we can import the election package
sys.path.insert(0, str(Path(__file__).parent.parent))

from election.compute import decode_records, generate_election_report  # noqa: E402
from election.errors import ElectionError, ElectionNotFoundError  # noqa: E402

FETCH_TIMEOUT = float(os.environ.get("ELECTION_FETCH_TIMEOUT", "30"))


class BundleError(Exception):
    """The request did not carry a usable election bundle."""
    pass


def handler(request):
    """Handle incoming requests to compute election results.

    Accepts:
    - POST with JSON body: {"election": {...}, "registrations": [...], "ballots": [...]}
    - POST with JSON body: {"url": "https://..."} pointing at such a bundle

    Returns JSON with the election report.
    """
    # Handle CORS preflight
    if request.method == "OPTIONS":
        return create_response(
            "",
            status=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "POST, OPTIONS",
                "Access-Control-Allow-Headers": "Content-Type",
            },
        )

    if request.method != "POST":
        return create_response(
            {"error": "Method not allowed. Use POST."},
            status=405,
        )

    try:
        content_type = request.headers.get("content-type", "")
        if "application/json" not in content_type:
            return create_response(
                {"error": f"Unsupported content type: {content_type}"},
                status=400,
            )

        data = json.loads(request.body.decode("utf-8"))
        if not isinstance(data, Mapping):
            raise BundleError("Request body must be a JSON object")

        if "url" in data:
            bundle = fetch_bundle(data["url"])
        elif "election" in data:
            bundle = data
        else:
            return create_response(
                {"error": "Missing 'election' or 'url' in request body"},
                status=400,
            )

        election, registrations, ballots = decode_records(
            bundle.get("election"),
            bundle.get("registrations"),
            bundle.get("ballots"),
        )
        report = generate_election_report(election, registrations, ballots)

        return create_response(report)

    except ElectionNotFoundError as e:
        return create_response(
            {"error": str(e)},
            status=404,
        )
    except (ElectionError, BundleError) as e:
        return create_response(
            {"error": str(e)},
            status=400,
        )
    except json.JSONDecodeError as e:
        return create_response(
            {"error": f"Invalid JSON: {e}"},
            status=400,
        )
    except Exception as e:
        return create_response(
            {"error": f"Internal error: {e}"},
            status=500,
        )


def fetch_bundle(url: str) -> Mapping:
    """Fetch an election bundle (election, registrations, ballots) from a URL."""
    # Validate URL
    parsed = urlparse(str(url))
    if parsed.scheme not in ("http", "https"):
        raise BundleError(f"Invalid URL scheme: {parsed.scheme}")

    try:
        with httpx.Client(follow_redirects=True, timeout=FETCH_TIMEOUT) as client:
            response = client.get(url)
            response.raise_for_status()
            bundle = response.json()
    except httpx.HTTPStatusError as e:
        raise BundleError(f"HTTP error fetching URL: {e.response.status_code}")
    except httpx.RequestError as e:
        raise BundleError(f"Error fetching URL: {e}")
    except json.JSONDecodeError as e:
        raise BundleError(f"URL did not return JSON: {e}")

    if not isinstance(bundle, Mapping):
        raise BundleError("Election bundle must be a JSON object")
    return bundle


def create_response(body, status: int = 200, headers: dict = None):
    """Create a response object for Vercel."""
    response_headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
    }
    if headers:
        response_headers.update(headers)

    if isinstance(body, dict):
        body = json.dumps(body)

    # Return in format expected by Vercel Python runtime
    return {
        "statusCode": status,
        "headers": response_headers,
        "body": body,
    }
