"""Star Registry Client - Command line access to a star registry node."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, TypedDict

import requests

from star_registry.constants import CLIENT_TIMEOUT, DEFAULT_HOST, DEFAULT_PORT

DEFAULT_NODE_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"


# --- Data models to match the server's API responses ---
class BlockResponse(TypedDict):
    """A block as returned by the /block endpoints."""

    hash: str
    height: int
    body: str
    time: int
    previous_block_hash: str | None


class StarsResponse(TypedDict):
    """The expected JSON response from the /blocks/<address> endpoint."""

    stars: list[dict[str, Any]]


class ErrorResponse(TypedDict, total=False):
    """A response containing an error message."""

    error: str
    errors: list[str]


class NodeClient:
    """Thin wrapper over the HTTP API of one node."""

    def __init__(self, node_url: str, timeout: int = CLIENT_TIMEOUT) -> None:
        """Initialize the client for the node at node_url."""
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str) -> Any:
        response = requests.get(
            f"{self.node_url}{path}",
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        response = requests.post(
            f"{self.node_url}{path}",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def get_chain_height(self) -> int:
        """Return the node's chain height."""
        return int(self._get("/get_chain_height")["height"])

    def get_block_by_height(self, height: int) -> BlockResponse:
        """Return the block at height."""
        return self._get(f"/block/height/{height}")

    def get_block_by_hash(self, block_hash: str) -> BlockResponse:
        """Return the block with hash block_hash."""
        return self._get(f"/block/hash/{block_hash}")

    def request_validation(self, address: str) -> str:
        """Return the challenge message to sign for address."""
        return str(self._post("/request_validation", {"address": address})["message"])

    def submit_star(
        self,
        address: str,
        message: str,
        signature: str,
        star: dict[str, Any],
    ) -> BlockResponse:
        """Submit a signed challenge together with the star to register."""
        return self._post(
            "/submit_star",
            {
                "address": address,
                "message": message,
                "signature": signature,
                "star": star,
            },
        )

    def get_stars(self, address: str) -> StarsResponse:
        """Return the stars registered by address."""
        return self._get(f"/blocks/{address}")

    def validate_chain(self) -> dict[str, Any]:
        """Return the node's chain validation report."""
        return self._get("/validate_chain")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the client."""
    parser = argparse.ArgumentParser(description="Star Registry client.")
    parser.add_argument(
        "--node",
        type=str,
        default=DEFAULT_NODE_URL,
        help="Base URL of the node (e.g., http://host:port).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("height", help="print the chain height")

    block = commands.add_parser("block", help="print a single block")
    selector = block.add_mutually_exclusive_group(required=True)
    selector.add_argument("--height", type=int)
    selector.add_argument("--hash", type=str)

    validation = commands.add_parser(
        "request-validation",
        help="print the message to sign with your wallet",
    )
    validation.add_argument("address")

    submit = commands.add_parser("submit", help="register a star")
    submit.add_argument("address")
    submit.add_argument("message")
    submit.add_argument("signature")
    submit.add_argument("--dec", required=True, help="declination")
    submit.add_argument("--ra", required=True, help="right ascension")
    submit.add_argument("--story", default=None)

    stars = commands.add_parser("stars", help="print the stars of an address")
    stars.add_argument("address")

    commands.add_parser("validate", help="print the chain validation report")
    return parser


def run_command(client: NodeClient, args: argparse.Namespace) -> Any:
    """Execute the command selected in args and return its result."""
    if args.command == "height":
        return {"height": client.get_chain_height()}
    if args.command == "block":
        if args.hash is not None:
            return client.get_block_by_hash(args.hash)
        return client.get_block_by_height(args.height)
    if args.command == "request-validation":
        return {"message": client.request_validation(args.address)}
    if args.command == "submit":
        star = {"dec": args.dec, "ra": args.ra}
        if args.story is not None:
            star["story"] = args.story
        return client.submit_star(
            args.address,
            args.message,
            args.signature,
            star,
        )
    if args.command == "stars":
        return client.get_stars(args.address)
    return client.validate_chain()


def main(argv: list[str] | None = None) -> int:
    """Handle running the client from the command line."""
    args = build_parser().parse_args(argv)
    client = NodeClient(args.node)
    try:
        result = run_command(client, args)
    except requests.HTTPError as e:
        error: ErrorResponse
        try:
            error = e.response.json()
        except ValueError:
            error = {"error": str(e)}
        print(json.dumps(error, indent=2), file=sys.stderr)
        return 1
    except requests.RequestException as e:
        print(f"Network error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
