"""Node - HTTP API of a single star registry node."""

from __future__ import annotations

# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
import logging
import sys
from typing import Any

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from pydantic import BaseModel, ValidationError

from star_registry.chain import Blockchain, ChainValidationError
from star_registry.ownership import (
    ExpiredChallengeError,
    InvalidSignatureError,
    MalformedChallengeError,
)

__version__ = "1.0.0"

logger = logging.getLogger("star-registry-node")
logger.setLevel(logging.INFO)
if not logger.hasHandlers():
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s",
    )
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)
logger.propagate = False


class ValidationRequest(BaseModel):
    """Body of a /request_validation call."""

    address: str


class SubmitStarRequest(BaseModel):
    """Body of a /submit_star call."""

    address: str
    message: str
    signature: str
    star: dict[str, Any]


app = Flask(__name__)
CORS(app)
blockchain = Blockchain()


def _invalid_body(e: ValidationError) -> tuple[Response, int]:
    return jsonify({"error": f"invalid request body: {e.errors()}"}), 400


@app.route("/get_chain_height", methods=["GET"])
def handle_get_chain_height() -> Response:
    """Handle get chain height request."""
    return jsonify({"height": blockchain.get_chain_height()})


@app.route("/block/height/<int:height>", methods=["GET"])
def handle_get_block_by_height(height: int) -> Response | tuple[Response, int]:
    """Return the block at height."""
    block = blockchain.get_block_by_height(height)
    if block is None:
        return jsonify({"error": f"Block #{height} not found"}), 404
    return jsonify(block.to_dict())


@app.route("/block/hash/<block_hash>", methods=["GET"])
def handle_get_block_by_hash(block_hash: str) -> Response | tuple[Response, int]:
    """Return the block with the given hash."""
    block = blockchain.get_block_by_hash(block_hash)
    if block is None:
        return jsonify({"error": "Block hash not found"}), 404
    return jsonify(block.to_dict())


@app.route("/request_validation", methods=["POST"])
def handle_request_validation() -> Response | tuple[Response, int]:
    """Issue the challenge a wallet owner has to sign."""
    try:
        body = ValidationRequest.model_validate(request.get_json(silent=True))
    except ValidationError as e:
        return _invalid_body(e)

    message = blockchain.request_message_ownership_verification(body.address)
    logger.info(f"issued challenge for {body.address}")
    return jsonify({"message": message})


@app.route("/submit_star", methods=["POST"])
def handle_submit_star() -> Response | tuple[Response, int]:
    """Register a star after checking the signed challenge."""
    try:
        body = SubmitStarRequest.model_validate(request.get_json(silent=True))
    except ValidationError as e:
        return _invalid_body(e)

    try:
        block = blockchain.submit_star(
            body.address,
            body.message,
            body.signature,
            body.star,
        )
    except MalformedChallengeError as e:
        return jsonify({"error": str(e)}), 400
    except InvalidSignatureError as e:
        return jsonify({"error": str(e)}), 401
    except ExpiredChallengeError as e:
        return jsonify({"error": str(e)}), 403
    except ChainValidationError as e:
        logger.error(f"chain refused star from {body.address}: {e.errors}")
        return jsonify({"error": "Chain is not valid", "errors": e.errors}), 500

    logger.info(f"registered star for {body.address} in block #{block.height}")
    return jsonify(block.to_dict()), 201


@app.route("/blocks/<address>", methods=["GET"])
def handle_get_stars_by_address(address: str) -> Response:
    """Return every star owned by address."""
    return jsonify({"stars": blockchain.get_stars_by_wallet_address(address)})


@app.route("/validate_chain", methods=["GET"])
def handle_validate_chain() -> Response:
    """Report every inconsistency of the chain."""
    errors = blockchain.validate_chain()
    return jsonify({"valid": not errors, "errors": errors})


@app.route("/status", methods=["GET"])
def handle_get_status() -> Response:
    """Handle status request."""
    return jsonify(
        {
            "status": "ok",
            "height": blockchain.get_chain_height(),
            "version": __version__,
        },
    )
