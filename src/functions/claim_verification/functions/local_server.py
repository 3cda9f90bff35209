"""Local development server for the claim verification Cloud Function."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from flask import Flask, request

# Ensure project root is on sys.path
project_root = Path(__file__).parent.parent.parent.parent.parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.functions.claim_verification.functions.main import (
    claim_verification_handler,
    health_check_handler,
)

app = Flask(__name__)


@app.route("/analyze", methods=["POST", "OPTIONS"])
def local_handler():
    """Proxy HTTP requests to the Cloud Function handler."""
    return claim_verification_handler(request)


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return health_check_handler(request)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    print(f"Starting local claim verification server on http://localhost:{port}")
    print(
        f"Test with: curl -X POST http://localhost:{port}/analyze "
        "-H 'Content-Type: application/json' -d '{\"text\": \"...\", \"stream\": true}'"
    )
    print("")
    app.run(host="0.0.0.0", port=port, debug=True)
