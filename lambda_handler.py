"""
AWS Lambda handler for the CVD Commission Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import re

from cvd_engine import ConfigurationError, ReconciliationError
from cvd_engine.cache import ReportCache
from cvd_engine.config import Settings, processor_from_env

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

# Cache and processor are reused across warm invocations
cache = ReportCache()
processor = processor_from_env(settings, cache)

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

MODE_PATH = re.compile(r"^/calculate/(?P<mode>[a-z_]+)$")
TIER_PATH = re.compile(r"^/tiers/(?P<number>\d+)$")


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health, GET /api, GET /tiers/<n>
    - POST /calculate, POST /calculate/<mode>, POST /project, POST /sales/recorded
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if http_method == "GET":
        if path == "/health":
            return handle_health()
        if path == "/api":
            return handle_api_info()
        tier_match = TIER_PATH.match(path)
        if tier_match:
            return handle_tier(int(tier_match.group("number")))
    elif http_method == "POST":
        if path == "/calculate":
            return handle_calculation(event, processor.process_from_dict)
        if path == "/project":
            return handle_calculation(event, processor.project_from_dict)
        if path == "/sales/recorded":
            return handle_sale_recorded(event)
        mode_match = MODE_PATH.match(path)
        if mode_match:
            mode = mode_match.group("mode")
            return handle_calculation(event, lambda data: processor.report_from_dict(data, mode))

    return _response(404, {"error": "Not found", "path": path})


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": settings.environment})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "CVD Commission Engine API",
            "version": "1.0",
            "environment": settings.environment,
            "runtime": "AWS Lambda",
            "schedule_version": processor.config.version,
            "endpoints": {
                "calculate": "/calculate [POST]",
                "calculate_mode": "/calculate/<tranche|progressive> [POST]",
                "project": "/project [POST]",
                "tier": "/tiers/<n> [GET]",
                "sale_recorded": "/sales/recorded [POST]",
                "health": "/health [GET]",
            },
        },
    )


def handle_tier(number):
    """Tier details endpoint."""
    try:
        return _response(200, processor.tier_details(number))
    except ValueError as e:
        return _response(404, {"error": str(e), "status": "not_found"})


def handle_sale_recorded(event):
    """Invalidate cached statements for a distributor (and optionally a period)."""
    try:
        input_data = _parse_body(event)
    except json.JSONDecodeError as e:
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    input_data = input_data or {}
    if not isinstance(input_data, dict):
        return _response(400, {"error": "Request body must be a JSON object", "status": "validation_failed"})

    distributor_id = input_data.get("distributor_id")
    if not distributor_id:
        return _response(400, {"error": "distributor_id is required", "status": "validation_failed"})

    removed = cache.invalidate(str(distributor_id), input_data.get("period"))
    return _response(200, {"status": "ok", "invalidated": removed})


def handle_calculation(event, handler):
    """Run a calculation handler over the request body."""
    try:
        input_data = _parse_body(event)
        if not input_data:
            return _response(400, {"error": "No input data provided", "status": "failed"})
        if not isinstance(input_data, dict):
            return _response(400, {"error": "Request body must be a JSON object", "status": "validation_failed"})

        # Log request
        distributor = input_data.get("distributor_id", "Unknown")
        logger.info(f"Calculating CVD commission: {distributor} {input_data.get('period', '')}")

        result = handler(input_data)

        logger.info(f"CVD commission calculated: {distributor}")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        return _response(503, {"error": str(e), "status": "calculation_unavailable"})

    except ReconciliationError as e:
        logger.error(f"Reconciliation error: {str(e)}")
        return _response(500, {"error": "Commission calculation unavailable", "status": "calculation_unavailable"})

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})


def _parse_body(event):
    body = event.get("body", "")
    if not isinstance(body, str):
        return body
    if not body:
        return None
    # Handle base64 encoded body (API Gateway)
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def _response(status_code, payload):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(payload)}
