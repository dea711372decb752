"""
AWS Lambda handler for the Certificate Conversion API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import json
import logging

from conversion import CertificateProcessor, ConversionError, PartialFailure, Settings

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Fails the cold start if credentials are missing
settings = Settings.from_env()

# Initialize processor (reused across warm invocations)
processor = CertificateProcessor(settings)

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - GET /api/certificates/check
    - POST /api/certificates/convert
    - POST /api/checkout
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path == "/api/certificates/check" and http_method == "GET":
        return handle_check(event)
    elif path == "/api/certificates/convert" and http_method == "POST":
        return handle_json_post(event, processor.convert)
    elif path == "/api/checkout" and http_method == "POST":
        return handle_json_post(event, processor.checkout)
    else:
        return respond(404, {"error": "Not found", "path": path})


def respond(status: int, body: dict) -> dict:
    return {"statusCode": status, "headers": CORS_HEADERS, "body": json.dumps(body)}


def handle_health():
    """Health check endpoint."""
    return respond(200, {"status": "healthy", "environment": settings.environment})


def handle_api_info():
    """API information endpoint."""
    return respond(
        200,
        {
            "status": "ok",
            "message": "Offseason Certificate Conversion API",
            "version": "1.0",
            "environment": settings.environment,
            "runtime": "AWS Lambda",
            "endpoints": {
                "check_certificate": "/api/certificates/check [GET]",
                "convert_certificate": "/api/certificates/convert [POST]",
                "checkout": "/api/checkout [POST]",
                "health": "/health [GET]",
            },
        },
    )


def handle_check(event):
    """Price a certificate from the ?certificate= query parameter."""
    code = (event.get("queryStringParameters") or {}).get("certificate")
    if not code:
        return respond(400, {"error": "missing_certificate", "errorMessage": "Certificate code is required"})
    return run(lambda: processor.check(code))


def handle_json_post(event, operation):
    """Parse a JSON body and pass it to an engine operation."""
    body = event.get("body", "")
    if isinstance(body, str):
        if not body:
            return respond(400, {"error": "invalid_request", "errorMessage": "No input data provided"})
        # Handle base64 encoded body (API Gateway)
        if event.get("isBase64Encoded"):
            import base64

            body = base64.b64decode(body).decode("utf-8")
        try:
            input_data = json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {str(e)}")
            return respond(400, {"error": "invalid_request", "errorMessage": f"Invalid JSON: {str(e)}"})
    else:
        input_data = body

    if not isinstance(input_data, dict):
        return respond(400, {"error": "invalid_request", "errorMessage": "Request body must be a JSON object"})

    return run(lambda: operation(input_data))


def run(operation):
    try:
        return respond(200, operation())

    except PartialFailure as e:
        logger.critical(f"Partial failure returned to client: {e.context}")
        return respond(e.http_status, e.to_dict())

    except ConversionError as e:
        if e.http_status >= 500:
            logger.error(f"{e.error_code}: {e.message}")
        else:
            logger.info(f"Rejected request ({e.error_code}): {e.message}")
        return respond(e.http_status, e.to_dict())

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return respond(500, {"error": "internal_server_error", "errorMessage": "An unexpected error occurred"})
