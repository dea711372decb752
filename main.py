from flask import Flask, request, jsonify
from flask_cors import CORS
from conversion import CertificateProcessor, ConversionError, PartialFailure, Settings
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(processor: CertificateProcessor | None = None) -> Flask:
    """Build the API. Settings are loaded here so bad config fails at startup."""
    if processor is None:
        processor = CertificateProcessor(Settings.from_env())

    app = Flask(__name__)
    CORS(app)

    def error_response(e: ConversionError):
        if isinstance(e, PartialFailure):
            logger.critical(f"Partial failure returned to client: {e.context}")
        elif e.http_status >= 500:
            logger.error(f"{e.error_code}: {e.message}")
        else:
            logger.info(f"Rejected request ({e.error_code}): {e.message}")
        return jsonify(e.to_dict()), e.http_status

    def unexpected_response(e: Exception):
        # Log details but return a generic message
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "internal_server_error",
            "errorMessage": "An unexpected error occurred"
        }), 500

    @app.route("/api", methods=["GET"])
    def api_info():
        """API information endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Offseason Certificate Conversion API",
            "version": "1.0",
            "endpoints": {
                "check_certificate": "/api/certificates/check?certificate=CODE [GET]",
                "convert_certificate": "/api/certificates/convert [POST]",
                "checkout": "/api/checkout [POST]",
                "health": "/health [GET]"
            }
        }), 200

    @app.route("/health", methods=["GET"])
    def health():
        """Health check for monitoring"""
        return jsonify({"status": "healthy"}), 200

    @app.route("/api/certificates/check", methods=["GET"])
    def check_certificate():
        """Validate a certificate code and return its upgrade pricing"""
        code = request.args.get("certificate")
        if not code:
            return jsonify({
                "error": "missing_certificate",
                "errorMessage": "Certificate code is required"
            }), 400

        try:
            return jsonify(processor.check(code)), 200
        except ConversionError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_response(e)

    @app.route("/api/certificates/convert", methods=["POST"])
    def convert_certificate():
        """Replace an offseason certificate with a winter one"""
        input_data = request.get_json(silent=True)
        if not input_data:
            return jsonify({
                "error": "invalid_request",
                "errorMessage": "No input data provided"
            }), 400
        if not isinstance(input_data, dict):
            return jsonify({
                "error": "invalid_request",
                "errorMessage": "Request body must be a JSON object"
            }), 400

        try:
            logger.info(f"Converting certificate: {input_data.get('certificateCode', 'Unknown')}")
            return jsonify(processor.convert(input_data)), 200
        except ConversionError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_response(e)

    @app.route("/api/checkout", methods=["POST"])
    def checkout():
        """Open a payment session for the upgrade path"""
        input_data = request.get_json(silent=True)
        if not input_data:
            return jsonify({
                "error": "invalid_request",
                "errorMessage": "No input data provided"
            }), 400
        if not isinstance(input_data, dict):
            return jsonify({
                "error": "invalid_request",
                "errorMessage": "Request body must be a JSON object"
            }), 400

        try:
            return jsonify(processor.checkout(input_data)), 200
        except ConversionError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_response(e)

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port, debug=False)
