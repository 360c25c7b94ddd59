from flask import Flask, request, jsonify
from flask_cors import CORS
from cvd_engine import ConfigurationError, ReconciliationError
from cvd_engine.cache import ReportCache
from cvd_engine.config import Settings, processor_from_env
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (billing and CRM front-ends call the API)
CORS(app)

settings = Settings.from_env()

# Statements are cached per distributor/period until a sale is recorded
cache = ReportCache()

# Initialize the commission processor (validates the schedule at startup)
processor = processor_from_env(settings, cache)


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "CVD Commission Engine API",
        "version": "1.0",
        "schedule_version": processor.config.version,
        "crossing_sale_tier": processor.crossing_sale_tier,
        "endpoints": {
            "calculate": "/calculate [POST]",
            "calculate_mode": "/calculate/<tranche|progressive> [POST]",
            "project": "/project [POST]",
            "tier": "/tiers/<n> [GET]",
            "sale_recorded": "/sales/recorded [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy", "environment": settings.environment}), 200


@app.route("/calculate", methods=["POST"])
def calculate():
    """
    Calculate tranche and progressive commissions for a sales snapshot
    """
    return _run(lambda data: processor.process_from_dict(data))


@app.route("/calculate/<mode>", methods=["POST"])
def calculate_mode(mode):
    """Calculate a single, labeled report"""
    return _run(lambda data: processor.report_from_dict(data, mode))


@app.route("/project", methods=["POST"])
def project():
    """Report for the elapsed days plus an end-of-period estimate"""
    return _run(lambda data: processor.project_from_dict(data))


@app.route("/tiers/<int:number>", methods=["GET"])
def tier(number):
    """Tier name, point range and rates"""
    try:
        return jsonify(processor.tier_details(number)), 200
    except ValueError as e:
        return jsonify({"error": str(e), "status": "not_found"}), 404


@app.route("/sales/recorded", methods=["POST"])
def sale_recorded():
    """Drop cached statements after a sale is recorded, corrected or voided"""
    input_data = request.get_json(force=True, silent=True) or {}
    if not isinstance(input_data, dict):
        return jsonify({"error": "Request body must be a JSON object", "status": "validation_failed"}), 400
    distributor_id = input_data.get("distributor_id")
    if not distributor_id:
        return jsonify({"error": "distributor_id is required", "status": "validation_failed"}), 400

    removed = cache.invalidate(str(distributor_id), input_data.get("period"))
    return jsonify({"status": "ok", "invalidated": removed}), 200


def _run(handler):
    try:
        # Get input data
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        if not isinstance(input_data, dict):
            return jsonify({
                "error": "Request body must be a JSON object",
                "status": "validation_failed"
            }), 400

        # Log request
        distributor = input_data.get("distributor_id", "Unknown")
        logger.info(f"Calculating CVD commission: {distributor} {input_data.get('period', '')}")

        result = handler(input_data)

        logger.info(f"CVD commission calculated: {distributor}")

        return jsonify(result), 200

    except ConfigurationError as e:
        # Schedule is unusable - refuse to calculate
        logger.error(f"Configuration error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "calculation_unavailable"
        }), 503

    except ReconciliationError as e:
        logger.error(f"Reconciliation error: {str(e)}")
        return jsonify({
            "error": "Commission calculation unavailable",
            "status": "calculation_unavailable"
        }), 500

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port, debug=False)
