import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

from normalizer.cfg_parser import parse_cfg, parse_grammar_text
from normalizer.cnf_converter import convert_to_cnf
from normalizer.errors import CFGError, CNFError
from normalizer.generator import generate_strings
from normalizer.serializers import SNAPSHOT_MODES, grammar_to_json, result_to_json

app = Flask(__name__)
CORS(app)

app.config.from_mapping(
    TRACE_SNAPSHOTS="delta",
    MAX_GENERATE_LENGTH=6,
    MAX_GENERATE_STRINGS=25,
    LOG_LEVEL="INFO",
)
# e.g. CFG_TOOLKIT_TRACE_SNAPSHOTS=full, CFG_TOOLKIT_MAX_GENERATE_LENGTH=8
app.config.from_prefixed_env("CFG_TOOLKIT")

logging.basicConfig(
    level=app.config["LOG_LEVEL"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def _request_data():
    """The parsed JSON body; a missing or unparsable body counts as {}."""
    data = request.get_json(silent=True)
    return {} if data is None else data


def _grammar_from_request(data):
    """Build the source grammar from either {text, start?} or {start, productions}."""
    for field in ("text", "start"):
        if data.get(field) is not None and not isinstance(data[field], str):
            raise CFGError(f"'{field}' must be a string.")

    if data.get("text"):
        start = (data.get("start") or "").strip() or None
        return parse_grammar_text(data["text"], start)
    return parse_cfg((data.get("start") or "").strip(), data.get("productions", []))


# =====================================================================
#  1. NORMALIZE
# =====================================================================
@app.route("/normalize", methods=["POST"])
def normalize():
    data = _request_data()
    if not isinstance(data, dict):
        return jsonify({"success": False, "message": "Grammar Error: Request body must be a JSON object."})

    snapshots = data.get("snapshots", app.config["TRACE_SNAPSHOTS"])
    if not isinstance(snapshots, str) or snapshots not in SNAPSHOT_MODES:
        return jsonify({
            "success": False,
            "message": f"Unknown snapshot mode '{snapshots}'. Use one of: {', '.join(SNAPSHOT_MODES)}."
        })

    try:
        grammar = _grammar_from_request(data)
        result = convert_to_cnf(grammar)
    except CFGError as e:
        app.logger.info("rejected grammar: %s", e)
        return jsonify({
            "success": False,
            "message": f"Grammar Error: {str(e)}"
        })
    except CNFError as e:
        app.logger.error("normalization failed: %s", e)
        return jsonify({
            "success": False,
            "message": f"Normalization Error: {str(e)}"
        })

    if result.is_empty:
        message = "The language is empty; normalization stopped after trimming."
    else:
        message = "Grammar successfully converted to CNF."

    payload = {"success": True, "message": message}
    payload.update(result_to_json(result, snapshots=snapshots))
    return jsonify(payload)


# =====================================================================
#  2. GENERATE STRINGS
# =====================================================================
@app.route("/generate", methods=["POST"])
def generate():
    data = _request_data()
    if not isinstance(data, dict):
        return jsonify({"success": False, "message": "Grammar Error: Request body must be a JSON object."})
    limit = app.config["MAX_GENERATE_LENGTH"]

    try:
        max_length = int(data.get("max_length", limit))
    except (TypeError, ValueError):
        return jsonify({"success": False, "message": "max_length must be an integer."})
    if not 0 <= max_length <= limit:
        return jsonify({"success": False, "message": f"max_length must be between 0 and {limit}."})

    try:
        grammar = _grammar_from_request(data)
        result = convert_to_cnf(grammar)
    except CFGError as e:
        return jsonify({"success": False, "message": f"Grammar Error: {str(e)}"})
    except CNFError as e:
        app.logger.error("normalization failed: %s", e)
        return jsonify({"success": False, "message": f"Normalization Error: {str(e)}"})

    max_strings = app.config["MAX_GENERATE_STRINGS"]
    return jsonify({
        "success": True,
        "max_length": max_length,
        "generated": generate_strings(grammar, max_length, max_strings),
        "generated_cnf": [] if result.is_empty else generate_strings(result.grammar, max_length, max_strings),
        "cnf": grammar_to_json(result.grammar),
    })


# =====================================================================
#  HEALTH CHECK
# =====================================================================
@app.route("/ping")
def ping():
    return jsonify({"status": "OK", "message": "Server running"})


# =====================================================================
#  RUN
# =====================================================================
if __name__ == "__main__":
    app.run(debug=True)
