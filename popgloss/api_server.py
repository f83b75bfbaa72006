#!/usr/bin/env python3
"""
PopGloss REST API Server
HTTP endpoints for registering terms and highlighting text or HTML pages
"""

import logging
import sys
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from .core.config import PopGlossConfig
from .core.glossary import GlossaryIndex
from .core.highlighter import DocumentHighlighter
from .core.trie import InvalidTerm

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Pages embedding the glossary call from other origins

# Global components (initialized once)
config = None
glossary_index = None
highlighter = None


def initialize_components(custom_config: Optional[PopGlossConfig] = None) -> bool:
    """Initialize PopGloss components"""
    global config, glossary_index, highlighter

    try:
        new_config = custom_config or PopGlossConfig()
        new_index = GlossaryIndex(new_config.matching)
        if new_config.glossary_path:
            new_index.register_terms(GlossaryIndex.read_terms(new_config.glossary_path))
    except (InvalidTerm, ValueError, OSError) as e:
        logger.error(f"Failed to initialize PopGloss: {e}")
        return False

    config = new_config
    glossary_index = new_index
    highlighter = DocumentHighlighter(glossary_index, config.highlight)
    logger.info(f"PopGloss API ready with {len(glossary_index)} terms")
    return True


def server_options() -> dict:
    """Arguments for app.run, debug mode only when logging at DEBUG"""
    debug = config is not None and config.log_level.upper() == "DEBUG"
    return {"host": "0.0.0.0", "port": 8000, "debug": debug}


def _ensure_components():
    if glossary_index is None and not initialize_components():
        # Environment pointed at an unusable glossary; serve an empty one
        initialize_components(PopGlossConfig(load_env=False))


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({"status": "healthy", "message": "PopGloss API is running"})


@app.route('/api/terms', methods=['GET'])
def list_terms():
    """Return the glossary and its statistics"""
    _ensure_components()
    return jsonify({
        "terms": dict(sorted(glossary_index.trie.items())),
        "stats": glossary_index.get_stats()
    })


@app.route('/api/terms', methods=['POST'])
def add_terms():
    """
    Body: { "terms": { "term": "definition", ... } }
    Returns: { "success": bool, "added": int, "total_terms": int }
    On invalid entries the rest of the batch is registered and the response
    is a 400 that also lists the "rejected" terms.
    """
    _ensure_components()
    data = request.get_json(silent=True) or {}
    terms = data.get("terms")

    if not terms or not isinstance(terms, dict):
        return jsonify({"success": False, "error": "Missing terms mapping"}), 400

    before = len(glossary_index)
    try:
        glossary_index.register_terms(terms)
    except InvalidTerm as e:
        # Valid entries of the batch are kept
        return jsonify({
            "success": False,
            "error": str(e),
            "rejected": e.rejected,
            "added": len(glossary_index) - before,
            "total_terms": len(glossary_index)
        }), 400

    return jsonify({
        "success": True,
        "added": len(glossary_index) - before,
        "total_terms": len(glossary_index)
    })


@app.route('/api/terms/<path:term>', methods=['GET'])
def get_term(term):
    """Look up a single definition"""
    _ensure_components()
    definition = glossary_index.get_definition(term)
    if definition is None:
        return jsonify({"error": f"Unknown term: {term}"}), 404
    return jsonify({"term": term, "definition": definition})


@app.route('/api/occurrences', methods=['POST'])
def find_occurrences():
    """
    Body: { "text": "..." }
    Returns: { "matches": [ {term, start_offset, end_offset, definition}, ... ] }
    """
    _ensure_components()
    data = request.get_json(silent=True) or {}
    text = data.get("text")

    if not isinstance(text, str):
        return jsonify({"error": "No text provided"}), 400

    matches = [m.to_dict() for m in glossary_index.find_occurrences(text)]
    return jsonify({"matches": matches})


@app.route('/api/highlight', methods=['POST'])
def highlight():
    """
    Body: { "html": "...", "include_panels": true }
    Returns: { "html": "...", "terms": [ {index, term, definition}, ... ] }
    """
    _ensure_components()
    data = request.get_json(silent=True) or {}
    html = data.get("html")

    if not isinstance(html, str):
        return jsonify({"error": "No html provided"}), 400

    result = highlighter.highlight(html, include_panels=bool(data.get("include_panels", True)))
    return jsonify({
        "html": result.html,
        "terms": [t.to_dict() for t in result.terms]
    })


if __name__ == '__main__':
    if initialize_components():
        logging.basicConfig(level=config.log_level.upper())
        logger.info("Starting PopGloss API server...")
        app.run(**server_options())
    else:
        logger.error("Failed to start PopGloss API server")
        sys.exit(1)
