"""
HTTP Server

Flask application exposing the diff pipeline over HTTP.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from . import __version__
from .api import DiffContextAPI
from .models.patch import EditType, FileInput
from .models.review import CompressOptions, CompressRequest


logger = logging.getLogger(__name__)


def create_app(api: Optional[DiffContextAPI] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        api: Diff context API instance (created from configuration if omitted)

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)
    context_api = api or DiffContextAPI()

    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'service': 'pr-diff-pipeline',
            'version': __version__,
        })

    @app.route('/api/v1/diff/compress', methods=['POST'])
    def compress_diff():
        """Filter, extend and compress a set of file diffs."""
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Request body must be JSON', 'status': 'failed'}), 400

        try:
            compress_request = CompressRequest(**data)
        except (ValidationError, TypeError) as e:
            return jsonify({'error': str(e), 'status': 'failed'}), 400

        files = [
            FileInput(
                path=f.path,
                patch=f.patch,
                old_path=f.old_path,
                new_content=f.new_content,
                edit_type=EditType.from_status(f.status),
            )
            for f in compress_request.files
        ]

        context = context_api.context_for(compress_request.options)
        diff_context = context_api.compress(files, context)
        return jsonify(diff_context.to_response().dict())

    @app.route('/api/v1/diff/pulls', methods=['POST'])
    def pull_request_diff():
        """Build compressed diff context for a GitHub pull request."""
        data = request.get_json(silent=True) or {}

        repository = data.get('repository')
        pr_number = data.get('pr_number')
        if not repository or not isinstance(pr_number, int):
            return jsonify({'error': 'repository and integer pr_number are required', 'status': 'failed'}), 400

        try:
            options = CompressOptions(**data.get('options', {}))
        except (ValidationError, TypeError) as e:
            return jsonify({'error': str(e), 'status': 'failed'}), 400

        result = context_api.build_context(
            repository,
            pr_number,
            github_token=data.get('github_token'),
            options=options,
        )

        if result.status != 'completed':
            return jsonify({
                'error': result.metadata.get('error'),
                'status': result.status,
            }), 502

        body = result.context.to_response().dict()
        body.update({
            'status': result.status,
            'repository': result.repository,
            'pr_number': result.pr_number,
            'processing_time': result.processing_time,
        })
        return jsonify(body)

    logger.info("Flask app created")
    return app
