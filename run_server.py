#!/usr/bin/env python3
"""
PR Diff Pipeline Server

Simple Flask server to run the diff pipeline.
"""

import os

from pr_diff_pipeline.config import get_config
from pr_diff_pipeline.server import create_app


app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', '8000'))
    print("🚀 Starting PR Diff Pipeline Server...")
    print(f"📍 Server will be available at: http://localhost:{port}")
    print("📋 API Documentation:")
    print("   - Health Check: GET /api/v1/health")
    print("   - Compress Diff: POST /api/v1/diff/compress")
    print("   - Pull Request Diff: POST /api/v1/diff/pulls")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=get_config().debug
    )
