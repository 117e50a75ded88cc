#!/usr/bin/env python3
"""
Entry point for the BGMI arena API.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 5000)
    LOG_LEVEL: Root log level (default: DEBUG in development, INFO otherwise)
"""
import os
import logging


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def run_api():
    """Run the arena API server."""
    from arena.app import create_app

    app = create_app()
    configure_logging(app.config['LOG_LEVEL'])

    port = int(os.getenv('PORT', 5000))
    debug = app.config.get('DEBUG', False)

    logging.getLogger(__name__).info(f"Starting arena API on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_api()
