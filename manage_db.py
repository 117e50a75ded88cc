#!/usr/bin/env python3
"""
Database management script for deployment.
Run this during the build/deployment pipeline to apply migrations.
"""
import os
import sys

from flask_migrate import upgrade

from arena.app import create_app


def deploy():
    """Run deployment tasks."""
    print("Starting database migration...")
    app = create_app(os.getenv('FLASK_ENV', 'production'))
    migrations_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')

    with app.app_context():
        try:
            upgrade(directory=migrations_dir)
            print("Database migrations applied.")
        except Exception as e:
            print(f"Error applying migrations: {e}")
            sys.exit(1)


if __name__ == '__main__':
    deploy()
