#!/usr/bin/env python3
"""
Migration runner for deployment.
Runs Alembic migrations to upgrade the database schema to head.
"""
import logging
import subprocess
import sys

logger = logging.getLogger("run_migration")


def run_migrations() -> int:
    """Run ``alembic upgrade head``; returns a process exit code."""
    logger.info("Running database migrations...")

    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        logger.error(f"Migration failed\nSTDOUT: {e.stdout}\nSTDERR: {e.stderr}")
        return 1
    except FileNotFoundError:
        logger.error("alembic executable not found; install the project dependencies first")
        return 1

    if result.stdout:
        logger.info(result.stdout.strip())
    # Alembic logs its progress on stderr
    if result.stderr:
        logger.info(result.stderr.strip())

    logger.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    sys.exit(run_migrations())
