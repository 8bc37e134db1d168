"""
Application startup validation and initialization.

This module performs startup checks so the application is properly
configured before serving requests.
"""

import logging
import sys
from typing import List, Tuple

import sqlalchemy as sa
from sqlalchemy import text

from core.config import get_settings, validate_production_config
from core.database import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "restaurants",
    "admin_users",
    "customers",
    "loyalty_tiers",
    "segments",
    "campaigns",
    "transactions",
    "point_history",
]


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.settings = get_settings()

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except sa.exc.SQLAlchemyError as e:
            self.errors.append(f"Database connection failed: {e}")
            return False

    def check_environment_config(self) -> bool:
        """Validate environment configuration"""
        try:
            validate_production_config(self.settings)
        except ValueError as e:
            self.errors.append(f"Configuration validation failed: {e}")
            return False

        if self.settings.is_development and "dev-secret" in self.settings.jwt_secret_key:
            self.warnings.append("Using development JWT_SECRET_KEY - change for production")
        if not self.settings.api_bearer_token:
            self.warnings.append("API_BEARER_TOKEN not set - mobile and POS clients cannot authenticate")
        return True

    def check_required_tables(self) -> bool:
        """Check if required database tables exist"""
        try:
            existing_tables = sa.inspect(engine).get_table_names()
        except sa.exc.SQLAlchemyError as e:
            self.warnings.append(f"Could not check database tables: {e}")
            return True

        missing_tables = [t for t in REQUIRED_TABLES if t not in existing_tables]
        if missing_tables:
            self.warnings.append(
                f"Missing database tables: {', '.join(missing_tables)}. "
                "Run migrations with: alembic upgrade head"
            )
        return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
        ]

        all_passed = True
        for check_name, check_func in checks:
            logger.info("Running check: %s", check_name)
            if not check_func():
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks():
    """Run all startup validation checks"""
    settings = get_settings()
    logger.info("=" * 60)
    logger.info("Starting AirCRM Backend")
    logger.info("Environment: %s", settings.environment)
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    if warnings:
        logger.warning("Startup Warnings:")
        for warning in warnings:
            logger.warning("  %s", warning)

    if errors:
        logger.error("Startup Errors:")
        for error in errors:
            logger.error("  %s", error)

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
