"""
Shared infrastructure for the stockroom back end.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging

- shared.infrastructure: Database plumbing
  - db.py: SQLAlchemy engine and session factory

- shared.security: Credentials
  - password.py: Bcrypt hashing

- shared.utils: Utilities
  - exceptions.py: Programmer-error exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.infrastructure.db import create_db_engine
    from shared.security.password import hash_password, verify_password
    from shared.utils.exceptions import InvalidFieldReferenceError
"""
