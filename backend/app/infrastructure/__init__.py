"""Infrastructure — database session management, SQL repository, logging setup."""
