"""Base services container for dependency injection."""

from datetime import datetime
from typing import Callable, Optional
from auth.passwords import PasswordHasher
from auth.tokens import TokenService, utc_now
from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject a test database and a fake clock.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, the
            database settings in config are ignored.
        clock: Optional source of the current time. Defaults to UTC now.
    """

    def __init__(
        self,
        config: Config,
        db_manager=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.clock = clock or utc_now

        # Lazy import to avoid circular dependencies
        from services.auth import AuthService
        from services.categories import CategoryService
        from services.transactions import TransactionService
        from services.users import UserService

        self.passwords = PasswordHasher(rounds=config.bcrypt_rounds)
        self.tokens = TokenService(config, clock=self.clock)

        self.categories = CategoryService(self.db_manager, config.default_categories)
        self.transactions = TransactionService(self.db_manager, self.categories)
        self.users = UserService(self.db_manager, self.categories, self.passwords)
        self.auth = AuthService(self.users, self.tokens, clock=self.clock)
