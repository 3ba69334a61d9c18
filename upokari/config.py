"""
Configuration module for the Upokari result analytics service.

Loads environment variables from .env, validates required settings,
creates necessary directories, and exposes a singleton Config object.
"""

import os
import sys
import logging
from pathlib import Path
from typing import List

from dotenv import load_dotenv


class Config:
    """Central configuration loaded from environment variables."""

    def __init__(self, env_path: str = None):
        """
        Initialize configuration from .env file.

        Args:
            env_path: Optional explicit path to .env file.
                      Defaults to .env in the project root. Values in an
                      explicit file win over variables already set.
        """
        self.project_root: Path = Path(__file__).resolve().parent.parent
        env_file = Path(env_path) if env_path else self.project_root / ".env"

        if env_path and not env_file.exists():
            raise FileNotFoundError(f"env file not found: {env_file}")

        if env_file.exists():
            load_dotenv(dotenv_path=str(env_file), override=bool(env_path))
        else:
            alt = self.project_root / ".env.example"
            if alt.exists():
                load_dotenv(dotenv_path=str(alt))
                logging.warning(
                    ".env not found, loaded .env.example (JWT secret is a placeholder)"
                )

        # ── Database ──
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL", f"sqlite:///{self.project_root / 'upokari.db'}"
        )

        # ── Auth ──
        self.JWT_SECRET: str = os.getenv("JWT_SECRET", "your-secret-key")

        # ── Web Portal ──
        self.PORTAL_HOST: str = os.getenv("PORTAL_HOST", "0.0.0.0")
        self.PORTAL_PORT: int = int(os.getenv("PORTAL_PORT", "5000"))
        self.CORS_ORIGINS: List[str] = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]

        # ── Ranking ──
        self.SIMILARITY_THRESHOLD: float = float(
            os.getenv("SIMILARITY_THRESHOLD", "0.70")
        )
        self.MIN_PRESENT_FOR_RANKING: int = int(
            os.getenv("MIN_PRESENT_FOR_RANKING", "10")
        )

        # ── Logging ──
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR: Path = Path(
            os.getenv("LOG_DIR", str(self.project_root / "logs"))
        )

        # ── Create directories ──
        self.LOG_DIR.mkdir(parents=True, exist_ok=True)

    def validate(self) -> bool:
        """
        Validate that all critical configuration is present.

        Returns:
            True if valid, False otherwise. Prints issues to stderr.
        """
        valid = True

        if self.JWT_SECRET == "your-secret-key":
            print(
                "⚠️  JWT_SECRET is the built-in placeholder. "
                "Set a real secret in .env before exposing the API.",
                file=sys.stderr,
            )
            valid = False

        if not 0.0 <= self.SIMILARITY_THRESHOLD <= 1.0:
            print("⚠️  SIMILARITY_THRESHOLD must be within [0, 1].", file=sys.stderr)
            valid = False

        if self.MIN_PRESENT_FOR_RANKING < 0:
            print("⚠️  MIN_PRESENT_FOR_RANKING must be >= 0.", file=sys.stderr)
            valid = False

        return valid

    def print_summary(self) -> None:
        """Print startup configuration summary."""
        border = "═" * 56
        print(f"\n{border}")
        print("  Upokari Result Analytics — Configuration Summary")
        print(border)
        print(f"  Project root         : {self.project_root}")
        print(f"  Database             : {self.DATABASE_URL}")
        print(f"  Log directory        : {self.LOG_DIR}")
        print(f"  Log level            : {self.LOG_LEVEL}")
        print(f"  Portal               : http://{self.PORTAL_HOST}:{self.PORTAL_PORT}")
        print(f"  CORS origins         : {', '.join(self.CORS_ORIGINS)}")
        print(f"  Similarity threshold : {self.SIMILARITY_THRESHOLD}")
        print(f"  Min present to rank  : {self.MIN_PRESENT_FOR_RANKING}")
        secret_display = "placeholder" if self.JWT_SECRET == "your-secret-key" else "set"
        print(f"  JWT secret           : {secret_display}")
        print(f"{border}\n")


# ── Singleton ──
_config_instance: Config = None


def get_config(env_path: str = None) -> Config:
    """
    Return the singleton Config instance.

    Args:
        env_path: Optional path to .env file (used only on first call).

    Returns:
        Config singleton.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(env_path=env_path)
    return _config_instance


def set_config(config: Config) -> Config:
    """Install *config* as the singleton returned by ``get_config``."""
    global _config_instance
    _config_instance = config
    return config


def load_config(env_path: str = None) -> Config:
    """
    Build a fresh Config from *env_path* and make it the singleton.

    Unlike ``get_config`` this always re-reads the environment, so it
    replaces any instance created earlier with default settings.
    """
    return set_config(Config(env_path=env_path))
